import typing

import hpotk
import pytest

from annosimu.disease import AnnotatedDisease, DiseaseAnnotation, DiseaseDatabase, DiseaseId
from annosimu.ontology import InMemoryOntology


@pytest.fixture(scope="session")
def toy_hpo() -> InMemoryOntology:
    """
    A small slice of the Phenotypic abnormality sub-ontology.

    HP:0000118 Phenotypic abnormality
    ├── HP:0000707 Abnormality of the nervous system
    │   ├── HP:0001250 Seizure
    │   │   └── HP:0002197 Generalized-onset seizure
    │   └── HP:0000252 Microcephaly  (also under HP:0000240)
    ├── HP:0000478 Abnormality of the eye
    │   └── HP:0000505 Visual impairment
    │       └── HP:0000618 Blindness
    ├── HP:0000152 Abnormality of head or neck
    │   └── HP:0000234 Abnormality of the head
    │       └── HP:0000240 Abnormality of skull size
    │           └── HP:0000252 Microcephaly
    └── HP:0000999 (obsolete)
    """
    return InMemoryOntology.from_parents(
        "HP:0000118",
        {
            "HP:0000707": ["HP:0000118"],
            "HP:0001250": ["HP:0000707"],
            "HP:0002197": ["HP:0001250"],
            "HP:0000478": ["HP:0000118"],
            "HP:0000505": ["HP:0000478"],
            "HP:0000618": ["HP:0000505"],
            "HP:0000152": ["HP:0000118"],
            "HP:0000234": ["HP:0000152"],
            "HP:0000240": ["HP:0000234"],
            "HP:0000252": ["HP:0000240", "HP:0000707"],
            "HP:0000999": ["HP:0000118"],
        },
        obsolete=["HP:0000999"],
        labels={
            "HP:0000118": "Phenotypic abnormality",
            "HP:0001250": "Seizure",
            "HP:0000618": "Blindness",
            "HP:0000252": "Microcephaly",
        },
    )


@pytest.fixture(scope="session")
def chain_hpo() -> InMemoryOntology:
    """Root R <- A <- B <- C, as HP:0000118 <- HP:0000707 <- HP:0001250 <- HP:0002197."""
    return InMemoryOntology.from_parents(
        "HP:0000118",
        {
            "HP:0000707": ["HP:0000118"],
            "HP:0001250": ["HP:0000707"],
            "HP:0002197": ["HP:0001250"],
        },
    )


@pytest.fixture(scope="session")
def tids() -> typing.Callable[..., typing.List[hpotk.TermId]]:
    """Turn CURIEs into a list of TermIds, e.g. `tids("HP:0001250", "HP:0000618")`."""

    def _tids(*curies: str) -> typing.List[hpotk.TermId]:
        return [hpotk.TermId.from_curie(c) for c in curies]

    return _tids


@pytest.fixture(scope="session")
def make_disease() -> typing.Callable[..., AnnotatedDisease]:
    """Build an OMIM disease annotated with the given positive CURIEs."""

    def _make_disease(*curies: str, identifier: str = "100100") -> AnnotatedDisease:
        disease_id = DiseaseId(DiseaseDatabase.OMIM, identifier)
        return AnnotatedDisease(
            disease_id=disease_id,
            name="Test syndrome",
            positive_annotations=tuple(
                DiseaseAnnotation(disease_id, "Test syndrome", hpotk.TermId.from_curie(c)) for c in curies
            ),
        )

    return _make_disease
