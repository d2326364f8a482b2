"""
Disease domain model.

Defines the disease identifier, single annotation lines and the immutable
AnnotatedDisease record assembled from them.
"""

from __future__ import annotations

import typing

from dataclasses import dataclass, field
from enum import Enum, auto

import hpotk


class DiseaseDatabase(Enum):
    """
    Databases a disease identifier may come from.
    """
    OMIM = auto()
    DECIPHER = auto()
    ORPHA = auto()
    MESH = auto()
    DO = auto()
    MGI = auto()
    MONDO = auto()

    @classmethod
    def from_label(cls, label: str) -> "DiseaseDatabase":
        """
        Convert a database prefix (e.g. 'OMIM', 'orpha') into the enum.
        """
        key = label.strip().upper()
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown disease database: {label!r}")


@dataclass(frozen=True)
class DiseaseId:
    """
    A disease, identified by its database and the identifier inside it.

    Attributes:
        database: The DiseaseDatabase the disease is from.
        identifier: Local identifier inside the database (e.g. '266600').
    """

    database: DiseaseDatabase
    identifier: str

    def __post_init__(self):
        if not self.identifier:
            raise ValueError("Disease identifier must not be empty")

    @staticmethod
    def from_string(value: str) -> "DiseaseId":
        """Parse `"<DB>:<ID>"`, e.g. `"OMIM:266600"`."""
        if ":" not in value:
            raise ValueError(f"Disease ID {value!r} does not contain a colon")
        database, identifier = value.split(":", 1)
        return DiseaseId(DiseaseDatabase.from_label(database), identifier.strip())

    def __str__(self) -> str:
        return f"{self.database.name}:{self.identifier}"


@dataclass(frozen=True)
class DiseaseAnnotation:
    """
    A single disease-to-term annotation line.

    Attributes:
        disease_id: The annotated disease.
        disease_name: Name of the disease as given on the line.
        term_id: The annotated ontology term.
        qualifier: 'NOT' for negated annotations, empty otherwise.
    """

    disease_id: DiseaseId
    disease_name: str
    term_id: hpotk.TermId
    qualifier: str = ""

    @property
    def is_negated(self) -> bool:
        return self.qualifier.strip().upper() == "NOT"


@dataclass(frozen=True)
class AnnotatedDisease:
    """
    Collected annotation information for one disease.
    Alternative names are kept sorted.
    """

    disease_id: DiseaseId
    name: str
    alternative_names: typing.Tuple[str, ...] = ()
    positive_annotations: typing.Tuple[DiseaseAnnotation, ...] = ()
    negative_annotations: typing.Tuple[DiseaseAnnotation, ...] = ()

    def __post_init__(self):
        # frozen, so go through object.__setattr__ to normalize
        object.__setattr__(self, "alternative_names", tuple(sorted(self.alternative_names)))
        object.__setattr__(self, "positive_annotations", tuple(self.positive_annotations))
        object.__setattr__(self, "negative_annotations", tuple(self.negative_annotations))

    def positive_term_ids(self) -> typing.List[hpotk.TermId]:
        """All positively associated term ids, in annotation order."""
        return [anno.term_id for anno in self.positive_annotations]

    def negative_term_ids(self) -> typing.List[hpotk.TermId]:
        return [anno.term_id for anno in self.negative_annotations]


@dataclass
class AnnotatedDiseaseBuilder:
    """
    Mutable builder for AnnotatedDisease, filled line by line.

    `process_annotation` sets the disease id and name from the first line,
    rejects lines for another disease, and keeps a single annotation per
    term id for each polarity.
    """

    disease_id: typing.Optional[DiseaseId] = None
    name: typing.Optional[str] = None
    alternative_names: typing.List[str] = field(default_factory=list)
    positive_annotations: typing.List[DiseaseAnnotation] = field(default_factory=list)
    negative_annotations: typing.List[DiseaseAnnotation] = field(default_factory=list)

    def process_annotation(self, anno: DiseaseAnnotation) -> None:
        if self.disease_id is None:
            self.disease_id = anno.disease_id
        elif self.disease_id != anno.disease_id:
            raise ValueError(
                f"Annotation has conflicting disease ID {anno.disease_id} vs. {self.disease_id}"
            )

        if self.name is None:
            self.name = anno.disease_name
        elif self.name != anno.disease_name:
            raise ValueError(
                f"Annotation has conflicting disease name {anno.disease_name!r} vs. {self.name!r}"
            )

        target = self.negative_annotations if anno.is_negated else self.positive_annotations
        if all(existing.term_id != anno.term_id for existing in target):
            target.append(anno)

    def add_alternative_name(self, name: str) -> None:
        self.alternative_names.append(name)

    def build(self) -> AnnotatedDisease:
        if self.disease_id is None or self.name is None:
            raise ValueError("Cannot build an AnnotatedDisease without any annotation")
        return AnnotatedDisease(
            disease_id=self.disease_id,
            name=self.name,
            alternative_names=tuple(self.alternative_names),
            positive_annotations=tuple(self.positive_annotations),
            negative_annotations=tuple(self.negative_annotations),
        )
