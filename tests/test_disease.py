import hpotk
import pytest

from annosimu.disease import (
    AnnotatedDisease,
    AnnotatedDiseaseBuilder,
    DiseaseAnnotation,
    DiseaseDatabase,
    DiseaseId,
)

OMIM_1 = DiseaseId(DiseaseDatabase.OMIM, "266600")
SEIZURE = hpotk.TermId.from_curie("HP:0001250")
BLINDNESS = hpotk.TermId.from_curie("HP:0000618")


def test_disease_database_from_label():
    assert DiseaseDatabase.from_label("omim") == DiseaseDatabase.OMIM
    assert DiseaseDatabase.from_label(" ORPHA ") == DiseaseDatabase.ORPHA


def test_disease_database_invalid_label_raises():
    with pytest.raises(ValueError):
        DiseaseDatabase.from_label("GENBANK")


def test_disease_id_from_string_round_trip():
    disease_id = DiseaseId.from_string("decipher:2")
    assert disease_id == DiseaseId(DiseaseDatabase.DECIPHER, "2")
    assert str(disease_id) == "DECIPHER:2"


@pytest.mark.parametrize("bad_id", ["OMIM266600", "FOO:1", "OMIM:"])
def test_disease_id_invalid_string_raises(bad_id):
    with pytest.raises(ValueError):
        DiseaseId.from_string(bad_id)


def test_annotated_disease_sorts_alternative_names():
    disease = AnnotatedDisease(OMIM_1, "Crohn disease", alternative_names=("b", "a"))
    assert disease.alternative_names == ("a", "b")


class TestAnnotatedDiseaseBuilder:
    def test_routes_by_qualifier_and_keeps_order(self):
        builder = AnnotatedDiseaseBuilder()
        builder.process_annotation(DiseaseAnnotation(OMIM_1, "Crohn disease", SEIZURE))
        builder.process_annotation(DiseaseAnnotation(OMIM_1, "Crohn disease", BLINDNESS, qualifier="NOT"))
        builder.process_annotation(DiseaseAnnotation(OMIM_1, "Crohn disease", BLINDNESS))

        disease = builder.build()
        assert disease.disease_id == OMIM_1
        assert disease.positive_term_ids() == [SEIZURE, BLINDNESS]
        assert disease.negative_term_ids() == [BLINDNESS]

    def test_duplicate_terms_are_merged(self):
        builder = AnnotatedDiseaseBuilder()
        for _ in range(3):
            builder.process_annotation(DiseaseAnnotation(OMIM_1, "Crohn disease", SEIZURE))
        assert builder.build().positive_term_ids() == [SEIZURE]

    def test_conflicting_disease_id_raises(self):
        builder = AnnotatedDiseaseBuilder()
        builder.process_annotation(DiseaseAnnotation(OMIM_1, "Crohn disease", SEIZURE))
        with pytest.raises(ValueError):
            builder.process_annotation(
                DiseaseAnnotation(DiseaseId(DiseaseDatabase.OMIM, "1"), "Crohn disease", SEIZURE)
            )

    def test_conflicting_name_raises(self):
        builder = AnnotatedDiseaseBuilder()
        builder.process_annotation(DiseaseAnnotation(OMIM_1, "Crohn disease", SEIZURE))
        with pytest.raises(ValueError):
            builder.process_annotation(DiseaseAnnotation(OMIM_1, "Other disease", SEIZURE))

    def test_empty_builder_cannot_build(self):
        with pytest.raises(ValueError):
            AnnotatedDiseaseBuilder().build()
