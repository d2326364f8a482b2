import logging

import hpotk
import pandas as pd

from stairval.notepad import Notepad

from .disease import AnnotatedDisease, AnnotatedDiseaseBuilder, DiseaseAnnotation, DiseaseId

LOGGER = logging.getLogger(__name__)

# Columns of phenotype.hpoa the simulation needs
REQUIRED_COLUMNS = {"database_id", "disease_name", "qualifier", "hpo_id"}

# Older annotation releases use different headers
RENAME_MAP = {
    "db_reference": "database_id",
    "db_name": "disease_name",
    "hpo_term_id": "hpo_id",
}


def _count_header_lines(annotation_path: str) -> int:
    # the metadata block is a run of "#" lines at the top of the file
    count = 0
    with open(annotation_path, encoding="utf-8") as fh:
        for line in fh:
            if not line.startswith("#"):
                break
            count += 1
    return count


def read_annotation_table(annotation_path: str) -> pd.DataFrame:
    """
    Read an HPOA annotation file into a DataFrame:
      - lines starting with '#' are the header block and get skipped
      - all cells are read as strings, missing ones become ''
      - headers are normalized to snake_case lowercase
    """
    df = pd.read_csv(
        annotation_path,
        sep="\t",
        skiprows=_count_header_lines(annotation_path),
        dtype=str,
        keep_default_na=False,
    )

    df.columns = (
        df.columns.str.strip()
        .str.replace(r"\s+", "_", regex=True)
        .str.lower()
    )
    df = df.rename(columns={orig: target for orig, target in RENAME_MAP.items() if orig in df.columns})

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Annotation file {annotation_path!r} lacks columns: {', '.join(sorted(missing))}")
    return df


def parse_annotation_row(row: pd.Series, notepad: Notepad) -> DiseaseAnnotation | None:
    """
    Turn one table row into a DiseaseAnnotation.
    Returns None (and records an error) if the row cannot be parsed.
    """
    try:
        disease_id = DiseaseId.from_string(str(row["database_id"]).strip())
        term_id = hpotk.TermId.from_curie(str(row["hpo_id"]).strip())
    except ValueError as e:
        notepad.add_error(f"Row {row.name}: {e}")
        return None

    return DiseaseAnnotation(
        disease_id=disease_id,
        disease_name=str(row["disease_name"]).strip(),
        term_id=term_id,
        qualifier=str(row["qualifier"]).strip(),
    )


def load_disease_annotations(annotation_path: str, notepad: Notepad) -> dict[DiseaseId, AnnotatedDisease]:
    """
    Build one AnnotatedDisease per disease id found in the annotation file.
    Rows that cannot be parsed or that conflict with earlier rows are
    reported on `notepad` and skipped.
    """
    df = read_annotation_table(annotation_path)
    builders: dict[DiseaseId, AnnotatedDiseaseBuilder] = {}

    for _, row in df.iterrows():
        anno = parse_annotation_row(row, notepad)
        if anno is None:
            continue
        builder = builders.setdefault(anno.disease_id, AnnotatedDiseaseBuilder())
        try:
            builder.process_annotation(anno)
        except ValueError as e:
            notepad.add_warning(f"Row {row.name}: {e}")

    diseases = {disease_id: builder.build() for disease_id, builder in builders.items()}
    LOGGER.info("Loaded %d diseases from %d annotation lines", len(diseases), len(df))
    return diseases
