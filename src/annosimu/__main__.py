"""
Command-line interface for annosimu.
Loads the HPO and the disease annotations, then prints a simulated,
perturbed phenotype query for one disease.
"""

import click
import hpotk
import logging
import pathlib
import random
import requests
import sys
import typing

from stairval.notepad import create_notepad

from .config import DEFAULT_MAX_NOISE_DRAWS, ConfigurationError, SimulationConfig
from .disease import AnnotatedDisease, DiseaseDatabase, DiseaseId
from .loader import load_disease_annotations
from .modifier import AnnotationSetModifier, NoiseSaturationError
from .ontology import OntologyAdapter, load_ontology

LOGGER = logging.getLogger(__name__)

RANDOM_DISEASE = "RANDOM"
HPO_REPO = "obophenotype/human-phenotype-ontology"
HPO_FILE = "hp.json"
ANNOTATION_FILE = "phenotype.hpoa"


@click.group()
def main():
    """annosimu: simulate noisy and imprecise phenotype queries for benchmarking."""
    pass


@main.command(name="download")
@click.option(
    "-d",
    "--data-path",
    "data_dir",
    default="data",
    type=click.Path(file_okay=False),
    help="where to save hp.json and phenotype.hpoa (default: data)",
)
@click.option(
    "-v",
    "--hpo-version",
    default=None,
    type=str,
    help="exact HPO release tag (e.g. 2025-03-03 or v2025-03-03)",
)
@click.option(
    "--skip-annotations",
    is_flag=True,
    help="only fetch hp.json, not the phenotype.hpoa disease annotations",
)
def download(data_dir: str, hpo_version: typing.Optional[str], skip_annotations: bool):
    """
    Download the HPO JSON and the disease annotations of one release.

    Both files come from the same release so that annotation term ids match
    the ontology. Without --hpo-version the latest release is used.
    """
    datadir = pathlib.Path(data_dir)
    datadir.mkdir(parents=True, exist_ok=True)
    tag = _resolve_release_tag(hpo_version)
    click.echo(f"Downloading HPO release {tag} …")

    assets = [HPO_FILE] if skip_annotations else [HPO_FILE, ANNOTATION_FILE]
    for asset in assets:
        out = _fetch_release_asset(tag, asset, datadir)
        click.echo(f"Saved {asset} to {out}")


def _resolve_release_tag(hpo_version: typing.Optional[str]) -> str:
    if hpo_version:
        return hpo_version if hpo_version.startswith("v") else f"v{hpo_version}"
    # GitHub latest-release API
    resp = requests.get(f"https://api.github.com/repos/{HPO_REPO}/releases/latest")
    resp.raise_for_status()
    return resp.json()["tag_name"]


def _fetch_release_asset(tag: str, asset: str, datadir: pathlib.Path) -> pathlib.Path:
    url = f"https://github.com/{HPO_REPO}/releases/download/{tag}/{asset}"
    LOGGER.info("Fetching %s", url)
    resp = requests.get(url)
    resp.raise_for_status()

    out = datadir / asset
    with open(out, "wb") as f:
        f.write(resp.content)
    return out


@main.command(name="simulate")
@click.option(
    "-hpo",
    "--hpo-path",
    "hpo_path",
    type=click.Path(dir_okay=False),
    help="path to the HPO JSON file (defaults to data/hp.json)",
)
@click.option(
    "-a",
    "--annotations",
    "annotation_path",
    type=click.Path(dir_okay=False),
    help="path to the phenotype.hpoa disease annotation file (defaults to data/phenotype.hpoa)",
)
@click.option(
    "-i",
    "--disease-id",
    required=True,
    help="disease to simulate for, e.g. OMIM:266600; RANDOM or <DB>:RANDOM picks one",
)
@click.option("--seed", default=1, show_default=True, type=int)
@click.option("--min-query-size", default=1, show_default=True, type=int)
@click.option("--max-query-size", default=5, show_default=True, type=int)
@click.option("--noise-fraction", default=0.05, show_default=True, type=float)
@click.option("--map-up-probability", default=0.05, show_default=True, type=float)
@click.option("--max-noise-draws", default=DEFAULT_MAX_NOISE_DRAWS, show_default=True, type=int)
@click.option(
    "--subontology-root",
    default="HP:0000118",
    show_default=True,
    help="only simulate within this term and its descendants; 'none' for the whole ontology",
)
@click.option("-n", "--num-queries", default=1, show_default=True, type=click.IntRange(min=1),
              help="number of consecutive queries to draw")
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def simulate(
        hpo_path: typing.Optional[str],
        annotation_path: typing.Optional[str],
        disease_id: str,
        seed: int,
        min_query_size: int,
        max_query_size: int,
        noise_fraction: float,
        map_up_probability: float,
        max_noise_draws: int,
        subontology_root: str,
        num_queries: int,
        verbose_logging: bool,
        log_file_path: typing.Optional[str],
):
    """
    Simulate perturbed phenotype queries for a single disease.
    """
    _configure_logging(verbose_logging, log_file_path)

    try:
        config = SimulationConfig(
            seed=seed,
            min_query_size=min_query_size,
            max_query_size=max_query_size,
            noise_fraction=noise_fraction,
            map_up_probability=map_up_probability,
            max_noise_draws=max_noise_draws,
        )
    except ConfigurationError as e:
        raise click.BadParameter(str(e))
    LOGGER.info("Simulation options: %s", config)

    # 1) Load the ontology and the annotations
    hpo_file = _locate_data_file(hpo_path, HPO_FILE, "HPO")
    ontology = _load_ontology(str(hpo_file), _parse_subontology_root(subontology_root))

    notepad = create_notepad("annotations")
    annotation_file = _locate_data_file(annotation_path, ANNOTATION_FILE, "Annotation")
    diseases = load_disease_annotations(str(annotation_file), notepad)
    _report_issues(notepad)

    # 2) Pick the disease and simulate
    disease = diseases[_select_disease_id(disease_id, diseases, seed)]
    modifier = AnnotationSetModifier(ontology, config)

    click.echo(f"disease ID: {disease.disease_id}")
    click.echo(f"disease name: {disease.name}")
    original = disease.positive_term_ids()
    click.echo(f"original terms: {_format_ids(original)}")
    click.echo(f"original term names: {_format_labels(original, ontology)}")

    for _ in range(num_queries):
        try:
            simulated = sorted(modifier.simulate(disease), key=lambda t: t.value)
        except NoiseSaturationError as e:
            raise click.ClickException(str(e))
        click.echo(f"simulated terms: {_format_ids(simulated)}")
        click.echo(f"simulated term names: {_format_labels(simulated, ontology)}")


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _locate_data_file(path: typing.Optional[str], default_name: str, kind: str) -> pathlib.Path:
    # either the given path or the file `download` puts under data/
    if path:
        located = pathlib.Path(path)
    else:
        located = pathlib.Path("data") / default_name
    if not located.is_file():
        click.echo(f"Error: {kind} file not found at {located}", err=True)
        sys.exit(1)
    return located


def _parse_subontology_root(value: str) -> typing.Optional[hpotk.TermId]:
    if value.strip().lower() == "none":
        return None
    try:
        return hpotk.TermId.from_curie(value.strip())
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--subontology-root")


def _load_ontology(hpo_file: str, subontology_root: typing.Optional[hpotk.TermId]) -> OntologyAdapter:
    return load_ontology(hpo_file, subontology_root=subontology_root)


def _report_issues(notepad):
    # if there were errors, show them
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in annotations:")
        for err in notepad.errors():
            click.echo(f"- {err}")
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in annotations:")
        for w in notepad.warnings():
            click.echo(f"- {w}")


def _select_disease_id(
        value: str, diseases: dict[DiseaseId, AnnotatedDisease], seed: int
) -> DiseaseId:
    """
    Resolve the --disease-id option. `RANDOM` picks any disease and
    `<DB>:RANDOM` one from that database, using a generator seeded from `seed`.
    """
    value = value.strip()
    if value.upper() == RANDOM_DISEASE or value.upper().endswith(":" + RANDOM_DISEASE):
        candidates = sorted(diseases, key=str)
        if ":" in value:
            try:
                database = DiseaseDatabase.from_label(value.split(":", 1)[0])
            except ValueError as e:
                raise click.BadParameter(str(e), param_hint="--disease-id")
            candidates = [d for d in candidates if d.database is database]
        if not candidates:
            raise click.ClickException(f"No diseases to pick from for {value!r}")
        return candidates[random.Random(seed).randrange(len(candidates))]

    try:
        disease_id = DiseaseId.from_string(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--disease-id")
    if disease_id not in diseases:
        raise click.ClickException(f"Disease {disease_id} not found in annotations")
    return disease_id


def _format_ids(term_ids: typing.Sequence[hpotk.TermId]) -> str:
    return "[" + ", ".join(t.value for t in term_ids) + "]"


def _format_labels(term_ids: typing.Sequence[hpotk.TermId], ontology: OntologyAdapter) -> str:
    return "[" + ", ".join(ontology.label(t) or "?" for t in term_ids) + "]"


if __name__ == "__main__":
    main()
