"""
Random modification of phenotype queries, given a disease description.

Two sources of error model incorrect phenotyping by clinicians. First, each
disease term is moved up towards the root with a certain probability
(imprecision). Second, unrelated noise terms are added. Finally, the number
of query terms is picked uniformly at random within a configured range.

No term is ever mapped up to the root. All terms are assumed to be of the
same kind, in practice the Phenotypic abnormality sub-ontology.

Each stage takes its random generator explicitly. AnnotationSetModifier owns
one generator seeded from the configuration; it is not thread safe, so use
one instance per thread or call `simulate_annotation_set` with your own
`random.Random`.
"""

import logging
import random
import typing

import hpotk

from .config import ConfigurationError, SimulationConfig
from .ontology import OntologyAdapter

LOGGER = logging.getLogger(__name__)


class NoiseSaturationError(RuntimeError):
    """
    Raised when the noise stage cannot find enough admissible terms within
    `SimulationConfig.max_noise_draws` draws.
    """


class HasPositiveTermIds(typing.Protocol):
    def positive_term_ids(self) -> typing.Sequence[hpotk.TermId]: ...


def _ordered(term_ids: typing.Iterable[hpotk.TermId]) -> typing.List[hpotk.TermId]:
    # set iteration order is not stable across runs, draws must index into a sorted list
    return sorted(term_ids, key=lambda t: t.value)


def filter_term_ids(
        term_ids: typing.Iterable[hpotk.TermId], ontology: OntologyAdapter
) -> typing.List[hpotk.TermId]:
    """Keep the terms that are in the ontology and not obsolete, in order."""
    return [term_id for term_id in term_ids if ontology.is_usable(term_id)]


def map_up_terms(
        term_ids: typing.Sequence[hpotk.TermId],
        ontology: OntologyAdapter,
        map_up_probability: float,
        rng: random.Random,
) -> typing.List[hpotk.TermId]:
    """
    Add imprecision by replacing terms with ancestors.

    With probability `map_up_probability` each term is swapped for a random
    member of the ancestor closure of the whole input (input terms included),
    minus the term itself and the root. Results are deduplicated keeping the
    first occurrence, so the output may be shorter than the input.
    """
    if map_up_probability == 0.0:
        return list(term_ids)

    root = ontology.root
    closure = ontology.ancestors_of_all(term_ids, include_root=True)
    closure.update(term_ids)
    closure.discard(root)
    ordered_closure = _ordered(closure)

    result: typing.List[hpotk.TermId] = []
    seen: typing.Set[hpotk.TermId] = set()
    for term_id in term_ids:
        new_term_id = term_id
        if rng.random() < map_up_probability:
            candidates = [t for t in ordered_closure if t != term_id]
            if candidates:
                new_term_id = candidates[rng.randrange(len(candidates))]
                LOGGER.debug("Mapped %s up to %s", term_id.value, new_term_id.value)
        if new_term_id not in seen:
            result.append(new_term_id)
            seen.add(new_term_id)

    return result


def add_noise_terms(
        term_ids: typing.Sequence[hpotk.TermId],
        ontology: OntologyAdapter,
        noise_fraction: float,
        rng: random.Random,
        max_draws: int,
        pool: typing.Optional[typing.Sequence[hpotk.TermId]] = None,
) -> typing.List[hpotk.TermId]:
    """
    Add `max(1, floor(len(term_ids) * noise_fraction))` random terms.

    A candidate is rejected if it is already in the result or is a strict
    ancestor (root excluded) of any term in the result; accepted candidates
    extend that forbidden set with themselves and their ancestors, so the
    result holds no duplicates added here. Raises NoiseSaturationError once
    `max_draws` draws were spent without reaching the target size.
    """
    if noise_fraction == 0.0:
        return list(term_ids)

    if pool is None:
        pool = ontology.non_obsolete_term_ids()
    if not pool:
        raise NoiseSaturationError("No non-obsolete terms to draw noise from")

    result = list(term_ids)
    terms_to_add = max(1, int(len(result) * noise_fraction))
    target_size = len(result) + terms_to_add

    forbidden = ontology.ancestors_of_all(term_ids, include_root=False)
    forbidden.update(term_ids)

    draws = 0
    while len(result) < target_size:
        if draws >= max_draws:
            raise NoiseSaturationError(
                f"Added {len(result) - len(term_ids)} of {terms_to_add} noise terms "
                f"before exhausting {max_draws} draws"
            )
        draws += 1
        candidate = pool[rng.randrange(len(pool))]
        if candidate not in forbidden:
            result.append(candidate)
            forbidden.add(candidate)
            forbidden.update(ontology.ancestors_of(candidate, include_root=False))

    LOGGER.debug("Added %d noise terms in %d draws", terms_to_add, draws)
    return result


def choose_query_size(
        input_size: int, min_query_size: int, max_query_size: int, rng: random.Random
) -> int:
    """Uniform in [min_query_size, max_query_size], but never below `input_size`."""
    return max(input_size, min_query_size + rng.randint(0, max_query_size - min_query_size))


def subsample_terms(
        term_ids: typing.Sequence[hpotk.TermId],
        min_query_size: int,
        max_query_size: int,
        rng: random.Random,
) -> typing.List[hpotk.TermId]:
    """
    Pick the query size, then move that many randomly chosen terms into the
    result. The result is never longer than the input.
    """
    num_terms = choose_query_size(len(term_ids), min_query_size, max_query_size, rng)
    working = list(term_ids)
    result: typing.List[hpotk.TermId] = []
    while len(result) < num_terms and working:
        result.append(working.pop(rng.randrange(len(working))))
    return result


def simulate_annotation_set(
        disease: HasPositiveTermIds,
        ontology: OntologyAdapter,
        config: SimulationConfig,
        rng: random.Random,
        pool: typing.Optional[typing.Sequence[hpotk.TermId]] = None,
) -> typing.List[hpotk.TermId]:
    """
    Run filter, map-up, noise and subsample on the positive terms of `disease`.
    The output is not sorted.
    """
    annotated = filter_term_ids(disease.positive_term_ids(), ontology)
    imprecise = map_up_terms(annotated, ontology, config.map_up_probability, rng)
    noisy = add_noise_terms(imprecise, ontology, config.noise_fraction, rng, config.max_noise_draws, pool=pool)
    result = subsample_terms(noisy, config.min_query_size, config.max_query_size, rng)
    LOGGER.debug(
        "Simulated query: %d annotated, %d after map-up, %d after noise, %d returned",
        len(annotated), len(imprecise), len(noisy), len(result),
    )
    return result


class AnnotationSetModifier:
    """
    Stateful simulator bound to one ontology and configuration.

    The random generator is seeded once from `config.seed` and advances on
    every call, so two calls with the same disease usually differ.
    """

    def __init__(self, ontology: OntologyAdapter, config: SimulationConfig):
        if not isinstance(config, SimulationConfig):
            raise ConfigurationError(f"Expected SimulationConfig, got {type(config).__name__}")
        self._ontology = ontology
        self._config = config
        self._pool = tuple(ontology.non_obsolete_term_ids())
        self._rng = random.Random(config.seed)

    @property
    def config(self) -> SimulationConfig:
        return self._config

    def simulate(self, disease: HasPositiveTermIds) -> typing.List[hpotk.TermId]:
        return simulate_annotation_set(disease, self._ontology, self._config, self._rng, pool=self._pool)
