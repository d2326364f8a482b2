"""
Ontology adapters.

The simulation only needs a handful of read-only queries against the
ontology. They are collected in the OntologyAdapter interface so that the
modifier can run against a full HPO release (HpotkOntology) or against a
small synthetic DAG (InMemoryOntology).
"""

from __future__ import annotations

import abc
import logging
import typing

from collections import deque

import hpotk

LOGGER = logging.getLogger(__name__)

# Default root for simulation: only phenotypic abnormality terms are drawn.
PHENOTYPIC_ABNORMALITY = hpotk.TermId.from_curie("HP:0000118")


class OntologyAdapter(metaclass=abc.ABCMeta):
    """Read-only view of a rooted ontology DAG."""

    @property
    @abc.abstractmethod
    def root(self) -> hpotk.TermId:
        raise NotImplementedError

    @abc.abstractmethod
    def contains(self, term_id: hpotk.TermId) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def is_obsolete(self, term_id: hpotk.TermId) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def non_obsolete_term_ids(self) -> typing.Sequence[hpotk.TermId]:
        """All non-obsolete term ids, in a stable order."""
        raise NotImplementedError

    @abc.abstractmethod
    def ancestors_of(self, term_id: hpotk.TermId, include_root: bool = False) -> typing.Set[hpotk.TermId]:
        """Strict ancestors of `term_id`; the root is only kept if `include_root` is set."""
        raise NotImplementedError

    @abc.abstractmethod
    def label(self, term_id: hpotk.TermId) -> typing.Optional[str]:
        raise NotImplementedError

    def ancestors_of_all(
            self, term_ids: typing.Iterable[hpotk.TermId], include_root: bool = False
    ) -> typing.Set[hpotk.TermId]:
        """Union of the strict ancestors of every term in `term_ids`."""
        ancestors: typing.Set[hpotk.TermId] = set()
        for term_id in term_ids:
            ancestors.update(self.ancestors_of(term_id, include_root=include_root))
        return ancestors

    def is_usable(self, term_id: hpotk.TermId) -> bool:
        """True if the term is known and not obsolete."""
        return self.contains(term_id) and not self.is_obsolete(term_id)


class HpotkOntology(OntologyAdapter):
    """
    Adapter over a `hpotk.MinimalOntology`.

    If `subontology_root` is given, every query is restricted to that term and
    its descendants, and the sub-ontology root acts as the ontology root.

    Only primary term ids are known to the adapter. `MinimalOntology.get_term`
    also resolves alternate ids, but the graph does not index them, so an
    alternate id is treated as unknown and obsolete.
    """

    def __init__(
            self,
            ontology: hpotk.MinimalOntology,
            subontology_root: typing.Optional[hpotk.TermId] = None,
    ):
        self._ontology = ontology
        if subontology_root is None:
            self._root = ontology.graph.root
            self._members = None
        else:
            if self._primary_term(subontology_root) is None:
                raise ValueError(f"Sub-ontology root {subontology_root.value!r} is not in the ontology")
            self._root = subontology_root
            self._members = frozenset(ontology.graph.get_descendants(subontology_root, include_source=True))

        self._non_obsolete = tuple(
            sorted(
                (term.identifier for term in ontology.terms
                 if not term.is_obsolete and self._in_scope(term.identifier)),
                key=lambda t: t.value,
            )
        )
        LOGGER.info(
            "Ontology rooted at %s has %d non-obsolete terms", self._root.value, len(self._non_obsolete)
        )

    @property
    def root(self) -> hpotk.TermId:
        return self._root

    def _primary_term(self, term_id: hpotk.TermId) -> typing.Optional[hpotk.MinimalTerm]:
        term = self._ontology.get_term(term_id)
        if term is None or term.identifier != term_id:
            return None
        return term

    def _in_scope(self, term_id: hpotk.TermId) -> bool:
        return self._members is None or term_id in self._members

    def contains(self, term_id: hpotk.TermId) -> bool:
        return self._primary_term(term_id) is not None and self._in_scope(term_id)

    def is_obsolete(self, term_id: hpotk.TermId) -> bool:
        term = self._primary_term(term_id)
        return term is None or term.is_obsolete

    def non_obsolete_term_ids(self) -> typing.Sequence[hpotk.TermId]:
        return self._non_obsolete

    def ancestors_of(self, term_id: hpotk.TermId, include_root: bool = False) -> typing.Set[hpotk.TermId]:
        if self._primary_term(term_id) is None:
            return set()
        ancestors = {
            ancestor for ancestor in self._ontology.graph.get_ancestors(term_id, include_source=False)
            if self._in_scope(ancestor)
        }
        if not include_root:
            ancestors.discard(self._root)
        return ancestors

    def label(self, term_id: hpotk.TermId) -> typing.Optional[str]:
        term = self._ontology.get_term(term_id)
        return None if term is None else term.name


class InMemoryOntology(OntologyAdapter):
    """
    Small ontology built from explicit parent links.

    Example:
        >>> ontology = InMemoryOntology.from_parents(
        ...     "HP:0000001",
        ...     {"HP:0000002": ["HP:0000001"], "HP:0000003": ["HP:0000002"]},
        ... )
    """

    def __init__(
            self,
            root: hpotk.TermId,
            parents: typing.Mapping[hpotk.TermId, typing.Iterable[hpotk.TermId]],
            obsolete: typing.Iterable[hpotk.TermId] = (),
            labels: typing.Optional[typing.Mapping[hpotk.TermId, str]] = None,
    ):
        self._root = root
        self._parents = {term_id: tuple(parent_ids) for term_id, parent_ids in parents.items()}
        self._parents.setdefault(root, ())
        if self._parents[root]:
            raise ValueError(f"Root {root.value!r} must not have parents")
        for term_id, parent_ids in self._parents.items():
            for parent_id in parent_ids:
                if parent_id not in self._parents:
                    raise ValueError(f"Parent {parent_id.value!r} of {term_id.value!r} is not a known term")
        self._obsolete = frozenset(obsolete)
        self._labels = dict(labels or {})
        self._ancestors: typing.Dict[hpotk.TermId, typing.FrozenSet[hpotk.TermId]] = {}

    @staticmethod
    def from_parents(
            root: str,
            parents: typing.Mapping[str, typing.Iterable[str]],
            obsolete: typing.Iterable[str] = (),
            labels: typing.Optional[typing.Mapping[str, str]] = None,
    ) -> "InMemoryOntology":
        """Build from CURIE strings rather than TermIds."""
        curie = hpotk.TermId.from_curie
        return InMemoryOntology(
            root=curie(root),
            parents={curie(child): [curie(p) for p in parent_ids] for child, parent_ids in parents.items()},
            obsolete=[curie(t) for t in obsolete],
            labels={curie(t): name for t, name in (labels or {}).items()},
        )

    @property
    def root(self) -> hpotk.TermId:
        return self._root

    def contains(self, term_id: hpotk.TermId) -> bool:
        return term_id in self._parents

    def is_obsolete(self, term_id: hpotk.TermId) -> bool:
        return term_id not in self._parents or term_id in self._obsolete

    def non_obsolete_term_ids(self) -> typing.Sequence[hpotk.TermId]:
        return tuple(sorted((t for t in self._parents if t not in self._obsolete), key=lambda t: t.value))

    def ancestors_of(self, term_id: hpotk.TermId, include_root: bool = False) -> typing.Set[hpotk.TermId]:
        if term_id not in self._parents:
            return set()
        ancestors = set(self._closure(term_id))
        if not include_root:
            ancestors.discard(self._root)
        return ancestors

    def _closure(self, term_id: hpotk.TermId) -> typing.FrozenSet[hpotk.TermId]:
        # breadth-first walk up the parent links, memoized per term
        if term_id not in self._ancestors:
            seen: typing.Set[hpotk.TermId] = set()
            queue = deque(self._parents[term_id])
            while queue:
                current = queue.popleft()
                if current not in seen:
                    seen.add(current)
                    queue.extend(self._parents[current])
            self._ancestors[term_id] = frozenset(seen)
        return self._ancestors[term_id]

    def label(self, term_id: hpotk.TermId) -> typing.Optional[str]:
        if term_id not in self._parents:
            return None
        return self._labels.get(term_id, term_id.value)


def load_ontology(
        hpo_path: str, subontology_root: typing.Optional[hpotk.TermId] = PHENOTYPIC_ABNORMALITY
) -> HpotkOntology:
    """
    Load an HPO JSON file (plain or gzipped) and wrap it for simulation.
    Pass `subontology_root=None` to use the whole ontology.
    """
    LOGGER.info("Loading ontology from %s", hpo_path)
    return HpotkOntology(hpotk.load_minimal_ontology(hpo_path), subontology_root=subontology_root)
