"""
Facet catalog: which count breakdowns exist and which ones a request gets.

A facet is a named producer of (label, count) rows for a filter. The
catalog keeps facets in declaration order and resolves a request's facet
names against names and aliases, exactly or as case-insensitive patterns.
"""

import functools
import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Protocol

from tcrd_core.constants import (
    DEFAULT_TARGET_FACETS,
    ERROR_UNKNOWN_FACET,
    FACET_DATA_SOURCE,
    FACET_DISEASE,
    FACET_DTO,
    FACET_EXPRESSION_CONSENSUS,
    FACET_FAMILY,
    FACET_GWAS,
    FACET_IMPC,
    FACET_JAX,
    FACET_KEYWORD,
    FACET_LIGAND_ACTIVITY,
    FACET_LOG_NOVELTY,
    FACET_ORTHOLOG,
    FACET_PANTHER,
    FACET_PATHWAY,
    FACET_PUBMED_COUNT,
    FACET_TDL,
)
from tcrd_core.schemas import FacetValue, Filter

logger = logging.getLogger(__name__)

Producer = Callable[[Filter], Awaitable[list[FacetValue]]]


class FacetResolutionError(Exception):
    """Facet name not in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(ERROR_UNKNOWN_FACET.format(name=name))


def name_matches(candidate: str, pattern: str) -> bool:
    """
    Case-insensitive exact or regex-search match.

    A pattern that is not a valid regex only matches exactly.
    """
    if candidate.casefold() == pattern.casefold():
        return True
    try:
        return re.search(pattern, candidate, re.IGNORECASE) is not None
    except re.error:
        return False


def matches_any(candidate: str, patterns: Iterable[str]) -> bool:
    return any(name_matches(candidate, p) for p in patterns)


@dataclass(frozen=True)
class FacetDefinition:
    """
    A named facet and the producer of its counts.

    Exactly one facet of a catalog may be the total source: the sum of its
    counts is the result's overall total, so its values must partition the
    result set.
    """

    name: str
    producer: Producer
    aliases: frozenset[str] = frozenset()
    is_total_source: bool = False

    def matches(self, patterns: Iterable[str]) -> bool:
        patterns = list(patterns)
        return any(matches_any(n, patterns) for n in (self.name, *self.aliases))

    def answers_to(self, name: str) -> bool:
        """Exact, case-insensitive match on name or alias."""
        key = name.casefold()
        return key == self.name.casefold() or any(key == a.casefold() for a in self.aliases)


class FacetCatalog:
    """
    Ordered registry of facet definitions.

    Example:
        >>> catalog = build_target_facet_catalog(store)
        >>> [f.name for f in catalog.resolve(["fam"])]
        ['Family']
    """

    def __init__(
        self,
        definitions: Iterable[FacetDefinition] = (),
        defaults: Iterable[str] = DEFAULT_TARGET_FACETS,
    ):
        self._definitions: dict[str, FacetDefinition] = {}
        self.defaults = tuple(defaults)
        for definition in definitions:
            self.register(definition)

    def register(self, definition: FacetDefinition) -> None:
        if definition.name in self._definitions:
            raise ValueError(f"Facet already registered: {definition.name}")
        if definition.is_total_source and any(
            d.is_total_source for d in self._definitions.values()
        ):
            raise ValueError(f"Catalog already has a total source; cannot add {definition.name}")
        self._definitions[definition.name] = definition

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[FacetDefinition]:
        return iter(self._definitions.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and any(d.answers_to(name) for d in self)

    def names(self) -> list[str]:
        return list(self._definitions)

    def get(self, name: str) -> FacetDefinition:
        """
        Get a facet by name or alias.

        Raises:
            FacetResolutionError: If nothing answers to the name
        """
        for definition in self._definitions.values():
            if definition.answers_to(name):
                return definition
        raise FacetResolutionError(name)

    def resolve(
        self,
        requested_names: Iterable[str] | None = None,
        active_filter: Filter | None = None,
        include_all: bool = False,
    ) -> list[FacetDefinition]:
        """
        Select the facets a request should be answered with.

        Args:
            requested_names: Facet names or patterns; empty means defaults
            active_filter: Filter whose own facets must always be present
            include_all: Return the whole catalog

        Returns:
            Facet definitions in declaration order
        """
        if include_all:
            return list(self._definitions.values())

        requested = [n for n in (requested_names or []) if n]
        if requested:
            selected = {d.name for d in self if d.matches(requested)}
        else:
            selected = {d.name for d in self if d.name in self.defaults}

        if active_filter is not None:
            for name in active_filter.facet_names():
                forced = [d.name for d in self if d.answers_to(name)]
                if not forced:
                    logger.debug(f"Filter references facet not in catalog: {name}")
                selected.update(forced)

        return [d for d in self if d.name in selected]


# ============================================================================
# Standard target facets
# ============================================================================


class FacetCountSource(Protocol):
    async def facet_counts(self, facet_key: str, filter: Filter) -> list[FacetValue]: ...


# (name, store facet key, aliases); the first entry is the total source
TARGET_FACETS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    (FACET_TDL, "tdl", ("tdl", "Development Level")),
    (FACET_FAMILY, "fam", ("fam", "Target Family")),
    (FACET_IMPC, "impc", ("IMPC",)),
    (FACET_JAX, "jax", ("JAX", "MGI Phenotype")),
    (FACET_GWAS, "gwas", ()),
    (FACET_EXPRESSION_CONSENSUS, "expression_consensus", ("Consensus Expression",)),
    (FACET_ORTHOLOG, "ortholog", ("orthologs",)),
    (FACET_DISEASE, "disease", ("diseases",)),
    (FACET_PANTHER, "panther", ("PANTHER",)),
    (FACET_DTO, "dto", ("DTO",)),
    (FACET_PATHWAY, "reactome", ("pathways",)),
    (FACET_KEYWORD, "keyword", ("Keyword",)),
    (FACET_DATA_SOURCE, "data_source", ()),
    (FACET_LIGAND_ACTIVITY, "ligand_activity", ("Activity Type",)),
    (FACET_LOG_NOVELTY, "log_novelty", ("novelty",)),
    (FACET_PUBMED_COUNT, "pubmed_count", ()),
)


def build_target_facet_catalog(store: FacetCountSource) -> FacetCatalog:
    """
    Declare the standard target facets against a store.

    Target Development Level comes first and is the total source: every
    target has exactly one development level.
    """
    catalog = FacetCatalog()
    for index, (name, key, aliases) in enumerate(TARGET_FACETS):
        catalog.register(
            FacetDefinition(
                name=name,
                producer=functools.partial(store.facet_counts, key),
                aliases=frozenset(aliases),
                is_total_source=index == 0,
            )
        )
    return catalog
