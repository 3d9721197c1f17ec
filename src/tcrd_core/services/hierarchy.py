"""
Hierarchy reconstruction from flat ontology rows.

Builds multi-parent graphs from rows decoded by the row decoder, in two modes:

- Per-entity: a short-lived batch (e.g. the PANTHER classes of one target)
  reduced to its most specific classes, each carrying its resolved parents.
- Global: a whole ontology table (Disease Ontology, Drug Target Ontology)
  built once at startup and only read afterwards.

Both modes share one resolution pass: every node of the batch is created
before any parent is resolved, so parent references always point at the
batch's own node objects.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from tcrd_core.constants import (
    ANCESTOR_DELIMITER,
    ERROR_HIERARCHY_CYCLE,
    ERROR_UNKNOWN_ONTOLOGY,
    PANTHER_ROOT,
)
from tcrd_core.services.row_decoder import AncestorChain, DecodedRow, decode_row

logger = logging.getLogger(__name__)


class HierarchyError(Exception):
    """Base exception for hierarchy construction errors."""

    pass


class HierarchyCycleError(HierarchyError):
    """Ancestor links form a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(ERROR_HIERARCHY_CYCLE.format(path=" -> ".join(cycle)))


class OntologyNotLoadedError(HierarchyError):
    """Requested global ontology was never built."""

    def __init__(self, name: str, loaded: Iterable[str]):
        self.name = name
        super().__init__(ERROR_UNKNOWN_ONTOLOGY.format(name=name, loaded=sorted(loaded)))


@dataclass(eq=False)
class HierarchyNode:
    """
    One class of an ontology.

    `parent_ids` is the decoded chain as stored; `parents` holds the nodes
    it resolved to within the same batch. `children` only records ids.
    """

    id: str
    name: str
    parent_ids: AncestorChain = ()
    parents: list["HierarchyNode"] = field(default_factory=list, repr=False)
    children: set[str] = field(default_factory=set, repr=False)

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def ancestors(self) -> list["HierarchyNode"]:
        """All resolved ancestors, nearest first, each listed once."""
        found: list[HierarchyNode] = []
        seen = {self.id}
        queue = deque(self.parents)
        while queue:
            node = queue.popleft()
            if node.id in seen:
                continue
            seen.add(node.id)
            found.append(node)
            queue.extend(node.parents)
        return found

    def to_path_dict(self) -> dict[str, Any]:
        """Nested view: the node with its parents expanded recursively."""
        return {
            "id": self.id,
            "name": self.name,
            "parents": [parent.to_path_dict() for parent in self.parents],
        }

    def to_class_dict(self) -> dict[str, Any]:
        """Flat view: the node with its raw parent id list."""
        return {
            "id": self.id,
            "name": self.name,
            "parents": list(self.parent_ids),
        }


class HierarchyGraph:
    """Nodes of one resolved batch, keyed by id in batch order."""

    def __init__(self, nodes: dict[str, HierarchyNode]):
        self.nodes = nodes
        self.dangling: dict[str, tuple[str, ...]] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[HierarchyNode]:
        return iter(self.nodes.values())

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def get(self, node_id: str) -> HierarchyNode | None:
        return self.nodes.get(node_id)

    def roots(self) -> list[HierarchyNode]:
        return [node for node in self.nodes.values() if node.is_root]

    def leaves(self) -> list[HierarchyNode]:
        return [node for node in self.nodes.values() if node.is_leaf]


def resolve_batch(decoded: Iterable[DecodedRow]) -> HierarchyGraph:
    """
    Resolve decoded rows into a linked graph.

    Args:
        decoded: Decoded rows of one batch

    Returns:
        HierarchyGraph with parents and children filled in

    Raises:
        HierarchyCycleError: If the ancestor links contain a cycle
    """
    nodes: dict[str, HierarchyNode] = {}
    for row in decoded:
        if row.id in nodes:
            logger.debug(f"Duplicate row for {row.id}; keeping the first")
            continue
        nodes[row.id] = HierarchyNode(id=row.id, name=row.name, parent_ids=row.ancestors)

    graph = HierarchyGraph(nodes)
    for node in nodes.values():
        missing = []
        for parent_id in node.parent_ids:
            parent = nodes.get(parent_id)
            if parent is None:
                missing.append(parent_id)
                continue
            node.parents.append(parent)
            parent.children.add(node.id)
        if missing:
            graph.dangling[node.id] = tuple(missing)

    if graph.dangling:
        total = sum(len(ids) for ids in graph.dangling.values())
        logger.warning(
            f"Dropped {total} dangling parent reference(s) across "
            f"{len(graph.dangling)} node(s)"
        )

    _check_cycles(graph)
    return graph


def _check_cycles(graph: HierarchyGraph) -> None:
    """Iterative depth-first walk over parent links; raise on a back edge."""
    visiting, done = 1, 2
    state: dict[str, int] = {}

    for start in graph:
        if start.id in state:
            continue
        state[start.id] = visiting
        path = [start]
        stack = [iter(start.parents)]
        while stack:
            parent = next(stack[-1], None)
            if parent is None:
                stack.pop()
                state[path.pop().id] = done
                continue
            status = state.get(parent.id)
            if status == visiting:
                ids = [n.id for n in path]
                raise HierarchyCycleError(ids[ids.index(parent.id):] + [parent.id])
            if status is None:
                state[parent.id] = visiting
                path.append(parent)
                stack.append(iter(parent.parents))


def build_hierarchy(
    rows: Iterable[dict[str, Any]],
    sentinel: str | None = PANTHER_ROOT,
    delimiter: str = ANCESTOR_DELIMITER,
    id_field: str = "id",
    name_field: str = "name",
    parents_field: str = "parent_ids",
) -> HierarchyGraph:
    """Decode raw rows and resolve them into a graph."""
    decoded = (
        decode_row(
            row,
            id_field=id_field,
            name_field=name_field,
            parents_field=parents_field,
            sentinel=sentinel,
            delimiter=delimiter,
        )
        for row in rows
    )
    return resolve_batch(decoded)


# ============================================================================
# Per-entity mode
# ============================================================================


@dataclass
class ClassificationForest:
    """The most specific classes of one entity, plus the batch they came from."""

    graph: HierarchyGraph
    entries: list[HierarchyNode]

    def __iter__(self) -> Iterator[HierarchyNode]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_path_dicts(self) -> list[dict[str, Any]]:
        return [entry.to_path_dict() for entry in self.entries]


def build_classification_forest(rows: Iterable[dict[str, Any]], **options: Any) -> ClassificationForest:
    """
    Build the classification path view for one entity.

    Only classes that are no other class's parent in the batch are returned
    as entries; their ancestors are reachable through `.parents`.
    """
    graph = build_hierarchy(rows, **options)
    return ClassificationForest(graph=graph, entries=graph.leaves())


def build_flat_edge_list(rows: Iterable[dict[str, Any]], **options: Any) -> list[HierarchyNode]:
    """Every class of the batch with its raw parent ids, unfiltered."""
    return list(build_hierarchy(rows, **options))


# ============================================================================
# Global mode
# ============================================================================


@dataclass(frozen=True)
class OntologySource:
    """Where a global ontology lives and how its ancestor column is encoded."""

    name: str
    table: str
    sentinel: str | None = None
    delimiter: str = ANCESTOR_DELIMITER


ONTOLOGY_SOURCES: dict[str, OntologySource] = {
    "do": OntologySource(name="do", table="do"),
    "dto": OntologySource(name="dto", table="dto"),
    "panther": OntologySource(name="panther", table="panther_class", sentinel=PANTHER_ROOT),
}


class GlobalOntology:
    """
    A whole ontology held in memory for the life of the process.

    Built once before the service accepts requests; never mutated after.
    """

    def __init__(self, name: str, graph: HierarchyGraph):
        self.name = name
        self.graph = graph
        self._by_name: dict[str, HierarchyNode] = {}
        for node in graph:
            self._by_name.setdefault(node.name.casefold(), node)

    @classmethod
    def from_rows(
        cls,
        name: str,
        rows: Iterable[dict[str, Any]],
        sentinel: str | None = None,
        delimiter: str = ANCESTOR_DELIMITER,
    ) -> "GlobalOntology":
        graph = build_hierarchy(rows, sentinel=sentinel, delimiter=delimiter)
        logger.info(f"Built ontology '{name}': {len(graph)} nodes, {len(graph.roots())} roots")
        return cls(name, graph)

    def __len__(self) -> int:
        return len(self.graph)

    def roots(self) -> list[HierarchyNode]:
        return self.graph.roots()

    def lookup(self, node_id: str) -> HierarchyNode | None:
        return self.graph.get(node_id)

    def lookup_by_name(self, name: str) -> HierarchyNode | None:
        return self._by_name.get(name.casefold())

    def children_of(self, node_id: str) -> list[HierarchyNode]:
        node = self.graph.get(node_id)
        if node is None:
            return []
        # batch order keeps output deterministic
        return [child for child in self.graph if child.id in node.children]


class OntologyRowSource(Protocol):
    async def ontology_rows(self, source: OntologySource) -> list[dict[str, Any]]: ...


class OntologyRegistry:
    """Global ontologies by name."""

    def __init__(self):
        self._ontologies: dict[str, GlobalOntology] = {}

    def register(self, ontology: GlobalOntology) -> None:
        self._ontologies[ontology.name] = ontology

    def get(self, name: str) -> GlobalOntology:
        """
        Get a loaded ontology.

        Raises:
            OntologyNotLoadedError: If the ontology was not built
        """
        try:
            return self._ontologies[name.lower()]
        except KeyError:
            raise OntologyNotLoadedError(name, self._ontologies) from None

    def names(self) -> list[str]:
        return list(self._ontologies)

    def clear(self) -> None:
        self._ontologies.clear()

    async def build_all(
        self,
        store: OntologyRowSource,
        sources: Iterable[OntologySource],
    ) -> None:
        """
        Load and build every given ontology, fetching their rows concurrently.

        Args:
            store: Anything providing ontology_rows()
            sources: Ontologies to build
        """
        sources = list(sources)
        row_sets = await asyncio.gather(*(store.ontology_rows(s) for s in sources))
        for source, rows in zip(sources, row_sets):
            self.register(
                GlobalOntology.from_rows(
                    source.name,
                    rows,
                    sentinel=source.sentinel,
                    delimiter=source.delimiter,
                )
            )


# Singleton instance
_registry: OntologyRegistry | None = None


def get_registry() -> OntologyRegistry:
    """Get global ontology registry instance."""
    global _registry
    if _registry is None:
        _registry = OntologyRegistry()
    return _registry
