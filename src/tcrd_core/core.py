#!/usr/bin/env python3
"""
TCRD Core - Service Facade

Contains:
- Logging configuration
- Startup (store connection, global ontology build) and shutdown
- The operations offered to the API layer
"""

import asyncio
import logging
import sys
from collections.abc import Iterable
from typing import Any

from tcrd_core.clients.store import StoreClient
from tcrd_core.config import settings
from tcrd_core.constants import COUNT_SORTED_FACETS, PANTHER_ROOT
from tcrd_core.schemas import (
    CanonicalLigand,
    FacetResult,
    FacetValue,
    Filter,
    LigandRow,
    PaginatedResponse,
    ResultEnvelope,
)
from tcrd_core.services.facet_aggregator import (
    FacetAggregator,
    filter_result_facets,
    paginate_facet_values,
    search_all,
)
from tcrd_core.services.facet_catalog import FacetCatalog, build_target_facet_catalog
from tcrd_core.services.hierarchy import (
    ONTOLOGY_SOURCES,
    ClassificationForest,
    HierarchyNode,
    OntologyRegistry,
    build_classification_forest,
    build_flat_edge_list,
    get_registry,
)
from tcrd_core.services.ligand_merger import LigandMerger, merge_ligand_rows
from tcrd_core.services.pagination import get_pagination
from tcrd_core.services.row_decoder import (
    coalesce_expression_value,
    coalesce_prop_value,
    neighbor_props,
    split_sources,
)

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging from settings."""
    level = logging.DEBUG if settings.debug_mode else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        if settings.log_format == "text"
        else '{"time":"%(asctime)s","name":"%(name)s","level":"%(levelname)s","message":"%(message)s"}',
        stream=sys.stderr,
    )


class TcrdCore:
    """
    Hierarchy, facet and ligand operations over the TCRD store.

    Global ontologies are built during initialize(); nothing should be
    served before it returns.
    """

    def __init__(
        self,
        store: Any | None = None,
        registry: OntologyRegistry | None = None,
        catalog: FacetCatalog | None = None,
        aggregator: FacetAggregator | None = None,
    ):
        self.store = store
        self.registry = registry or get_registry()
        self.catalog = catalog
        self.aggregator = aggregator or FacetAggregator()
        self._initialized = False

    async def initialize(self, ontologies: Iterable[str] | None = None) -> None:
        """
        Connect to the store and build the global ontologies.

        Args:
            ontologies: Ontology names to build; settings.global_ontologies by default

        Raises:
            ValueError: If no store is given or configured
            HierarchyError: If an ontology cannot be built
        """
        if self._initialized:
            return

        logger.info("Starting TCRD core")
        names = list(ontologies) if ontologies is not None else settings.global_ontologies
        unknown = [n for n in names if n not in ONTOLOGY_SOURCES]
        if unknown:
            raise ValueError(f"Unknown ontologies: {unknown}. Known: {sorted(ONTOLOGY_SOURCES)}")

        if self.store is None:
            settings.validate_connectivity()
            self.store = StoreClient(
                host=settings.db_host,
                port=settings.db_port,
                database=settings.db_name,
                user=settings.db_user,
                password=settings.db_password,
                min_pool_size=settings.db_pool_min_size,
                max_pool_size=settings.db_pool_max_size,
                command_timeout=settings.db_command_timeout,
            )
        if hasattr(self.store, "connect"):
            await self.store.connect()

        try:
            await self.registry.build_all(self.store, [ONTOLOGY_SOURCES[n] for n in names])
            logger.info(f"Global ontologies ready: {self.registry.names()}")

            if self.catalog is None:
                self.catalog = build_target_facet_catalog(self.store)
            logger.info(f"Facet catalog ready: {len(self.catalog)} facets")
        except BaseException as e:
            logger.error(f"Startup failed, releasing store: {e!r}")
            self.registry.clear()
            if hasattr(self.store, "close"):
                await self.store.close()
            raise

        self._initialized = True

    async def close(self) -> None:
        if self.store is not None and hasattr(self.store, "close"):
            await self.store.close()
        self.registry.clear()
        self._initialized = False
        logger.info("TCRD core closed")

    def get_status(self) -> dict[str, Any]:
        return {
            "initialized": self._initialized,
            "ontologies": {name: len(self.registry.get(name)) for name in self.registry.names()},
            "facets": self.catalog.names() if self.catalog else [],
        }

    # ------------------------------------------------------------------------
    # Hierarchies
    # ------------------------------------------------------------------------

    async def build_classification_forest(self, target_id: int) -> ClassificationForest:
        """Most specific PANTHER classes of a target, with their parent chains."""
        rows = await self.store.panther_rows(target_id)
        return build_classification_forest(rows, sentinel=PANTHER_ROOT)

    async def build_flat_edge_list(self, target_id: int) -> list[HierarchyNode]:
        """Every PANTHER class of a target with its raw parent ids."""
        rows = await self.store.panther_rows(target_id)
        return build_flat_edge_list(rows, sentinel=PANTHER_ROOT)

    def get_global_ontology_roots(self, ontology: str) -> list[HierarchyNode]:
        return self.registry.get(ontology).roots()

    def lookup_ontology_node(self, ontology: str, key: str) -> HierarchyNode | None:
        """Find a node by id, falling back to a case-insensitive name match."""
        graph = self.registry.get(ontology)
        return graph.lookup(key) or graph.lookup_by_name(key)

    # ------------------------------------------------------------------------
    # Facets
    # ------------------------------------------------------------------------

    async def aggregate_facets(
        self,
        filter: Filter | None = None,
        facet_names: Iterable[str] | None = None,
        include_all: bool = False,
    ) -> ResultEnvelope:
        """
        Resolve the requested facets and aggregate them for a filter.

        Raises:
            FacetAggregationError: If any facet query fails
        """
        filter = filter or Filter()
        resolved = self.catalog.resolve(facet_names, filter, include_all=include_all)
        logger.debug(f"Resolved facets: {[d.name for d in resolved]}")
        return await self.aggregator.aggregate(resolved, filter, entity_fetcher=self.store.targets)

    @staticmethod
    def filter_result_facets(
        envelope: ResultEnvelope,
        include: Iterable[str] | None = None,
        exclude: Iterable[str] | None = None,
    ) -> list[FacetResult]:
        return filter_result_facets(envelope.facets, include, exclude)

    @staticmethod
    def paginate_facet_values(
        facet: FacetResult,
        name_filter: str | None = None,
        skip: int = 0,
        top: int = 10,
    ) -> list[FacetValue]:
        return paginate_facet_values(
            facet,
            name_filter=name_filter,
            skip=skip,
            top=top,
            sort_by_count=facet.facet_name in COUNT_SORTED_FACETS,
        )

    @staticmethod
    async def entity_page(
        envelope: ResultEnvelope,
        skip: int = 0,
        top: int | None = None,
    ) -> tuple[list[dict[str, Any]], PaginatedResponse]:
        """Fetch an envelope's entity page along with its pagination metadata."""
        pages = get_pagination()
        skip, top = pages.window(skip, top if top is not None else settings.default_page_size)
        items = await envelope.entities(skip, top)
        return items, pages.paginate(items, envelope.total_count, skip, top)

    # ------------------------------------------------------------------------
    # Ligands and search
    # ------------------------------------------------------------------------

    @staticmethod
    def merge_ligand_rows(rows: Iterable[LigandRow | dict[str, Any]]) -> CanonicalLigand | None:
        return merge_ligand_rows(rows)

    async def fetch_ligand(
        self,
        ligand_id: str,
        include_drugs: bool = True,
        include_compounds: bool = True,
    ) -> CanonicalLigand | None:
        return await LigandMerger(self.store).fetch(ligand_id, include_drugs, include_compounds)

    async def search(self, term: str, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        """Targets, diseases, publications and orthologs matching a term."""
        searchers = [
            lambda: self.store.search_targets(term, skip, top),
            lambda: self.store.search_diseases(term, skip, top),
            lambda: self.store.search_pubs(term, skip, top),
            lambda: self.store.search_orthologs(term, skip, top),
        ]
        return await search_all(searchers)

    # ------------------------------------------------------------------------
    # Target detail
    # ------------------------------------------------------------------------

    async def count_targets(self, filter: Filter | None = None) -> int:
        return await self.store.count_targets(filter or Filter())

    async def target_props(self, target_id: int, name: str | None = None) -> list[dict[str, str | None]]:
        """
        TDL info of a target as {name, value} pairs.

        Args:
            target_id: TCRD target id
            name: Property type to keep; None, "" or "*" keeps everything
        """
        props = [coalesce_prop_value(row) for row in await self.store.target_props(target_id)]
        if name and name != "*":
            props = [p for p in props if p["name"] == name]
        return props

    async def target_expressions(self, target_id: int, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        skip, top = get_pagination().window(skip, top)
        rows = await self.store.target_expressions(target_id, skip, top)
        return [{**row, "value": coalesce_expression_value(row)} for row in rows]

    async def target_orthologs(self, target_id: int, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        skip, top = get_pagination().window(skip, top)
        rows = await self.store.target_orthologs(target_id, skip, top)
        return [{**row, "source": split_sources(row.get("sources"))} for row in rows]

    async def target_neighbors(
        self, target_id: int, kind: str = "ppi", skip: int = 0, top: int = 10
    ) -> list[dict[str, Any]]:
        """PPI or KEGG neighbors of a target, each with its property list."""
        skip, top = get_pagination().window(skip, top)
        rows = await self.store.target_neighbors(target_id, kind, skip, top)
        return [{**row, "props": neighbor_props(row)} for row in rows]

    async def target_counts(self, target_id: int, kind: str) -> list[FacetValue]:
        """Count breakdown of a target: ppi, disease, expression, ortholog or pathway."""
        return await self.store.target_counts(target_id, kind)

    async def health_check(self) -> bool:
        if self.store is None or not hasattr(self.store, "health_check"):
            return False
        return await self.store.health_check()


# Global core instance
_core: TcrdCore | None = None


async def get_core() -> TcrdCore:
    """
    Get global core instance (singleton), initializing it on first use.

    Raises:
        ValueError: If the store is not configured
    """
    global _core
    if _core is None:
        core = TcrdCore()
        await core.initialize()
        _core = core
    return _core


async def close_core() -> None:
    """Close global core."""
    global _core
    if _core:
        await _core.close()
        _core = None


async def main() -> None:
    """Build everything once and report readiness."""
    configure_logging()
    try:
        core = await get_core()
        logger.info(f"Core status: {core.get_status()}")
    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await close_core()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
