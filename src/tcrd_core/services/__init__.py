"""
Services layer for hierarchy, facet and ligand logic.

Includes row decoding, hierarchy reconstruction, the facet catalog and
aggregator, ligand merging, and pagination.
"""

from tcrd_core.services.facet_aggregator import (
    FacetAggregationError,
    FacetAggregator,
    filter_result_facets,
    paginate_facet_values,
    search_all,
)
from tcrd_core.services.facet_catalog import (
    FacetCatalog,
    FacetDefinition,
    FacetResolutionError,
    build_target_facet_catalog,
)
from tcrd_core.services.hierarchy import (
    GlobalOntology,
    HierarchyCycleError,
    HierarchyError,
    HierarchyNode,
    OntologyNotLoadedError,
    OntologyRegistry,
    build_classification_forest,
    build_flat_edge_list,
)
from tcrd_core.services.ligand_merger import LigandMerger, group_ligand_rows, merge_ligand_rows
from tcrd_core.services.pagination import PaginationService

__all__ = [
    "FacetAggregationError",
    "FacetAggregator",
    "filter_result_facets",
    "paginate_facet_values",
    "search_all",
    "FacetCatalog",
    "FacetDefinition",
    "FacetResolutionError",
    "build_target_facet_catalog",
    "GlobalOntology",
    "HierarchyCycleError",
    "HierarchyError",
    "HierarchyNode",
    "OntologyNotLoadedError",
    "OntologyRegistry",
    "build_classification_forest",
    "build_flat_edge_list",
    "LigandMerger",
    "group_ligand_rows",
    "merge_ligand_rows",
    "PaginationService",
]
