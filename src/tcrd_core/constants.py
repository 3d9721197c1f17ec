"""
Constants used throughout the application.

Includes ontology encodings, facet names, and standard values.
"""

from enum import Enum

# ============================================================================
# Ancestor Chain Encoding
# ============================================================================

ANCESTOR_DELIMITER = "|"

# PANTHER protein class root; never a real parent
PANTHER_ROOT = "PC00000"

# ============================================================================
# Facet Names
# ============================================================================

FACET_TDL = "Target Development Level"
FACET_FAMILY = "Family"
FACET_IMPC = "IMPC Phenotype"
FACET_JAX = "JAX/MGI Phenotype"
FACET_GWAS = "GWAS"
FACET_EXPRESSION_CONSENSUS = "Expression: Consensus"
FACET_ORTHOLOG = "Ortholog"
FACET_DISEASE = "Disease"
FACET_PANTHER = "PANTHER Class"
FACET_DTO = "DTO Class"
FACET_PATHWAY = "Reactome Pathway"
FACET_KEYWORD = "UniProt Keyword"
FACET_DATA_SOURCE = "Data Source"
FACET_LIGAND_ACTIVITY = "Ligand Activity"
FACET_LOG_NOVELTY = "Log Novelty"
FACET_PUBMED_COUNT = "PubMed Count"

# Curated subset served when the caller requests no facets
DEFAULT_TARGET_FACETS = (
    FACET_TDL,
    FACET_FAMILY,
    FACET_IMPC,
    FACET_JAX,
    FACET_EXPRESSION_CONSENSUS,
    FACET_ORTHOLOG,
    FACET_DISEASE,
)

# Facets whose values are ordered by count before paging
COUNT_SORTED_FACETS = frozenset({FACET_LIGAND_ACTIVITY})

# ============================================================================
# Pagination Defaults
# ============================================================================

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 1000

# ============================================================================
# Ligand Sources
# ============================================================================


class LigandSource(str, Enum):
    """Source table a ligand row was read from."""

    DRUG = "drug"  # drug_activity
    COMPOUND = "compound"  # cmpd_activity


# Synonym source labels for external cross references
XREF_CHEMBL = "ChEMBL"
XREF_PUBCHEM = "PubChem"
XREF_DRUGCENTRAL = "DrugCentral"
XREF_REFERENCE = "Reference"

# ============================================================================
# Neighbor Types
# ============================================================================

NEIGHBOR_KEGG = "KEGG"
NEIGHBOR_PPI_PROPS = ("p_int", "p_ni", "p_wrong", "evidence", "score")

# ============================================================================
# Error Messages
# ============================================================================

ERROR_UNKNOWN_FACET = "Unknown facet: '{name}'"
ERROR_UNKNOWN_ONTOLOGY = "Ontology '{name}' is not loaded. Loaded: {loaded}"
ERROR_FACET_FAILED = "Facet '{facet}' failed: {error}"
ERROR_HIERARCHY_CYCLE = "Cycle detected in hierarchy: {path}"
