"""
Pydantic schemas for all data structures.

Includes the query filter, facet results, the result envelope, and the
ligand row/entity models.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from tcrd_core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, LigandSource

# ============================================================================
# Query Filter
# ============================================================================


class FacetFilter(BaseModel):
    """Restrict results to entities having one of the given facet values."""

    name: str = Field(..., description="Facet name")
    values: list[str] = Field(default_factory=list, description="Accepted facet values")


class IntRange(BaseModel):
    """Half-open numeric range [start, end) over a numeric facet."""

    name: str = Field(..., description="Numeric facet name")
    start: int = Field(..., description="Inclusive lower bound")
    end: int = Field(..., description="Exclusive upper bound")


class Filter(BaseModel):
    """Search filter shared by the facet queries and the entity page."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
    )

    term: str | None = Field(None, description="Free-text search term")
    facets: list[FacetFilter] = Field(default_factory=list, description="Categorical constraints")
    irange: list[IntRange] = Field(default_factory=list, description="Numeric range constraints")
    order: str | None = Field(None, description="Ordering of the entity page")

    @field_validator("term")
    @classmethod
    def blank_term_is_none(cls, v: str | None) -> str | None:
        return v or None

    def facet_names(self) -> list[str]:
        """Names of every facet this filter constrains."""
        names = [f.name for f in self.facets]
        names.extend(r.name for r in self.irange if r.name not in names)
        return names


# ============================================================================
# Facets
# ============================================================================


class FacetValue(BaseModel):
    """One bucket of a facet."""

    label: str = Field(..., description="Facet value label")
    count: int = Field(..., description="Number of entities with this value")


class FacetResult(BaseModel):
    """Count breakdown for one facet."""

    facet_name: str = Field(..., description="Facet name")
    total_count: int = Field(..., description="Number of distinct values returned")
    values: list[FacetValue] = Field(default_factory=list)


EntityFetcher = Callable[[Filter, int, int], Awaitable[list[dict[str, Any]]]]


class ResultEnvelope(BaseModel):
    """
    Facet-annotated result of a search.

    The entity page is not part of the model; it is fetched on demand with
    the same filter through entities().
    """

    filter: Filter = Field(default_factory=Filter)
    total_count: int = Field(0, description="Sum of the total-source facet counts")
    facets: list[FacetResult] = Field(default_factory=list)

    _entity_fetcher: EntityFetcher | None = PrivateAttr(default=None)

    def bind_entities(self, fetcher: EntityFetcher | None) -> "ResultEnvelope":
        self._entity_fetcher = fetcher
        return self

    def facet(self, name: str) -> FacetResult | None:
        """Get a facet by exact name."""
        for facet in self.facets:
            if facet.facet_name == name:
                return facet
        return None

    async def entities(
        self, skip: int = 0, top: int = DEFAULT_PAGE_SIZE
    ) -> list[dict[str, Any]]:
        """
        Fetch one page of entities matching this envelope's filter.

        Args:
            skip: Number of entities to skip
            top: Maximum entities to return

        Returns:
            Entity rows, or an empty list when no fetcher is bound
        """
        if self._entity_fetcher is None:
            return []
        skip = max(skip, 0)
        top = min(max(top, 0), MAX_PAGE_SIZE)
        return await self._entity_fetcher(self.filter, skip, top)


# ============================================================================
# Pagination Response
# ============================================================================


class PaginatedResponse(BaseModel):
    """Standard pagination metadata."""

    total_count: int = Field(..., description="Total number of results")
    count: int = Field(..., description="Number of results in this response")
    offset: int = Field(..., description="Current pagination offset")
    limit: int = Field(..., description="Maximum results requested")
    has_more: bool = Field(..., description="Whether more results available")
    next_offset: int | None = Field(None, description="Offset for next page (if has_more)")


# ============================================================================
# Ligands
# ============================================================================


class LigandRow(BaseModel):
    """
    One raw activity row from either ligand table.

    Drug rows come from drug_activity and carry `drug`; compound rows come
    from cmpd_activity and carry `cmpd_id_in_src`/`catype`.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    origin: LigandSource
    lychi_h4: str | None = None
    drug: str | None = None
    cmpd_id_in_src: str | None = None
    cmpd_name_in_src: str | None = None
    catype: str | None = None
    smiles: str | None = None
    nlm_drug_info: str | None = None
    cmpd_chemblid: str | None = None
    cmpd_pubchem_cid: str | None = None
    dcid: str | None = None
    reference: str | None = None
    source: str | None = None

    @field_validator(
        "lychi_h4", "drug", "cmpd_id_in_src", "cmpd_pubchem_cid", "dcid", mode="before"
    )
    @classmethod
    def normalize_identifier(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @classmethod
    def from_record(cls, record: dict[str, Any], origin: LigandSource) -> "LigandRow":
        return cls(origin=origin, **{k: v for k, v in record.items() if k != "origin"})

    @property
    def is_drug(self) -> bool:
        return self.origin == LigandSource.DRUG


class LigandSynonym(BaseModel):
    """A (source, value) alias of a ligand."""

    source: str
    value: str


class CanonicalLigand(BaseModel):
    """A ligand folded from every row describing the same identity."""

    identity: str = Field(..., description="Structural hash, drug name, or source compound id")
    name: str = Field(..., description="Display name")
    is_drug: bool = False
    smiles: str | None = None
    description: str | None = None
    synonyms: list[LigandSynonym] = Field(default_factory=list)
    activity_count: int = 0
