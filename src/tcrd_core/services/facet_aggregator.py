"""
Facet aggregation: run count queries concurrently and shape the results.

All resolved facets are queried at once, so a request costs roughly its
slowest facet rather than the sum of all of them. The aggregation is
all-or-nothing: one failing facet fails the whole request.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any

from tcrd_core.config import settings
from tcrd_core.constants import DEFAULT_PAGE_SIZE, ERROR_FACET_FAILED
from tcrd_core.schemas import (
    EntityFetcher,
    FacetResult,
    FacetValue,
    Filter,
    ResultEnvelope,
)
from tcrd_core.services.facet_catalog import FacetDefinition, matches_any
from tcrd_core.services.pagination import get_pagination

logger = logging.getLogger(__name__)


class FacetAggregationError(Exception):
    """A facet producer failed; no facets are returned."""

    def __init__(self, facet_name: str, error: BaseException):
        self.facet_name = facet_name
        self.error = error
        message = ERROR_FACET_FAILED.format(
            facet=facet_name, error=str(error) or type(error).__name__
        )
        super().__init__(message)


class FacetAggregator:
    """
    Concurrent facet count aggregation.

    Example:
        >>> aggregator = FacetAggregator()
        >>> envelope = await aggregator.aggregate(catalog.resolve([]), Filter(term="kinase"))
        >>> envelope.total_count
        531
    """

    def __init__(self, timeout_ms: int | None = None):
        """
        Initialize aggregator.

        Args:
            timeout_ms: Per-facet timeout; defaults to settings.facet_timeout_ms
        """
        self.timeout_ms = timeout_ms if timeout_ms is not None else settings.facet_timeout_ms

    async def aggregate(
        self,
        resolved: Sequence[FacetDefinition],
        filter: Filter | None = None,
        entity_fetcher: EntityFetcher | None = None,
    ) -> ResultEnvelope:
        """
        Query every resolved facet concurrently with the same filter.

        Args:
            resolved: Facets in the order they should appear
            filter: Filter passed to every producer and to the entity page
            entity_fetcher: Fetcher bound to the envelope for lazy entity pages

        Returns:
            ResultEnvelope with one FacetResult per facet

        Raises:
            FacetAggregationError: If any producer fails or times out
        """
        filter = filter or Filter()
        tasks = [
            asyncio.create_task(self._run(definition, filter), name=f"facet:{definition.name}")
            for definition in resolved
        ]
        try:
            value_lists = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        facets = [
            FacetResult(facet_name=definition.name, total_count=len(values), values=values)
            for definition, values in zip(resolved, value_lists)
        ]
        total = self._total(resolved, facets)

        logger.debug(f"Aggregated {len(facets)} facets, total={total}")
        envelope = ResultEnvelope(filter=filter, total_count=total, facets=facets)
        return envelope.bind_entities(entity_fetcher)

    async def _run(self, definition: FacetDefinition, filter: Filter) -> list[FacetValue]:
        try:
            rows = await asyncio.wait_for(
                definition.producer(filter),
                timeout=self.timeout_ms / 1000.0,
            )
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as e:
            logger.error(f"Facet '{definition.name}' timed out after {self.timeout_ms}ms")
            raise FacetAggregationError(definition.name, e) from e
        except Exception as e:
            logger.error(f"Facet '{definition.name}' failed: {e}")
            raise FacetAggregationError(definition.name, e) from e
        values = (_as_facet_value(row) for row in rows)
        return [value for value in values if value is not None]

    @staticmethod
    def _total(resolved: Sequence[FacetDefinition], facets: list[FacetResult]) -> int:
        """Sum of the total-source facet; the first facet when none is marked."""
        if not facets:
            return 0
        index = next((i for i, d in enumerate(resolved) if d.is_total_source), 0)
        return sum(value.count for value in facets[index].values)


def _as_facet_value(row: Any) -> FacetValue | None:
    """Normalize a producer row; rows without a label yield None."""
    if isinstance(row, FacetValue):
        return row
    if isinstance(row, dict):
        label = row.get("label", row.get("name"))
        count = row.get("count", row.get("value"))
    else:
        label, count = row
    if label is None:
        return None
    return FacetValue(label=str(label), count=int(count))


def filter_result_facets(
    facets: Iterable[FacetResult],
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> list[FacetResult]:
    """
    Keep facets matching any include pattern, then drop any matching an exclude pattern.

    Matching is case-insensitive, exact or regex. No re-query happens.
    """
    include = [p for p in (include or []) if p]
    exclude = [p for p in (exclude or []) if p]

    kept = list(facets)
    if include:
        kept = [f for f in kept if matches_any(f.facet_name, include)]
    if exclude:
        kept = [f for f in kept if not matches_any(f.facet_name, exclude)]
    return kept


def paginate_facet_values(
    facet: FacetResult,
    name_filter: str | None = None,
    skip: int = 0,
    top: int = DEFAULT_PAGE_SIZE,
    sort_by_count: bool = False,
) -> list[FacetValue]:
    """
    Page through a facet's values.

    Args:
        facet: Facet to page
        name_filter: Keep only values whose label matches (exact or regex)
        skip: Values to skip
        top: Maximum values to return
        sort_by_count: Order by count, highest first, before slicing

    Returns:
        values[skip:skip + top] after filtering and optional sorting
    """
    values = facet.values
    if name_filter:
        values = [v for v in values if matches_any(v.label, [name_filter])]
    if sort_by_count:
        values = sorted(values, key=lambda v: v.count, reverse=True)
    return get_pagination().slice_results(values, skip, top)


async def search_all(
    searchers: Sequence[Callable[[], Awaitable[list[dict[str, Any]]]]],
) -> list[dict[str, Any]]:
    """
    Run several entity searches concurrently and concatenate their rows.

    Rows keep searcher order, then each searcher's own order.
    """
    results = await asyncio.gather(*(search() for search in searchers))
    rows: list[dict[str, Any]] = []
    for batch in results:
        rows.extend(batch)
    return rows
