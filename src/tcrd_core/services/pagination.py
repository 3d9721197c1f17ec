"""
Skip/top paging shared by facet value pages and entity pages.

Windows are clamped the same way everywhere: a negative skip becomes 0 and
top is bounded by MAX_PAGE_SIZE.
"""

from typing import Any

from tcrd_core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from tcrd_core.schemas import PaginatedResponse


class PaginationService:
    """
    Clamp skip/top windows, slice ordered sequences and describe the page.

    Example:
        >>> pages = PaginationService()
        >>> items, meta = pages.page(list("abcdef"), skip=2, top=3)
        >>> items, meta.next_offset
        (['c', 'd', 'e'], 5)
    """

    def __init__(self, default_top: int = DEFAULT_PAGE_SIZE, max_top: int = MAX_PAGE_SIZE):
        self.default_top = default_top
        self.max_top = max_top

    def window(self, skip: int | None, top: int | None) -> tuple[int, int]:
        """Normalize a requested window to (skip, top)."""
        skip = max(skip or 0, 0)
        top = self.default_top if top is None else top
        return skip, min(max(top, 0), self.max_top)

    def slice_results(self, items: list[Any], skip: int | None, top: int | None) -> list[Any]:
        """Items in [skip, skip + top); a skip past the end yields []."""
        skip, top = self.window(skip, top)
        return items[skip : skip + top]

    @staticmethod
    def paginate(
        items: list[Any],
        total_count: int,
        offset: int,
        limit: int,
    ) -> PaginatedResponse:
        """
        Describe one fetched page.

        Args:
            items: Items in the current page
            total_count: Total number of items available
            offset: Skip the page was fetched with
            limit: Top the page was fetched with

        Returns:
            PaginatedResponse with metadata
        """
        count = len(items)
        has_more = offset + count < total_count

        return PaginatedResponse(
            total_count=total_count,
            count=count,
            offset=offset,
            limit=limit,
            has_more=has_more,
            next_offset=offset + count if has_more else None,
        )

    def page(
        self, items: list[Any], skip: int | None = None, top: int | None = None
    ) -> tuple[list[Any], PaginatedResponse]:
        """Slice an in-memory sequence and describe the slice."""
        skip, top = self.window(skip, top)
        window = items[skip : skip + top]
        return window, self.paginate(window, len(items), skip, top)


# Singleton instance
_pagination: PaginationService | None = None


def get_pagination() -> PaginationService:
    """Get global pagination service instance."""
    global _pagination
    if _pagination is None:
        _pagination = PaginationService()
    return _pagination
