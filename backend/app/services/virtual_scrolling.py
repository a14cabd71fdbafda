# backend/app/services/virtual_scrolling.py
"""
Virtual scrolling paginator for large calendar result sets.

Pages are 1-indexed. Asking for a page past the end is not an error: it
returns no items along with the real totals so clients can stop scrolling.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Union

from ..core.config import settings
from ..core.enums import SortOrder, TimeBlockSortField
from ..core.exceptions import ValidationException

logger = logging.getLogger(__name__)


def _value(item: Any, name: str) -> Any:
    return item.get(name) if isinstance(item, dict) else getattr(item, name, None)


class VirtualScrollingPaginator:
    """
    Slices result sets into fixed-size pages.

    Args:
        threshold: Result count above which callers should paginate
        page_size: Default page size
    """

    def __init__(self, threshold: Optional[int] = None, page_size: Optional[int] = None):
        self.threshold = settings.virtual_scrolling_threshold if threshold is None else threshold
        self.page_size = settings.virtual_scrolling_page_size if page_size is None else page_size

    def should_paginate(self, count: int) -> bool:
        return count > self.threshold

    def paginate(self, items: Sequence[Any], page: int = 1, page_size: Optional[int] = None) -> Dict[str, Any]:
        """
        Return one page of ``items``.

        Returns:
            Dict with items, total, page, page_size and total_pages

        Raises:
            ValidationException: If page or page_size is below 1
        """
        size = self.page_size if page_size is None else page_size
        if page < 1 or size < 1:
            raise ValidationException(
                "Page and page size must be positive",
                code="INVALID_PAGINATION",
                details={"page": page, "page_size": size},
            )

        total = len(items)
        total_pages = math.ceil(total / size)
        offset = (page - 1) * size
        page_items = list(items[offset : offset + size]) if page <= total_pages else []

        return {
            "items": page_items,
            "total": total,
            "page": page,
            "page_size": size,
            "total_pages": total_pages,
        }

    def paginate_advanced(
        self,
        items: Sequence[Any],
        page: int = 1,
        page_size: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: Optional[Union[str, TimeBlockSortField]] = None,
        sort_order: Union[str, SortOrder] = SortOrder.ASC,
    ) -> Dict[str, Any]:
        """
        Filter by a case-insensitive search on title/description, sort, then paginate.

        Totals describe the filtered set.
        """
        filtered: List[Any] = list(items)

        if search:
            needle = search.casefold()
            filtered = [
                item
                for item in filtered
                if needle in (_value(item, "title") or "").casefold()
                or needle in (_value(item, "description") or "").casefold()
            ]

        if sort_by:
            field = TimeBlockSortField(sort_by)
            descending = SortOrder(sort_order) == SortOrder.DESC
            if field == TimeBlockSortField.TITLE:
                filtered.sort(key=lambda item: (_value(item, "title") or "").casefold(), reverse=descending)
            else:
                filtered.sort(key=lambda item: _value(item, field.value), reverse=descending)

        return self.paginate(filtered, page, page_size)
