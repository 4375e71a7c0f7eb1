"""
Itinerary ordering and pagination.

Sort keys ``duration`` and ``departure`` put the smallest value first;
``arrival`` and the cabin percentages put the largest first. Sorting is
stable, so ties keep their input order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from .config import get_config
from .errors import AwardFinderException, ErrorCode
from .itinerary import class_percentages, total_duration
from .schema import Itinerary
from .types import DESCENDING_SORT_KEYS, SORT_KEYS
from .utils import to_epoch_ms

T = TypeVar("T")

SORT_OPTIONS: List[Dict[str, str]] = [
    {"value": "duration", "label": "Duration"},
    {"value": "departure", "label": "Departure (earliest)"},
    {"value": "arrival", "label": "Arrival (latest)"},
    {"value": "y", "label": "Economy %"},
    {"value": "w", "label": "Premium Economy %"},
    {"value": "j", "label": "Business %"},
    {"value": "f", "label": "First %"},
]


def _invalid_sort_key(sort_by: str) -> AwardFinderException:
    return AwardFinderException.from_code(
        ErrorCode.INVALID_SORT_KEY,
        message=f"Unknown sort key: {sort_by}",
        details={"sort_by": sort_by, "valid": list(SORT_KEYS)},
    )


def sort_value(itinerary: Itinerary, sort_by: str) -> int:
    """Numeric value an itinerary is ordered by for a given key."""
    if sort_by == "duration":
        return total_duration(itinerary.flights)
    if sort_by == "departure":
        return to_epoch_ms(itinerary.departs_at)
    if sort_by == "arrival":
        return to_epoch_ms(itinerary.arrives_at)
    if sort_by in ("y", "w", "j", "f"):
        return class_percentages(itinerary.flights).get(sort_by)
    raise _invalid_sort_key(sort_by)


def sort_itineraries(itineraries: Sequence[Itinerary], sort_by: Optional[str] = None) -> List[Itinerary]:
    """
    Order itineraries by a sort key.

    Args:
        itineraries: Itinerary cards
        sort_by: One of SORT_KEYS (default: from config)

    Returns:
        A new, stably sorted list

    Raises:
        AwardFinderException: INVALID_SORT_KEY for unknown keys
    """
    sort_by = (sort_by or get_config().default_sort).lower()
    if sort_by not in SORT_KEYS:
        raise _invalid_sort_key(sort_by)
    values = {id(i): sort_value(i, sort_by) for i in itineraries}
    # sorted() with reverse=True keeps equal elements in input order
    return sorted(itineraries, key=lambda i: values[id(i)], reverse=sort_by in DESCENDING_SORT_KEYS)


@dataclass
class Page(Generic[T]):
    """One page of a longer result list (1-based)."""
    page: int
    page_size: int
    total_items: int
    total_pages: int
    items: List[T] = field(default_factory=list)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def to_dict(self, item_to_dict: Optional[Callable[[T], Any]] = None) -> Dict[str, Any]:
        convert = item_to_dict or (lambda item: item)
        return {
            "page": self.page,
            "page_size": self.page_size,
            "total_items": self.total_items,
            "total_pages": self.total_pages,
            "items": [convert(item) for item in self.items],
        }


def paginate(items: Sequence[T], page: int = 1, page_size: Optional[int] = None) -> Page[T]:
    """
    Slice a list into a 1-based page.

    Pages past the end come back empty rather than raising.
    """
    page_size = page_size or get_config().page_size
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    start = (page - 1) * page_size
    return Page(
        page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=math.ceil(len(items) / page_size),
        items=list(items[start:start + page_size]),
    )


__all__ = [
    "SORT_OPTIONS",
    "sort_value",
    "sort_itineraries",
    "Page",
    "paginate",
]
