"""
End-to-end itinerary evaluation.

This module chains the pure stages of the library into the pipeline a
results page runs on every change of filters, sort or page.

Main Functions:
    - evaluate_results(): feed -> reliability -> cards -> filter -> sort -> page
    - evaluate_itinerary(): derived metrics for one card

Example:
    >>> from award_finder import evaluate_results, FilterState
    >>> evaluated = evaluate_results(
    ...     feed,
    ...     reliability=[{"code": "AA", "min_count": 2}],
    ...     filters=FilterState.build(stops=[0, 1]),
    ...     sort_by="j",
    ... )
    >>> print(f"{evaluated.page.total_items} itineraries")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .config import get_config
from .errors import AwardFinderException, ErrorCode
from .filter_metadata import FilterMetadata, extract_filter_metadata
from .filters import FilterState, describe_filters, itinerary_matches
from .itinerary import ClassPercentages, class_percentages, flatten_itineraries, layovers, total_duration
from .models import ReliabilityEntry
from .reliability import build_reliability_map, filter_reliable
from .schema import AwardResults, Itinerary
from .sorting import Page, paginate, sort_itineraries
from .utils import format_duration, format_layover

logger = logging.getLogger(__name__)

ReliabilityInput = Union[Mapping[str, ReliabilityEntry], Iterable[Union[ReliabilityEntry, Mapping[str, Any]]]]


@dataclass
class EvaluatedItinerary:
    """An itinerary card with its derived metrics."""
    itinerary: Itinerary
    total_duration: int
    layovers: List[int]
    percentages: ClassPercentages

    def to_dict(self) -> Dict[str, Any]:
        data = self.itinerary.to_dict()
        data.update({
            "stops": self.itinerary.stops,
            "airlines": self.itinerary.airline_codes,
            "total_duration": self.total_duration,
            "duration_display": format_duration(self.total_duration),
            "layovers": list(self.layovers),
            "layovers_display": [format_layover(minutes) for minutes in self.layovers],
            "class_percentages": self.percentages.to_dict(),
            "flights": [f.to_dict() for f in self.itinerary.flights],
        })
        return data


@dataclass
class EvaluatedResults:
    """One page of evaluated itineraries plus the counts behind it."""
    page: Page[EvaluatedItinerary]
    sort_by: str
    total_itineraries: int
    reliable_itineraries: int
    filtered_itineraries: int
    filters_applied: List[str] = field(default_factory=list)
    metadata: Optional[FilterMetadata] = None

    @property
    def itineraries(self) -> List[EvaluatedItinerary]:
        return self.page.items

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sort_by": self.sort_by,
            "total_itineraries": self.total_itineraries,
            "reliable_itineraries": self.reliable_itineraries,
            "filtered_itineraries": self.filtered_itineraries,
            "filters_applied": list(self.filters_applied),
            "page": self.page.to_dict(lambda item: item.to_dict()),
            "filter_metadata": self.metadata.to_dict() if self.metadata else None,
        }


def evaluate_itinerary(itinerary: Itinerary) -> EvaluatedItinerary:
    return EvaluatedItinerary(
        itinerary=itinerary,
        total_duration=total_duration(itinerary.flights),
        layovers=layovers(itinerary.flights),
        percentages=class_percentages(itinerary.flights),
    )


def _load_feed(feed: Union[AwardResults, Dict[str, Any]]) -> AwardResults:
    if isinstance(feed, AwardResults):
        return feed
    try:
        return AwardResults.from_dict(feed)
    except (KeyError, TypeError, ValueError) as e:
        raise AwardFinderException.from_code(
            ErrorCode.INVALID_FEED,
            message=f"Malformed availability feed: {e}",
            recoverable=False,
        ) from e


def _reliability_map(reliability: Optional[ReliabilityInput]) -> Dict[str, ReliabilityEntry]:
    if reliability is None:
        return {}
    if isinstance(reliability, Mapping):
        return build_reliability_map(
            entry if isinstance(entry, ReliabilityEntry) else {"code": code, **entry}
            for code, entry in reliability.items()
        )
    return build_reliability_map(reliability)


def evaluate_results(
    feed: Union[AwardResults, Dict[str, Any]],
    reliability: Optional[ReliabilityInput] = None,
    filters: Optional[FilterState] = None,
    sort_by: Optional[str] = None,
    page: int = 1,
    page_size: Optional[int] = None,
    max_unreliable_percent: Optional[float] = None,
    include_metadata: bool = True,
) -> EvaluatedResults:
    """
    Run the full evaluation pipeline over a feed.

    Args:
        feed: Raw availability feed (AwardResults or its dict form)
        reliability: Reliability rows or a prebuilt map by airline code
        filters: Facet selections (default: no filtering)
        sort_by: Sort key (default: config.default_sort)
        page: 1-based page number
        page_size: Cards per page (default: config.page_size)
        max_unreliable_percent: Tolerated unreliable flight-time share
        include_metadata: Also compute filter metadata for the reliable cards

    Returns:
        EvaluatedResults for the requested page

    Raises:
        AwardFinderException: INVALID_FEED for a malformed feed,
            INVALID_SORT_KEY for an unknown sort key
    """
    results = _load_feed(feed)
    state = filters or FilterState()
    sort_by = (sort_by or get_config().default_sort).lower()

    reliable = filter_reliable(results, _reliability_map(reliability), max_unreliable_percent)
    cards = flatten_itineraries(reliable)

    evaluated = [evaluate_itinerary(card) for card in cards]
    matching = [
        item.itinerary for item in evaluated
        if itinerary_matches(item.itinerary, state, item.percentages)
    ]
    by_card = {id(item.itinerary): item for item in evaluated}
    ordered = [by_card[id(card)] for card in sort_itineraries(matching, sort_by)]

    logger.debug(
        f"Evaluated {len(results.itineraries)} itineraries: {len(cards)} reliable, "
        f"{len(matching)} after filters, sorted by {sort_by}"
    )

    return EvaluatedResults(
        page=paginate(ordered, page=page, page_size=page_size),
        sort_by=sort_by,
        total_itineraries=len(results.itineraries),
        reliable_itineraries=len(cards),
        filtered_itineraries=len(matching),
        filters_applied=describe_filters(state),
        metadata=extract_filter_metadata(cards) if include_metadata else None,
    )


__all__ = [
    "EvaluatedItinerary",
    "EvaluatedResults",
    "evaluate_itinerary",
    "evaluate_results",
]
