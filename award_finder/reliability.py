"""
Reliability filtering for award availability.

Some airlines publish phantom award space: a single seat that cannot be
booked through partners. The reliability feed gives, per airline, the
minimum seat count worth trusting. Counts below it are zeroed before any
metric is computed, and itineraries left with no seats at all are dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .config import get_config
from .models import ReliabilityEntry
from .schema import AwardResults, Flight
from .types import CABIN_CLASSES, CabinClass

logger = logging.getLogger(__name__)

ReliabilityMap = Dict[str, ReliabilityEntry]


def build_reliability_map(
    entries: Iterable[Union[ReliabilityEntry, Mapping[str, Any]]],
) -> ReliabilityMap:
    """
    Index reliability rows by airline code.

    Args:
        entries: Rows shaped like ``{"code": "AA", "min_count": 2, "exemption": "F"}``

    Returns:
        Mapping of upper-case airline code to ReliabilityEntry
    """
    result: ReliabilityMap = {}
    for entry in entries:
        if not isinstance(entry, ReliabilityEntry):
            entry = ReliabilityEntry.model_validate(entry)
        result[entry.code] = entry
    return result


def class_threshold(
    airline: str,
    cabin: CabinClass,
    reliability: Mapping[str, ReliabilityEntry],
    default_min_count: Optional[int] = None,
) -> int:
    """Minimum trusted count for one airline and cabin."""
    entry = reliability.get(airline.upper())
    if entry is None:
        return default_min_count if default_min_count is not None else get_config().default_min_count
    return entry.threshold(cabin)


def class_reliability(
    flight: Flight,
    reliability: Mapping[str, ReliabilityEntry],
    default_min_count: Optional[int] = None,
) -> Dict[CabinClass, bool]:
    """Per-class flag: the flight's count meets its airline's threshold."""
    return {
        cabin: flight.count(cabin) >= class_threshold(flight.airline_code, cabin, reliability, default_min_count)
        for cabin in CABIN_CLASSES
    }


def is_unreliable(
    flight: Flight,
    reliability: Mapping[str, ReliabilityEntry],
    default_min_count: Optional[int] = None,
) -> bool:
    """True when no cabin on the flight meets its threshold."""
    return not any(class_reliability(flight, reliability, default_min_count).values())


def apply_reliability(
    flight: Flight,
    reliability: Mapping[str, ReliabilityEntry],
    default_min_count: Optional[int] = None,
) -> Flight:
    """
    Zero every class count below its airline's threshold.

    Returns:
        The same flight when nothing changes, otherwise an adjusted copy
    """
    flags = class_reliability(flight, reliability, default_min_count)
    zeroed = {cabin: 0 for cabin, ok in flags.items() if not ok and flight.count(cabin) > 0}
    if not zeroed:
        return flight
    logger.debug(f"Zeroing unreliable classes {sorted(zeroed)} on {flight.flight_numbers}")
    return flight.with_counts(zeroed)


def unreliable_segments(
    flights: Sequence[Flight],
    reliability: Mapping[str, ReliabilityEntry],
    default_min_count: Optional[int] = None,
) -> List[int]:
    """Indices of segments with no trusted availability in any cabin."""
    return [
        index for index, flight in enumerate(flights)
        if is_unreliable(flight, reliability, default_min_count)
    ]


def _unreliable_share(flights: Sequence[Flight]) -> float:
    flight_time = sum(f.total_duration for f in flights)
    empty_time = sum(f.total_duration for f in flights if not any(f.counts().values()))
    if empty_time == 0:
        return 0.0
    if flight_time == 0:
        return 100.0
    return empty_time / flight_time * 100


def filter_reliable(
    results: AwardResults,
    reliability: Mapping[str, ReliabilityEntry],
    max_unreliable_percent: Optional[float] = None,
    default_min_count: Optional[int] = None,
) -> AwardResults:
    """
    Apply reliability thresholds to a whole feed.

    Every flight has its unreliable class counts zeroed. An itinerary is
    dropped once all of its flights are left with no seats. When
    ``max_unreliable_percent`` is set, itineraries whose share of flight
    time on such empty segments exceeds it are dropped as well.

    Args:
        results: Raw feed (not modified)
        reliability: Thresholds by airline code
        max_unreliable_percent: Tolerated empty-segment share, 0-100
            (default: from config, None disables the check)
        default_min_count: Threshold for airlines absent from the map

    Returns:
        New AwardResults with adjusted flights and surviving itineraries
    """
    if max_unreliable_percent is None:
        max_unreliable_percent = get_config().max_unreliable_percent

    flights = {
        fid: apply_reliability(flight, reliability, default_min_count)
        for fid, flight in results.flights.items()
    }
    adjusted = AwardResults(flights=flights, itineraries=[])

    dropped = 0
    for card in results.itineraries:
        segment_flights = adjusted.itinerary_flights(card["itinerary"])
        if not segment_flights:
            dropped += 1
            continue
        if all(not any(f.counts().values()) for f in segment_flights):
            dropped += 1
            continue
        if max_unreliable_percent is not None and _unreliable_share(segment_flights) > max_unreliable_percent:
            dropped += 1
            continue
        adjusted.itineraries.append(card)

    if dropped:
        logger.info(f"Reliability filter dropped {dropped} of {len(results.itineraries)} itineraries")
    return adjusted


__all__ = [
    "ReliabilityMap",
    "build_reliability_map",
    "class_threshold",
    "class_reliability",
    "is_unreliable",
    "apply_reliability",
    "unreliable_segments",
    "filter_reliable",
]
