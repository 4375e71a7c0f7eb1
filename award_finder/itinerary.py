"""
Itinerary metrics: total elapsed time and per-cabin availability.

Main Functions:
    - total_duration(): flight time plus ground time between segments
    - class_percentages(): share of the journey bookable in each cabin
    - flatten_itineraries(): build Itinerary cards from the raw feed
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .schema import AwardResults, Flight, Itinerary
from .types import CabinClass
from .utils import minutes_between, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassPercentages:
    """Availability percentage per cabin class (0-100)."""
    y: int = 0
    w: int = 0
    j: int = 0
    f: int = 0

    def get(self, cabin: str) -> int:
        return getattr(self, cabin.lower())

    def to_dict(self) -> Dict[str, int]:
        return {"y": self.y, "w": self.w, "j": self.j, "f": self.f}


def layovers(flights: Sequence[Flight]) -> List[int]:
    """Ground time in minutes before each segment after the first, never negative."""
    return [
        max(0, minutes_between(prev.arrives_at, curr.departs_at))
        for prev, curr in zip(flights, flights[1:])
    ]


def total_duration(flights: Sequence[Flight]) -> int:
    """
    Total elapsed minutes of an itinerary.

    Sum of segment durations plus every layover.

    Raises:
        ValueError: If flights is empty
    """
    if not flights:
        raise ValueError("Cannot compute duration of an empty itinerary")
    return sum(f.total_duration for f in flights) + sum(layovers(flights))


def _share(flights: Sequence[Flight], cabin: CabinClass, flight_time: int) -> int:
    if flight_time <= 0:
        return 0
    covered = sum(f.total_duration for f in flights if f.has_class(cabin))
    return round_half_up(covered / flight_time * 100)


def class_percentages(flights: Sequence[Flight]) -> ClassPercentages:
    """
    Percentage of itinerary flight time offered in each cabin.

    Economy is all-or-nothing: one segment without Y seats makes the
    itinerary unsellable in Y. Premium and Business are suppressed entirely
    when a higher cabin appears on any segment, since a mixed itinerary is
    priced at the higher cabin. First is never suppressed.
    """
    if not flights:
        return ClassPercentages()

    flight_time = sum(f.total_duration for f in flights)
    any_w = any(f.has_class("W") for f in flights)
    any_j = any(f.has_class("J") for f in flights)
    any_f = any(f.has_class("F") for f in flights)

    y = 100 if all(f.has_class("Y") for f in flights) else 0
    w = _share(flights, "W", flight_time) if any_w and not (any_j or any_f) else 0
    j = _share(flights, "J", flight_time) if any_j and not any_f else 0
    f = _share(flights, "F", flight_time) if any_f else 0

    return ClassPercentages(y=y, w=w, j=j, f=f)


def flatten_itineraries(results: AwardResults) -> List[Itinerary]:
    """
    Build Itinerary cards from a feed.

    Cards that reference unknown flights or violate segment ordering are
    skipped and logged. Each card keeps the ordinal it was given on load;
    cards built without one are numbered within their (route, date).
    """
    ordinals: Dict[tuple, int] = defaultdict(int)
    cards: List[Itinerary] = []

    for card in results.itineraries:
        route, date, ids = card["route"], card["date"], card["itinerary"]
        position = ordinals[(route, date)]
        ordinals[(route, date)] += 1
        ordinal = card.get("ordinal", position)

        flights = results.itinerary_flights(ids)
        if not flights:
            logger.warning(f"Skipping itinerary {route} {date}: unknown flight ids {ids}")
            continue
        try:
            cards.append(Itinerary(
                route=route,
                date=date,
                flights=tuple(flights),
                ordinal=ordinal,
                flight_ids=tuple(ids),
            ))
        except ValueError as e:
            logger.warning(f"Skipping itinerary {route} {date}: {e}")

    return cards


__all__ = [
    "ClassPercentages",
    "layovers",
    "total_duration",
    "class_percentages",
    "flatten_itineraries",
]
