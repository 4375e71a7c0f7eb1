"""
Core in-memory records: flights, itineraries and the availability feed.

The feed arrives as JSON with PascalCase flight keys; ``from_dict``
constructors are the only place that shape is known.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .types import CABIN_CLASSES, COUNT_FIELDS, CabinClass
from .utils import get_airline_code, parse_local_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Flight:
    """A single flight segment with per-class award seat counts."""
    flight_numbers: str
    departs_at: datetime
    arrives_at: datetime
    total_duration: int
    y_count: int = 0
    w_count: int = 0
    j_count: int = 0
    f_count: int = 0
    origin: Optional[str] = None
    destination: Optional[str] = None
    aircraft: Optional[str] = None

    def __post_init__(self):
        if self.total_duration < 0:
            raise ValueError(f"Negative duration for {self.flight_numbers}: {self.total_duration}")
        for cabin in CABIN_CLASSES:
            if self.count(cabin) < 0:
                raise ValueError(f"Negative {cabin} count for {self.flight_numbers}")

    @property
    def airline_code(self) -> str:
        return get_airline_code(self.flight_numbers)

    @property
    def key(self) -> str:
        """Composite identity: flight number, departure, origin, destination."""
        return "|".join([
            self.flight_numbers,
            self.departs_at.isoformat(),
            self.origin or "",
            self.destination or "",
        ])

    def count(self, cabin: CabinClass) -> int:
        return getattr(self, COUNT_FIELDS[cabin])

    def counts(self) -> Dict[CabinClass, int]:
        return {cabin: self.count(cabin) for cabin in CABIN_CLASSES}

    def has_class(self, cabin: CabinClass) -> bool:
        return self.count(cabin) > 0

    def with_counts(self, counts: Dict[CabinClass, int]) -> "Flight":
        """Copy of this flight with the given class counts replaced."""
        return replace(self, **{COUNT_FIELDS[cabin]: value for cabin, value in counts.items()})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Flight":
        """Build a Flight from a feed record."""
        return cls(
            flight_numbers=str(data["FlightNumbers"]),
            departs_at=parse_local_time(data["DepartsAt"]),
            arrives_at=parse_local_time(data["ArrivesAt"]),
            total_duration=int(data["TotalDuration"]),
            y_count=int(data.get("YCount") or 0),
            w_count=int(data.get("WCount") or 0),
            j_count=int(data.get("JCount") or 0),
            f_count=int(data.get("FCount") or 0),
            origin=data.get("OriginAirport"),
            destination=data.get("DestinationAirport"),
            aircraft=data.get("Aircraft"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "FlightNumbers": self.flight_numbers,
            "DepartsAt": self.departs_at.isoformat(),
            "ArrivesAt": self.arrives_at.isoformat(),
            "TotalDuration": self.total_duration,
            "YCount": self.y_count,
            "WCount": self.w_count,
            "JCount": self.j_count,
            "FCount": self.f_count,
            "OriginAirport": self.origin,
            "DestinationAirport": self.destination,
            "Aircraft": self.aircraft,
        }


@dataclass(frozen=True)
class Itinerary:
    """
    An ordered, non-empty sequence of flights forming one journey.

    Keyed by (route, date, ordinal). Departures never go backwards and,
    where airports are known, each segment leaves from where the previous
    one landed.
    """
    route: str
    date: str
    flights: Tuple[Flight, ...]
    ordinal: int = 0
    flight_ids: Tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self):
        if not self.flights:
            raise ValueError(f"Itinerary {self.route} {self.date} has no flights")
        for prev, curr in zip(self.flights, self.flights[1:]):
            if curr.departs_at < prev.departs_at:
                raise ValueError(
                    f"Segments out of order in {self.route}: "
                    f"{curr.flight_numbers} departs before {prev.flight_numbers}"
                )
            if prev.destination and curr.origin and prev.destination != curr.origin:
                raise ValueError(
                    f"Disconnected segments in {self.route}: "
                    f"{prev.flight_numbers} lands at {prev.destination}, "
                    f"{curr.flight_numbers} leaves from {curr.origin}"
                )

    @property
    def key(self) -> Tuple[str, str, int]:
        return (self.route, self.date, self.ordinal)

    @property
    def stops(self) -> int:
        return len(self.flights) - 1

    @property
    def airports(self) -> List[str]:
        """Airports along the route, falling back to segment airports."""
        if self.route:
            return self.route.split("-")
        codes = [self.flights[0].origin or ""]
        codes.extend(f.destination or "" for f in self.flights)
        return codes

    @property
    def origin(self) -> str:
        return self.airports[0]

    @property
    def destination(self) -> str:
        return self.airports[-1]

    @property
    def connections(self) -> List[str]:
        return self.airports[1:-1]

    @property
    def airline_codes(self) -> List[str]:
        return [f.airline_code for f in self.flights]

    @property
    def departs_at(self) -> datetime:
        return self.flights[0].departs_at

    @property
    def arrives_at(self) -> datetime:
        return self.flights[-1].arrives_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route": self.route,
            "date": self.date,
            "ordinal": self.ordinal,
            "itinerary": list(self.flight_ids),
        }


@dataclass
class AwardResults:
    """
    Raw availability feed: a flight table plus itineraries of flight ids.

    ``itineraries`` holds flat cards ``{"route", "date", "ordinal",
    "itinerary"}``; the nested ``{route: {date: [[ids]]}}`` shape is
    flattened on load. The ordinal is the card's position within its
    (route, date) in the feed and is fixed at load time, so later
    filtering never renumbers a card.
    """
    flights: Dict[str, Flight] = field(default_factory=dict)
    itineraries: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AwardResults":
        flights = {
            flight_id: Flight.from_dict(raw)
            for flight_id, raw in (data.get("flights") or {}).items()
        }
        raw_itineraries = data.get("itineraries") or []
        if isinstance(raw_itineraries, dict):
            cards = list(_flatten_nested(raw_itineraries))
        else:
            cards = list(_number_cards(raw_itineraries))
        return cls(flights=flights, itineraries=cards)

    def itinerary_flights(self, flight_ids: List[str]) -> Optional[List[Flight]]:
        """Resolve flight ids; None when any id is unknown."""
        if not all(fid in self.flights for fid in flight_ids):
            return None
        return [self.flights[fid] for fid in flight_ids]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flights": {fid: f.to_dict() for fid, f in self.flights.items()},
            "itineraries": [dict(card) for card in self.itineraries],
        }


def _number_cards(raw: List[Dict[str, Any]]) -> Iterator[Dict[str, Any]]:
    # An explicit ordinal wins; otherwise count within (route, date)
    counters: Dict[Tuple[str, str], int] = defaultdict(int)
    for c in raw:
        route, date = c["route"], c["date"]
        position = counters[(route, date)]
        counters[(route, date)] += 1
        ordinal = int(c["ordinal"]) if c.get("ordinal") is not None else position
        yield {"route": route, "date": date, "ordinal": ordinal, "itinerary": list(c["itinerary"])}


def _flatten_nested(nested: Dict[str, Dict[str, List[List[str]]]]) -> Iterator[Dict[str, Any]]:
    for route, dates in nested.items():
        for date, itineraries in dates.items():
            for ordinal, ids in enumerate(itineraries):
                yield {"route": route, "date": date, "ordinal": ordinal, "itinerary": list(ids)}


__all__ = ["Flight", "Itinerary", "AwardResults"]
