"""
Facet metadata for the itinerary filter panel.

Collects, from one result set, the values each facet can take: stop counts,
airlines, airports by role and the ranges of duration, departure, arrival
and cabin percentages. A facet offering fewer than two distinct values
cannot narrow anything and is reported as hidden.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .itinerary import class_percentages, total_duration
from .schema import Itinerary
from .types import AirportRole
from .utils import to_epoch_ms

# Default duration range when nothing is loaded, in minutes
DEFAULT_MAX_DURATION = 24 * 60
DEFAULT_STOPS = [0, 1, 2, 3, 4]


@dataclass
class Range:
    """Closed numeric range."""
    min: int
    max: int

    @property
    def is_degenerate(self) -> bool:
        return self.min == self.max

    def to_dict(self) -> Dict[str, int]:
        return {"min": self.min, "max": self.max}


@dataclass
class AirportMeta:
    code: str
    name: str
    role: AirportRole

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "name": self.name, "role": self.role}


@dataclass
class AirlineMeta:
    code: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "name": self.name}


def _full_percent_ranges() -> Dict[str, Range]:
    return {cabin: Range(0, 100) for cabin in ("y", "w", "j", "f")}


@dataclass
class FilterMetadata:
    """Values available to each filter facet."""
    stops: List[int] = field(default_factory=list)
    airlines: List[str] = field(default_factory=list)
    origins: List[str] = field(default_factory=list)
    destinations: List[str] = field(default_factory=list)
    connections: List[str] = field(default_factory=list)
    duration: Range = field(default_factory=lambda: Range(0, 0))
    departure: Optional[Range] = None  # epoch ms
    arrival: Optional[Range] = None  # epoch ms
    cabin_classes: Dict[str, Range] = field(default_factory=_full_percent_ranges)

    def airports(self, role: AirportRole) -> List[str]:
        if role == "origin":
            return self.origins
        if role == "destination":
            return self.destinations
        return self.connections

    def visible_facets(self) -> Dict[str, bool]:
        """
        Whether each facet is worth showing.

        List facets need at least two values, range facets a non-degenerate
        range.
        """
        visible = {
            "stops": len(self.stops) >= 2,
            "airlines": len(self.airlines) >= 2,
            "origin": len(self.origins) >= 2,
            "destination": len(self.destinations) >= 2,
            "connection": len(self.connections) >= 2,
            "duration": not self.duration.is_degenerate,
            "departure": self.departure is not None and not self.departure.is_degenerate,
            "arrival": self.arrival is not None and not self.arrival.is_degenerate,
        }
        for cabin, value_range in self.cabin_classes.items():
            visible[cabin] = not value_range.is_degenerate
        return visible

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stops": list(self.stops),
            "airlines": list(self.airlines),
            "airports": {
                "origins": list(self.origins),
                "destinations": list(self.destinations),
                "connections": list(self.connections),
            },
            "duration": self.duration.to_dict(),
            "departure": self.departure.to_dict() if self.departure else None,
            "arrival": self.arrival.to_dict() if self.arrival else None,
            "cabinClasses": {cabin: r.to_dict() for cabin, r in self.cabin_classes.items()},
        }


def _range(values: List[int]) -> Optional[Range]:
    if not values:
        return None
    return Range(min(values), max(values))


def extract_filter_metadata(itineraries: Iterable[Itinerary]) -> FilterMetadata:
    """
    Build facet metadata from itinerary cards.

    Args:
        itineraries: Cards after reliability filtering and before any facet
            filtering, so the panel offers every value present

    Returns:
        FilterMetadata with sorted value lists; an empty input gives
        empty lists, a zero duration range and no time ranges
    """
    stops: Set[int] = set()
    airlines: Set[str] = set()
    airports: Dict[str, Set[str]] = {"origin": set(), "destination": set(), "connection": set()}
    durations: List[int] = []
    departures: List[int] = []
    arrivals: List[int] = []
    percents: Dict[str, List[int]] = {"y": [], "w": [], "j": [], "f": []}

    for itinerary in itineraries:
        stops.add(itinerary.stops)
        airlines.update(itinerary.airline_codes)
        airports["origin"].add(itinerary.origin)
        airports["destination"].add(itinerary.destination)
        airports["connection"].update(itinerary.connections)

        durations.append(total_duration(itinerary.flights))
        departures.append(to_epoch_ms(itinerary.departs_at))
        arrivals.append(to_epoch_ms(itinerary.arrives_at))
        for cabin, value in class_percentages(itinerary.flights).to_dict().items():
            percents[cabin].append(value)

    cabin_classes = {
        cabin: _range(values) or Range(0, 100)
        for cabin, values in percents.items()
    }

    return FilterMetadata(
        stops=sorted(stops),
        airlines=sorted(airlines),
        origins=sorted(airports["origin"]),
        destinations=sorted(airports["destination"]),
        connections=sorted(airports["connection"]),
        duration=_range(durations) or Range(0, 0),
        departure=_range(departures),
        arrival=_range(arrivals),
        cabin_classes=cabin_classes,
    )


def default_filter_metadata() -> FilterMetadata:
    """Metadata used before any results are loaded."""
    return FilterMetadata(
        stops=list(DEFAULT_STOPS),
        duration=Range(0, DEFAULT_MAX_DURATION),
    )


def convert_to_airport_meta(
    metadata: FilterMetadata,
    names: Optional[Mapping[str, str]] = None,
) -> List[AirportMeta]:
    """Airport entries for the filter panel, origins first; names default to the code."""
    names = names or {}
    result: List[AirportMeta] = []
    for role in ("origin", "destination", "connection"):
        for code in metadata.airports(role):
            result.append(AirportMeta(code=code, name=names.get(code, code), role=role))
    return result


def convert_to_airline_meta(
    metadata: FilterMetadata,
    names: Optional[Mapping[str, str]] = None,
) -> List[AirlineMeta]:
    names = names or {}
    return [AirlineMeta(code=code, name=names.get(code, code)) for code in metadata.airlines]


__all__ = [
    "Range",
    "AirportMeta",
    "AirlineMeta",
    "FilterMetadata",
    "extract_filter_metadata",
    "default_filter_metadata",
    "convert_to_airport_meta",
    "convert_to_airline_meta",
]
