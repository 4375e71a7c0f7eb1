"""
Itinerary filtering.

A FilterState is a snapshot of every facet selection. Facets combine as a
strict AND; inside a facet an empty selection means "no restriction",
except for stops, where an empty selection matches nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .itinerary import ClassPercentages, class_percentages, total_duration
from .schema import Itinerary
from .types import AIRPORT_ROLES, AirportRole
from .utils import to_epoch_ms

TimeWindow = Tuple[int, int]


def _codes(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(v.strip().upper() for v in (values or ()) if v and v.strip())


def _role_sets(values: Optional[Dict[str, Iterable[str]]]) -> Dict[AirportRole, FrozenSet[str]]:
    values = values or {}
    unknown = set(values) - set(AIRPORT_ROLES)
    if unknown:
        raise ValueError(f"Unknown airport roles: {sorted(unknown)}")
    return {role: _codes(values.get(role)) for role in AIRPORT_ROLES}


def _window(value: Optional[Iterable[int]]) -> Optional[TimeWindow]:
    if value is None:
        return None
    low, high = (int(v) for v in value)
    if low > high:
        raise ValueError(f"Invalid time window: {low} > {high}")
    return (low, high)


# ============================================================================
# Filter State
# ============================================================================

@dataclass(frozen=True)
class FilterState:
    """Facet selections applied to an itinerary list."""
    # None keeps every stop count; an empty set keeps nothing
    stops: Optional[FrozenSet[int]] = None

    include_airlines: FrozenSet[str] = frozenset()
    exclude_airlines: FrozenSet[str] = frozenset()

    # Cabin minimums, 0 = no constraint
    min_y: int = 0
    min_w: int = 0
    min_j: int = 0
    min_f: int = 0

    max_duration: Optional[int] = None  # minutes

    # Inclusive epoch-millisecond windows
    departure_window: Optional[TimeWindow] = None
    arrival_window: Optional[TimeWindow] = None

    # Compared but not hashed
    include_airports: Dict[AirportRole, FrozenSet[str]] = field(
        default_factory=lambda: _role_sets(None), hash=False
    )
    exclude_airports: Dict[AirportRole, FrozenSet[str]] = field(
        default_factory=lambda: _role_sets(None), hash=False
    )

    search_query: str = ""

    def __post_init__(self):
        for name in ("min_y", "min_w", "min_j", "min_f"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")
        if self.max_duration is not None and self.max_duration < 0:
            raise ValueError(f"max_duration must be non-negative, got {self.max_duration}")

    @classmethod
    def build(
        cls,
        stops: Optional[Iterable[int]] = None,
        include_airlines: Optional[Iterable[str]] = None,
        exclude_airlines: Optional[Iterable[str]] = None,
        min_y: int = 0,
        min_w: int = 0,
        min_j: int = 0,
        min_f: int = 0,
        max_duration: Optional[int] = None,
        departure_window: Optional[Iterable[int]] = None,
        arrival_window: Optional[Iterable[int]] = None,
        include_airports: Optional[Dict[str, Iterable[str]]] = None,
        exclude_airports: Optional[Dict[str, Iterable[str]]] = None,
        search_query: str = "",
    ) -> "FilterState":
        """Build a FilterState from loose collections, normalizing codes."""
        return cls(
            stops=None if stops is None else frozenset(int(s) for s in stops),
            include_airlines=_codes(include_airlines),
            exclude_airlines=_codes(exclude_airlines),
            min_y=min_y,
            min_w=min_w,
            min_j=min_j,
            min_f=min_f,
            max_duration=max_duration,
            departure_window=_window(departure_window),
            arrival_window=_window(arrival_window),
            include_airports=_role_sets(include_airports),
            exclude_airports=_role_sets(exclude_airports),
            search_query=search_query or "",
        )

    @property
    def has_cabin_minimum(self) -> bool:
        return any((self.min_y, self.min_w, self.min_j, self.min_f))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stops": None if self.stops is None else sorted(self.stops),
            "include_airlines": sorted(self.include_airlines),
            "exclude_airlines": sorted(self.exclude_airlines),
            "min_y": self.min_y,
            "min_w": self.min_w,
            "min_j": self.min_j,
            "min_f": self.min_f,
            "max_duration": self.max_duration,
            "departure_window": list(self.departure_window) if self.departure_window else None,
            "arrival_window": list(self.arrival_window) if self.arrival_window else None,
            "include_airports": {role: sorted(codes) for role, codes in self.include_airports.items()},
            "exclude_airports": {role: sorted(codes) for role, codes in self.exclude_airports.items()},
            "search_query": self.search_query,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterState":
        return cls.build(
            stops=data.get("stops"),
            include_airlines=data.get("include_airlines"),
            exclude_airlines=data.get("exclude_airlines"),
            min_y=int(data.get("min_y") or 0),
            min_w=int(data.get("min_w") or 0),
            min_j=int(data.get("min_j") or 0),
            min_f=int(data.get("min_f") or 0),
            max_duration=data.get("max_duration"),
            departure_window=data.get("departure_window"),
            arrival_window=data.get("arrival_window"),
            include_airports=data.get("include_airports"),
            exclude_airports=data.get("exclude_airports"),
            search_query=data.get("search_query") or "",
        )


# ============================================================================
# Filtering Functions
# ============================================================================

def _role_airports(itinerary: Itinerary, role: AirportRole) -> List[str]:
    if role == "origin":
        return [itinerary.origin]
    if role == "destination":
        return [itinerary.destination]
    return itinerary.connections


def _matches_airports(itinerary: Itinerary, state: FilterState) -> bool:
    for role in AIRPORT_ROLES:
        airports = [code.upper() for code in _role_airports(itinerary, role)]
        include = state.include_airports.get(role)
        if include and not any(code in include for code in airports):
            return False
        exclude = state.exclude_airports.get(role)
        if exclude and any(code in exclude for code in airports):
            return False
    return True


def _matches_query(itinerary: Itinerary, query: str) -> bool:
    if query in itinerary.route.lower() or query in itinerary.date.lower():
        return True
    return any(query in f.flight_numbers.lower() for f in itinerary.flights)


def _in_window(value: int, window: Optional[TimeWindow]) -> bool:
    return window is None or window[0] <= value <= window[1]


def itinerary_matches(
    itinerary: Itinerary,
    state: FilterState,
    percentages: Optional[ClassPercentages] = None,
) -> bool:
    """
    Check a single itinerary against every facet.

    Args:
        itinerary: The itinerary to test
        state: Facet selections
        percentages: Precomputed cabin percentages, computed when omitted

    Returns:
        True if the itinerary passes all facets
    """
    # Stops
    if state.stops is not None and itinerary.stops not in state.stops:
        return False

    # Airlines: exclude wins over include
    airlines = set(itinerary.airline_codes)
    if state.exclude_airlines and airlines & state.exclude_airlines:
        return False
    if state.include_airlines and not airlines & state.include_airlines:
        return False

    # Cabin minimums
    if state.has_cabin_minimum:
        pct = percentages or class_percentages(itinerary.flights)
        if (
            pct.y < state.min_y
            or pct.w < state.min_w
            or pct.j < state.min_j
            or pct.f < state.min_f
        ):
            return False

    # Duration
    if state.max_duration is not None and total_duration(itinerary.flights) > state.max_duration:
        return False

    # Time windows
    if not _in_window(to_epoch_ms(itinerary.departs_at), state.departure_window):
        return False
    if not _in_window(to_epoch_ms(itinerary.arrives_at), state.arrival_window):
        return False

    # Airports by role
    if not _matches_airports(itinerary, state):
        return False

    # Free text
    query = state.search_query.strip().lower()
    if query and not _matches_query(itinerary, query):
        return False

    return True


def apply_filters(itineraries: Iterable[Itinerary], state: FilterState) -> List[Itinerary]:
    """
    Filter itineraries by a FilterState, preserving input order.

    Args:
        itineraries: Itinerary cards
        state: Facet selections

    Returns:
        Itineraries passing every facet
    """
    return [itinerary for itinerary in itineraries if itinerary_matches(itinerary, state)]


# ============================================================================
# Result Classes
# ============================================================================

@dataclass
class FilteredItineraryResult:
    """Result of filtering an itinerary list."""
    original_count: int
    filtered_count: int
    filters_applied: List[str]
    itineraries: List[Itinerary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_count": self.original_count,
            "filtered_count": self.filtered_count,
            "filters_applied": self.filters_applied,
            "itineraries": [i.to_dict() for i in self.itineraries],
        }


def describe_filters(state: FilterState) -> List[str]:
    """Human-readable summary of the active facets."""
    applied = []
    if state.stops is not None:
        applied.append(f"Stops: {', '.join(str(s) for s in sorted(state.stops)) or 'none'}")
    if state.include_airlines:
        applied.append(f"Include: {', '.join(sorted(state.include_airlines))}")
    if state.exclude_airlines:
        applied.append(f"Exclude: {', '.join(sorted(state.exclude_airlines))}")
    for label, value in (("Y", state.min_y), ("W", state.min_w), ("J", state.min_j), ("F", state.min_f)):
        if value:
            applied.append(f"{label} >= {value}%")
    if state.max_duration is not None:
        applied.append(f"Duration <= {state.max_duration}m")
    if state.departure_window:
        applied.append("Departure window")
    if state.arrival_window:
        applied.append("Arrival window")
    for role in AIRPORT_ROLES:
        if state.include_airports.get(role):
            applied.append(f"Include {role}: {', '.join(sorted(state.include_airports[role]))}")
        if state.exclude_airports.get(role):
            applied.append(f"Exclude {role}: {', '.join(sorted(state.exclude_airports[role]))}")
    if state.search_query.strip():
        applied.append(f"Search: {state.search_query.strip()}")
    return applied


def filter_itineraries(itineraries: List[Itinerary], state: FilterState) -> FilteredItineraryResult:
    """Filter itineraries and report which facets were active."""
    filtered = apply_filters(itineraries, state)
    return FilteredItineraryResult(
        original_count=len(itineraries),
        filtered_count=len(filtered),
        filters_applied=describe_filters(state),
        itineraries=filtered,
    )


__all__ = [
    "FilterState",
    "TimeWindow",
    "itinerary_matches",
    "apply_filters",
    "describe_filters",
    "filter_itineraries",
    "FilteredItineraryResult",
]
