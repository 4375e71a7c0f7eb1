"""
Award price resolution against program pricing tables.

Each loyalty program publishes a table of fare rules. A rule applies to a
set of operating airlines and matches a leg by region pair, by distance
band, or by both. Rules are tried in priority order; for every cabin the
resolver then picks a fixed price or marks the fare as dynamic, depending on
whether the cabin's availability is reliable.

When a program has no matching rule the resolver moves on to the next
program of the airline's alliance until one matches or none remain.

Example:
    >>> data = InMemoryPricingData(airports=..., regions=..., rules=..., programs=...)
    >>> resolver = PricingResolver(data)
    >>> request = PricingRequest("YYZ", "FRA", "LH", cabins=("Y", "J"))
    >>> price = resolver.resolve(request, program="AC")
    >>> price.display()
    {'Y': '35,000', 'J': '70,000'}
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .alliances import eligible_programs
from .config import get_config
from .errors import (
    AwardFinderError,
    AwardFinderException,
    ErrorCode,
    missing_geodata_error,
    no_eligible_program_error,
    no_matching_rule_error,
)
from .models import AirportRecord, LoyaltyProgram, PricingRule, ReliabilityEntry
from .reliability import class_reliability
from .schema import Flight, Itinerary
from .types import CABIN_CLASSES, DYNAMIC_MARKER, UNAVAILABLE_MARKER, CabinClass, PriceKind
from .utils import clean_region, format_points, haversine_distance, validate_airport_code

logger = logging.getLogger(__name__)


# ============================================================================
# Data Source
# ============================================================================

class RegionTableNotFound(LookupError):
    """The program has no region table; treated as missing region data."""


class PricingDataSource(ABC):
    """Read-only access to airports, region tables, pricing rules and programs."""

    @abstractmethod
    def get_airports(self, codes: Sequence[str]) -> Dict[str, AirportRecord]:
        """Airport rows keyed by IATA code; unknown codes are omitted."""
        pass

    @abstractmethod
    def get_regions(self, program: str, country_codes: Sequence[str]) -> Dict[str, str]:
        """
        Region label per country code for a program.

        Raises:
            RegionTableNotFound: If the program has no region table
        """
        pass

    @abstractmethod
    def get_pricing_rules(self, program: str, airline: str) -> List[PricingRule]:
        """Rules of a program whose airline set includes the airline."""
        pass

    @abstractmethod
    def get_programs(self) -> List[LoyaltyProgram]:
        """All loyalty programs with their alliance codes."""
        pass


class InMemoryPricingData(PricingDataSource):
    """PricingDataSource over preloaded tables."""

    def __init__(
        self,
        airports: Iterable[Union[AirportRecord, Mapping[str, Any]]] = (),
        regions: Optional[Mapping[str, Mapping[str, str]]] = None,
        rules: Optional[Mapping[str, Iterable[Union[PricingRule, Mapping[str, Any]]]]] = None,
        programs: Iterable[Union[LoyaltyProgram, Mapping[str, Any]]] = (),
    ):
        """
        Args:
            airports: Airport rows
            regions: ``{program: {country_code: region}}``; a program
                missing here has no region table
            rules: ``{program: [rule rows]}``
            programs: Program rows
        """
        self._airports: Dict[str, AirportRecord] = {}
        for row in airports:
            record = row if isinstance(row, AirportRecord) else AirportRecord.model_validate(row)
            self._airports[record.iata.upper()] = record

        self._regions = {
            program.upper(): {country.upper(): region for country, region in table.items()}
            for program, table in (regions or {}).items()
        }

        self._rules: Dict[str, List[PricingRule]] = {}
        for program, rows in (rules or {}).items():
            code = program.upper()
            self._rules[code] = [
                row if isinstance(row, PricingRule)
                else PricingRule.model_validate({"program": code, **row})
                for row in rows
            ]

        self._programs = [
            row if isinstance(row, LoyaltyProgram) else LoyaltyProgram.model_validate(row)
            for row in programs
        ]

    def get_airports(self, codes: Sequence[str]) -> Dict[str, AirportRecord]:
        return {code.upper(): self._airports[code.upper()] for code in codes if code.upper() in self._airports}

    def get_regions(self, program: str, country_codes: Sequence[str]) -> Dict[str, str]:
        table = self._regions.get(program.upper())
        if table is None:
            raise RegionTableNotFound(f"No region table for program {program}")
        return {code: table[code.upper()] for code in country_codes if code.upper() in table}

    def get_pricing_rules(self, program: str, airline: str) -> List[PricingRule]:
        return [rule for rule in self._rules.get(program.upper(), []) if rule.covers_airline(airline)]

    def get_programs(self) -> List[LoyaltyProgram]:
        return list(self._programs)


# ============================================================================
# Request / Result Types
# ============================================================================

@dataclass
class PricingRequest:
    """One leg to price."""
    dep_iata: str
    arr_iata: str
    airline: str
    distance: Optional[float] = None
    cabins: Tuple[CabinClass, ...] = CABIN_CLASSES
    reliable: Dict[CabinClass, bool] = field(default_factory=dict)

    def __post_init__(self):
        try:
            self.dep_iata = validate_airport_code(self.dep_iata)
            self.arr_iata = validate_airport_code(self.arr_iata)
        except ValueError as e:
            raise AwardFinderException.from_code(
                ErrorCode.INVALID_AIRPORT,
                message=str(e),
                details={"dep_iata": self.dep_iata, "arr_iata": self.arr_iata},
                recoverable=False,
            ) from e
        self.airline = self.airline.strip().upper()

    def is_reliable(self, cabin: CabinClass) -> bool:
        return self.reliable.get(cabin, True)

    @classmethod
    def from_flight(
        cls,
        flight: Flight,
        reliability: Optional[Mapping[str, ReliabilityEntry]] = None,
        distance: Optional[float] = None,
        dep_iata: Optional[str] = None,
        arr_iata: Optional[str] = None,
    ) -> "PricingRequest":
        """
        Build a request for a flight, pricing only the cabins it offers.

        Raises:
            AwardFinderException: MISSING_GEODATA when the flight has no airports
        """
        dep = dep_iata or flight.origin
        arr = arr_iata or flight.destination
        if not dep or not arr:
            raise missing_geodata_error(dep or "?", arr or "?", "Missing airport data")
        return cls(
            dep_iata=dep,
            arr_iata=arr,
            airline=flight.airline_code,
            distance=distance,
            cabins=tuple(cabin for cabin in CABIN_CLASSES if flight.has_class(cabin)),
            reliable=class_reliability(flight, reliability or {}),
        )


@dataclass(frozen=True)
class ClassPrice:
    """Resolved price for one cabin."""
    kind: PriceKind
    points: Optional[int] = None
    rule_id: Optional[Union[int, str]] = None

    @property
    def display(self) -> str:
        if self.kind == "dynamic":
            return DYNAMIC_MARKER
        if self.kind == "fixed" and self.points is not None:
            return format_points(self.points)
        return UNAVAILABLE_MARKER

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "points": self.points, "rule_id": self.rule_id, "display": self.display}


UNAVAILABLE = ClassPrice(kind="unavailable")


class ResolverState(str, Enum):
    """States of the pricing resolver."""
    IDLE = "idle"
    TRYING = "trying"
    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"


@dataclass
class ResolvedPrice:
    """Outcome of pricing one leg."""
    status: ResolverState
    program: Optional[str] = None
    tried_programs: List[str] = field(default_factory=list)
    distance: Optional[float] = None
    dep_region: Optional[str] = None
    arr_region: Optional[str] = None
    matched_rule_ids: List[Union[int, str, None]] = field(default_factory=list)
    prices: Dict[CabinClass, ClassPrice] = field(default_factory=dict)
    error: Optional[AwardFinderError] = None
    # Programs tried without a matching rule
    program_errors: Dict[str, AwardFinderError] = field(default_factory=dict)

    @property
    def resolved(self) -> bool:
        return self.status == ResolverState.RESOLVED

    def display(self) -> Dict[CabinClass, str]:
        return {cabin: price.display for cabin, price in self.prices.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "program": self.program,
            "tried_programs": list(self.tried_programs),
            "distance": self.distance,
            "dep_region": self.dep_region,
            "arr_region": self.arr_region,
            "matched_rule_ids": list(self.matched_rule_ids),
            "prices": {cabin: price.to_dict() for cabin, price in self.prices.items()},
            "error": self.error.to_dict() if self.error else None,
            "program_errors": {code: err.to_dict() for code, err in self.program_errors.items()},
        }


# ============================================================================
# Matching
# ============================================================================

def rule_matches(
    rule: PricingRule,
    distance: float,
    dep_region: Optional[str],
    arr_region: Optional[str],
) -> bool:
    """Whether a single rule applies to a leg."""
    dep_region = clean_region(dep_region)
    arr_region = clean_region(arr_region)
    regions_match = (
        dep_region is not None
        and arr_region is not None
        and rule.dep_region == dep_region
        and rule.arr_region == arr_region
    )
    if rule.type_single == "dist-region":
        return regions_match and rule.distance_in_range(distance)
    if rule.type_single == "region":
        return regions_match
    return rule.distance_in_range(distance)


def match_rules(
    rules: Iterable[PricingRule],
    airline: str,
    distance: float,
    dep_region: Optional[str],
    arr_region: Optional[str],
) -> List[PricingRule]:
    """
    All rules applying to a leg, lowest priority value first.

    Rules with equal priority keep their table order.
    """
    candidates = [rule for rule in rules if rule.covers_airline(airline)]
    candidates.sort(key=lambda rule: rule.priority)
    return [rule for rule in candidates if rule_matches(rule, distance, dep_region, arr_region)]


def select_class_price(rules: Sequence[PricingRule], cabin: CabinClass, reliable: bool) -> ClassPrice:
    """
    Pick the price for one cabin from matched rules.

    A reliable cabin takes the first fixed rule with a price for it and
    falls back to a dynamic rule. An unreliable cabin is only bookable at a
    dynamic fare, so without a dynamic rule it is unavailable.
    """
    dynamic_rule = next((rule for rule in rules if rule.is_dynamic(cabin)), None)

    if reliable:
        fixed_rule = next(
            (rule for rule in rules if not rule.is_dynamic(cabin) and rule.price_for(cabin) is not None),
            None,
        )
        if fixed_rule is not None:
            return ClassPrice(kind="fixed", points=fixed_rule.price_for(cabin), rule_id=fixed_rule.id)

    if dynamic_rule is not None:
        return ClassPrice(kind="dynamic", rule_id=dynamic_rule.id)
    return UNAVAILABLE


# ============================================================================
# Resolver
# ============================================================================

class PricingResolver:
    """
    Finite-state resolver for one leg at a time.

    States: ``idle`` -> ``trying(program)`` -> ``resolved`` | ``exhausted``.
    Each call to resolve() starts over with an empty tried-programs set.

    Example:
        >>> resolver = PricingResolver(data_source)
        >>> result = resolver.resolve(PricingRequest("YYZ", "FRA", "LH"))
        >>> result.status, result.program
        (<ResolverState.RESOLVED: 'resolved'>, 'AC')
    """

    def __init__(
        self,
        data_source: PricingDataSource,
        program_order: Optional[Sequence[str]] = None,
    ):
        """
        Args:
            data_source: Access to airports, regions, rules and programs
            program_order: Fallback ordering of program codes (default: from config)
        """
        self.data_source = data_source
        self.program_order = list(program_order) if program_order is not None else list(get_config().program_order)

        self.state = ResolverState.IDLE
        self.current_program: Optional[str] = None
        self.tried_programs: List[str] = []

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _locate(self, request: PricingRequest) -> Tuple[str, str, float]:
        """Country codes of both ends and the leg distance."""
        airports = self.data_source.get_airports([request.dep_iata, request.arr_iata])
        dep = airports.get(request.dep_iata)
        arr = airports.get(request.arr_iata)
        if dep is None or arr is None:
            raise missing_geodata_error(request.dep_iata, request.arr_iata, "Missing airport data")
        if not dep.country_code or not arr.country_code:
            raise missing_geodata_error(request.dep_iata, request.arr_iata, "Missing country code")

        distance = request.distance
        if distance is None:
            if not (dep.has_coordinates and arr.has_coordinates):
                raise missing_geodata_error(
                    request.dep_iata, request.arr_iata, "Missing lat/lon for distance calculation"
                )
            distance = haversine_distance(dep.latitude, dep.longitude, arr.latitude, arr.longitude)
        return dep.country_code.upper(), arr.country_code.upper(), distance

    def _lookup_regions(self, program: str, dep_country: str, arr_country: str) -> Tuple[Optional[str], Optional[str]]:
        try:
            regions = self.data_source.get_regions(program, [dep_country, arr_country])
        except RegionTableNotFound:
            logger.debug(f"No region table for {program}; matching on distance only")
            return None, None
        return clean_region(regions.get(dep_country)), clean_region(regions.get(arr_country))

    def _next_program(self, candidates: Sequence[str]) -> Optional[str]:
        return next((code for code in candidates if code not in self.tried_programs), None)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, request: PricingRequest, program: Optional[str] = None) -> ResolvedPrice:
        """
        Price a leg, falling back across alliance programs.

        Args:
            request: The leg to price
            program: Program to try first (default: config.default_program)

        Returns:
            ResolvedPrice with status ``resolved`` or ``exhausted``

        Raises:
            AwardFinderException: MISSING_GEODATA when airports, countries
                or coordinates are missing; no fallback is attempted
        """
        self.state = ResolverState.IDLE
        self.tried_programs = []
        self.current_program = None

        dep_country, arr_country, distance = self._locate(request)

        candidates = eligible_programs(request.airline, self.data_source.get_programs(), self.program_order)
        self.current_program = (program or get_config().default_program).upper()
        self.state = ResolverState.TRYING

        dep_region: Optional[str] = None
        arr_region: Optional[str] = None
        matched: List[PricingRule] = []
        misses: Dict[str, AwardFinderError] = {}

        while self.state == ResolverState.TRYING:
            current = self.current_program
            self.tried_programs.append(current)

            dep_region, arr_region = self._lookup_regions(current, dep_country, arr_country)
            rules = self.data_source.get_pricing_rules(current, request.airline)
            matched = match_rules(rules, request.airline, distance, dep_region, arr_region)
            logger.debug(
                f"{current}: {len(matched)} of {len(rules)} rules match "
                f"{request.dep_iata}-{request.arr_iata} ({distance} mi, {dep_region}->{arr_region})"
            )

            if matched:
                self.state = ResolverState.RESOLVED
                break

            misses[current] = no_matching_rule_error(current, request.airline)
            following = self._next_program(candidates)
            if following is None:
                self.state = ResolverState.EXHAUSTED
                break
            logger.info(f"No pricing rule in {current} for {request.airline}; trying {following}")
            self.current_program = following

        if self.state == ResolverState.EXHAUSTED:
            logger.info(f"No eligible program found for {request.airline} after {self.tried_programs}")
            return ResolvedPrice(
                status=ResolverState.EXHAUSTED,
                tried_programs=list(self.tried_programs),
                distance=distance,
                prices={cabin: UNAVAILABLE for cabin in request.cabins},
                error=no_eligible_program_error(request.airline, self.tried_programs),
                program_errors=misses,
            )

        return ResolvedPrice(
            status=ResolverState.RESOLVED,
            program=self.current_program,
            tried_programs=list(self.tried_programs),
            distance=distance,
            dep_region=dep_region,
            arr_region=arr_region,
            matched_rule_ids=[rule.id for rule in matched],
            program_errors=misses,
            prices={
                cabin: select_class_price(matched, cabin, request.is_reliable(cabin))
                for cabin in request.cabins
            },
        )

    def resolve_itinerary(
        self,
        itinerary: Itinerary,
        reliability: Optional[Mapping[str, ReliabilityEntry]] = None,
        program: Optional[str] = None,
    ) -> List[Union[ResolvedPrice, AwardFinderError]]:
        """
        Price every leg of an itinerary independently.

        A leg that cannot be located yields its error in place of a price;
        the other legs are still priced.
        """
        airports = itinerary.airports
        results: List[Union[ResolvedPrice, AwardFinderError]] = []
        for index, flight in enumerate(itinerary.flights):
            dep = flight.origin or (airports[index] if index < len(airports) else None)
            arr = flight.destination or (airports[index + 1] if index + 1 < len(airports) else None)
            try:
                request = PricingRequest.from_flight(flight, reliability, dep_iata=dep, arr_iata=arr)
                results.append(self.resolve(request, program=program))
            except AwardFinderException as e:
                logger.warning(f"Pricing failed for {flight.flight_numbers}: {e}")
                results.append(e.error)
        return results


__all__ = [
    "RegionTableNotFound",
    "PricingDataSource",
    "InMemoryPricingData",
    "PricingRequest",
    "ClassPrice",
    "ResolverState",
    "ResolvedPrice",
    "rule_matches",
    "match_rules",
    "select_class_price",
    "PricingResolver",
]
