"""
award-finder: itinerary evaluation and award pricing for flight award searches.

This library turns a raw award-availability feed into ranked itinerary cards
and prices individual legs against loyalty-program fare tables.

Quick Start:
    >>> from award_finder import evaluate_results, FilterState
    >>> evaluated = evaluate_results(
    ...     feed,
    ...     reliability=[{"code": "AA", "min_count": 2}],
    ...     filters=FilterState.build(stops=[0, 1], min_j=50),
    ...     sort_by="duration",
    ... )
    >>> for item in evaluated.itineraries:
    ...     print(item.itinerary.route, item.total_duration, item.percentages.j)

Pricing a leg:
    >>> from award_finder import InMemoryPricingData, PricingRequest, PricingResolver
    >>> resolver = PricingResolver(InMemoryPricingData(...))
    >>> resolver.resolve(PricingRequest("YYZ", "FRA", "LH"), program="AC").display()

Main Functions:
    - evaluate_results(): reliability, filtering, sorting and paging in one call
    - total_duration() / class_percentages(): per-itinerary metrics
    - apply_filters() / sort_itineraries() / paginate(): individual stages
    - extract_filter_metadata(): values available to each filter facet
    - fetch_sources() / merge_results(): concurrent per-source fetching

Classes:
    - Flight, Itinerary, AwardResults: feed records
    - FilterState: facet selections
    - PricingResolver: program-fallback pricing state machine
"""

from .alliances import Alliance, eligible_programs, get_airline_alliance
from .async_api import (
    MergedResults,
    SourceResult,
    fetch_sources,
    fetch_sources_sync,
    merge_results,
)
from .config import AwardFinderConfig, configure, get_config, reset_config, setup_logging
from .core import EvaluatedItinerary, EvaluatedResults, evaluate_itinerary, evaluate_results
from .errors import AwardFinderError, AwardFinderException, ErrorCode
from .filter_metadata import (
    AirlineMeta,
    AirportMeta,
    FilterMetadata,
    convert_to_airline_meta,
    convert_to_airport_meta,
    extract_filter_metadata,
)
from .filters import FilterState, apply_filters, filter_itineraries, itinerary_matches
from .itinerary import ClassPercentages, class_percentages, flatten_itineraries, layovers, total_duration
from .models import AirportRecord, LoyaltyProgram, PricingRule, ReliabilityEntry
from .pricing import (
    ClassPrice,
    InMemoryPricingData,
    PricingDataSource,
    PricingRequest,
    PricingResolver,
    RegionTableNotFound,
    ResolvedPrice,
    ResolverState,
)
from .reliability import apply_reliability, build_reliability_map, filter_reliable
from .schema import AwardResults, Flight, Itinerary
from .sorting import SORT_OPTIONS, Page, paginate, sort_itineraries

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "evaluate_results",
    "evaluate_itinerary",
    "EvaluatedResults",
    "EvaluatedItinerary",
    # Records
    "Flight",
    "Itinerary",
    "AwardResults",
    "flatten_itineraries",
    # Metrics
    "ClassPercentages",
    "total_duration",
    "layovers",
    "class_percentages",
    # Filtering / sorting
    "FilterState",
    "apply_filters",
    "itinerary_matches",
    "filter_itineraries",
    "SORT_OPTIONS",
    "sort_itineraries",
    "Page",
    "paginate",
    "FilterMetadata",
    "AirportMeta",
    "AirlineMeta",
    "extract_filter_metadata",
    "convert_to_airport_meta",
    "convert_to_airline_meta",
    # Reliability
    "ReliabilityEntry",
    "build_reliability_map",
    "apply_reliability",
    "filter_reliable",
    # Pricing
    "PricingRule",
    "AirportRecord",
    "LoyaltyProgram",
    "PricingDataSource",
    "InMemoryPricingData",
    "RegionTableNotFound",
    "PricingRequest",
    "PricingResolver",
    "ResolverState",
    "ResolvedPrice",
    "ClassPrice",
    "Alliance",
    "get_airline_alliance",
    "eligible_programs",
    # Sources
    "SourceResult",
    "MergedResults",
    "fetch_sources",
    "fetch_sources_sync",
    "merge_results",
    # Config / errors
    "AwardFinderConfig",
    "get_config",
    "configure",
    "reset_config",
    "setup_logging",
    "ErrorCode",
    "AwardFinderError",
    "AwardFinderException",
]
