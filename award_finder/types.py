"""
Shared type definitions for award-finder.

This module provides centralized type aliases and constants used across
the codebase, ensuring consistency and reducing duplication.
"""

from __future__ import annotations

from typing import Dict, Literal

# ============================================================================
# Type Aliases
# ============================================================================

CabinClass = Literal["Y", "W", "J", "F"]
"""Cabin classes, lowest to highest: Economy, Premium, Business, First."""

SortKey = Literal["duration", "departure", "arrival", "y", "w", "j", "f"]
"""
Sort options for itinerary lists.

- "duration": total elapsed minutes, shortest first
- "departure": first departure, earliest first
- "arrival": last arrival, latest first
- "y" / "w" / "j" / "f": cabin availability percentage, highest first
"""

AirportRole = Literal["origin", "destination", "connection"]
"""Role of an airport relative to an itinerary."""

RuleType = Literal["dist", "region", "dist-region"]
"""Pricing rule discriminator (``type_single`` in the rule feed)."""

PriceKind = Literal["fixed", "dynamic", "unavailable"]
"""How a cabin class price was resolved."""


# ============================================================================
# Constants
# ============================================================================

CABIN_CLASSES: tuple[CabinClass, ...] = ("Y", "W", "J", "F")
"""All cabin classes in ascending order."""

CABIN_NAMES: Dict[CabinClass, str] = {
    "Y": "economy",
    "W": "premium",
    "J": "business",
    "F": "first",
}
"""Price field name on a pricing rule for each cabin class."""

COUNT_FIELDS: Dict[CabinClass, str] = {
    "Y": "y_count",
    "W": "w_count",
    "J": "j_count",
    "F": "f_count",
}
"""Seat count attribute on a Flight for each cabin class."""

SORT_KEYS: tuple[SortKey, ...] = ("duration", "departure", "arrival", "y", "w", "j", "f")
"""All valid sort keys."""

DESCENDING_SORT_KEYS: frozenset[str] = frozenset({"arrival", "y", "w", "j", "f"})
"""Sort keys ordered highest value first."""

AIRPORT_ROLES: tuple[AirportRole, ...] = ("origin", "destination", "connection")
"""All airport roles."""

DYNAMIC_MARKER = "Dynamic"
"""Display value for a floating fare."""

UNAVAILABLE_MARKER = "N/A"
"""Display value when no price applies."""


__all__ = [
    # Type aliases
    "CabinClass",
    "SortKey",
    "AirportRole",
    "RuleType",
    "PriceKind",
    # Constants
    "CABIN_CLASSES",
    "CABIN_NAMES",
    "COUNT_FIELDS",
    "SORT_KEYS",
    "DESCENDING_SORT_KEYS",
    "AIRPORT_ROLES",
    "DYNAMIC_MARKER",
    "UNAVAILABLE_MARKER",
]
