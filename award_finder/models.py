"""
Pydantic models for reference data loaded from external tables.

Pricing rules, reliability rows, airports and loyalty programs are read-only
inputs. Validating them here keeps the resolver and the reliability filter
free of shape checks; in particular ``dynamic_out`` arrives either as a
boolean or as a per-class map and is normalized to the map form on load.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .types import CABIN_CLASSES, CABIN_NAMES, CabinClass, RuleType
from .utils import clean_region


class PricingRule(BaseModel):
    """A fare rule belonging to one loyalty program."""

    id: Optional[Union[int, str]] = Field(
        default=None,
        description="Row identifier in the program's pricing table"
    )
    program: Optional[str] = Field(
        default=None,
        description="Loyalty program code owning this rule (e.g., 'AC')"
    )
    priority: int = Field(
        default=0,
        description="Match order; lower values are tried first"
    )
    type_single: RuleType = Field(
        description="Matching mode: 'dist', 'region' or 'dist-region'"
    )
    dep_region: Optional[str] = Field(
        default=None,
        description="Departure region label for region-based rules"
    )
    arr_region: Optional[str] = Field(
        default=None,
        description="Arrival region label for region-based rules"
    )
    min_dist: Optional[float] = Field(
        default=None,
        ge=0,
        description="Inclusive lower distance bound in miles"
    )
    max_dist: Optional[float] = Field(
        default=None,
        ge=0,
        description="Inclusive upper distance bound in miles"
    )
    airlines: List[str] = Field(
        default_factory=list,
        description="Operating airlines this rule applies to"
    )
    economy: Optional[int] = Field(default=None, ge=0, description="Flat Y price in points")
    premium: Optional[int] = Field(default=None, ge=0, description="Flat W price in points")
    business: Optional[int] = Field(default=None, ge=0, description="Flat J price in points")
    first: Optional[int] = Field(default=None, ge=0, description="Flat F price in points")
    dynamic_out: Dict[str, bool] = Field(
        default_factory=lambda: {cabin: False for cabin in CABIN_CLASSES},
        description="Per-class flag: the fare floats rather than being fixed"
    )

    model_config = {"frozen": True}

    @field_validator("dynamic_out", mode="before")
    @classmethod
    def _normalize_dynamic_out(cls, value):
        if value is None:
            return {cabin: False for cabin in CABIN_CLASSES}
        if isinstance(value, bool):
            return {cabin: value for cabin in CABIN_CLASSES}
        if isinstance(value, dict):
            upper = {str(k).upper(): bool(v) for k, v in value.items()}
            return {cabin: upper.get(cabin, False) for cabin in CABIN_CLASSES}
        raise ValueError(f"dynamic_out must be a boolean or a per-class map, got {type(value).__name__}")

    @field_validator("dep_region", "arr_region")
    @classmethod
    def _trim_region(cls, value: Optional[str]) -> Optional[str]:
        return clean_region(value)

    @field_validator("airlines", mode="before")
    @classmethod
    def _normalize_airlines(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(code).strip().upper() for code in value]

    def is_dynamic(self, cabin: CabinClass) -> bool:
        return self.dynamic_out.get(cabin, False)

    def price_for(self, cabin: CabinClass) -> Optional[int]:
        return getattr(self, CABIN_NAMES[cabin])

    def covers_airline(self, airline: str) -> bool:
        return airline.upper() in self.airlines

    def distance_in_range(self, distance: float) -> bool:
        if self.min_dist is not None and distance < self.min_dist:
            return False
        if self.max_dist is not None and distance > self.max_dist:
            return False
        return True


class ReliabilityEntry(BaseModel):
    """Minimum observed seat count for an airline's availability to be trusted."""

    code: str = Field(description="Two-letter airline code")
    min_count: int = Field(default=1, ge=0, description="Counts below this are unreliable")
    exemption: str = Field(
        default="",
        description="Cabin letters (e.g. 'JF') that always use a threshold of 1"
    )

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("exemption", mode="before")
    @classmethod
    def _normalize_exemption(cls, value) -> str:
        return (value or "").upper()

    def threshold(self, cabin: CabinClass) -> int:
        return 1 if cabin in self.exemption else self.min_count


class AirportRecord(BaseModel):
    """Airport row used to locate a leg."""

    iata: str = Field(description="IATA airport code")
    name: Optional[str] = Field(default=None, description="Display name")
    country_code: Optional[str] = Field(default=None, description="ISO country code")
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class LoyaltyProgram(BaseModel):
    """A mileage program that can price awards on its alliance's airlines."""

    code: str = Field(description="Program code, usually the owning airline's code")
    name: str = Field(default="", description="Program owner name")
    ffp: Optional[str] = Field(default=None, description="Frequent flyer program name")
    alliance: Optional[str] = Field(default=None, description="Alliance code: SA, OW or ST")

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()


__all__ = [
    "PricingRule",
    "ReliabilityEntry",
    "AirportRecord",
    "LoyaltyProgram",
]
