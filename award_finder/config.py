"""
Configuration management for award-finder.

This module provides centralized configuration for the library,
supporting environment variables, .env files, and programmatic configuration.

Usage:
    >>> from award_finder.config import get_config, configure
    >>>
    >>> # Get current config
    >>> config = get_config()
    >>> print(config.default_program)

    >>> # Update config programmatically
    >>> configure(page_size=25, default_program="UA")
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from .errors import AwardFinderException, ErrorCode


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AwardFinderConfig(BaseSettings):
    """
    Configuration for award-finder.

    Settings can be provided via:
    1. Environment variables (prefixed with AWARD_FINDER_)
    2. .env file
    3. Direct instantiation

    Example:
        Set via environment:
        $ export AWARD_FINDER_DEFAULT_PROGRAM=UA
        $ export AWARD_FINDER_SOURCE_TIMEOUT_SECONDS=15

        Or in code:
        >>> from award_finder.config import configure
        >>> configure(source_timeout_seconds=15)
    """

    # Pricing
    default_program: str = Field(
        default="AC",
        description="Loyalty program tried first when pricing a leg"
    )
    program_order: List[str] = Field(
        default_factory=list,
        description="Preferred order of programs for fallback; empty keeps data-source order"
    )

    # Results
    page_size: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Itinerary cards per page"
    )
    default_sort: str = Field(
        default="duration",
        description="Sort key used when none is given"
    )

    # Reliability
    default_min_count: int = Field(
        default=1,
        ge=0,
        description="Seat count threshold for airlines missing from the reliability feed"
    )
    max_unreliable_percent: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Drop itineraries with more unreliable flight time than this share"
    )

    # Source fan-out
    source_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=600.0,
        description="Wall-clock bound for a single source fetch"
    )
    max_concurrent_sources: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum concurrent source fetches (None = unbounded)"
    )
    max_workers: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Thread pool size for blocking source fetches"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    model_config = {
        "env_prefix": "AWARD_FINDER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Global configuration instance
_config: Optional[AwardFinderConfig] = None


def get_config() -> AwardFinderConfig:
    """
    Get the global configuration instance.

    Creates a new instance from environment variables on first call,
    then returns the cached instance.

    Returns:
        AwardFinderConfig instance

    Example:
        >>> config = get_config()
        >>> print(config.page_size)
        10
    """
    global _config
    if _config is None:
        _config = AwardFinderConfig()
    return _config


def configure(**kwargs) -> AwardFinderConfig:
    """
    Update global configuration with new values.

    Creates a new configuration instance with the provided values,
    falling back to current values for unspecified options.

    Args:
        **kwargs: Configuration values to set

    Returns:
        Updated AwardFinderConfig instance

    Raises:
        AwardFinderException: CONFIGURATION_ERROR for an invalid value;
            the current configuration is left unchanged
    """
    global _config

    current_dict = get_config().model_dump()
    current_dict.update(kwargs)
    try:
        _config = AwardFinderConfig(**current_dict)
    except ValidationError as e:
        raise AwardFinderException.from_code(
            ErrorCode.CONFIGURATION_ERROR,
            message=f"Invalid configuration: {e}",
            details={"fields": sorted(kwargs)},
            recoverable=False,
        ) from e

    return _config


def reset_config() -> None:
    """
    Reset configuration to defaults.

    Clears the cached config so the next get_config() call
    will reload from environment variables.
    """
    global _config
    _config = None


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging at the given level (default: config.log_level)."""
    level_name = (level or get_config().log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(numeric_level)


__all__ = [
    "AwardFinderConfig",
    "get_config",
    "configure",
    "reset_config",
    "setup_logging",
    "LOG_FORMAT",
]
