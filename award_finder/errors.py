"""
Structured error handling for award-finder.

This module provides error types with standardized codes, messages,
and recovery suggestions so callers can annotate partial results
(per source, per cabin class) instead of failing a whole search.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """
    Standardized error codes.

    These codes allow callers to programmatically handle different
    error types without parsing error messages.
    """

    # Input errors
    MISSING_GEODATA = "MISSING_GEODATA"
    INVALID_AIRPORT = "INVALID_AIRPORT"
    INVALID_FEED = "INVALID_FEED"
    INVALID_SORT_KEY = "INVALID_SORT_KEY"

    # No-match conditions
    NO_MATCHING_RULE = "NO_MATCHING_RULE"
    NO_ELIGIBLE_PROGRAM = "NO_ELIGIBLE_PROGRAM"

    # Partial-source failures
    SOURCE_TIMEOUT = "SOURCE_TIMEOUT"
    SOURCE_FAILED = "SOURCE_FAILED"

    # System errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_DEFAULT_MESSAGES = {
    ErrorCode.MISSING_GEODATA: "Missing airport data",
    ErrorCode.INVALID_AIRPORT: "Invalid airport code provided",
    ErrorCode.INVALID_FEED: "Malformed availability feed",
    ErrorCode.INVALID_SORT_KEY: "Unknown sort key",
    ErrorCode.NO_MATCHING_RULE: "No matching pricing rule",
    ErrorCode.NO_ELIGIBLE_PROGRAM: "No eligible program found",
    ErrorCode.SOURCE_TIMEOUT: "Source request timed out",
    ErrorCode.SOURCE_FAILED: "Source request failed",
    ErrorCode.CONFIGURATION_ERROR: "Invalid configuration",
    ErrorCode.UNKNOWN_ERROR: "An unknown error occurred",
}


class AwardFinderError(BaseModel):
    """
    Structured error record.

    Provides machine-readable error information with human-friendly
    descriptions and actionable recovery suggestions.
    """

    code: ErrorCode = Field(
        description="Machine-readable error code"
    )
    message: str = Field(
        description="Human-readable error message"
    )
    details: Optional[dict] = Field(
        default=None,
        description="Additional error context (e.g., source name, airport codes)"
    )
    recoverable: bool = Field(
        default=True,
        description="Whether the error can be recovered from with different input"
    )
    suggested_action: Optional[str] = Field(
        default=None,
        description="Suggested action to resolve the error"
    )

    @classmethod
    def from_exception(cls, e: BaseException, source: Optional[str] = None) -> "AwardFinderError":
        """
        Convert an exception to a structured AwardFinderError.

        Args:
            e: The exception to convert
            source: Name of the source the exception came from, if any

        Returns:
            AwardFinderError with appropriate code and message
        """
        details = {"source": source} if source else None

        if isinstance(e, AwardFinderException):
            if source:
                merged = dict(e.error.details or {})
                merged["source"] = source
                return e.error.model_copy(update={"details": merged})
            return e.error

        if isinstance(e, (asyncio.TimeoutError, TimeoutError)):
            return cls(
                code=ErrorCode.SOURCE_TIMEOUT,
                message=f"Request for {source} timed out" if source else "Request timed out",
                details=details,
                recoverable=True,
                suggested_action="Retry the search or raise source_timeout_seconds"
            )

        if isinstance(e, (ConnectionError, OSError)):
            return cls(
                code=ErrorCode.SOURCE_FAILED,
                message=f"Network error: {e}",
                details=details,
                recoverable=True,
                suggested_action="Check connectivity and retry"
            )

        error_str = str(e).lower()
        if "json" in error_str or "malformed" in error_str or isinstance(e, (KeyError, TypeError)):
            return cls(
                code=ErrorCode.INVALID_FEED,
                message=f"Failed to parse source data: {e}",
                details=details,
                recoverable=False,
            )

        merged = dict(details or {})
        merged["exception_type"] = type(e).__name__
        return cls(
            code=ErrorCode.SOURCE_FAILED if source else ErrorCode.UNKNOWN_ERROR,
            message=str(e) or type(e).__name__,
            details=merged,
            recoverable=False,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "suggested_action": self.suggested_action,
        }


class AwardFinderException(Exception):
    """
    Exception with structured error information.

    Attributes:
        error: The AwardFinderError with structured information

    Example:
        try:
            resolver.resolve(leg)
        except AwardFinderException as e:
            print(f"Error code: {e.error.code}")
    """

    def __init__(self, error: AwardFinderError):
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    def to_dict(self) -> dict:
        """Get the error as a dictionary."""
        return self.error.to_dict()

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        message: Optional[str] = None,
        **kwargs: Any
    ) -> "AwardFinderException":
        """
        Create an exception from an error code.

        Args:
            code: The error code
            message: Optional custom message (defaults based on code)
            **kwargs: Additional AwardFinderError fields

        Returns:
            AwardFinderException with structured error
        """
        error = AwardFinderError(
            code=code,
            message=message or _DEFAULT_MESSAGES.get(code, str(code)),
            **kwargs
        )
        return cls(error)


def missing_geodata_error(dep_iata: str, arr_iata: str, reason: str) -> AwardFinderException:
    """Create the exception raised when a leg cannot be located."""
    return AwardFinderException.from_code(
        ErrorCode.MISSING_GEODATA,
        message=f"{reason} for {dep_iata}-{arr_iata}",
        details={"dep_iata": dep_iata, "arr_iata": arr_iata},
        recoverable=False,
    )


def no_matching_rule_error(program: str, airline: str) -> AwardFinderError:
    """Create the error recorded for a program with no rule for a leg."""
    return AwardFinderError(
        code=ErrorCode.NO_MATCHING_RULE,
        message=f"No matching pricing rule in {program} for {airline}",
        details={"program": program, "airline": airline},
        recoverable=True,
    )


def no_eligible_program_error(airline: str, tried: list) -> AwardFinderError:
    """Create the error reported when every eligible program was tried."""
    return AwardFinderError(
        code=ErrorCode.NO_ELIGIBLE_PROGRAM,
        message=f"No eligible program found for {airline}",
        details={"airline": airline, "tried_programs": list(tried)},
        recoverable=True,
        suggested_action="Select a different program or check the pricing tables",
    )


__all__ = [
    "ErrorCode",
    "AwardFinderError",
    "AwardFinderException",
    "missing_geodata_error",
    "no_matching_rule_error",
    "no_eligible_program_error",
]
