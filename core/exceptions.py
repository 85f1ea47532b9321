"""
Custom exceptions for the ingestion pipeline with structured error context.

Every error carries a human-readable message, a context dictionary for
logging and persistence, and (optionally) the exception it wraps.

Exception Hierarchy:
    EnergyPipelineError (base)
    ├── AuthError            ticket acquisition failed
    ├── UpstreamFetchError   market API call failed for one data kind
    ├── WeatherFetchError    weather API call failed or returned no series
    ├── PersistenceError     batch write or read failed (batch rolled back)
    └── ConfigurationError   required settings missing at startup
"""

from typing import Optional, Dict, Any
from datetime import date, datetime, timezone
import enum


class EnergyPipelineError(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (data kind, dates, status code)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        details = {k: v for k, v in self.context.items() if k != "error_timestamp"}
        if details:
            context_str = ", ".join(f"{k}={v}" for k, v in details.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Authentication
# ============================================================================

class AuthFailureReason(str, enum.Enum):
    """Why a ticket could not be obtained"""
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_RESPONSE_FORMAT = "invalid_response_format"
    AUTHENTICATION_FAILED = "authentication_failed"


class AuthError(EnergyPipelineError):
    """
    Raised when the market API ticket cannot be acquired.

    Context should include:
        - auth_url: The authentication endpoint
        - status_code: HTTP status code (if applicable)
    """

    def __init__(
        self,
        message: str,
        reason: AuthFailureReason,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.reason = reason
        self.context["reason"] = reason.value


# ============================================================================
# Upstream fetch errors
# ============================================================================

class UpstreamFetchError(EnergyPipelineError):
    """
    Raised when a market data call fails (network error or non-2xx).

    Context should include:
        - kind: realtime_generation, historical_generation, price, consumption
        - start_date / end_date: requested range (if any)
        - status_code: HTTP status code (if applicable)
        - response_body: upstream error body (truncated)
    """

    def __init__(
        self,
        message: str,
        kind: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.kind = kind
        self.start_date = start_date
        self.end_date = end_date
        self.context["kind"] = kind
        if start_date is not None:
            self.context["start_date"] = str(start_date)
        if end_date is not None:
            self.context["end_date"] = str(end_date)


class WeatherFetchError(EnergyPipelineError):
    """
    Raised when the weather API call fails or returns no hourly series.

    Context should include:
        - city: Requested city
        - api_url: Endpoint used
    """
    pass


# ============================================================================
# Persistence / configuration
# ============================================================================

class PersistenceError(EnergyPipelineError):
    """
    Raised when a database operation fails. The batch transaction has
    already been rolled back when this reaches the caller.

    Context should include:
        - operation: UPSERT, SELECT, INSERT, UPDATE
        - table_name: Name of the table
    """
    pass


class ConfigurationError(EnergyPipelineError):
    """Required configuration is missing; fatal at startup."""
    pass
