"""
Shared exception classes and error handling utilities for the Family Metrics Service.

This module provides:
- Custom exception hierarchy for domain-specific errors
- Consistent error response formatting
- Exception handlers for FastAPI integration

The chart transforms themselves never raise: they are total over their inputs.
These exceptions are raised at the service boundary (request validation that
Pydantic cannot express, registry lookups, configuration problems).

Usage:
    from core.exceptions import InvalidYearError

    raise InvalidYearError(year=1850, min_year=2000, max_year=2100)

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================

class MetricsServiceError(Exception):
    """
    Base exception for all Family Metrics Service domain errors.

    Provides consistent error structure with status code and detail message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context to include in error response.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result: Dict[str, Any] = {"detail": self.detail}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# REQUEST EXCEPTIONS
# =============================================================================

class InvalidRequestError(MetricsServiceError):
    """Raised when a well-formed request cannot be served."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"


class InvalidYearError(InvalidRequestError):
    """Raised when a heatmap year falls outside the configured range."""

    detail = "Invalid year"

    def __init__(self, year: Optional[int] = None, min_year: Optional[int] = None,
                 max_year: Optional[int] = None, **kwargs: Any):
        detail = (
            f"Year {year} is outside the supported range {min_year}-{max_year}"
            if year is not None else self.detail
        )
        super().__init__(detail=detail, year=year, min_year=min_year, max_year=max_year, **kwargs)


# =============================================================================
# REGISTRY EXCEPTIONS
# =============================================================================

class UnknownMetricError(MetricsServiceError):
    """Raised when a metric name is not in the registry."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Metric not found"

    def __init__(self, metric_name: Optional[str] = None, **kwargs: Any):
        detail = f"Metric '{metric_name}' not found" if metric_name else self.detail
        super().__init__(detail=detail, metric_name=metric_name, **kwargs)


class RegistryConfigError(MetricsServiceError):
    """Raised when metrics.yaml is missing or invalid."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Metric registry configuration is invalid"


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def metrics_service_exception_handler(
    request: Request,
    exc: MetricsServiceError
) -> JSONResponse:
    """
    Handle MetricsServiceError exceptions and return consistent JSON responses.
    """
    logger.warning(
        f"MetricsServiceError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Call this function during app initialization to enable consistent
    error handling across all endpoints.
    """
    app.add_exception_handler(MetricsServiceError, metrics_service_exception_handler)
