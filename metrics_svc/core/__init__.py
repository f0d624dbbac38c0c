"""
Core module for application configuration, logging, and shared constants.

This module provides:
- Settings: Application configuration via pydantic-settings
- Dependency injection: FastAPI Depends() functions for services
- Exceptions: Domain-specific exception classes with HTTP status codes
- Datetime utilities: Calendar-date parsing, week and age arithmetic
- Metric registry: Growth metric definitions, theme palettes and formatting
"""
from core.config import settings, Settings

# Dependency injection - import functions for FastAPI Depends()
from core.dependencies import (
    get_grid_builder,
    get_growth_aggregator,
    get_graph_service,
)

# Exception classes for consistent error handling
from core.exceptions import (
    MetricsServiceError,
    InvalidRequestError,
    InvalidYearError,
    UnknownMetricError,
    RegistryConfigError,
    setup_exception_handlers,
)

# Calendar-date utilities
from core.datetime_utils import (
    utc_today,
    parse_date,
    parse_date_safe,
    day_of_week,
    age_in_months,
    format_age_label,
)
from core.config import (
    API_HOST,
    API_PORT,
    API_RELOAD,
    DEFAULT_THEME,
    SEVERITY_MAX,
    DEFAULT_SEVERITY,
    MIN_YEAR,
    MAX_YEAR,
    AXIS_PADDING_RATIO,
)

# Metric registry exports
from core.metric_registry import (
    MetricDefinition,
    ThemePalette,
    get_metric,
    list_metrics,
    load_registry,
    get_theme_palette,
    get_child_palette,
    parse_decimal,
    round_half_up,
    format_metric_value,
)

__all__ = [
    # Settings
    "settings",
    "Settings",
    # Dependency injection
    "get_grid_builder",
    "get_growth_aggregator",
    "get_graph_service",
    # Exceptions
    "MetricsServiceError",
    "InvalidRequestError",
    "InvalidYearError",
    "UnknownMetricError",
    "RegistryConfigError",
    "setup_exception_handlers",
    # Datetime utilities
    "utc_today",
    "parse_date",
    "parse_date_safe",
    "day_of_week",
    "age_in_months",
    "format_age_label",
    # Config exports
    "API_HOST",
    "API_PORT",
    "API_RELOAD",
    "DEFAULT_THEME",
    "SEVERITY_MAX",
    "DEFAULT_SEVERITY",
    "MIN_YEAR",
    "MAX_YEAR",
    "AXIS_PADDING_RATIO",
    # Metric registry exports
    "MetricDefinition",
    "ThemePalette",
    "get_metric",
    "list_metrics",
    "load_registry",
    "get_theme_palette",
    "get_child_palette",
    "parse_decimal",
    "round_half_up",
    "format_metric_value",
]
