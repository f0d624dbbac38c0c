"""
Configuration module for the Family Metrics Service.
Uses Pydantic BaseSettings for validation - app fails fast if config is invalid.
"""
import sys
import logging

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings with validation.
    Invalid combinations cause the app to fail fast at import time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    metrics_svc_host: str = Field(default="0.0.0.0", description="API host")
    metrics_svc_port: int = Field(default=8000, description="API port")
    metrics_svc_reload: bool = Field(default=False, description="Enable hot reload")

    # Heatmap Configuration
    metrics_svc_default_theme: str = Field(
        default="light",
        pattern="^(light|dark)$",
        description="Theme used when a request does not specify one",
    )
    metrics_svc_severity_max: float = Field(
        default=10, gt=0, description="Ceiling of the single-child severity scale"
    )
    metrics_svc_default_severity: int = Field(
        default=5, ge=1, le=10, description="Severity assumed for illnesses recorded without one"
    )
    metrics_svc_min_year: int = Field(default=2000, description="Earliest accepted heatmap year")
    metrics_svc_max_year: int = Field(default=2100, description="Latest accepted heatmap year")

    # Growth Chart Configuration
    metrics_svc_axis_padding_ratio: float = Field(
        default=0.1, description="Fraction of the value range added above and below each axis"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="json", description="Log output format: json or text")

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """
        Validate cross-field constraints at startup and fail fast with clear error messages.
        """
        errors = []

        if self.metrics_svc_min_year > self.metrics_svc_max_year:
            errors.append(
                f"METRICS_SVC_MIN_YEAR ({self.metrics_svc_min_year}) is after "
                f"METRICS_SVC_MAX_YEAR ({self.metrics_svc_max_year})"
            )

        if not 0 <= self.metrics_svc_axis_padding_ratio <= 1:
            errors.append(
                f"METRICS_SVC_AXIS_PADDING_RATIO must be within [0, 1], "
                f"got {self.metrics_svc_axis_padding_ratio}"
            )

        if self.log_format.lower() not in ("json", "text"):
            logger.warning(
                "LOG_FORMAT '%s' not recognised - falling back to json", self.log_format
            )

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.critical(error_msg)
            sys.exit(1)

        return self


# Create global settings instance - fails fast if config is invalid
settings = Settings()

# Backwards-compatible exports for existing code
API_HOST = settings.metrics_svc_host
API_PORT = settings.metrics_svc_port
API_RELOAD = settings.metrics_svc_reload

DEFAULT_THEME = settings.metrics_svc_default_theme
SEVERITY_MAX = settings.metrics_svc_severity_max
DEFAULT_SEVERITY = settings.metrics_svc_default_severity
MIN_YEAR = settings.metrics_svc_min_year
MAX_YEAR = settings.metrics_svc_max_year

AXIS_PADDING_RATIO = settings.metrics_svc_axis_padding_ratio
