"""
Central metric registry - single source of truth for growth metric definitions.

This module provides:
- YAML-based configuration loading and validation
- MetricDefinition dataclass for growth metric configuration
- ThemePalette dataclass for heatmap gradients
- Read-only access to metric definitions, palettes and the child palette
- Metric lookup with canonical names and aliases (no fuzzy matching)
- Lenient decimal parsing and display formatting

All metric-related logic in the application MUST derive from this registry.
YAML access is encapsulated here - no other module should read metrics.yaml directly.

Usage:
    from core.metric_registry import get_metric, list_metrics, get_theme_palette

    # Get a single metric definition
    metric = get_metric("head circ")     # -> head_circumference

    # List all metrics
    all_metrics = list_metrics()

    # Heatmap gradient for a theme
    palette = get_theme_palette("dark")
"""

import logging
import math
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass

import yaml

from core.exceptions import RegistryConfigError

logger = logging.getLogger(__name__)

VALID_AXES = ('left', 'right')
VALID_DASHES = ('solid', 'dot', 'dash', 'longdash', 'dashdot', 'longdashdot')
THEME_KEYS = ('empty', 'faint', 'bright')
HEX_COLOR_RE = re.compile(r'^#[0-9A-Fa-f]{6}$')


# =============================================================================
# DEFINITION DATACLASSES
# =============================================================================

@dataclass(frozen=True)
class MetricDefinition:
    """
    Immutable definition for a growth metric.

    Attributes:
        canonical_name: Primary identifier (weight, height, head_circumference, bmi)
        display_name: Human-readable name
        column_prefix: Prefix of per-child columns in multi-child rows
        color: Hex color used for single-child traces
        unit: Measurement unit (e.g., "lbs", "in")
        axis: Chart axis assignment ("left" or "right")
        precision: Decimals used for display formatting
        dash: Plotly dash style for multi-child traces
        description: Educational tooltip text
        aliases: Alternative names that resolve to this metric
    """
    canonical_name: str
    display_name: str
    column_prefix: str
    color: str
    unit: str
    axis: str
    precision: int
    dash: str
    description: str
    aliases: Tuple[str, ...]

    def column_key(self, child_id: int) -> str:
        """Column name used for this metric and child in serialized rows."""
        return f"{self.column_prefix}_{child_id}"


@dataclass(frozen=True)
class ThemePalette:
    """Heatmap gradient endpoints for one display theme (hex colors)."""
    name: str
    empty: str
    faint: str
    bright: str


# =============================================================================
# YAML CONFIGURATION LOADING & VALIDATION
# =============================================================================

def _get_config_path() -> Path:
    """Get the path to the metrics configuration file."""
    return Path(__file__).parent / 'metrics.yaml'


def _load_yaml_config() -> Dict[str, Any]:
    """
    Load and parse the YAML configuration file.

    Raises:
        FileNotFoundError: If metrics.yaml is not found
        yaml.YAMLError: If YAML parsing fails
    """
    config_path = _get_config_path()
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("Metrics config file not found", extra={'path': str(config_path)})
        raise
    except yaml.YAMLError as e:
        logger.error("Failed to parse metrics config", extra={'path': str(config_path), 'error': str(e)})
        raise


def _validate_metric_entry(raw: Dict[str, Any], index: int) -> None:
    """
    Validate a single metric entry from YAML.

    Raises:
        ValueError: If required fields are missing or invalid
    """
    required_fields = ['canonical_name', 'color', 'axis']
    for field in required_fields:
        if field not in raw:
            raise ValueError(f"Metric at index {index} is missing required field: '{field}'")

    name = raw.get('canonical_name', 'unknown')

    color = raw.get('color', '')
    if not HEX_COLOR_RE.match(color):
        raise ValueError(f"Metric '{name}' has invalid color format: '{color}'")

    if raw['axis'] not in VALID_AXES:
        raise ValueError(f"Metric '{name}' has invalid axis '{raw['axis']}': must be one of {VALID_AXES}")

    dash = raw.get('dash', 'solid')
    if dash not in VALID_DASHES:
        raise ValueError(f"Metric '{name}' has invalid dash style: '{dash}'")

    precision = raw.get('precision', 1)
    if not isinstance(precision, int) or precision < 0:
        raise ValueError(f"Metric '{name}' has invalid precision: must be a non-negative integer")


def _validate_theme_entry(name: str, raw: Any) -> None:
    """Validate a heatmap theme palette entry."""
    if not isinstance(raw, dict):
        raise ValueError(f"Heatmap theme '{name}' must be a mapping")
    for key in THEME_KEYS:
        color = raw.get(key, '')
        if not HEX_COLOR_RE.match(str(color)):
            raise ValueError(f"Heatmap theme '{name}' has invalid '{key}' color: '{color}'")


def _parse_metric_entry(raw: Dict[str, Any]) -> MetricDefinition:
    """Parse a single metric entry from YAML into a MetricDefinition."""
    aliases = raw.get('aliases') or []
    canonical_name = raw['canonical_name']

    return MetricDefinition(
        canonical_name=canonical_name,
        display_name=raw.get('display_name', canonical_name.replace('_', ' ').title()),
        column_prefix=raw.get('column_prefix', canonical_name),
        color=raw['color'],
        unit=raw.get('unit', ''),
        axis=raw['axis'],
        precision=raw.get('precision', 1),
        dash=raw.get('dash', 'solid'),
        description=raw.get('description', ''),
        aliases=tuple(aliases),
    )


@lru_cache(maxsize=1)
def _load_registry() -> Tuple[
    Tuple[MetricDefinition, ...],
    Dict[str, ThemePalette],
    Tuple[str, ...],
    Tuple[str, ...],
    int,
]:
    """
    Load and cache the complete registry from YAML.

    Returns a tuple of:
    - All metric definitions
    - Heatmap theme palettes by theme name
    - Child palette colors
    - Default visible metrics
    - Percentile display precision

    Cached so the YAML file is loaded exactly once per process.
    """
    config = _load_yaml_config()

    metrics_raw = config.get('metrics', [])
    metric_definitions: List[MetricDefinition] = []
    for i, raw in enumerate(metrics_raw):
        _validate_metric_entry(raw, i)
        metric_definitions.append(_parse_metric_entry(raw))

    themes: Dict[str, ThemePalette] = {}
    for name, raw in (config.get('heatmap_themes') or {}).items():
        _validate_theme_entry(name, raw)
        themes[name] = ThemePalette(
            name=name,
            empty=raw['empty'],
            faint=raw['faint'],
            bright=raw['bright'],
        )

    child_palette = tuple(config.get('child_palette') or [])
    for color in child_palette:
        if not HEX_COLOR_RE.match(str(color)):
            raise ValueError(f"Child palette has invalid color: '{color}'")
    if not child_palette:
        raise ValueError("Child palette must define at least one color")

    default_visible = tuple(config.get('default_visible_metrics', []))
    percentile_precision = int(config.get('percentile_precision', 1))

    logger.debug(
        "Metric registry loaded",
        extra={'metrics': len(metric_definitions), 'themes': sorted(themes)}
    )

    return (
        tuple(metric_definitions),
        themes,
        child_palette,
        default_visible,
        percentile_precision,
    )


# =============================================================================
# METRIC NORMALIZATION & LOOKUP
# =============================================================================

def _normalize_metric_name(name: str) -> str:
    """
    Normalize a metric name for consistent lookup.

    Rules:
    - Convert to lowercase
    - Treat underscores and hyphens as spaces
    - Remove remaining non-alphanumeric chars except spaces
    - Collapse whitespace and strip
    """
    if not name:
        return ''
    normalized = name.lower()
    normalized = re.sub(r'[_\-]', ' ', normalized)
    normalized = re.sub(r'[^a-z0-9\s]', '', normalized)
    normalized = re.sub(r'\s+', ' ', normalized)
    return normalized.strip()


@lru_cache(maxsize=1)
def _build_metric_lookup() -> Dict[str, MetricDefinition]:
    """
    Build a normalized lookup map from all canonical names and aliases.
    Called once and cached.
    """
    metric_definitions = _load_registry()[0]

    lookup: Dict[str, MetricDefinition] = {}
    for metric in metric_definitions:
        canonical_normalized = _normalize_metric_name(metric.canonical_name)
        if canonical_normalized in lookup:
            logger.warning(
                "Duplicate metric key detected",
                extra={'key': canonical_normalized, 'existing': lookup[canonical_normalized].canonical_name}
            )
        lookup[canonical_normalized] = metric

        for alias in metric.aliases:
            alias_normalized = _normalize_metric_name(alias)
            if alias_normalized and alias_normalized not in lookup:
                lookup[alias_normalized] = metric
            elif alias_normalized in lookup and lookup[alias_normalized] != metric:
                logger.warning(
                    "Alias collision detected",
                    extra={'alias': alias_normalized, 'existing': lookup[alias_normalized].canonical_name}
                )
    return lookup


# =============================================================================
# PUBLIC API - METRIC ACCESS
# =============================================================================

def get_metric(metric_name: str) -> MetricDefinition:
    """
    Get metric definition by name or alias.

    Uses exact normalized lookup only - no fuzzy/substring matching.

    Raises:
        KeyError: If the metric is not found in the registry
    """
    normalized = _normalize_metric_name(metric_name)
    lookup = _build_metric_lookup()

    if normalized not in lookup:
        raise KeyError(f"Unknown metric: '{metric_name}' (normalized: '{normalized}')")

    return lookup[normalized]


def load_registry() -> int:
    """
    Load (or reuse the cached) registry and return the number of metrics.

    Raises:
        RegistryConfigError: If metrics.yaml is missing or invalid
    """
    try:
        return len(_load_registry()[0])
    except (OSError, ValueError, KeyError, yaml.YAMLError) as e:
        raise RegistryConfigError(f"Metric registry failed to load: {e}", error_type=type(e).__name__) from e


def list_metrics() -> Dict[str, MetricDefinition]:
    """Map canonical metric names to their definitions, in YAML order."""
    return {m.canonical_name: m for m in _load_registry()[0]}


def metrics_on_axis(axis: str) -> List[MetricDefinition]:
    """All metric definitions plotted against the given axis."""
    return [m for m in _load_registry()[0] if m.axis == axis]


def get_theme_palette(theme: str) -> ThemePalette:
    """
    Get the heatmap gradient for a theme name.

    Raises:
        KeyError: If the theme is not configured
    """
    themes = _load_registry()[1]
    if theme not in themes:
        raise KeyError(f"Unknown heatmap theme: '{theme}'")
    return themes[theme]


def list_theme_palettes() -> Dict[str, ThemePalette]:
    """All configured heatmap palettes by theme name."""
    return dict(_load_registry()[1])


def get_child_palette() -> Tuple[str, ...]:
    """Colors assigned to children in multi-child charts."""
    return _load_registry()[2]


def get_default_visible_metrics() -> Tuple[str, ...]:
    """Canonical names of the metrics shown when a request names none."""
    return _load_registry()[3]


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def parse_decimal(value: Any) -> Optional[float]:
    """
    Parse a numeric field that may arrive as a string, number, or None.

    Returns None for missing, empty, non-numeric, or non-finite input.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        cleaned = str(value).strip()
        if not cleaned:
            return None
        try:
            parsed = float(cleaned)
        except ValueError:
            logger.warning("Could not parse decimal value", extra={'value': value})
            return None

    if not math.isfinite(parsed):
        return None
    return parsed


def round_half_up(value: float, ndigits: int = 0):
    """
    Round halves up: 2.5 -> 3, and 0.25 -> 0.3 at one digit.

    Returns an int when ndigits is 0.
    """
    if ndigits == 0:
        return math.floor(value + 0.5)
    scale = 10 ** ndigits
    return math.floor(value * scale + 0.5) / scale


def format_metric_value(value: Optional[float], metric_name: str, percentile: bool = False) -> str:
    """Format a metric value for display with the metric's precision."""
    if value is None:
        return "N/A"
    if percentile:
        precision = _load_registry()[4]
        return f"{value:.{precision}f}"
    metric = get_metric(metric_name)
    formatted = f"{value:.{metric.precision}f}"
    return f"{formatted} {metric.unit}" if metric.unit else formatted
