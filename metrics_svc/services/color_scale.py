"""
Color/scale mapping for density visualizations.

Maps a count and a maximum onto a theme-dependent gradient. The legend is
generated with the same function as the cells, so the two cannot drift apart.

The theme is always an explicit argument; nothing here reads display state.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from core.metric_registry import get_theme_palette, round_half_up

logger = logging.getLogger(__name__)

LEGEND_STEPS = 5


class Theme(str, Enum):
    """Display theme selecting the heatmap gradient."""
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class RGB:
    """An 8-bit RGB color."""
    r: int
    g: int
    b: int

    @classmethod
    def from_hex(cls, value: str) -> "RGB":
        """Parse '#rrggbb'."""
        value = value.lstrip('#')
        return cls(int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))

    def to_css(self) -> str:
        """CSS functional notation, e.g. 'rgb(37, 99, 235)'."""
        return f"rgb({self.r}, {self.g}, {self.b})"

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)


def _lerp_channel(start: int, end: int, t: float) -> int:
    return round_half_up(start + (end - start) * t)


def color_for(count: float, max_count: float, theme: Theme) -> RGB:
    """
    Color for a cell count on the theme's gradient.

    A count of 0 (or below) always returns the theme's flat "empty" color.
    Positive counts interpolate from "faint" to "bright" with
    t = count / max_count clamped to [0, 1]; a non-positive max_count puts
    every positive count at full intensity.
    """
    palette = get_theme_palette(Theme(theme).value)

    if count <= 0:
        return RGB.from_hex(palette.empty)

    t = count / max_count if max_count > 0 else 1.0
    t = min(1.0, max(0.0, t))

    faint = RGB.from_hex(palette.faint)
    bright = RGB.from_hex(palette.bright)
    return RGB(
        _lerp_channel(faint.r, bright.r, t),
        _lerp_channel(faint.g, bright.g, t),
        _lerp_channel(faint.b, bright.b, t),
    )


def legend_colors(max_count: float, theme: Theme) -> List[RGB]:
    """
    Legend swatches at 0%, 25%, 50%, 75% and 100% of max_count.

    The 0% swatch is the empty color, matching a zero-count cell.
    """
    scale = max_count if max_count > 0 else 1
    steps = LEGEND_STEPS - 1
    return [color_for(level / steps * scale, scale, theme) for level in range(LEGEND_STEPS)]
