"""
Unit tests for the heatmap color scale.

Tests cover:
- color_for: empty color, gradient endpoints, clamping, half-up rounding
- legend_colors: five swatches sharing the cell mapping
- RGB formatting helpers
"""
import pytest

from services.color_scale import RGB, LEGEND_STEPS, Theme, color_for, legend_colors

LIGHT_EMPTY = RGB(235, 237, 240)   # #ebedf0
LIGHT_FAINT = RGB(249, 250, 251)   # #f9fafb
LIGHT_BRIGHT = RGB(37, 99, 235)    # #2563eb
DARK_EMPTY = RGB(22, 27, 34)       # #161b22
DARK_BRIGHT = RGB(59, 130, 246)    # #3b82f6


class TestColorFor:
    """Tests for color_for."""

    def test_zero_count_is_empty_color(self):
        """A zero count always returns the theme's flat empty color."""
        assert color_for(0, 10, Theme.LIGHT) == LIGHT_EMPTY
        assert color_for(0, 10, Theme.DARK) == DARK_EMPTY

    def test_negative_count_is_empty_color(self):
        assert color_for(-2, 10, Theme.LIGHT) == LIGHT_EMPTY

    def test_full_intensity_at_max(self):
        assert color_for(10, 10, Theme.LIGHT) == LIGHT_BRIGHT
        assert color_for(4, 4, Theme.DARK) == DARK_BRIGHT

    def test_midpoint_rounds_half_up(self):
        """t = 0.5 between #f9fafb and #2563eb; the green channel lands on .5 and rounds up."""
        assert color_for(5, 10, Theme.LIGHT) == RGB(143, 175, 243)

    def test_same_count_depends_on_ceiling(self):
        assert color_for(5, 10, Theme.LIGHT) != color_for(5, 3, Theme.LIGHT)
        assert color_for(5, 3, Theme.LIGHT) == LIGHT_BRIGHT

    def test_count_above_max_is_clamped(self):
        assert color_for(25, 10, Theme.LIGHT) == LIGHT_BRIGHT

    def test_non_positive_max_gives_full_intensity(self):
        assert color_for(3, 0, Theme.LIGHT) == LIGHT_BRIGHT
        assert color_for(3, -1, Theme.LIGHT) == LIGHT_BRIGHT

    def test_accepts_theme_value_string(self):
        assert color_for(10, 10, "dark") == DARK_BRIGHT

    def test_intensity_is_monotonic(self):
        """Each channel moves steadily from faint toward bright as count grows."""
        colors = [color_for(count, 10, Theme.LIGHT) for count in range(1, 11)]
        for prev, curr in zip(colors, colors[1:]):
            assert curr.r <= prev.r  # 249 -> 37
            assert curr.g <= prev.g  # 250 -> 99
            assert curr.b <= prev.b  # 251 -> 235

    def test_smallest_positive_count_is_not_empty_color(self):
        """Light theme keeps a visible step between 'none' and 'a little'."""
        assert color_for(0.01, 10, Theme.LIGHT) != LIGHT_EMPTY


class TestLegendColors:
    """Tests for legend_colors."""

    def test_five_swatches(self):
        assert len(legend_colors(4, Theme.LIGHT)) == LEGEND_STEPS == 5

    def test_swatches_match_cell_colors(self):
        """Legend swatches are produced by the same function as the cells."""
        legend = legend_colors(4, Theme.LIGHT)
        assert legend == [color_for(level, 4, Theme.LIGHT) for level in range(5)]

    def test_first_is_empty_and_last_is_bright(self):
        legend = legend_colors(10, Theme.DARK)
        assert legend[0] == DARK_EMPTY
        assert legend[-1] == DARK_BRIGHT

    def test_zero_max_still_produces_gradient(self):
        legend = legend_colors(0, Theme.LIGHT)
        assert legend[0] == LIGHT_EMPTY
        assert legend[-1] == LIGHT_BRIGHT
        assert len(set(legend)) == 5


class TestRGB:
    """Tests for RGB helpers."""

    def test_from_hex(self):
        assert RGB.from_hex("#2563eb") == LIGHT_BRIGHT
        assert RGB.from_hex("2563EB") == LIGHT_BRIGHT

    def test_to_css(self):
        assert LIGHT_BRIGHT.to_css() == "rgb(37, 99, 235)"

    def test_to_hex_round_trip(self):
        assert LIGHT_EMPTY.to_hex() == "#ebedf0"

    def test_as_tuple(self):
        assert DARK_EMPTY.as_tuple() == (22, 27, 34)

    @pytest.mark.parametrize("theme", list(Theme))
    def test_every_theme_has_a_palette(self, theme):
        assert isinstance(color_for(1, 2, theme), RGB)
