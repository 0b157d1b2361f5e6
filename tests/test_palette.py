"""Tests for series color assignment."""

import pytest

from peat import palette


class TestSeriesColor:
    def test_palette_has_at_least_ten_distinct_colors(self):
        assert len(palette.SERIES_PALETTE) >= 10
        assert len({c.upper() for c in palette.SERIES_PALETTE}) == len(palette.SERIES_PALETTE)

    @pytest.mark.parametrize("i", [0, 1, 7, 9, 10, 23, 101])
    def test_cycles_with_palette_length(self, i):
        n = len(palette.SERIES_PALETTE)
        assert palette.series_color(i) == palette.series_color(i + n)
        assert palette.series_color(i) == palette.SERIES_PALETTE[i % n]

    def test_rgb_matches_hex(self):
        assert palette.series_rgb(0) == palette.hex_to_rgb(palette.SERIES_PALETTE[0])
        assert palette.hex_to_rgb("#4477AA") == (0x44, 0x77, 0xAA)

    def test_style_uses_series_color(self):
        style = palette.series_style(3)
        assert style.color is not None
        assert style.color.triplet.hex.upper() == palette.series_color(3).upper()


class TestLegibility:
    def test_no_series_color_is_indistinguishable_from_background(self):
        for color in palette.SERIES_PALETTE:
            assert palette.legible_on_background(color), color

    def test_background_itself_is_not_legible(self):
        assert not palette.legible_on_background(palette.BACKGROUND)
        assert not palette.legible_on_background("#101010")

    def test_contrast_ratio_bounds(self):
        assert palette.contrast_ratio("#000000", "#FFFFFF") == pytest.approx(21.0)
        assert palette.contrast_ratio("#777777", "#777777") == pytest.approx(1.0)
        assert palette.contrast_ratio("#000000", "#FFFFFF") == palette.contrast_ratio("#FFFFFF", "#000000")
