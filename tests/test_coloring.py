"""
Tests for gradient lookup tables and compositing.
"""

import numpy as np
import pytest

from julia_raster.rendering.coloring import (
    LUT_SIZE,
    ColorRGB,
    Palette,
    build_gradient_lut,
    colors_from_flat,
    composite,
    flatten_colors,
    parse_hex_color,
    random_palette,
)

GRAYSCALE = [(0, 0, 0), (64, 64, 64), (128, 128, 128), (192, 192, 192), (255, 255, 255)]


def single_color_lut(index, color):
    lut = np.zeros((LUT_SIZE, 3), dtype=np.uint8)
    lut[index] = color
    return lut


class TestGradientLUT:
    """Lookup table construction."""

    @pytest.mark.parametrize("n_colors", range(6))
    def test_length_is_fixed(self, n_colors):
        lut = build_gradient_lut(GRAYSCALE[:n_colors])
        assert lut.shape == (1024, 3)
        assert lut.dtype == np.uint8

    @pytest.mark.parametrize("n_colors", [0, 1])
    def test_fewer_than_two_colors_is_black(self, n_colors):
        lut = build_gradient_lut([(255, 10, 20)][:n_colors])
        assert not lut.any()

    @pytest.mark.parametrize("color", [(0, 0, 0), (100, 37, 255), (7, 199, 63)])
    def test_identical_colors_give_constant_lut(self, color):
        lut = build_gradient_lut([color, color])
        assert (lut == np.array(color, dtype=np.uint8)).all()

    def test_grayscale_segments(self):
        lut = build_gradient_lut(GRAYSCALE)
        assert tuple(lut[0]) == (0, 0, 0)
        assert tuple(lut[4]) == (1, 1, 1)
        assert tuple(lut[255]) == (64, 64, 64)
        assert tuple(lut[256]) == (64, 64, 64)
        assert tuple(lut[511]) == (128, 128, 128)
        assert tuple(lut[767]) == (192, 192, 192)
        assert tuple(lut[768]) == (192, 192, 192)
        assert tuple(lut[1023]) == (255, 255, 255)

    def test_truncates_instead_of_rounding(self):
        """512/1023 * 255 = 127.62..., which truncates to 127."""
        lut = build_gradient_lut([(0, 0, 0), (255, 255, 255)])
        assert tuple(lut[1]) == (0, 0, 0)
        assert tuple(lut[512]) == (127, 127, 127)

    def test_last_segment_absorbs_remainder(self):
        """1024 slots over 3 segments: 341, 341 and 342."""
        colors = [(0, 0, 0), (90, 0, 0), (0, 90, 0), (0, 0, 90)]
        lut = build_gradient_lut(colors)
        assert tuple(lut[341]) == (90, 0, 0)
        assert tuple(lut[682]) == (0, 90, 0)
        assert tuple(lut[1023]) == (0, 0, 90)

    def test_channels_interpolate_independently(self):
        lut = build_gradient_lut([(255, 0, 10), (0, 255, 10)])
        assert tuple(lut[0]) == (255, 0, 10)
        assert tuple(lut[1023]) == (0, 255, 10)
        assert (lut[:, 2] == 10).all()
        assert (np.diff(lut[:, 0].astype(int)) <= 0).all()
        assert (np.diff(lut[:, 1].astype(int)) >= 0).all()

    def test_custom_step_count(self):
        lut = build_gradient_lut([(0, 0, 0), (10, 10, 10)], steps=11)
        assert lut[:, 0].tolist() == list(range(11))


class TestColorParsing:
    """Hex colors and flat byte packing."""

    def test_parse_hex(self):
        assert parse_hex_color("#0088FF") == (0, 136, 255)
        assert parse_hex_color("ff0000") == (255, 0, 0)

    @pytest.mark.parametrize("value", ["#12345", "#GGGGGG", "", "#1234567"])
    def test_parse_hex_strict(self, value):
        with pytest.raises(ValueError):
            parse_hex_color(value)

    def test_parse_hex_lenient_returns_black(self):
        assert parse_hex_color("#nothex", strict=False) == (0, 0, 0)

    def test_color_rgb(self):
        color = ColorRGB.from_hex("#0A0B0C")
        assert color.to_tuple() == (10, 11, 12)
        assert color.to_hex() == "#0A0B0C"
        with pytest.raises(ValueError):
            ColorRGB(256, 0, 0)

    def test_colors_from_flat(self):
        flat = bytes(range(15))
        assert colors_from_flat(flat) == [(0, 1, 2), (3, 4, 5), (6, 7, 8), (9, 10, 11), (12, 13, 14)]

    @pytest.mark.parametrize("length,expected", [(0, 0), (2, 0), (3, 1), (14, 4), (15, 5), (21, 5)])
    def test_colors_from_flat_truncates(self, length, expected):
        assert len(colors_from_flat(bytes(length))) == expected

    def test_colors_from_flat_masks_values(self):
        assert colors_from_flat([256, 257, -1]) == [(0, 1, 255)]

    def test_flatten_colors(self):
        assert flatten_colors([(1, 2, 3), (4, 5, 6)]) == bytes([1, 2, 3, 4, 5, 6])
        assert colors_from_flat(flatten_colors(GRAYSCALE)) == GRAYSCALE


class TestPalette:
    """Palette wrapper."""

    def test_accepts_mixed_inputs(self):
        palette = Palette(["#000000", (64, 64, 64), ColorRGB(255, 255, 255)])
        assert palette.colors == [(0, 0, 0), (64, 64, 64), (255, 255, 255)]
        assert palette.to_hex() == ["#000000", "#404040", "#FFFFFF"]

    def test_keeps_at_most_five_stops(self):
        palette = Palette(GRAYSCALE + [(1, 1, 1)])
        assert len(palette.colors) == 5

    def test_invalid_color(self):
        with pytest.raises(ValueError):
            Palette([(1, 2)])

    def test_build_lut_and_flat(self):
        palette = Palette.from_flat(flatten_colors(GRAYSCALE))
        np.testing.assert_array_equal(palette.build_lut(), build_gradient_lut(GRAYSCALE))
        assert palette.to_flat() == flatten_colors(GRAYSCALE)

    def test_single_stop_palette_is_black(self):
        assert not Palette(["#FFFFFF"]).build_lut().any()

    def test_random_palette_is_reproducible(self):
        a = random_palette(np.random.default_rng(7))
        b = random_palette(np.random.default_rng(7))
        assert a.colors == b.colors
        assert len(a.colors) == 5
        assert all(0 <= channel <= 255 for color in a.colors for channel in color)

    def test_from_matplotlib(self):
        palette = Palette.from_matplotlib("gray")
        assert palette.colors[0] == (0, 0, 0)
        assert palette.colors[-1] == (255, 255, 255)
        assert len(palette.colors) == 5


class TestCompositor:
    """Iteration count to RGBA pixel."""

    def test_band_multiplier_wraps(self):
        """Iteration 103 looks up slot (103 * 10) % 1024 = 6."""
        lut = single_color_lut(6, (200, 100, 50))
        assert composite(103, 1000, lut, transparent=True) == (200, 100, 50, 200)

    def test_alpha_follows_brightest_channel(self):
        lut = single_color_lut(10, (20, 180, 90))
        assert composite(1, 50, lut, transparent=True)[3] == 180

    def test_inside_is_transparent(self):
        lut = np.full((LUT_SIZE, 3), 255, dtype=np.uint8)
        assert composite(50, 50, lut, transparent=True) == (255, 255, 255, 0)

    def test_inside_opaque_is_background(self):
        lut = np.full((LUT_SIZE, 3), 255, dtype=np.uint8)
        assert composite(50, 50, lut, background=(12, 34, 56)) == (12, 34, 56, 255)

    @pytest.mark.parametrize("gamma", [1.0, 0.5, 0.0, -2.0])
    def test_fade_black_255_clears_alpha(self, gamma):
        lut = np.full((LUT_SIZE, 3), 255, dtype=np.uint8)
        assert composite(3, 50, lut, fade_black=255, alpha_gamma=gamma, transparent=True)[3] == 0
        assert composite(3, 50, lut, fade_black=255, alpha_gamma=gamma,
                         background=(9, 8, 7)) == (9, 8, 7, 255)

    @pytest.mark.parametrize("gamma", [0.0, -1.5])
    def test_non_positive_gamma_saturates_black(self, gamma):
        """0 ** 0 is 1 and 0 ** -g is infinite; both clamp to full alpha."""
        lut = np.zeros((LUT_SIZE, 3), dtype=np.uint8)
        assert composite(1, 50, lut, fade_black=0.0, alpha_gamma=gamma,
                         transparent=True) == (0, 0, 0, 255)
        assert composite(1, 50, lut, fade_black=0.0, alpha_gamma=gamma,
                         background=(90, 90, 90)) == (0, 0, 0, 255)

    def test_zero_gamma_below_fade(self):
        lut = single_color_lut(10, (40, 40, 40))
        assert composite(1, 50, lut, fade_black=100, alpha_gamma=0.0, transparent=True)[3] == 255
        assert composite(50, 50, lut, fade_black=100, alpha_gamma=0.0, transparent=True)[3] == 0

    def test_fade_threshold(self):
        lut = single_color_lut(0, (100, 100, 100))
        lut[10] = (255, 255, 255)
        assert composite(0, 50, lut, fade_black=100, transparent=True)[3] == 0
        assert composite(1, 50, lut, fade_black=100, transparent=True)[3] == 255

    def test_alpha_gamma(self):
        """(51/255)^2 * 255 = 10.2, rounded to 10."""
        lut = single_color_lut(0, (51, 0, 0))
        assert composite(0, 50, lut, alpha_gamma=2.0, transparent=True)[3] == 10

    def test_opaque_blend(self):
        lut = single_color_lut(6, (200, 100, 50))
        assert composite(103, 1000, lut) == (156, 78, 39, 255)
        assert composite(103, 1000, lut, background=(255, 255, 255)) == (211, 133, 94, 255)

    def test_black_lookup_is_transparent(self):
        lut = np.zeros((LUT_SIZE, 3), dtype=np.uint8)
        assert composite(4, 50, lut, transparent=True) == (0, 0, 0, 0)
        assert composite(4, 50, lut, background=(1, 2, 3)) == (1, 2, 3, 255)
