"""
Tests for the public API: flat render adapter, renderer and explorer.
"""

from dataclasses import replace

import numpy as np
import pytest

from julia_raster import render
from julia_raster.api import FractalExplorer, FractalRenderer, RenderConfig, fit_preview_size
from julia_raster.core.fractal_types import FractalVariant
from julia_raster.core.parameters import RenderParameters
from julia_raster.rendering.coloring import flatten_colors
from julia_raster.rendering.pipeline import render_frame

GRAYSCALE = ((0, 0, 0), (64, 64, 64), (128, 128, 128), (192, 192, 192), (255, 255, 255))
GRAYSCALE_FLAT = flatten_colors(GRAYSCALE)


def flat_render(**overrides):
    args = dict(width=4, height=4, c_re=-0.8, c_im=0.156, zoom=1.0, x_off=0.0, y_off=0.0,
                rotation_deg=0.0, max_iter=50, fractal_type=0, colors_flat=GRAYSCALE_FLAT,
                bg_r=0, bg_g=0, bg_b=0, fade_black=0.0, alpha_gamma=1.0, transparent=False)
    args.update(overrides)
    return render(**args)


class TestFlatRender:
    """Positional adapter mirroring the host front-end signature."""

    def test_golden_fixture(self):
        black = [0, 0, 0, 255]
        expected = bytes(black * 9 + [12, 12, 12, 255] + black + [12, 12, 12, 255] + black * 4)
        assert flat_render() == expected

    def test_positional_call(self):
        rgba = render(6, 3, -0.7, 0.27015, 1.0, 0.0, 0.0, 0.0, 30, 2, GRAYSCALE_FLAT,
                      0, 0, 0, 0.0, 1.0, True)
        assert len(rgba) == 6 * 3 * 4

    def test_matches_render_frame(self):
        params = RenderParameters(width=5, height=4, c=(-0.4, 0.6), zoom=1.5, x_offset=0.1,
                                  y_offset=-0.2, rotation=12.0, max_iter=40,
                                  variant=FractalVariant.TRICORN, colors=GRAYSCALE,
                                  background=(10, 20, 30), fade_black=5.0, alpha_gamma=0.7)
        rgba = flat_render(width=5, height=4, c_re=-0.4, c_im=0.6, zoom=1.5, x_off=0.1,
                           y_off=-0.2, rotation_deg=12.0, max_iter=40, fractal_type=2,
                           bg_r=10, bg_g=20, bg_b=30, fade_black=5.0, alpha_gamma=0.7)
        assert rgba == render_frame(params)

    @pytest.mark.parametrize("fractal_type", [5, 255, -1])
    def test_unknown_type_is_standard(self, fractal_type):
        assert flat_render(fractal_type=fractal_type) == flat_render(fractal_type=0)

    def test_short_colors(self):
        """Seven bytes give two stops; the partial third triple is dropped."""
        rgba = flat_render(colors_flat=bytes([0, 0, 0, 255, 255, 255, 9]))
        assert rgba == flat_render(colors_flat=bytes([0, 0, 0, 255, 255, 255]))

    def test_empty_colors_is_black(self):
        rgba = np.frombuffer(flat_render(colors_flat=b"", transparent=True), dtype=np.uint8)
        assert not rgba.any()

    def test_accepts_bytearray_and_list(self):
        assert flat_render(colors_flat=bytearray(GRAYSCALE_FLAT)) == flat_render()
        assert flat_render(colors_flat=list(GRAYSCALE_FLAT)) == flat_render()

    def test_zero_size(self):
        assert flat_render(width=0) == b""


class TestPreviewSize:
    """Preview canvas sizing."""

    def test_scales_longest_edge(self):
        assert fit_preview_size(2000, 1000) == (1000, 500)

    def test_small_export_unchanged(self):
        assert fit_preview_size(640, 480) == (640, 480)

    def test_fits_viewport(self):
        assert fit_preview_size(1600, 800, max_width=400, max_height=400) == (400, 200)
        assert fit_preview_size(800, 1600, max_width=400, max_height=400) == (200, 400)

    def test_portrait(self):
        assert fit_preview_size(1000, 4000) == (250, 1000)

    def test_invalid(self):
        with pytest.raises(ValueError):
            fit_preview_size(0, 100)


class TestFractalRenderer:
    """Configurable renderer."""

    def test_default_config(self):
        renderer = FractalRenderer()
        assert renderer.config.backend == "numba"

    @pytest.mark.parametrize("config", [
        RenderConfig(backend="opencl"),
        RenderConfig(num_processes=0),
        RenderConfig(tile_rows=0),
    ])
    def test_invalid_config(self, config):
        with pytest.raises(ValueError):
            FractalRenderer(config)

    def test_render_records_time(self):
        renderer = FractalRenderer(RenderConfig(backend="serial"))
        params = RenderParameters(width=8, height=6, max_iter=20)
        rgba = renderer.render(params)
        assert len(rgba) == 8 * 6 * 4
        assert renderer.last_render_time is not None

    def test_render_array(self):
        renderer = FractalRenderer()
        params = RenderParameters(width=8, height=6, max_iter=20)
        pixels = renderer.render_array(params)
        assert pixels.shape == (6, 8, 4)
        assert pixels.tobytes() == renderer.render(params)

    @pytest.mark.parametrize("backend", ["numba", "serial"])
    def test_warm_up(self, backend):
        renderer = FractalRenderer(RenderConfig(backend=backend))
        renderer.warm_up()
        params = RenderParameters(width=3, height=2, max_iter=10)
        assert len(renderer.render(params)) == params.pixel_count * 4

    def test_update_config(self):
        renderer = FractalRenderer()
        renderer.update_config(backend="serial", tile_rows=8)
        assert renderer.config.backend == "serial"
        with pytest.raises(ValueError):
            renderer.update_config(colour="red")


class TestFractalExplorer:
    """View state management."""

    def make_explorer(self):
        params = RenderParameters(width=8, height=8, max_iter=20)
        return FractalExplorer(params, FractalRenderer(RenderConfig(backend="serial")))

    def test_zoom_to_point(self):
        explorer = self.make_explorer()
        explorer.zoom_to_point(0, 0, zoom_factor=4.0)
        assert explorer.params.zoom == 4.0
        assert explorer.params.x_offset == pytest.approx(-1.5)
        assert explorer.params.y_offset == pytest.approx(-1.5)

    def test_zoom_out_and_back(self):
        explorer = self.make_explorer()
        explorer.zoom_out(0.5)
        assert explorer.params.zoom == 0.5
        explorer.go_back()
        assert explorer.params.zoom == 1.0
        assert explorer.history == []

    def test_go_back_without_history(self):
        explorer = self.make_explorer()
        explorer.go_back()
        assert explorer.params == explorer.initial_params

    def test_pan(self):
        explorer = self.make_explorer()
        explorer.pan(0.5, -0.25)
        assert explorer.params.x_offset == pytest.approx(1.5)
        assert explorer.params.y_offset == pytest.approx(-0.75)

    def test_rotate_wraps(self):
        explorer = self.make_explorer()
        explorer.rotate(300)
        explorer.rotate(90)
        assert explorer.params.rotation == pytest.approx(30.0)

    def test_set_variant_and_constant(self):
        explorer = self.make_explorer()
        explorer.set_variant("celtic")
        explorer.set_constant(0.285, 0.01)
        assert explorer.params.variant is FractalVariant.CELTIC
        assert explorer.params.c == (0.285, 0.01)

    def test_randomize_colors_and_reset(self):
        explorer = self.make_explorer()
        explorer.zoom_to_point(2, 3)
        explorer.randomize_colors(np.random.default_rng(3))
        colors = explorer.params.colors
        assert len(colors) == 5
        explorer.reset_view()
        assert explorer.params.zoom == 1.0
        assert explorer.params.x_offset == 0.0
        assert explorer.params.colors == colors

    def test_randomize_state(self):
        explorer = self.make_explorer()
        explorer.randomize_state(np.random.default_rng(11))
        params = explorer.params
        assert -2.0 <= params.c.re < 1.0
        assert -1.0 <= params.c.im < 1.0
        assert 0.5 <= params.zoom < 2.5
        assert 0.0 <= params.rotation < 360.0
        assert params.variant in list(FractalVariant)
        assert len(params.colors) == 5
        assert len(explorer.history) == 1

    def test_randomize_state_is_reproducible(self):
        first, second = self.make_explorer(), self.make_explorer()
        first.randomize_state(np.random.default_rng(4))
        second.randomize_state(np.random.default_rng(4))
        assert first.params == second.params

    def test_randomize_state_covers_variants(self):
        explorer = self.make_explorer()
        rng = np.random.default_rng(0)
        seen = set()
        for _ in range(100):
            explorer.randomize_state(rng)
            seen.add(explorer.params.variant)
        assert seen == set(FractalVariant)

    def test_reset_all(self):
        explorer = self.make_explorer()
        explorer.randomize_state(np.random.default_rng(2))
        explorer.params = replace(explorer.params, fade_black=40.0, transparent=True,
                                  alpha_gamma=0.5, width=16, height=12)
        explorer.reset_all()
        assert explorer.params == replace(explorer.initial_params, width=16, height=12)
        explorer.go_back()
        assert explorer.params.fade_black == 40.0

    def test_render_current(self):
        explorer = self.make_explorer()
        assert len(explorer.render_current()) == 8 * 8 * 4
        info = explorer.get_exploration_info()
        assert info["history_depth"] == 0
        assert info["parameters"]["width"] == 8
