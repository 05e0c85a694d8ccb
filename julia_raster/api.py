"""
Main API classes for fractal rendering.

This module provides the high-level interface: the flat ``render`` entry
point that mirrors the foreign-call signature used by display front-ends,
a configurable ``FractalRenderer`` and an interactive ``FractalExplorer``
that tracks view state between frames.
"""

from typing import Optional, Dict, Any, List, Sequence, Tuple, Union
from dataclasses import dataclass, replace
import logging
import time

import numpy as np

from .core.fractal_types import FractalVariant
from .core.math_functions import ComplexPlane
from .core.parameters import ComplexPoint, RenderParameters
from .rendering.coloring import colors_from_flat, random_palette
from .rendering.pipeline import BACKENDS, render_frame
from .acceleration.numba_backend import get_numba_accelerator

logger = logging.getLogger(__name__)

PREVIEW_MAX_ITER = 120
EXPORT_MAX_ITER = 300
MAX_PREVIEW_EDGE = 1000


def render(width: int, height: int, c_re: float, c_im: float, zoom: float,
           x_off: float, y_off: float, rotation_deg: float, max_iter: int,
           fractal_type: int, colors_flat: Union[bytes, Sequence[int]],
           bg_r: int, bg_g: int, bg_b: int, fade_black: float, alpha_gamma: float,
           transparent: bool) -> bytes:
    """
    Render a Julia-family fractal and return an RGBA pixel buffer.

    This is a thin adapter over ``render_frame`` with the positional
    signature used by host front-ends. It never raises for numeric input.

    Args:
        fractal_type: 0=standard, 1=ship, 2=tricorn, 3=celtic, 4=cosine;
            anything else renders the standard variant
        colors_flat: Up to 5 RGB triples packed sequentially (15 bytes)

    Returns:
        Row-major RGBA8 bytes of length width * height * 4
    """
    params = RenderParameters(
        width=int(width),
        height=int(height),
        c=ComplexPoint(c_re, c_im),
        zoom=zoom,
        x_offset=x_off,
        y_offset=y_off,
        rotation=rotation_deg,
        max_iter=int(max_iter),
        variant=FractalVariant.coerce(fractal_type),
        colors=tuple(colors_from_flat(colors_flat)),
        background=(bg_r, bg_g, bg_b),
        fade_black=fade_black,
        alpha_gamma=alpha_gamma,
        transparent=bool(transparent),
    )
    return render_frame(params)


def fit_preview_size(export_width: int, export_height: int, max_width: Optional[float] = None,
                     max_height: Optional[float] = None,
                     max_edge: int = MAX_PREVIEW_EDGE) -> Tuple[int, int]:
    """
    Size a preview canvas with the aspect ratio of the export resolution.

    The canvas is fitted inside ``max_width`` x ``max_height`` (the export
    size itself when not given) and then scaled down so its longest edge is
    at most ``max_edge`` pixels.
    """
    if export_width <= 0 or export_height <= 0:
        raise ValueError("Export width and height must be positive")

    max_width = export_width if max_width is None else max_width
    max_height = export_height if max_height is None else max_height

    if max_width * export_height > max_height * export_width:
        height = max_height
        width = height * export_width / export_height
    else:
        width = max_width
        height = width * export_height / export_width

    width, height = int(width), int(height)
    longest = max(width, height)
    if longest > max_edge:
        width, height = int(width * max_edge / longest), int(height * max_edge / longest)
    return max(1, width), max(1, height)


@dataclass
class RenderConfig:
    """Configuration for the rendering engine."""

    backend: str = 'numba'
    num_processes: Optional[int] = None
    tile_rows: int = 64

    def validate(self):
        """Validate configuration parameters."""
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{self.backend}'. Available: {', '.join(BACKENDS)}")

        if self.num_processes is not None and self.num_processes < 1:
            raise ValueError("num_processes must be >= 1")

        if self.tile_rows < 1:
            raise ValueError("tile_rows must be >= 1")

    def to_dict(self) -> Dict[str, Any]:
        return {'backend': self.backend, 'num_processes': self.num_processes,
                'tile_rows': self.tile_rows}


class FractalRenderer:
    """Main fractal rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize fractal renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()
        self.last_render_time: Optional[float] = None

        logger.info(f"FractalRenderer initialized: backend={self.config.backend}")

    def render(self, params: RenderParameters) -> bytes:
        """
        Render one frame.

        Args:
            params: Complete parameter set for the frame

        Returns:
            Row-major RGBA8 bytes of length width * height * 4
        """
        start_time = time.time()
        variant = FractalVariant.coerce(params.variant)
        logger.info(f"Starting render: {variant.info.label} {params.width}x{params.height}, "
                    f"max_iter={params.max_iter}")

        rgba = render_frame(params, backend=self.config.backend,
                            num_processes=self.config.num_processes,
                            tile_rows=self.config.tile_rows)

        self.last_render_time = time.time() - start_time
        logger.info(f"Render complete: {self.last_render_time:.3f}s")
        return rgba

    def warm_up(self):
        """Compile the JIT kernels used by the configured backend."""
        start_time = time.time()
        get_numba_accelerator(parallel=self.config.backend == 'numba').warm_up()
        logger.info(f"Kernels ready in {time.time() - start_time:.3f}s")

    def render_array(self, params: RenderParameters) -> np.ndarray:
        """Render one frame as a (height, width, 4) uint8 array."""
        params = params.sanitized()
        rgba = self.render(params)
        return np.frombuffer(rgba, dtype=np.uint8).reshape(params.height, params.width, 4)

    def update_config(self, **kwargs):
        """Update rendering configuration."""
        for key, value in kwargs.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)
            else:
                raise ValueError(f"Unknown configuration parameter: {key}")

        self.config.validate()


class FractalExplorer:
    """Interactive view state: pan, zoom, rotate and palette changes with history."""

    def __init__(self, initial_params: Optional[RenderParameters] = None,
                 renderer: Optional[FractalRenderer] = None):
        self.initial_params = initial_params or RenderParameters()
        self.params = self.initial_params
        self.renderer = renderer or FractalRenderer()
        self.history: List[RenderParameters] = []

    def _push(self, params: RenderParameters):
        self.history.append(self.params)
        self.params = params

    def render_current(self) -> bytes:
        """Render the current view."""
        return self.renderer.render(self.params)

    def zoom_to_point(self, x: int, y: int, zoom_factor: float = 2.0):
        """
        Recenter on a pixel of the current frame and zoom in.

        Args:
            x, y: Pixel coordinates in the current frame
            zoom_factor: Multiplier applied to the zoom level
        """
        plane = ComplexPlane.from_parameters(self.params.sanitized())
        center = plane.pixel_to_complex(x, y)
        self._push(replace(self.params, x_offset=center.re, y_offset=center.im,
                           zoom=self.params.zoom * zoom_factor))
        logger.info(f"Zoomed to ({center.re:.6g}, {center.im:.6g}) with factor {zoom_factor}")

    def zoom_out(self, zoom_factor: float = 0.5):
        """Zoom out around the current center."""
        self._push(replace(self.params, zoom=self.params.zoom * zoom_factor))
        logger.info(f"Zoomed out with factor {zoom_factor}")

    def pan(self, dx: float, dy: float):
        """Pan by a fraction of the visible window width and height."""
        params = self.params.sanitized()
        plane = ComplexPlane.from_parameters(params)
        xmin, xmax, ymin, ymax = plane.bounds
        self._push(replace(self.params,
                           x_offset=params.x_offset + dx * (xmax - xmin),
                           y_offset=params.y_offset + dy * (ymax - ymin)))

    def rotate(self, degrees: float):
        """Rotate the view about its center."""
        self._push(replace(self.params, rotation=(self.params.rotation + degrees) % 360.0))

    def set_constant(self, c_re: float, c_im: float):
        self._push(replace(self.params, c=ComplexPoint(c_re, c_im)))

    def set_variant(self, variant: Union[FractalVariant, int, str]):
        self._push(replace(self.params, variant=FractalVariant.from_name(variant)))

    @staticmethod
    def _random_colors(rng: np.random.Generator) -> Dict[str, Any]:
        palette = random_palette(rng)
        background = tuple(int(v) for v in rng.integers(0, 256, size=3))
        return {'colors': tuple(palette.colors), 'background': background}

    def randomize_colors(self, rng: Optional[np.random.Generator] = None):
        """Replace the gradient and background with random colors."""
        if rng is None:
            rng = np.random.default_rng()
        self._push(replace(self.params, **self._random_colors(rng)))

    def randomize_state(self, rng: Optional[np.random.Generator] = None):
        """
        Jump to a random constant, view, variant and color scheme.

        Draws c_re in [-2, 1), c_im in [-1, 1), zoom in [0.5, 2.5),
        rotation in [0, 360) and a uniformly chosen variant.
        """
        if rng is None:
            rng = np.random.default_rng()
        c = ComplexPoint(float(rng.uniform(-2.0, 1.0)), float(rng.uniform(-1.0, 1.0)))
        self._push(replace(self.params,
                           c=c,
                           zoom=float(rng.uniform(0.5, 2.5)),
                           rotation=float(rng.uniform(0.0, 360.0)),
                           variant=FractalVariant(int(rng.integers(0, len(FractalVariant)))),
                           **self._random_colors(rng)))
        logger.info(f"Randomized state: {self.params.variant.name.lower()} "
                    f"c=({c.re:.4f}, {c.im:.4f})")

    def go_back(self):
        """Return to the previous view."""
        if not self.history:
            logger.warning("No history available")
            return
        self.params = self.history.pop()
        logger.info("Returned to previous view")

    def reset_view(self):
        """Reset view, rotation and constant to the initial parameters, keeping colors."""
        self._push(replace(self.params, c=self.initial_params.c, zoom=self.initial_params.zoom,
                           x_offset=self.initial_params.x_offset,
                           y_offset=self.initial_params.y_offset,
                           rotation=self.initial_params.rotation))
        logger.info("Reset to default view")

    def reset_all(self):
        """Restore every setting to the initial parameters, keeping the frame size."""
        self._push(replace(self.initial_params, width=self.params.width,
                           height=self.params.height))
        logger.info("Reset all settings")

    def get_exploration_info(self) -> Dict[str, Any]:
        """Get a summary of the current view."""
        return {
            'parameters': self.params.to_dict(),
            'history_depth': len(self.history),
            'last_render_time': self.renderer.last_render_time,
        }
