"""
Numba JIT compilation backend for per-pixel rendering.

This module provides the compiled render loops: a parallel kernel that
spreads rows across threads with ``prange`` and a serial band kernel used
inside worker processes. Both call the same per-row routine, so their
output is byte-identical.
"""

import numpy as np
import numba
from numba import njit, prange
from typing import Tuple
import logging

from ..core.math_functions import ComplexPlane, escape_time_kernel, map_pixel
from ..core.parameters import RenderParameters
from ..rendering.coloring import composite_pixel

logger = logging.getLogger(__name__)


@njit(cache=True)
def shade_row(out, out_row, y, width, height, window, variant, c_re, c_im, max_iter,
              lut, fade_black, alpha_gamma, bg_r, bg_g, bg_b, transparent):
    """Render image row ``y`` into ``out[out_row]``."""
    for x in range(width):
        z_re, z_im = map_pixel(x, y, width, height, window)
        n = escape_time_kernel(variant, z_re, z_im, c_re, c_im, max_iter)
        r, g, b, a = composite_pixel(n, max_iter, lut, fade_black, alpha_gamma,
                                     bg_r, bg_g, bg_b, transparent)
        out[out_row, x, 0] = r
        out[out_row, x, 1] = g
        out[out_row, x, 2] = b
        out[out_row, x, 3] = a


@njit(parallel=True, cache=True)
def render_rgba_kernel(width, height, window, variant, c_re, c_im, max_iter,
                       lut, fade_black, alpha_gamma, bg_r, bg_g, bg_b, transparent):
    """
    JIT-compiled parallel render of a full frame.

    Returns:
        uint8 array of shape (height, width, 4)
    """
    rgba = np.zeros((height, width, 4), dtype=np.uint8)
    for y in prange(height):
        shade_row(rgba, y, y, width, height, window, variant, c_re, c_im, max_iter,
                  lut, fade_black, alpha_gamma, bg_r, bg_g, bg_b, transparent)
    return rgba


@njit(cache=True)
def render_band_kernel(y_start, y_end, width, height, window, variant, c_re, c_im, max_iter,
                       lut, fade_black, alpha_gamma, bg_r, bg_g, bg_b, transparent):
    """
    JIT-compiled serial render of rows [y_start, y_end).

    Returns:
        uint8 array of shape (y_end - y_start, width, 4)
    """
    band = np.zeros((y_end - y_start, width, 4), dtype=np.uint8)
    for y in range(y_start, y_end):
        shade_row(band, y - y_start, y, width, height, window, variant, c_re, c_im, max_iter,
                  lut, fade_black, alpha_gamma, bg_r, bg_g, bg_b, transparent)
    return band


def kernel_arguments(params: RenderParameters, plane: ComplexPlane, lut: np.ndarray) -> Tuple:
    """
    Flatten sanitized parameters into the positional arguments shared by the
    render kernels (everything after the band bounds).
    """
    bg_r, bg_g, bg_b = params.background
    return (
        int(params.width),
        int(params.height),
        plane.window,
        int(params.variant),
        float(params.c.re),
        float(params.c.im),
        int(params.max_iter),
        np.ascontiguousarray(lut, dtype=np.uint8),
        float(params.fade_black),
        float(params.alpha_gamma),
        int(bg_r),
        int(bg_g),
        int(bg_b),
        bool(params.transparent),
    )


class NumbaAccelerator:
    """Numba-accelerated rendering backend."""

    def __init__(self, parallel: bool = True):
        """
        Initialize Numba accelerator.

        Args:
            parallel: Spread rows across threads; otherwise render serially
        """
        self.parallel = parallel
        logger.debug(f"Numba {numba.__version__} accelerator (parallel={parallel}, "
                     f"threads={numba.get_num_threads()})")

    def render(self, params: RenderParameters, plane: ComplexPlane, lut: np.ndarray) -> np.ndarray:
        """
        Render a full frame.

        Args:
            params: Sanitized render parameters with positive dimensions
            plane: View window for ``params``
            lut: Gradient lookup table

        Returns:
            uint8 array of shape (height, width, 4)
        """
        args = kernel_arguments(params, plane, lut)
        if self.parallel:
            return render_rgba_kernel(*args)
        return render_band_kernel(0, params.height, *args)

    def warm_up(self) -> None:
        """Compile the kernels on a tiny frame."""
        params = RenderParameters(width=2, height=2, max_iter=2).sanitized()
        plane = ComplexPlane.from_parameters(params)
        lut = np.zeros((1024, 3), dtype=np.uint8)
        self.render(params, plane, lut)


# Global accelerator instances
_numba_accelerators = {}


def get_numba_accelerator(parallel: bool = True) -> NumbaAccelerator:
    """Get the shared Numba accelerator instance."""
    accelerator = _numba_accelerators.get(parallel)
    if accelerator is None:
        accelerator = NumbaAccelerator(parallel=parallel)
        _numba_accelerators[parallel] = accelerator
    return accelerator
