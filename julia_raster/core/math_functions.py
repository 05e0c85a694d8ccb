"""
Core mathematical functions for fractal iteration.

This module provides the escape-time kernels for every fractal variant and
the mapping from pixel indices to rotated points in the complex plane. The
kernels are scalar, side-effect free and JIT-compiled with Numba so the
render loops can call them per pixel from any thread or process.
"""

import numpy as np
from numba import njit
from typing import Tuple
import logging

from .fractal_types import FractalVariant
from .parameters import ComplexPoint, RenderParameters

logger = logging.getLogger(__name__)

ESCAPE_RADIUS_SQ = 4.0
COSINE_ESCAPE_RADIUS_SQ = 100.0

# Window height in the complex plane at zoom 1.
BASE_SPAN = 3.0

_BURNING_SHIP = int(FractalVariant.BURNING_SHIP)
_TRICORN = int(FractalVariant.TRICORN)
_CELTIC = int(FractalVariant.CELTIC)
_COSINE = int(FractalVariant.COSINE)


@njit(cache=True)
def iterate_standard(z_re, z_im, c_re, c_im, max_iter):
    """z = z^2 + c"""
    for n in range(max_iter):
        zr_sq = z_re * z_re
        zi_sq = z_im * z_im
        if zr_sq + zi_sq > ESCAPE_RADIUS_SQ:
            return n
        z_im = 2.0 * z_re * z_im + c_im
        z_re = zr_sq - zi_sq + c_re
    return max_iter


@njit(cache=True)
def iterate_burning_ship(z_re, z_im, c_re, c_im, max_iter):
    """z = (|Re(z)| + i|Im(z)|)^2 + c"""
    for n in range(max_iter):
        if z_re * z_re + z_im * z_im > ESCAPE_RADIUS_SQ:
            return n
        zr_abs = abs(z_re)
        zi_abs = abs(z_im)
        z_re = zr_abs * zr_abs - zi_abs * zi_abs + c_re
        z_im = 2.0 * zr_abs * zi_abs + c_im
    return max_iter


@njit(cache=True)
def iterate_tricorn(z_re, z_im, c_re, c_im, max_iter):
    """z = conj(z)^2 + c"""
    for n in range(max_iter):
        zr_sq = z_re * z_re
        zi_sq = z_im * z_im
        if zr_sq + zi_sq > ESCAPE_RADIUS_SQ:
            return n
        z_im = -2.0 * z_re * z_im + c_im
        z_re = zr_sq - zi_sq + c_re
    return max_iter


@njit(cache=True)
def iterate_celtic(z_re, z_im, c_re, c_im, max_iter):
    """z = |Re(z^2)| + i Im(z^2) + c, with |Re z| folded in before squaring."""
    for n in range(max_iter):
        zi_sq = z_im * z_im
        if z_re * z_re + zi_sq > ESCAPE_RADIUS_SQ:
            return n
        zr_abs = abs(z_re)
        z_re_next = zr_abs * zr_abs - zi_sq + c_re
        z_im = 2.0 * zr_abs * z_im + c_im
        z_re = z_re_next
    return max_iter


@njit(cache=True)
def iterate_cosine(z_re, z_im, c_re, c_im, max_iter):
    """
    z = cos(z) + c, expanded as cos(a)cosh(b) - i sin(a)sinh(b).

    An orbit whose magnitude turns into NaN is reported as never escaping.
    """
    for n in range(max_iter):
        r2 = z_re * z_re + z_im * z_im
        if r2 != r2:
            return max_iter
        if r2 > COSINE_ESCAPE_RADIUS_SQ:
            return n
        z_re_next = np.cos(z_re) * np.cosh(z_im) + c_re
        z_im = -np.sin(z_re) * np.sinh(z_im) + c_im
        z_re = z_re_next
    return max_iter


@njit(cache=True)
def escape_time_kernel(variant, z_re, z_im, c_re, c_im, max_iter):
    """
    Dispatch a variant code to its kernel.

    Codes outside the known range use the standard rule.
    """
    if variant == _BURNING_SHIP:
        return iterate_burning_ship(z_re, z_im, c_re, c_im, max_iter)
    if variant == _TRICORN:
        return iterate_tricorn(z_re, z_im, c_re, c_im, max_iter)
    if variant == _CELTIC:
        return iterate_celtic(z_re, z_im, c_re, c_im, max_iter)
    if variant == _COSINE:
        return iterate_cosine(z_re, z_im, c_re, c_im, max_iter)
    return iterate_standard(z_re, z_im, c_re, c_im, max_iter)


def escape_time(variant, z0: Tuple[float, float], c: Tuple[float, float], max_iter: int) -> int:
    """
    Count iterations before the orbit of ``z0`` escapes.

    Args:
        variant: FractalVariant or wire code (unknown codes use STANDARD)
        z0: Starting point (re, im)
        c: Fixed Julia constant (re, im)
        max_iter: Iteration cap

    Returns:
        Iteration count in [0, max_iter]; max_iter means the orbit stayed bounded
    """
    variant = FractalVariant.coerce(variant)
    return int(escape_time_kernel(int(variant), float(z0[0]), float(z0[1]),
                                  float(c[0]), float(c[1]), max(0, int(max_iter))))


@njit(cache=True)
def map_pixel(px, py, width, height, window):
    """
    Map a pixel index to its rotated starting point.

    ``window`` is the tuple produced by ``ComplexPlane.window``:
    (xmin, ymin, x_span, y_span, center_x, center_y, cos_t, sin_t).
    """
    real_base = window[0] + (px / width) * window[2]
    imag_base = window[1] + (py / height) * window[3]
    dx = real_base - window[4]
    dy = imag_base - window[5]
    z_re = dx * window[6] - dy * window[7] + window[4]
    z_im = dx * window[7] + dy * window[6] + window[5]
    return z_re, z_im


class ComplexPlane:
    """Visible region of the complex plane for a given zoom, pan and rotation."""

    def __init__(self, width: int, height: int, zoom: float = 1.0,
                 x_offset: float = 0.0, y_offset: float = 0.0, rotation: float = 0.0):
        """
        Initialize the view window.

        Args:
            width, height: Image resolution in pixels
            zoom: Magnification; the window is 3/zoom units tall, mirrored when negative
            x_offset, y_offset: Window center
            rotation: Rotation about the window center, in degrees
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")
        if zoom == 0 or not np.isfinite(zoom):
            raise ValueError("zoom must be finite and non-zero")

        self.width = width
        self.height = height
        self.rotation = rotation

        aspect = width / height
        x_range = BASE_SPAN * aspect / zoom
        y_range = BASE_SPAN / zoom

        self.xmin = x_offset - x_range / 2.0
        self.xmax = x_offset + x_range / 2.0
        self.ymin = y_offset - y_range / 2.0
        self.ymax = y_offset + y_range / 2.0
        self.center_x = (self.xmin + self.xmax) / 2.0
        self.center_y = (self.ymin + self.ymax) / 2.0

        theta = rotation * np.pi / 180.0
        self.cos_t = float(np.cos(theta))
        self.sin_t = float(np.sin(theta))

    @classmethod
    def from_parameters(cls, params: RenderParameters) -> 'ComplexPlane':
        return cls(params.width, params.height, params.zoom,
                   params.x_offset, params.y_offset, params.rotation)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Unrotated window bounds (xmin, xmax, ymin, ymax)."""
        return (self.xmin, self.xmax, self.ymin, self.ymax)

    @property
    def window(self) -> Tuple[float, ...]:
        """Packed window description consumed by the JIT kernels."""
        return (self.xmin, self.ymin, self.xmax - self.xmin, self.ymax - self.ymin,
                self.center_x, self.center_y, self.cos_t, self.sin_t)

    def pixel_to_complex(self, px: int, py: int) -> ComplexPoint:
        """Convert pixel coordinates to the rotated complex starting point."""
        z_re, z_im = map_pixel(px, py, self.width, self.height, self.window)
        return ComplexPoint(float(z_re), float(z_im))

    def coordinate_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Create (real, imag) arrays of shape (height, width) for the whole image.

        Uses the same arithmetic as ``map_pixel``.
        """
        xmin, ymin, x_span, y_span, cx, cy, cos_t, sin_t = self.window
        px = np.arange(self.width, dtype=np.float64)
        py = np.arange(self.height, dtype=np.float64)
        real_base = xmin + (px / self.width) * x_span
        imag_base = ymin + (py / self.height) * y_span
        x, y = np.meshgrid(real_base, imag_base)
        dx = x - cx
        dy = y - cy
        return dx * cos_t - dy * sin_t + cx, dx * sin_t + dy * cos_t + cy
