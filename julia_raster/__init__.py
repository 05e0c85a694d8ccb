"""
Escape-time fractal rasterizer.

This library renders Julia-family escape-time fractals (standard, Burning
Ship, Tricorn, Celtic and Cosine variants) into flat RGBA8 buffers for
display front-ends, with a gradient lookup table, zoom/pan/rotation and
alpha compositing.

Example usage:
    >>> from julia_raster import render
    >>> rgba = render(320, 240, -0.8, 0.156, 1.0, 0.0, 0.0, 0.0, 120, 0,
    ...               bytes([0, 0, 0, 0, 0, 136, 0, 0, 255, 0, 136, 255, 255, 255, 255]),
    ...               0, 0, 0, 0.0, 1.0, False)
    >>> len(rgba)
    307200
"""

__version__ = "1.0.0"
__author__ = "Julia Raster Team"

from julia_raster.core.fractal_types import FractalVariant, JULIA_PRESETS
from julia_raster.core.parameters import ComplexPoint, RenderParameters
from julia_raster.core.math_functions import ComplexPlane, escape_time
from julia_raster.rendering.coloring import Palette, build_gradient_lut, composite
from julia_raster.rendering.pipeline import render_frame
from julia_raster.io.config import ConfigManager

# Main API
from julia_raster.api import render, FractalRenderer, FractalExplorer, RenderConfig

__all__ = [
    "render",
    "render_frame",
    "FractalRenderer",
    "FractalExplorer",
    "RenderConfig",
    "RenderParameters",
    "ComplexPoint",
    "FractalVariant",
    "JULIA_PRESETS",
    "ComplexPlane",
    "escape_time",
    "Palette",
    "build_gradient_lut",
    "composite",
    "ConfigManager",
]
