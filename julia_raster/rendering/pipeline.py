"""
Frame rendering pipeline.

``render_frame`` is the core data-in/data-out operation: it turns a
parameter set into a flat row-major RGBA8 buffer.
"""

import numpy as np
from typing import Optional
import logging

from ..core.math_functions import ComplexPlane
from ..core.parameters import RenderParameters
from ..acceleration.numba_backend import get_numba_accelerator
from ..acceleration.multiprocessing import MultiprocessingAccelerator
from .coloring import build_gradient_lut

logger = logging.getLogger(__name__)

BACKENDS = ('numba', 'serial', 'multiprocessing')


def render_pixels(params: RenderParameters, backend: str = 'numba',
                  num_processes: Optional[int] = None, tile_rows: int = 64) -> np.ndarray:
    """
    Render a frame into an RGBA array.

    Args:
        params: Render parameters; sanitized before use
        backend: One of BACKENDS
        num_processes: Worker count for the multiprocessing backend
        tile_rows: Rows per band for the multiprocessing backend

    Returns:
        uint8 array of shape (height, width, 4)
    """
    if backend not in BACKENDS:
        raise ValueError(f"Unknown backend '{backend}'. Available: {', '.join(BACKENDS)}")

    params = params.sanitized()
    if params.pixel_count == 0:
        return np.zeros((params.height, params.width, 4), dtype=np.uint8)

    lut = build_gradient_lut(params.colors)
    plane = ComplexPlane.from_parameters(params)

    if backend == 'multiprocessing':
        accelerator = MultiprocessingAccelerator(num_processes, tile_rows)
    else:
        accelerator = get_numba_accelerator(parallel=backend == 'numba')

    logger.debug(f"Rendering {params.width}x{params.height} {params.variant.name.lower()} "
                 f"(max_iter={params.max_iter}) with {backend} backend")
    return accelerator.render(params, plane, lut)


def render_frame(params: RenderParameters, backend: str = 'numba',
                 num_processes: Optional[int] = None, tile_rows: int = 64) -> bytes:
    """
    Render a frame into a flat RGBA8 buffer.

    The buffer is row-major with a top-left origin and a stride of
    ``width * 4`` bytes; its length is always ``width * height * 4``.
    """
    return render_pixels(params, backend, num_processes, tile_rows).tobytes()
