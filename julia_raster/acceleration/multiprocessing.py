"""
Multiprocessing backend for parallel rendering.

This module splits a frame into horizontal bands of rows and renders them
in a process pool. Every pixel depends only on the shared, read-only
parameters and lookup table, so bands need no coordination beyond being
reassembled in row order.
"""

import numpy as np
from typing import List, Optional, Tuple
import multiprocessing as mp
import logging
import time
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed

from ..core.math_functions import ComplexPlane
from ..core.parameters import RenderParameters
from .numba_backend import kernel_arguments, render_band_kernel

logger = logging.getLogger(__name__)


@dataclass
class TileSpec:
    """A band of rows rendered by one worker."""
    tile_id: int
    y_start: int
    y_end: int
    width: int

    @property
    def height(self) -> int:
        return self.y_end - self.y_start


@dataclass
class TileResult:
    """Result from rendering a single band."""
    tile_id: int
    y_start: int
    pixels: np.ndarray
    processing_time: float


def create_tile_grid(width: int, height: int, tile_rows: int = 64) -> List[TileSpec]:
    """
    Split an image into bands of whole rows.

    Args:
        width: Total image width
        height: Total image height
        tile_rows: Rows per band; the last band may be shorter

    Returns:
        List of TileSpec objects covering every row exactly once
    """
    if tile_rows <= 0:
        raise ValueError("tile_rows must be positive")

    tiles = []
    for tile_id, y in enumerate(range(0, height, tile_rows)):
        tiles.append(TileSpec(tile_id=tile_id, y_start=y,
                              y_end=min(y + tile_rows, height), width=width))

    logger.debug(f"Created {len(tiles)} bands of up to {tile_rows} rows")
    return tiles


def process_tile(args: Tuple) -> TileResult:
    """
    Render a single band in a worker process.

    Args:
        args: Tuple of (tile_spec, kernel_args)

    Returns:
        TileResult object
    """
    tile_spec, kernel_args = args
    start_time = time.time()
    pixels = render_band_kernel(tile_spec.y_start, tile_spec.y_end, *kernel_args)
    return TileResult(
        tile_id=tile_spec.tile_id,
        y_start=tile_spec.y_start,
        pixels=pixels,
        processing_time=time.time() - start_time,
    )


def assemble_tiles(tile_results: List[TileResult], width: int, height: int) -> np.ndarray:
    """
    Assemble band results into a complete RGBA image.

    Returns:
        uint8 array of shape (height, width, 4)
    """
    rgba = np.zeros((height, width, 4), dtype=np.uint8)
    for result in tile_results:
        rgba[result.y_start:result.y_start + result.pixels.shape[0]] = result.pixels
    return rgba


class MultiprocessingAccelerator:
    """Band-parallel rendering on a process pool."""

    def __init__(self, num_processes: Optional[int] = None, tile_rows: int = 64):
        """
        Initialize multiprocessing accelerator.

        Args:
            num_processes: Worker count (defaults to the CPU count)
            tile_rows: Rows per band
        """
        self.num_processes = num_processes or get_optimal_process_count()
        self.tile_rows = tile_rows

    def render(self, params: RenderParameters, plane: ComplexPlane, lut: np.ndarray) -> np.ndarray:
        """
        Render a full frame across worker processes.

        Args:
            params: Sanitized render parameters with positive dimensions
            plane: View window for ``params``
            lut: Gradient lookup table

        Returns:
            uint8 array of shape (height, width, 4)
        """
        tiles = create_tile_grid(params.width, params.height, self.tile_rows)
        kernel_args = kernel_arguments(params, plane, lut)

        start_time = time.time()
        results = []
        with ProcessPoolExecutor(max_workers=self.num_processes) as executor:
            futures = [executor.submit(process_tile, (tile, kernel_args)) for tile in tiles]
            for future in as_completed(futures):
                results.append(future.result())

        worker_time = sum(result.processing_time for result in results)
        logger.info(f"Rendered {len(tiles)} bands on {self.num_processes} processes in "
                    f"{time.time() - start_time:.3f}s (worker time {worker_time:.3f}s)")
        return assemble_tiles(results, params.width, params.height)


def get_optimal_process_count() -> int:
    """Get the number of worker processes to use by default."""
    return max(1, mp.cpu_count())
