"""
Multiprocessing backend for parallel grid evaluation.

This module splits the pixel grid into column tiles and evaluates them in a
process pool. Tiles carry global pixel coordinates, so the assembled grid is
identical to a single-pass evaluation regardless of tile size or completion
order.
"""

import numpy as np
from typing import List, Optional
import multiprocessing as mp
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
import logging
import time

from ..core.math_functions import Interval
from ..core.plotting import EscapeMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileSpec:
    """Specification for a single tile in parallel rendering."""
    tile_id: int
    x_start: int
    x_end: int
    y_start: int
    y_end: int

    @property
    def width(self) -> int:
        return self.x_end - self.x_start

    @property
    def height(self) -> int:
        return self.y_end - self.y_start


@dataclass
class TileResult:
    """Result from processing a single tile."""
    tile_id: int
    values: np.ndarray
    x_start: int
    y_start: int
    processing_time: float


@dataclass(frozen=True)
class GridJob:
    """Immutable per-render parameters shipped to every worker."""
    x_range: Interval
    y_range: Interval
    width: int
    height: int
    max_iters: int
    bailout: float
    mode: EscapeMode


def create_tile_grid(width: int, height: int, tile_size: int = 64) -> List[TileSpec]:
    """
    Split the grid into full-height column strips.

    Args:
        width: Total grid width
        height: Total grid height
        tile_size: Columns per tile

    Returns:
        List of TileSpec objects
    """
    if tile_size < 1:
        raise ValueError("tile_size must be >= 1")

    tiles = []
    for tile_id, x in enumerate(range(0, width, tile_size)):
        tiles.append(TileSpec(
            tile_id=tile_id,
            x_start=x,
            x_end=min(x + tile_size, width),
            y_start=0,
            y_end=height,
        ))

    logger.debug(f"Created {len(tiles)} tiles of {tile_size} columns")
    return tiles


def process_tile(job: GridJob, tile: TileSpec) -> TileResult:
    """
    Evaluate a single tile in a worker process.

    Args:
        job: Render parameters
        tile: Tile to evaluate

    Returns:
        TileResult object
    """
    from .numba_backend import get_numba_accelerator

    start_time = time.time()
    accelerator = get_numba_accelerator(parallel=False)
    values = accelerator.evaluate_tile(
        job.x_range, job.y_range, job.width, job.height,
        (tile.x_start, tile.x_end), (tile.y_start, tile.y_end),
        job.max_iters, job.bailout, job.mode,
    )
    processing_time = time.time() - start_time
    logger.debug(f"Tile {tile.tile_id} ({tile.width}x{tile.height}) took {processing_time:.3f}s")

    return TileResult(
        tile_id=tile.tile_id,
        values=values,
        x_start=tile.x_start,
        y_start=tile.y_start,
        processing_time=processing_time,
    )


def assemble_tiles(tile_results: List[TileResult], width: int, height: int) -> np.ndarray:
    """
    Assemble tile results into the complete grid.

    Args:
        tile_results: List of TileResult objects
        width: Total grid width
        height: Total grid height

    Returns:
        Array of shape (width, height) indexed [x, y]
    """
    grid = np.empty((width, height), dtype=np.float64)
    for result in tile_results:
        tile_width, tile_height = result.values.shape
        grid[result.x_start:result.x_start + tile_width,
             result.y_start:result.y_start + tile_height] = result.values
    return grid


class MultiprocessingAccelerator:
    """Multiprocessing-based parallel grid evaluation."""

    def __init__(self, num_processes: Optional[int] = None, tile_size: int = 64):
        """
        Initialize multiprocessing accelerator.

        Args:
            num_processes: Number of worker processes (None for CPU count)
            tile_size: Columns per tile
        """
        if num_processes is None:
            self.num_processes = get_optimal_process_count()
        else:
            self.num_processes = max(1, num_processes)

        self.tile_size = tile_size
        logger.info(f"Multiprocessing accelerator: {self.num_processes} processes, "
                    f"{tile_size}-column tiles")

    def evaluate_grid(self, x_range: Interval, y_range: Interval, width: int, height: int,
                      max_iters: int, bailout: float, mode: EscapeMode) -> np.ndarray:
        """
        Evaluate the grid with tile-based parallel processing.

        A failing tile aborts the whole evaluation.

        Returns:
            Array of shape (width, height) indexed [x, y]
        """
        start_time = time.time()

        job = GridJob(x_range, y_range, width, height, max_iters, bailout, mode)
        tiles = create_tile_grid(width, height, self.tile_size)

        logger.info(f"Processing {len(tiles)} tiles with {self.num_processes} processes")

        tile_results = []
        # fork is unsafe once numba's threading layer has started
        context = mp.get_context('spawn')
        with ProcessPoolExecutor(max_workers=self.num_processes, mp_context=context) as executor:
            futures = {executor.submit(process_tile, job, tile): tile for tile in tiles}

            for future in as_completed(futures):
                tile_results.append(future.result())

                completed = len(tile_results)
                if completed % max(1, len(tiles) // 10) == 0:
                    progress = (completed / len(tiles)) * 100
                    logger.debug(f"Completed {completed}/{len(tiles)} tiles ({progress:.1f}%)")

        grid = assemble_tiles(tile_results, width, height)

        total_time = time.time() - start_time
        total_processing_time = sum(result.processing_time for result in tile_results)
        logger.info(f"Parallel evaluation complete: {total_time:.2f}s total, "
                    f"{total_processing_time:.2f}s processing time")

        return grid


def get_optimal_process_count() -> int:
    """Get the number of worker processes, leaving one core for the system."""
    return max(1, mp.cpu_count() - 1)
