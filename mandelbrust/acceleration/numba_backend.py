"""
Numba JIT compilation backend for escape-time grid evaluation.

The kernels here repeat the arithmetic of core.math_functions operation for
operation, so a JIT-evaluated grid is bit-identical to the pure-Python one.
"""

import numpy as np
from typing import Tuple
import logging
import math

import numba
from numba import njit, prange

from ..core.math_functions import Complex, EscapeResult, Interval
from ..core.plotting import EscapeMode

logger = logging.getLogger(__name__)


@njit(cache=True)
def escape_time_kernel(c_re, c_im, z0_re, z0_im, bailout, max_iters):
    """
    JIT-compiled single point escape-time iteration.

    Returns:
        Tuple of (count, final_real, final_imag)
    """
    if z0_re * z0_re + z0_im * z0_im > bailout:
        return 0, z0_re, z0_im

    bailout_sq = bailout ** 2
    zr = z0_re
    zi = z0_im
    for iteration in range(1, max_iters + 1):
        zr, zi = (zr - zi) * (zr + zi) + c_re, 2.0 * zr * zi + c_im
        if zr * zr + zi * zi > bailout_sq:
            return iteration, zr, zi

    return max_iters, zr, zi


@njit(cache=True)
def post_process_kernel(count, final_re, final_im, max_iters, smooth):
    """Discrete or smooth escape value for one cell."""
    if not smooth:
        return float(count)
    if count < max_iters:
        nu = math.log2(math.log2(final_re * final_re + final_im * final_im) / 2.0)
        return (count + 1) - nu
    return float(max_iters)


@njit(cache=True)
def escape_column(tile, i, x_lower, x_upper, y_lower, y_upper, width, height,
                  x_start, y_start, max_iters, bailout, smooth):
    """Fill column i of a tile whose first pixel is (x_start, y_start)."""
    c_re = x_lower + (x_upper - x_lower) * ((x_start + i) / width)
    for j in range(tile.shape[1]):
        c_im = y_lower + (y_upper - y_lower) * ((y_start + j) / height)
        count, zr, zi = escape_time_kernel(c_re, c_im, 0.0, 0.0, bailout, max_iters)
        tile[i, j] = post_process_kernel(count, zr, zi, max_iters, smooth)


@njit(parallel=True, cache=True)
def escape_tile_parallel(x_lower, x_upper, y_lower, y_upper, width, height,
                         x_start, x_end, y_start, y_end, max_iters, bailout, smooth):
    """
    Evaluate the pixels [x_start, x_end) x [y_start, y_end) of a width x height grid.

    Pixel coordinates are global, so any tiling reproduces the full grid.
    """
    tile = np.empty((x_end - x_start, y_end - y_start), dtype=np.float64)
    for i in prange(x_end - x_start):
        escape_column(tile, i, x_lower, x_upper, y_lower, y_upper, width, height,
                      x_start, y_start, max_iters, bailout, smooth)
    return tile


@njit(cache=True)
def escape_tile_serial(x_lower, x_upper, y_lower, y_upper, width, height,
                       x_start, x_end, y_start, y_end, max_iters, bailout, smooth):
    """Single-threaded twin of escape_tile_parallel, used inside worker processes."""
    tile = np.empty((x_end - x_start, y_end - y_start), dtype=np.float64)
    for i in range(x_end - x_start):
        escape_column(tile, i, x_lower, x_upper, y_lower, y_upper, width, height,
                      x_start, y_start, max_iters, bailout, smooth)
    return tile


@njit(parallel=True, cache=True)
def histogram_lookup_kernel(raw, cum_hist, max_iters, total_points):
    """
    Map raw values through a completed cumulative histogram.

    Args:
        raw: C-contiguous float64 array of raw values
        cum_hist: Cumulative histogram of length max_iters + 1 (float64)
        max_iters: Last bucket index
        total_points: Normalising denominator

    Returns:
        Array shaped like raw with values in [0, 1]
    """
    flat = raw.ravel()
    out = np.empty(flat.size, dtype=np.float64)
    for i in prange(flat.size):
        v = flat[i]
        floor_v = math.floor(v)
        if floor_v >= max_iters:
            out[i] = cum_hist[max_iters] / total_points
        elif floor_v < 0:
            out[i] = cum_hist[0] / total_points
        else:
            k = int(floor_v)
            lower = cum_hist[k]
            upper = cum_hist[k + 1]
            out[i] = (lower + (upper - lower) * (v - floor_v)) / total_points
    return out.reshape(raw.shape)


class NumbaAccelerator:
    """Numba-accelerated escape-time computation backend."""

    def __init__(self, parallel: bool = True):
        """
        Initialize Numba accelerator.

        Args:
            parallel: Use the prange kernel; the serial kernel otherwise
        """
        self.parallel = parallel
        self.num_threads = numba.get_num_threads() if parallel else 1

    def escape_time(self, c: Complex, z0: Complex, bailout: float, max_iters: int) -> EscapeResult:
        """JIT twin of core.math_functions.escape_time."""
        count, zr, zi = escape_time_kernel(float(c.re), float(c.im), float(z0.re), float(z0.im),
                                           float(bailout), int(max_iters))
        return EscapeResult(int(count), Complex(zr, zi))

    def evaluate_grid(self, x_range: Interval, y_range: Interval, width: int, height: int,
                      max_iters: int, bailout: float, mode: EscapeMode) -> np.ndarray:
        """
        Evaluate the full grid.

        Args:
            x_range, y_range: Viewport intervals
            width, height: Grid resolution
            max_iters: Iteration budget
            bailout: Bailout radius
            mode: Escape mode, dispatched once for the whole grid

        Returns:
            Array of shape (width, height) indexed [x, y]
        """
        return self.evaluate_tile(x_range, y_range, width, height,
                                  (0, width), (0, height), max_iters, bailout, mode)

    def evaluate_tile(self, x_range: Interval, y_range: Interval, width: int, height: int,
                      x_span: Tuple[int, int], y_span: Tuple[int, int],
                      max_iters: int, bailout: float, mode: EscapeMode) -> np.ndarray:
        """Evaluate a rectangular tile of the grid using global pixel coordinates."""
        kernel = escape_tile_parallel if self.parallel else escape_tile_serial
        return kernel(
            float(x_range.lower), float(x_range.upper),
            float(y_range.lower), float(y_range.upper),
            int(width), int(height),
            int(x_span[0]), int(x_span[1]), int(y_span[0]), int(y_span[1]),
            int(max_iters), float(bailout), mode is EscapeMode.SMOOTH,
        )


# Global accelerator instances
_numba_accelerators = {}


def get_numba_accelerator(parallel: bool = True) -> NumbaAccelerator:
    """Get the shared Numba accelerator instance."""
    if parallel not in _numba_accelerators:
        _numba_accelerators[parallel] = NumbaAccelerator(parallel)
        logger.info(f"Numba {numba.__version__} accelerator ready "
                    f"({_numba_accelerators[parallel].num_threads} threads)")
    return _numba_accelerators[parallel]
