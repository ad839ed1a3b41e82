"""
Reference grid evaluation in pure Python.

Every cell is evaluated independently; the JIT and multiprocessing backends
must reproduce this output exactly.
"""

import numpy as np
from typing import Optional
import logging

from .math_functions import Complex, Interval, escape_time, pixel_to_plane
from .plotting import PostProcessor, discrete_value

logger = logging.getLogger(__name__)


def evaluate_grid(x_range: Interval, y_range: Interval, width: int, height: int,
                  max_iters: int, bailout: float,
                  post_fn: Optional[PostProcessor] = None) -> np.ndarray:
    """
    Evaluate the escape-time map over every pixel.

    Args:
        x_range: Real axis interval
        y_range: Imaginary axis interval
        width, height: Grid resolution in pixels
        max_iters: Iteration budget
        bailout: Bailout radius
        post_fn: Converts (count, final_iterate) into the stored value;
            discrete counts if omitted

    Returns:
        Array of shape (width, height) indexed [x, y]
    """
    if post_fn is None:
        post_fn = discrete_value

    grid = np.empty((width, height), dtype=np.float64)
    z0 = Complex.id()

    for x in range(width):
        for y in range(height):
            c = pixel_to_plane(x, y, width, height, x_range, y_range)
            count, final = escape_time(c, z0, bailout, max_iters)
            grid[x, y] = post_fn(count, final)

    logger.debug(f"Evaluated {width}x{height} grid in pure Python")
    return grid
