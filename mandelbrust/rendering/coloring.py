"""
Normalisation of raw escape values into [0, 1].

This module provides plain normalisation (division by the iteration budget)
and histogram equalisation, which spreads colour evenly over however the
escape counts of a particular frame happen to cluster.
"""

import numpy as np
from typing import Optional
import logging

from ..acceleration.numba_backend import histogram_lookup_kernel
from ..core.plotting import Normalization

logger = logging.getLogger(__name__)


def normalise(raw: np.ndarray, max_iters: int) -> np.ndarray:
    """Divide raw values by the iteration budget."""
    return np.asarray(raw, dtype=np.float64) / max_iters


def pixels_per_iteration(raw: np.ndarray, max_iters: int) -> np.ndarray:
    """
    Count cells per integer bucket.

    Args:
        raw: Raw per-cell values
        max_iters: Iteration budget; buckets run 0..max_iters inclusive

    Returns:
        Integer array of length max_iters + 1
    """
    buckets = np.clip(np.floor(raw), 0, max_iters).astype(np.int64)
    return np.bincount(buckets.ravel(), minlength=max_iters + 1)


def cumulative_histogram(raw: np.ndarray, max_iters: int) -> np.ndarray:
    """Running total of pixels_per_iteration."""
    return np.cumsum(pixels_per_iteration(raw, max_iters))


def histogram_equalize(raw: np.ndarray, max_iters: int,
                       total_points: Optional[int] = None) -> np.ndarray:
    """
    Histogram-equalise raw values.

    The cumulative histogram is built completely before any cell is looked
    up in it. Each cell then interpolates between the cumulative counts of
    its bucket and the next one, using the fractional part of its value.

    Args:
        raw: Raw per-cell values
        max_iters: Iteration budget of the render
        total_points: Normalising denominator (defaults to raw.size)

    Returns:
        Array shaped like raw with values in [0, 1]
    """
    raw = np.ascontiguousarray(raw, dtype=np.float64)
    if total_points is None:
        total_points = raw.size

    cum_hist = cumulative_histogram(raw, max_iters).astype(np.float64)

    return histogram_lookup_kernel(raw, cum_hist, int(max_iters), float(total_points))


def apply_normalization(raw: np.ndarray, max_iters: int, normalization: Normalization,
                        total_points: Optional[int] = None) -> np.ndarray:
    """
    Normalise a raw grid with the chosen method.

    Args:
        raw: Raw per-cell values
        max_iters: Iteration budget of the render
        normalization: Plain or histogram normalisation
        total_points: Denominator for histogram equalisation

    Returns:
        Normalised array shaped like raw
    """
    if normalization is Normalization.PLAIN:
        return normalise(raw, max_iters)
    if normalization is Normalization.HISTOGRAM:
        return histogram_equalize(raw, max_iters, total_points)
    raise ValueError(f"Unknown normalization: {normalization}")
