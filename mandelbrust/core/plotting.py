"""
Plotting algorithm definitions and escape-count post-processing.

A plotting algorithm is a pair of choices: how a raw EscapeResult becomes a
number (discrete or smooth escape count) and how the resulting grid is
normalised into [0, 1] (plain division or histogram equalisation).
"""

from enum import Enum
from typing import Callable, Dict, Tuple
import logging
import math

from .math_functions import Complex

logger = logging.getLogger(__name__)

PostProcessor = Callable[[int, Complex], float]


class EscapeMode(Enum):
    """How a raw escape result is turned into a value."""
    DISCRETE = 'discrete'
    SMOOTH = 'smooth'


class Normalization(Enum):
    """How raw values are mapped into [0, 1]."""
    PLAIN = 'plain'
    HISTOGRAM = 'histogram'


class PlottingAlgorithm(Enum):
    """Named combinations of escape mode and normalisation."""
    VANILLA = 'vanilla'
    SMOOTH = 'smooth'
    HISTOGRAM = 'histogram'
    SMOOTH_HISTOGRAM = 'smooth-histogram'

    @property
    def mode(self) -> EscapeMode:
        return _ALGORITHMS[self][0]

    @property
    def normalization(self) -> Normalization:
        return _ALGORITHMS[self][1]


_ALGORITHMS: Dict[PlottingAlgorithm, Tuple[EscapeMode, Normalization]] = {
    PlottingAlgorithm.VANILLA: (EscapeMode.DISCRETE, Normalization.PLAIN),
    PlottingAlgorithm.SMOOTH: (EscapeMode.SMOOTH, Normalization.PLAIN),
    PlottingAlgorithm.HISTOGRAM: (EscapeMode.DISCRETE, Normalization.HISTOGRAM),
    PlottingAlgorithm.SMOOTH_HISTOGRAM: (EscapeMode.SMOOTH, Normalization.HISTOGRAM),
}


class Resolution(Enum):
    """Output resolution presets."""
    LOW = 'low'
    MED = 'med'
    HIGH = 'high'

    def to_dimensions(self) -> Tuple[int, int]:
        """Get (width, height) in pixels."""
        return _DIMENSIONS[self]


_DIMENSIONS: Dict[Resolution, Tuple[int, int]] = {
    Resolution.LOW: (320, 180),
    Resolution.MED: (960, 540),
    Resolution.HIGH: (1920, 1080),
}


def discrete_value(count: int, final: Complex) -> float:
    """Plain escape-time value."""
    return float(count)


def smooth_value(count: int, final: Complex, max_iters: int) -> float:
    """
    Continuous escape count.

    Escaped points get (count + 1) - log2(log2(|z|^2) / 2); points that
    never escaped get max_iters. A bailout of at least 1 keeps log2(|z|^2)
    positive for every escaped point.
    """
    if count < max_iters:
        nu = math.log2(math.log2(final.abs_value_sq()) / 2.0)
        return (count + 1) - nu
    return float(max_iters)


def post_processor(mode: EscapeMode, max_iters: int) -> PostProcessor:
    """
    Get the post-processing function for an escape mode.

    Args:
        mode: Escape mode
        max_iters: Iteration budget of the render

    Returns:
        Callable taking (count, final_iterate) and returning the cell value
    """
    if mode is EscapeMode.DISCRETE:
        return discrete_value
    if mode is EscapeMode.SMOOTH:
        def smooth(count: int, final: Complex) -> float:
            return smooth_value(count, final, max_iters)
        return smooth
    raise ValueError(f"Unknown escape mode: {mode}")
