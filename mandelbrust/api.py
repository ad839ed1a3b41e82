"""
Main API for rendering the Mandelbrot set.

This module combines the viewport mapper, the grid evaluation backends and
the normalisation step into a single render call. Every render is driven by
an explicit, immutable RenderConfig, so the output is a pure function of it.
"""

import numpy as np
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass, replace
import logging
import time

from .core.grid import evaluate_grid
from .core.math_functions import Complex, viewport_from_centre, validate_zoom
from .core.plotting import EscapeMode, Normalization, PlottingAlgorithm, post_processor
from .acceleration.numba_backend import get_numba_accelerator
from .acceleration.multiprocessing import MultiprocessingAccelerator
from .rendering.coloring import apply_normalization
from .rendering.image_output import hue_array_to_rgb
from .rendering.palette import ColorPalette

logger = logging.getLogger(__name__)

BACKENDS = ('numba', 'numba-serial', 'multiprocessing', 'python')

# Keeps bailout**4, and so every escaped iterate, finite
MAX_BAILOUT = 1e75

CentreLike = Union[Complex, complex, tuple]


def _as_complex(centre: CentreLike) -> Complex:
    if isinstance(centre, Complex):
        return centre
    if isinstance(centre, complex):
        return Complex.from_complex(centre)
    re, im = centre
    return Complex(float(re), float(im))


@dataclass(frozen=True)
class RenderConfig:
    """Configuration for a single render."""

    # Viewport
    centre: Complex = Complex(0.0, 0.0)
    zoom: float = 8.0
    width: int = 1920
    height: int = 1080

    # Iteration
    max_iterations: int = 2000
    bailout: float = 1e6

    # Post-processing
    mode: EscapeMode = EscapeMode.DISCRETE
    normalization: Normalization = Normalization.HISTOGRAM

    # Performance
    backend: str = 'numba'
    num_processes: Optional[int] = None
    tile_size: int = 64

    def __post_init__(self):
        """Coerce convenience types into their canonical form."""
        object.__setattr__(self, 'centre', _as_complex(self.centre))
        object.__setattr__(self, 'mode', EscapeMode(self.mode))
        object.__setattr__(self, 'normalization', Normalization(self.normalization))

    @classmethod
    def from_algorithm(cls, algorithm: Union[PlottingAlgorithm, str], **kwargs) -> 'RenderConfig':
        """Create configuration from a named plotting algorithm."""
        algorithm = PlottingAlgorithm(algorithm)
        return cls(mode=algorithm.mode, normalization=algorithm.normalization, **kwargs)

    def validate(self):
        """Validate configuration parameters."""
        validate_zoom(self.zoom)

        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")

        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")

        if not 0 < self.bailout <= MAX_BAILOUT:
            raise ValueError(f"bailout must be positive and at most {MAX_BAILOUT:g}")

        if self.mode is EscapeMode.SMOOTH and self.bailout < 1.0:
            raise ValueError("smooth escape values need bailout >= 1")

        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{self.backend}'. Available: {', '.join(BACKENDS)}")

        if self.tile_size < 1:
            raise ValueError("tile_size must be >= 1")


class FractalRenderer:
    """Main rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Render configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()

    def evaluate(self) -> np.ndarray:
        """
        Evaluate raw escape values over the viewport.

        Returns:
            Raw values of shape (width, height) indexed [x, y]
        """
        config = self.config
        x_range, y_range = viewport_from_centre(config.centre, config.zoom)

        if config.backend == 'python':
            return evaluate_grid(x_range, y_range, config.width, config.height,
                                 config.max_iterations, config.bailout,
                                 post_processor(config.mode, config.max_iterations))

        if config.backend == 'multiprocessing':
            accelerator = MultiprocessingAccelerator(config.num_processes, config.tile_size)
        else:
            accelerator = get_numba_accelerator(parallel=config.backend == 'numba')

        return accelerator.evaluate_grid(x_range, y_range, config.width, config.height,
                                         config.max_iterations, config.bailout, config.mode)

    def render(self) -> np.ndarray:
        """
        Render the normalised hue array.

        Returns:
            Values in [0, 1] of shape (width, height) indexed [x, y]
        """
        config = self.config
        start_time = time.time()

        logger.info(f"Rendering {config.width}x{config.height} at {config.centre} "
                    f"zoom {config.zoom} ({config.mode.value}, {config.normalization.value}, "
                    f"{config.backend})")

        raw = self.evaluate()
        hue = apply_normalization(raw, config.max_iterations, config.normalization,
                                  config.width * config.height)

        logger.info(f"Render complete: {time.time() - start_time:.2f}s")
        return hue

    def render_image(self, palette: ColorPalette) -> np.ndarray:
        """
        Render and colour the frame.

        Returns:
            uint8 RGB image array of shape (height, width, 3)
        """
        return hue_array_to_rgb(self.render(), palette)

    def benchmark_backends(self, backends=BACKENDS) -> Dict[str, Any]:
        """
        Time the evaluation of the current viewport on each backend.

        The first backend's grid is the reference; every other grid is
        checked against it.
        """
        results: Dict[str, Any] = {
            'resolution': f"{self.config.width}x{self.config.height}",
            'max_iterations': self.config.max_iterations,
            'backends': {},
        }

        reference = None
        for backend in backends:
            renderer = FractalRenderer(replace(self.config, backend=backend))
            start_time = time.time()
            grid = renderer.evaluate()
            elapsed = time.time() - start_time

            if reference is None:
                reference = grid
            results['backends'][backend] = {
                'time': elapsed,
                'pixels_per_second': grid.size / elapsed if elapsed > 0 else float('inf'),
                'identical': bool(np.array_equal(grid, reference)),
            }
            logger.info(f"Backend {backend}: {elapsed:.3f}s")

        return results


def render_grid(centre: CentreLike, zoom: float, width: int, height: int,
                max_iters: int, bailout: float,
                mode: Union[EscapeMode, str] = EscapeMode.DISCRETE,
                coloring: Union[Normalization, str] = Normalization.HISTOGRAM,
                backend: str = 'numba') -> np.ndarray:
    """
    Run the full numeric pipeline for one frame.

    Args:
        centre: Centre of the viewport
        zoom: Zoom factor (must be positive)
        width, height: Grid resolution
        max_iters: Iteration budget
        bailout: Bailout radius
        mode: Discrete or smooth escape values
        coloring: Plain or histogram normalisation
        backend: One of BACKENDS

    Returns:
        Values in [0, 1] of shape (width, height) indexed [x, y]
    """
    config = RenderConfig(
        centre=centre, zoom=zoom, width=width, height=height,
        max_iterations=max_iters, bailout=bailout,
        mode=mode, normalization=coloring, backend=backend,
    )
    return FractalRenderer(config).render()
