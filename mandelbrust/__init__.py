"""
Escape-time renderer for the Mandelbrot set.

This library evaluates the Mandelbrot iteration over a pixel grid, normalises
the escape counts (plainly or by histogram equalisation) and colours them
through interpolated palettes.

Key Features:
- Discrete and smooth (continuous) escape counts
- Histogram-equalised colouring
- Numba JIT and multiprocessing backends, bit-identical to the reference
- YAML configuration of named palettes and points

Example usage:
    >>> from mandelbrust import Complex, FractalRenderer, RenderConfig
    >>> config = RenderConfig(centre=Complex(-0.745, 0.113), zoom=400000.0)
    >>> hue = FractalRenderer(config).render()
"""

__version__ = "1.0.0"
__author__ = "mandelbrust developers"

from mandelbrust.core.math_functions import Complex, Interval, InvalidZoomError, escape_time
from mandelbrust.core.plotting import EscapeMode, Normalization, PlottingAlgorithm, Resolution
from mandelbrust.rendering.palette import ColorPalette, ColorStop, InvalidPaletteError
from mandelbrust.rendering.image_output import ImageExporter, RenderMetadata
from mandelbrust.io.config import Configuration, NamedPoint, NameNotFoundError

# Main API
from mandelbrust.api import FractalRenderer, RenderConfig, render_grid

__all__ = [
    "FractalRenderer",
    "RenderConfig",
    "render_grid",
    "Complex",
    "Interval",
    "escape_time",
    "EscapeMode",
    "Normalization",
    "PlottingAlgorithm",
    "Resolution",
    "ColorPalette",
    "ColorStop",
    "ImageExporter",
    "RenderMetadata",
    "Configuration",
    "NamedPoint",
    "InvalidZoomError",
    "InvalidPaletteError",
    "NameNotFoundError",
]
