"""
Core mathematical functions for escape-time iteration.

This module provides the complex value type, the single-point escape-time
evaluator and the mapping from pixel coordinates to the complex plane.
"""

from dataclasses import dataclass
from typing import NamedTuple, Tuple
import logging

logger = logging.getLogger(__name__)

# Half-widths of the viewport at zoom 1, giving a 16:9 frame
VIEWPORT_HALF_WIDTH = 16.0
VIEWPORT_HALF_HEIGHT = 9.0


class InvalidZoomError(ValueError):
    """Raised when a render is requested with a non-positive zoom."""


@dataclass(frozen=True)
class Complex:
    """Immutable complex value with the single step the Mandelbrot map needs."""
    re: float
    im: float

    @classmethod
    def id(cls) -> 'Complex':
        """Additive identity, the starting iterate of the Mandelbrot map."""
        return cls(0.0, 0.0)

    @classmethod
    def from_complex(cls, value: complex) -> 'Complex':
        """Create from a builtin complex number."""
        return cls(float(value.real), float(value.imag))

    def to_complex(self) -> complex:
        """Convert to a builtin complex number."""
        return complex(self.re, self.im)

    def abs_value_sq(self) -> float:
        """Squared magnitude."""
        return self.re * self.re + self.im * self.im

    def mandelbrot_step(self, c: 'Complex') -> 'Complex':
        """
        Compute z^2 + c for this z.

        The real part is formed as (re - im)(re + im), which squares with
        one multiply fewer than re*re - im*im.
        """
        return Complex(
            (self.re - self.im) * (self.re + self.im) + c.re,
            2.0 * self.re * self.im + c.im,
        )

    def inverse(self) -> 'Complex':
        """Multiplicative inverse: conjugate divided by squared magnitude."""
        mag_sq = self.abs_value_sq()
        return Complex(self.re / mag_sq, -self.im / mag_sq)

    def __str__(self) -> str:
        return f"{self.re} + {self.im}i"


@dataclass(frozen=True)
class Interval:
    """Bounds along one axis. Inverted intervals simply flip interpolation."""
    lower: float
    upper: float

    def lerp(self, frac: float) -> float:
        """Linearly interpolate between the bounds."""
        return self.lower + (self.upper - self.lower) * frac


class EscapeResult(NamedTuple):
    """Iteration count at escape (or max_iters) and the final iterate."""
    count: int
    final: Complex


def escape_time(c: Complex, z0: Complex, bailout: float, max_iters: int) -> EscapeResult:
    """
    Iterate the Mandelbrot map for a single point.

    Args:
        c: Point of the complex plane being tested
        z0: Starting iterate (normally Complex.id())
        bailout: Bailout radius
        max_iters: Iteration budget

    Returns:
        EscapeResult with the iteration at which |z|^2 first exceeded
        bailout^2, or max_iters if the point stayed bounded
    """
    if z0.abs_value_sq() > bailout:
        return EscapeResult(0, z0)

    bailout_sq = bailout ** 2
    z = z0
    for iteration in range(1, max_iters + 1):
        z = z.mandelbrot_step(c)
        if z.abs_value_sq() > bailout_sq:
            return EscapeResult(iteration, z)

    return EscapeResult(max_iters, z)


def viewport_from_centre(centre: Complex, zoom: float) -> Tuple[Interval, Interval]:
    """
    Compute the x and y ranges of a 16:9 viewport.

    Zoom must be positive; callers validate it before getting here.

    Args:
        centre: Centre of the viewport
        zoom: Zoom factor

    Returns:
        Tuple of (x_range, y_range)
    """
    x_range = Interval(centre.re - VIEWPORT_HALF_WIDTH / zoom,
                       centre.re + VIEWPORT_HALF_WIDTH / zoom)
    y_range = Interval(centre.im - VIEWPORT_HALF_HEIGHT / zoom,
                       centre.im + VIEWPORT_HALF_HEIGHT / zoom)
    return x_range, y_range


def pixel_to_plane(x: int, y: int, width: int, height: int,
                   x_range: Interval, y_range: Interval) -> Complex:
    """Convert pixel coordinates to a point of the complex plane."""
    return Complex(x_range.lerp(x / width), y_range.lerp(y / height))


def validate_zoom(zoom: float) -> None:
    """Reject zoom factors the viewport mapper cannot handle."""
    if not zoom > 0:
        raise InvalidZoomError(f"zoom must be positive, got {zoom}")
