"""
Colour palette management and interpolation.

A palette is a sorted list of colour stops on [0, 1]. Values between two
stops are interpolated channel by channel; repeating a palette compresses
its stops into several bands to produce cyclic colouring.
"""

import numpy as np
from bisect import bisect_left
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
import logging

import matplotlib
import matplotlib.colors as mcolors

from ..core.math_functions import Interval

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]
StopLike = Union['ColorStop', Sequence[float], Mapping[str, Any]]


class InvalidPaletteError(ValueError):
    """Raised when a palette cannot be built from the given stops."""


@dataclass(frozen=True)
class ColorStop:
    """A colour pinned to a position on [0, 1]."""
    value: float
    red: int
    green: int
    blue: int

    def __post_init__(self):
        """Validate the stop position and channel values."""
        if not 0.0 <= self.value <= 1.0:
            raise InvalidPaletteError(f"Colour stop values must be between 0.0 and 1.0, got {self.value}")
        for component in (self.red, self.green, self.blue):
            if not 0 <= component <= 255:
                raise InvalidPaletteError(f"RGB components must be between 0 and 255, got {component}")

    @property
    def rgb(self) -> RGB:
        return (self.red, self.green, self.blue)

    def lerp(self, other: 'ColorStop', value: float) -> RGB:
        """
        Interpolate towards another stop.

        Channels are truncated to integers, not rounded.
        """
        frac = (value - self.value) / (other.value - self.value)
        return (
            int(Interval(float(self.red), float(other.red)).lerp(frac)),
            int(Interval(float(self.green), float(other.green)).lerp(frac)),
            int(Interval(float(self.blue), float(other.blue)).lerp(frac)),
        )

    @classmethod
    def coerce(cls, stop: StopLike) -> 'ColorStop':
        """Create a stop from a ColorStop, a (value, r, g, b) sequence or a mapping."""
        if isinstance(stop, ColorStop):
            return stop
        if isinstance(stop, Mapping):
            try:
                return cls(float(stop['value']), int(stop['red']), int(stop['green']), int(stop['blue']))
            except KeyError as e:
                raise InvalidPaletteError(f"Colour stop is missing {e}") from e
        if isinstance(stop, (tuple, list)) and len(stop) == 4:
            value, red, green, blue = stop
            return cls(float(value), int(red), int(green), int(blue))
        raise InvalidPaletteError(f"Invalid colour stop format: {stop}")

    def to_dict(self) -> Dict[str, Any]:
        return {'value': self.value, 'red': self.red, 'green': self.green, 'blue': self.blue}


class ColorPalette:
    """Sorted colour stops with linear interpolation."""

    def __init__(self, stops: Iterable[StopLike], name: Optional[str] = None):
        """
        Initialize colour palette.

        Args:
            stops: Colour stops, in any order
            name: Human-readable name for the palette

        Raises:
            InvalidPaletteError: if fewer than 2 stops are given or the
                sorted stops do not start at 0.0 and end at 1.0
        """
        sorted_stops = sorted((ColorStop.coerce(stop) for stop in stops), key=lambda s: s.value)

        if len(sorted_stops) < 2:
            raise InvalidPaletteError("Palette must contain at least 2 colour stops")
        if sorted_stops[0].value != 0.0 or sorted_stops[-1].value != 1.0:
            raise InvalidPaletteError("Palette needs colour stops at 0.0 and 1.0")
        for lower, upper in zip(sorted_stops, sorted_stops[1:]):
            if lower.value == upper.value:
                raise InvalidPaletteError(f"Duplicate colour stop at {lower.value}")

        self.name = name
        self._stops = tuple(sorted_stops)
        self._values = [stop.value for stop in self._stops]

    @classmethod
    def build(cls, stops: Iterable[StopLike], name: Optional[str] = None) -> 'ColorPalette':
        """Build a palette, raising InvalidPaletteError for invalid stops."""
        return cls(stops, name)

    @property
    def stops(self) -> Tuple[ColorStop, ...]:
        return self._stops

    def __len__(self) -> int:
        return len(self._stops)

    def __repr__(self) -> str:
        return f"ColorPalette(name={self.name!r}, stops={len(self._stops)})"

    def lookup(self, value: float) -> RGB:
        """
        Get the colour for a normalised value.

        Values above 1.0 take the last stop's colour, values below 0.0 (and
        NaN) the first stop's colour.
        """
        if value > 1.0:
            return self._stops[-1].rgb
        if not value >= 0.0:
            return self._stops[0].rgb

        i = bisect_left(self._values, value)
        if self._values[i] == value:
            return self._stops[i].rgb
        return self._stops[i - 1].lerp(self._stops[i], value)

    def lookup_array(self, values: np.ndarray) -> np.ndarray:
        """
        Vectorised lookup.

        Args:
            values: Array of normalised values, any shape

        Returns:
            uint8 array of shape values.shape + (3,), equal element for
            element to lookup()
        """
        values = np.asarray(values, dtype=np.float64)
        stop_values = np.array(self._values, dtype=np.float64)
        colors = np.array([stop.rgb for stop in self._stops], dtype=np.float64)
        last = len(self._stops) - 1

        positions = np.searchsorted(stop_values, values, side='left')
        upper_idx = np.clip(positions, 1, last)
        lower_idx = upper_idx - 1

        lower_values = stop_values[lower_idx]
        upper_values = stop_values[upper_idx]
        with np.errstate(invalid='ignore'):
            frac = (values - lower_values) / (upper_values - lower_values)
            rgb = colors[lower_idx] + (colors[upper_idx] - colors[lower_idx]) * frac[..., np.newaxis]
            rgb = np.trunc(rgb)

        exact = stop_values[np.clip(positions, 0, last)] == values
        rgb[exact] = colors[np.clip(positions, 0, last)][exact]
        rgb[values > 1.0] = colors[-1]
        rgb[~(values >= 0.0)] = colors[0]

        return rgb.astype(np.uint8)

    def repeat(self, n: int) -> 'ColorPalette':
        """
        Compress the palette into n consecutive copies.

        Each copy holds every stop but the last, rescaled into its band of
        width 1/n; this palette's final stop closes it at 1.0.
        Palettes with 2 stops, and counts of 1 or less, return the palette
        unchanged.
        """
        if n <= 1 or len(self._stops) <= 2:
            return self

        band = self._stops[:-1]
        repeated: List[ColorStop] = [
            ColorStop((i + stop.value) / n, stop.red, stop.green, stop.blue)
            for i in range(n)
            for stop in band
        ]
        repeated.append(self._stops[-1])

        logger.debug(f"Repeated palette {self.name} {n}x into {len(repeated)} stops")
        return ColorPalette(repeated, self.name)

    def to_matplotlib_colormap(self) -> mcolors.LinearSegmentedColormap:
        """Convert palette to a matplotlib colormap."""
        return mcolors.LinearSegmentedColormap.from_list(
            self.name or 'mandelbrust',
            [(stop.value, tuple(channel / 255.0 for channel in stop.rgb)) for stop in self._stops],
        )

    @classmethod
    def from_matplotlib(cls, cmap_name: str, n_stops: int = 16) -> 'ColorPalette':
        """Create palette by sampling a matplotlib colormap at evenly spaced stops."""
        if n_stops < 2:
            raise InvalidPaletteError("Palette must contain at least 2 colour stops")
        try:
            cmap = matplotlib.colormaps[cmap_name]
        except KeyError as e:
            raise InvalidPaletteError(f"Unknown matplotlib colormap '{cmap_name}'") from e

        stops = []
        for i in range(n_stops):
            value = i / (n_stops - 1)
            red, green, blue, _ = cmap(value)
            stops.append(ColorStop(value, int(round(red * 255)), int(round(green * 255)),
                                   int(round(blue * 255))))
        return cls(stops, name=f"mpl:{cmap_name}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the configuration file layout."""
        return {'name': self.name, 'color_vals': [stop.to_dict() for stop in self._stops]}


BUILTIN_PALETTES: Dict[str, ColorPalette] = {
    'midnight': ColorPalette([
        (0.0, 0, 18, 25),
        (0.1, 0, 18, 25),
        (0.5, 20, 33, 61),
        (0.8, 252, 163, 17),
        (0.9, 229, 229, 229),
        (0.95, 255, 255, 255),
        (1.0, 0, 0, 0),
    ], name='midnight'),
    'grayscale': ColorPalette([
        (0.0, 0, 0, 0),
        (1.0, 255, 255, 255),
    ], name='grayscale'),
}
