"""
Configuration store for named colour palettes and named points.

The store is a YAML file with two lists:

    color_palettes:
      - name: warm
        color_vals:
          - {value: 0.0, red: 0, green: 0, blue: 0}
          - {value: 1.0, red: 255, green: 255, blue: 255}
    named_points:
      - name: seahorse
        point: {re: -0.745, im: 0.113}
        zoom: 400000
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

import yaml

from ..core.math_functions import Complex
from ..rendering.palette import BUILTIN_PALETTES, ColorPalette, InvalidPaletteError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'MANDELBRUST_CONFIG'
DEFAULT_CONFIG_FILE = 'config.yaml'
MATPLOTLIB_PREFIX = 'mpl:'


class NameNotFoundError(KeyError):
    """Raised when a palette or named point is not in the configuration."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"{self.name} not found in config"


@dataclass(frozen=True)
class NamedPoint:
    """A saved centre and zoom."""
    name: str
    point: Complex
    zoom: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NamedPoint':
        point = data['point']
        return cls(
            name=str(data['name']),
            point=Complex(float(point['re']), float(point['im'])),
            zoom=int(data['zoom']),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'point': {'re': self.point.re, 'im': self.point.im},
            'zoom': self.zoom,
        }


class Configuration:
    """Named palettes and points loaded from YAML."""

    def __init__(self, color_palettes: Optional[List[ColorPalette]] = None,
                 named_points: Optional[List[NamedPoint]] = None,
                 source: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            color_palettes: User palettes; these shadow built-in palettes
            named_points: Saved points
            source: File the configuration was loaded from
        """
        self.color_palettes = {palette.name: palette for palette in color_palettes or []}
        self.named_points = {point.name: point for point in named_points or []}
        self.source = source

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], source: Optional[Path] = None) -> 'Configuration':
        """Create configuration from the parsed YAML document."""
        data = data or {}
        palettes = [
            ColorPalette.build(entry['color_vals'], name=str(entry['name']))
            for entry in data.get('color_palettes') or []
        ]
        points = [NamedPoint.from_dict(entry) for entry in data.get('named_points') or []]
        return cls(palettes, points, source)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> 'Configuration':
        """
        Load the configuration file.

        The path is taken from the argument, then $MANDELBRUST_CONFIG, then
        ./config.yaml. A missing default file yields an empty configuration;
        a missing explicit file is an error.

        Args:
            path: Configuration file path

        Returns:
            Loaded configuration
        """
        explicit = path is not None or CONFIG_ENV_VAR in os.environ
        config_path = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)

        if not config_path.exists():
            if explicit:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            logger.debug(f"No configuration file at {config_path}, using built-ins only")
            return cls()

        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        config = cls.from_dict(data, source=config_path)
        logger.info(f"Loaded {len(config.color_palettes)} palettes and "
                    f"{len(config.named_points)} named points from {config_path}")
        return config

    def save(self, path: Union[str, Path]) -> None:
        """Write the configuration as YAML."""
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        logger.info(f"Saved configuration to {path}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'color_palettes': [palette.to_dict() for palette in self.color_palettes.values()],
            'named_points': [point.to_dict() for point in self.named_points.values()],
        }

    def get_palette(self, name: str) -> ColorPalette:
        """
        Look up a palette by name.

        Configured palettes win over built-ins; names prefixed with "mpl:"
        sample a matplotlib colormap.
        """
        if name in self.color_palettes:
            return self.color_palettes[name]
        if name in BUILTIN_PALETTES:
            return BUILTIN_PALETTES[name]
        if name.startswith(MATPLOTLIB_PREFIX):
            try:
                return ColorPalette.from_matplotlib(name[len(MATPLOTLIB_PREFIX):])
            except InvalidPaletteError as e:
                raise NameNotFoundError(name) from e
        raise NameNotFoundError(name)

    def get_named_point(self, name: str) -> NamedPoint:
        """Look up a named point."""
        try:
            return self.named_points[name]
        except KeyError:
            raise NameNotFoundError(name) from None

    def list_palettes(self) -> List[str]:
        """Names of every available palette, configured ones first."""
        names = list(self.color_palettes)
        names.extend(name for name in BUILTIN_PALETTES if name not in self.color_palettes)
        return names

    def list_named_points(self) -> List[str]:
        return sorted(self.named_points)
