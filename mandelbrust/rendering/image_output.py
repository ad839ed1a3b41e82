"""
Image export for rendered hue arrays.

This module turns a hue array and a palette into an RGB image and writes it
as PNG, TIFF or JPEG with the render parameters embedded as metadata.
"""

import numpy as np
from typing import Any, Dict, Optional, Tuple, Union
from pathlib import Path
from dataclasses import dataclass, asdict
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from .palette import ColorPalette

logger = logging.getLogger(__name__)


@dataclass
class RenderMetadata:
    """Metadata for a rendered frame."""

    centre: Tuple[float, float]
    zoom: float
    resolution: Tuple[int, int]  # width, height
    max_iterations: int
    bailout: float
    algorithm: str
    color_palette: str
    palette_repeats: int = 1
    backend: str = "numba"
    render_time_seconds: float = 0.0

    timestamp: str = ""
    software_version: str = ""

    def __post_init__(self):
        """Set default timestamp and version if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()
        if not self.software_version:
            from .. import __version__
            self.software_version = __version__

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        data = dict(data)
        data['centre'] = tuple(data['centre'])
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


def hue_array_to_rgb(hue: np.ndarray, palette: ColorPalette) -> np.ndarray:
    """
    Colour a hue array.

    Args:
        hue: Normalised values of shape (width, height) indexed [x, y]
        palette: Colour palette

    Returns:
        uint8 image array of shape (height, width, 3)
    """
    return palette.lookup_array(np.asarray(hue).T)


class ImageExporter:
    """Image export with metadata support."""

    def __init__(self):
        """Initialize image exporter."""
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
        }

    def save_image(self, image_array: np.ndarray, filepath: Union[str, Path],
                   metadata: Optional[RenderMetadata] = None, quality: int = 95) -> Path:
        """
        Save RGB image array to file with metadata.

        Args:
            image_array: uint8 RGB image array (height, width, 3)
            filepath: Output file path
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)

        Returns:
            Path that was written
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        if image_array.ndim != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        pil_image = Image.fromarray(np.ascontiguousarray(image_array, dtype=np.uint8))
        self.supported_formats[suffix](pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")
        return filepath

    def save_hue_array(self, hue: np.ndarray, palette: ColorPalette, filepath: Union[str, Path],
                       metadata: Optional[RenderMetadata] = None, quality: int = 95) -> Path:
        """Colour a hue array with a palette and save it."""
        return self.save_image(hue_array_to_rgb(hue, palette), filepath, metadata, quality)

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata text chunks."""
        pnginfo = PngImagePlugin.PngInfo()
        if metadata:
            pnginfo.add_text("Title", "Mandelbrot set")
            pnginfo.add_text("Software", f"mandelbrust v{metadata.software_version}")
            pnginfo.add_text("mandelbrust", metadata.to_json(indent=None))
        pil_image.save(filepath, format='PNG', pnginfo=pnginfo)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as TIFF with the metadata in the image description tag."""
        tiffinfo = {}
        if metadata:
            tiffinfo[270] = metadata.to_json(indent=None)
        pil_image.save(filepath, format='TIFF', tiffinfo=tiffinfo)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG; JPEG carries no metadata here."""
        pil_image.save(filepath, format='JPEG', quality=quality)

    def extract_metadata_from_image(self, filepath: Union[str, Path]) -> Optional[RenderMetadata]:
        """Read render metadata back from a PNG written by this exporter."""
        with Image.open(filepath) as image:
            text = image.info.get('mandelbrust')
        if text is None:
            return None
        return RenderMetadata.from_json(text)

    def save_raw_data(self, hue: np.ndarray, filepath: Union[str, Path],
                      metadata: Optional[RenderMetadata] = None) -> Path:
        """
        Save the hue array as a NumPy file.

        Args:
            hue: Hue array to save
            filepath: Output file path (.npy)
            metadata: Metadata to save alongside as JSON

        Returns:
            Path of the .npy file
        """
        filepath = Path(filepath)
        if filepath.suffix.lower() != '.npy':
            filepath = filepath.with_suffix('.npy')

        np.save(filepath, hue)

        if metadata:
            with open(filepath.with_suffix('.json'), 'w', encoding='utf-8') as f:
                f.write(metadata.to_json())

        logger.info(f"Saved raw data: {filepath}")
        return filepath

    def load_raw_data(self, filepath: Union[str, Path]) -> Tuple[np.ndarray, Optional[RenderMetadata]]:
        """Load a hue array and its metadata, if present."""
        filepath = Path(filepath)
        hue = np.load(filepath)

        metadata = None
        metadata_path = filepath.with_suffix('.json')
        if metadata_path.exists():
            with open(metadata_path, 'r', encoding='utf-8') as f:
                metadata = RenderMetadata.from_json(f.read())

        return hue, metadata
