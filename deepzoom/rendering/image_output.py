"""
Raster buffer and image export for fractal rendering.

This module provides the write-once pixel buffer filled by the renderer and
the Pillow-based exporter that encodes it as PNG, TIFF, JPEG or BMP with
render metadata embedded where the format allows.
"""

import numpy as np
from typing import Dict, Any, Optional, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from .. import __version__
from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class PixelBuffer:
    """Width x height grid of 8-bit RGB triples, each cell written at most once."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")

        self._pixels = np.zeros((height, width, 3), dtype=np.uint8)
        self._written = np.zeros((height, width), dtype=bool)

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")

    def put(self, x: int, y: int, rgb: Tuple[int, int, int]) -> None:
        """Write the color of pixel (x, y)."""
        self._check_bounds(x, y)
        if self._written[y, x]:
            raise ValueError(f"Pixel ({x}, {y}) already written")
        self._pixels[y, x] = rgb
        self._written[y, x] = True

    def get(self, x: int, y: int) -> Tuple[int, int, int]:
        self._check_bounds(x, y)
        r, g, b = self._pixels[y, x]
        return int(r), int(g), int(b)

    def is_written(self, x: int, y: int) -> bool:
        self._check_bounds(x, y)
        return bool(self._written[y, x])

    @property
    def coverage(self) -> np.ndarray:
        """Boolean (height, width) mask of written cells."""
        return self._written.copy()

    def to_array(self) -> np.ndarray:
        """Copy of the pixels as a (height, width, 3) uint8 array."""
        return self._pixels.copy()

    def tobytes(self) -> bytes:
        return self._pixels.tobytes()


@dataclass
class RenderMetadata:
    """Metadata for fractal renders."""

    resolution: Tuple[int, int]  # width, height
    coordinates: str
    precision_bits: int
    take: int
    gradient_mode: str
    gradient_interval: int

    render_time_seconds: float
    num_processes: int = 1

    timestamp: str = ""
    software_version: str = __version__

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        data = dict(data)
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """Encode pixel buffers to image files with Pillow."""

    ALPHA_FORMATS = ('.png', '.tif', '.tiff')

    def __init__(self):
        """Initialize image exporter."""
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
            '.bmp': self._save_bmp,
        }

    def check_path(self, filepath: Path, transparent_inside: bool = False) -> Path:
        """
        Validate an output path before rendering starts.

        Raises:
            ConfigurationError: Unsupported suffix, or transparency requested
                for a format without an alpha channel
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ConfigurationError(f"Unsupported format '{suffix}'. Supported: {supported}")
        if transparent_inside and suffix not in self.ALPHA_FORMATS:
            raise ConfigurationError(f"Format '{suffix}' has no alpha channel for a transparent inside")
        return filepath

    def to_image(self, buffer: PixelBuffer, transparent_inside: bool = False) -> Image.Image:
        """Convert a buffer to a PIL image, RGBA when unwritten cells are transparent."""
        pixels = buffer.to_array()
        if transparent_inside:
            alpha = np.where(buffer.coverage, 255, 0).astype(np.uint8)
            pixels = np.dstack([pixels, alpha])
        return Image.fromarray(pixels)

    def save_image(self, buffer: PixelBuffer, filepath: Path,
                   metadata: Optional[RenderMetadata] = None,
                   transparent_inside: bool = False, quality: int = 95) -> Path:
        """
        Save a pixel buffer to file with metadata.

        Args:
            buffer: Filled pixel buffer
            filepath: Output file path, format chosen by suffix
            metadata: Render metadata to embed
            transparent_inside: Make unwritten cells transparent
            quality: JPEG quality (1-100)

        Returns:
            The path written
        """
        filepath = self.check_path(filepath, transparent_inside)
        pil_image = self.to_image(buffer, transparent_inside)

        save_method = self.supported_formats[filepath.suffix.lower()]
        save_method(pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")
        return filepath

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Title", "Mandelbrot set")
            pnginfo.add_text("Software", f"deepzoom v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text("FractalMetadata", metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as TIFF with metadata."""
        tiff_tags = {}

        if metadata:
            tiff_tags[270] = metadata.to_json()  # ImageDescription
            tiff_tags[305] = f"deepzoom v{metadata.software_version}"  # Software

        pil_image.save(filepath, "TIFF", compression='tiff_lzw', tiffinfo=tiff_tags)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG."""
        pil_image.save(filepath, "JPEG", quality=quality, optimize=True)

    def _save_bmp(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        pil_image.save(filepath, "BMP")
