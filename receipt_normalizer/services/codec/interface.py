"""
Abstract Raster Codec Interface

DESIGN DECISION: The normalizer never touches an imaging library directly.
Decoding, resampling and encoding go through this interface so that:
1. Pillow can be swapped for another backend
2. Tests can run against a fake codec without real image data
3. The normalization algorithm stays independent of pixel formats

The interface is intentionally small - just the three operations the
normalization pipeline needs.
"""

from abc import ABC, abstractmethod
from typing import Protocol


class Raster(Protocol):
    """A decoded pixel grid. Only its dimensions matter to the normalizer."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...


class RasterCodec(ABC):
    """
    Abstract interface for raster decode/resample/encode.

    Implementations are synchronous and may block; the normalizer runs
    each call off the event loop.
    """

    @abstractmethod
    def decode(self, data: bytes) -> Raster:
        """
        Decode raw file bytes into a raster.

        Raises:
            ImageDecodeError: If the bytes are not a decodable image
            ImageResourceError: If decoding exhausts memory limits
        """
        pass

    @abstractmethod
    def resample(self, raster: Raster, width: int, height: int) -> Raster:
        """
        Draw the raster onto a new surface of the given size.

        Raises:
            ImageEncodeError: If the target surface is degenerate
        """
        pass

    @abstractmethod
    def encode(self, raster: Raster, image_format: str, quality: float) -> bytes:
        """
        Serialize the raster.

        Args:
            raster: Raster to serialize
            image_format: Output format name (e.g. "JPEG")
            quality: Encoder quality on a 0-1 scale

        Raises:
            ImageEncodeError: If the raster cannot be serialized
        """
        pass


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ImageNormalizationError(Exception):
    """Base exception for image normalization errors."""
    pass


class ImageDecodeError(ImageNormalizationError):
    """Source bytes could not be interpreted as a raster image."""
    pass


class ImageEncodeError(ImageNormalizationError):
    """Rendering surface could not be serialized to the output format."""
    pass


class ImageResourceError(ImageNormalizationError):
    """Not enough memory to decode or draw the image."""
    pass
