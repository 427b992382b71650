"""
Raster Codec Package

Provides the abstract codec interface the normalizer depends on and the
Pillow implementation used in production.
"""

from receipt_normalizer.services.codec.interface import (
    ImageDecodeError,
    ImageEncodeError,
    ImageNormalizationError,
    ImageResourceError,
    Raster,
    RasterCodec,
)
from receipt_normalizer.services.codec.pillow_codec import PillowRasterCodec

__all__ = [
    # Interfaces
    "Raster",
    "RasterCodec",
    # Exceptions
    "ImageDecodeError",
    "ImageEncodeError",
    "ImageNormalizationError",
    "ImageResourceError",
    # Pillow implementation
    "PillowRasterCodec",
]
