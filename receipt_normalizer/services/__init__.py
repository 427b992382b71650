"""Services package."""

from receipt_normalizer.services.codec import (
    ImageDecodeError,
    ImageEncodeError,
    ImageNormalizationError,
    ImageResourceError,
    PillowRasterCodec,
    Raster,
    RasterCodec,
)
from receipt_normalizer.services.image import (
    ImageNormalizer,
    compute_scale,
    compute_target_size,
    load_image_file,
    normalize_image,
)
from receipt_normalizer.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
)

__all__ = [
    # Codec
    "ImageDecodeError",
    "ImageEncodeError",
    "ImageNormalizationError",
    "ImageResourceError",
    "PillowRasterCodec",
    "Raster",
    "RasterCodec",
    # Image services
    "ImageNormalizer",
    "compute_scale",
    "compute_target_size",
    "load_image_file",
    "normalize_image",
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
]
