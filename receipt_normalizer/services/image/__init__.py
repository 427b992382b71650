"""Image processing services package."""

from receipt_normalizer.services.image.loader import load_image_file
from receipt_normalizer.services.image.normalizer_service import (
    ImageNormalizer,
    compute_scale,
    compute_target_size,
    normalize_image,
)

__all__ = [
    "ImageNormalizer",
    "compute_scale",
    "compute_target_size",
    "load_image_file",
    "normalize_image",
]
