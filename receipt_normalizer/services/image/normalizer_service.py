"""
Image Normalization Service

Receipt photos arrive in whatever size and format the user's camera
produced. Before they reach the receipt scanner every image is:
1. Decoded
2. Scaled so its larger side fits within max_dimension
3. Re-encoded as JPEG at a fixed quality
4. Returned as a new ImageFile with the original name

DESIGN DECISION: Images already within max_dimension are passed through
at their own size (still re-encoded). Upscaling adds bytes without adding
detail, so it is opt-in via allow_upscale.

Every step that touches pixels runs in a worker thread, so concurrent
normalizations do not block the event loop or each other.
"""

import asyncio
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

import structlog

from receipt_normalizer.config import NormalizerSettings, get_settings
from receipt_normalizer.models.image import ImageFile
from receipt_normalizer.services.codec import (
    ImageEncodeError,
    ImageResourceError,
    PillowRasterCodec,
    RasterCodec,
)


logger = structlog.get_logger(__name__)


def compute_scale(
    width: int,
    height: int,
    max_dimension: int,
    allow_upscale: bool = False,
) -> float:
    """
    Scale factor that fits (width, height) within max_dimension.

    Without allow_upscale the factor never exceeds 1.0.

    Raises:
        ImageEncodeError: If the source has a zero dimension
    """
    longest = max(width, height)
    if longest <= 0:
        raise ImageEncodeError(f"Source image has no pixels ({width}x{height})")

    scale = max_dimension / longest
    if not allow_upscale:
        scale = min(scale, 1.0)
    return scale


def compute_target_size(
    width: int,
    height: int,
    max_dimension: int,
    allow_upscale: bool = False,
) -> tuple[int, int]:
    """Output surface size for a source of the given dimensions."""
    scale = compute_scale(width, height, max_dimension, allow_upscale)
    if scale <= 0:
        return round(width * scale), round(height * scale)
    # A valid source always keeps at least one pixel on each side
    return max(1, round(width * scale)), max(1, round(height * scale))


class ImageNormalizer:
    """
    Scales and re-encodes images to a fixed format.

    Flow:
    1. Read source bytes
    2. Decode via the codec
    3. Compute target size
    4. Resample (skipped when the size is unchanged)
    5. Encode at the configured format and quality
    6. Wrap as a new ImageFile
    """

    def __init__(
        self,
        codec: Optional[RasterCodec] = None,
        settings: Optional[NormalizerSettings] = None,
        allow_upscale: Optional[bool] = None,
    ):
        self._settings = settings or get_settings().normalizer
        self._codec = codec or PillowRasterCodec(
            background_color=self._settings.background_color,
        )
        self._allow_upscale = (
            self._settings.allow_upscale if allow_upscale is None else allow_upscale
        )

    async def normalize(
        self,
        source: ImageFile,
        max_dimension: Optional[int] = None,
    ) -> ImageFile:
        """
        Normalize a single image.

        Args:
            source: The uploaded image
            max_dimension: Bound for the larger output side in pixels.
                Defaults to the configured value (512). Not validated:
                zero or negative values fail as a degenerate surface.

        Returns:
            A new ImageFile with the source's name and the output MIME type

        Raises:
            ImageDecodeError: If the source is not a decodable image
            ImageEncodeError: If the output cannot be encoded
            ImageResourceError: If the image is too large to process
        """
        if max_dimension is None:
            max_dimension = self._settings.max_dimension

        log = logger.bind(filename=source.name, max_dimension=max_dimension)

        try:
            data = await source.read()
            raster = await asyncio.to_thread(self._codec.decode, data)
            log.debug("image_decoded", width=raster.width, height=raster.height)

            width, height = compute_target_size(
                raster.width,
                raster.height,
                max_dimension,
                self._allow_upscale,
            )
            if width < 1 or height < 1:
                raise ImageEncodeError(
                    f"Target surface {width}x{height} is empty "
                    f"(source {raster.width}x{raster.height}, max_dimension {max_dimension})"
                )

            if (width, height) != (raster.width, raster.height):
                raster = await asyncio.to_thread(self._codec.resample, raster, width, height)

            encoded = await asyncio.to_thread(
                self._codec.encode,
                raster,
                self._settings.output_format,
                self._settings.quality,
            )
        except MemoryError as e:
            log.warning("image_normalization_failed", error_type="ImageResourceError")
            raise ImageResourceError("Not enough memory to normalize image") from e
        except Exception as e:
            log.warning("image_normalization_failed", error_type=type(e).__name__, error=str(e))
            raise

        output = ImageFile(
            name=source.name,
            mime_type=self._settings.output_mime_type,
            content=encoded,
            last_modified=datetime.now(timezone.utc),
        )
        log.info(
            "image_normalized",
            width=width,
            height=height,
            original_size_bytes=source.size_bytes,
            normalized_size_bytes=output.size_bytes,
        )
        return output

    async def normalize_many(
        self,
        sources: Iterable[ImageFile],
        max_dimension: Optional[int] = None,
        return_exceptions: bool = False,
    ) -> list[Union[ImageFile, BaseException]]:
        """
        Normalize several images concurrently.

        Results are in input order. With return_exceptions=True a failed
        image yields its exception in place of a result; otherwise the
        first failure is raised.
        """
        return await asyncio.gather(
            *(self.normalize(source, max_dimension) for source in sources),
            return_exceptions=return_exceptions,
        )


async def normalize_image(
    source: ImageFile,
    max_dimension: int = 512,
    codec: Optional[RasterCodec] = None,
) -> ImageFile:
    """Normalize one image with the configured defaults."""
    return await ImageNormalizer(codec=codec).normalize(source, max_dimension)
