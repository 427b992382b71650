"""
Raster Codec using Pillow

DESIGN DECISION: We use Pillow because:
1. It decodes every format a phone camera or browser upload produces
2. Lanczos resampling keeps small receipt text legible after downscaling
3. JPEG encoding with an explicit quality setting is built in

Behaviour worth knowing:
- EXIF orientation is applied on decode, so a portrait photo stays portrait
- Transparent pixels are flattened onto a background colour before
  encoding to formats without alpha (JPEG)
"""

from io import BytesIO

from PIL import Image, ImageColor, ImageOps, UnidentifiedImageError

from receipt_normalizer.services.codec.interface import (
    ImageDecodeError,
    ImageEncodeError,
    ImageResourceError,
    RasterCodec,
)


# Formats that cannot carry an alpha channel
_OPAQUE_FORMATS = {"JPEG", "BMP"}


class PillowRasterCodec(RasterCodec):
    """
    RasterCodec backed by Pillow.

    Rasters produced and consumed by this codec are PIL.Image.Image objects.
    """

    def __init__(
        self,
        resample: Image.Resampling = Image.Resampling.LANCZOS,
        background_color: str = "#ffffff",
    ):
        self._resample = resample
        self._background = ImageColor.getrgb(background_color)[:3]

    def decode(self, data: bytes) -> Image.Image:
        try:
            image = Image.open(BytesIO(data))
            # Image.open is lazy; force the pixel data so corrupt files fail here
            image.load()
            return ImageOps.exif_transpose(image)
        except Image.DecompressionBombError as e:
            raise ImageResourceError(f"Image exceeds pixel limit: {e}") from e
        except MemoryError as e:
            raise ImageResourceError("Not enough memory to decode image") from e
        except UnidentifiedImageError as e:
            raise ImageDecodeError("Data is not a recognised image format") from e
        except (OSError, EOFError, SyntaxError, ValueError) as e:
            raise ImageDecodeError(f"Failed to decode image: {e}") from e

    def resample(self, raster: Image.Image, width: int, height: int) -> Image.Image:
        if width < 1 or height < 1:
            raise ImageEncodeError(f"Cannot draw onto a {width}x{height} surface")
        if raster.mode == "P":
            # Palette images only support nearest-neighbour resizing
            raster = raster.convert("RGBA")
        try:
            return raster.resize((width, height), self._resample)
        except MemoryError as e:
            raise ImageResourceError("Not enough memory to resample image") from e

    def encode(self, raster: Image.Image, image_format: str, quality: float) -> bytes:
        image_format = image_format.upper()
        if raster.width < 1 or raster.height < 1:
            raise ImageEncodeError(f"Cannot encode a {raster.width}x{raster.height} surface")

        image = self._flatten(raster) if image_format in _OPAQUE_FORMATS else raster

        buffer = BytesIO()
        try:
            image.save(buffer, format=image_format, quality=round(quality * 100))
        except KeyError as e:
            raise ImageEncodeError(f"Unsupported output format: {image_format}") from e
        except MemoryError as e:
            raise ImageResourceError("Not enough memory to encode image") from e
        except (OSError, ValueError) as e:
            raise ImageEncodeError(f"Failed to encode image as {image_format}: {e}") from e
        return buffer.getvalue()

    def _flatten(self, image: Image.Image) -> Image.Image:
        """Composite any alpha onto the background and return an RGB image."""
        has_alpha = image.mode in ("RGBA", "LA", "PA") or (
            image.mode == "P" and "transparency" in image.info
        )
        if not has_alpha:
            return image if image.mode == "RGB" else image.convert("RGB")

        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, self._background)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
