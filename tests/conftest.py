from io import BytesIO

import pytest
from PIL import Image

from receipt_normalizer.config import NormalizerSettings, get_settings
from receipt_normalizer.models.image import ImageFile


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_image():
    """Build an in-memory ImageFile of the given size and format."""

    def _make(
        width: int,
        height: int,
        image_format: str = "PNG",
        mode: str = "RGB",
        color=(200, 120, 40),
        name: str = "receipt.png",
        **save_kwargs,
    ) -> ImageFile:
        image = Image.new(mode, (width, height), color)
        buffer = BytesIO()
        image.save(buffer, format=image_format, **save_kwargs)
        return ImageFile(
            name=name,
            mime_type=f"image/{image_format.lower()}",
            content=buffer.getvalue(),
        )

    return _make


@pytest.fixture
def normalizer_settings() -> NormalizerSettings:
    return NormalizerSettings(
        max_dimension=512,
        output_format="JPEG",
        output_mime_type="image/jpeg",
        quality=0.7,
        allow_upscale=False,
    )


@pytest.fixture
def open_output():
    """Decode an ImageFile's content back into a PIL image."""

    def _open(image_file: ImageFile) -> Image.Image:
        image = Image.open(BytesIO(image_file.content))
        image.load()
        return image

    return _open
