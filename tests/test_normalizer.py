"""Tests for the image normalizer."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from receipt_normalizer.config import NormalizerSettings
from receipt_normalizer.models.image import ImageFile
from receipt_normalizer.services.codec import (
    ImageDecodeError,
    ImageEncodeError,
    RasterCodec,
)
from receipt_normalizer.services.image import (
    ImageNormalizer,
    compute_scale,
    compute_target_size,
    normalize_image,
)


@dataclass
class FakeRaster:
    width: int
    height: int


class FakeCodec(RasterCodec):
    """Codec over b"<width>x<height>" payloads; records every call."""

    def __init__(self):
        self.calls = []

    def decode(self, data: bytes) -> FakeRaster:
        self.calls.append("decode")
        try:
            width, height = (int(part) for part in data.decode().split("x"))
        except ValueError as e:
            raise ImageDecodeError("not a fake image") from e
        return FakeRaster(width, height)

    def resample(self, raster: FakeRaster, width: int, height: int) -> FakeRaster:
        self.calls.append(("resample", width, height))
        return FakeRaster(width, height)

    def encode(self, raster: FakeRaster, image_format: str, quality: float) -> bytes:
        self.calls.append(("encode", image_format, quality))
        return f"{image_format}:{raster.width}x{raster.height}".encode()


def fake_file(width: int, height: int, name: str = "receipt.png") -> ImageFile:
    return ImageFile(name=name, mime_type="image/png", content=f"{width}x{height}".encode())


class TestScaleComputation:
    """Tests for the scale arithmetic."""

    def test_downscale_landscape(self):
        assert compute_target_size(2000, 1000, 512) == (512, 256)

    def test_downscale_portrait(self):
        assert compute_target_size(1000, 2000, 512) == (256, 512)

    def test_pass_through_when_smaller(self):
        assert compute_scale(100, 100, 512) == 1.0
        assert compute_target_size(100, 100, 512) == (100, 100)

    def test_upscale_when_allowed(self):
        assert compute_target_size(100, 50, 512, allow_upscale=True) == (512, 256)

    def test_boundary_at_equality(self):
        """At exactly max_dimension both policies keep the size."""
        assert compute_target_size(512, 300, 512) == (512, 300)
        assert compute_target_size(512, 300, 512, allow_upscale=True) == (512, 300)

    def test_just_over_boundary(self):
        width, height = compute_target_size(513, 100, 512)
        assert width == 512
        assert abs(height - 100) <= 1

    def test_zero_max_dimension_gives_empty_surface(self):
        assert compute_target_size(100, 100, 0) == (0, 0)

    def test_extreme_aspect_ratio_keeps_one_pixel(self):
        assert compute_target_size(4000, 3, 512) == (512, 1)
        assert compute_target_size(3, 4000, 512) == (1, 512)

    def test_negative_max_dimension_gives_empty_surface(self):
        width, height = compute_target_size(100, 50, -10)
        assert width < 1 and height < 1

    def test_zero_dimension_source_rejected(self):
        with pytest.raises(ImageEncodeError):
            compute_scale(0, 0, 512)


class TestImageNormalizerWithFakeCodec:
    """Tests for the pipeline, independent of any imaging library."""

    @pytest.mark.asyncio
    async def test_pipeline_order(self, normalizer_settings):
        codec = FakeCodec()
        normalizer = ImageNormalizer(codec=codec, settings=normalizer_settings)

        output = await normalizer.normalize(fake_file(2000, 1000))

        assert codec.calls == [
            "decode",
            ("resample", 512, 256),
            ("encode", "JPEG", 0.7),
        ]
        assert output.content == b"JPEG:512x256"

    @pytest.mark.asyncio
    async def test_pass_through_skips_resample(self, normalizer_settings):
        codec = FakeCodec()
        normalizer = ImageNormalizer(codec=codec, settings=normalizer_settings)

        output = await normalizer.normalize(fake_file(100, 100))

        assert codec.calls == ["decode", ("encode", "JPEG", 0.7)]
        assert output.content == b"JPEG:100x100"
        assert output.mime_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_upscale_policy_from_constructor(self, normalizer_settings):
        codec = FakeCodec()
        normalizer = ImageNormalizer(
            codec=codec,
            settings=normalizer_settings,
            allow_upscale=True,
        )

        output = await normalizer.normalize(fake_file(100, 50))

        assert output.content == b"JPEG:512x256"

    @pytest.mark.asyncio
    async def test_upscale_policy_from_settings(self):
        settings = NormalizerSettings(allow_upscale=True)
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=settings)

        output = await normalizer.normalize(fake_file(64, 64), max_dimension=128)

        assert output.content == b"JPEG:128x128"

    @pytest.mark.asyncio
    async def test_explicit_max_dimension_overrides_settings(self, normalizer_settings):
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=normalizer_settings)

        output = await normalizer.normalize(fake_file(2000, 1000), max_dimension=1000)

        assert output.content == b"JPEG:1000x500"

    @pytest.mark.asyncio
    async def test_output_keeps_name_and_gets_fresh_timestamp(self, normalizer_settings):
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=normalizer_settings)
        source = ImageFile(
            name="lunch.png",
            mime_type="image/png",
            content=b"800x600",
            last_modified=datetime(2020, 1, 1, tzinfo=timezone.utc),
        )
        before = datetime.now(timezone.utc)

        output = await normalizer.normalize(source)

        assert output.name == "lunch.png"
        assert output.last_modified >= before - timedelta(seconds=1)
        assert output is not source

    @pytest.mark.asyncio
    async def test_zero_max_dimension_fails_before_encoding(self, normalizer_settings):
        codec = FakeCodec()
        normalizer = ImageNormalizer(codec=codec, settings=normalizer_settings)

        with pytest.raises(ImageEncodeError):
            await normalizer.normalize(fake_file(100, 100), max_dimension=0)

        assert codec.calls == ["decode"]

    @pytest.mark.asyncio
    async def test_negative_max_dimension_fails(self, normalizer_settings):
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=normalizer_settings)

        with pytest.raises(ImageEncodeError):
            await normalizer.normalize(fake_file(100, 100), max_dimension=-10)

    @pytest.mark.asyncio
    async def test_extreme_aspect_ratio_resamples_to_one_pixel(self, normalizer_settings):
        codec = FakeCodec()
        normalizer = ImageNormalizer(codec=codec, settings=normalizer_settings)

        output = await normalizer.normalize(fake_file(4000, 3))

        assert ("resample", 512, 1) in codec.calls
        assert output.content == b"JPEG:512x1"

    @pytest.mark.asyncio
    async def test_zero_dimension_source_fails(self, normalizer_settings):
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=normalizer_settings)

        with pytest.raises(ImageEncodeError):
            await normalizer.normalize(fake_file(0, 0))

    @pytest.mark.asyncio
    async def test_decode_failure_propagates(self, normalizer_settings):
        codec = FakeCodec()
        normalizer = ImageNormalizer(codec=codec, settings=normalizer_settings)
        source = ImageFile(name="notes.txt", content=b"hello")

        with pytest.raises(ImageDecodeError):
            await normalizer.normalize(source)

        assert codec.calls == ["decode"]

    @pytest.mark.asyncio
    async def test_memory_error_becomes_resource_error(self, normalizer_settings):
        from receipt_normalizer.services.codec import ImageResourceError

        class ExhaustedCodec(FakeCodec):
            def resample(self, raster, width, height):
                raise MemoryError()

        normalizer = ImageNormalizer(codec=ExhaustedCodec(), settings=normalizer_settings)

        with pytest.raises(ImageResourceError):
            await normalizer.normalize(fake_file(4000, 4000))


class TestNormalizeMany:
    """Tests for concurrent normalization."""

    @pytest.mark.asyncio
    async def test_results_in_input_order(self, normalizer_settings):
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=normalizer_settings)
        sources = [fake_file(2000, 1000, "a.png"), fake_file(100, 100, "b.png"), fake_file(600, 1200, "c.png")]

        results = await normalizer.normalize_many(sources)

        assert [r.name for r in results] == ["a.png", "b.png", "c.png"]
        assert [r.content for r in results] == [b"JPEG:512x256", b"JPEG:100x100", b"JPEG:256x512"]

    @pytest.mark.asyncio
    async def test_failure_collected_in_place(self, normalizer_settings):
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=normalizer_settings)
        sources = [fake_file(100, 100, "ok.png"), ImageFile(name="bad.png", content=b"garbage")]

        results = await normalizer.normalize_many(sources, return_exceptions=True)

        assert results[0].name == "ok.png"
        assert isinstance(results[1], ImageDecodeError)

    @pytest.mark.asyncio
    async def test_failure_raised_by_default(self, normalizer_settings):
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=normalizer_settings)

        with pytest.raises(ImageDecodeError):
            await normalizer.normalize_many([ImageFile(name="bad.png", content=b"garbage")])

    @pytest.mark.asyncio
    async def test_calls_do_not_share_state(self, normalizer_settings):
        normalizer = ImageNormalizer(codec=FakeCodec(), settings=normalizer_settings)
        source = fake_file(2000, 1000)

        first, second = await asyncio.gather(
            normalizer.normalize(source),
            normalizer.normalize(source, max_dimension=100),
        )

        assert first.content == b"JPEG:512x256"
        assert second.content == b"JPEG:100x50"


class TestImageNormalizerWithPillow:
    """End-to-end tests through the Pillow codec."""

    @pytest.mark.asyncio
    async def test_large_image_fits_max_dimension(self, make_image, open_output, normalizer_settings):
        normalizer = ImageNormalizer(settings=normalizer_settings)

        output = await normalizer.normalize(make_image(2000, 1000), max_dimension=512)

        assert open_output(output).size == (512, 256)

    @pytest.mark.asyncio
    async def test_small_image_passes_through_as_jpeg(self, make_image, open_output, normalizer_settings):
        normalizer = ImageNormalizer(settings=normalizer_settings)
        source = make_image(100, 100, name="small.png")

        output = await normalizer.normalize(source)

        decoded = open_output(output)
        assert decoded.size == (100, 100)
        assert decoded.format == "JPEG"
        assert output.mime_type == "image/jpeg"
        assert output.name == "small.png"

    @pytest.mark.asyncio
    async def test_output_is_jpeg_regardless_of_input(self, make_image, open_output, normalizer_settings):
        normalizer = ImageNormalizer(settings=normalizer_settings)
        sources = [
            make_image(800, 600, "PNG"),
            make_image(800, 600, "GIF", mode="P", color=3, name="r.gif"),
            make_image(800, 600, "WEBP", name="r.webp"),
            make_image(800, 600, "JPEG", name="r.jpg"),
        ]

        for source in sources:
            output = await normalizer.normalize(source)
            assert output.mime_type == "image/jpeg"
            assert open_output(output).format == "JPEG"
            assert max(open_output(output).size) == 512

    @pytest.mark.asyncio
    async def test_thin_strip_keeps_one_pixel_row(self, make_image, open_output, normalizer_settings):
        normalizer = ImageNormalizer(settings=normalizer_settings)

        output = await normalizer.normalize(make_image(4000, 3, name="strip.png"))

        assert open_output(output).size == (512, 1)
        assert output.mime_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_corrupt_bytes_rejected(self, normalizer_settings):
        normalizer = ImageNormalizer(settings=normalizer_settings)
        source = ImageFile(name="receipt.jpg", mime_type="image/jpeg", content=b"\xff\xd8 definitely not a jpeg")

        with pytest.raises(ImageDecodeError):
            await asyncio.wait_for(normalizer.normalize(source), timeout=10)

    @pytest.mark.asyncio
    async def test_zero_max_dimension_is_encode_failure(self, make_image, normalizer_settings):
        normalizer = ImageNormalizer(settings=normalizer_settings)

        with pytest.raises(ImageEncodeError):
            await normalizer.normalize(make_image(100, 100), max_dimension=0)

    @pytest.mark.asyncio
    async def test_normalize_image_helper_defaults_to_512(self, make_image, open_output):
        output = await normalize_image(make_image(1024, 2048))

        assert open_output(output).size == (256, 512)
