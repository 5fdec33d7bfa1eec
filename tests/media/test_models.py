"""Tests for pipeline data types."""

import pytest
from PIL import Image

from imagedesk.media.errors import FileTooLarge, InvalidFile
from imagedesk.media.models import (
    Category,
    CropRegion,
    CropUnit,
    ImageFile,
    NamedBlob,
    SourceImage,
    Transform,
    UploadTarget,
)


class TestCategory:

    @pytest.mark.parametrize("value,expected", [
        ("news", Category.NEWS),
        ("Announcement", Category.NEWS),
        ("partner", Category.PARTNERSHIP),
        (" TEAM ", Category.TEAM),
        ("", Category.NEWS),
        (None, Category.NEWS),
    ])
    def test_parse(self, value, expected):
        assert Category.parse(value) is expected

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            Category.parse("weather")

    def test_upload_target_category(self):
        assert UploadTarget.PARTNER.category is Category.PARTNERSHIP
        assert UploadTarget.GAME.category is Category.GAME


class TestCropRegion:

    def test_percent_to_pixels(self):
        crop = CropRegion(x=10, y=20, width=50, height=25, unit=CropUnit.PERCENT)
        px = crop.to_pixels(200, 400)
        assert (px.x, px.y, px.width, px.height) == (20, 80, 100, 100)
        assert px.unit is CropUnit.PIXEL

    def test_pixels_to_percent(self):
        crop = CropRegion(x=20, y=80, width=100, height=100)
        pct = crop.to_percent(200, 400)
        assert (pct.x, pct.y, pct.width, pct.height) == pytest.approx((10, 20, 50, 25))

    def test_is_empty(self):
        assert CropRegion(x=0, y=0, width=0, height=10).is_empty
        assert not CropRegion(x=0, y=0, width=1, height=1).is_empty


class TestTransform:

    def test_identity(self):
        assert Transform().is_identity
        assert not Transform(rotate_degrees=-90).is_identity
        assert not Transform(scale=1.1).is_identity

    def test_css(self):
        assert Transform(scale=0.75, rotate_degrees=-90).css() == "scale(0.75) rotate(-90deg)"

    @pytest.mark.parametrize("kwargs", [
        {"scale": 0},
        {"scale": 2.5},
        {"scale": 0.49},
        {"scale": float("nan")},
        {"rotate_degrees": 181},
        {"rotate_degrees": -360},
    ])
    def test_out_of_range(self, kwargs):
        with pytest.raises(ValueError):
            Transform(**kwargs)

    def test_bounds_are_inclusive(self):
        assert Transform(scale=0.5, rotate_degrees=-180).scale == 0.5
        assert Transform(scale=2.0, rotate_degrees=180).rotate_degrees == 180


class TestSourceImage:

    def test_from_bytes_reads_natural_size(self, image_bytes):
        source = SourceImage.from_bytes(image_bytes(320, 240, fmt="PNG"), filename="a.png")
        assert (source.natural_width, source.natural_height) == (320, 240)
        assert (source.display_width, source.display_height) == (320, 240)
        assert source.mime_type == "image/png"

    def test_from_bytes_rejects_garbage(self):
        with pytest.raises(InvalidFile):
            SourceImage.from_bytes(b"<html>not an image</html>")

    def test_from_bytes_rejects_huge_dimensions(self, image_bytes, monkeypatch):
        data = image_bytes(100, 100, fmt="PNG")
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        with pytest.raises(FileTooLarge, match="dimensions"):
            SourceImage.from_bytes(data)

    def test_fit_display_never_upscales(self, image_bytes):
        source = SourceImage.from_bytes(image_bytes(400, 200))
        source.fit_display(1000, 1000)
        assert (source.display_width, source.display_height) == (400, 200)
        source.fit_display(200, 200)
        assert (source.display_width, source.display_height) == (200, 100)

    def test_data_url(self, image_bytes):
        source = SourceImage.from_bytes(image_bytes(8, 8))
        assert source.data_url().startswith("data:image/jpeg;base64,")


@pytest.mark.asyncio
async def test_image_file_read():
    file = ImageFile(filename="a.jpg", content_type="image/jpeg", data=b"abc")
    assert file.size == 3
    assert await file.read() == b"abc"


def test_named_blob_size():
    assert NamedBlob(data=b"12345", filename="x.jpg").size == 5
