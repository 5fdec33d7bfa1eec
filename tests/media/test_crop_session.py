"""Tests for CropSession: auto crop, live vs committed crop, preview controls."""

from unittest.mock import MagicMock

import pytest

from imagedesk.media.crop_session import CropSession
from imagedesk.media.errors import RenderingUnavailable
from imagedesk.media.models import Bitmap, CropRegion, CropUnit, SourceImage, Transform


@pytest.fixture
def source(jpeg_1024x768):
    return SourceImage.from_bytes(jpeg_1024x768, filename="photo.jpg")


# ---------------------------------------------------------------------------
# Image load
# ---------------------------------------------------------------------------

class TestLoadImage:

    def test_auto_crop_square_on_landscape(self, source):
        session = CropSession(source, aspect_ratio=1.0)
        session.load_image()

        assert session.loaded
        assert session.crop.unit is CropUnit.PERCENT
        committed = session.completed_crop
        assert committed.unit is CropUnit.PIXEL
        assert committed.x == pytest.approx(128)
        assert committed.y == pytest.approx(0)
        assert committed.width == pytest.approx(768)
        assert committed.height == pytest.approx(768)

    def test_auto_crop_uses_displayed_size(self, source):
        session = CropSession(source, aspect_ratio=1.0)
        session.load_image(512, 384)

        assert source.display_width == 512
        assert session.completed_crop.width == pytest.approx(384)
        assert session.completed_crop.x == pytest.approx(64)

    def test_no_aspect_leaves_crop_undefined(self, source):
        session = CropSession(source, aspect_ratio=None)
        session.load_image()

        assert session.crop is None
        assert session.completed_crop is None
        assert session.finalize() is None


# ---------------------------------------------------------------------------
# Interaction
# ---------------------------------------------------------------------------

class TestInteraction:

    def test_live_crop_does_not_commit(self, source):
        session = CropSession(source, aspect_ratio=1.0)
        session.load_image()
        committed = session.completed_crop

        session.update_crop(CropRegion(x=0, y=0, width=300, height=300))

        assert session.crop.width == pytest.approx(300)
        assert session.completed_crop == committed

    def test_complete_crop_commits_in_pixels(self, source):
        session = CropSession(source, aspect_ratio=None)
        session.load_image()

        committed = session.complete_crop(CropRegion(x=10, y=10, width=50, height=25, unit=CropUnit.PERCENT))

        assert committed.unit is CropUnit.PIXEL
        assert committed.width == pytest.approx(512)
        assert committed.height == pytest.approx(192)

    def test_update_clamps_into_image(self, source):
        session = CropSession(source, aspect_ratio=None)
        crop = session.update_crop(CropRegion(x=1000, y=700, width=200, height=200))
        assert crop.x + crop.width <= 1024
        assert crop.y + crop.height <= 768

    def test_scale_is_clamped(self, source):
        session = CropSession(source)
        assert session.set_scale(5) == 2.0
        assert session.set_scale(0.1) == 0.5
        assert session.set_scale(1.25) == 1.25
        assert session.transform.scale == 1.25

    def test_rotation_is_clamped_and_integral(self, source):
        session = CropSession(source)
        assert session.set_rotation(270) == 180
        assert session.set_rotation(-999) == -180
        assert session.set_rotation(45.6) == 46

    def test_transform_never_touches_crop(self, source):
        session = CropSession(source, aspect_ratio=1.0)
        session.load_image()
        crop, committed = session.crop, session.completed_crop

        session.set_scale(1.8)
        session.set_rotation(-30)

        assert session.crop == crop
        assert session.completed_crop == committed

    def test_preview_style(self, source):
        session = CropSession(source)
        assert session.preview_style() == "scale(1) rotate(0deg)"
        session.set_scale(1.5)
        session.set_rotation(45)
        assert session.preview_style() == "scale(1.5) rotate(45deg)"


# ---------------------------------------------------------------------------
# Finalize / cancel
# ---------------------------------------------------------------------------

class TestFinalize:

    def test_finalize_renders_committed_crop(self, source, decode):
        session = CropSession(source, aspect_ratio=1.0)
        session.load_image()

        bitmap = session.finalize()

        assert (bitmap.width, bitmap.height) == (768, 768)
        assert decode(bitmap.data).size == (768, 768)

    def test_finalize_hands_state_to_renderer(self, source):
        renderer = MagicMock(return_value=Bitmap(data=b"x", width=1, height=1))
        session = CropSession(source, aspect_ratio=1.0, renderer=renderer, bake_transform=True)
        session.load_image()
        session.set_rotation(90)

        session.finalize()

        renderer.assert_called_once_with(
            source,
            session.completed_crop,
            Transform(scale=1.0, rotate_degrees=90),
            bake_transform=True,
        )

    def test_renderer_errors_propagate(self, source):
        renderer = MagicMock(side_effect=RenderingUnavailable())
        session = CropSession(source, aspect_ratio=1.0, renderer=renderer)
        session.load_image()

        with pytest.raises(RenderingUnavailable):
            session.finalize()

    def test_cancel_discards_everything(self, source):
        renderer = MagicMock()
        session = CropSession(source, aspect_ratio=1.0, renderer=renderer)
        session.load_image()
        session.set_scale(2)

        session.cancel()

        assert session.closed
        assert session.source is None
        assert session.completed_crop is None
        assert session.transform == Transform()
        assert session.finalize() is None
        renderer.assert_not_called()
