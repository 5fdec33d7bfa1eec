"""Tests for the pre-preview file gate (type and size)."""

import pytest
from prometheus_client import REGISTRY

from imagedesk.media.errors import FileTooLarge, InvalidFile
from imagedesk.media.validator import validate_image_file

FIVE_MB = 5 * 1024 * 1024


def _rejections(reason: str) -> float:
    return REGISTRY.get_sample_value("media_validation_rejected_total", {"reason": reason}) or 0.0


class TestValidateImageFile:

    def test_size_limit_is_inclusive(self):
        result = validate_image_file("image/jpeg", FIVE_MB)
        assert result.valid
        assert result.error is None
        assert result.file_size_bytes == 5_242_880

    def test_one_byte_over_limit(self):
        result = validate_image_file("image/jpeg", FIVE_MB + 1)
        assert not result.valid
        assert isinstance(result.error, FileTooLarge)
        assert result.errors == ["Image size must be less than 5MB."]

    @pytest.mark.parametrize("mime_type", ["application/pdf", "text/plain", "", None])
    def test_non_image_types(self, mime_type):
        result = validate_image_file(mime_type, 100)
        assert not result.valid
        assert isinstance(result.error, InvalidFile)
        assert result.error.message == "Please select a valid image file."

    @pytest.mark.parametrize("mime_type", ["image/png", "image/webp", "IMAGE/GIF", "image/svg+xml"])
    def test_any_image_subtype_accepted(self, mime_type):
        assert validate_image_file(mime_type, 1024).valid

    def test_type_checked_before_size(self):
        result = validate_image_file("video/mp4", FIVE_MB * 10)
        assert isinstance(result.error, InvalidFile)

    def test_custom_limit(self):
        result = validate_image_file("image/png", 3 * 1024 * 1024, max_size=2 * 1024 * 1024)
        assert result.errors == ["Image size must be less than 2MB."]

    def test_rejections_are_counted(self):
        before = _rejections("too_large")
        validate_image_file("image/png", FIVE_MB + 1)
        assert _rejections("too_large") == before + 1

    def test_str(self):
        assert str(validate_image_file("image/png", 10)) == "Valid (image/png, 10 bytes)"
        assert str(validate_image_file("text/csv", 10)).startswith("Invalid: ")
