"""Upload QA gate for user-selected files.

Checks, before anything is read or decoded:
- MIME type starts with image/
- Size <= 5MB (5 * 1024 * 1024 bytes inclusive)
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from imagedesk.media.config import get_media_settings
from imagedesk.media.errors import FileTooLarge, InvalidFile, MediaError
from imagedesk.telemetry.metrics import record_validation_rejected

logger = logging.getLogger(__name__)
media_settings = get_media_settings()


@dataclass
class ValidationResult:
    """Result of file validation."""

    valid: bool
    errors: list = field(default_factory=list)
    mime_type: Optional[str] = None
    file_size_bytes: int = 0
    error: Optional[MediaError] = None

    def __str__(self) -> str:
        if self.valid:
            return f"Valid ({self.mime_type}, {self.file_size_bytes} bytes)"
        return f"Invalid: {', '.join(self.errors)}"


def validate_image_file(
    mime_type: Optional[str],
    size: int,
    max_size: Optional[int] = None,
) -> ValidationResult:
    """Validate a candidate image file from its declared type and size.

    Args:
        mime_type: Declared content type (e.g. image/png)
        size: File size in bytes
        max_size: Size cap in bytes (default from settings)

    Returns:
        ValidationResult; on failure ``error`` holds the exception to raise
    """
    max_size = max_size or media_settings.MEDIA_MAX_FILE_SIZE_BYTES
    prefix = media_settings.MEDIA_ALLOWED_MIME_PREFIX

    if not mime_type or not mime_type.lower().startswith(prefix):
        error = InvalidFile()
        logger.debug(f"File rejected: type {mime_type!r} is not {prefix}*")
        record_validation_rejected("invalid_type")
        return ValidationResult(
            valid=False,
            errors=[error.message],
            mime_type=mime_type,
            file_size_bytes=size,
            error=error,
        )

    if size > max_size:
        error = FileTooLarge(f"Image size must be less than {max_size // (1024 * 1024)}MB.")
        logger.debug(f"File rejected: {size} bytes exceeds {max_size} bytes")
        record_validation_rejected("too_large")
        return ValidationResult(
            valid=False,
            errors=[error.message],
            mime_type=mime_type,
            file_size_bytes=size,
            error=error,
        )

    return ValidationResult(valid=True, mime_type=mime_type, file_size_bytes=size)
