"""Image Pipeline Configuration.

Settings for file validation, crop rasterization, upload targets and
display resolution. Storage credentials are only needed when the R2
upload backend is selected.
"""

import secrets
import time
from functools import lru_cache

from pydantic_settings import BaseSettings


class MediaSettings(BaseSettings):
    """Image pipeline settings."""

    # ==========================================================================
    # Collaborator endpoints
    # ==========================================================================

    MEDIA_API_URL: str = "http://localhost:5000/api"
    MEDIA_IMAGE_BASE_URL: str = "http://localhost:5000/uploads/"

    # ==========================================================================
    # Validation
    # ==========================================================================

    MEDIA_MAX_FILE_SIZE_BYTES: int = 5 * 1024 * 1024  # 5MB
    MEDIA_ALLOWED_MIME_PREFIX: str = "image/"

    # ==========================================================================
    # Crop session / rasterization
    # ==========================================================================

    MEDIA_CROP_COVERAGE_PERCENT: float = 90.0  # auto-crop width, % of displayed width
    MEDIA_SCALE_MIN: float = 0.5
    MEDIA_SCALE_MAX: float = 2.0
    MEDIA_ROTATE_MIN: int = -180
    MEDIA_ROTATE_MAX: int = 180

    # False = export the crop only; scale/rotate restyle the preview
    MEDIA_BAKE_PREVIEW_TRANSFORM: bool = False

    MEDIA_OUTPUT_FORMAT: str = "JPEG"
    MEDIA_OUTPUT_MIME: str = "image/jpeg"
    MEDIA_OUTPUT_QUALITY: int = 90
    MEDIA_DEFAULT_FILENAME: str = "cropped-image.jpg"

    # ==========================================================================
    # Upload
    # ==========================================================================

    MEDIA_UPLOAD_BACKEND: str = "http"  # http, r2
    MEDIA_UPLOAD_TIMEOUT_SECONDS: float = 15.0

    MEDIA_R2_ENDPOINT_URL: str = ""  # https://<account_id>.r2.cloudflarestorage.com
    MEDIA_R2_ACCESS_KEY_ID: str = ""
    MEDIA_R2_SECRET_ACCESS_KEY: str = ""
    MEDIA_R2_BUCKET: str = "teamwave-uploads"

    # ==========================================================================
    # Display / fallback
    # ==========================================================================

    MEDIA_PLACEHOLDER_SCHEME: str = "placeholder://"
    MEDIA_PLACEHOLDER_TOKENS: list[str] = ["test-image.jpg"]
    MEDIA_BRAND_TEXT: str = "TEAMWAVE"
    MEDIA_FETCH_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_media_settings() -> MediaSettings:
    """Get cached media settings instance."""
    return MediaSettings()


# ==========================================================================
# Upload target layout
# ==========================================================================

# UploadTarget value -> (API collection, storage directory)
UPLOAD_ROUTES: dict[str, tuple[str, str]] = {
    "member": ("members", "members"),
    "event": ("events", "events"),
    "news": ("news", "news"),
    "game": ("games", "images"),
    "partner": ("partners", "partners"),
}


def build_upload_endpoint(api_url: str, target: str) -> str:
    """Build the upload endpoint URL for a target.

    Args:
        api_url: Base API URL (e.g. http://localhost:5000/api)
        target: UploadTarget value (member, event, news, game, partner)

    Returns:
        URL: {api_url}/{collection}/upload
    """
    collection, _ = UPLOAD_ROUTES[target]
    return f"{api_url.rstrip('/')}/{collection}/upload"


def build_upload_key(target: str, filename: str) -> str:
    """Build a unique storage key for an uploaded image.

    The key never depends on the blob contents, only on the target,
    the current time and a random suffix.

    Args:
        target: UploadTarget value
        filename: Original filename (only its extension is kept)

    Returns:
        Key: {directory}/{epoch_ms}-{random}.{ext}
    """
    _, directory = UPLOAD_ROUTES[target]
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
    unique = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{directory}/{unique}.{ext}"
