"""Image acquisition, transform and delivery pipeline.

Used wherever an operator supplies a picture (member avatars, team logos,
news art, partner logos, game art):

- acquisition: pick/drop -> validate -> preview -> crop -> upload
- transform: crop rasterization on the natural pixel grid (Pillow)
- uploader / r2_client: hand-off to the storage collaborator
- resolver / display / placeholder: stored path -> URL, with a
  deterministic category placeholder when there is no usable image
"""

from imagedesk.media.config import get_media_settings, MediaSettings
from imagedesk.media.errors import (
    MediaError,
    InvalidFile,
    FileTooLarge,
    EmptyCropRegion,
    RenderingUnavailable,
    UploadFailed,
    DisplayResolutionFailed,
)
from imagedesk.media.models import (
    Bitmap,
    Category,
    CropRegion,
    CropUnit,
    ImageFile,
    NamedBlob,
    Rendering,
    SessionState,
    SourceImage,
    Transform,
    UploadTarget,
)

__all__ = [
    "get_media_settings",
    "MediaSettings",
    "MediaError",
    "InvalidFile",
    "FileTooLarge",
    "EmptyCropRegion",
    "RenderingUnavailable",
    "UploadFailed",
    "DisplayResolutionFailed",
    "Bitmap",
    "Category",
    "CropRegion",
    "CropUnit",
    "ImageFile",
    "NamedBlob",
    "Rendering",
    "SessionState",
    "SourceImage",
    "Transform",
    "UploadTarget",
]
