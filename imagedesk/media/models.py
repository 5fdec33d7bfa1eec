"""Data model for the image pipeline.

SourceImage, CropRegion and Transform describe one editing session;
Bitmap and NamedBlob are what the Transform Engine and the uploader
exchange. Rendering is the output of the display chain.
"""

import base64
import io
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from PIL import Image, UnidentifiedImageError

from imagedesk.media.config import get_media_settings
from imagedesk.media.errors import FileTooLarge, InvalidFile


class UploadTarget(str, Enum):
    """Upload category: selects the endpoint and the placeholder style."""

    MEMBER = "member"
    EVENT = "event"
    NEWS = "news"
    GAME = "game"
    PARTNER = "partner"

    @property
    def category(self) -> "Category":
        return _TARGET_CATEGORIES[self]


class Category(str, Enum):
    """Placeholder category (closed set)."""

    MEMBER = "member"
    EVENT = "event"
    NEWS = "news"
    TEAM = "team"
    COMMUNITY = "community"
    PARTNERSHIP = "partnership"
    GAME = "game"

    @classmethod
    def parse(cls, value: "str | Category | None") -> "Category":
        """Parse a category, accepting legacy article categories.

        Raises ValueError for unknown categories.
        """
        if isinstance(value, Category):
            return value
        if not value:
            return cls.NEWS
        key = value.strip().lower()
        return cls(_CATEGORY_ALIASES.get(key, key))


_CATEGORY_ALIASES = {
    "announcement": "news",
    "partner": "partnership",
}

_TARGET_CATEGORIES = {
    UploadTarget.MEMBER: Category.MEMBER,
    UploadTarget.EVENT: Category.EVENT,
    UploadTarget.NEWS: Category.NEWS,
    UploadTarget.GAME: Category.GAME,
    UploadTarget.PARTNER: Category.PARTNERSHIP,
}


class SessionState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    PREVIEWING = "previewing"
    CROPPING = "cropping"
    UPLOADING = "uploading"
    DONE = "done"
    ERROR = "error"


class CropUnit(str, Enum):
    PERCENT = "percent"
    PIXEL = "pixel"


@dataclass(frozen=True)
class CropRegion:
    """Crop rectangle relative to the displayed image.

    Percent values are 0..100 of the displayed size, pixel values are
    displayed (layout) pixels, not natural pixels.
    """

    x: float
    y: float
    width: float
    height: float
    unit: CropUnit = CropUnit.PIXEL

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_pixels(self, display_width: float, display_height: float) -> "CropRegion":
        if self.unit is CropUnit.PIXEL:
            return self
        return CropRegion(
            x=self.x * display_width / 100,
            y=self.y * display_height / 100,
            width=self.width * display_width / 100,
            height=self.height * display_height / 100,
            unit=CropUnit.PIXEL,
        )

    def to_percent(self, display_width: float, display_height: float) -> "CropRegion":
        if self.unit is CropUnit.PERCENT:
            return self
        return CropRegion(
            x=self.x / display_width * 100,
            y=self.y / display_height * 100,
            width=self.width / display_width * 100,
            height=self.height / display_height * 100,
            unit=CropUnit.PERCENT,
        )

    def clamped(self, display_width: float, display_height: float) -> "CropRegion":
        """Return the region clamped inside the displayed bounds."""
        if self.unit is CropUnit.PERCENT:
            max_w, max_h = 100.0, 100.0
        else:
            max_w, max_h = float(display_width), float(display_height)
        width = max(0.0, min(self.width, max_w))
        height = max(0.0, min(self.height, max_h))
        x = max(0.0, min(self.x, max_w - width))
        y = max(0.0, min(self.y, max_h - height))
        return replace(self, x=x, y=y, width=width, height=height)


@dataclass(frozen=True)
class Transform:
    """Preview transform. Restyles the preview; never edits crop coordinates."""

    scale: float = 1.0
    rotate_degrees: int = 0

    def __post_init__(self):
        settings = get_media_settings()
        if not settings.MEDIA_SCALE_MIN <= self.scale <= settings.MEDIA_SCALE_MAX:
            raise ValueError(
                f"scale {self.scale!r} outside [{settings.MEDIA_SCALE_MIN}, {settings.MEDIA_SCALE_MAX}]"
            )
        if not settings.MEDIA_ROTATE_MIN <= self.rotate_degrees <= settings.MEDIA_ROTATE_MAX:
            raise ValueError(
                f"rotation {self.rotate_degrees!r} outside [{settings.MEDIA_ROTATE_MIN}, {settings.MEDIA_ROTATE_MAX}]"
            )

    @property
    def is_identity(self) -> bool:
        return self.scale == 1.0 and self.rotate_degrees % 360 == 0

    def css(self) -> str:
        return f"scale({self.scale:g}) rotate({self.rotate_degrees}deg)"


@dataclass
class SourceImage:
    """User-selected image plus its natural and displayed dimensions."""

    data: bytes
    natural_width: int
    natural_height: int
    filename: str = ""
    mime_type: str = "image/jpeg"
    display_width: Optional[float] = None
    display_height: Optional[float] = None

    def __post_init__(self):
        if self.display_width is None:
            self.display_width = self.natural_width
        if self.display_height is None:
            self.display_height = self.natural_height

    @classmethod
    def from_bytes(cls, data: bytes, filename: str = "", mime_type: str = "") -> "SourceImage":
        """Decode just enough of the image to learn its natural size.

        Raises:
            InvalidFile: bytes are not a decodable image
            FileTooLarge: pixel dimensions exceed Pillow's decompression limit
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                fmt = img.format
        except Image.DecompressionBombError as e:
            raise FileTooLarge("Image dimensions are too large.") from e
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidFile(f"Please select a valid image file. ({e})") from e

        if not mime_type and fmt:
            mime_type = Image.MIME.get(fmt, "image/jpeg")
        return cls(
            data=data,
            natural_width=width,
            natural_height=height,
            filename=filename,
            mime_type=mime_type or "image/jpeg",
        )

    def fit_display(self, max_width: float, max_height: float) -> None:
        """Lay the image out inside a box, never upscaling (max-width/max-height)."""
        ratio = min(1.0, max_width / self.natural_width, max_height / self.natural_height)
        self.display_width = self.natural_width * ratio
        self.display_height = self.natural_height * ratio

    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class Bitmap:
    """Encoded raster produced by the Transform Engine."""

    data: bytes
    width: int
    height: int
    mime_type: str = "image/jpeg"


@dataclass(frozen=True)
class NamedBlob:
    """Bytes ready for upload, with the name and type sent to the collaborator."""

    data: bytes
    filename: str
    mime_type: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class ImageFile:
    """A file picked or dropped by the user.

    Mirrors the subset of FastAPI's UploadFile the acquisition flow uses
    (filename, content_type, size, async read), so either can be passed.
    """

    filename: str
    content_type: str
    data: bytes = b""
    size: Optional[int] = None

    def __post_init__(self):
        if self.size is None:
            self.size = len(self.data)

    async def read(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class Rendering:
    """What a display component shows: the real image or a placeholder."""

    kind: str  # image, placeholder
    category: Category
    alt: str = ""
    url: Optional[str] = None
    svg: Optional[str] = None
    content: Optional[bytes] = field(default=None, repr=False)

    @property
    def is_placeholder(self) -> bool:
        return self.kind == "placeholder"
