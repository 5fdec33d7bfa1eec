"""Shared fixtures for image pipeline tests. Images are generated in memory."""

import io

import pytest
from PIL import Image

from imagedesk.utils.cache import InMemoryUrlCache


def make_image_bytes(width: int, height: int, fmt: str = "JPEG", color=(200, 30, 30)) -> bytes:
    mode = "RGBA" if fmt == "PNG" and len(color) == 4 else "RGB"
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_quadrant_bytes(width: int, height: int) -> bytes:
    """PNG with four solid quadrants: red TL, green TR, blue BL, white BR."""
    img = Image.new("RGB", (width, height))
    hw, hh = width // 2, height // 2
    img.paste((255, 0, 0), (0, 0, hw, hh))
    img.paste((0, 255, 0), (hw, 0, width, hh))
    img.paste((0, 0, 255), (0, hh, hw, height))
    img.paste((255, 255, 255), (hw, hh, width, height))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def open_bitmap(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@pytest.fixture
def jpeg_1024x768() -> bytes:
    return make_image_bytes(1024, 768)


@pytest.fixture
def url_cache() -> InMemoryUrlCache:
    return InMemoryUrlCache()


@pytest.fixture
def image_bytes():
    """Factory: image_bytes(width, height, fmt="JPEG", color=...)."""
    return make_image_bytes


@pytest.fixture
def quadrant_bytes():
    """Factory: quadrant_bytes(width, height) -> PNG bytes."""
    return make_quadrant_bytes


@pytest.fixture
def decode():
    """Decode encoded bitmap bytes back into a loaded PIL image."""
    return open_bitmap
