"""Display Resolution & Fallback Chain.

A DisplayImage is one rendered image slot (a news card, an avatar, a
partner logo). Render order:

1. empty path or placeholder sentinel -> placeholder, no lookup at all
2. resolved URL (memoized by the shared resolver cache)
3. load the URL; on network or decode failure -> placeholder

Degradation is one-way: once a path has failed in a component, that
component never tries it again. A different path is attempted normally.
"""

import io
import logging
from typing import Optional

import httpx
from PIL import Image, UnidentifiedImageError

from imagedesk.media.config import get_media_settings
from imagedesk.media.errors import DisplayResolutionFailed
from imagedesk.media.models import Category, Rendering
from imagedesk.media.placeholder import placeholder_data_url, render_placeholder_svg
from imagedesk.media.resolver import ImageUrlResolver, get_url_resolver
from imagedesk.telemetry.metrics import record_placeholder_fallback

logger = logging.getLogger(__name__)
media_settings = get_media_settings()


class ImageFetcher:
    """Fetch and decode-check an image URL via httpx + Pillow."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout or media_settings.MEDIA_FETCH_TIMEOUT_SECONDS
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        """Download an image and make sure it decodes.

        Raises:
            DisplayResolutionFailed: network error, non-2xx or undecodable body
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise DisplayResolutionFailed(f"Failed to load image: {url} ({e})") from e

        try:
            with Image.open(io.BytesIO(resp.content)) as img:
                img.verify()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise DisplayResolutionFailed(f"Failed to decode image: {url} ({e})") from e

        return resp.content


class DisplayImage:
    """One image slot with placeholder fallback."""

    def __init__(
        self,
        path: Optional[str],
        category: "Category | str" = Category.NEWS,
        alt: str = "",
        resolver: Optional[ImageUrlResolver] = None,
        fetcher: Optional[ImageFetcher] = None,
    ):
        self.path = path or ""
        self.category = Category.parse(category)
        self.alt = alt
        self.resolver = resolver or get_url_resolver()
        self.fetcher = fetcher or ImageFetcher()
        self._failed_paths: set[str] = set()
        self._reported: set[str] = set()

    @property
    def has_failed(self) -> bool:
        """True when the current path has already degraded to the placeholder."""
        return self.path in self._failed_paths

    def set_path(self, path: Optional[str]) -> None:
        """New source for this slot (e.g. the entity was edited)."""
        self.path = path or ""

    def render(self) -> Rendering:
        """Synchronous render: the resolved URL or the placeholder.

        Never touches the network.
        """
        path = self.path
        if not path:
            return self._placeholder("empty_path")
        if self.resolver.is_placeholder(path):
            return self._placeholder("sentinel")
        if path in self._failed_paths:
            return self._placeholder(None)

        try:
            url = self.resolver.resolve(path)
        except DisplayResolutionFailed:
            self._degrade("resolution_failed")
            return self._placeholder(None)

        return Rendering(kind="image", category=self.category, alt=self.alt, url=url)

    async def load(self) -> Rendering:
        """Render and load the image, degrading to the placeholder on failure."""
        rendering = self.render()
        if rendering.is_placeholder:
            return rendering

        try:
            content = await self.fetcher.fetch(rendering.url)
        except DisplayResolutionFailed as e:
            logger.warning(f"{e.message}; using {self.category.value} placeholder")
            self._degrade("load_failed")
            return self._placeholder(None)

        return Rendering(
            kind="image",
            category=self.category,
            alt=self.alt,
            url=rendering.url,
            content=content,
        )

    def on_error(self) -> Rendering:
        """Render failure reported by the host (e.g. an <img> onerror)."""
        if self.path and self.path not in self._failed_paths:
            logger.warning(f"Image render failed for {self.path}; using {self.category.value} placeholder")
            self._degrade("load_failed")
        return self._placeholder(None)

    def _degrade(self, reason: str) -> None:
        self._failed_paths.add(self.path)
        record_placeholder_fallback(self.category.value, reason)

    def _placeholder(self, reason: Optional[str]) -> Rendering:
        if reason and self.path not in self._reported:
            self._reported.add(self.path)
            logger.debug(f"Placeholder for {self.path!r} ({reason})")
            record_placeholder_fallback(self.category.value, reason)
        return Rendering(
            kind="placeholder",
            category=self.category,
            alt=self.alt,
            url=placeholder_data_url(self.category),
            svg=render_placeholder_svg(self.category),
        )
