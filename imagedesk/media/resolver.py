"""Stored path -> renderable URL resolution, memoized.

The resolution rule is a pure, synchronous function supplied by
configuration; results are memoized in a UrlCache so the rule runs at
most once per distinct path. Empty paths and placeholder sentinels never
reach the rule.
"""

import logging
import re
from functools import lru_cache, partial
from typing import Callable, Iterable, Optional

from imagedesk.media.config import get_media_settings
from imagedesk.media.errors import DisplayResolutionFailed
from imagedesk.telemetry.metrics import record_url_cache
from imagedesk.utils.cache import UrlCache, get_url_cache

logger = logging.getLogger(__name__)
media_settings = get_media_settings()

ResolutionRule = Callable[[str], str]

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def build_image_url(image_path: str, base_url: Optional[str] = None) -> str:
    """Default resolution rule: map a stored path onto the upload root.

    - http(s) URLs pass through unchanged
    - uploads/news/<file> -> partners/<file> (partner logos once saved under news/)
    - uploads/<rest> -> <rest> (the base URL already ends in uploads/)
    - a bare filename lives in news/
    - anything else is appended to the base URL

    Args:
        image_path: Stored path as returned by the upload collaborator
        base_url: Static upload root (default MEDIA_IMAGE_BASE_URL)

    Returns:
        Absolute URL

    Raises:
        ValueError: empty path
    """
    if not image_path or not isinstance(image_path, str):
        raise ValueError(f"Invalid image path: {image_path!r}")

    if _ABSOLUTE_URL.match(image_path):
        return image_path

    base_url = base_url or media_settings.MEDIA_IMAGE_BASE_URL
    if not base_url.endswith("/"):
        base_url += "/"

    clean = image_path.lstrip("/")
    if clean.startswith("uploads/news/"):
        return f"{base_url}partners/{clean[len('uploads/news/'):]}"
    if clean.startswith("uploads/"):
        return f"{base_url}{clean[len('uploads/'):]}"
    if "/" not in clean:
        return f"{base_url}news/{clean}"
    return f"{base_url}{clean}"


class ImageUrlResolver:
    """Resolve stored paths through a rule, memoized in a shared cache."""

    def __init__(
        self,
        rule: Optional[ResolutionRule] = None,
        cache: Optional[UrlCache] = None,
        placeholder_tokens: Optional[Iterable[str]] = None,
        placeholder_scheme: Optional[str] = None,
    ):
        self.rule = rule or build_image_url
        self.cache = cache if cache is not None else get_url_cache()
        if placeholder_tokens is None:
            placeholder_tokens = media_settings.MEDIA_PLACEHOLDER_TOKENS
        self.placeholder_tokens = frozenset(placeholder_tokens)
        self.placeholder_scheme = placeholder_scheme or media_settings.MEDIA_PLACEHOLDER_SCHEME

    def is_placeholder(self, path: Optional[str]) -> bool:
        """True for paths that must render the placeholder without any lookup."""
        if not path:
            return True
        return path.startswith(self.placeholder_scheme) or path in self.placeholder_tokens

    def resolve(self, path: Optional[str]) -> Optional[str]:
        """Resolved URL for a stored path, or None when it is a placeholder path.

        Raises:
            DisplayResolutionFailed: the rule rejected the path
        """
        if self.is_placeholder(path):
            return None

        cached = self.cache.get(path)
        if cached is not None:
            record_url_cache(hit=True)
            logger.debug(f"URL cache hit: {path}")
            return cached

        record_url_cache(hit=False)
        try:
            url = self.rule(path)
        except ValueError as e:
            logger.error(f"Cannot resolve image path {path!r}: {e}")
            raise DisplayResolutionFailed(str(e)) from e

        self.cache.set(path, url)
        logger.debug(f"Resolved {path} -> {url}")
        return url


@lru_cache
def get_url_resolver() -> ImageUrlResolver:
    """Resolver wired to the configured base URL and the process-wide cache."""
    return ImageUrlResolver(
        rule=partial(build_image_url, base_url=media_settings.MEDIA_IMAGE_BASE_URL),
        cache=get_url_cache(),
    )
