"""HTTP routes for the display chain.

- GET /media/placeholders/{category}.svg  category placeholder graphic
- GET /media/resolve?path=...&category=...  stored path -> URL (or placeholder)
- GET /media/metrics  Prometheus exposition

Read-only and side-effect free apart from warming the URL cache.
The host application mounts it with app.include_router(router).
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel

from imagedesk.media.errors import DisplayResolutionFailed
from imagedesk.media.models import Category
from imagedesk.media.placeholder import placeholder_data_url, render_placeholder_svg
from imagedesk.media.resolver import get_url_resolver
from imagedesk.telemetry.metrics import get_metrics_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["media"])


class ResolveResponse(BaseModel):
    path: str
    url: str
    placeholder: bool
    category: str


def _parse_category(value: str) -> Category:
    try:
        return Category.parse(value)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown category '{value}'")


@router.get("/placeholders/{category}.svg")
async def get_placeholder(category: str):
    """Placeholder SVG for a category. Cacheable forever: output never changes."""
    parsed = _parse_category(category)
    return Response(
        content=render_placeholder_svg(parsed),
        media_type="image/svg+xml",
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )


@router.get("/resolve", response_model=ResolveResponse)
async def resolve_image(
    path: str = Query("", description="Stored path returned by the upload collaborator"),
    category: str = Query("news"),
):
    """Resolve a stored path, answering with the placeholder when it has none."""
    parsed = _parse_category(category)
    resolver = get_url_resolver()

    url: Optional[str]
    try:
        url = resolver.resolve(path)
    except DisplayResolutionFailed as e:
        logger.warning(f"Resolve failed for {path!r}: {e.message}")
        url = None

    if url is None:
        return ResolveResponse(path=path, url=placeholder_data_url(parsed), placeholder=True, category=parsed.value)
    return ResolveResponse(path=path, url=url, placeholder=False, category=parsed.value)


@router.get("/metrics")
async def metrics():
    content, content_type = get_metrics_text()
    return Response(content=content, media_type=content_type)
