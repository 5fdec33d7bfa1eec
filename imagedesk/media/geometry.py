"""Crop geometry utilities.

Aspect-ratio and centering math for crop regions, in either unit.
All functions are pure and return new CropRegion instances.
"""

import logging

from imagedesk.media.models import CropRegion, CropUnit

logger = logging.getLogger(__name__)


# =============================================================================
# Aspect / centering
# =============================================================================
def make_aspect_crop(
    crop: CropRegion,
    aspect: float,
    container_width: float,
    container_height: float,
) -> CropRegion:
    """Force a crop to an aspect ratio, shrinking it to fit the container.

    The width drives the height. If the result overflows the container
    vertically, the height is cut to fit and the width follows; then the
    same for the horizontal edge. The result keeps the input unit.
    """
    px = crop.to_pixels(container_width, container_height)
    x, y, width = px.x, px.y, px.width
    height = width / aspect if width else px.height
    if not width:
        width = height * aspect

    if y + height > container_height:
        height = container_height - y
        width = height * aspect

    if x + width > container_width:
        width = container_width - x
        height = width / aspect

    result = CropRegion(x=x, y=y, width=width, height=height, unit=CropUnit.PIXEL)
    if crop.unit is CropUnit.PERCENT:
        return result.to_percent(container_width, container_height)
    return result


def center_crop(crop: CropRegion, container_width: float, container_height: float) -> CropRegion:
    """Center a crop inside the container, keeping its size and unit."""
    if crop.unit is CropUnit.PERCENT:
        return CropRegion(
            x=(100 - crop.width) / 2,
            y=(100 - crop.height) / 2,
            width=crop.width,
            height=crop.height,
            unit=CropUnit.PERCENT,
        )
    return CropRegion(
        x=(container_width - crop.width) / 2,
        y=(container_height - crop.height) / 2,
        width=crop.width,
        height=crop.height,
        unit=CropUnit.PIXEL,
    )


def center_aspect_crop(
    media_width: float,
    media_height: float,
    aspect: float,
    coverage: float = 90.0,
) -> CropRegion:
    """Initial crop for a freshly loaded image.

    Starts from a percent crop ``coverage`` wide, applies the aspect ratio
    (shrinking to fit) and centers it. A 1024x768 image at 1:1 gives a
    768x768 crop at (128, 0).
    """
    start = CropRegion(x=0, y=0, width=coverage, height=0, unit=CropUnit.PERCENT)
    crop = center_crop(
        make_aspect_crop(start, aspect, media_width, media_height),
        media_width,
        media_height,
    )
    logger.debug(f"Auto crop {media_width}x{media_height} @ {aspect:g}: {crop}")
    return crop


# =============================================================================
# Interaction helpers
# =============================================================================
def constrain_crop(
    crop: CropRegion,
    container_width: float,
    container_height: float,
    aspect: float | None = None,
) -> CropRegion:
    """Clamp a user-proposed crop into bounds, enforcing aspect if set.

    Negative sizes (dragging up/left past the anchor) are normalized first.
    """
    x, y, width, height = crop.x, crop.y, crop.width, crop.height
    if width < 0:
        x, width = x + width, -width
    if height < 0:
        y, height = y + height, -height
    crop = CropRegion(x=x, y=y, width=width, height=height, unit=crop.unit)

    crop = crop.clamped(container_width, container_height)
    if aspect and not crop.is_empty:
        crop = make_aspect_crop(crop, aspect, container_width, container_height)
    return crop


def natural_scale(
    natural_width: float,
    natural_height: float,
    display_width: float,
    display_height: float,
) -> tuple[float, float]:
    """Ratio between natural pixels and displayed pixels on each axis."""
    return natural_width / display_width, natural_height / display_height
