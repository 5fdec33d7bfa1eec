"""Crop Session Controller.

Owns the interactive state of one open image editor:

- live crop: updated continuously while the user drags (overlay only)
- committed crop: set on interaction end, used for the final raster
- scale / rotation: independent preview controls, range-bound

finalize() hands the committed crop to the Transform Engine.
"""

import logging
from typing import Callable, Optional

from imagedesk.media.config import get_media_settings
from imagedesk.media.geometry import center_aspect_crop, constrain_crop
from imagedesk.media.models import Bitmap, CropRegion, SourceImage, Transform
from imagedesk.media.transform import render

logger = logging.getLogger(__name__)
media_settings = get_media_settings()

Renderer = Callable[..., Bitmap]


class CropSession:
    """Interactive crop/scale/rotate state for a single source image."""

    def __init__(
        self,
        source: SourceImage,
        aspect_ratio: Optional[float] = 1.0,
        renderer: Renderer = render,
        bake_transform: Optional[bool] = None,
    ):
        self.source: Optional[SourceImage] = source
        self.aspect_ratio = aspect_ratio or None
        self._renderer = renderer
        self._bake_transform = bake_transform

        self.crop: Optional[CropRegion] = None
        self.completed_crop: Optional[CropRegion] = None
        self.transform = Transform()
        self.loaded = False
        self.closed = False

    # ==========================================================================
    # Image load
    # ==========================================================================

    def load_image(self, display_width: Optional[float] = None, display_height: Optional[float] = None) -> None:
        """Image laid out on screen: record its displayed size, auto-crop.

        With an aspect ratio the crop is centered and committed right away,
        so Apply works without touching the overlay. Without one, the crop
        stays undefined until the user drags.
        """
        if self.source is None:
            return
        if display_width and display_height:
            self.source.display_width = display_width
            self.source.display_height = display_height
        self.loaded = True

        if self.aspect_ratio:
            w, h = self.source.display_width, self.source.display_height
            self.crop = center_aspect_crop(w, h, self.aspect_ratio, media_settings.MEDIA_CROP_COVERAGE_PERCENT)
            self.completed_crop = self.crop.to_pixels(w, h)
            logger.debug(f"CropSession: auto crop {self.completed_crop}")

    # ==========================================================================
    # Interaction
    # ==========================================================================

    def update_crop(self, crop: CropRegion) -> CropRegion:
        """Live crop while dragging. Does not touch the committed crop."""
        if self.source is None:
            return crop
        self.crop = constrain_crop(
            crop,
            self.source.display_width,
            self.source.display_height,
            self.aspect_ratio,
        )
        return self.crop

    def complete_crop(self, crop: Optional[CropRegion] = None) -> Optional[CropRegion]:
        """Interaction end (mouse/touch release): commit the crop in pixels."""
        if self.source is None:
            return None
        if crop is not None:
            self.update_crop(crop)
        if self.crop is None:
            return None
        self.completed_crop = self.crop.to_pixels(self.source.display_width, self.source.display_height)
        logger.debug(f"CropSession: committed {self.completed_crop}")
        return self.completed_crop

    def set_scale(self, scale: float) -> float:
        scale = min(max(float(scale), media_settings.MEDIA_SCALE_MIN), media_settings.MEDIA_SCALE_MAX)
        self.transform = Transform(scale=scale, rotate_degrees=self.transform.rotate_degrees)
        return scale

    def set_rotation(self, degrees: float) -> int:
        degrees = int(round(float(degrees)))
        degrees = min(max(degrees, media_settings.MEDIA_ROTATE_MIN), media_settings.MEDIA_ROTATE_MAX)
        self.transform = Transform(scale=self.transform.scale, rotate_degrees=degrees)
        return degrees

    def preview_style(self) -> str:
        """CSS transform applied to the preview image."""
        return self.transform.css()

    # ==========================================================================
    # Terminal operations
    # ==========================================================================

    def finalize(self) -> Optional[Bitmap]:
        """Rasterize the committed crop.

        Returns None when nothing is committed yet (caller re-prompts).
        Transform Engine errors propagate unchanged.
        """
        if self.closed or self.source is None or self.completed_crop is None:
            logger.debug("CropSession: finalize without committed crop, ignoring")
            return None

        bitmap = self._renderer(
            self.source,
            self.completed_crop,
            self.transform,
            bake_transform=self._bake_transform,
        )
        logger.info(
            f"CropSession: finalized {self.source.filename or 'image'} -> "
            f"{bitmap.width}x{bitmap.height} ({len(bitmap.data)} bytes)"
        )
        return bitmap

    def cancel(self) -> None:
        """Discard all session state. Always succeeds."""
        self.source = None
        self.crop = None
        self.completed_crop = None
        self.transform = Transform()
        self.loaded = False
        self.closed = True
