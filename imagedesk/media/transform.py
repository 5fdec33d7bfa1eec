"""Transform Engine: rasterize a crop of the source image.

Maps a crop drawn on the displayed image onto the natural pixel grid and
renders it into a fixed-size bitmap. Uses Pillow for resampling and encoding.

Default export is crop-only: the preview scale/rotation is not applied.
With bake_transform the preview transform (scale and rotate about the
displayed image's center) is baked into the output with one inverse-affine
resample, so the export matches what the preview shows under the crop box.
"""

import io
import logging
import math
from typing import Optional

from PIL import Image, UnidentifiedImageError

from imagedesk.media.config import get_media_settings
from imagedesk.media.errors import EmptyCropRegion, RenderingUnavailable
from imagedesk.media.geometry import natural_scale
from imagedesk.media.models import Bitmap, CropRegion, SourceImage, Transform

logger = logging.getLogger(__name__)
media_settings = get_media_settings()

# Sub-pixel slack when deciding whether a source box lies inside the image
_BOX_EPSILON = 1e-6


def render(
    source: SourceImage,
    crop: CropRegion,
    transform: Optional[Transform] = None,
    output_size: Optional[tuple[int, int]] = None,
    bake_transform: Optional[bool] = None,
    output_format: Optional[str] = None,
    quality: Optional[int] = None,
) -> Bitmap:
    """Render the crop of a source image into an encoded bitmap.

    Args:
        source: Source image with natural and displayed dimensions
        crop: Crop region relative to the displayed image (percent or pixel)
        transform: Preview scale/rotation (only used when baking)
        output_size: (width, height) override; default is the crop's pixel size
        bake_transform: Apply the preview transform (default from settings)
        output_format: Pillow format name (default from settings, JPEG)
        quality: Lossy quality 1-100 (default from settings, 90)

    Returns:
        Bitmap sized output_size or (crop.width, crop.height)

    Raises:
        EmptyCropRegion: crop or output has no area
        RenderingUnavailable: source cannot be decoded or output cannot be encoded
    """
    if bake_transform is None:
        bake_transform = media_settings.MEDIA_BAKE_PREVIEW_TRANSFORM
    output_format = (output_format or media_settings.MEDIA_OUTPUT_FORMAT).upper()
    quality = quality or media_settings.MEDIA_OUTPUT_QUALITY

    display_w = float(source.display_width)
    display_h = float(source.display_height)
    pixel_crop = crop.to_pixels(display_w, display_h)
    if pixel_crop.is_empty:
        raise EmptyCropRegion()

    out_w, out_h = output_size or (round(pixel_crop.width), round(pixel_crop.height))
    if out_w <= 0 or out_h <= 0:
        raise EmptyCropRegion(f"Crop area is too small ({out_w}x{out_h}px).")

    img = _open_source(source)
    scale_x, scale_y = natural_scale(img.width, img.height, display_w, display_h)

    try:
        if bake_transform and transform is not None and not transform.is_identity:
            out = _render_affine(img, pixel_crop, (out_w, out_h), scale_x, scale_y, display_w, display_h, transform)
        else:
            box = (
                pixel_crop.x * scale_x,
                pixel_crop.y * scale_y,
                (pixel_crop.x + pixel_crop.width) * scale_x,
                (pixel_crop.y + pixel_crop.height) * scale_y,
            )
            inside = _fit_box(box, img.width, img.height)
            if inside is not None:
                out = img.resize((out_w, out_h), Image.Resampling.LANCZOS, box=inside)
            else:
                # Crop reaches past the image edge: sample with fill
                out = _render_affine(img, pixel_crop, (out_w, out_h), scale_x, scale_y, display_w, display_h, Transform())

        data = _encode(out, output_format, quality)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Crop render failed: {e}")
        raise RenderingUnavailable() from e

    logger.debug(
        f"Rendered crop ({pixel_crop.x:.1f},{pixel_crop.y:.1f} {pixel_crop.width:.1f}x{pixel_crop.height:.1f}) "
        f"from {img.width}x{img.height} -> {out_w}x{out_h} {output_format} ({len(data)} bytes)"
    )
    return Bitmap(
        data=data,
        width=out_w,
        height=out_h,
        mime_type=Image.MIME.get(output_format, "application/octet-stream"),
    )


def _open_source(source: SourceImage) -> Image.Image:
    """Decode the source into an RGB/RGBA surface."""
    try:
        img = Image.open(io.BytesIO(source.data))
        img.load()
        if img.mode not in ("RGB", "RGBA"):
            has_alpha = img.mode in ("LA", "PA") or (img.mode == "P" and "transparency" in img.info)
            img = img.convert("RGBA" if has_alpha else "RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.error(f"Cannot decode source image {source.filename or '<memory>'}: {e}")
        raise RenderingUnavailable() from e
    return img


def _fit_box(
    box: tuple[float, float, float, float],
    width: int,
    height: int,
) -> Optional[tuple[float, float, float, float]]:
    """Snap a source box inside the image, or None if it genuinely overflows."""
    left, top, right, bottom = box
    if left < -_BOX_EPSILON or top < -_BOX_EPSILON:
        return None
    if right > width + _BOX_EPSILON or bottom > height + _BOX_EPSILON:
        return None
    return max(0.0, left), max(0.0, top), min(float(width), right), min(float(height), bottom)


def _render_affine(
    img: Image.Image,
    crop: CropRegion,
    size: tuple[int, int],
    scale_x: float,
    scale_y: float,
    display_w: float,
    display_h: float,
    transform: Transform,
) -> Image.Image:
    """Sample the output through the inverse of the preview transform.

    Output pixel (u, v) sits at display point d = crop.xy + (u*kx, v*ky).
    The preview draws the image scaled by s and rotated clockwise by theta
    about the display center c, so the source display point is
    c + R(-theta)(d - c) / s, then natural = display * (scale_x, scale_y).
    """
    out_w, out_h = size
    kx = crop.width / out_w
    ky = crop.height / out_h
    cx, cy = display_w / 2, display_h / 2
    ox, oy = crop.x - cx, crop.y - cy

    theta = math.radians(transform.rotate_degrees)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    s = transform.scale

    coefficients = (
        scale_x * cos_t * kx / s,
        scale_x * sin_t * ky / s,
        scale_x * (cx + (cos_t * ox + sin_t * oy) / s),
        -scale_y * sin_t * kx / s,
        scale_y * cos_t * ky / s,
        scale_y * (cy + (-sin_t * ox + cos_t * oy) / s),
    )
    fill = (0, 0, 0, 0) if img.mode == "RGBA" else (0, 0, 0)
    return img.transform(
        (out_w, out_h),
        Image.Transform.AFFINE,
        data=coefficients,
        resample=Image.Resampling.BICUBIC,
        fillcolor=fill,
    )


def _encode(img: Image.Image, output_format: str, quality: int) -> bytes:
    output = io.BytesIO()
    if output_format == "JPEG":
        if img.mode == "RGBA":
            # Transparent areas export as black, like a canvas JPEG export
            flat = Image.new("RGB", img.size, (0, 0, 0))
            flat.paste(img, mask=img.split()[3])
            img = flat
        img.save(output, format="JPEG", quality=quality)
    elif output_format == "WEBP":
        img.save(output, format="WEBP", quality=quality, lossless=False)
    elif output_format == "PNG":
        img.save(output, format="PNG", optimize=True)
    else:
        img.save(output, format=output_format)
    return output.getvalue()
