"""
Image pipeline telemetry.

Prometheus counters for validation rejections, uploads, URL cache
efficiency and placeholder fallbacks.
"""

from imagedesk.telemetry.metrics import (
    media_validation_rejected_total,
    media_uploads_total,
    media_upload_bytes,
    media_url_cache_total,
    media_placeholder_fallbacks_total,
    record_validation_rejected,
    record_upload,
    record_url_cache,
    record_placeholder_fallback,
    get_metrics_text,
)

__all__ = [
    "media_validation_rejected_total",
    "media_uploads_total",
    "media_upload_bytes",
    "media_url_cache_total",
    "media_placeholder_fallbacks_total",
    "record_validation_rejected",
    "record_upload",
    "record_url_cache",
    "record_placeholder_fallback",
    "get_metrics_text",
]
