"""
Prometheus metrics for the image pipeline.

Design principles:
- Low cardinality (bounded label sets only)
- Best-effort (recording never blocks or breaks the pipeline)

ALLOWED LABELS (bounded sets):
- target:    "member", "event", "news", "game", "partner"
- category:  "member", "event", "news", "team", "community", "partnership", "game"
- outcome:   "ok", "error", "stale"
- reason:    "empty_path", "sentinel", "resolution_failed", "load_failed",
             "invalid_type", "too_large"
- backend:   "http", "r2"

FORBIDDEN AS LABELS: stored paths, URLs, filenames, error messages.
Use logs for anything per-image.
"""

import logging

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)

logger = logging.getLogger(__name__)

# =============================================================================
# ACQUISITION METRICS
# =============================================================================

media_validation_rejected_total = Counter(
    "media_validation_rejected_total",
    "Selected files rejected before preview",
    ["reason"],
)

media_uploads_total = Counter(
    "media_uploads_total",
    "Upload attempts by target, backend and outcome",
    ["target", "backend", "outcome"],
)

media_upload_bytes = Histogram(
    "media_upload_bytes",
    "Size of uploaded blobs in bytes",
    ["target"],
    buckets=[10_000, 50_000, 100_000, 250_000, 500_000, 1_000_000, 2_500_000, 5_000_000],
)

# =============================================================================
# DISPLAY METRICS
# =============================================================================

media_url_cache_total = Counter(
    "media_url_cache_total",
    "Stored path resolutions by cache result",
    ["result"],  # hit, miss
)

media_placeholder_fallbacks_total = Counter(
    "media_placeholder_fallbacks_total",
    "Renders that degraded to the category placeholder",
    ["category", "reason"],
)


# =============================================================================
# HELPERS
# =============================================================================


def record_validation_rejected(reason: str) -> None:
    try:
        media_validation_rejected_total.labels(reason=reason).inc()
    except Exception as e:
        logger.warning(f"Failed to record validation metric: {e}")


def record_upload(target: str, backend: str, outcome: str, size_bytes: int = 0) -> None:
    """
    Record an upload attempt.

    Args:
        target: UploadTarget value
        backend: "http" or "r2"
        outcome: "ok", "error" or "stale" (result discarded after cancel)
        size_bytes: Blob size, observed only for successful uploads
    """
    try:
        media_uploads_total.labels(target=target, backend=backend, outcome=outcome).inc()
        if outcome == "ok" and size_bytes > 0:
            media_upload_bytes.labels(target=target).observe(size_bytes)
    except Exception as e:
        logger.warning(f"Failed to record upload metric: {e}")


def record_url_cache(hit: bool) -> None:
    try:
        media_url_cache_total.labels(result="hit" if hit else "miss").inc()
    except Exception as e:
        logger.warning(f"Failed to record cache metric: {e}")


def record_placeholder_fallback(category: str, reason: str) -> None:
    try:
        media_placeholder_fallbacks_total.labels(category=category, reason=reason).inc()
    except Exception as e:
        logger.warning(f"Failed to record fallback metric: {e}")


def get_metrics_text() -> tuple[str, str]:
    """
    Generate Prometheus metrics text output.

    Returns:
        Tuple of (content, content_type)
    """
    return generate_latest(REGISTRY).decode("utf-8"), CONTENT_TYPE_LATEST
