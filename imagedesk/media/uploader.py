"""Upload Resolver: hand the transformed blob to the storage collaborator.

A thin async boundary. One attempt per call: no retry, no backoff, and
the blob's bytes are passed through untouched. Any failure surfaces as
UploadFailed.

API: POST {MEDIA_API_URL}/{members|events|news|games|partners}/upload
Body: multipart/form-data, field "image"
Response: {"path": "..."} (older deployments answer {"imagePath": "..."})
"""

import logging
from typing import Optional, Protocol

import httpx

from imagedesk.media.config import build_upload_endpoint, get_media_settings
from imagedesk.media.errors import UploadFailed
from imagedesk.media.models import NamedBlob, UploadTarget
from imagedesk.telemetry.metrics import record_upload

logger = logging.getLogger(__name__)
media_settings = get_media_settings()

# Collaborator status codes with a more useful message than the generic one
_STATUS_MESSAGES = {
    401: "Unauthorized. Please log in again.",
    413: "File is too large. Please select a smaller image.",
    415: "Invalid file type. Please use JPG, PNG, or WebP images.",
}


class UploadResolver(Protocol):
    async def upload(self, blob: NamedBlob, target: UploadTarget) -> str:
        ...


class HttpUploadResolver:
    """Multipart upload to the REST collaborator via httpx."""

    backend = "http"

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url or media_settings.MEDIA_API_URL
        self.timeout = timeout or media_settings.MEDIA_UPLOAD_TIMEOUT_SECONDS
        self._transport = transport

    async def upload(self, blob: NamedBlob, target: UploadTarget) -> str:
        """Upload a blob and return the stored path.

        Args:
            blob: Named bytes to upload (sent as-is)
            target: Upload category selecting the endpoint

        Returns:
            Stored path reported by the collaborator

        Raises:
            UploadFailed: network error, timeout, non-2xx, or no path in response
        """
        target = UploadTarget(target)
        url = build_upload_endpoint(self.api_url, target.value)
        logger.info(f"Upload: {blob.filename} ({blob.size} bytes) -> {url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    url,
                    files={"image": (blob.filename, blob.data, blob.mime_type)},
                )
                resp.raise_for_status()
            payload = resp.json()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Upload rejected: {status} - {e.response.text[:200]}")
            record_upload(target.value, self.backend, "error")
            raise UploadFailed(_STATUS_MESSAGES.get(status)) from e
        except httpx.TimeoutException as e:
            logger.error(f"Upload timeout after {self.timeout}s: {url}")
            record_upload(target.value, self.backend, "error")
            raise UploadFailed("Upload timed out. Please try again.") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Upload request failed: {e}")
            record_upload(target.value, self.backend, "error")
            raise UploadFailed() from e
        except ValueError as e:
            logger.error(f"Upload response is not JSON: {e}")
            record_upload(target.value, self.backend, "error")
            raise UploadFailed("Invalid response from server.") from e

        path = None
        if isinstance(payload, dict):
            path = payload.get("path") or payload.get("imagePath")
        if not path or not isinstance(path, str):
            logger.error(f"Upload response missing path: {str(payload)[:200]}")
            record_upload(target.value, self.backend, "error")
            raise UploadFailed("Invalid response from server: missing image path.")

        record_upload(target.value, self.backend, "ok", blob.size)
        logger.info(f"Upload: stored {blob.filename} as {path}")
        return path


def get_upload_resolver() -> UploadResolver:
    """Upload resolver for the configured backend (MEDIA_UPLOAD_BACKEND)."""
    backend = media_settings.MEDIA_UPLOAD_BACKEND.lower()
    if backend == "r2":
        from imagedesk.media.r2_client import get_r2_upload_resolver

        resolver = get_r2_upload_resolver()
        if resolver is not None:
            return resolver
        logger.warning("MEDIA_UPLOAD_BACKEND=r2 but R2 is not configured, using HTTP upload")
    return HttpUploadResolver()
