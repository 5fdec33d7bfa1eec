"""Cloudflare R2 upload backend.

Stores cropped images directly in an S3-compatible bucket and returns the
object key as the stored path. Keys are unique per upload and never
derived from the blob contents.

Usage:
    resolver = get_r2_upload_resolver()
    if resolver:
        path = await resolver.upload(blob, UploadTarget.NEWS)
        # path == "news/1760000000000-123456789.jpg"
"""

import logging
from typing import Optional

from imagedesk.media.config import build_upload_key, get_media_settings
from imagedesk.media.errors import UploadFailed
from imagedesk.media.models import NamedBlob, UploadTarget
from imagedesk.telemetry.metrics import record_upload

logger = logging.getLogger(__name__)
media_settings = get_media_settings()


class R2UploadResolver:
    """Async Cloudflare R2 client used as an upload resolver."""

    backend = "r2"

    def __init__(
        self,
        endpoint_url: str,
        access_key_id: str,
        secret_access_key: str,
        bucket: str,
    ):
        self.endpoint_url = endpoint_url
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.bucket = bucket
        self._session = None

    async def _get_client(self):
        """Get or create aioboto3 S3 client."""
        if self._session is None:
            import aioboto3

            self._session = aioboto3.Session()
        return self._session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
        )

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str = "image/jpeg",
    ) -> None:
        """Upload binary object to R2.

        Raises:
            UploadFailed: the bucket rejected the object or was unreachable
        """
        try:
            async with await self._get_client() as client:
                await client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except Exception as e:
            logger.error(f"R2: Failed to upload {key}: {e}")
            raise UploadFailed() from e
        logger.debug(f"R2: Uploaded {key} ({len(body)} bytes)")

    async def upload(self, blob: NamedBlob, target: UploadTarget) -> str:
        """Store a blob under a fresh key for the target and return the key."""
        target = UploadTarget(target)
        key = build_upload_key(target.value, blob.filename)
        try:
            await self.put_object(key, blob.data, blob.mime_type)
        except UploadFailed:
            record_upload(target.value, self.backend, "error")
            raise
        record_upload(target.value, self.backend, "ok", blob.size)
        logger.info(f"R2: stored {blob.filename} as {key}")
        return key

    async def close(self) -> None:
        """Close the client session."""
        self._session = None
        logger.debug("R2: Client closed")


# ==========================================================================
# Global client instance
# ==========================================================================

_r2_upload_resolver: Optional[R2UploadResolver] = None


def get_r2_upload_resolver() -> Optional[R2UploadResolver]:
    """Get the R2 upload resolver if configured.

    Returns:
        R2UploadResolver instance or None if not configured
    """
    global _r2_upload_resolver

    if not media_settings.MEDIA_R2_ENDPOINT_URL:
        logger.warning("R2 upload requested but MEDIA_R2_ENDPOINT_URL not set")
        return None

    if _r2_upload_resolver is None:
        _r2_upload_resolver = R2UploadResolver(
            endpoint_url=media_settings.MEDIA_R2_ENDPOINT_URL,
            access_key_id=media_settings.MEDIA_R2_ACCESS_KEY_ID,
            secret_access_key=media_settings.MEDIA_R2_SECRET_ACCESS_KEY,
            bucket=media_settings.MEDIA_R2_BUCKET,
        )
        logger.info(f"R2: Client initialized (bucket={media_settings.MEDIA_R2_BUCKET})")

    return _r2_upload_resolver
