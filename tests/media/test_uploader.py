"""Tests for the HTTP upload resolver (httpx MockTransport, no network)."""

import json

import httpx
import pytest

from imagedesk.media.errors import UploadFailed
from imagedesk.media.models import NamedBlob, UploadTarget
from imagedesk.media.uploader import HttpUploadResolver, get_upload_resolver

API = "http://api.test/api"


@pytest.fixture
def blob():
    return NamedBlob(data=b"\xff\xd8jpeg-bytes\xff\xd9", filename="photo.jpg", mime_type="image/jpeg")


def _resolver(handler) -> HttpUploadResolver:
    return HttpUploadResolver(api_url=API, transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------

class TestUploadSuccess:

    @pytest.mark.asyncio
    async def test_posts_multipart_and_returns_path(self, blob):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["method"] = request.method
            seen["body"] = request.content
            return httpx.Response(200, json={"path": "news/abc123.jpg"})

        path = await _resolver(handler).upload(blob, UploadTarget.NEWS)

        assert path == "news/abc123.jpg"
        assert seen["method"] == "POST"
        assert seen["url"] == "http://api.test/api/news/upload"
        assert b'name="image"; filename="photo.jpg"' in seen["body"]
        assert blob.data in seen["body"]

    @pytest.mark.asyncio
    async def test_legacy_image_path_key(self, blob):
        def handler(request):
            return httpx.Response(200, json={"imagePath": "partners/logo.jpg"})

        assert await _resolver(handler).upload(blob, UploadTarget.PARTNER) == "partners/logo.jpg"

    @pytest.mark.asyncio
    async def test_target_selects_endpoint(self, blob):
        urls = []

        def handler(request):
            urls.append(request.url.path)
            return httpx.Response(201, json={"path": "x.jpg"})

        resolver = _resolver(handler)
        for target in ("member", "event", "game"):
            await resolver.upload(blob, target)

        assert urls == ["/api/members/upload", "/api/events/upload", "/api/games/upload"]

    @pytest.mark.asyncio
    async def test_single_attempt(self, blob):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(500, text="boom")

        with pytest.raises(UploadFailed):
            await _resolver(handler).upload(blob, UploadTarget.NEWS)
        assert len(calls) == 1


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestUploadFailures:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,message", [
        (401, "Unauthorized. Please log in again."),
        (413, "File is too large. Please select a smaller image."),
        (415, "Invalid file type. Please use JPG, PNG, or WebP images."),
        (500, "Failed to upload image. Please try again."),
    ])
    async def test_status_messages(self, blob, status, message):
        def handler(request):
            return httpx.Response(status, json={"message": "nope"})

        with pytest.raises(UploadFailed) as exc_info:
            await _resolver(handler).upload(blob, UploadTarget.MEMBER)
        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_timeout(self, blob):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UploadFailed, match="timed out"):
            await _resolver(handler).upload(blob, UploadTarget.NEWS)

    @pytest.mark.asyncio
    async def test_connection_error(self, blob):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UploadFailed) as exc_info:
            await _resolver(handler).upload(blob, UploadTarget.NEWS)
        assert exc_info.value.message == "Failed to upload image. Please try again."

    @pytest.mark.asyncio
    async def test_invalid_url(self, blob):
        def handler(request):
            raise httpx.InvalidURL("Invalid URL")

        with pytest.raises(UploadFailed) as exc_info:
            await _resolver(handler).upload(blob, UploadTarget.NEWS)
        assert exc_info.value.message == "Failed to upload image. Please try again."

    @pytest.mark.asyncio
    async def test_missing_path(self, blob):
        def handler(request):
            return httpx.Response(200, json={"ok": True})

        with pytest.raises(UploadFailed, match="missing image path"):
            await _resolver(handler).upload(blob, UploadTarget.NEWS)

    @pytest.mark.asyncio
    async def test_non_json_response(self, blob):
        def handler(request):
            return httpx.Response(200, content=b"<html>ok</html>")

        with pytest.raises(UploadFailed, match="Invalid response from server"):
            await _resolver(handler).upload(blob, UploadTarget.NEWS)

    @pytest.mark.asyncio
    async def test_non_string_path(self, blob):
        def handler(request):
            return httpx.Response(200, content=json.dumps({"path": 42}).encode())

        with pytest.raises(UploadFailed):
            await _resolver(handler).upload(blob, UploadTarget.NEWS)


def test_default_backend_is_http():
    assert isinstance(get_upload_resolver(), HttpUploadResolver)
