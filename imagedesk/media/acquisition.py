"""Acquisition Orchestrator: file -> preview -> crop -> upload -> stored path.

Flow:
1. select_file() / drop_files(): validate type and size, read the file,
   decode its size, build a data: URL preview, open a crop session
   (Idle -> FileSelected -> Previewing -> Cropping)
2. apply_crop(): rasterize the committed crop, wrap it as a named blob,
   upload it for the configured target (Uploading)
3. success: on_image_upload(stored_path) exactly once, back to Idle
4. upload failure: Error, the blob is kept and retry_upload() sends the
   same bytes again without re-cropping

Only one session is live per orchestrator. A new selection or cancel()
bumps a generation counter; reads and uploads that finish for an older
generation are discarded and never reach the caller.
"""

import inspect
import logging
from typing import Any, Callable, Optional, Sequence

from imagedesk.media.config import get_media_settings
from imagedesk.media.crop_session import CropSession, Renderer
from imagedesk.media.errors import FileTooLarge, MediaError, UploadFailed
from imagedesk.media.models import ImageFile, NamedBlob, SessionState, SourceImage, UploadTarget
from imagedesk.media.resolver import ImageUrlResolver, get_url_resolver
from imagedesk.media.transform import render
from imagedesk.media.uploader import UploadResolver, get_upload_resolver
from imagedesk.media.validator import validate_image_file
from imagedesk.telemetry.metrics import record_upload

logger = logging.getLogger(__name__)
media_settings = get_media_settings()

UploadCallback = Callable[[str], Any]


class ImageAcquisition:
    """Image picker with crop step, bound to one upload target."""

    def __init__(
        self,
        on_image_upload: UploadCallback,
        target: UploadTarget = UploadTarget.MEMBER,
        aspect_ratio: Optional[float] = 1.0,
        initial_image: str = "",
        placeholder_text: str = "Upload Image",
        uploader: Optional[UploadResolver] = None,
        resolver: Optional[ImageUrlResolver] = None,
        renderer: Renderer = render,
        display_box: Optional[tuple[float, float]] = None,
    ):
        self.on_image_upload = on_image_upload
        self.target = UploadTarget(target)
        self.aspect_ratio = aspect_ratio
        self.initial_image = initial_image or ""
        self.placeholder_text = placeholder_text
        self.uploader = uploader or get_upload_resolver()
        self.resolver = resolver or get_url_resolver()
        self.renderer = renderer
        self.display_box = display_box

        self.state = SessionState.IDLE
        self.error: Optional[str] = None
        self.preview_url = ""
        self.session: Optional[CropSession] = None
        self.selected_file: Optional[ImageFile] = None
        self.last_stored_path: Optional[str] = None
        self._pending_blob: Optional[NamedBlob] = None
        self._generation = 0

    # ==========================================================================
    # Read-only views
    # ==========================================================================

    @property
    def is_uploading(self) -> bool:
        return self.state is SessionState.UPLOADING

    @property
    def can_retry(self) -> bool:
        return self.state is SessionState.ERROR and self._pending_blob is not None

    @property
    def image_url(self) -> str:
        """What the picker shows: the local preview, else the existing image."""
        if self.preview_url:
            return self.preview_url
        if not self.initial_image:
            return ""
        try:
            return self.resolver.resolve(self.initial_image) or ""
        except MediaError:
            return ""

    # ==========================================================================
    # File selection
    # ==========================================================================

    async def select_file(self, file: ImageFile) -> None:
        """Start a crop session for a picked file.

        Accepts ImageFile or anything with the same shape (FastAPI UploadFile).

        Raises:
            InvalidFile: not an image/* type or not decodable
            FileTooLarge: over the size cap
        """
        declared_size = file.size if file.size is not None else 0
        validation = validate_image_file(file.content_type, declared_size)
        if not validation.valid:
            self.error = validation.error.message
            raise validation.error

        # Last file wins: invalidate any in-flight read/upload
        self._generation += 1
        generation = self._generation
        self._close_session()
        self.error = None
        self.selected_file = file
        self._set_state(SessionState.FILE_SELECTED)

        data = await file.read()
        if generation != self._generation:
            logger.debug(f"Acquisition: discarding stale read of {file.filename}")
            return

        self._set_state(SessionState.PREVIEWING)
        try:
            if len(data) > media_settings.MEDIA_MAX_FILE_SIZE_BYTES:
                raise FileTooLarge()
            source = SourceImage.from_bytes(data, filename=file.filename or "", mime_type=file.content_type)
        except MediaError as e:
            self._reset()
            self.error = e.message
            raise

        if self.display_box:
            source.fit_display(*self.display_box)
        self.preview_url = source.data_url()
        self.session = CropSession(source, aspect_ratio=self.aspect_ratio, renderer=self.renderer)
        self.session.load_image()
        self._set_state(SessionState.CROPPING)

    async def drop_files(self, files: Sequence[ImageFile]) -> None:
        """Drag-and-drop entry point: only the first file is used."""
        if not files:
            return
        await self.select_file(files[0])

    # ==========================================================================
    # Crop / upload
    # ==========================================================================

    async def apply_crop(self) -> Optional[str]:
        """Rasterize the committed crop and upload it.

        Returns:
            Stored path, or None when there was nothing to do (no committed
            crop, no session) or the result went stale

        Raises:
            EmptyCropRegion, RenderingUnavailable: state stays Cropping
            UploadFailed: state becomes Error, retry_upload() available
        """
        if self.state is not SessionState.CROPPING or self.session is None:
            return None

        try:
            bitmap = self.session.finalize()
        except MediaError as e:
            self.error = e.message
            raise
        if bitmap is None:
            return None

        filename = (self.selected_file.filename if self.selected_file else "") or media_settings.MEDIA_DEFAULT_FILENAME
        self._pending_blob = NamedBlob(data=bitmap.data, filename=filename, mime_type=bitmap.mime_type)
        return await self._upload(self._pending_blob)

    async def retry_upload(self) -> Optional[str]:
        """Re-send the blob of the last failed upload."""
        if not self.can_retry:
            return None
        return await self._upload(self._pending_blob)

    async def _upload(self, blob: NamedBlob) -> Optional[str]:
        generation = self._generation
        self.error = None
        self._set_state(SessionState.UPLOADING)

        try:
            path = await self.uploader.upload(blob, self.target)
        except UploadFailed as e:
            if not self._upload_failed(generation, e):
                return None
            raise
        except Exception as e:
            # Injected resolvers may raise anything; the caller only sees UploadFailed
            logger.error(f"Acquisition: upload backend raised {type(e).__name__}: {e}")
            failure = UploadFailed()
            if not self._upload_failed(generation, failure):
                return None
            raise failure from e

        if generation != self._generation:
            logger.info(f"Acquisition: discarding superseded upload result {path}")
            record_upload(self.target.value, getattr(self.uploader, "backend", "custom"), "stale")
            return None

        self._set_state(SessionState.DONE)
        self.last_stored_path = path
        self._close_session()
        self._reset()

        result = self.on_image_upload(path)
        if inspect.isawaitable(result):
            await result
        return path

    def _upload_failed(self, generation: int, error: UploadFailed) -> bool:
        """Move to Error, keeping the blob for retry. False if the upload is stale."""
        if generation != self._generation:
            logger.info(f"Acquisition: ignoring failure of superseded upload ({error.message})")
            return False
        self.error = error.message
        self._set_state(SessionState.ERROR)
        return True

    # ==========================================================================
    # Cancel / reset
    # ==========================================================================

    def cancel(self) -> None:
        """Abandon the current session. In-flight uploads are left to finish
        but their result is discarded."""
        self._generation += 1
        self._close_session()
        self._reset()
        self.error = None

    def _close_session(self) -> None:
        if self.session is not None:
            self.session.cancel()
            self.session = None

    def _reset(self) -> None:
        self.session = None
        self.selected_file = None
        self.preview_url = ""
        self._pending_blob = None
        self._set_state(SessionState.IDLE)

    def _set_state(self, state: SessionState) -> None:
        if state is not self.state:
            logger.debug(f"Acquisition[{self.target.value}]: {self.state.value} -> {state.value}")
            self.state = state
