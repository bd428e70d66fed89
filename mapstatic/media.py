"""Notification attachments built from remote or bundled media.

Media is looked up in the resource bundle first and fetched over HTTP
otherwise. The payload is validated as an ``Attachment`` and written to a
fresh private temporary directory, which is what notification services take
as an attachment.

Only images and GIFs are supported. Requests for video or audio are logged
and never complete, and their completion handler is not called.
"""

from __future__ import annotations

import logging
import tempfile
import uuid
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import requests

from mapstatic.attachment import Attachment
from mapstatic.codec import ImageCodec, ImageDecodeError, PillowCodec
from mapstatic.config import get_config
from mapstatic.resources import BundleResolver, ResourceResolver
from mapstatic.telemetry import get_tracer

logger = logging.getLogger(__name__)

THUMBNAIL_CLIPPING_RECT_KEY = "thumbnail_clipping_rect"
THUMBNAIL_TIME_KEY = "thumbnail_time"

AttachmentHandler = Callable[["NotificationAttachment | None"], None]
MediaHandler = Callable[["bytes | None", "Exception | None"], None]

_executor = ThreadPoolExecutor(thread_name_prefix="mapstatic-media")


class MediaType(Enum):
    """Kind of media a notification can carry."""

    IMAGE = "image"
    GIF = "gif"
    VIDEO = "video"
    AUDIO = "audio"

    @property
    def attachment_options(self) -> dict[str, Any]:
        """Thumbnail options passed along with the attachment."""
        if self is MediaType.IMAGE:
            # Top half of the image, in unit coordinates
            return {
                THUMBNAIL_CLIPPING_RECT_KEY: {"x": 0.0, "y": 0.0, "width": 1.0, "height": 0.5}
            }
        return {THUMBNAIL_TIME_KEY: 0}


@dataclass(frozen=True)
class NotificationAttachment:
    """A media file written to disk, ready to attach to a notification.

    Attributes:
        identifier: Attachment identifier, also the file name (``image.png``)
        path: Location of the written file
        mime_type: MIME type of the file
        options: Thumbnail options for the notification service
    """

    identifier: str
    path: Path
    mime_type: str
    options: dict[str, Any] = field(default_factory=dict)


def write_attachment(
    attachment: Attachment,
    media_type: MediaType,
    temp_directory: str | Path | None = None,
) -> NotificationAttachment | None:
    """Write ``attachment`` into a new uniquely named temporary subdirectory.

    Returns None, after logging the error, if the file cannot be written.
    """
    root = Path(temp_directory) if temp_directory is not None else Path(tempfile.gettempdir())
    folder = root / uuid.uuid4().hex
    try:
        folder.mkdir(parents=True)
        file_path = folder / attachment.filename
        file_path.write_bytes(attachment.content)
    except OSError as e:
        logger.error("Failed to write attachment '%s': %s", attachment.filename, e)
        return None

    return NotificationAttachment(
        identifier=attachment.filename,
        path=file_path,
        mime_type=attachment.mime_type,
        options=media_type.attachment_options,
    )


class MediaLoader:
    """Loads notification media and turns it into attachments.

    Args:
        resolver: Where bundled media is looked up. Defaults to the configured
            ``BUNDLE_DIRECTORY``; without one, everything is fetched remotely.
        codec: Decodes and re-encodes images. Defaults to Pillow.
        session: A ``requests.Session`` to issue requests with.
        timeout: Request timeout in seconds. Defaults to the configured timeout.
        max_size: Largest accepted payload in bytes. Defaults to ``MEDIA_MAX_SIZE``.
        temp_directory: Parent of the per-attachment directories. Defaults to
            the system temporary directory.
    """

    def __init__(
        self,
        resolver: ResourceResolver | None = None,
        codec: ImageCodec | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
        max_size: int | None = None,
        temp_directory: str | Path | None = None,
    ) -> None:
        config = get_config()
        if resolver is None and config.bundle_directory:
            resolver = BundleResolver(config.bundle_directory)
        self.resolver = resolver
        self.codec: ImageCodec = codec or PillowCodec()
        self._http = session or requests
        self.timeout = timeout if timeout is not None else config.timeout
        self.max_size = max_size if max_size is not None else config.media_max_size
        self.temp_directory = temp_directory

    def load_local_media(self, url: str) -> bytes | None:
        """Return bundled bytes for ``url``, or None if it is not bundled."""
        if self.resolver is None:
            return None
        path = self.resolver.resolve(url)
        if path is None:
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error("Failed to read bundled media '%s': %s", path, e)
            return None

    def load_remote_media(self, url: str, completion: MediaHandler) -> None:
        """Fetch ``url`` with a single GET and pass ``(data, error)`` to ``completion``.

        Runs on the calling thread.
        """
        with get_tracer().start_as_current_span("media.fetch", attributes={"http.url": url}):
            try:
                response = self._http.get(url, timeout=self.timeout)
                try:
                    response.raise_for_status()
                    data = response.content
                finally:
                    response.close()
            except requests.RequestException as e:
                logger.error("Failed to fetch media from %s: %s", url, e)
                completion(None, e)
                return
        completion(data, None)

    def create_notification_attachment(
        self, media_type: MediaType, url: str, completion: AttachmentHandler
    ) -> Future[NotificationAttachment | None]:
        """Build a notification attachment for the media at ``url``.

        ``url`` is either an HTTP(S) URL or a bundled ``name.ext`` reference.
        Bundled media is used without network I/O. ``completion`` receives the
        attachment, or None if the media could not be loaded, decoded,
        validated or written. For video and audio it is not called.

        Returns:
            A future resolving to the same value passed to ``completion``.
        """
        if media_type not in (MediaType.IMAGE, MediaType.GIF):
            logger.warning("Media type '%s' is not supported for attachments", media_type.value)
            unsupported: Future[NotificationAttachment | None] = Future()
            unsupported.set_result(None)
            return unsupported

        return _executor.submit(self._create, media_type, url, completion)

    def _create(
        self, media_type: MediaType, url: str, completion: AttachmentHandler
    ) -> NotificationAttachment | None:
        data = self.load_local_media(url)
        if data is None:
            received: list[bytes | None] = []
            self.load_remote_media(url, lambda d, _: received.append(d))
            data = received[0]

        result = None
        if data is not None:
            result = self._attach(media_type, data)
        completion(result)
        return result

    def _attach(self, media_type: MediaType, data: bytes) -> NotificationAttachment | None:
        try:
            if media_type is MediaType.IMAGE:
                png = self.codec.encode_png(self.codec.decode(data))
                attachment = Attachment.from_bytes(
                    content=png, filename="image.png", mime_type="image/png", max_size=self.max_size
                )
            else:
                attachment = Attachment.from_bytes(
                    content=data, filename="image.gif", mime_type="image/gif", max_size=self.max_size
                )
        except (ImageDecodeError, ValueError, OSError) as e:
            logger.error("Rejected %s media: %s", media_type.value, e)
            return None
        except Exception:
            logger.exception("Unexpected failure preparing %s media", media_type.value)
            return None

        return write_attachment(attachment, media_type, self.temp_directory)
