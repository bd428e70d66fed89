"""Retrieval of snapshot images from the classic Static API.

A ``Snapshot`` pairs options with an access token and host. It can report the
request URL, fetch the image synchronously, or fetch it on a worker thread and
hand the result to a completion handler on the caller's main context.

Each fetch is a single GET: there are no retries, no backoff, and no timeout
beyond the transport default unless one is configured.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import requests

from mapstatic.codec import ImageCodec, ImageDecodeError, PillowCodec
from mapstatic.config import get_config, get_default_access_token
from mapstatic.dispatch import Dispatcher, main_dispatcher
from mapstatic.errors import MissingAccessTokenError, SnapshotError
from mapstatic.options import SnapshotOptionsProtocol
from mapstatic.request import SnapshotRequest, build_request
from mapstatic.telemetry import get_tracer

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[Any, "Exception | None"], None]

CHUNK_SIZE = 64 * 1024

_executor = ThreadPoolExecutor(thread_name_prefix="mapstatic-fetch")


class SnapshotTask:
    """Handle for an asynchronous snapshot request.

    Cancelling prevents the completion handler from running if the handler
    has not started yet. Whether bytes already in flight are discarded
    immediately or at the next chunk boundary is not guaranteed.
    """

    def __init__(self) -> None:
        self._cancelled = threading.Event()
        self._finished = threading.Event()
        self._lock = threading.Lock()
        self._delivered = False
        self._future: Future[None] | None = None

    def _attach(self, future: Future[None]) -> None:
        self._future = future
        future.add_done_callback(self._on_done)

    def _on_done(self, future: Future[None]) -> None:
        self._finished.set()
        if not future.cancelled() and future.exception() is not None:
            logger.error("Snapshot worker failed unexpectedly", exc_info=future.exception())

    def cancel(self) -> None:
        """Request cancellation. The completion handler will not be called afterwards."""
        with self._lock:
            self._cancelled.set()
        if self._future is not None:
            self._future.cancel()

    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def done(self) -> bool:
        """True once the network work has finished, been cancelled, or failed."""
        return self._finished.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the network work is over. Returns False on timeout."""
        return self._finished.wait(timeout)

    def _deliver(self, handler: CompletionHandler, image: Any, error: Exception | None) -> None:
        with self._lock:
            if self._cancelled.is_set() or self._delivered:
                return
            self._delivered = True
        handler(image, error)


class Snapshot:
    """A static map or marker image obtained on demand from the Static API.

    Args:
        options: What the image depicts and how it is formatted.
        access_token: API access token. When omitted, the process-wide default
            from ``mapstatic.configure`` or the ``MAPBOX_ACCESS_TOKEN``
            environment variable is used.
        host: API hostname. Defaults to the configured host, then the public API.
        codec: Decodes response bytes into images. Defaults to Pillow.
        session: A ``requests.Session`` to issue requests with.
        dispatcher: Context completion handlers run on. Defaults to
            ``mapstatic.dispatch.main_dispatcher``, a process-wide queue that
            holds every completed result (image included) until the owning
            thread calls ``main_dispatcher.run_pending()``. Applications that
            never drain it should pass ``AsyncioDispatcher(loop)`` or
            ``ImmediateDispatcher()`` instead.
        timeout: Request timeout in seconds. Defaults to the configured timeout,
            then the transport default.

    Raises:
        MissingAccessTokenError: If no access token is available. No request is made.
    """

    def __init__(
        self,
        options: SnapshotOptionsProtocol,
        access_token: str | None = None,
        host: str | None = None,
        *,
        codec: ImageCodec | None = None,
        session: requests.Session | None = None,
        dispatcher: Dispatcher | None = None,
        timeout: float | None = None,
    ) -> None:
        access_token = access_token or get_default_access_token()
        if not access_token:
            raise MissingAccessTokenError()

        config = get_config()
        self.options = options
        self._access_token = access_token
        self.host = host or config.host
        self.timeout = timeout if timeout is not None else config.timeout
        self.codec: ImageCodec = codec or PillowCodec()
        self.dispatcher: Dispatcher = dispatcher or main_dispatcher
        self._http = session or requests

    @property
    def request(self) -> SnapshotRequest:
        """The request for the current state of ``options``, rebuilt on every access.

        Raises:
            InvalidOptionsError: If the options violate an API limit.
        """
        return build_request(self.options, self._access_token, self.host)

    @property
    def request_url(self) -> str:
        """The HTTP URL used to fetch the image."""
        return self.request.url

    @property
    def image(self) -> Any:
        """Fetch the image synchronously, or None on any connection or decode error.

        This blocks the calling thread on network I/O; never call it from a
        thread that must stay responsive. Use ``generate_image`` for error
        details.
        """
        request = self.request
        with get_tracer().start_as_current_span(
            "snapshot.fetch", attributes={"http.url": request.redacted_url, "mode": "blocking"}
        ):
            try:
                response = self._http.get(request.url, timeout=self.timeout)
                try:
                    response.raise_for_status()
                    return self.codec.decode(response.content)
                finally:
                    response.close()
            except (requests.RequestException, ImageDecodeError) as e:
                logger.debug("Snapshot request to %s failed: %s", request.redacted_url, e)
                return None
            except Exception:
                logger.exception("Unexpected failure fetching %s", request.redacted_url)
                return None

    def generate_image(self, handler: CompletionHandler) -> SnapshotTask:
        """Fetch the image on a worker thread and pass the result to ``handler``.

        ``handler`` is called exactly once, on this snapshot's dispatcher, as
        ``handler(image, None)`` on success or ``handler(None, error)`` where
        ``error`` is a ``SnapshotError`` chaining the transport or decode
        failure. It is never called after the returned task is cancelled.

        To get both 1x and 2x images, use two snapshots with different scales.

        Raises:
            InvalidOptionsError: If the options violate an API limit. Raised
                here, before any request is made.
        """
        request = self.request
        task = SnapshotTask()
        task._attach(_executor.submit(self._fetch, request, task, handler))
        return task

    def _fetch(self, request: SnapshotRequest, task: SnapshotTask, handler: CompletionHandler) -> None:
        if task.cancelled():
            return

        with get_tracer().start_as_current_span(
            "snapshot.fetch", attributes={"http.url": request.redacted_url, "mode": "async"}
        ) as span:
            try:
                data = self._download(request, task)
                if data is None:
                    span.set_attribute("cancelled", True)
                    return
                image, error = self.codec.decode(data), None
            except Exception as e:
                # Every failure still ends in exactly one handler call
                if isinstance(e, (requests.RequestException, ImageDecodeError)):
                    logger.info("Snapshot request to %s failed: %s", request.redacted_url, e)
                else:
                    logger.exception("Unexpected failure fetching %s", request.redacted_url)
                span.record_exception(e)
                error = SnapshotError(f"Snapshot request failed: {e}", request.redacted_url)
                error.__cause__ = e
                image = None

        if task.cancelled():
            return
        self.dispatcher.dispatch(lambda: task._deliver(handler, image, error))

    def _download(self, request: SnapshotRequest, task: SnapshotTask) -> bytes | None:
        """Read the whole response body, or return None once cancellation is seen."""
        response = self._http.get(request.url, timeout=self.timeout, stream=True)
        try:
            response.raise_for_status()
            chunks = []
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if task.cancelled():
                    return None
                chunks.append(chunk)
            return b"".join(chunks)
        finally:
            response.close()
