"""Tests for blocking and asynchronous snapshot retrieval."""

import logging
import threading
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

from mapstatic.codec import ImageDecodeError
from mapstatic.config import ACCESS_TOKEN_ENV_VAR, Config, configure, set_default_access_token
from mapstatic.dispatch import ImmediateDispatcher, MainThreadDispatcher, main_dispatcher
from mapstatic.errors import InvalidOptionsError, MissingAccessTokenError, SnapshotError
from mapstatic.models import Coordinate, Size
from mapstatic.options import SnapshotOptions
from mapstatic.snapshot import Snapshot
from tests.unit_tests.fakes import fake_response, fake_session, oversized_png_bytes, png_bytes


@pytest.fixture
def options() -> SnapshotOptions:
    return SnapshotOptions(map_identifiers=["a.b"], size=Size(300, 200))


@pytest.fixture
def dispatcher() -> MainThreadDispatcher:
    return MainThreadDispatcher()


class Recorder:
    """Completion handler that records every call and the thread it ran on."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, Exception | None]] = []
        self.threads: list[threading.Thread] = []

    def __call__(self, image: Any, error: Exception | None) -> None:
        self.calls.append((image, error))
        self.threads.append(threading.current_thread())


def _finish(task, dispatcher: MainThreadDispatcher) -> int:
    assert task.wait(timeout=5)
    return dispatcher.run_pending()


class TestAccessToken:
    def test_missing_token_fails_without_network(self, options: SnapshotOptions):
        session = fake_session()
        with pytest.raises(MissingAccessTokenError, match="access token is required"):
            Snapshot(options, session=session)
        session.get.assert_not_called()

    def test_empty_explicit_token_without_default_fails(self, options: SnapshotOptions):
        with pytest.raises(MissingAccessTokenError):
            Snapshot(options, access_token="")

    def test_configured_default_token(self, options: SnapshotOptions):
        configure(Config(ACCESS_TOKEN="from-config"))
        assert Snapshot(options).request_url.endswith("access_token=from-config")

    def test_set_default_access_token(self, options: SnapshotOptions):
        set_default_access_token("pk.default")
        assert Snapshot(options).request_url.endswith("access_token=pk.default")

    def test_environment_token(self, options: SnapshotOptions, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv(ACCESS_TOKEN_ENV_VAR, "from-env")
        assert Snapshot(options).request_url.endswith("access_token=from-env")

    def test_explicit_token_wins(self, options: SnapshotOptions):
        set_default_access_token("pk.default")
        assert Snapshot(options, "explicit").request_url.endswith("access_token=explicit")


class TestRequestURL:
    def test_default_host(self, options: SnapshotOptions):
        snapshot = Snapshot(options, "tok")
        assert snapshot.request_url == (
            "https://api.mapbox.com/v4/a.b/auto/300x200.png?access_token=tok"
        )

    def test_custom_host(self, options: SnapshotOptions):
        snapshot = Snapshot(options, "tok", "maps.example.com")
        assert snapshot.request_url.startswith("https://maps.example.com/v4/")

    def test_configured_host(self, options: SnapshotOptions):
        configure(Config(HOST="configured.example.com"))
        assert Snapshot(options, "tok").request_url.startswith("https://configured.example.com/")

    def test_options_changes_reflected(self, options: SnapshotOptions):
        snapshot = Snapshot(options, "tok")
        before = snapshot.request_url
        options.center_coordinate = Coordinate(latitude=37.8, longitude=-122.4)
        options.zoom_level = 12
        assert snapshot.request_url != before
        assert "/-122.4,37.8,12/" in snapshot.request_url

    def test_invalid_options_raise_on_access(self, options: SnapshotOptions):
        snapshot = Snapshot(options, "tok")
        options.map_identifiers = []
        with pytest.raises(InvalidOptionsError):
            snapshot.request_url


class TestBlockingImage:
    def test_returns_decoded_image(self, options: SnapshotOptions):
        session = fake_session(fake_response(png_bytes((3, 2))))
        image = Snapshot(options, "tok", session=session).image
        assert isinstance(image, Image.Image)
        assert image.size == (3, 2)
        session.get.assert_called_once_with(
            "https://api.mapbox.com/v4/a.b/auto/300x200.png?access_token=tok", timeout=None
        )

    def test_transport_error_returns_none(self, options: SnapshotOptions):
        session = fake_session(side_effect=requests.ConnectionError("unreachable"))
        assert Snapshot(options, "tok", session=session).image is None

    def test_http_error_returns_none(self, options: SnapshotOptions):
        response = fake_response(b"", raise_error=requests.HTTPError("401 Unauthorized"))
        assert Snapshot(options, "tok", session=fake_session(response)).image is None
        response.close.assert_called_once()

    def test_undecodable_payload_returns_none(self, options: SnapshotOptions):
        session = fake_session(fake_response(b"<html>not an image</html>"))
        assert Snapshot(options, "tok", session=session).image is None

    def test_configured_timeout_used(self, options: SnapshotOptions):
        configure(Config(TIMEOUT=7.5))
        session = fake_session(fake_response(png_bytes()))
        Snapshot(options, "tok", session=session).image
        assert session.get.call_args.kwargs["timeout"] == 7.5


class TestGenerateImage:
    def test_success_delivered_once_on_dispatcher(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        handler = Recorder()
        session = fake_session(fake_response(png_bytes()))
        snapshot = Snapshot(options, "tok", session=session, dispatcher=dispatcher)

        task = snapshot.generate_image(handler)
        assert _finish(task, dispatcher) == 1

        assert len(handler.calls) == 1
        image, error = handler.calls[0]
        assert isinstance(image, Image.Image)
        assert error is None
        assert handler.threads == [threading.current_thread()]
        assert session.get.call_count == 1

    def test_handler_not_called_before_dispatcher_runs(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        handler = Recorder()
        snapshot = Snapshot(
            options, "tok", session=fake_session(fake_response(png_bytes())), dispatcher=dispatcher
        )
        task = snapshot.generate_image(handler)
        assert task.wait(timeout=5)
        assert handler.calls == []
        assert dispatcher.pending() == 1

    def test_transport_error_delivered(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        handler = Recorder()
        cause = requests.ConnectionError("unreachable")
        snapshot = Snapshot(
            options, "pk.secret", session=fake_session(side_effect=cause), dispatcher=dispatcher
        )
        _finish(snapshot.generate_image(handler), dispatcher)

        assert len(handler.calls) == 1
        image, error = handler.calls[0]
        assert image is None
        assert isinstance(error, SnapshotError)
        assert error.__cause__ is cause
        assert "pk.secret" not in str(error)
        assert "pk.secret" not in error.url

    def test_decode_error_delivered(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        handler = Recorder()
        snapshot = Snapshot(
            options, "tok", session=fake_session(fake_response(b"garbage")), dispatcher=dispatcher
        )
        _finish(snapshot.generate_image(handler), dispatcher)

        image, error = handler.calls[0]
        assert image is None
        assert isinstance(error, SnapshotError)
        assert isinstance(error.__cause__, ImageDecodeError)

    def test_http_error_delivered(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        handler = Recorder()
        response = fake_response(b"", raise_error=requests.HTTPError("404 Not Found"))
        snapshot = Snapshot(options, "tok", session=fake_session(response), dispatcher=dispatcher)
        _finish(snapshot.generate_image(handler), dispatcher)

        image, error = handler.calls[0]
        assert image is None
        assert isinstance(error.__cause__, requests.HTTPError)

    def test_streams_with_stream_flag(self, options: SnapshotOptions):
        session = fake_session(fake_response(png_bytes()))
        snapshot = Snapshot(options, "tok", session=session, dispatcher=ImmediateDispatcher())
        assert snapshot.generate_image(Recorder()).wait(timeout=5)
        assert session.get.call_args.kwargs["stream"] is True

    def test_invalid_options_raise_before_request(self, options: SnapshotOptions):
        options.zoom_level = 21
        session = fake_session()
        snapshot = Snapshot(options, "tok", session=session)
        with pytest.raises(InvalidOptionsError):
            snapshot.generate_image(Recorder())
        session.get.assert_not_called()


class TestCancellation:
    def test_cancel_during_request_suppresses_handler(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        started = threading.Event()
        release = threading.Event()
        response = fake_response(png_bytes())

        def slow_get(*args, **kwargs):
            started.set()
            release.wait(timeout=5)
            return response

        handler = Recorder()
        snapshot = Snapshot(
            options, "tok", session=fake_session(side_effect=slow_get), dispatcher=dispatcher
        )
        task = snapshot.generate_image(handler)
        assert started.wait(timeout=5)

        task.cancel()
        release.set()

        assert _finish(task, dispatcher) == 0
        assert handler.calls == []
        assert task.cancelled()
        response.close.assert_called_once()

    def test_cancel_between_chunks_stops_reading(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        task_holder: list[Any] = []
        chunks_read: list[bytes] = []

        def chunks(chunk_size: int):
            yield b"first"
            chunks_read.append(b"first")
            task_holder[0].cancel()
            yield b"second"
            chunks_read.append(b"second")

        response = MagicMock()
        response.iter_content.side_effect = chunks
        gate = threading.Event()

        def gated_get(*args, **kwargs):
            gate.wait(timeout=5)
            return response

        handler = Recorder()
        snapshot = Snapshot(
            options, "tok", session=fake_session(side_effect=gated_get), dispatcher=dispatcher
        )
        task_holder.append(snapshot.generate_image(handler))
        gate.set()

        assert _finish(task_holder[0], dispatcher) == 0
        assert handler.calls == []
        assert chunks_read == [b"first"]

    def test_cancel_after_dispatch_before_delivery(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        handler = Recorder()
        snapshot = Snapshot(
            options, "tok", session=fake_session(fake_response(png_bytes())), dispatcher=dispatcher
        )
        task = snapshot.generate_image(handler)
        assert task.wait(timeout=5)
        assert dispatcher.pending() == 1

        task.cancel()
        dispatcher.run_pending()
        assert handler.calls == []

    def test_cancel_after_delivery_is_harmless(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        handler = Recorder()
        snapshot = Snapshot(
            options, "tok", session=fake_session(fake_response(png_bytes())), dispatcher=dispatcher
        )
        task = snapshot.generate_image(handler)
        _finish(task, dispatcher)
        task.cancel()
        dispatcher.run_pending()
        assert len(handler.calls) == 1


class TestUnexpectedFailures:
    """Failures outside the transport still produce a single terminal result."""

    def test_oversized_image_delivered_as_error(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        handler = Recorder()
        snapshot = Snapshot(
            options,
            "tok",
            session=fake_session(fake_response(oversized_png_bytes())),
            dispatcher=dispatcher,
        )
        assert _finish(snapshot.generate_image(handler), dispatcher) == 1

        assert len(handler.calls) == 1
        image, error = handler.calls[0]
        assert image is None
        assert isinstance(error, SnapshotError)
        assert isinstance(error.__cause__, ImageDecodeError)

    def test_oversized_image_blocking_returns_none(self, options: SnapshotOptions):
        session = fake_session(fake_response(oversized_png_bytes()))
        assert Snapshot(options, "tok", session=session).image is None

    def test_codec_crash_delivered_as_error(
        self, options: SnapshotOptions, dispatcher: MainThreadDispatcher
    ):
        codec = MagicMock()
        cause = RuntimeError("codec crashed")
        codec.decode.side_effect = cause
        handler = Recorder()
        snapshot = Snapshot(
            options,
            "tok",
            codec=codec,
            session=fake_session(fake_response(png_bytes())),
            dispatcher=dispatcher,
        )
        assert _finish(snapshot.generate_image(handler), dispatcher) == 1

        image, error = handler.calls[0]
        assert image is None
        assert isinstance(error, SnapshotError)
        assert error.__cause__ is cause

    def test_codec_crash_blocking_returns_none(self, options: SnapshotOptions, caplog):
        codec = MagicMock()
        codec.decode.side_effect = RuntimeError("codec crashed")
        snapshot = Snapshot(
            options, "tok", codec=codec, session=fake_session(fake_response(png_bytes()))
        )

        with caplog.at_level(logging.ERROR):
            assert snapshot.image is None
        assert "Unexpected failure" in caplog.text


class TestDefaultDispatcher:
    def test_results_queue_on_main_dispatcher_until_drained(self, options: SnapshotOptions):
        main_dispatcher.run_pending()
        handler = Recorder()
        snapshot = Snapshot(options, "tok", session=fake_session(fake_response(png_bytes())))
        assert snapshot.dispatcher is main_dispatcher

        assert snapshot.generate_image(handler).wait(timeout=5)
        assert handler.calls == []
        assert main_dispatcher.pending() == 1

        assert main_dispatcher.run_pending() == 1
        assert len(handler.calls) == 1
