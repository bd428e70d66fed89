"""Composition of full Static API request URLs."""

from __future__ import annotations

from typing import NamedTuple
from urllib.parse import urlencode, urlunsplit

from mapstatic.options import SnapshotOptionsProtocol

DEFAULT_HOST = "api.mapbox.com"
ACCESS_TOKEN_PARAM = "access_token"


def api_endpoint(host: str | None = None) -> str:
    """Return the ``https://host`` base URL, defaulting to the public API host."""
    return urlunsplit(("https", host or DEFAULT_HOST, "", "", ""))


class SnapshotRequest(NamedTuple):
    """A single rendered request. Built fresh from the options on every use.

    Attributes:
        endpoint: Scheme and host, e.g. ``https://api.mapbox.com``
        path: Path rendered from the options
        params: Query items, with the access token last
    """

    endpoint: str
    path: str
    params: list[tuple[str, str]]

    @property
    def query(self) -> str:
        return urlencode(self.params)

    @property
    def url(self) -> str:
        return f"{self.endpoint}{self.path}?{self.query}"

    @property
    def redacted_url(self) -> str:
        """The URL with the access token value masked, safe for logs and errors."""
        params = [
            (name, "***" if name == ACCESS_TOKEN_PARAM else value) for name, value in self.params
        ]
        return f"{self.endpoint}{self.path}?{urlencode(params)}"


def build_params(options: SnapshotOptionsProtocol, access_token: str) -> list[tuple[str, str]]:
    """Return the options' query items followed by the access token."""
    return [*options.params, (ACCESS_TOKEN_PARAM, access_token)]


def build_request(
    options: SnapshotOptionsProtocol, access_token: str, host: str | None = None
) -> SnapshotRequest:
    """Render ``options`` into a request.

    Raises:
        InvalidOptionsError: If the options violate an API limit.
    """
    return SnapshotRequest(
        endpoint=api_endpoint(host),
        path=options.path,
        params=build_params(options, access_token),
    )
