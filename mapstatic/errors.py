"""Exception types raised by mapstatic.

There are two disjoint kinds of failure:

- Programmer errors: option values that violate the Static API's limits.
  These raise ``InvalidOptionsError`` when the request path is built and are
  never coerced into something valid.
- Runtime errors: a missing access token (raised at construction) and
  transport or decode failures (delivered as ``SnapshotError`` to the
  completion handler of an asynchronous request).
"""


class MapStaticError(Exception):
    """Base class for all mapstatic errors."""

    pass


class InvalidOptionsError(MapStaticError, ValueError):
    """Raised when snapshot or marker options violate an API constraint.

    This is a subclass of ValueError so callers validating user input can
    catch it alongside other value errors.

    Attributes:
        field: Name of the offending option, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class MissingAccessTokenError(MapStaticError):
    """Raised when no access token is passed and no default is configured."""

    def __init__(self) -> None:
        super().__init__(
            "An access token is required. Pass access_token= to Snapshot, "
            "call mapstatic.configure() at startup, or set the "
            "MAPBOX_ACCESS_TOKEN environment variable."
        )


class SnapshotError(MapStaticError):
    """Raised (or delivered) when a snapshot image could not be retrieved.

    The underlying transport or decode exception is chained as ``__cause__``.

    Attributes:
        url: The request URL with the access token redacted.
    """

    def __init__(self, message: str, url: str) -> None:
        self.url = url
        super().__init__(f"{message} ({url})")
