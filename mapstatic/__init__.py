"""Client SDK for the classic Static map API and notification media.

Example:
    >>> import mapstatic
    >>> mapstatic.set_default_access_token("pk.example")
    >>> options = mapstatic.SnapshotOptions(
    ...     map_identifiers=["mapbox.streets"],
    ...     center_coordinate=mapstatic.Coordinate(latitude=37.8, longitude=-122.4),
    ...     zoom_level=12,
    ...     size=mapstatic.Size(300, 200),
    ... )
    >>> mapstatic.Snapshot(options).request_url
    'https://api.mapbox.com/v4/mapbox.streets/-122.4,37.8,12/300x200.png?access_token=pk.example'
"""

from mapstatic.config import (
    Config,
    TelemetryConfig,
    configure,
    get_config,
    get_default_access_token,
    set_default_access_token,
)
from mapstatic.dispatch import (
    AsyncioDispatcher,
    Dispatcher,
    ImmediateDispatcher,
    MainThreadDispatcher,
    main_dispatcher,
)
from mapstatic.errors import (
    InvalidOptionsError,
    MapStaticError,
    MissingAccessTokenError,
    SnapshotError,
)
from mapstatic.media import MediaLoader, MediaType, NotificationAttachment
from mapstatic.models import Color, Coordinate, Size
from mapstatic.options import Format, MarkerOptions, SnapshotOptions, SnapshotOptionsProtocol
from mapstatic.overlay import (
    CustomMarker,
    GeoJSON,
    IconName,
    Letter,
    Marker,
    MarkerSize,
    Number,
    Overlay,
    Path,
)
from mapstatic.shared import JsonFileStore, SharedManager
from mapstatic.snapshot import Snapshot, SnapshotTask

__all__ = [
    "AsyncioDispatcher",
    "Color",
    "Config",
    "Coordinate",
    "CustomMarker",
    "Dispatcher",
    "Format",
    "GeoJSON",
    "IconName",
    "ImmediateDispatcher",
    "InvalidOptionsError",
    "JsonFileStore",
    "Letter",
    "MainThreadDispatcher",
    "MapStaticError",
    "Marker",
    "MarkerOptions",
    "MarkerSize",
    "MediaLoader",
    "MediaType",
    "MissingAccessTokenError",
    "NotificationAttachment",
    "Number",
    "Overlay",
    "Path",
    "SharedManager",
    "Size",
    "Snapshot",
    "SnapshotError",
    "SnapshotOptions",
    "SnapshotOptionsProtocol",
    "SnapshotTask",
    "TelemetryConfig",
    "configure",
    "get_config",
    "get_default_access_token",
    "main_dispatcher",
    "set_default_access_token",
]
