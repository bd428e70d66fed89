"""Options describing what a snapshot depicts and how it is formatted.

Options objects are plain mutable dataclasses. Their ``path`` is recomputed and
re-validated on every access, so changes made after construction are always
reflected in the next request. Invalid values raise ``InvalidOptionsError``
when the path is built; nothing is clamped or dropped silently.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from mapstatic.errors import InvalidOptionsError
from mapstatic.models import RED, Color, Coordinate, Size
from mapstatic.overlay import IconName, Label, Letter, MarkerSize, Number, Overlay, render_label

API_VERSION_PREFIX = "/v4"

MIN_ZOOM_LEVEL = 0
MAX_ZOOM_LEVEL = 20
MAX_OVERLAYS = 100
# Classic Static API limit: 1280 pixels, i.e. 640 points at @2x
MAX_PIXEL_DIMENSION = 1280
# Only 1x and 2x images are ever returned
MAX_EFFECTIVE_SCALE = 2


class Format(Enum):
    """An image format supported by the classic Static API."""

    PNG = "png"
    PNG32 = "png32"
    PNG64 = "png64"
    PNG128 = "png128"
    PNG256 = "png256"
    JPEG = "jpeg"
    JPEG70 = "jpeg70"
    JPEG80 = "jpeg80"
    JPEG90 = "jpeg90"

    @property
    def extension(self) -> str:
        """File extension used in the request path."""
        return _FORMAT_EXTENSIONS[self]


_FORMAT_EXTENSIONS: dict[Format, str] = {
    Format.PNG: "png",
    Format.PNG32: "png32",
    Format.PNG64: "png64",
    Format.PNG128: "png128",
    Format.PNG256: "png256",
    Format.JPEG: "jpg",
    Format.JPEG70: "jpg70",
    Format.JPEG80: "jpg80",
    Format.JPEG90: "jpg90",
}


@runtime_checkable
class SnapshotOptionsProtocol(Protocol):
    """Anything that can be rendered into a Static API request.

    Attributes:
        path: The HTTP request path, validated on every access.
        params: Query items contributed by the options, before the access token.
    """

    @property
    def path(self) -> str: ...

    @property
    def params(self) -> list[tuple[str, str]]: ...


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, with halves rounded away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def scale_suffix(scale: float) -> str:
    """Return ``@2x`` for high-resolution requests, else an empty string."""
    if not scale > 0:
        raise InvalidOptionsError(f"Scale must be positive, got {scale}", field="scale")
    return "@2x" if scale > 1 else ""


@dataclass
class SnapshotOptions:
    """Determines what a map snapshot depicts and how it is formatted.

    Without a ``center_coordinate`` the ``zoom_level`` is ignored and the API
    chooses a center and zoom that fit ``overlays``. If ``overlays`` is also
    empty the resulting image is unspecified; no fallback is applied here.

    Attributes:
        map_identifiers: Tile set identifiers of the form ``owner.id``; index 0 is
            the backmost tile set. May not be empty.
        size: Logical size of the output image in points.
        center_coordinate: Geographic center of the snapshot, or None for auto-fit.
        zoom_level: Zoom level from 0 to 20. Used only with a center coordinate.
        format: Output image format.
        scale: Scale factor. Values above 1 request a 2x image.
        overlays: Overlays drawn atop the map, at most 100. Draw order is
            unspecified.
    """

    map_identifiers: list[str]
    size: Size
    center_coordinate: Coordinate | None = None
    zoom_level: int | None = None
    format: Format = Format.PNG
    scale: float = 1.0
    overlays: list[Overlay] = field(default_factory=list)

    def _validate(self) -> None:
        if not self.map_identifiers:
            raise InvalidOptionsError(
                "At least one map identifier must be specified.", field="map_identifiers"
            )

        if self.zoom_level is not None:
            if self.zoom_level < MIN_ZOOM_LEVEL:
                raise InvalidOptionsError(
                    f"Minimum zoom is {MIN_ZOOM_LEVEL}, got {self.zoom_level}", field="zoom_level"
                )
            if self.zoom_level > MAX_ZOOM_LEVEL:
                raise InvalidOptionsError(
                    f"Maximum zoom is {MAX_ZOOM_LEVEL}, got {self.zoom_level}", field="zoom_level"
                )

        width, height = self.size
        if not (math.isfinite(width) and math.isfinite(height)):
            raise InvalidOptionsError(f"Size must be finite, got {width}x{height}", field="size")
        effective_scale = min(self.scale, MAX_EFFECTIVE_SCALE)
        if width * effective_scale > MAX_PIXEL_DIMENSION:
            raise InvalidOptionsError(
                f"Maximum width is {MAX_PIXEL_DIMENSION} pixels (640 points @2x), "
                f"got {width} points at scale {self.scale}",
                field="size",
            )
        if height * effective_scale > MAX_PIXEL_DIMENSION:
            raise InvalidOptionsError(
                f"Maximum height is {MAX_PIXEL_DIMENSION} pixels (640 points @2x), "
                f"got {height} points at scale {self.scale}",
                field="size",
            )

        if len(self.overlays) > MAX_OVERLAYS:
            raise InvalidOptionsError(
                f"Maximum number of overlays is {MAX_OVERLAYS}, got {len(self.overlays)}",
                field="overlays",
            )

    @property
    def path(self) -> str:
        """The HTTP request path for these options.

        Raises:
            InvalidOptionsError: If any option violates an API limit.
        """
        self._validate()
        tile_sets = ",".join(self.map_identifiers)

        if self.center_coordinate is not None:
            zoom = self.zoom_level if self.zoom_level is not None else 0
            position = f"{Coordinate(*self.center_coordinate)},{zoom}"
        else:
            position = "auto"

        overlays = ""
        if self.overlays:
            overlays = "/" + ",".join(str(overlay) for overlay in self.overlays)

        width, height = self.size
        dimensions = f"{round_half_away_from_zero(width)}x{round_half_away_from_zero(height)}"
        return (
            f"{API_VERSION_PREFIX}/{tile_sets}{overlays}/{position}/"
            f"{dimensions}{scale_suffix(self.scale)}.{self.format.extension}"
        )

    @property
    def params(self) -> list[tuple[str, str]]:
        """Query items for these options. Map snapshots carry none."""
        return []

    def build(self) -> str:
        """Validate and return the request path. Equivalent to ``path``."""
        return self.path


@dataclass
class MarkerOptions:
    """Configures a standalone marker image, not placed on a map.

    Use the ``with_letter``, ``with_number`` and ``with_icon`` constructors for
    labelled markers.

    Attributes:
        size: Pin size.
        label: Optional letter, number or Maki icon atop the pin.
        color: Pin color.
        scale: Scale factor. Values above 1 request a 2x image.
    """

    size: MarkerSize = MarkerSize.SMALL
    label: Label | None = None
    color: Color = field(default_factory=lambda: RED.model_copy())
    scale: float = 1.0

    @classmethod
    def with_letter(cls, letter: str, size: MarkerSize = MarkerSize.SMALL) -> MarkerOptions:
        return cls(size=size, label=Letter(letter))

    @classmethod
    def with_number(cls, number: int, size: MarkerSize = MarkerSize.SMALL) -> MarkerOptions:
        return cls(size=size, label=Number(number))

    @classmethod
    def with_icon(cls, icon_name: str, size: MarkerSize = MarkerSize.SMALL) -> MarkerOptions:
        return cls(size=size, label=IconName(icon_name))

    @property
    def path(self) -> str:
        """The HTTP request path for this marker image.

        Raises:
            InvalidOptionsError: If the label or scale is invalid.
        """
        return (
            f"{API_VERSION_PREFIX}/marker/pin-{self.size.value}{render_label(self.label)}"
            f"+{self.color.to_hex()}{scale_suffix(self.scale)}.png"
        )

    @property
    def params(self) -> list[tuple[str, str]]:
        """Query items for this marker. Marker images carry none."""
        return []

    def build(self) -> str:
        """Validate and return the request path. Equivalent to ``path``."""
        return self.path
