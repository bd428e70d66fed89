"""Overlays drawn atop a map snapshot, and the pin marker vocabulary they share.

Each overlay renders itself into the comma-separated overlay segment of a
snapshot path. The Static API does not define the order in which overlays
are drawn; ``SnapshotOptions`` keeps the list in the order given and nothing
here imposes a different one.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union
from urllib.parse import quote

import polyline

from mapstatic.errors import InvalidOptionsError
from mapstatic.models import GRAY, RED, Color, Coordinate


class MarkerSize(Enum):
    """Size of a pin marker."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def abbreviation(self) -> str:
        """Single-letter form used inside overlay fragments (``pin-s``)."""
        return self.value[0]


@dataclass(frozen=True)
class Letter:
    """An English letter from A through Z placed atop a pin."""

    letter: str

    def __str__(self) -> str:
        if len(self.letter) != 1 or not ("A" <= self.letter <= "Z"):
            raise InvalidOptionsError(
                f"Marker letter must be a single character from A to Z, got '{self.letter}'",
                field="label",
            )
        return self.letter


@dataclass(frozen=True)
class Number:
    """A one- or two-digit number from 0 through 99 placed atop a pin."""

    number: int

    def __str__(self) -> str:
        if isinstance(self.number, bool) or not (0 <= self.number <= 99):
            raise InvalidOptionsError(
                f"Marker number must be between 0 and 99, got {self.number!r}",
                field="label",
            )
        return str(self.number)


@dataclass(frozen=True)
class IconName:
    """The name of a Maki icon placed atop a pin."""

    name: str

    def __str__(self) -> str:
        if not self.name:
            raise InvalidOptionsError("Marker icon name cannot be empty", field="label")
        return self.name


Label = Union[Letter, Number, IconName]


def render_label(label: Label | None) -> str:
    """Render an optional label as a ``-{label}`` suffix, or an empty string."""
    if label is None:
        return ""
    if isinstance(label, (Letter, Number, IconName)):
        return f"-{label}"
    raise InvalidOptionsError(f"Unsupported marker label {label!r}", field="label")


class Overlay(ABC):
    """Base class for anything drawn atop a snapshot.

    Subclasses return their URL path fragment from ``path_fragment``; the
    fragment must already be percent-encoded where the API requires it.
    """

    @abstractmethod
    def path_fragment(self) -> str:
        pass

    def __str__(self) -> str:
        return self.path_fragment()


@dataclass
class Marker(Overlay):
    """A pin placed at a coordinate.

    Attributes:
        coordinate: Where the pin points
        size: Pin size
        label: Optional letter, number or Maki icon
        color: Pin color
    """

    coordinate: Coordinate
    size: MarkerSize = MarkerSize.SMALL
    label: Label | None = None
    color: Color = field(default_factory=lambda: RED.model_copy())

    def path_fragment(self) -> str:
        return (
            f"pin-{self.size.abbreviation}{render_label(self.label)}"
            f"+{self.color.to_hex()}({Coordinate(*self.coordinate)})"
        )


@dataclass
class CustomMarker(Overlay):
    """A marker drawn from an image hosted at ``url``."""

    coordinate: Coordinate
    url: str

    def path_fragment(self) -> str:
        if not self.url:
            raise InvalidOptionsError("Custom marker URL cannot be empty", field="url")
        return f"url-{quote(self.url, safe='')}({Coordinate(*self.coordinate)})"


@dataclass
class GeoJSON(Overlay):
    """A GeoJSON feature or feature collection.

    ``geojson`` may be a mapping or an already serialized JSON string.
    """

    geojson: dict[str, Any] | str

    def path_fragment(self) -> str:
        if isinstance(self.geojson, str):
            serialized = self.geojson
        else:
            serialized = json.dumps(self.geojson, separators=(",", ":"))
        return f"geojson({quote(serialized, safe='')})"


@dataclass
class Path(Overlay):
    """A polyline or polygon through ``coordinates``.

    Attributes:
        coordinates: Vertices, at least two
        stroke_width: Line width in points
        stroke_color: Line color
        stroke_opacity: Line opacity from 0 to 1
        fill_color: Fill color for closed paths
        fill_opacity: Fill opacity from 0 to 1
    """

    coordinates: Sequence[Coordinate]
    stroke_width: int = 1
    stroke_color: Color = field(default_factory=lambda: GRAY.model_copy())
    stroke_opacity: float = 1.0
    fill_color: Color = field(default_factory=lambda: GRAY.model_copy())
    fill_opacity: float = 0.0

    def path_fragment(self) -> str:
        if len(self.coordinates) < 2:
            raise InvalidOptionsError("A path needs at least two coordinates", field="coordinates")
        for name in ("stroke_opacity", "fill_opacity"):
            value = getattr(self, name)
            if not (0 <= value <= 1):
                raise InvalidOptionsError(f"{name} must be between 0 and 1, got {value}", field=name)

        encoded = polyline.encode([(lat, lon) for lat, lon in self.coordinates], 5)
        return (
            f"path-{self.stroke_width}+{self.stroke_color.to_hex()}-{self.stroke_opacity}"
            f"+{self.fill_color.to_hex()}-{self.fill_opacity}({quote(encoded, safe='')})"
        )
