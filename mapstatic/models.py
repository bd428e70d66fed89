from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel


class Coordinate(NamedTuple):
    """A geographic coordinate in degrees.

    Attributes:
        latitude: Degrees north of the equator
        longitude: Degrees east of the prime meridian
    """

    latitude: float
    longitude: float

    def __str__(self) -> str:
        # The Static API takes longitude first
        return f"{self.longitude},{self.latitude}"


class Size(NamedTuple):
    """A logical image size measured in points.

    Attributes:
        width: Width in points
        height: Height in points
    """

    width: float
    height: float


class Color(BaseModel):
    """Represents an RGBA color value.

    Attributes:
        r: Red component (0-255)
        g: Green component (0-255)
        b: Blue component (0-255)
        a: Alpha/transparency component (0-255, where 255 is fully opaque)
    """

    def __init__(self, r: int = 0, g: int = 0, b: int = 0, a: int = 255):
        """Initialize a Color with RGBA values.

        Args:
            r: Red component (0-255), defaults to 0
            g: Green component (0-255), defaults to 0
            b: Blue component (0-255), defaults to 0
            a: Alpha component (0-255), defaults to 255

        Raises:
            ValueError: If any component is outside the valid range (0-255)
        """
        if not (0 <= r <= 255):
            raise ValueError("r must be between 0 and 255")
        if not (0 <= g <= 255):
            raise ValueError("g must be between 0 and 255")
        if not (0 <= b <= 255):
            raise ValueError("b must be between 0 and 255")
        if not (0 <= a <= 255):
            raise ValueError("a must be between 0 and 255")
        super().__init__(r=r, g=g, b=b, a=a)

    r: int
    g: int
    b: int
    a: int

    @classmethod
    def from_hex(cls, value: str) -> Color:
        """Parse a ``#rrggbb``, ``rrggbb`` or ``#rgb`` string.

        Raises:
            ValueError: If the string is not a valid hex color
        """
        digits = value.lstrip("#")
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        if len(digits) != 6:
            raise ValueError(f"Invalid hex color '{value}'")
        try:
            r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            raise ValueError(f"Invalid hex color '{value}'") from None
        return cls(r=r, g=g, b=b)

    def to_hex(self) -> str:
        """Return the color as six lowercase hex digits, ignoring alpha."""
        return f"{self.r:02x}{self.g:02x}{self.b:02x}"


RED = Color(r=255)
GRAY = Color(r=0x55, g=0x55, b=0x55)
