"""Image decoding collaborator.

The fetcher never interprets image bytes itself; it hands them to an
``ImageCodec``. The default codec uses Pillow.
"""

from __future__ import annotations

import io
from typing import Any, Protocol

from PIL import Image, UnidentifiedImageError


class ImageDecodeError(ValueError):
    """Raised when payload bytes cannot be decoded into an image."""

    pass


class ImageCodec(Protocol):
    """Decodes and encodes platform images."""

    def decode(self, data: bytes) -> Any:
        """Decode ``data`` into an image.

        Raises:
            ImageDecodeError: If the bytes are not a decodable image.
        """
        ...

    def encode_png(self, image: Any) -> bytes:
        """Encode ``image`` as PNG bytes."""
        ...


class PillowCodec:
    """``ImageCodec`` backed by Pillow."""

    def decode(self, data: bytes) -> Image.Image:
        if not data:
            raise ImageDecodeError("Cannot decode an empty payload")
        try:
            image = Image.open(io.BytesIO(data))
            # Force a full decode so truncated payloads fail here, not later
            image.load()
        except Image.DecompressionBombError as e:
            raise ImageDecodeError(f"Payload declares an oversized image: {e}") from e
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
            raise ImageDecodeError(f"Payload is not a decodable image: {e}") from e
        return image

    def encode_png(self, image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
