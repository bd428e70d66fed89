"""Magic byte checks for notification media.

A payload downloaded from an arbitrary URL must actually be the image type it
is declared as before it is written to disk.
"""

from __future__ import annotations

import puremagic

# Only still images and GIFs become notification attachments
ALLOWED_MIME_TYPES: frozenset[str] = frozenset({"image/png", "image/gif"})


class ContentMismatchError(ValueError):
    """Raised when media content is not of its declared MIME type."""


def check_content_type(content: bytes, mime_type: str, filename: str) -> None:
    """Raise ``ContentMismatchError`` unless ``content`` is identified as ``mime_type``."""
    try:
        matches = puremagic.magic_string(content)
    except puremagic.PureError as e:
        raise ContentMismatchError(
            f"Content of '{filename}' could not be identified as '{mime_type}'"
        ) from e

    detected = {match.mime_type for match in matches if match.mime_type}
    if mime_type not in detected:
        raise ContentMismatchError(
            f"Content of '{filename}' is not '{mime_type}', detected {sorted(detected)}"
        )
