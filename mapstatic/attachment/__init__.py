"""Validated media payloads for notification attachments.

Media fetched from a URL or a resource bundle is wrapped in an ``Attachment``
before it is written to disk. The size is bounded, the MIME type must be PNG
or GIF, and the content must carry the magic bytes of that type.

Example:
    >>> from mapstatic.attachment import Attachment
    >>> attachment = Attachment.from_bytes(
    ...     content=gif_bytes,
    ...     filename="image.gif",
    ...     mime_type="image/gif"
    ... )
"""

from mapstatic.attachment.constants import DEFAULT_MAX_ATTACHMENT_SIZE, AttachmentSizeError
from mapstatic.attachment.core import Attachment
from mapstatic.attachment.mime_validation import ALLOWED_MIME_TYPES, ContentMismatchError

__all__ = [
    "ALLOWED_MIME_TYPES",
    "Attachment",
    "AttachmentSizeError",
    "ContentMismatchError",
    "DEFAULT_MAX_ATTACHMENT_SIZE",
]
