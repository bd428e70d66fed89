"""The ``Attachment`` value type."""

from __future__ import annotations

from dataclasses import dataclass

from mapstatic.attachment.constants import DEFAULT_MAX_ATTACHMENT_SIZE, AttachmentSizeError
from mapstatic.attachment.mime_validation import ALLOWED_MIME_TYPES, check_content_type


@dataclass(frozen=True)
class Attachment:
    """A PNG or GIF payload that passed every check needed to write it out.

    Attributes:
        filename: Bare file name, such as ``image.png``.
        content: The encoded image.
        mime_type: ``image/png`` or ``image/gif``; the content must match it.
        max_size: Largest accepted ``content`` in bytes.

    Raises:
        ValueError: If the filename is not a bare name or the type is not allowed.
        AttachmentSizeError: If ``content`` is larger than ``max_size``.
        ContentMismatchError: If ``content`` is not of ``mime_type``.
    """

    filename: str
    content: bytes
    mime_type: str
    max_size: int = DEFAULT_MAX_ATTACHMENT_SIZE

    def __post_init__(self) -> None:
        if not self.filename or self.filename in (".", "..") or any(
            sep in self.filename for sep in ("/", "\\")
        ):
            raise ValueError(f"Attachment filename must be a bare file name, got '{self.filename}'")
        if len(self.content) > self.max_size:
            raise AttachmentSizeError.for_file(self.filename, self.max_size, len(self.content))
        if self.mime_type not in ALLOWED_MIME_TYPES:
            raise ValueError(
                f"MIME type '{self.mime_type}' is not allowed for attachment '{self.filename}', "
                f"expected one of {sorted(ALLOWED_MIME_TYPES)}"
            )
        check_content_type(self.content, self.mime_type, self.filename)

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        filename: str,
        mime_type: str,
        max_size: int = DEFAULT_MAX_ATTACHMENT_SIZE,
    ) -> Attachment:
        """Validate ``content`` and wrap it. Size is checked before the content is sniffed."""
        return cls(filename=filename, content=content, mime_type=mime_type, max_size=max_size)
