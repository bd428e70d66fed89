"""Media payload size limits and the related error.

Size Limits:
    The default maximum media size is 10MB (DEFAULT_MAX_ATTACHMENT_SIZE), the
    usual ceiling notification services place on image and GIF attachments.
    It can be overridden per attachment with the ``max_size`` parameter or
    for the whole process with the ``MEDIA_MAX_SIZE`` config key.
"""

import humanize

# Default maximum media size: 10MB
DEFAULT_MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024


class AttachmentSizeError(ValueError):
    """Raised when media content exceeds the maximum allowed size.

    This is a subclass of ValueError so size failures can be handled with
    other validation failures.
    """

    @classmethod
    def for_file(cls, filename: str, max_size: int, actual_size: int) -> "AttachmentSizeError":
        """Create an AttachmentSizeError with a formatted message."""
        return cls(
            f"Media '{filename}' exceeds maximum size of "
            f"{humanize.naturalsize(max_size, binary=True)} "
            f"(size: {humanize.naturalsize(actual_size, binary=True)})"
        )
