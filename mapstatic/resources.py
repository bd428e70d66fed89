"""Lookup of media bundled with the application instead of fetched over the network."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class ResourceResolver(Protocol):
    """Resolves a bare ``name.ext`` reference to a bundled file."""

    def resolve(self, reference: str) -> Path | None: ...


def is_remote(reference: str) -> bool:
    """True for references that must be fetched over the network."""
    return reference.startswith("http")


def split_resource_name(reference: str) -> tuple[str, str] | None:
    """Split ``name.ext`` into its name and extension.

    Only the first and last dot-separated components are used, so
    ``banner.large.png`` resolves to ``banner.png``. Returns None for
    references without an extension.
    """
    components = reference.split(".")
    if len(components) < 2 or not components[0] or not components[-1]:
        return None
    return components[0], components[-1]


class BundleResolver:
    """Finds resources inside a single bundle directory.

    Args:
        directory: Root of the resource bundle.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def resolve(self, reference: str) -> Path | None:
        """Return the bundled file for ``reference``, or None.

        URLs are never resolved locally.
        """
        if is_remote(reference):
            return None

        parts = split_resource_name(reference)
        if parts is None:
            return None
        name, extension = parts

        candidate = self.directory / f"{name}.{extension}"
        # Reject names that escape the bundle, e.g. "../secret.png"
        if candidate.resolve().parent != self.directory.resolve():
            logger.warning("Resource reference '%s' points outside the bundle", reference)
            return None
        if not candidate.is_file():
            return None
        return candidate
