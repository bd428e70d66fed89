"""State shared between an application and its notification extensions.

Everything is scoped to an app group: processes configured with the same
group name read and write the same store.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from concurrent.futures import Future
from pathlib import Path
from typing import Protocol

from mapstatic.config import get_config
from mapstatic.media import AttachmentHandler, MediaLoader, MediaType, NotificationAttachment

logger = logging.getLogger(__name__)

USER_ID_KEY = "userId"

_GROUP_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


class KeyValueStore(Protocol):
    """A string store with get/set semantics."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


def default_shared_directory() -> Path:
    """Directory holding group stores: ``SHARED_DIRECTORY`` or a temp subfolder."""
    configured = get_config().shared_directory
    if configured:
        return Path(configured)
    return Path(tempfile.gettempdir()) / "mapstatic-shared"


class JsonFileStore:
    """Group-scoped store persisted as one JSON file per app group.

    Every ``set`` rewrites the file atomically, so other processes reading the
    same group never see a partially written file.
    """

    def __init__(self, group: str, directory: str | Path | None = None) -> None:
        if not _GROUP_NAME_PATTERN.match(group):
            raise ValueError(f"Invalid app group name '{group}'")
        self.group = group
        root = Path(directory) if directory is not None else default_shared_directory()
        self.data_file_path = root / f"{group}.json"

    def _load(self) -> dict[str, str]:
        try:
            with open(self.data_file_path) as json_file:
                data = json.load(json_file)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.warning("Shared store %s is corrupt, starting empty: %s", self.data_file_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def __save_file(self, data: dict[str, str]) -> None:
        self.data_file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.data_file_path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as json_file:
                json.dump(data, json_file)
            os.replace(tmp_path, self.data_file_path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.__save_file(data)


class SharedManager:
    """Shared user state and notification media for one app group.

    Args:
        app_group: Name of the app group the state is shared within.
        store: Backing store. Defaults to a ``JsonFileStore`` for the group.
        media_loader: Loader used for notification attachments.
    """

    def __init__(
        self,
        app_group: str,
        store: KeyValueStore | None = None,
        media_loader: MediaLoader | None = None,
    ) -> None:
        self.app_group = app_group
        self.store: KeyValueStore = store if store is not None else JsonFileStore(app_group)
        self.media_loader = media_loader or MediaLoader()

    @property
    def user_id(self) -> str | None:
        """The externally scoped user identifier, or None if never set."""
        return self.store.get(USER_ID_KEY)

    @user_id.setter
    def user_id(self, value: str) -> None:
        if value is None:
            raise ValueError("user_id cannot be cleared by assigning None")
        self.store.set(USER_ID_KEY, value)

    def create_notification_attachment(
        self, media_type: MediaType, url: str, completion: AttachmentHandler
    ) -> Future[NotificationAttachment | None]:
        """See ``MediaLoader.create_notification_attachment``."""
        return self.media_loader.create_notification_attachment(media_type, url, completion)
