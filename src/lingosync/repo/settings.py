"""Per-repository settings record (``settings.json``).

A flat key-value store with no merge semantics: every setter rewrites the
whole file immediately and the last write wins.  Keys are camelCase so
existing repository directories keep working::

    {"gitUrl": "...", "lastLocale": "es", "remotePaths": {"strings.xml": "app/src/main/res/values/strings.xml"}}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from lingosync.file_handler import write_file

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"

_GIT_URL = "gitUrl"
_LAST_LOCALE = "lastLocale"
_REMOTE_PATHS = "remotePaths"


class RepoSettings:
    """Load, query and persist the settings of one repository.

    Args:
        root: The repository root directory.
    """

    def __init__(self, root: Path) -> None:
        self._path = root / SETTINGS_FILENAME
        self._data = self._load()

    def _load(self) -> dict:
        if not self._path.is_file():
            return {}
        try:
            with open(self._path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        write_file(self._path, json.dumps(self._data, indent=2))

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def get_git_url(self) -> str:
        return self._data.get(_GIT_URL, "")

    def set_git_url(self, url: str) -> None:
        if self._data.get(_GIT_URL) == url and self._path.is_file():
            return
        self._data[_GIT_URL] = url
        self._save()

    def get_last_locale(self) -> str | None:
        return self._data.get(_LAST_LOCALE)

    def set_last_locale(self, locale: str | None) -> None:
        self._data[_LAST_LOCALE] = locale
        self._save()

    # ------------------------------------------------------------------
    # Remote paths
    # ------------------------------------------------------------------

    def get_remote_paths(self) -> dict[str, str]:
        """Return a copy of the ``filename -> upstream path`` mapping."""
        return dict(self._data.get(_REMOTE_PATHS, {}))

    def add_remote_path(self, filename: str, remote_path: str) -> None:
        self._data.setdefault(_REMOTE_PATHS, {})[filename] = remote_path
        self._save()

    def clear_remote_paths(self) -> None:
        self._data[_REMOTE_PATHS] = {}
        self._save()
