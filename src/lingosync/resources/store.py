"""In-memory resource store backed by one XML file.

``Resources`` keeps its entries in insertion order (templates rely on it)
and tracks two independent things:

* ``saved``    -- whether the backing file matches memory.
* ``modified`` -- per entry, whether the user changed it since the last
  value fetched from upstream.  Only ``set_content()`` sets it; merging
  upstream content through ``add_tag()`` never does.

Loading never raises: a missing or unparsable file yields an empty store
bound to the same path, so callers can treat "no translations yet" and
"broken file" the same way.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from lingosync.file_handler import write_file
from lingosync.resources.parser import (
    ResourceParseError,
    read_tags,
    serialize_tags,
)
from lingosync.resources.tags import ResTag, TagContent

logger = logging.getLogger(__name__)


class Resources:
    """Ordered ``id -> ResTag`` mapping for one locale file.

    Args:
        path: Backing file, or ``None`` for a purely in-memory store
            (such as the consolidated default resources).
        tags: Initial entries, in order.
    """

    def __init__(
        self, path: Path | None = None, tags: list[ResTag] | None = None
    ) -> None:
        self._path = path
        self._tags: dict[str, ResTag] = {}
        for tag in tags or []:
            self._tags[tag.id] = tag
        self._saved = True

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_file(cls, path: Path) -> Resources:
        """Load the store at *path*; empty if absent or unparsable."""
        if not path.is_file():
            return cls(path)
        try:
            tags = read_tags(path)
        except (OSError, ResourceParseError) as exc:
            logger.warning("Ignoring unreadable resources %s: %s", path, exc)
            return cls(path)
        return cls(path, tags)

    @classmethod
    def empty(cls) -> Resources:
        return cls()

    @property
    def path(self) -> Path | None:
        return self._path

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[ResTag]:
        return iter(list(self._tags.values()))

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self._tags

    def contains(self, tag_id: str) -> bool:
        return tag_id in self._tags

    def is_empty(self) -> bool:
        return not self._tags

    def has_translatable(self) -> bool:
        """True if at least one entry may be translated."""
        return any(tag.translatable for tag in self._tags.values())

    def ids(self) -> list[str]:
        return list(self._tags)

    def get_tag(self, tag_id: str) -> ResTag | None:
        return self._tags.get(tag_id)

    def get_content(self, tag_id: str) -> TagContent | None:
        """Return the content for *tag_id*, or ``None`` if absent."""
        tag = self._tags.get(tag_id)
        return None if tag is None else tag.content

    def was_modified(self, tag_id: str | None = None) -> bool:
        """Whether *tag_id* (or, with no argument, any entry) was edited locally."""
        if tag_id is None:
            return any(tag.modified for tag in self._tags.values())
        tag = self._tags.get(tag_id)
        return tag is not None and tag.modified

    @property
    def saved(self) -> bool:
        return self._saved

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_content(self, tag_id: str, content: TagContent) -> None:
        """Record a user edit.

        Marks the entry ``modified`` and the store unsaved.  Setting the
        value an entry already has is a no-op.
        """
        tag = self._tags.get(tag_id)
        if tag is None:
            self._tags[tag_id] = ResTag.for_content(
                tag_id, content, modified=True
            )
        elif tag.content == content:
            return
        else:
            self._tags[tag_id] = tag.model_copy(
                update={"content": content, "modified": True}
            )
        self._saved = False

    def add_tag(self, tag: ResTag) -> None:
        """Insert *tag*, replacing any entry with the same id in place.

        The ``modified`` flag is taken from *tag* as-is.
        """
        self._tags[tag.id] = tag.model_copy(deep=True)
        self._saved = False

    def delete_id(self, tag_id: str) -> bool:
        """Remove *tag_id*; returns ``False`` if it was not present."""
        if self._tags.pop(tag_id, None) is None:
            return False
        self._saved = False
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_xml(self, keep_modified: bool = True) -> str:
        return serialize_tags(self._tags.values(), keep_modified=keep_modified)

    def save(self) -> bool:
        """Write the store to its backing file.

        Returns:
            ``True`` on success.  On failure the error is logged and the
            in-memory state is left as-is so the caller may retry.
        """
        if self._path is None:
            logger.error("Cannot save resources without a backing path")
            return False
        try:
            write_file(self._path, self.to_xml())
        except OSError as exc:
            logger.error("Failed to save resources %s: %s", self._path, exc)
            return False
        self._saved = True
        return True

    def delete(self) -> bool:
        """Remove the backing file, and its directory once empty."""
        if self._path is None:
            return False
        try:
            self._path.unlink(missing_ok=True)
            parent = self._path.parent
            if parent.is_dir() and not any(parent.iterdir()):
                parent.rmdir()
        except OSError as exc:
            logger.error("Failed to delete resources %s: %s", self._path, exc)
            return False
        return True

    def __repr__(self) -> str:
        return f"Resources(path={self._path!s}, entries={len(self._tags)})"
