"""Pydantic model for a single resource entry.

A ``ResTag`` is one ``<string>``, ``<string-array>`` or ``<plurals>``
element of an Android ``res/values*/`` file, reduced to what translation
needs: its id, its content, whether it may be translated, and whether the
user changed it since the last upstream fetch.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

PLURAL_QUANTITIES = ("zero", "one", "two", "few", "many", "other")


class TagKind(str, Enum):
    """Element types the store understands."""

    STRING = "string"
    STRING_ARRAY = "string-array"
    PLURALS = "plurals"


TagContent = str | list[str] | dict[str, str]


class ResTag(BaseModel):
    """One resource entry.

    Attributes:
        id: The ``name`` attribute, unique within a store.
        kind: Element type.
        content: ``str`` for strings, ordered ``list[str]`` for arrays,
            ``dict`` keyed by quantity for plurals.
        translatable: ``False`` for entries marked
            ``translatable="false"`` upstream.
        modified: ``True`` once the user edited the entry after it was
            fetched from upstream.
    """

    id: str
    kind: TagKind = TagKind.STRING
    content: TagContent = ""
    translatable: bool = True
    modified: bool = False

    @classmethod
    def for_content(cls, tag_id: str, content: TagContent, **kwargs) -> ResTag:
        """Build a tag whose kind is inferred from the type of *content*."""
        if isinstance(content, list):
            kind = TagKind.STRING_ARRAY
        elif isinstance(content, dict):
            kind = TagKind.PLURALS
        else:
            kind = TagKind.STRING
        return cls(id=tag_id, kind=kind, content=content, **kwargs)

    def is_blank(self) -> bool:
        """True when there is no text at all in the entry."""
        if isinstance(self.content, list):
            return not any(self.content)
        if isinstance(self.content, dict):
            return not any(self.content.values())
        return not self.content
