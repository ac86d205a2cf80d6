"""Resource entries, the per-locale store and the template engine."""

from .parser import (
    ResourceParseError,
    apply_template,
    clean,
    clean_xml,
)
from .store import Resources
from .tags import ResTag, TagKind

__all__ = [
    "ResTag",
    "ResourceParseError",
    "Resources",
    "TagKind",
    "apply_template",
    "clean",
    "clean_xml",
]
