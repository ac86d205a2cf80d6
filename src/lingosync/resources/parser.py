"""Reading, writing and templating of Android resource documents (lxml).

Three jobs live here:

- ``read_tags()`` / ``serialize_tags()``: the parse/serialize contract used
  by ``Resources`` for its backing file.
- ``clean()``: strip ``translatable="false"`` entries from an upstream
  document while leaving everything else (comments, ordering, whitespace,
  non-string resources) exactly as it was.
- ``apply_template()``: walk an upstream document and substitute one
  locale's values into it, producing a file that can be dropped into
  ``res/values-<locale>/`` unchanged.

Entry content is the inner XML source of the element: text stays escaped
(``Tom &amp; Jerry``, ``&lt;b&gt;`` for ``Html.fromHtml`` strings) and inline
markup (``<b>``, ``<xliff:g>``...) is kept verbatim, so a read followed by a
write reproduces the upstream meaning.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Iterable
from xml.sax.saxutils import escape

from lxml import etree

from lingosync.file_handler import read_file_with_encoding, write_file
from lingosync.resources.tags import PLURAL_QUANTITIES, ResTag, TagKind

if TYPE_CHECKING:
    from lingosync.resources.store import Resources

logger = logging.getLogger(__name__)

ROOT_TAG = "resources"
XLIFF_NS = "urn:oasis:names:tc:xliff:document:1.2"

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
_KINDS = {kind.value: kind for kind in TagKind}


class ResourceParseError(ValueError):
    """Raised when a document is not a well-formed ``<resources>`` file."""


# ---------------------------------------------------------------------------
# Document level
# ---------------------------------------------------------------------------


def _make_parser() -> etree.XMLParser:
    return etree.XMLParser(
        remove_blank_text=False,
        resolve_entities=False,
        no_network=True,
    )


def parse_document(source: str | bytes | Path) -> etree._Element:
    """Parse *source* into the ``<resources>`` root element.

    *source* may be a path (read with encoding detection), XML text or raw
    bytes.

    Raises:
        ResourceParseError: If the document is malformed or its root is not
            ``<resources>``.
        OSError: If *source* is a path that cannot be read.
    """
    if isinstance(source, Path):
        source, _ = read_file_with_encoding(source)
    if isinstance(source, str):
        # lxml refuses str input that still declares an encoding
        source = source.lstrip("\ufeff")
        source = _XML_DECLARATION.sub("", source, count=1).lstrip()

    try:
        root = etree.fromstring(source, _make_parser())
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise ResourceParseError(str(exc)) from exc

    if root is None or root.tag != ROOT_TAG:
        raise ResourceParseError(
            f"Root element must be <{ROOT_TAG}>, got <{getattr(root, 'tag', None)}>"
        )
    return root


def _to_text(root: etree._Element) -> str:
    body = etree.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'


# ---------------------------------------------------------------------------
# Element content
# ---------------------------------------------------------------------------


def _entry_kind(elem: etree._Element) -> TagKind | None:
    if not isinstance(elem.tag, str) or elem.get("name") is None:
        return None
    return _KINDS.get(elem.tag)


def _is_translatable(elem: etree._Element) -> bool:
    return elem.get("translatable", "true").strip().lower() != "false"


def _inner_xml(elem: etree._Element) -> str:
    parts = [escape(elem.text or "")]
    for child in elem:
        markup = etree.tostring(child, encoding="unicode", with_tail=True)
        # the prefix is redeclared on every serialized child
        parts.append(markup.replace(f' xmlns:xliff="{XLIFF_NS}"', ""))
    return "".join(parts)


def _set_inner_xml(elem: etree._Element, content: str) -> None:
    for child in list(elem):
        elem.remove(child)
    elem.text = None

    if "<" in content or "&" in content:
        wrapped = f'<w xmlns:xliff="{XLIFF_NS}">{content}</w>'
        try:
            fragment = etree.fromstring(wrapped, _make_parser())
        except etree.XMLSyntaxError:
            logger.debug("Not an XML fragment, writing as text: %r", content)
            fragment = None
        if fragment is not None:
            elem.text = fragment.text
            for child in list(fragment):
                elem.append(child)
            return
    elem.text = content


def _read_tag(elem: etree._Element, kind: TagKind) -> ResTag:
    if kind is TagKind.STRING_ARRAY:
        content: str | list[str] | dict[str, str] = [
            _inner_xml(item) for item in elem if item.tag == "item"
        ]
    elif kind is TagKind.PLURALS:
        content = {
            item.get("quantity"): _inner_xml(item)
            for item in elem
            if item.tag == "item" and item.get("quantity") in PLURAL_QUANTITIES
        }
    else:
        content = _inner_xml(elem)

    return ResTag(
        id=elem.get("name"),
        kind=kind,
        content=content,
        translatable=_is_translatable(elem),
        modified=elem.get("modified", "false").lower() == "true",
    )


def _write_content(elem: etree._Element, tag: ResTag) -> None:
    """Replace the content of *elem* with that of *tag*, keeping its attributes."""
    if tag.kind is TagKind.STRING:
        _set_inner_xml(elem, str(tag.content))
        return

    indent = _child_indent(elem)
    for child in list(elem):
        elem.remove(child)
    elem.text = indent if tag.content else None

    if tag.kind is TagKind.STRING_ARRAY:
        pairs = [(None, value) for value in tag.content]
    else:
        pairs = list(tag.content.items())

    for quantity, value in pairs:
        item = etree.SubElement(elem, "item")
        if quantity is not None:
            item.set("quantity", quantity)
        _set_inner_xml(item, value)
        item.tail = indent
    if len(elem):
        elem[-1].tail = _closing_indent(elem)


def _blank_content(elem: etree._Element, kind: TagKind) -> None:
    if kind is TagKind.STRING:
        _set_inner_xml(elem, "")
        return
    for item in elem:
        if item.tag == "item":
            _set_inner_xml(item, "")


def _child_indent(elem: etree._Element) -> str:
    if elem.text and not elem.text.strip():
        return elem.text
    return _closing_indent(elem) + "    "


def _closing_indent(elem: etree._Element) -> str:
    parent = elem.getparent()
    if parent is None:
        return "\n"
    previous = elem.getprevious()
    before = previous.tail if previous is not None else parent.text
    if before and not before.strip():
        return before
    return "\n    "


# ---------------------------------------------------------------------------
# Store serialization
# ---------------------------------------------------------------------------


def read_tags(source: str | bytes | Path) -> list[ResTag]:
    """Return every string, string-array and plurals entry in *source*.

    Entries without a ``name`` and other resource types (colors, dimens,
    integers...) are ignored.  Duplicate ids keep the last occurrence.

    Raises:
        ResourceParseError: On malformed input.
    """
    root = parse_document(source)
    tags: dict[str, ResTag] = {}
    for elem in root:
        kind = _entry_kind(elem)
        if kind is None:
            continue
        tag = _read_tag(elem, kind)
        tags[tag.id] = tag
    return list(tags.values())


def serialize_tags(tags: Iterable[ResTag], keep_modified: bool = True) -> str:
    """Render *tags* as a complete ``<resources>`` document.

    Args:
        tags: Entries in output order.
        keep_modified: Emit ``modified="true"`` on edited entries.  Stores
            persist the flag; exported documents must not carry it.
    """
    root = etree.Element(ROOT_TAG, nsmap={"xliff": XLIFF_NS})
    root.text = "\n    "
    for tag in tags:
        elem = etree.SubElement(root, tag.kind.value, name=tag.id)
        if not tag.translatable:
            elem.set("translatable", "false")
        if keep_modified and tag.modified:
            elem.set("modified", "true")
        elem.tail = "\n    "
        _write_content(elem, tag)
    if len(root):
        root[-1].tail = "\n"
    else:
        root.text = None
    return _to_text(root)


# ---------------------------------------------------------------------------
# Cleaning
# ---------------------------------------------------------------------------


def clean(source: str | bytes | Path) -> str:
    """Return *source* without its ``translatable="false"`` entries.

    Everything else is copied through untouched, so ``clean(clean(doc))``
    equals ``clean(doc)``.

    Raises:
        ResourceParseError: On malformed input.
    """
    root = parse_document(source)
    for elem in list(root):
        if _entry_kind(elem) is not None and not _is_translatable(elem):
            _drop(elem)
    return _to_text(root)


def _drop(elem: etree._Element) -> None:
    parent = elem.getparent()
    previous = elem.getprevious()
    if previous is not None:
        previous.tail = elem.tail
    else:
        parent.text = elem.tail
    parent.remove(elem)


def clean_xml(source: Path, dest: Path) -> bool:
    """Write the cleaned version of *source* to *dest*.

    Returns:
        ``False`` when *source* cannot be read or parsed, or *dest* cannot
        be written; the reason is logged.
    """
    try:
        write_file(dest, clean(source))
    except (OSError, ResourceParseError) as exc:
        logger.warning("Could not clean %s into %s: %s", source, dest, exc)
        return False
    return True


# ---------------------------------------------------------------------------
# Templating
# ---------------------------------------------------------------------------


def apply_template(template: str | bytes | Path, resources: Resources) -> str:
    """Fill *template* with the values from *resources*.

    Every translatable entry takes its content from *resources* when the
    id is present there and is left blank otherwise.  Non-translatable
    entries and anything that is not a string, string-array or plurals
    element are copied from the template unchanged, so the output has the
    same entries in the same order as the template.

    Raises:
        ResourceParseError: On a malformed template.
    """
    root = parse_document(template)
    for elem in root:
        kind = _entry_kind(elem)
        if kind is None or not _is_translatable(elem):
            continue

        elem.attrib.pop("modified", None)
        tag = resources.get_tag(elem.get("name"))
        if tag is None or tag.kind is not kind:
            _blank_content(elem, kind)
        else:
            _write_content(elem, tag)
    return _to_text(root)
