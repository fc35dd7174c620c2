"""Decode SAP OData Atom payloads into :class:`ODataEntry` records.

SAP Gateway answers a key lookup with a bare ``<entry>`` document and a
``$filter`` query with a ``<feed>`` holding zero or more entries. Each entry
carries its values in ``content/m:properties/d:<Field>``. Elements are matched
by local name so the decode does not depend on the namespace prefixes chosen
by the upstream system.
"""
from __future__ import annotations

from typing import Iterator

from lxml import etree

from backend.domain import ODataEntry


class ODataError(ValueError):
    """Base class for payloads that cannot be turned into entries."""


class ODataParseError(ODataError):
    """The upstream body is not well-formed XML."""


class UnexpectedStructureError(ODataError):
    """The XML parsed but lacks the expected ``entry``/``feed`` layout."""


def _local_name(element: etree._Element) -> str | None:
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _children(element: etree._Element, name: str) -> Iterator[etree._Element]:
    for child in element:
        if _local_name(child) == name:
            yield child


def _first_child(element: etree._Element, name: str) -> etree._Element | None:
    return next(_children(element, name), None)


def _is_null(element: etree._Element) -> bool:
    for key, value in element.attrib.items():
        if etree.QName(key).localname == "null" and value.strip().lower() == "true":
            return True
    return False


def parse_xml(payload: bytes | str) -> etree._Element:
    """Parse ``payload`` into an element tree without resolving entities."""

    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
    try:
        root = etree.fromstring(payload, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise ODataParseError(str(exc)) from exc
    if root is None:
        raise ODataParseError("empty document")
    return root


def _read_properties(entry: etree._Element) -> ODataEntry:
    content = _first_child(entry, "content")
    block = _first_child(content, "properties") if content is not None else None
    if block is None:
        # media link entries keep their properties next to <content>
        block = _first_child(entry, "properties")
    if block is None:
        raise UnexpectedStructureError("entry has no properties block")

    properties: dict[str, str | None] = {}
    for child in block:
        name = _local_name(child)
        if name is None or name in properties:
            continue
        properties[name] = None if _is_null(child) else "".join(child.itertext())
    return ODataEntry(properties=properties)


def read_entry(root: etree._Element) -> ODataEntry:
    """Decode a single-entry document."""

    if _local_name(root) != "entry":
        raise UnexpectedStructureError(f"expected <entry> root, got <{_local_name(root)}>")
    return _read_properties(root)


def read_feed(root: etree._Element) -> list[ODataEntry]:
    """Decode every entry of a feed document; an empty feed yields ``[]``."""

    if _local_name(root) != "feed":
        raise UnexpectedStructureError(f"expected <feed> root, got <{_local_name(root)}>")
    return [_read_properties(entry) for entry in _children(root, "entry")]


def date_only(value: str | None) -> str | None:
    """Truncate an ``Edm.DateTime`` literal to its date part."""

    if value is None:
        return None
    return value.split("T", 1)[0]


__all__ = [
    "ODataError",
    "ODataParseError",
    "UnexpectedStructureError",
    "date_only",
    "parse_xml",
    "read_entry",
    "read_feed",
]
