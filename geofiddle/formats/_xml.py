"""Shared XML helpers for the KML and GPX codecs.

Responsibilities:
- Hardened lxml parsing (no entity resolution, no network access)
- Splitting concatenated documents (``<gpx>...</gpx><gpx>...</gpx>``)
- Namespace-agnostic element lookup by local name
- KML coordinate text parsing
- Escaping for the hand-written serialisers
- The multi-document parse loop with ``"Document i: "`` error prefixes
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from geofiddle.core.exceptions import GeoFiddleError
from geofiddle.models.feature import ParseError, ParseResult, assign_feature_ids, prefix_errors
from geofiddle.projections.definitions import SupportedProjection

if TYPE_CHECKING:
    from collections.abc import Callable

    from lxml.etree import _Element

    from geofiddle.models.geometry import Geometry, Position

logger = logging.getLogger("geofiddle.formats.xml")

XML_DECLARATION = re.compile(r"<\?xml[^?]*\?>", re.IGNORECASE)
LEADING_DECLARATION = re.compile(r"^(\s*)<\?xml\s[^?]*\?>", re.IGNORECASE)

SourceItem = tuple[object | None, "Geometry | None", dict[str, Any]]

_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_xml(text: str) -> _Element:
    """Parse an XML document string with a hardened parser.

    The text is already decoded, so a leading XML declaration is dropped
    and its ``encoding`` is ignored. Line numbers are kept.

    Raises:
        lxml.etree.XMLSyntaxError: If the text is not well-formed XML.
    """
    from lxml import etree  # type: ignore[attr-defined]

    body = LEADING_DECLARATION.sub(
        lambda match: match.group(1) + "\n" * match.group(0).count("\n"),
        text.lstrip("\ufeff"),
        count=1,
    )
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    return etree.fromstring(body, parser=parser)


def split_documents(text: str, root_tag: str) -> list[str]:
    """Split concatenated documents on their closing root tag.

    Each fragment is rebuilt from its opening root tag, with the XML
    declaration re-attached when one preceded it.
    """
    closing = re.compile(rf"</{root_tag}\s*>", re.IGNORECASE)
    opening = re.compile(rf"<{root_tag}\b[^>]*>", re.IGNORECASE)

    documents: list[str] = []
    for part in closing.split(text):
        fragment = part.strip()
        if not fragment:
            continue
        start = opening.search(fragment)
        if start is None:
            continue
        document = f"{fragment[start.start() :]}</{root_tag}>"
        declaration = XML_DECLARATION.search(fragment)
        if declaration is not None and declaration.start() < start.start():
            document = f"{declaration.group(0)}\n{document}"
        documents.append(document)
    return documents


# ---------------------------------------------------------------------------
# Element lookup
# ---------------------------------------------------------------------------


def local_name(element: _Element) -> str:
    """Tag name without namespace; empty for comments and PIs."""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.rpartition("}")[2]


def children(element: _Element, name: str) -> list[_Element]:
    """Direct children with the given local name."""
    return [child for child in element if local_name(child) == name]


def descendants(element: _Element, name: str) -> list[_Element]:
    """The element itself and all descendants with the given local name."""
    return element.xpath("descendant-or-self::*[local-name()=$name]", name=name)


def child_text(element: _Element, name: str) -> str | None:
    """Stripped text of the first direct child with the given local name."""
    for child in children(element, name):
        return (child.text or "").strip()
    return None


def parse_coordinate_text(text: str) -> list[Position]:
    """Parse KML coordinate text (``lon,lat[,alt] lon,lat[,alt] ...``).

    Raises:
        ValueError: If a tuple has fewer than two values or a value is
            not a number.
    """
    positions: list[Position] = []
    for token in re.sub(r"\s*,\s*", ",", text.strip()).split():
        parts = token.split(",")
        if len(parts) < 2:
            msg = f"Malformed coordinate tuple: {token!r}"
            raise ValueError(msg)
        positions.append(tuple(float(value) for value in parts[:3]))
    return positions


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def escape_xml(value: str) -> str:
    """Escape ``& < > " '`` for element text and attribute values."""
    for char, entity in _ESCAPES:
        value = value.replace(char, entity)
    return value


# ---------------------------------------------------------------------------
# Multi-document parse loop
# ---------------------------------------------------------------------------


def parse_documents(
    text: str,
    *,
    root_tag: str,
    format_name: str,
    label: str,
    convert: Callable[[_Element], list[SourceItem]],
) -> ParseResult:
    """Parse one or more concatenated XML documents of one format.

    Every document is parsed independently; failures become errors
    prefixed ``"Document i: "`` when there is more than one document.
    The result always reports WGS 84, since KML and GPX are geographic.
    """
    from lxml import etree  # type: ignore[attr-defined]

    trimmed = text.strip()
    if not trimmed:
        return ParseResult(
            detected_format=format_name, detected_projection=SupportedProjection.WGS84
        )

    documents = split_documents(trimmed, root_tag) or [trimmed]
    items: list[SourceItem] = []
    errors: list[ParseError] = []

    for index, document in enumerate(documents, start=1):
        prefix = f"Document {index}: " if len(documents) > 1 else ""
        try:
            root = parse_xml(document)
            doc_items = convert(root)
        except etree.XMLSyntaxError as exc:
            logger.warning("%s document %d is not valid XML: %s", label, index, exc)
            error = ParseError(f"Invalid XML: {exc}", line=exc.lineno)
            errors.extend(prefix_errors([error], prefix))
            continue
        except (GeoFiddleError, ValueError) as exc:
            logger.warning("%s document %d could not be converted: %s", label, index, exc)
            errors.extend(prefix_errors([ParseError(str(exc))], prefix))
            continue
        items.extend(doc_items)

    if not items and not errors:
        errors.append(ParseError(f"No features found in {label}"))

    features = assign_feature_ids(items)
    logger.info(
        "Parsed %d %s feature(s) from %d document(s) with %d error(s)",
        len(features),
        label,
        len(documents),
        len(errors),
    )
    return ParseResult(
        features=features,
        errors=tuple(errors),
        detected_format=format_name,
        detected_projection=SupportedProjection.WGS84,
    )
