"""KML codec.

Parsing walks every ``Placemark`` with lxml and converts its geometry
(``Point``, ``LineString``, ``Polygon`` or ``MultiGeometry``) into the
geometry model. Element lookup matches on local names, so documents with
or without the KML 2.2 namespace are both accepted.

Metadata carried into feature properties:

- ``name`` and ``description``
- ``ExtendedData/Data/value`` (untyped key-value pairs)
- ``ExtendedData/SchemaData/SimpleData`` (typed fields)

Several ``<kml>...</kml>`` documents may be concatenated; each is parsed
on its own and errors are prefixed ``"Document i: "``.

References:
    OGC 07-147r2 (KML 2.2)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from geofiddle.core.constants import KML, KML_NAMESPACE
from geofiddle.core.exceptions import GeometryError
from geofiddle.formats._base import FormatCodec
from geofiddle.formats._xml import (
    child_text,
    children,
    descendants,
    escape_xml,
    local_name,
    parse_coordinate_text,
    parse_documents,
)
from geofiddle.models.geometry import (
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    make_position,
)
from geofiddle.utils.helpers import format_position

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lxml.etree import _Element

    from geofiddle.formats._xml import SourceItem
    from geofiddle.models.feature import Feature, FormatOptions, ParseResult
    from geofiddle.models.geometry import Geometry, Position

logger = logging.getLogger("geofiddle.formats.kml")

GEOMETRY_TAGS = frozenset({"Point", "LineString", "Polygon", "MultiGeometry"})


# ---------------------------------------------------------------------------
# KML DOM -> geometry
# ---------------------------------------------------------------------------


def _coordinates(element: _Element) -> tuple[Position, ...]:
    """Positions from the first ``coordinates`` element under ``element``."""
    nodes = descendants(element, "coordinates")
    if not nodes:
        return ()
    return tuple(make_position(pos) for pos in parse_coordinate_text(nodes[0].text or ""))


def _ring(boundary: _Element) -> tuple[Position, ...]:
    for ring in children(boundary, "LinearRing"):
        return _coordinates(ring)
    return ()


def _read_polygon(element: _Element) -> Polygon | None:
    outer = [_ring(boundary) for boundary in children(element, "outerBoundaryIs")]
    if not outer or not outer[0]:
        return None
    rings = [outer[0]]
    for boundary in children(element, "innerBoundaryIs"):
        for ring in children(boundary, "LinearRing"):
            inner = _coordinates(ring)
            if inner:
                rings.append(inner)
    return Polygon(tuple(rings))


def _read_geometries(element: _Element) -> list[Geometry]:
    """Convert one KML geometry element; ``MultiGeometry`` is flattened."""
    tag = local_name(element)
    if tag == "Point":
        positions = _coordinates(element)
        return [Point(positions[0])] if positions else []
    if tag == "LineString":
        positions = _coordinates(element)
        return [LineString(positions)] if positions else []
    if tag == "Polygon":
        polygon = _read_polygon(element)
        return [polygon] if polygon is not None else []
    if tag == "MultiGeometry":
        members: list[Geometry] = []
        for child in element:
            if local_name(child) in GEOMETRY_TAGS:
                members.extend(_read_geometries(child))
        return members
    return []


def _placemark_geometry(placemark: _Element) -> Geometry | None:
    geometries: list[Geometry] = []
    for child in placemark:
        if local_name(child) in GEOMETRY_TAGS:
            geometries.extend(_read_geometries(child))
    if not geometries:
        return None
    if len(geometries) == 1:
        return geometries[0]
    return GeometryCollection(tuple(geometries))


def _extended_data(placemark: _Element) -> dict[str, str]:
    """Collect ``Data`` and ``SimpleData`` pairs from ``ExtendedData``."""
    metadata: dict[str, str] = {}
    for extended in children(placemark, "ExtendedData"):
        for data in children(extended, "Data"):
            key = data.get("name", "")
            value = child_text(data, "value")
            if key and value is not None:
                metadata[key] = value
        for schema_data in children(extended, "SchemaData"):
            for simple in children(schema_data, "SimpleData"):
                key = simple.get("name", "")
                if key:
                    metadata[key] = (simple.text or "").strip()
    return metadata


def kml_to_items(root: _Element) -> list[SourceItem]:
    """Convert a parsed KML document to ``(id, geometry, properties)`` items.

    Placemarks without a usable geometry are skipped.

    Raises:
        GeometryError: If a coordinate is not a finite number.
        ValueError: If coordinate text is malformed.
    """
    items: list[SourceItem] = []
    for index, placemark in enumerate(descendants(root, "Placemark")):
        geometry = _placemark_geometry(placemark)
        if geometry is None:
            logger.debug("Placemark %d has no geometry; skipped", index)
            continue

        properties: dict[str, Any] = {}
        name = child_text(placemark, "name")
        if name is not None:
            properties["name"] = name
        description = child_text(placemark, "description")
        if description is not None:
            properties["description"] = description
        properties.update(_extended_data(placemark))

        items.append((placemark.get("id"), geometry, properties))
    return items


def parse_kml(text: str) -> ParseResult:
    """Parse one or more concatenated KML documents."""
    return parse_documents(text, root_tag="kml", format_name=KML, label="KML", convert=kml_to_items)


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def _coordinate_text(positions: Sequence[Position]) -> str:
    return " ".join(format_position(pos) for pos in positions)


def _polygon_kml(rings: Sequence[Sequence[Position]]) -> str:
    parts: list[str] = []
    for index, ring in enumerate(rings):
        tag = "outerBoundaryIs" if index == 0 else "innerBoundaryIs"
        coords = _coordinate_text(ring)
        parts.append(f"<{tag}><LinearRing><coordinates>{coords}</coordinates></LinearRing></{tag}>")
    return f"<Polygon>{''.join(parts)}</Polygon>"


def _geometry_kml(geometry: Geometry) -> str:
    if isinstance(geometry, Point):
        coords = _coordinate_text([geometry.coordinates])
        return f"<Point><coordinates>{coords}</coordinates></Point>"
    if isinstance(geometry, LineString):
        coords = _coordinate_text(geometry.coordinates)
        return f"<LineString><coordinates>{coords}</coordinates></LineString>"
    if isinstance(geometry, Polygon):
        return _polygon_kml(geometry.coordinates)

    if isinstance(geometry, MultiPoint):
        members = [_geometry_kml(Point(pos)) for pos in geometry.coordinates]
    elif isinstance(geometry, MultiLineString):
        members = [_geometry_kml(LineString(line)) for line in geometry.coordinates]
    elif isinstance(geometry, MultiPolygon):
        members = [_polygon_kml(polygon) for polygon in geometry.coordinates]
    elif isinstance(geometry, GeometryCollection):
        members = [_geometry_kml(member) for member in geometry.geometries]
    else:
        msg = f"Unsupported geometry object: {type(geometry).__name__}"
        raise GeometryError(msg)
    return f"<MultiGeometry>{''.join(members)}</MultiGeometry>"


def format_kml(features: Sequence[Feature], options: FormatOptions | None = None) -> str:
    """Write a KML 2.2 document with one ``Placemark`` per feature."""
    placemarks: list[str] = []
    for index, feature in enumerate(features):
        raw_name = feature.properties.get("name")
        name = raw_name if isinstance(raw_name, str) else f"Feature {index + 1}"
        body = f"<name>{escape_xml(name)}</name>"

        description = feature.properties.get("description")
        if isinstance(description, str) and description:
            body += f"<description>{escape_xml(description)}</description>"

        if feature.geometry is not None:
            body += _geometry_kml(feature.geometry)
        placemarks.append(f"<Placemark>{body}</Placemark>")

    body_text = "\n".join(placemarks)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<kml xmlns="{KML_NAMESPACE}">\n'
        "<Document>\n"
        f"{body_text}\n"
        "</Document>\n"
        "</kml>"
    )


def detect_kml(text: str) -> bool:
    """Recognise text starting with an XML declaration or ``<kml`` that contains ``<kml``."""
    trimmed = text.strip()
    lowered = trimmed.lower()
    if not trimmed.startswith("<?xml") and not lowered.startswith("<kml"):
        return False
    return "<kml" in lowered


CODEC = FormatCodec(
    name=KML,
    label="KML",
    parse=parse_kml,
    format=format_kml,
    detect=detect_kml,
)
