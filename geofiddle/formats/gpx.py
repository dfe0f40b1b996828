"""GPX codec.

Conversion order follows the usual GPX-to-GeoJSON mapping: tracks first,
then routes, then waypoints.

- ``trk`` -> ``LineString`` (one segment) or ``MultiLineString``
- ``rte`` -> ``LineString``
- ``wpt`` -> ``Point``

``ele`` becomes the z value of a position. ``desc`` is exposed as the
``description`` property.

Concatenated ``<gpx>...</gpx>`` documents are split and parsed on their
own; failures in one document are reported with a ``"Document i: "``
prefix while the others still yield features.

References:
    GPX 1.1 Schema (https://www.topografix.com/GPX/1/1/)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from geofiddle.core.constants import GPX, GPX_CREATOR, GPX_NAMESPACE
from geofiddle.formats._base import FormatCodec
from geofiddle.formats._xml import (
    child_text,
    children,
    descendants,
    escape_xml,
    local_name,
    parse_documents,
)
from geofiddle.models.geometry import (
    LineString,
    MultiLineString,
    MultiPoint,
    Point,
    make_position,
)
from geofiddle.utils.helpers import format_number

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lxml.etree import _Element

    from geofiddle.formats._xml import SourceItem
    from geofiddle.models.feature import Feature, FormatOptions, ParseResult
    from geofiddle.models.geometry import Geometry, Position

logger = logging.getLogger("geofiddle.formats.gpx")

# GPX child element -> feature property name
PROPERTY_TAGS: tuple[tuple[str, str], ...] = (
    ("name", "name"),
    ("desc", "description"),
    ("cmt", "cmt"),
    ("type", "type"),
    ("time", "time"),
)


# ---------------------------------------------------------------------------
# GPX DOM -> geometry
# ---------------------------------------------------------------------------


def _position(point: _Element) -> Position:
    """``(lon, lat[, ele])`` from a ``wpt``/``trkpt``/``rtept`` element.

    Raises:
        ValueError: If ``lat`` or ``lon`` is missing or not a number.
    """
    lat = point.get("lat")
    lon = point.get("lon")
    if lat is None or lon is None:
        msg = f"<{local_name(point)}> is missing a lat or lon attribute"
        raise ValueError(msg)
    values: list[float] = [float(lon), float(lat)]
    ele = child_text(point, "ele")
    if ele:
        values.append(float(ele))
    return make_position(values)


def _properties(element: _Element) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    for tag, key in PROPERTY_TAGS:
        value = child_text(element, tag)
        if value is not None:
            properties[key] = value
    return properties


def _track_geometry(track: _Element) -> Geometry | None:
    segments = [
        tuple(_position(point) for point in children(segment, "trkpt"))
        for segment in children(track, "trkseg")
    ]
    segments = [segment for segment in segments if segment]
    if not segments:
        return None
    if len(segments) == 1:
        return LineString(segments[0])
    return MultiLineString(tuple(segments))


def gpx_to_items(root: _Element) -> list[SourceItem]:
    """Convert a parsed GPX document to ``(id, geometry, properties)`` items.

    Raises:
        GeometryError: If a coordinate is not finite.
        ValueError: If a point lacks a numeric ``lat``/``lon``.
    """
    items: list[SourceItem] = []

    for track in descendants(root, "trk"):
        geometry = _track_geometry(track)
        if geometry is not None:
            items.append((None, geometry, _properties(track)))

    for route in descendants(root, "rte"):
        positions = tuple(_position(point) for point in children(route, "rtept"))
        if positions:
            items.append((None, LineString(positions), _properties(route)))

    for waypoint in descendants(root, "wpt"):
        items.append((None, Point(_position(waypoint)), _properties(waypoint)))

    logger.debug("GPX document yielded %d item(s)", len(items))
    return items


def parse_gpx(text: str) -> ParseResult:
    """Parse one or more concatenated GPX documents."""
    return parse_documents(text, root_tag="gpx", format_name=GPX, label="GPX", convert=gpx_to_items)


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def _point_attrs(pos: Position) -> str:
    return f'lat="{format_number(pos[1])}" lon="{format_number(pos[0])}"'


def _ele(pos: Position) -> str:
    return f"<ele>{format_number(pos[2])}</ele>" if len(pos) > 2 else ""


def _name_tag(name: str) -> str:
    return f"<name>{escape_xml(name)}</name>" if name else ""


def _waypoint(pos: Position, name: str) -> str:
    return f"<wpt {_point_attrs(pos)}>{_name_tag(name)}{_ele(pos)}</wpt>"


def _segment(line: Sequence[Position]) -> str:
    points = "\n        ".join(f"<trkpt {_point_attrs(pos)}>{_ele(pos)}</trkpt>" for pos in line)
    return f"<trkseg>\n        {points}\n      </trkseg>"


def format_gpx(features: Sequence[Feature], options: FormatOptions | None = None) -> str:
    """Write a GPX 1.1 document.

    Points and multi-points become waypoints, lines become tracks with one
    segment per line. Polygonal geometries have no GPX equivalent and are
    left out.
    """
    elements: list[str] = []
    for feature in features:
        raw_name = feature.properties.get("name")
        name = raw_name if isinstance(raw_name, str) else ""
        geometry = feature.geometry

        if isinstance(geometry, Point):
            elements.append(_waypoint(geometry.coordinates, name))
        elif isinstance(geometry, MultiPoint):
            elements.extend(_waypoint(pos, name) for pos in geometry.coordinates)
        elif isinstance(geometry, LineString):
            elements.append(f"<trk>{_name_tag(name)}{_segment(geometry.coordinates)}</trk>")
        elif isinstance(geometry, MultiLineString):
            segments = "\n      ".join(_segment(line) for line in geometry.coordinates)
            elements.append(f"<trk>{_name_tag(name)}{segments}</trk>")
        else:
            logger.debug(
                "Feature %s (%s) has no GPX equivalent; skipped",
                feature.id,
                geometry.type if geometry is not None else "null",
            )

    body = "\n  ".join(elements)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<gpx version="1.1" creator="{GPX_CREATOR}" xmlns="{GPX_NAMESPACE}">\n'
        f"  {body}\n"
        "</gpx>"
    )


def detect_gpx(text: str) -> bool:
    """Recognise text starting with an XML declaration or ``<gpx`` that contains ``<gpx``."""
    trimmed = text.strip()
    lowered = trimmed.lower()
    if not trimmed.startswith("<?xml") and not lowered.startswith("<gpx"):
        return False
    return "<gpx" in lowered


CODEC = FormatCodec(
    name=GPX,
    label="GPX",
    parse=parse_gpx,
    format=format_gpx,
    detect=detect_gpx,
)
