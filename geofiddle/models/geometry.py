"""Geometry data model: a closed tagged union of GeoJSON geometry shapes.

Every variant is a frozen dataclass holding nested tuples, so geometry
trees are immutable. Transforms build new trees of identical shape.

A ``Position`` is a tuple of 2 or 3 floats ``(x, y[, z])``. What x and y
mean depends on the active projection: ``(lon, lat)`` for WGS 84,
``(easting, northing)`` for projected systems.

References:
    RFC 7946 (The GeoJSON Format), Section 3.1
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from geofiddle.core.exceptions import GeometryError

Position = tuple[float, ...]


@dataclass(frozen=True, slots=True)
class Point:
    """A single position."""

    coordinates: Position
    type: ClassVar[str] = "Point"


@dataclass(frozen=True, slots=True)
class MultiPoint:
    """An unconnected set of positions."""

    coordinates: tuple[Position, ...]
    type: ClassVar[str] = "MultiPoint"


@dataclass(frozen=True, slots=True)
class LineString:
    """A connected sequence of positions."""

    coordinates: tuple[Position, ...]
    type: ClassVar[str] = "LineString"


@dataclass(frozen=True, slots=True)
class MultiLineString:
    """A set of line strings."""

    coordinates: tuple[tuple[Position, ...], ...]
    type: ClassVar[str] = "MultiLineString"


@dataclass(frozen=True, slots=True)
class Polygon:
    """A list of linear rings. The first ring is the exterior boundary."""

    coordinates: tuple[tuple[Position, ...], ...]
    type: ClassVar[str] = "Polygon"


@dataclass(frozen=True, slots=True)
class MultiPolygon:
    """A set of polygons, each a list of rings."""

    coordinates: tuple[tuple[tuple[Position, ...], ...], ...]
    type: ClassVar[str] = "MultiPolygon"


@dataclass(frozen=True, slots=True)
class GeometryCollection:
    """A heterogeneous collection of geometries (may nest)."""

    geometries: tuple[Geometry, ...]
    type: ClassVar[str] = "GeometryCollection"


Geometry = (
    Point
    | MultiPoint
    | LineString
    | MultiLineString
    | Polygon
    | MultiPolygon
    | GeometryCollection
)

GEOMETRY_TYPES: tuple[str, ...] = (
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
)


# ---------------------------------------------------------------------------
# Position construction
# ---------------------------------------------------------------------------


def make_position(raw: object) -> Position:
    """Build a ``Position`` from a sequence of 2 or more numbers.

    Values beyond the third (e.g. GeoJSON measure values) are dropped.

    Raises:
        GeometryError: If the value is not a sequence of finite numbers
            with at least two elements.
    """
    if not isinstance(raw, list | tuple):
        msg = f"Position must be an array of numbers, got {type(raw).__name__}"
        raise GeometryError(msg)
    if len(raw) < 2:
        msg = f"Position must have at least 2 elements, got {len(raw)}"
        raise GeometryError(msg)
    values: list[float] = []
    for value in raw[:3]:
        if isinstance(value, bool) or not isinstance(value, int | float):
            msg = f"Position element {value!r} is not a number"
            raise GeometryError(msg)
        number = float(value)
        if not math.isfinite(number):
            msg = f"Position element {value!r} is not finite"
            raise GeometryError(msg)
        values.append(number)
    return tuple(values)


def _positions(raw: object, type_name: str) -> tuple[Position, ...]:
    if not isinstance(raw, list | tuple):
        msg = f"{type_name} coordinates must be an array of positions"
        raise GeometryError(msg)
    return tuple(make_position(item) for item in raw)


def _rings(raw: object, type_name: str) -> tuple[tuple[Position, ...], ...]:
    if not isinstance(raw, list | tuple):
        msg = f"{type_name} coordinates must be an array of position arrays"
        raise GeometryError(msg)
    return tuple(_positions(item, type_name) for item in raw)


# ---------------------------------------------------------------------------
# GeoJSON mapping conversion
# ---------------------------------------------------------------------------


def geometry_from_geojson(data: Mapping[str, Any]) -> Geometry:
    """Build a geometry variant from a GeoJSON geometry mapping.

    Accepts anything exposing GeoJSON keys, including the output of
    ``shapely.geometry.mapping``.

    Raises:
        GeometryError: If the type is unknown or the coordinates do not
            match the nesting depth required by the type.
    """
    if not isinstance(data, Mapping):
        msg = f"Geometry must be an object, got {type(data).__name__}"
        raise GeometryError(msg)

    geom_type = data.get("type")

    if geom_type == "GeometryCollection":
        members = data.get("geometries")
        if not isinstance(members, list | tuple):
            msg = 'GeometryCollection must have "geometries" array'
            raise GeometryError(msg)
        return GeometryCollection(tuple(geometry_from_geojson(member) for member in members))

    if geom_type not in GEOMETRY_TYPES:
        msg = f"Invalid geometry type: {geom_type!r}"
        raise GeometryError(msg)

    if "coordinates" not in data:
        msg = f'{geom_type} must have "coordinates" property'
        raise GeometryError(msg)
    raw = data["coordinates"]

    if geom_type == "Point":
        return Point(make_position(raw))
    if geom_type == "MultiPoint":
        return MultiPoint(_positions(raw, geom_type))
    if geom_type == "LineString":
        return LineString(_positions(raw, geom_type))
    if geom_type == "MultiLineString":
        return MultiLineString(_rings(raw, geom_type))
    if geom_type == "Polygon":
        return Polygon(_rings(raw, geom_type))

    if not isinstance(raw, list | tuple):
        msg = "MultiPolygon coordinates must be an array of polygons"
        raise GeometryError(msg)
    return MultiPolygon(tuple(_rings(polygon, geom_type) for polygon in raw))


def geometry_to_geojson(geometry: Geometry) -> dict[str, Any]:
    """Return a plain-``dict`` GeoJSON geometry (lists, not tuples)."""
    if isinstance(geometry, GeometryCollection):
        return {
            "type": geometry.type,
            "geometries": [geometry_to_geojson(member) for member in geometry.geometries],
        }
    if isinstance(geometry, Point):
        coordinates: Any = list(geometry.coordinates)
    elif isinstance(geometry, MultiPoint | LineString):
        coordinates = [list(pos) for pos in geometry.coordinates]
    elif isinstance(geometry, MultiLineString | Polygon):
        coordinates = [[list(pos) for pos in ring] for ring in geometry.coordinates]
    elif isinstance(geometry, MultiPolygon):
        coordinates = [
            [[list(pos) for pos in ring] for ring in polygon] for polygon in geometry.coordinates
        ]
    else:
        msg = f"Unsupported geometry object: {type(geometry).__name__}"
        raise GeometryError(msg)
    return {"type": geometry.type, "coordinates": coordinates}


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def iter_positions(geometry: Geometry) -> Iterator[Position]:
    """Yield every position in the geometry, depth first, in source order."""
    if isinstance(geometry, Point):
        yield geometry.coordinates
    elif isinstance(geometry, MultiPoint | LineString):
        yield from geometry.coordinates
    elif isinstance(geometry, MultiLineString | Polygon):
        for ring in geometry.coordinates:
            yield from ring
    elif isinstance(geometry, MultiPolygon):
        for polygon in geometry.coordinates:
            for ring in polygon:
                yield from ring
    elif isinstance(geometry, GeometryCollection):
        for member in geometry.geometries:
            yield from iter_positions(member)
    else:
        msg = f"Unsupported geometry object: {type(geometry).__name__}"
        raise GeometryError(msg)
