"""Geometry and feature value objects.

- Geometry variants: Point, MultiPoint, LineString, MultiLineString,
  Polygon, MultiPolygon, GeometryCollection
- Feature: one geometry plus properties
- ParseResult / ParseError: codec parse output
- FormatOptions: formatter options
"""

from geofiddle.models.feature import Feature, FormatOptions, ParseError, ParseResult
from geofiddle.models.geometry import (
    Geometry,
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    Position,
    geometry_from_geojson,
    geometry_to_geojson,
    iter_positions,
)

__all__ = [
    "Feature",
    "FormatOptions",
    "Geometry",
    "GeometryCollection",
    "LineString",
    "MultiLineString",
    "MultiPoint",
    "MultiPolygon",
    "ParseError",
    "ParseResult",
    "Point",
    "Polygon",
    "Position",
    "geometry_from_geojson",
    "geometry_to_geojson",
    "iter_positions",
]
