"""Coordinate transform engine.

Delegates the maths to pyproj and walks the geometry tree structurally:
every variant of the geometry union is rebuilt with the same type and
nesting, and the input is never mutated. An optional z value is passed
through unchanged.

Transformers are built lazily, once per (source, target) pair, from the
fixed PROJ strings in ``definitions``. pyproj CRS and Transformer objects
are thread-safe, so the cache can be shared between callers.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from geofiddle.core.exceptions import TransformError, UnsupportedProjectionError
from geofiddle.models.feature import Feature
from geofiddle.models.geometry import (
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)
from geofiddle.projections.definitions import (
    SupportedProjection,
    get_definition,
    resolve_projection,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pyproj import Transformer

    from geofiddle.models.geometry import Geometry, Position

logger = logging.getLogger("geofiddle.projections.transform")


@lru_cache(maxsize=None)
def _get_transformer(source: SupportedProjection, target: SupportedProjection) -> Transformer:
    """Build (once) the pyproj transformer for a projection pair."""
    from pyproj import CRS, Transformer

    source_crs = CRS.from_proj4(get_definition(source).proj_string)
    target_crs = CRS.from_proj4(get_definition(target).proj_string)
    logger.debug("Building transformer %s -> %s", source.value, target.value)
    return Transformer.from_crs(source_crs, target_crs, always_xy=True)


def _coerce(projection: SupportedProjection | str) -> SupportedProjection:
    resolved = resolve_projection(projection)
    if resolved is None:
        msg = f"Unsupported projection: {projection!r}"
        raise UnsupportedProjectionError(msg)
    return resolved


def transform_coordinate(
    coord: Position,
    source: SupportedProjection | str,
    target: SupportedProjection | str,
) -> Position:
    """Transform a single position between projections.

    Returns a position equal to the input when ``source == target``.

    Raises:
        UnsupportedProjectionError: If either projection is unknown.
        TransformError: If pyproj cannot transform the coordinate.
    """
    from pyproj.exceptions import ProjError

    source = _coerce(source)
    target = _coerce(target)
    if source is target:
        return tuple(coord)

    x, y = coord[0], coord[1]
    try:
        tx, ty = _get_transformer(source, target).transform(x, y, errcheck=True)
    except ProjError as exc:
        msg = f"Cannot transform ({x}, {y}) from {source.value} to {target.value}: {exc}"
        raise TransformError(msg) from exc

    if len(coord) > 2:
        return (tx, ty, coord[2])
    return (tx, ty)


def transform_geometry(
    geometry: Geometry,
    source: SupportedProjection | str,
    target: SupportedProjection | str,
) -> Geometry:
    """Transform every position of a geometry, preserving type and nesting.

    Raises:
        UnsupportedProjectionError: If either projection is unknown.
        TransformError: If any coordinate cannot be transformed.
    """
    source = _coerce(source)
    target = _coerce(target)

    def _ring(ring: Iterable[Position]) -> tuple[Position, ...]:
        return tuple(transform_coordinate(pos, source, target) for pos in ring)

    if isinstance(geometry, Point):
        return Point(transform_coordinate(geometry.coordinates, source, target))
    if isinstance(geometry, MultiPoint):
        return MultiPoint(_ring(geometry.coordinates))
    if isinstance(geometry, LineString):
        return LineString(_ring(geometry.coordinates))
    if isinstance(geometry, MultiLineString):
        return MultiLineString(tuple(_ring(line) for line in geometry.coordinates))
    if isinstance(geometry, Polygon):
        return Polygon(tuple(_ring(ring) for ring in geometry.coordinates))
    if isinstance(geometry, MultiPolygon):
        return MultiPolygon(
            tuple(tuple(_ring(ring) for ring in polygon) for polygon in geometry.coordinates)
        )
    if isinstance(geometry, GeometryCollection):
        return GeometryCollection(
            tuple(transform_geometry(member, source, target) for member in geometry.geometries)
        )
    msg = f"Unsupported geometry object: {type(geometry).__name__}"
    raise TransformError(msg)


def transform_feature(
    feature: Feature,
    source: SupportedProjection | str,
    target: SupportedProjection | str,
) -> Feature:
    """Return a copy of the feature with its geometry transformed."""
    if feature.geometry is None:
        return feature
    return Feature(
        id=feature.id,
        geometry=transform_geometry(feature.geometry, source, target),
        properties=dict(feature.properties),
    )


def transform_features(
    features: Iterable[Feature],
    source: SupportedProjection | str,
    target: SupportedProjection | str,
) -> tuple[Feature, ...]:
    """Transform a sequence of features."""
    return tuple(transform_feature(feature, source, target) for feature in features)
