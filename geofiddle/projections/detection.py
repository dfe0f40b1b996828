"""Projection auto-detection and WGS 84 range checks.

Detection is a deterministic precedence rule over the largest absolute
coordinate value, not a confidence score:

    max |x|, |y| <= 180           -> WGS 84
    max |x|, |y| <= 1,300,000     -> British National Grid
    max |x|, |y| <= 20,037,508.34 -> Web Mercator
    otherwise                     -> WGS 84

z values are ignored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geofiddle.core.constants import (
    BNG_MAX_ABS,
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
    WEB_MERCATOR_MAX_ABS,
    WGS84_MAX_ABS,
)
from geofiddle.models.geometry import iter_positions
from geofiddle.projections.definitions import SupportedProjection

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from geofiddle.models.feature import Feature
    from geofiddle.models.geometry import Position

logger = logging.getLogger("geofiddle.projections.detection")


def detect_projection_from_coordinates(coords: Iterable[Sequence[float]]) -> SupportedProjection:
    """Guess the projection a flat list of coordinates is expressed in.

    An empty list is WGS 84.
    """
    max_abs = 0.0
    seen = False
    for coord in coords:
        seen = True
        max_abs = max(max_abs, abs(coord[0]), abs(coord[1]))

    if not seen or max_abs <= WGS84_MAX_ABS:
        projection = SupportedProjection.WGS84
    elif max_abs <= BNG_MAX_ABS:
        projection = SupportedProjection.BNG
    elif max_abs <= WEB_MERCATOR_MAX_ABS:
        projection = SupportedProjection.WEB_MERCATOR
    else:
        projection = SupportedProjection.WGS84

    logger.debug("Detected projection %s (max |coord| = %s)", projection.value, max_abs)
    return projection


def collect_positions(features: Iterable[Feature]) -> list[Position]:
    """Flatten every position of every feature geometry."""
    positions: list[Position] = []
    for feature in features:
        if feature.geometry is not None:
            positions.extend(iter_positions(feature.geometry))
    return positions


def detect_projection_from_features(features: Iterable[Feature]) -> SupportedProjection:
    """Apply ``detect_projection_from_coordinates`` to feature geometries."""
    return detect_projection_from_coordinates(collect_positions(features))


def is_valid_wgs84_coordinate(coord: Sequence[float]) -> bool:
    """Whether ``(lon, lat)`` lies within WGS 84 bounds."""
    if len(coord) < 2:
        return False
    lon, lat = coord[0], coord[1]
    return MIN_LONGITUDE <= lon <= MAX_LONGITUDE and MIN_LATITUDE <= lat <= MAX_LATITUDE


def validate_wgs84_coordinates(
    coords: Iterable[Sequence[float]],
) -> tuple[bool, Sequence[float] | None]:
    """Check a coordinate list against WGS 84 bounds.

    Returns:
        ``(True, None)`` when every coordinate is valid, otherwise
        ``(False, first_invalid_coordinate)``.
    """
    for coord in coords:
        if not is_valid_wgs84_coordinate(coord):
            return (False, coord)
    return (True, None)
