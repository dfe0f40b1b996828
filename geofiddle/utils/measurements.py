"""Geometry measurements and display helpers.

Area and length are geodesic, computed with ``pyproj.Geod`` on the
WGS 84 ellipsoid, so geometries must be in WGS 84 ``(lon, lat)``.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from geofiddle.core.constants import METRES_PER_KM, SQ_METRES_PER_HECTARE, SQ_METRES_PER_SQ_KM
from geofiddle.models.geometry import (
    LineString,
    MultiLineString,
    MultiPolygon,
    Polygon,
    iter_positions,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geofiddle.models.geometry import Geometry, Position

# Fewest positions that can enclose an area
MIN_RING_POSITIONS = 3

_CAPITAL = re.compile(r"([A-Z])")


# ---------------------------------------------------------------------------
# Geodesic area and length
# ---------------------------------------------------------------------------


def _polygon_area(rings: Sequence[Sequence[Position]]) -> float:
    """Exterior area minus holes, in square metres (winding-order agnostic)."""
    from pyproj import Geod

    geod = Geod(ellps="WGS84")
    total = 0.0
    for index, ring in enumerate(rings):
        if len(ring) < MIN_RING_POSITIONS:
            continue
        area_m2, _perimeter = geod.polygon_area_perimeter(
            [pos[0] for pos in ring], [pos[1] for pos in ring]
        )
        total += abs(area_m2) if index == 0 else -abs(area_m2)
    return total


def calculate_area(geometry: Geometry | None) -> float | None:
    """Geodesic area in m² for ``Polygon`` / ``MultiPolygon``; ``None`` otherwise."""
    if isinstance(geometry, Polygon):
        return _polygon_area(geometry.coordinates)
    if isinstance(geometry, MultiPolygon):
        return sum(_polygon_area(polygon) for polygon in geometry.coordinates)
    return None


def _line_length(line: Sequence[Position]) -> float:
    from pyproj import Geod

    if len(line) < 2:
        return 0.0
    geod = Geod(ellps="WGS84")
    return float(geod.line_length([pos[0] for pos in line], [pos[1] for pos in line]))


def calculate_length(geometry: Geometry | None) -> float | None:
    """Geodesic length in metres for ``LineString`` / ``MultiLineString``; ``None`` otherwise."""
    if isinstance(geometry, LineString):
        return _line_length(geometry.coordinates)
    if isinstance(geometry, MultiLineString):
        return sum(_line_length(line) for line in geometry.coordinates)
    return None


# ---------------------------------------------------------------------------
# Counts and labels
# ---------------------------------------------------------------------------


def count_coordinates(geometry: Geometry | None) -> int:
    """Number of positions in the geometry (0 for ``None``)."""
    if geometry is None:
        return 0
    return sum(1 for _ in iter_positions(geometry))


def geometry_type_label(type_name: str | None) -> str:
    """``"MultiLineString"`` -> ``"Multi Line String"``."""
    if not type_name:
        return "Unknown"
    return _CAPITAL.sub(r" \1", type_name).strip()


def format_area(area_m2: float | None) -> str:
    if area_m2 is None:
        return "-"
    if area_m2 >= SQ_METRES_PER_SQ_KM:
        return f"{area_m2 / SQ_METRES_PER_SQ_KM:.2f} km²"
    if area_m2 >= SQ_METRES_PER_HECTARE:
        return f"{area_m2 / SQ_METRES_PER_HECTARE:.2f} ha"
    return f"{area_m2:.2f} m²"


def format_length(length_m: float | None) -> str:
    if length_m is None:
        return "-"
    if length_m >= METRES_PER_KM:
        return f"{length_m / METRES_PER_KM:.2f} km"
    return f"{length_m:.2f} m"
