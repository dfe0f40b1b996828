"""Reference systems, coordinate transforms and projection detection.

- definitions: WGS 84, Web Mercator and British National Grid
- transform: pyproj-backed coordinate and geometry transforms
- detection: magnitude-based projection guess, WGS 84 range checks
"""

from geofiddle.projections.definitions import (
    PROJECTION_LABELS,
    SupportedProjection,
    projection_for_srid,
    resolve_projection,
)
from geofiddle.projections.detection import (
    detect_projection_from_coordinates,
    validate_wgs84_coordinates,
)
from geofiddle.projections.transform import (
    transform_coordinate,
    transform_feature,
    transform_features,
    transform_geometry,
)

__all__ = [
    "PROJECTION_LABELS",
    "SupportedProjection",
    "detect_projection_from_coordinates",
    "projection_for_srid",
    "resolve_projection",
    "transform_coordinate",
    "transform_feature",
    "transform_features",
    "transform_geometry",
    "validate_wgs84_coordinates",
]
