"""geofiddle: geometry format conversion and reprojection.

Recognises which of several overlapping text encodings a blob of
geometry text is in, parses it into a canonical feature model, guesses
the spatial reference system of its coordinates and converts between
formats and projections.
"""

from geofiddle.formats.registry import detect_format, format_features, parse
from geofiddle.models import (
    Feature,
    FormatOptions,
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    ParseError,
    ParseResult,
    Point,
    Polygon,
)
from geofiddle.orchestrators.conversion import ConversionResult, convert
from geofiddle.projections import (
    SupportedProjection,
    detect_projection_from_coordinates,
    transform_coordinate,
    transform_geometry,
)

__version__ = "0.1.0"

__all__ = [
    "ConversionResult",
    "Feature",
    "FormatOptions",
    "GeometryCollection",
    "LineString",
    "MultiLineString",
    "MultiPoint",
    "MultiPolygon",
    "ParseError",
    "ParseResult",
    "Point",
    "Polygon",
    "SupportedProjection",
    "convert",
    "detect_format",
    "detect_projection_from_coordinates",
    "format_features",
    "parse",
    "transform_coordinate",
    "transform_geometry",
]
