"""Shared constants: single source of truth.

Centralises format names, coordinate bounds, detection thresholds and
codec constants that would otherwise be duplicated across the codecs,
the projection engine and the conversion pipeline.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Format names
# ---------------------------------------------------------------------------

GEOJSON = "geojson"
WKT = "wkt"
EWKT = "ewkt"
CSV = "csv"
KML = "kml"
GPX = "gpx"
SHAPEFILE = "shapefile"
POLYLINE5 = "polyline5"
POLYLINE6 = "polyline6"

# Detection precedence. EWKT must run before WKT and CSV must run last.
FORMAT_PRECEDENCE: tuple[str, ...] = (
    GEOJSON,
    EWKT,
    WKT,
    KML,
    GPX,
    SHAPEFILE,
    POLYLINE5,
    POLYLINE6,
    CSV,
)

# Formats that can be written (shapefile input is parse-only).
OUTPUT_FORMATS: tuple[str, ...] = tuple(name for name in FORMAT_PRECEDENCE if name != SHAPEFILE)

# ---------------------------------------------------------------------------
# WGS 84 coordinate bounds
# ---------------------------------------------------------------------------

MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0

# ---------------------------------------------------------------------------
# Projection auto-detection thresholds (max |x|, |y| over all coordinates)
# ---------------------------------------------------------------------------

WGS84_MAX_ABS = 180.0
BNG_MAX_ABS = 1_300_000.0
WEB_MERCATOR_MAX_ABS = 20_037_508.34

# ---------------------------------------------------------------------------
# WKT keywords
# ---------------------------------------------------------------------------

WKT_GEOMETRY_TYPES: tuple[str, ...] = (
    "POINT",
    "LINESTRING",
    "POLYGON",
    "MULTIPOINT",
    "MULTILINESTRING",
    "MULTIPOLYGON",
    "GEOMETRYCOLLECTION",
)

# ---------------------------------------------------------------------------
# Polyline codec
# ---------------------------------------------------------------------------

POLYLINE_ASCII_OFFSET = 63
POLYLINE_CONTINUATION_BIT = 0x20
POLYLINE_CHUNK_MASK = 0x1F
POLYLINE_CHUNK_BITS = 5
POLYLINE_MIN_CHAR = 63
POLYLINE_MAX_CHAR = 126

# ---------------------------------------------------------------------------
# XML namespaces
# ---------------------------------------------------------------------------

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"
GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
GPX_CREATOR = "GeoFiddle"

# Square metres per hectare / per square kilometre
SQ_METRES_PER_HECTARE = 10_000.0
SQ_METRES_PER_SQ_KM = 1_000_000.0
METRES_PER_KM = 1_000.0
