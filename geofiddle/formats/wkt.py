"""WKT and EWKT codecs.

WKT text may hold several geometries separated by blank lines. Each block
is read by shapely's WKT reader; a block that fails becomes a
``ParseError`` and the remaining blocks are still read.

EWKT is WKT with a ``SRID=<digits>;`` prefix on each block. The first
block's SRID decides ``detected_projection``: 4326, 3857 and 27700 set
it, any other SRID is read but leaves the projection undetected.

Output is rendered from the geometry model after shapely has checked that
the structure is buildable, using the shortest round-tripping form of
each number (``1.0`` is written as ``1``).

References:
    OGC 06-103r4 (Simple Feature Access, Well-known Text Representation)
    PostGIS EWKT extension
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from geofiddle.core.constants import EWKT, WKT, WKT_GEOMETRY_TYPES
from geofiddle.core.exceptions import FormatterError, GeoFiddleError
from geofiddle.formats._base import FormatCodec
from geofiddle.models.feature import ParseError, ParseResult, assign_feature_ids
from geofiddle.models.geometry import (
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    Point,
    Polygon,
    geometry_from_geojson,
    geometry_to_geojson,
    iter_positions,
)
from geofiddle.projections.definitions import (
    SupportedProjection,
    projection_for_srid,
    resolve_projection,
)
from geofiddle.utils.helpers import format_position

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geofiddle.models.feature import Feature, FormatOptions
    from geofiddle.models.geometry import Geometry, Position

logger = logging.getLogger("geofiddle.formats.wkt")

BLOCK_SEPARATOR = re.compile(r"\n\s*\n")
SRID_PREFIX = re.compile(r"^SRID=(\d+);", re.IGNORECASE)

DEFAULT_SRID = SupportedProjection.WGS84.srid


# ---------------------------------------------------------------------------
# WKT
# ---------------------------------------------------------------------------


def _read_block(block: str) -> Geometry | None:
    """Read one WKT block with shapely; ``None`` for an empty geometry."""
    import shapely.wkt
    from shapely.geometry import mapping

    shape = shapely.wkt.loads(block)
    if shape is None or shape.is_empty:
        return None
    return geometry_from_geojson(mapping(shape))


def _split_blocks(text: str) -> list[str]:
    return [block.strip() for block in BLOCK_SEPARATOR.split(text) if block.strip()]


def _read_blocks(blocks: Sequence[str], detected_format: str) -> ParseResult:
    """Read each block; an empty block is skipped, a bad one becomes an error."""
    from shapely.errors import ShapelyError

    geometries: list[Geometry] = []
    errors: list[ParseError] = []

    for index, block in enumerate(blocks, start=1):
        if not block:
            continue
        try:
            geometry = _read_block(block)
        except (ShapelyError, GeoFiddleError, ValueError, TypeError, RecursionError) as exc:
            logger.warning("Invalid WKT at block %d: %s", index, exc)
            errors.append(ParseError(f"Invalid WKT at block {index}: {exc}"))
            continue
        if geometry is None:
            errors.append(ParseError(f"Failed to parse WKT at block {index}"))
            continue
        geometries.append(geometry)

    if not geometries and not errors:
        errors.append(ParseError("No geometry found"))

    features = assign_feature_ids((None, geometry, {}) for geometry in geometries)
    logger.info("Parsed %d WKT feature(s) with %d error(s)", len(features), len(errors))
    return ParseResult(features=features, errors=tuple(errors), detected_format=detected_format)


def parse_wkt(text: str) -> ParseResult:
    """Parse one or more blank-line-separated WKT geometries."""
    trimmed = text.strip()
    if not trimmed:
        return ParseResult(detected_format=WKT)
    return _read_blocks(_split_blocks(trimmed), WKT)


def _coordinate_list(positions: Sequence[Position], has_z: bool) -> str:
    size = 3 if has_z else 2
    return ", ".join(format_position(pos[:size], " ") for pos in positions)


def _tagged(keyword: str, body: str, has_z: bool) -> str:
    if not body:
        return f"{keyword} EMPTY"
    return f"{keyword} Z ({body})" if has_z else f"{keyword} ({body})"


def _geometry_text(geometry: Geometry) -> str:
    if isinstance(geometry, GeometryCollection):
        members = ", ".join(_geometry_text(member) for member in geometry.geometries)
        return _tagged("GEOMETRYCOLLECTION", members, False)

    positions = list(iter_positions(geometry))
    has_z = bool(positions) and all(len(pos) > 2 for pos in positions)
    if isinstance(geometry, Point):
        body = _coordinate_list([geometry.coordinates], has_z)
    elif isinstance(geometry, MultiPoint):
        body = ", ".join(f"({_coordinate_list([pos], has_z)})" for pos in geometry.coordinates)
    elif isinstance(geometry, LineString):
        body = _coordinate_list(geometry.coordinates, has_z)
    elif isinstance(geometry, MultiLineString | Polygon):
        body = ", ".join(f"({_coordinate_list(ring, has_z)})" for ring in geometry.coordinates)
    else:
        body = ", ".join(
            "(" + ", ".join(f"({_coordinate_list(ring, has_z)})" for ring in polygon) + ")"
            for polygon in geometry.coordinates
        )
    return _tagged(geometry.type.upper(), body, has_z)


def _write_geometry(geometry: Geometry) -> str:
    """Validate the structure with shapely, then render with shortest-repr numbers."""
    from shapely.geometry import shape

    shape(geometry_to_geojson(geometry))
    return _geometry_text(geometry)


def format_wkt(features: Sequence[Feature], options: FormatOptions | None = None) -> str:
    """Write each geometry as WKT, separated by a blank line.

    Raises:
        FormatterError: If shapely cannot build or write a geometry.
    """
    from shapely.errors import ShapelyError

    blocks: list[str] = []
    for feature in features:
        if feature.geometry is None:
            continue
        try:
            text = _write_geometry(feature.geometry)
        except (ShapelyError, ValueError, TypeError) as exc:
            msg = f"Cannot write feature {feature.id!r} as WKT: {exc}"
            raise FormatterError(msg) from exc
        if text:
            blocks.append(text)
    return "\n\n".join(blocks)


def detect_wkt(text: str) -> bool:
    """Recognise text starting with a WKT geometry keyword."""
    return text.strip().upper().startswith(WKT_GEOMETRY_TYPES)


# ---------------------------------------------------------------------------
# EWKT
# ---------------------------------------------------------------------------


def parse_ewkt(text: str) -> ParseResult:
    """Parse EWKT blocks, each with an optional SRID prefix.

    The first block's SRID sets the detected projection; a later block
    declaring a different SRID is read as is and logged.
    """
    trimmed = text.strip()
    if not trimmed:
        return ParseResult(detected_format=EWKT)

    first_srid: int | None = None
    bodies: list[str] = []
    for index, block in enumerate(_split_blocks(trimmed), start=1):
        match = SRID_PREFIX.match(block)
        if match:
            srid = int(match.group(1))
            if index == 1:
                first_srid = srid
            elif srid != first_srid:
                logger.warning("EWKT block %d declares SRID %d; using the first", index, srid)
            block = block[match.end() :].strip()
        bodies.append(block)

    projection: SupportedProjection | None = None
    if first_srid is not None:
        projection = projection_for_srid(first_srid)
        if projection is None:
            logger.warning("Unrecognised EWKT SRID %d; projection left undetected", first_srid)

    result = _read_blocks(bodies, EWKT)
    return ParseResult(
        features=result.features,
        errors=result.errors,
        detected_format=EWKT,
        detected_projection=projection,
    )


def srid_for_options(options: FormatOptions | None) -> int:
    """SRID for the EWKT prefix; 4326 when unset or unrecognised."""
    if options is None:
        return DEFAULT_SRID
    projection = resolve_projection(options.projection)
    return projection.srid if projection is not None else DEFAULT_SRID


def format_ewkt(features: Sequence[Feature], options: FormatOptions | None = None) -> str:
    """Write WKT blocks, each prefixed with ``SRID=<srid>;``."""
    wkt = format_wkt(features, options)
    if not wkt:
        return ""
    srid = srid_for_options(options)
    return "\n\n".join(f"SRID={srid};{block}" for block in wkt.split("\n\n"))


def detect_ewkt(text: str) -> bool:
    """Recognise text starting with ``SRID=<digits>;``."""
    return SRID_PREFIX.match(text.strip()) is not None


WKT_CODEC = FormatCodec(
    name=WKT,
    label="WKT",
    parse=parse_wkt,
    format=format_wkt,
    detect=detect_wkt,
)

EWKT_CODEC = FormatCodec(
    name=EWKT,
    label="EWKT",
    parse=parse_ewkt,
    format=format_ewkt,
    detect=detect_ewkt,
)
