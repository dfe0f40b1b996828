"""Encoded Polyline codecs (precision 5 and 6).

Implements the Encoded Polyline Algorithm: each coordinate value is
scaled by ``10^precision``, rounded, delta-encoded against the previous
position, zig-zag encoded for its sign and emitted as 5-bit chunks with a
continuation bit (0x20), each chunk offset into printable ASCII by 63.

The wire order is ``lat, lon``; positions in the geometry model are
``(lon, lat)``. A polyline carries no elevation, so z values are dropped
on encode.

Precision 5 and precision 6 strings use the same alphabet. Detection can
only tell them apart by decoding at each precision and checking that the
result stays within WGS 84 bounds.

References:
    https://developers.google.com/maps/documentation/utilities/polylinealgorithm
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING

from geofiddle.core.constants import (
    POLYLINE5,
    POLYLINE6,
    POLYLINE_ASCII_OFFSET,
    POLYLINE_CHUNK_BITS,
    POLYLINE_CHUNK_MASK,
    POLYLINE_CONTINUATION_BIT,
    POLYLINE_MAX_CHAR,
    POLYLINE_MIN_CHAR,
)
from geofiddle.core.exceptions import PolylineDecodeError
from geofiddle.formats._base import FormatCodec
from geofiddle.models.feature import Feature, ParseResult
from geofiddle.models.geometry import LineString, iter_positions
from geofiddle.projections.definitions import SupportedProjection
from geofiddle.projections.detection import is_valid_wgs84_coordinate

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from geofiddle.models.feature import FormatOptions
    from geofiddle.models.geometry import Position

logger = logging.getLogger("geofiddle.formats.polyline")

PRECISION_FORMATS: dict[int, str] = {5: POLYLINE5, 6: POLYLINE6}

# Characters that never occur in an encoded polyline
EXCLUDED_CHARS = re.compile(r"[\s,;:]")


# ---------------------------------------------------------------------------
# Signed varint primitives
# ---------------------------------------------------------------------------


def _decode_values(encoded: str) -> list[int]:
    """Decode the raw sequence of signed integers.

    Raises:
        PolylineDecodeError: On a character outside ASCII 63-126 or a
            value whose final chunk is missing.
    """
    values: list[int] = []
    result = 0
    shift = 0
    pending = False

    for offset, char in enumerate(encoded):
        code = ord(char)
        if not POLYLINE_MIN_CHAR <= code <= POLYLINE_MAX_CHAR:
            msg = f"Invalid polyline character {char!r} at position {offset}"
            raise PolylineDecodeError(msg)
        chunk = code - POLYLINE_ASCII_OFFSET
        result |= (chunk & POLYLINE_CHUNK_MASK) << shift
        shift += POLYLINE_CHUNK_BITS
        if chunk & POLYLINE_CONTINUATION_BIT:
            pending = True
            continue
        values.append(~(result >> 1) if result & 1 else result >> 1)
        result = 0
        shift = 0
        pending = False

    if pending:
        msg = "Truncated polyline: final value is incomplete"
        raise PolylineDecodeError(msg)
    return values


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chars: list[str] = []
    while value >= POLYLINE_CONTINUATION_BIT:
        chars.append(
            chr((POLYLINE_CONTINUATION_BIT | (value & POLYLINE_CHUNK_MASK)) + POLYLINE_ASCII_OFFSET)
        )
        value >>= POLYLINE_CHUNK_BITS
    chars.append(chr(value + POLYLINE_ASCII_OFFSET))
    return "".join(chars)


def _scale(value: float, factor: int) -> int:
    """Scale and round half away from zero."""
    scaled = math.floor(abs(value) * factor + 0.5)
    return -scaled if value < 0 else scaled


# ---------------------------------------------------------------------------
# Public encode / decode
# ---------------------------------------------------------------------------


def decode_polyline(encoded: str, precision: int = 5) -> list[Position]:
    """Decode a polyline string into ``(lon, lat)`` positions.

    Raises:
        PolylineDecodeError: If the string is malformed or truncated.
    """
    values = _decode_values(encoded)
    if len(values) % 2:
        msg = "Truncated polyline: latitude without a matching longitude"
        raise PolylineDecodeError(msg)

    factor = 10**precision
    positions: list[Position] = []
    lat = 0
    lon = 0
    for index in range(0, len(values), 2):
        lat += values[index]
        lon += values[index + 1]
        positions.append((lon / factor, lat / factor))
    return positions


def encode_polyline(positions: Iterable[Sequence[float]], precision: int = 5) -> str:
    """Encode ``(lon, lat[, z])`` positions; z is ignored."""
    factor = 10**precision
    chunks: list[str] = []
    prev_lat = 0
    prev_lon = 0
    for pos in positions:
        lat = _scale(pos[1], factor)
        lon = _scale(pos[0], factor)
        chunks.append(_encode_value(lat - prev_lat))
        chunks.append(_encode_value(lon - prev_lon))
        prev_lat = lat
        prev_lon = lon
    return "".join(chunks)


# ---------------------------------------------------------------------------
# Codec factory
# ---------------------------------------------------------------------------


def make_polyline_codec(precision: int) -> FormatCodec:
    """Build the codec for one precision (5 or 6).

    Raises:
        ValueError: For any other precision.
    """
    if precision not in PRECISION_FORMATS:
        msg = f"Unsupported polyline precision: {precision}"
        raise ValueError(msg)
    name = PRECISION_FORMATS[precision]

    def parse(text: str) -> ParseResult:
        trimmed = text.strip()
        if not trimmed:
            return ParseResult(detected_format=name)

        try:
            positions = decode_polyline(trimmed, precision)
        except PolylineDecodeError as exc:
            logger.warning("Polyline%d decode failed: %s", precision, exc)
            return ParseResult.failure(str(exc), detected_format=name)

        if not positions:
            return ParseResult.failure("No coordinates decoded from polyline", detected_format=name)

        feature = Feature(
            id="feature-0",
            geometry=LineString(tuple(positions)),
            properties={"point_count": len(positions)},
        )
        logger.info("Decoded polyline%d with %d position(s)", precision, len(positions))
        return ParseResult(
            features=(feature,),
            detected_format=name,
            detected_projection=SupportedProjection.WGS84,
        )

    def format(features: Sequence[Feature], options: FormatOptions | None = None) -> str:
        positions: list[Position] = []
        for feature in features:
            if feature.geometry is not None:
                positions.extend(iter_positions(feature.geometry))
        if not positions:
            return ""
        return encode_polyline(positions, precision)

    def detect(text: str) -> bool:
        trimmed = text.strip()
        if not trimmed or trimmed[0] in "{[<":
            return False
        if EXCLUDED_CHARS.search(trimmed):
            return False
        if any(not POLYLINE_MIN_CHAR <= ord(char) <= POLYLINE_MAX_CHAR for char in trimmed):
            return False
        try:
            positions = decode_polyline(trimmed, precision)
        except PolylineDecodeError:
            return False
        if len(positions) < 2:
            return False
        return all(is_valid_wgs84_coordinate(pos) for pos in positions)

    return FormatCodec(
        name=name,
        label=f"Polyline (precision {precision})",
        parse=parse,
        format=format,
        detect=detect,
    )


POLYLINE5_CODEC = make_polyline_codec(5)
POLYLINE6_CODEC = make_polyline_codec(6)
