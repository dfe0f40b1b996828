"""CSV/DSV codec: delimiter-separated coordinate pairs.

Each non-blank line is one feature. Values are paired as ``x,y``
(longitude or easting first); no swapping or range checks happen here,
since the projection is not known yet.

Per-line classification:
- one pair -> ``Point``
- first pair equals last pair and more than three pairs -> ``Polygon``
- otherwise -> ``LineString``

A bad line produces a ``ParseError`` with its line number; the other
lines still yield features.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geofiddle.core.constants import CSV, WKT_GEOMETRY_TYPES
from geofiddle.formats._base import FormatCodec
from geofiddle.formats._tokenizer import TokenizeError, parse_dsv
from geofiddle.models.feature import ParseError, ParseResult, assign_feature_ids
from geofiddle.models.geometry import LineString, Point, Polygon, iter_positions
from geofiddle.utils.helpers import format_position

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geofiddle.models.feature import Feature, FormatOptions
    from geofiddle.models.geometry import Geometry, Position

logger = logging.getLogger("geofiddle.formats.dsv")

# Smallest closed ring read as a polygon (3 distinct + closure)
MIN_POLYGON_PAIRS = 4

_NON_DSV_PREFIXES = ("{", "[", "<")


def parse_csv(text: str) -> ParseResult:
    """Parse delimiter-separated coordinates, one feature per line."""
    if not text.strip():
        return ParseResult(detected_format=CSV)

    geometries: list[Geometry] = []
    errors: list[ParseError] = []

    for line_no, line in enumerate(text.strip().splitlines(), start=1):
        if not line.strip():
            continue
        try:
            numbers = parse_dsv(line)
        except TokenizeError as exc:
            errors.append(ParseError(f"Line {line_no}: {exc}", line=line_no))
            continue
        if not numbers:
            continue
        if len(numbers) % 2 != 0:
            errors.append(
                ParseError(
                    f"Line {line_no}: Odd number of coordinates - expected pairs of x,y (lon,lat)",
                    line=line_no,
                )
            )
            continue
        geometries.append(_classify(numbers))

    if not geometries and not errors:
        errors.append(ParseError("No coordinates found in input"))

    features = assign_feature_ids((None, geometry, {}) for geometry in geometries)
    logger.info("Parsed %d CSV feature(s) with %d error(s)", len(features), len(errors))
    return ParseResult(features=features, errors=tuple(errors), detected_format=CSV)


def _classify(numbers: list[float]) -> Geometry:
    pairs: tuple[Position, ...] = tuple(
        (numbers[i], numbers[i + 1]) for i in range(0, len(numbers), 2)
    )
    if len(pairs) == 1:
        return Point(pairs[0])
    if len(pairs) >= MIN_POLYGON_PAIRS and pairs[0] == pairs[-1]:
        return Polygon((pairs,))
    return LineString(pairs)


def format_csv(features: Sequence[Feature], options: FormatOptions | None = None) -> str:
    """Write one line per feature: ``x,y`` or a flattened ``x1,y1,x2,y2,...``."""
    lines: list[str] = []
    for feature in features:
        if feature.geometry is None:
            continue
        pairs = [format_position(pos[:2]) for pos in iter_positions(feature.geometry)]
        if pairs:
            lines.append(",".join(pairs))
    return "\n".join(lines)


def detect_csv(text: str) -> bool:
    """Recognise numeric delimiter-separated text.

    Every non-blank line must hold an even count of numbers, with at
    least two numbers overall.
    """
    trimmed = text.strip()
    if not trimmed or trimmed.startswith(_NON_DSV_PREFIXES):
        return False
    upper = trimmed.upper()
    if upper.startswith("SRID=") or upper.startswith(WKT_GEOMETRY_TYPES):
        return False

    total = 0
    for line in trimmed.splitlines():
        try:
            numbers = parse_dsv(line)
        except TokenizeError:
            return False
        if len(numbers) % 2 != 0:
            return False
        total += len(numbers)
    return total >= 2


CODEC = FormatCodec(
    name=CSV,
    label="CSV / DSV",
    parse=parse_csv,
    format=format_csv,
    detect=detect_csv,
)
