"""GeoJSON codec.

Accepts several top-level JSON objects concatenated with or without
whitespace between them (``{...}{...}``). Objects are carved out by a
brace-depth scanner that skips string literals, so braces inside
property values do not break the split.

Each object is JSON-decoded, checked by the schema-hint validator and
normalised to a flat feature list:

- ``FeatureCollection`` -> its features
- ``Feature``           -> itself
- bare geometry         -> wrapped in a feature with empty properties

Partial success: if any object yields features, those features are
returned together with every error collected from the other objects.
Errors are prefixed ``"Object i: "`` when more than one object was found.

References:
    RFC 7946 (The GeoJSON Format)
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from geofiddle.core.constants import GEOJSON
from geofiddle.core.exceptions import GeoFiddleError, GeometryError
from geofiddle.formats._base import FormatCodec
from geofiddle.models.feature import (
    Feature,
    ParseError,
    ParseResult,
    assign_feature_ids,
    prefix_errors,
)
from geofiddle.models.geometry import GEOMETRY_TYPES, geometry_from_geojson

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geofiddle.models.feature import FormatOptions
    from geofiddle.models.geometry import Geometry

logger = logging.getLogger("geofiddle.formats.geojson")

GEOJSON_TYPES: tuple[str, ...] = (*GEOMETRY_TYPES, "Feature", "FeatureCollection")

# Output indentation for format_geojson
INDENT = 2

NESTING_TOO_DEEP = "JSON is nested too deeply"

_SourceItem = tuple[object | None, "Geometry | None", dict[str, Any]]


# ---------------------------------------------------------------------------
# Schema-hint validator
# ---------------------------------------------------------------------------


class _GeoJsonObject(BaseModel):
    model_config = ConfigDict(extra="allow")


class _CoordinateGeometry(_GeoJsonObject):
    type: Literal["Point", "MultiPoint", "LineString", "MultiLineString", "Polygon", "MultiPolygon"]
    coordinates: list[Any]


class _GeometryCollection(_GeoJsonObject):
    type: Literal["GeometryCollection"]
    geometries: list[dict[str, Any]]


class _Feature(_GeoJsonObject):
    type: Literal["Feature"]
    geometry: dict[str, Any] | None
    properties: dict[str, Any] | None = None
    id: str | int | float | None = None


class _FeatureCollection(_GeoJsonObject):
    type: Literal["FeatureCollection"]
    features: list[dict[str, Any]]


_SCHEMAS: dict[str, type[_GeoJsonObject]] = {
    **{name: _CoordinateGeometry for name in GEOMETRY_TYPES if name != "GeometryCollection"},
    "GeometryCollection": _GeometryCollection,
    "Feature": _Feature,
    "FeatureCollection": _FeatureCollection,
}

_ARRAY_MEMBERS = frozenset({"features", "geometries"})


def validate_geojson(obj: object) -> list[str]:
    """Return human-readable hints for structural problems; empty if valid."""
    if not isinstance(obj, dict):
        return ["GeoJSON must be an object"]
    geo_type = obj.get("type")
    if geo_type is None:
        return ['GeoJSON must have a "type" property']
    if not isinstance(geo_type, str):
        return ['"type" must be a string']
    schema = _SCHEMAS.get(geo_type)
    if schema is None:
        return [f'Invalid GeoJSON type: "{geo_type}"']

    try:
        schema.model_validate(obj)
    except PydanticValidationError as exc:
        return [_describe(geo_type, error) for error in exc.errors()]
    return []


def _describe(geo_type: str, error: Any) -> str:
    loc = error.get("loc") or ()
    member = str(loc[0]) if loc else ""
    if len(loc) > 1:
        return f'{geo_type} "{member}" item {loc[1]}: {error.get("msg", "invalid value")}'
    if member in _ARRAY_MEMBERS:
        return f'{geo_type} must have "{member}" array'
    if error.get("type") == "missing":
        return f'{geo_type} must have "{member}" property'
    return f'{geo_type} "{member}": {error.get("msg", "invalid value")}'


# ---------------------------------------------------------------------------
# Object splitting
# ---------------------------------------------------------------------------


def split_json_objects(text: str) -> list[str]:
    """Carve top-level ``{...}`` objects out of concatenated JSON text."""
    objects: list[str] = []
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            if depth > 0:
                in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start != -1:
                objects.append(text[start : index + 1])
                start = -1

    return objects


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _to_source_items(obj: dict[str, Any]) -> list[_SourceItem]:
    """Normalise one validated object to ``(id, geometry, properties)`` items.

    Raises:
        GeoFiddleError: If a nested geometry is malformed.
        TypeError: If a feature's properties are not an object.
        RecursionError: If geometry collections are nested too deeply.
    """
    geo_type = obj["type"]
    if geo_type == "FeatureCollection":
        items: list[_SourceItem] = []
        for position, member in enumerate(obj["features"]):
            if not isinstance(member, dict) or member.get("type") != "Feature":
                msg = f"FeatureCollection member {position} is not a Feature"
                raise GeometryError(msg)
            items.extend(_to_source_items(member))
        return items
    if geo_type == "Feature":
        feature = Feature.from_dict(obj)
        return [(feature.id or None, feature.geometry, feature.properties)]
    return [(None, geometry_from_geojson(obj), {})]


def _parse_object(text: str) -> tuple[list[_SourceItem], list[ParseError]]:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        return [], [ParseError(f"Invalid JSON: {exc.msg}", line=exc.lineno)]
    except RecursionError:
        return [], [ParseError(NESTING_TOO_DEEP)]

    hints = validate_geojson(obj)
    if hints:
        return [], [ParseError(hint) for hint in hints]

    try:
        return _to_source_items(obj), []
    except (GeoFiddleError, TypeError) as exc:
        return [], [ParseError(str(exc))]
    except RecursionError:
        return [], [ParseError(NESTING_TOO_DEEP)]


def parse_geojson(text: str) -> ParseResult:
    """Parse one or more concatenated GeoJSON objects."""
    trimmed = text.strip()
    if not trimmed:
        return ParseResult(detected_format=GEOJSON)

    objects = split_json_objects(trimmed)
    if not objects:
        return ParseResult.failure("No valid JSON objects found", detected_format=GEOJSON)

    items: list[_SourceItem] = []
    errors: list[ParseError] = []
    for index, obj_text in enumerate(objects, start=1):
        obj_items, obj_errors = _parse_object(obj_text)
        if obj_errors:
            prefix = f"Object {index}: " if len(objects) > 1 else ""
            errors.extend(prefix_errors(obj_errors, prefix))
            logger.warning("GeoJSON object %d rejected: %s", index, obj_errors[0].message)
        else:
            items.extend(obj_items)

    if items:
        features = assign_feature_ids(items)
        logger.info(
            "Parsed %d GeoJSON feature(s) from %d object(s) with %d error(s)",
            len(features),
            len(objects),
            len(errors),
        )
        return ParseResult(features=features, errors=tuple(errors), detected_format=GEOJSON)

    if not errors:
        errors.append(ParseError("No features found in GeoJSON"))
    return ParseResult(errors=tuple(errors), detected_format=GEOJSON)


def format_geojson(features: Sequence[Feature], options: FormatOptions | None = None) -> str:
    """Write a pretty-printed ``FeatureCollection``."""
    collection = {
        "type": "FeatureCollection",
        "features": [feature.to_dict() for feature in features],
    }
    return json.dumps(collection, indent=INDENT, ensure_ascii=False)


def detect_geojson(text: str) -> bool:
    """Recognise text whose first JSON object has a GeoJSON ``type``."""
    trimmed = text.strip()
    if not trimmed.startswith("{"):
        return False
    objects = split_json_objects(trimmed)
    if not objects:
        return False
    try:
        first = json.loads(objects[0])
    except (json.JSONDecodeError, RecursionError):
        return False
    return isinstance(first, dict) and first.get("type") in GEOJSON_TYPES


CODEC = FormatCodec(
    name=GEOJSON,
    label="GeoJSON",
    parse=parse_geojson,
    format=format_geojson,
    detect=detect_geojson,
)
