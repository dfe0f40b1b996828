"""Feature and parse-result value objects.

A ``Feature`` is one geometry (or none) plus free-form properties. Every
codec's ``parse`` returns a ``ParseResult`` holding the features it could
build and the ``ParseError`` entries for whatever it could not; parsing
never raises.

All objects here are created by a single call and discarded by the
caller. None of them is mutated after it is returned.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from geofiddle.models.geometry import Geometry, geometry_from_geojson, geometry_to_geojson

if TYPE_CHECKING:
    from geofiddle.projections.definitions import SupportedProjection

FEATURE_ID_PREFIX = "feature-"


@dataclass(frozen=True, slots=True)
class Feature:
    """A single geometry with its properties.

    Attributes:
        id: Identifier, unique within one ``ParseResult``.
        geometry: The geometry, or ``None`` for a GeoJSON null geometry.
        properties: Key-value pairs carried from the source format.
    """

    id: str
    geometry: Geometry | None
    properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a GeoJSON Feature mapping."""
        return {
            "type": "Feature",
            "id": self.id,
            "geometry": geometry_to_geojson(self.geometry) if self.geometry is not None else None,
            "properties": dict(self.properties),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, default_id: str = "") -> Feature:
        """Deserialise from a GeoJSON Feature mapping.

        Raises:
            GeometryError: If the geometry member is malformed.
            TypeError: If ``properties`` is present but not an object.
        """
        geometry_raw = data.get("geometry")
        geometry = geometry_from_geojson(geometry_raw) if geometry_raw is not None else None

        properties_raw = data.get("properties")
        if properties_raw is None:
            properties_raw = {}
        if not isinstance(properties_raw, Mapping):
            msg = f"properties must be an object, got {type(properties_raw).__name__}"
            raise TypeError(msg)

        raw_id = data.get("id")
        return cls(
            id=str(raw_id) if raw_id is not None else default_id,
            geometry=geometry,
            properties=dict(properties_raw),
        )


@dataclass(frozen=True, slots=True)
class ParseError:
    """A recoverable problem found while parsing.

    Attributes:
        message: Human-readable description.
        line: 1-based source line, when the codec knows it.
    """

    message: str
    line: int | None = None

    def with_prefix(self, prefix: str) -> ParseError:
        """Return a copy whose message is prefixed (e.g. ``"Object 2: "``)."""
        return ParseError(message=f"{prefix}{self.message}", line=self.line)


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of parsing one blob of text.

    Attributes:
        features: Features built from the input.
        errors: Problems found; may coexist with features (partial success).
        detected_format: Name of the codec that produced this result.
        detected_projection: Projection implied by the input itself
            (EWKT SRID, or a format that is always geographic).
    """

    features: tuple[Feature, ...] = ()
    errors: tuple[ParseError, ...] = ()
    detected_format: str | None = None
    detected_projection: SupportedProjection | None = None

    @property
    def ok(self) -> bool:
        """Whether at least one feature was parsed without any error."""
        return bool(self.features) and not self.errors

    @classmethod
    def failure(
        cls, message: str, *, line: int | None = None, detected_format: str | None = None
    ) -> ParseResult:
        """Build a result holding a single error and no features."""
        return cls(errors=(ParseError(message, line),), detected_format=detected_format)


@dataclass(frozen=True, slots=True)
class FormatOptions:
    """Options passed to formatters.

    Attributes:
        projection: Output projection (EPSG code or name). Only the EWKT
            formatter reads it, to choose the SRID prefix.
    """

    projection: str | None = None


# ---------------------------------------------------------------------------
# Helpers shared by codecs
# ---------------------------------------------------------------------------


def assign_feature_ids(
    items: Iterable[tuple[object | None, Geometry | None, Mapping[str, Any]]],
) -> tuple[Feature, ...]:
    """Build features with ids unique within one result.

    Each item is ``(source_id, geometry, properties)``. A source id is kept
    (string-coerced) unless it was already used; otherwise the id is
    ``feature-<index>``, suffixed if that also collides.
    """
    used: set[str] = set()
    features: list[Feature] = []
    for index, (source_id, geometry, properties) in enumerate(items):
        candidate = str(source_id) if source_id is not None else ""
        if not candidate or candidate in used:
            candidate = f"{FEATURE_ID_PREFIX}{index}"
            suffix = 1
            while candidate in used:
                candidate = f"{FEATURE_ID_PREFIX}{index}-{suffix}"
                suffix += 1
        used.add(candidate)
        features.append(Feature(id=candidate, geometry=geometry, properties=dict(properties)))
    return tuple(features)


def prefix_errors(errors: Iterable[ParseError], prefix: str) -> list[ParseError]:
    """Prefix every error message; an empty prefix returns them unchanged."""
    if not prefix:
        return list(errors)
    return [error.with_prefix(prefix) for error in errors]
