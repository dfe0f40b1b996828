"""Unified exception taxonomy for geofiddle.

Every domain exception inherits from ``GeoFiddleError`` and carries
structured context fields (stage, code) so that callers hosting the
converter can report failures consistently.

Taxonomy categories
-------------------
- ``ValidationError``: input/contract violations (bad geometry
  structure, unknown format or projection names, bad configuration).
- ``ConversionError``: failures while formatting or transforming
  already-validated feature data.

Parsing never raises: codecs convert primitive failures into
``ParseError`` values on the ``ParseResult``. Exceptions are reserved for
``format_features`` and the transform engine, whose callers are expected
to catch around them.

Every exception exposes ``to_error_dict()`` for a stable structured
payload suitable for logging.
"""

from __future__ import annotations


class GeoFiddleError(Exception):
    """Base exception for all geofiddle-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"format"``, ``"transform"``).
        code: Machine-readable error code (e.g. ``"UNSUPPORTED_FORMAT"``).
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(self, message: str = "", *, stage: str = "", code: str = "") -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, ConversionError):
            return "conversion"
        return "internal"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(GeoFiddleError):
    """Input or domain-model validation failure."""


class ConversionError(GeoFiddleError):
    """Formatting or coordinate transformation failure."""


# ---------------------------------------------------------------------------
# Concrete errors
# ---------------------------------------------------------------------------


class GeometryError(ValidationError):
    """Raised when a geometry mapping does not match the GeoJSON structure."""

    default_stage = "parse"
    default_code = "GEOMETRY_INVALID"


class UnsupportedFormatError(ValidationError):
    """Raised when a format name is not present in the registry."""

    default_stage = "format"
    default_code = "UNSUPPORTED_FORMAT"


class UnsupportedProjectionError(ValidationError):
    """Raised when a projection name cannot be resolved."""

    default_stage = "transform"
    default_code = "UNSUPPORTED_PROJECTION"


class PolylineDecodeError(ValidationError):
    """Raised when an encoded polyline string is truncated or malformed."""

    default_stage = "parse"
    default_code = "POLYLINE_DECODE_FAILED"


class TransformError(ConversionError):
    """Raised when the projection primitive cannot transform a coordinate."""

    default_stage = "transform"
    default_code = "TRANSFORM_FAILED"


class FormatterError(ConversionError):
    """Raised when features cannot be serialised to the requested format."""

    default_stage = "format"
    default_code = "FORMAT_FAILED"
