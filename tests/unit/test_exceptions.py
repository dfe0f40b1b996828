"""Tests for the exception taxonomy.

Validates:
- GeoFiddleError structured attributes
- Category classification (validation, conversion, internal)
- ``to_error_dict()`` produces stable payload keys
- Every concrete error sits under the right category
"""

from __future__ import annotations

import pytest

from geofiddle.core.config import ConfigValidationError
from geofiddle.core.exceptions import (
    ConversionError,
    FormatterError,
    GeoFiddleError,
    GeometryError,
    PolylineDecodeError,
    TransformError,
    UnsupportedFormatError,
    UnsupportedProjectionError,
    ValidationError,
)


class TestGeoFiddleErrorBase:
    """GeoFiddleError base class behaviour."""

    def test_default_attributes(self) -> None:
        err = GeoFiddleError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert str(err) == "boom"

    def test_custom_attributes(self) -> None:
        err = GeoFiddleError("fail", stage="parse", code="X")
        assert err.stage == "parse"
        assert err.code == "X"

    def test_base_category_is_internal(self) -> None:
        assert GeoFiddleError("x").category == "internal"

    def test_error_dict_keys(self) -> None:
        payload = GeoFiddleError("x").to_error_dict()
        assert set(payload) == {"category", "code", "stage", "message"}


class TestTaxonomy:
    """Concrete errors and their categories."""

    @pytest.mark.parametrize(
        ("exc_type", "stage", "code"),
        [
            (GeometryError, "parse", "GEOMETRY_INVALID"),
            (UnsupportedFormatError, "format", "UNSUPPORTED_FORMAT"),
            (UnsupportedProjectionError, "transform", "UNSUPPORTED_PROJECTION"),
            (PolylineDecodeError, "parse", "POLYLINE_DECODE_FAILED"),
        ],
    )
    def test_validation_errors(self, exc_type: type[GeoFiddleError], stage: str, code: str) -> None:
        err = exc_type("bad input")
        assert isinstance(err, ValidationError)
        assert err.category == "validation"
        assert err.stage == stage
        assert err.code == code

    @pytest.mark.parametrize(
        ("exc_type", "stage", "code"),
        [
            (TransformError, "transform", "TRANSFORM_FAILED"),
            (FormatterError, "format", "FORMAT_FAILED"),
        ],
    )
    def test_conversion_errors(self, exc_type: type[GeoFiddleError], stage: str, code: str) -> None:
        err = exc_type("cannot write")
        assert isinstance(err, ConversionError)
        assert err.category == "conversion"
        assert err.stage == stage
        assert err.code == code

    def test_kwargs_override_defaults(self) -> None:
        err = FormatterError("x", stage="custom", code="CUSTOM")
        assert err.stage == "custom"
        assert err.code == "CUSTOM"

    def test_config_error_is_validation(self) -> None:
        assert issubclass(ConfigValidationError, ValidationError)

    def test_error_dict_for_concrete_error(self) -> None:
        assert UnsupportedFormatError("no such format").to_error_dict() == {
            "category": "validation",
            "code": "UNSUPPORTED_FORMAT",
            "stage": "format",
            "message": "no such format",
        }
