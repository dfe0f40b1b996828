"""Tests for converter configuration.

Covers:
- Default values
- Loading from environment variables
- Type coercion (string env vars to int / bool fields)
- Fail-fast validation of names and ranges
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from geofiddle.core.config import ConfigValidationError, ConverterConfig, validate_config
from geofiddle.core.exceptions import ValidationError

_ENV_KEYS = (
    "GEOFIDDLE_OUTPUT_FORMAT",
    "GEOFIDDLE_OUTPUT_PROJECTION",
    "GEOFIDDLE_MAX_INPUT_CHARS",
    "GEOFIDDLE_VALIDATE_WGS84",
)


def _clean_env() -> dict[str, str]:
    return {key: value for key, value in os.environ.items() if key not in _ENV_KEYS}


class TestConverterConfigDefaults:
    """Verify default configuration values."""

    def test_default_output_format(self) -> None:
        cfg = ConverterConfig()
        assert cfg.default_output_format == "geojson"

    def test_default_output_projection(self) -> None:
        cfg = ConverterConfig()
        assert cfg.default_output_projection == "EPSG:4326"

    def test_default_max_input(self) -> None:
        cfg = ConverterConfig()
        assert cfg.max_input_chars == 5_000_000

    def test_default_range_check(self) -> None:
        cfg = ConverterConfig()
        assert cfg.validate_wgs84_range is True

    def test_defaults_are_valid(self) -> None:
        validate_config(ConverterConfig())


class TestConverterConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "GEOFIDDLE_OUTPUT_FORMAT": " KML ",
            "GEOFIDDLE_OUTPUT_PROJECTION": "EPSG:27700",
            "GEOFIDDLE_MAX_INPUT_CHARS": "1000",
            "GEOFIDDLE_VALIDATE_WGS84": "off",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = ConverterConfig.from_env()

        assert cfg.default_output_format == "kml"
        assert cfg.default_output_projection == "EPSG:27700"
        assert cfg.max_input_chars == 1000
        assert cfg.validate_wgs84_range is False

    def test_defaults_when_env_missing(self) -> None:
        with patch.dict(os.environ, _clean_env(), clear=True):
            cfg = ConverterConfig.from_env()
        assert cfg == ConverterConfig()

    def test_projection_name_accepted(self) -> None:
        with patch.dict(os.environ, {"GEOFIDDLE_OUTPUT_PROJECTION": "WebMercator"}):
            cfg = ConverterConfig.from_env()
        assert cfg.default_output_projection == "WebMercator"

    def test_non_integer_max_input_raises(self) -> None:
        with (
            patch.dict(os.environ, {"GEOFIDDLE_MAX_INPUT_CHARS": "lots"}),
            pytest.raises(ValueError, match="invalid literal"),
        ):
            ConverterConfig.from_env()


class TestConfigValidation:
    """Fail-fast validation."""

    def test_unknown_output_format(self) -> None:
        with (
            patch.dict(os.environ, {"GEOFIDDLE_OUTPUT_FORMAT": "topojson"}),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            ConverterConfig.from_env()
        assert exc_info.value.key == "GEOFIDDLE_OUTPUT_FORMAT"
        assert exc_info.value.value == "topojson"

    def test_shapefile_is_not_an_output_format(self) -> None:
        with pytest.raises(ConfigValidationError, match="GEOFIDDLE_OUTPUT_FORMAT"):
            validate_config(ConverterConfig(default_output_format="shapefile"))

    def test_unknown_projection(self) -> None:
        with pytest.raises(ConfigValidationError, match="EPSG:27700"):
            validate_config(ConverterConfig(default_output_projection="EPSG:2154"))

    @pytest.mark.parametrize("value", [0, -1])
    def test_max_input_must_be_positive(self, value: int) -> None:
        with pytest.raises(ConfigValidationError, match="must be > 0"):
            validate_config(ConverterConfig(max_input_chars=value))

    def test_unrecognised_boolean(self) -> None:
        with (
            patch.dict(os.environ, {"GEOFIDDLE_VALIDATE_WGS84": "maybe"}),
            pytest.raises(ConfigValidationError, match="boolean"),
        ):
            ConverterConfig.from_env()

    def test_error_is_validation_error(self) -> None:
        err = ConfigValidationError("KEY", 1, "bad")
        assert isinstance(err, ValidationError)
        assert err.to_error_dict() == {
            "category": "validation",
            "code": "CONFIG_VALIDATION_FAILED",
            "stage": "config",
            "message": "Invalid configuration KEY=1: bad",
        }
