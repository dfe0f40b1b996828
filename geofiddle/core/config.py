"""Converter configuration loaded from environment variables.

All configuration values have sensible defaults so the library works
without any environment set up. A hosting application loads the config
once at startup and passes it to ``convert()``.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range or names an unknown format/projection. This
    catches bad configuration at startup instead of on the first request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from geofiddle.core.constants import GEOJSON, OUTPUT_FORMATS
from geofiddle.core.exceptions import ValidationError

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class ConverterConfig:
    """Immutable converter configuration.

    Attributes:
        default_output_format: Format used by ``convert()`` when the caller
            does not name one.
        default_output_projection: Projection (EPSG code or name) used by
            ``convert()`` when the caller does not name one.
        max_input_chars: Largest accepted input text, in characters.
        validate_wgs84_range: Whether ``convert()`` rejects coordinates
            outside WGS 84 bounds when the source projection is WGS 84.
    """

    default_output_format: str = GEOJSON
    default_output_projection: str = "EPSG:4326"
    max_input_chars: int = 5_000_000
    validate_wgs84_range: bool = True

    @classmethod
    def from_env(cls) -> ConverterConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range, a name is
                unknown, or a boolean flag is not recognised.
            ValueError: If ``GEOFIDDLE_MAX_INPUT_CHARS`` is not an integer.
        """
        config = cls(
            default_output_format=os.getenv("GEOFIDDLE_OUTPUT_FORMAT", GEOJSON).strip().lower(),
            default_output_projection=os.getenv("GEOFIDDLE_OUTPUT_PROJECTION", "EPSG:4326").strip(),
            max_input_chars=int(os.getenv("GEOFIDDLE_MAX_INPUT_CHARS", "5000000")),
            validate_wgs84_range=_parse_bool(
                "GEOFIDDLE_VALIDATE_WGS84", os.getenv("GEOFIDDLE_VALIDATE_WGS84", "true")
            ),
        )
        validate_config(config)
        return config


def validate_config(config: ConverterConfig) -> None:
    """Validate configuration values.  Raises ``ConfigValidationError``."""
    from geofiddle.projections.definitions import resolve_projection

    if config.default_output_format not in OUTPUT_FORMATS:
        raise ConfigValidationError(
            "GEOFIDDLE_OUTPUT_FORMAT",
            config.default_output_format,
            f"must be one of {', '.join(OUTPUT_FORMATS)}",
        )

    if resolve_projection(config.default_output_projection) is None:
        raise ConfigValidationError(
            "GEOFIDDLE_OUTPUT_PROJECTION",
            config.default_output_projection,
            "must be EPSG:4326, EPSG:3857 or EPSG:27700",
        )

    if config.max_input_chars <= 0:
        raise ConfigValidationError(
            "GEOFIDDLE_MAX_INPUT_CHARS",
            config.max_input_chars,
            "must be > 0 (characters)",
        )


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigValidationError(key, raw, "must be a boolean (true/false)")
