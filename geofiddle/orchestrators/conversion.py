"""End-to-end conversion pipeline.

Takes raw text plus the desired output format and projection and runs
the steps in order:

1. Size check against ``ConverterConfig.max_input_chars``
2. Format: explicit, or auto-detected
3. Parse (partial success is kept)
4. Source projection: explicit, else detected by the codec, else guessed
   from the coordinate magnitudes
5. WGS 84 range check, when the source is WGS 84
6. Transform to the output projection
7. Format the transformed features

The pipeline never raises for bad input. Every problem becomes a
``ParseError`` entry in ``ConversionResult.errors``, and whatever was
produced before the failing step is still returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from geofiddle.core.config import ConverterConfig
from geofiddle.core.exceptions import GeoFiddleError
from geofiddle.formats.registry import DEFAULT_REGISTRY
from geofiddle.models.feature import FormatOptions, ParseError
from geofiddle.projections.definitions import SupportedProjection, resolve_projection
from geofiddle.projections.detection import (
    collect_positions,
    detect_projection_from_coordinates,
    validate_wgs84_coordinates,
)
from geofiddle.projections.transform import transform_features

if TYPE_CHECKING:
    from geofiddle.formats.registry import FormatRegistry
    from geofiddle.models.feature import Feature, ParseResult

logger = logging.getLogger("geofiddle.orchestrators.conversion")


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of one ``convert()`` call.

    Attributes:
        input_format: Format the input was parsed as.
        source_projection: Projection the input coordinates are in.
        output_format: Format of ``output``.
        output_projection: Projection of ``transformed_features``.
        features: Parsed features, in the source projection.
        transformed_features: Features in the output projection.
        output: Formatted text; empty when a step failed.
        errors: Every problem found along the way.
    """

    input_format: str | None = None
    source_projection: SupportedProjection | None = None
    output_format: str | None = None
    output_projection: SupportedProjection | None = None
    features: tuple[Feature, ...] = ()
    transformed_features: tuple[Feature, ...] = ()
    output: str = ""
    errors: tuple[ParseError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors and bool(self.output)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "input_format": self.input_format,
            "source_projection": self.source_projection.value if self.source_projection else None,
            "output_format": self.output_format,
            "output_projection": self.output_projection.value if self.output_projection else None,
            "feature_count": len(self.features),
            "output": self.output,
            "errors": [
                {"message": error.message, "line": error.line} for error in self.errors
            ],
        }


def _source_projection(
    explicit: SupportedProjection | str | None,
    parsed: ParseResult,
) -> SupportedProjection | None:
    if explicit is not None:
        return resolve_projection(explicit)
    if parsed.detected_projection is not None:
        return parsed.detected_projection
    return detect_projection_from_coordinates(collect_positions(parsed.features))


def convert(
    text: str,
    *,
    input_format: str | None = None,
    input_projection: SupportedProjection | str | None = None,
    output_format: str | None = None,
    output_projection: SupportedProjection | str | None = None,
    config: ConverterConfig | None = None,
    registry: FormatRegistry | None = None,
) -> ConversionResult:
    """Convert geometry text between formats and projections.

    Args:
        text: Raw input text.
        input_format: Format name; auto-detected when ``None``.
        input_projection: Source projection; detected when ``None``.
        output_format: Target format; ``config.default_output_format``
            when ``None``.
        output_projection: Target projection;
            ``config.default_output_projection`` when ``None``.
        config: Converter configuration; defaults apply when ``None``.
        registry: Codec registry; the built-in one when ``None``.

    Returns:
        A ``ConversionResult``. Failures are reported in ``errors``.
    """
    config = config or ConverterConfig()
    registry = registry or DEFAULT_REGISTRY

    if not text.strip():
        return ConversionResult()

    if len(text) > config.max_input_chars:
        msg = f"Input exceeds the maximum of {config.max_input_chars} characters"
        logger.warning("Rejected input of %d characters", len(text))
        return ConversionResult(errors=(ParseError(msg),))

    # -- Format --------------------------------------------------------
    format_name = input_format or registry.detect_format(text)
    if format_name is None:
        return ConversionResult(errors=(ParseError("Could not auto-detect format"),))

    parsed = registry.parse(text, format_name)
    errors: list[ParseError] = list(parsed.errors)
    if not parsed.features:
        return ConversionResult(input_format=format_name, errors=tuple(errors))

    # -- Source projection ---------------------------------------------
    source = _source_projection(input_projection, parsed)
    if source is None:
        errors.append(ParseError(f"Unsupported projection: {input_projection}"))
        return ConversionResult(
            input_format=format_name, features=parsed.features, errors=tuple(errors)
        )

    if source is SupportedProjection.WGS84 and config.validate_wgs84_range:
        valid, invalid = validate_wgs84_coordinates(collect_positions(parsed.features))
        if not valid and invalid is not None:
            logger.warning("Coordinate %s is outside WGS 84 bounds", list(invalid))
            errors.append(
                ParseError(
                    f"Coordinates out of WGS 84 range: [{invalid[0]}, {invalid[1]}]. "
                    "Select the projection the input is in."
                )
            )
            return ConversionResult(
                input_format=format_name,
                source_projection=source,
                features=parsed.features,
                errors=tuple(errors),
            )

    # -- Output --------------------------------------------------------
    target_format = output_format or config.default_output_format
    target = resolve_projection(output_projection or config.default_output_projection)
    if target is None:
        errors.append(ParseError(f"Unsupported projection: {output_projection}"))
        return ConversionResult(
            input_format=format_name,
            source_projection=source,
            output_format=target_format,
            features=parsed.features,
            errors=tuple(errors),
        )

    transformed: tuple[Feature, ...] = ()
    output = ""
    try:
        transformed = transform_features(parsed.features, source, target)
        output = registry.format(transformed, target_format, FormatOptions(projection=target.value))
    except GeoFiddleError as exc:
        logger.warning("Conversion failed | stage=%s | code=%s | %s", exc.stage, exc.code, exc)
        errors.append(ParseError(str(exc)))

    logger.info(
        "Converted %d feature(s) %s/%s -> %s/%s with %d error(s)",
        len(parsed.features),
        format_name,
        source.value,
        target_format,
        target.value,
        len(errors),
    )
    return ConversionResult(
        input_format=format_name,
        source_projection=source,
        output_format=target_format,
        output_projection=target,
        features=parsed.features,
        transformed_features=transformed,
        output=output,
        errors=tuple(errors),
    )
