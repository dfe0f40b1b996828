"""Format registry: codec lookup, dispatch and auto-detection.

The registry is an immutable tuple of ``FormatCodec`` entries in
detection precedence order. It is built once at import time and never
mutated; ``with_codec`` returns a new registry for callers that need an
extra format.

Precedence matters because the grammars overlap:

- EWKT runs before WKT, whose keyword test would also match an EWKT body
- the XML formats run before the text heuristics
- CSV accepts almost any run of numbers, so it runs last

Usage::

    from geofiddle.formats.registry import detect_format, parse

    name = detect_format(text)
    result = parse(text, name)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geofiddle.core.constants import FORMAT_PRECEDENCE
from geofiddle.core.exceptions import UnsupportedFormatError
from geofiddle.formats import dsv, geojson, gpx, kml, shapefile, wkt
from geofiddle.formats.polyline import POLYLINE5_CODEC, POLYLINE6_CODEC
from geofiddle.models.feature import FormatOptions, ParseResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from geofiddle.formats._base import FormatCodec
    from geofiddle.models.feature import Feature

logger = logging.getLogger("geofiddle.formats.registry")


class FormatRegistry:
    """Immutable, ordered collection of format codecs."""

    __slots__ = ("_by_name", "_codecs")

    def __init__(self, codecs: Iterable[FormatCodec]) -> None:
        ordered = tuple(codecs)
        by_name = {codec.name: codec for codec in ordered}
        if len(by_name) != len(ordered):
            msg = "Duplicate format name in registry"
            raise ValueError(msg)
        self._codecs = ordered
        self._by_name = by_name

    @property
    def codecs(self) -> tuple[FormatCodec, ...]:
        """Codecs in detection precedence order."""
        return self._codecs

    def names(self) -> list[str]:
        """Format names in detection precedence order."""
        return [codec.name for codec in self._codecs]

    def get(self, name: str) -> FormatCodec | None:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._codecs)

    def with_codec(self, codec: FormatCodec, *, before: str | None = None) -> FormatRegistry:
        """Return a new registry with ``codec`` added (or replacing a same-named one).

        Args:
            codec: Codec to add.
            before: Insert ahead of this format in precedence order;
                appended at the end when ``None`` or not registered.
        """
        codecs = [existing for existing in self._codecs if existing.name != codec.name]
        names = [existing.name for existing in codecs]
        index = names.index(before) if before in names else len(codecs)
        codecs.insert(index, codec)
        return FormatRegistry(codecs)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def parse(self, text: str, format_name: str) -> ParseResult:
        """Parse with the named codec; an unknown name is a parse error."""
        codec = self._by_name.get(format_name)
        if codec is None:
            logger.warning("Parse requested for unknown format %r", format_name)
            return ParseResult.failure(f"Unsupported format: {format_name}")
        return codec.parse(text)

    def format(
        self,
        features: Sequence[Feature],
        format_name: str,
        options: FormatOptions | None = None,
    ) -> str:
        """Format with the named codec.

        Raises:
            UnsupportedFormatError: If no codec has that name.
            FormatterError: If the codec cannot write the features.
        """
        codec = self._by_name.get(format_name)
        if codec is None:
            available = ", ".join(self.names())
            msg = f"Unsupported format: {format_name!r}. Available: {available}"
            raise UnsupportedFormatError(msg)
        return codec.format(features, options or FormatOptions())

    def detect_format(self, text: str) -> str | None:
        """Name of the first codec, in precedence order, that recognises the text."""
        trimmed = text.strip()
        if not trimmed:
            return None
        for codec in self._codecs:
            if codec.detect(trimmed):
                logger.debug("Detected format %s", codec.name)
                return codec.name
        logger.debug("No codec recognised the input")
        return None


def build_default_registry() -> FormatRegistry:
    """Registry of every built-in codec, in detection precedence order."""
    by_name = {
        codec.name: codec
        for codec in (
            geojson.CODEC,
            wkt.EWKT_CODEC,
            wkt.WKT_CODEC,
            kml.CODEC,
            gpx.CODEC,
            shapefile.CODEC,
            POLYLINE5_CODEC,
            POLYLINE6_CODEC,
            dsv.CODEC,
        )
    }
    return FormatRegistry(by_name[name] for name in FORMAT_PRECEDENCE)


DEFAULT_REGISTRY = build_default_registry()


# ---------------------------------------------------------------------------
# Module-level API over the default registry
# ---------------------------------------------------------------------------


def parse(text: str, format_name: str) -> ParseResult:
    """Parse ``text`` as ``format_name``. Never raises."""
    return DEFAULT_REGISTRY.parse(text, format_name)


def format_features(
    features: Sequence[Feature],
    format_name: str,
    options: FormatOptions | None = None,
) -> str:
    """Write features as ``format_name``.

    Raises:
        UnsupportedFormatError: If the format name is unknown.
        GeoFiddleError: If the codec cannot write the features.
    """
    return DEFAULT_REGISTRY.format(features, format_name, options)


def detect_format(text: str) -> str | None:
    """Auto-detect the format of ``text``; ``None`` when nothing matches."""
    return DEFAULT_REGISTRY.detect_format(text)


def list_formats() -> list[str]:
    """Registered format names in detection precedence order."""
    return DEFAULT_REGISTRY.names()
