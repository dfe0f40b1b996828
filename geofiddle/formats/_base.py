"""Codec descriptor shared by every format module."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from geofiddle.models.feature import Feature, FormatOptions, ParseResult

ParseFn = Callable[[str], ParseResult]
FormatFn = Callable[[Sequence[Feature], FormatOptions], str]
DetectFn = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class FormatCodec:
    """One text format: how to parse it, write it and recognise it.

    Attributes:
        name: Registry key (e.g. ``"geojson"``).
        label: Display label (e.g. ``"GeoJSON"``).
        parse: Text -> ``ParseResult``. Never raises.
        format: Features + options -> text. May raise ``GeoFiddleError``.
        detect: Pure, total, non-raising recogniser.
    """

    name: str
    label: str
    parse: ParseFn
    format: FormatFn
    detect: DetectFn
