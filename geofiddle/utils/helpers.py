"""Shared helper functions used across multiple codec modules."""

from __future__ import annotations

import math


def format_number(value: float) -> str:
    """Render a coordinate value compactly for text formats.

    Integral values are written without a fractional part (``1.0`` ->
    ``"1"``); everything else uses the shortest round-tripping repr.
    """
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return repr(float(value))


def format_position(position: tuple[float, ...], separator: str = ",") -> str:
    """Join the values of a position with ``separator``."""
    return separator.join(format_number(value) for value in position)
