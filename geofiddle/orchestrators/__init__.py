"""End-to-end conversion pipeline.

1. Detect or accept the input format → parse
2. Detect or accept the source projection → range-check
3. Transform → format
"""

from geofiddle.orchestrators.conversion import ConversionResult, convert

__all__ = [
    "ConversionResult",
    "convert",
]
