"""Numeric tokenizer for delimiter-separated coordinate text.

Splits text on any of ``, ; | tab space # & \\ : /`` and parses every
non-empty token as a finite number.
"""

from __future__ import annotations

import math
import re

DELIMITER_PATTERN = re.compile(r"[,;|\s#&\\:/]+")


class TokenizeError(ValueError):
    """Raised when a token is not a finite number."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"Invalid number: {token}")


def split_tokens(text: str) -> list[str]:
    """Split text into raw tokens, dropping empties."""
    return [token for token in DELIMITER_PATTERN.split(text.strip()) if token]


def parse_number(token: str) -> float:
    """Parse one token as a finite float.

    Raises:
        TokenizeError: If the token is not a finite number.
    """
    try:
        value = float(token)
    except ValueError:
        raise TokenizeError(token) from None
    if not math.isfinite(value) or "_" in token:
        raise TokenizeError(token)
    return value


def parse_dsv(text: str) -> list[float]:
    """Parse delimiter-separated text into numbers.

    Raises:
        TokenizeError: On the first token that is not a finite number.
    """
    return [parse_number(token) for token in split_tokens(text)]
