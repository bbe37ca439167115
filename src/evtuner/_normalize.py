"""Normalization helpers.

Centralizes lenient parsing of persisted and user-supplied values.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None or math.isinf(parsed):
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def float_or(value: Any, default: float) -> float:
    """Coerce *value* to ``float`` or fall back to *default*."""
    parsed = safe_float(value)
    return default if parsed is None else parsed
