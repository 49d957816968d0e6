"""Tolerant conversion of loosely typed JSON scalars.

Broker payloads mix numbers and numeric strings (``"1.2500"``, ``"-100"``,
``12``). These helpers coerce such values and fall back to a default
instead of raising, unless ``strict=True``.
"""

from __future__ import annotations

import math
from typing import Any, Optional


def to_float(value: Any, default: float = 0.0, *, strict: bool = False) -> float:
    try:
        if isinstance(value, bool):
            return 1.0 if value else 0.0
        if isinstance(value, str):
            value = value.strip()
        result = float(value)
        if math.isnan(result) or math.isinf(result):
            raise ValueError(f"non-finite number: {value!r}")
        return result
    except (TypeError, ValueError):
        if strict:
            raise ValueError(f"can not convert {value!r} to float")
        return default


def to_int(value: Any, default: int = 0, *, strict: bool = False) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    number = to_float(value, strict=strict) if strict else to_float(value, default=math.nan)
    if math.isnan(number):
        return default
    if strict and not number.is_integer():
        raise ValueError(f"can not convert {value!r} to int")
    return int(number)


def to_str(value: Any, default: str = "") -> str:
    """Render ids the way the broker sent them: ``12.0`` -> ``"12"``."""
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def positive_int(value: Any, default: int) -> Optional[int]:
    """``default`` for None, the value when it is a positive integer, else None."""
    if value is None:
        return default
    try:
        number = to_int(value, strict=True)
    except ValueError:
        return None
    return number if number > 0 else None
