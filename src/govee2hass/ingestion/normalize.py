"""Normalization helpers.

Centralizes defensive parsing of vendor attribute bags. Nothing here
raises on malformed input: a miss is ``None`` and callers choose their
own baseline.
"""

from __future__ import annotations

import json
import math
from typing import Any

_MISSING = object()


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def value_at(bag: Any, pointer: str) -> Any:
    """Look up *pointer* (``"/value"``, ``"/a/0/b"``) inside *bag*.

    Follows JSON pointer syntax including ``~0``/``~1`` escapes. Returns
    ``None`` when any step is missing or has the wrong shape.
    """

    if pointer == "":
        return bag
    if not pointer.startswith("/"):
        return None

    current: Any = bag
    for token in pointer[1:].split("/"):
        token = token.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            current = current.get(token, _MISSING)
        elif isinstance(current, list):
            if not token.isdigit():
                return None
            index = int(token)
            current = current[index] if index < len(current) else _MISSING
        else:
            return None
        if current is _MISSING:
            return None
    return current


def is_active(value: Any) -> bool:
    """Interpret a binary-style raw value; anything unreadable is inactive.

    Booleans, numeric strings and fractions are read too, so any nonzero
    number counts as active.
    """

    if isinstance(value, bool):
        return value
    parsed = safe_float(value)
    if parsed is None:
        return False
    return parsed != 0


def format_number(value: Any) -> str | None:
    """Render a numeric raw value as compact text (``21.0`` -> ``"21"``)."""

    parsed = safe_float(value)
    if parsed is None:
        return None
    if parsed.is_integer():
        return str(int(parsed))
    return repr(parsed)


def format_compact(value: Any, *, max_length: int = 255) -> str | None:
    """Render an arbitrary raw value as short text suitable for a sensor state."""

    if value is None:
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (int, float)):
        number = format_number(value)
        if number is None:
            return None
        text = number
    elif isinstance(value, str):
        text = value
    else:
        text = json.dumps(value, separators=(",", ":"), sort_keys=True)
    return text[:max_length]
