"""Redaction for DEBUG logs.

Platform API requests carry the account key in a header and the bridge
config carries the broker password. Anything headed for a debug log goes
through :func:`redact_for_log` first.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel

REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "govee-api-key",
        "api_key",
        "apikey",
        "password",
        "mqtt_password",
        "authorization",
        "cookie",
    }
)

_MAX_DEPTH = 12


def _mask(text: str, secrets: tuple[str, ...]) -> str:
    for secret in secrets:
        text = text.replace(secret, REDACTED)
    return text


def redact_for_log(
    value: Any,
    *,
    secrets: Iterable[str | None] = (),
    max_string: int = 512,
) -> Any:
    """Return a log-safe copy of *value*.

    Values under sensitive keys are replaced outright. Any string that
    contains one of *secrets* has it masked, so a key echoed back in an
    error body never reaches the log. Dataclasses and pydantic models are
    walked as mappings.
    """
    known = tuple(s for s in secrets if s)
    return _walk(value, known, max_string, 0)


def _walk(value: Any, secrets: tuple[str, ...], max_string: int, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        value = _mask(value, secrets)
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, BaseModel):
        value = value.model_dump()
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}

    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for key, item in value.items():
            name = str(key)
            if name.lower() in _SENSITIVE_KEYS:
                out[name] = REDACTED if item else item
            else:
                out[name] = _walk(item, secrets, max_string, depth + 1)
        return out
    if isinstance(value, Sequence):
        return [_walk(item, secrets, max_string, depth + 1) for item in value]
    return _mask(repr(value), secrets)
