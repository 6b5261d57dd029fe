"""
Field coercion helpers for upstream round rows.

Lamports arrive as strings or numbers; some columns arrive as JSON text or as
already-parsed values. Every helper raises DecodeError on malformed input.
"""

from __future__ import annotations

import json
from typing import Any

from backend_fairproof.core.exceptions import DecodeError


def to_int(value: Any, field: str, default: int | None = None) -> int:
    """Integer from int/str/float-with-no-fraction. None/'' -> default, or DecodeError if no default."""
    if value is None or value == "":
        if default is None:
            raise DecodeError(f"Missing required field: {field}")
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise DecodeError(f"{field} must be an integer, got {value!r}")
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise DecodeError(f"{field} must be an integer, got {value!r}") from e


def opt_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return to_int(value, field)


def to_float(value: Any, field: str) -> float:
    if value is None or value == "" or isinstance(value, bool):
        raise DecodeError(f"Missing required field: {field}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"{field} must be a number, got {value!r}") from e


def opt_float(value: Any, field: str) -> float | None:
    if value is None or value == "":
        return None
    return to_float(value, field)


def opt_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def first_present(item: dict[str, Any], *keys: str) -> Any:
    """Value of the first key that is present and not None."""
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _load_json(value: Any, field: str) -> Any:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeError(f"{field} is not valid JSON: {e.msg}") from e
    return value


def int_list(value: Any, field: str) -> tuple[int, ...] | None:
    """JSON text or list of ints -> tuple. None/empty text -> None."""
    parsed = _load_json(value, field)
    if parsed is None:
        return None
    if not isinstance(parsed, (list, tuple)):
        raise DecodeError(f"{field} must be a list, got {type(parsed).__name__}")
    return tuple(to_int(v, field) for v in parsed)


def str_list(value: Any, field: str) -> tuple[str, ...] | None:
    parsed = _load_json(value, field)
    if parsed is None:
        return None
    if not isinstance(parsed, (list, tuple)):
        raise DecodeError(f"{field} must be a list, got {type(parsed).__name__}")
    return tuple(str(v) for v in parsed)


def json_object(value: Any, field: str) -> dict[str, Any] | None:
    parsed = _load_json(value, field)
    if parsed is None:
        return None
    if not isinstance(parsed, dict):
        raise DecodeError(f"{field} must be an object, got {type(parsed).__name__}")
    return parsed
