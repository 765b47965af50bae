"""Helpers for reading selector/filter fields from decoded specs."""

from __future__ import annotations

from typing import Any, Mapping

_MISSING = object()

TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def field_value(data: Mapping[str, Any], *names: str, default: Any = _MISSING) -> Any:
    """Return the first present key among ``names``.

    Specs may spell fields in snake_case or in the camelCase used by legacy
    configuration, so every field is looked up under all of its spellings.
    """
    for name in names:
        if name in data:
            return data[name]
    if default is _MISSING:
        raise KeyError(names[0])
    return default


def parse_bool(value: Any) -> bool | None:
    """Interpret boolean-looking values; None if the value is not boolean-like."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return None


def bool_field(data: Mapping[str, Any], *names: str, default: bool = False) -> bool:
    raw = field_value(data, *names, default=None)
    if raw is None:
        return default
    parsed = parse_bool(raw)
    if parsed is None:
        raise ValueError(f"Invalid boolean for {names[0]}: {raw!r}")
    return parsed
