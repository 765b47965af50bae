"""Run-time variable expansion for selector and filter fields."""

from __future__ import annotations

import re
from typing import Mapping

_VARIABLE = re.compile(r"\$(?:\{([A-Za-z_][A-Za-z0-9_.]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


def expand(text: str, env: Mapping[str, str]) -> str:
    """Expand ``$NAME`` and ``${NAME}`` references.

    Unknown variables are left untouched so callers can detect them with
    :func:`contains_variable`.
    """
    if not text or "$" not in text:
        return text

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        value = env.get(name)
        return match.group(0) if value is None else value

    return _VARIABLE.sub(_replace, text)


def contains_variable(text: str) -> bool:
    return bool(text) and "$" in text


def variable_name(text: str) -> str | None:
    """Return NAME for a bare ``$NAME``/``${NAME}`` reference, else None."""
    match = _VARIABLE.fullmatch(text.strip())
    if match is None:
        return None
    return match.group(1) or match.group(2)
