"""Versioned serialization of selectors and filters.

Specs are tagged JSON objects such as ``{"type": "status", "status": "stable"}``
with an optional ``"version"``. A compact one-line form is accepted as well:
``<Specific buildNumber=2>``, where values may be quoted. Type names are
matched case-insensitively against each variant's ``type_name``, its aliases
(including legacy class names) and its Python class name with or without the
``Selector``/``Filter`` suffix.
"""

from __future__ import annotations

import json
import logging
import re
import shlex
from typing import Any, Mapping, Optional, TypeVar, Union

from pluck.core.filters import FILTER_TYPES, BuildFilter
from pluck.core.selectors import SELECTOR_TYPES, BuildSelector
from pluck.errors import SpecError

logger = logging.getLogger(__name__)

SPEC_VERSION = 2

SpecInput = Union[str, Mapping[str, Any]]
T = TypeVar("T")

_COMPACT = re.compile(r"^<\s*([A-Za-z_][\w.$-]*)(.*?)/?>$", re.DOTALL)


def _registry(types: tuple[type[T], ...], suffix: str) -> dict[str, type[T]]:
    registry: dict[str, type[T]] = {}
    for cls in types:
        names = {cls.type_name, cls.__name__, *cls.aliases}
        if cls.__name__.endswith(suffix):
            names.add(cls.__name__[: -len(suffix)])
        for alias in cls.aliases:
            for legacy_suffix in ("Build" + suffix, suffix):
                if alias.endswith(legacy_suffix) and len(alias) > len(legacy_suffix):
                    names.add(alias[: -len(legacy_suffix)])
        for name in names:
            key = _key(name)
            existing = registry.get(key)
            if existing is not None and existing is not cls:
                raise RuntimeError(f"Duplicate spec type name {name!r}")
            registry[key] = cls
    return registry


def _key(name: str) -> str:
    return name.replace("_", "").replace("-", "").casefold()


SELECTOR_REGISTRY: dict[str, type[BuildSelector]] = _registry(SELECTOR_TYPES, "Selector")
FILTER_REGISTRY: dict[str, type[BuildFilter]] = _registry(FILTER_TYPES, "Filter")


def _parse_compact(text: str) -> dict[str, Any]:
    match = _COMPACT.match(text)
    if match is None:
        raise SpecError(f"Unrecognized spec: {text!r}")
    data: dict[str, Any] = {"type": match.group(1)}
    try:
        tokens = shlex.split(match.group(2))
    except ValueError as exc:
        raise SpecError(f"Malformed spec {text!r}: {exc}") from exc
    for token in tokens:
        name, sep, value = token.partition("=")
        if not sep or not name:
            raise SpecError(f"Malformed field {token!r} in spec {text!r}")
        data[name] = value
    return data


def _as_mapping(spec: SpecInput) -> Mapping[str, Any]:
    if isinstance(spec, Mapping):
        return spec
    if not isinstance(spec, str):
        raise SpecError(f"Unsupported spec value: {spec!r}")
    text = spec.strip()
    if not text:
        raise SpecError("Empty spec")
    if text.startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SpecError(f"Invalid JSON spec: {exc}") from exc
        if not isinstance(data, dict):
            raise SpecError("Spec JSON must be an object")
        return data
    if text.startswith("<"):
        return _parse_compact(text)
    # A bare word names a variant without fields.
    return {"type": text}


def _decode(spec: SpecInput, registry: Mapping[str, type[T]], kind: str) -> T:
    data = _as_mapping(spec)
    type_name = data.get("type")
    if not isinstance(type_name, str) or not type_name.strip():
        raise SpecError(f"{kind} spec has no type")
    version = data.get("version", SPEC_VERSION)
    try:
        version = int(version)
    except (TypeError, ValueError) as exc:
        raise SpecError(f"Invalid {kind} spec version: {version!r}") from exc
    if version > SPEC_VERSION:
        raise SpecError(f"Unsupported {kind} spec version {version}")
    cls = registry.get(_key(type_name.strip()))
    if cls is None:
        raise SpecError(f"Unknown {kind} type {type_name!r}")
    try:
        return cls.from_dict(data, DECODER)
    except SpecError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise SpecError(f"Invalid {kind} spec for {type_name!r}: {exc}") from exc


class SpecDecoder:
    """Decoder handed to ``from_dict`` for nested selectors and filters."""

    def selector(self, spec: SpecInput) -> BuildSelector:
        return decode_selector(spec)

    def filter(self, spec: SpecInput) -> BuildFilter:
        return decode_filter(spec)


DECODER = SpecDecoder()


def decode_selector(spec: SpecInput) -> BuildSelector:
    """Decode a selector spec.

    Raises:
        SpecError: the spec is malformed or names an unknown selector
    """
    return _decode(spec, SELECTOR_REGISTRY, "selector")


def decode_filter(spec: SpecInput) -> BuildFilter:
    """Decode a filter spec.

    Raises:
        SpecError: the spec is malformed or names an unknown filter
    """
    return _decode(spec, FILTER_REGISTRY, "filter")


def parse_selector(spec: Optional[SpecInput]) -> Optional[BuildSelector]:
    """Lenient variant of :func:`decode_selector`; logs and returns None on failure."""
    if spec is None:
        return None
    try:
        return decode_selector(spec)
    except SpecError as exc:
        logger.warning("Ignoring build selector spec: %s", exc)
        return None


def parse_filter(spec: Optional[SpecInput]) -> Optional[BuildFilter]:
    if spec is None:
        return None
    try:
        return decode_filter(spec)
    except SpecError as exc:
        logger.warning("Ignoring build filter spec: %s", exc)
        return None


def encode_selector(selector: BuildSelector) -> str:
    return _encode(selector.to_dict())


def encode_filter(build_filter: BuildFilter) -> str:
    return _encode(build_filter.to_dict())


def _encode(data: dict[str, Any]) -> str:
    payload = dict(data)
    payload["version"] = SPEC_VERSION
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))
