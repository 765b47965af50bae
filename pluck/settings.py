"""Application settings and environment overrides."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import json
import os
from pathlib import Path
from typing import Optional


_DEFAULT_UPSTREAM_STRATEGY = "oldest"
_ALLOWED_UPSTREAM_STRATEGIES = {"oldest", "newest"}
_DEFAULT_INCLUDES = "**"
_DEFAULT_DIGEST = "md5"

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    upstream_filter_strategy: str = _DEFAULT_UPSTREAM_STRATEGY
    default_includes: str = _DEFAULT_INCLUDES
    fingerprint_artifacts: bool = True
    case_sensitive_patterns: bool = False
    digest_algorithm: str = _DEFAULT_DIGEST


def load_settings(path: Optional[Path]) -> Settings:
    """Load settings from JSON config file, with environment variable overrides.

    Priority order:
    1. Environment variables (PLUCK_*)
    2. JSON config file
    3. Defaults

    Args:
        path: Path to JSON config file, or None to use defaults only

    Returns:
        Settings object with resolved values
    """
    json_settings = {}
    if path and path.exists():
        json_settings = json.loads(path.read_text())

    strategy = os.getenv("PLUCK_UPSTREAM_FILTER_STRATEGY") or json_settings.get(
        "upstream_filter_strategy", _DEFAULT_UPSTREAM_STRATEGY
    )
    strategy = str(strategy).lower()
    if strategy not in _ALLOWED_UPSTREAM_STRATEGIES:
        raise ValueError(f"Unsupported upstream filter strategy: {strategy}")

    case_sensitive = _env_bool("PLUCK_CASE_SENSITIVE_PATTERNS")
    if case_sensitive is None:
        case_sensitive = bool(json_settings.get("case_sensitive_patterns", False))

    digest = os.getenv("PLUCK_DIGEST_ALGORITHM") or json_settings.get("digest_algorithm", _DEFAULT_DIGEST)
    if digest not in hashlib.algorithms_available:
        raise ValueError(f"Unsupported digest algorithm: {digest}")

    includes = json_settings.get("default_includes") or _DEFAULT_INCLUDES
    fingerprint = json_settings.get("fingerprint_artifacts", True)

    return Settings(
        upstream_filter_strategy=strategy,
        default_includes=includes,
        fingerprint_artifacts=bool(fingerprint),
        case_sensitive_patterns=case_sensitive,
        digest_algorithm=digest,
    )


def default_config_path() -> Path:
    return Path.home() / ".config" / "pluck" / "settings.json"


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    value = raw.strip().lower()
    if value in _TRUE_STRINGS:
        return True
    if value in _FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean for {name}: {raw}")
