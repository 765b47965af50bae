"""Unit tests for settings loading.

Contract: environment variables override the JSON file, which overrides
defaults; unsupported values raise ValueError.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pluck.settings import Settings, default_config_path, load_settings


def test_defaults_without_config(tmp_path: Path) -> None:
    assert load_settings(None) == Settings()
    assert load_settings(tmp_path / "missing.json") == Settings()


def test_json_config(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "upstream_filter_strategy": "Newest",
                "default_includes": "dist/**",
                "fingerprint_artifacts": False,
                "case_sensitive_patterns": True,
                "digest_algorithm": "sha256",
            }
        )
    )

    assert load_settings(path) == Settings(
        upstream_filter_strategy="newest",
        default_includes="dist/**",
        fingerprint_artifacts=False,
        case_sensitive_patterns=True,
        digest_algorithm="sha256",
    )


def test_environment_overrides_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"upstream_filter_strategy": "oldest", "case_sensitive_patterns": True}))
    monkeypatch.setenv("PLUCK_UPSTREAM_FILTER_STRATEGY", "newest")
    monkeypatch.setenv("PLUCK_CASE_SENSITIVE_PATTERNS", "off")
    monkeypatch.setenv("PLUCK_DIGEST_ALGORITHM", "sha1")

    settings = load_settings(path)

    assert settings.upstream_filter_strategy == "newest"
    assert settings.case_sensitive_patterns is False
    assert settings.digest_algorithm == "sha1"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PLUCK_UPSTREAM_FILTER_STRATEGY", "random"),
        ("PLUCK_CASE_SENSITIVE_PATTERNS", "sometimes"),
        ("PLUCK_DIGEST_ALGORITHM", "crc-nope"),
    ],
)
def test_invalid_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        load_settings(None)


def test_default_config_path() -> None:
    assert default_config_path().parts[-3:] == (".config", "pluck", "settings.json")
