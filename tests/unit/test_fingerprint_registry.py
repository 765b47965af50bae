"""Unit tests for the fingerprint registry.

Contract: records are idempotent, digests are case-insensitive, copies made
outside a build are stored without a destination, and an outdated schema
is recreated.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import sqlite3

from pluck.core.models import BuildRef
from pluck.infrastructure.fingerprint_registry import (
    SCHEMA_VERSION,
    CopiedArtifacts,
    FingerprintRecord,
    FingerprintRegistry,
)

LIB_1 = BuildRef("lib", 1)
APP_7 = BuildRef("app", 7)
APP_8 = BuildRef("app", 8)


def _fixed_now() -> datetime:
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_record_and_look_up(tmp_path: Path) -> None:
    registry = FingerprintRegistry(tmp_path / "registry.db")
    try:
        registry.record("ABC123", "lib.jar", LIB_1, APP_8)
        registry.record("abc123", "lib.jar", LIB_1, APP_7)
        registry.record("abc123", "lib.jar", LIB_1, APP_7)

        assert registry.builds_for("AbC123") == [
            FingerprintRecord("abc123", "lib.jar", LIB_1, APP_7),
            FingerprintRecord("abc123", "lib.jar", LIB_1, APP_8),
        ]
        assert registry.builds_for("ffff") == []
    finally:
        registry.close()


def test_copies_without_destination(tmp_path: Path) -> None:
    registry = FingerprintRegistry(tmp_path / "registry.db")
    try:
        registry.record("abc", "lib.jar", LIB_1)

        [record] = registry.builds_for("abc")
        assert record.destination is None
    finally:
        registry.close()


def test_fingerprints_for_source_and_destination(tmp_path: Path) -> None:
    registry = FingerprintRegistry(tmp_path / "registry.db")
    try:
        registry.record("aaa", "lib.jar", LIB_1, APP_7)
        registry.record("bbb", "api.txt", LIB_1, APP_8)

        assert [record.digest for record in registry.fingerprints_for(LIB_1)] == ["bbb", "aaa"]
        assert [record.filename for record in registry.fingerprints_for(APP_7)] == ["lib.jar"]
        assert registry.fingerprints_for(BuildRef("other", 1)) == []
    finally:
        registry.close()


def test_record_copy_accumulates_files(tmp_path: Path) -> None:
    registry = FingerprintRegistry(tmp_path / "registry.db")
    try:
        registry.record_copy(LIB_1, APP_7, ["lib.jar"])
        registry.record_copy(LIB_1, APP_7, ["docs/api.txt", "lib.jar"])
        registry.record_copy(BuildRef("core", 3), APP_7, ["core.jar"])

        assert registry.copied_sources(APP_7) == [
            CopiedArtifacts(BuildRef("core", 3), APP_7, ("core.jar",)),
            CopiedArtifacts(LIB_1, APP_7, ("docs/api.txt", "lib.jar")),
        ]
        assert registry.copied_sources(APP_8) == []
    finally:
        registry.close()


def test_persists_across_instances_with_timestamps(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "registry.db"
    registry = FingerprintRegistry(path, now_fn=_fixed_now)
    registry.record("abc", "lib.jar", LIB_1, APP_7)
    registry.close()

    reopened = FingerprintRegistry(path)
    try:
        assert len(reopened.builds_for("abc")) == 1
    finally:
        reopened.close()

    conn = sqlite3.connect(path)
    try:
        row = conn.execute("SELECT recorded_at FROM fingerprints").fetchone()
    finally:
        conn.close()
    assert row[0] == "2024-03-01T12:00:00Z"


def test_outdated_schema_is_recreated(tmp_path: Path) -> None:
    path = tmp_path / "registry.db"
    registry = FingerprintRegistry(path)
    registry.record("abc", "lib.jar", LIB_1, APP_7)
    registry.close()

    conn = sqlite3.connect(path)
    conn.execute("UPDATE schema_metadata SET value = '0' WHERE key = 'schema_version'")
    conn.commit()
    conn.close()

    reopened = FingerprintRegistry(path)
    try:
        assert reopened.builds_for("abc") == []
        assert reopened._get_metadata("schema_version") == SCHEMA_VERSION
    finally:
        reopened.close()
