"""SQLite-backed provenance registry for copied artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import sqlite3
from threading import Lock
from typing import Iterable, Optional

from pluck.core.models import BuildRef

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1"

# Copies made outside of any build are recorded with this destination.
_NO_PROJECT = ""
_NO_NUMBER = 0


@dataclass(frozen=True)
class FingerprintRecord:
    digest: str
    filename: str
    source: BuildRef
    destination: Optional[BuildRef]


@dataclass(frozen=True)
class CopiedArtifacts:
    """Files one destination build copied from one source build."""

    source: BuildRef
    destination: Optional[BuildRef]
    files: tuple[str, ...]


def _destination_columns(destination: Optional[BuildRef]) -> tuple[str, int]:
    if destination is None:
        return _NO_PROJECT, _NO_NUMBER
    return destination.project, destination.number


def _destination_ref(project: str, number: int) -> Optional[BuildRef]:
    if project == _NO_PROJECT:
        return None
    return BuildRef(project, number)


class FingerprintRegistry:
    """Records which builds produced and consumed each artifact digest."""

    def __init__(self, path: Path, now_fn=None) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))
        try:
            self._init_schema()
        except Exception:
            self._conn.close()
            raise

    def _now_iso(self) -> str:
        value = self._now_fn()
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_metadata (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        schema_version = self._get_metadata("schema_version")
        if schema_version is not None and schema_version != SCHEMA_VERSION:
            logger.warning(
                "Fingerprint registry schema %s is outdated; recreating", schema_version
            )
            self._conn.execute("DROP TABLE IF EXISTS fingerprints")
            self._conn.execute("DROP TABLE IF EXISTS copied_artifacts")
        self._set_metadata("schema_version", SCHEMA_VERSION)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS fingerprints (
                digest TEXT NOT NULL CHECK(length(digest) > 0),
                filename TEXT NOT NULL,
                source_project TEXT NOT NULL,
                source_number INTEGER NOT NULL,
                destination_project TEXT NOT NULL,
                destination_number INTEGER NOT NULL,
                recorded_at TEXT NOT NULL,
                PRIMARY KEY(
                    digest, filename, source_project, source_number,
                    destination_project, destination_number
                )
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS copied_artifacts (
                destination_project TEXT NOT NULL,
                destination_number INTEGER NOT NULL,
                source_project TEXT NOT NULL,
                source_number INTEGER NOT NULL,
                files TEXT NOT NULL,
                recorded_at TEXT NOT NULL,
                PRIMARY KEY(destination_project, destination_number, source_project, source_number)
            )
            """
        )
        self._conn.commit()

    def _get_metadata(self, key: str) -> Optional[str]:
        row = self._conn.execute(
            "SELECT value FROM schema_metadata WHERE key = ?",
            (key,),
        ).fetchone()
        return row[0] if row else None

    def _set_metadata(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO schema_metadata (key, value) VALUES (?, ?)",
            (key, value),
        )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    def record(
        self,
        digest: str,
        filename: str,
        source: BuildRef,
        destination: Optional[BuildRef] = None,
    ) -> None:
        """Associate one copied file's digest with its source and destination builds."""
        destination_project, destination_number = _destination_columns(destination)
        with self._lock:
            self._conn.execute(
                "INSERT OR IGNORE INTO fingerprints "
                "(digest, filename, source_project, source_number, "
                "destination_project, destination_number, recorded_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    digest.lower(),
                    filename,
                    source.project,
                    source.number,
                    destination_project,
                    destination_number,
                    self._now_iso(),
                ),
            )
            self._conn.commit()

    def record_copy(
        self,
        source: BuildRef,
        destination: Optional[BuildRef],
        files: Iterable[str],
    ) -> None:
        """Record the files a copy operation took from ``source``.

        Repeated copies from the same source into the same destination build
        accumulate their file lists.
        """
        destination_project, destination_number = _destination_columns(destination)
        with self._lock:
            row = self._conn.execute(
                "SELECT files FROM copied_artifacts WHERE destination_project = ? "
                "AND destination_number = ? AND source_project = ? AND source_number = ?",
                (destination_project, destination_number, source.project, source.number),
            ).fetchone()
            merged = set(json.loads(row[0])) if row else set()
            merged.update(files)
            self._conn.execute(
                "INSERT OR REPLACE INTO copied_artifacts "
                "(destination_project, destination_number, source_project, source_number, "
                "files, recorded_at) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    destination_project,
                    destination_number,
                    source.project,
                    source.number,
                    json.dumps(sorted(merged)),
                    self._now_iso(),
                ),
            )
            self._conn.commit()

    def builds_for(self, digest: str) -> list[FingerprintRecord]:
        """Every recorded use of ``digest``, ordered deterministically."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT digest, filename, source_project, source_number, "
                "destination_project, destination_number FROM fingerprints "
                "WHERE digest = ? ORDER BY source_project, source_number, "
                "destination_project, destination_number, filename",
                (digest.lower(),),
            ).fetchall()
        return [_fingerprint_from_row(row) for row in rows]

    def fingerprints_for(self, build: BuildRef) -> list[FingerprintRecord]:
        """Digests ``build`` produced or consumed."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT digest, filename, source_project, source_number, "
                "destination_project, destination_number FROM fingerprints "
                "WHERE (source_project = ? AND source_number = ?) "
                "OR (destination_project = ? AND destination_number = ?) "
                "ORDER BY filename, digest",
                (build.project, build.number, build.project, build.number),
            ).fetchall()
        return [_fingerprint_from_row(row) for row in rows]

    def copied_sources(self, destination: Optional[BuildRef]) -> list[CopiedArtifacts]:
        destination_project, destination_number = _destination_columns(destination)
        with self._lock:
            rows = self._conn.execute(
                "SELECT source_project, source_number, files FROM copied_artifacts "
                "WHERE destination_project = ? AND destination_number = ? "
                "ORDER BY source_project, source_number",
                (destination_project, destination_number),
            ).fetchall()
        return [
            CopiedArtifacts(
                source=BuildRef(row[0], row[1]),
                destination=destination,
                files=tuple(json.loads(row[2])),
            )
            for row in rows
        ]


def _fingerprint_from_row(row: tuple) -> FingerprintRecord:
    return FingerprintRecord(
        digest=row[0],
        filename=row[1],
        source=BuildRef(row[2], row[3]),
        destination=_destination_ref(row[4], row[5]),
    )
