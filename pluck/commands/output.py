"""Deterministic CLI output helpers."""

from __future__ import annotations

import json
from typing import Iterable, Optional

from pluck.core.models import BuildRecord, PickOutcome

SCHEMA_VERSION = "v1"


def emit_output(
    *,
    command: str,
    payload: dict,
    json_output: bool,
    output_sink=print,
    human_lines: Iterable[str] = (),
) -> None:
    """Emit a JSON envelope or the human-readable lines."""
    if json_output:
        envelope = {
            "schema_version": SCHEMA_VERSION,
            "command": command,
            "data": payload,
        }
        output_sink(
            json.dumps(
                envelope,
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=True,
            )
        )
        return
    for line in human_lines:
        output_sink(line)


def build_payload(build: Optional[BuildRecord]) -> Optional[dict]:
    if build is None:
        return None
    return {
        "project": build.project,
        "number": build.number,
        "status": build.status.value,
        "display_name": build.display_name,
        "build_id": build.build_id,
        "keep": build.keep,
    }


def pick_payload(outcome: PickOutcome) -> dict:
    return {
        "project": outcome.project_name,
        "result": outcome.result.value,
        "build": build_payload(outcome.build),
        "reasons": list(outcome.reasons),
    }
