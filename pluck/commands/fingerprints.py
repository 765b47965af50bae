"""Fingerprints command - lineage of a copied artifact digest."""

from __future__ import annotations

from argparse import Namespace

from pluck.commands.output import emit_output
from pluck.errors import ValidationError
from pluck.infrastructure.fingerprint_registry import FingerprintRegistry


def run_fingerprints(
    args: Namespace,
    *,
    registry: FingerprintRegistry | None = None,
    output_sink=print,
) -> int:
    """List every recorded use of a digest."""
    if registry is None:
        raise ValidationError("registry is required; construct it in the CLI composition root")
    digest = (args.digest or "").strip().lower()
    if not digest:
        raise ValidationError("digest must not be empty")

    records = registry.builds_for(digest)
    items = [
        {
            "filename": record.filename,
            "source": str(record.source),
            "destination": str(record.destination) if record.destination else None,
        }
        for record in records
    ]
    human_lines = [f"fingerprints: {digest} uses={len(items)}"]
    human_lines.extend(
        f"  {item['filename']}: {item['source']} -> {item['destination'] or '-'}" for item in items
    )
    emit_output(
        command="fingerprints",
        payload={"digest": digest, "uses": items},
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=human_lines,
    )
    return 0
