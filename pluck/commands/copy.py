"""Copy command - pick a build and copy its matching artifacts."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from pluck.commands.output import emit_output, pick_payload
from pluck.commands.pick import selection_inputs
from pluck.errors import RuntimeFailure, SelectionError, ValidationError
from pluck.infrastructure.fingerprint_registry import FingerprintRegistry
from pluck.infrastructure.project_store import ProjectStore
from pluck.operation import CopyArtifactsOperation
from pluck.settings import Settings


def run_copy(
    args: Namespace,
    *,
    store: ProjectStore | None = None,
    settings: Settings | None = None,
    registry: FingerprintRegistry | None = None,
    output_sink=print,
) -> int:
    """Copy artifacts of the picked build into ``args.target``."""
    if store is None:
        raise ValidationError("store is required; construct it in the CLI composition root")
    inputs = selection_inputs(args, store)
    fingerprint = False if getattr(args, "no_fingerprint", False) else None
    operation = CopyArtifactsOperation(
        project_name=args.project,
        selector=inputs.selector,
        destination=Path(args.target),
        build_filter=inputs.build_filter,
        includes=getattr(args, "includes", None) or "",
        excludes=getattr(args, "excludes", None) or "",
        flatten=getattr(args, "flatten", False),
        optional=getattr(args, "optional", False),
        fingerprint=fingerprint,
        src_base_dir=getattr(args, "src_base_dir", None),
    )
    result = operation.perform(
        store,
        copier_build=inputs.copier_build,
        env=inputs.env,
        settings=settings,
        registry=registry,
    )

    payload = {
        "pick": pick_payload(result.pick),
        "succeeded": result.succeeded,
        "message": result.message,
        "count": result.copy.count if result.copy else 0,
        "files": list(result.copy.files) if result.copy else [],
        "digests": dict(result.copy.digests) if result.copy else {},
    }
    human_lines = [f"copy: {result.message}"]
    if result.copy:
        human_lines.extend(f"  {path}" for path in result.copy.files)
    emit_output(
        command="copy",
        payload=payload,
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=human_lines,
    )
    if result.succeeded:
        return 0
    if result.pick.build is None:
        return SelectionError.exit_code
    return RuntimeFailure.exit_code
