"""Pick command - report which build a selector picks."""

from __future__ import annotations

from argparse import Namespace
from dataclasses import dataclass
from typing import Optional

from pluck.commands.output import emit_output, pick_payload
from pluck.core.codec import decode_filter, decode_selector
from pluck.core.filters import BuildFilter
from pluck.core.models import BuildRecord, BuildRef, PickOutcome, PickResult
from pluck.core.picker import pick_build
from pluck.core.selectors.base import BuildSelector
from pluck.errors import ResolutionError, SelectionError, ValidationError
from pluck.infrastructure.project_store import ProjectStore
from pluck.settings import Settings

DEFAULT_SELECTOR = "status"


@dataclass(frozen=True)
class SelectionInputs:
    selector: BuildSelector
    build_filter: Optional[BuildFilter]
    env: dict[str, str]
    copier_build: Optional[BuildRecord]


def parse_env(pairs: Optional[list[str]]) -> dict[str, str]:
    env: dict[str, str] = {}
    for pair in pairs or ():
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ValidationError(f"Expected NAME=VALUE, got {pair!r}")
        env[name.strip()] = value
    return env


def selection_inputs(args: Namespace, store: ProjectStore) -> SelectionInputs:
    """Decode the selection options shared by ``pick`` and ``copy``."""
    selector = decode_selector(getattr(args, "selector", None) or DEFAULT_SELECTOR)
    filter_spec = getattr(args, "filter", None)
    build_filter = decode_filter(filter_spec) if filter_spec else None

    copier_build = None
    copier_project = getattr(args, "copier_project", None)
    if copier_project:
        number = getattr(args, "copier_build", None)
        if number is None:
            raise ValidationError("--copier-build is required with --copier-project")
        copier_build = store.get_build(BuildRef(copier_project, int(number)))
        if copier_build is None:
            raise ValidationError(f"Copier build {copier_project}#{number} not found")

    return SelectionInputs(
        selector=selector,
        build_filter=build_filter,
        env=parse_env(getattr(args, "env", None)),
        copier_build=copier_build,
    )


def exit_code_for_outcome(outcome: PickOutcome) -> int:
    if outcome.result is PickResult.FOUND:
        return 0
    if outcome.result is PickResult.PROJECT_NOT_FOUND:
        return ResolutionError.exit_code
    return SelectionError.exit_code


def run_pick(
    args: Namespace,
    *,
    store: ProjectStore | None = None,
    settings: Settings | None = None,
    output_sink=print,
) -> int:
    """Pick a build and report it."""
    if store is None:
        raise ValidationError("store is required; construct it in the CLI composition root")
    inputs = selection_inputs(args, store)
    outcome = pick_build(
        store,
        args.project,
        inputs.selector,
        inputs.build_filter,
        env=inputs.env,
        copier_build=inputs.copier_build,
        settings=settings,
    )
    if outcome.build is not None:
        human = f"pick: {outcome.build.full_display_name} ({outcome.build.status.value})"
    else:
        human = f"pick: {outcome.result.value} project={outcome.project_name}"
    emit_output(
        command="pick",
        payload=pick_payload(outcome),
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=(human,),
    )
    return exit_code_for_outcome(outcome)
