"""The "copy artifacts" operation as seen by a host build system."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from threading import Event
from typing import Mapping, Optional

from pluck.core.env import expand
from pluck.core.filters import BuildFilter
from pluck.core.models import BuildRecord, CopyResult, PickOutcome, PickResult
from pluck.core.picker import AccessCheck, pick_build
from pluck.core.selectors.base import BuildSelector
from pluck.errors import ProjectNotFound, SelectionError
from pluck.infrastructure.fingerprint_registry import FingerprintRegistry
from pluck.infrastructure.project_store import ProjectStore
from pluck.services.copier import Copier, StreamCopier
from pluck.services.copy_service import copy_artifacts
from pluck.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one copy operation after the optional policy was applied."""

    succeeded: bool
    pick: PickOutcome
    copy: Optional[CopyResult] = None
    message: str = ""


@dataclass(frozen=True)
class CopyArtifactsOperation:
    """Pick a build of ``project_name`` and copy its matching artifacts.

    ``optional`` turns "no build found", a selection the build kinds cannot
    support and "no file copied" into success.
    It never hides resolution errors such as a missing project.
    """

    project_name: str
    selector: BuildSelector
    destination: Path
    build_filter: Optional[BuildFilter] = None
    includes: str = ""
    excludes: str = ""
    target: str = ""
    flatten: bool = False
    optional: bool = False
    fingerprint: Optional[bool] = None
    src_base_dir: Optional[str] = None

    def perform(
        self,
        store: ProjectStore,
        *,
        copier_build: Optional[BuildRecord] = None,
        env: Optional[Mapping[str, str]] = None,
        settings: Optional[Settings] = None,
        registry: Optional[FingerprintRegistry] = None,
        copier: Optional[Copier] = None,
        cancel_event: Optional[Event] = None,
        access_check: Optional[AccessCheck] = None,
    ) -> OperationResult:
        """Run the operation.

        Raises:
            ProjectNotFound: the source project does not exist
            PermissionDenied: ``access_check`` rejected the source project
            IOFailure: scanning or copying failed
            OperationCancelled: ``cancel_event`` was set
        """
        settings = settings or Settings()
        variables: dict[str, str] = {}
        if copier_build is not None:
            variables.update(copier_build.string_parameters())
        variables.update(env or {})

        try:
            outcome = pick_build(
                store,
                self.project_name,
                self.selector,
                self.build_filter,
                env=variables,
                copier_build=copier_build,
                settings=settings,
                access_check=access_check,
            )
        except SelectionError as exc:
            message = f"Unable to select a build for artifact copy from {self.project_name}: {exc}"
            logger.info("%s", message)
            outcome = PickOutcome(PickResult.BUILD_NOT_FOUND, self.project_name, reasons=(str(exc),))
            return OperationResult(succeeded=self.optional, pick=outcome, message=message)
        if outcome.result is PickResult.PROJECT_NOT_FOUND:
            raise ProjectNotFound(f"Unable to find project for artifact copy: {outcome.project_name}")
        if outcome.build is None:
            message = f"Unable to find a build for artifact copy from: {outcome.project_name}"
            logger.info("%s", message)
            return OperationResult(succeeded=self.optional, pick=outcome, message=message)

        source = outcome.build
        fingerprint = settings.fingerprint_artifacts if self.fingerprint is None else self.fingerprint
        destination = self.destination
        target = expand(self.target, variables).strip()
        if target:
            destination = destination / target
        destination_ref = copier_build.ref if copier_build is not None else None

        def on_copied(relative_path: str, digest: Optional[str]) -> None:
            if registry is not None and digest is not None:
                registry.record(digest, relative_path, source.ref, destination_ref)

        result = copy_artifacts(
            source.artifacts,
            destination,
            includes=expand(self.includes, variables) or settings.default_includes,
            excludes=expand(self.excludes, variables),
            flatten=self.flatten,
            fingerprint=fingerprint,
            src_base_dir=expand(self.src_base_dir, variables) if self.src_base_dir else None,
            copier=copier or StreamCopier(settings.digest_algorithm),
            cancel_event=cancel_event,
            case_sensitive=settings.case_sensitive_patterns,
            on_copied=on_copied,
        )
        if registry is not None and result.copied:
            registry.record_copy(source.ref, destination_ref, result.files)

        message = f"Copied {result.count} artifacts from {source.full_display_name}"
        if not result.copied:
            message = f"Failed to copy artifacts from {source.full_display_name}: no matching files"
        return OperationResult(
            succeeded=result.copied or self.optional,
            pick=outcome,
            copy=result,
            message=message,
        )
