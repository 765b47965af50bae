"""Pick the build to copy artifacts from."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Mapping, Optional

from pluck.core.env import expand
from pluck.core.filters import AndFilter, BuildFilter, ParametersFilter
from pluck.core.models import BuildRecord, PickOutcome, PickResult, Project
from pluck.core.selectors.base import BuildSelector
from pluck.core.state import PickState
from pluck.errors import PermissionDenied
from pluck.settings import Settings

if TYPE_CHECKING:
    from pluck.infrastructure.project_store import ProjectStore

logger = logging.getLogger(__name__)

AccessCheck = Callable[[Project], bool]


def split_parameter_suffix(
    store: "ProjectStore", project_name: str
) -> tuple[Optional[Project], Optional[ParametersFilter]]:
    """Resolve ``project/NAME=value,...`` names.

    A name that is not itself a project may carry a parameter filter after the
    first ``/`` that leaves a known project name on its left.
    """
    project = store.get_project(project_name)
    if project is not None:
        return project, None
    index = project_name.find("/")
    while index > 0:
        prefix, suffix = project_name[:index], project_name[index + 1:]
        if "=" in suffix:
            project = store.get_project(prefix)
            if project is not None:
                return project, ParametersFilter(suffix)
        index = project_name.find("/", index + 1)
    return None, None


def pick_build(
    store: "ProjectStore",
    project_name: str,
    selector: BuildSelector,
    build_filter: Optional[BuildFilter] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    copier_build: Optional[BuildRecord] = None,
    settings: Optional[Settings] = None,
    access_check: Optional[AccessCheck] = None,
) -> PickOutcome:
    """Pick the build of ``project_name`` selected by ``selector`` and ``build_filter``.

    Returns:
        PickOutcome with FOUND and the build, BUILD_NOT_FOUND when the selector
        ran out of candidates, or PROJECT_NOT_FOUND when the name resolves to no
        project.

    Raises:
        PermissionDenied: ``access_check`` rejected the project
        UnsupportedTargetError: the selector cannot work on the build kinds
            involved
    """
    variables: dict[str, str] = {}
    if copier_build is not None:
        variables.update(copier_build.string_parameters())
    variables.update(env or {})

    expanded = expand(project_name, variables).strip()
    if not expanded:
        return PickOutcome(PickResult.PROJECT_NOT_FOUND, project_name, reasons=("empty project name",))

    project, parameter_filter = split_parameter_suffix(store, expanded)
    if project is None:
        logger.info("Project %s not found", expanded)
        return PickOutcome(PickResult.PROJECT_NOT_FOUND, expanded, reasons=("project not found",))
    if access_check is not None and not access_check(project):
        raise PermissionDenied(f"Permission denied to read project {project.name}")

    state = PickState(
        build_filter=AndFilter.of(build_filter, parameter_filter),
        env=variables,
        store=store,
        copier_build=copier_build,
        settings=settings or Settings(),
    )
    build = selector.pick(project, state)
    if build is None:
        logger.info("No build of %s matched %s", project.name, selector.type_name)
        return PickOutcome(
            PickResult.BUILD_NOT_FOUND,
            project.name,
            reasons=(f"no build matched selector {selector.type_name}",),
        )
    logger.debug("Picked %s", build.full_display_name)
    return PickOutcome(PickResult.FOUND, project.name, build=build)
