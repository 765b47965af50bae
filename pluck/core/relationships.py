"""Upstream/downstream relationships between builds of different projects."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from pluck.core import history
from pluck.core.models import BuildRecord, BuildRef

if TYPE_CHECKING:
    from pluck.infrastructure.project_store import ProjectStore

logger = logging.getLogger(__name__)


def matches_build_token(build: BuildRecord, token: str) -> bool:
    """True if ``token`` names ``build`` by number, build id or display name."""
    token = token.strip()
    if history.parse_build_number(token) == build.number:
        return True
    return token == build.build_id or token == build.display_name


def find_build_by_token(store: "ProjectStore", project_name: str, token: str) -> Optional[BuildRecord]:
    project = store.get_project(project_name)
    if project is None:
        return None
    token = token.strip()
    number = history.parse_build_number(token)
    if number is not None:
        found = history.by_number(project, number)
        if found is not None:
            return found
    return history.by_id(project, token) or history.by_display_name(project, token)


def upstream_relationship_build(
    store: Optional["ProjectStore"],
    build: BuildRecord,
    upstream_project: str,
) -> Optional[BuildRef]:
    """Find the build of ``upstream_project`` that ``build`` descends from.

    Direct upstream references win, then dependency links, then references
    reached through intermediate upstream builds. When several builds of
    ``upstream_project`` are reachable the newest one is returned.
    """
    visited: set[BuildRef] = {build.ref}
    frontier: list[BuildRecord] = [build]
    while frontier:
        found: list[BuildRef] = []
        following: list[BuildRecord] = []
        for current in frontier:
            for ref in current.upstream + current.upstream_dependencies:
                if ref in visited:
                    continue
                visited.add(ref)
                if ref.project == upstream_project:
                    found.append(ref)
                    continue
                intermediate = _load(store, ref)
                if intermediate is not None:
                    following.append(intermediate)
        if found:
            return max(found, key=lambda ref: ref.number)
        frontier = following
    return None


def _load(store: Optional["ProjectStore"], ref: BuildRef) -> Optional[BuildRecord]:
    if store is None:
        return None
    project = store.get_project(ref.project)
    if project is None:
        logger.debug("Upstream project %s is not available", ref.project)
        return None
    return history.by_number(project, ref.number)
