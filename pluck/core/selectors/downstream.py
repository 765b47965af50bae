"""Selection of the build run as part of a specific upstream execution."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional

from pluck.core.env import expand
from pluck.core.fields import field_value
from pluck.core.models import BuildRecord, Project
from pluck.core.relationships import find_build_by_token, upstream_relationship_build
from pluck.core.selectors.base import BuildSelector, WalkingSelector
from pluck.core.state import PickState
from pluck.errors import UnsupportedTargetError

if TYPE_CHECKING:
    from pluck.core.codec import SpecDecoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownstreamSelector(WalkingSelector):
    """Newest build of the target project belonging to an upstream build.

    A build belongs to the upstream build when the upstream build lists it as a
    sub-build or when its own upstream chain leads to the upstream build. Both
    builds must track relationships; otherwise :class:`UnsupportedTargetError`
    is raised since selection could never succeed.
    """

    upstream_project_name: str
    upstream_build_number: str

    type_name: ClassVar[str] = "downstream"
    aliases: ClassVar[tuple[str, ...]] = ("DownstreamBuildSelector",)

    def propose(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        if self._upstream_build(state) is None:
            return None
        return super().propose(project, state)

    def is_candidate(self, build: BuildRecord, state: PickState) -> bool:
        upstream = self._upstream_build(state)
        if upstream is None:
            return False
        if not build.kind.tracks_relationships:
            raise UnsupportedTargetError(
                f"{build.full_display_name} is a {build.kind.value} build without upstream tracking"
            )
        if build.ref in upstream.sub_builds:
            return True
        ref = upstream_relationship_build(state.store, build, upstream.project)
        if ref is None:
            logger.debug(
                "No upstream build of %s is found for %s", upstream.project, build.full_display_name
            )
            return False
        return ref == upstream.ref

    def _upstream_build(self, state: PickState) -> Optional[BuildRecord]:
        key = (self, "upstream")
        if key in state.extensions:
            return state.extensions[key]
        upstream = self._resolve_upstream(state)
        state.extensions[key] = upstream
        return upstream

    def _resolve_upstream(self, state: PickState) -> Optional[BuildRecord]:
        project_name = expand(self.upstream_project_name, state.env).strip()
        build_token = expand(self.upstream_build_number, state.env).strip()
        if not project_name:
            logger.warning("Upstream project name is empty")
            return None
        if not build_token:
            logger.warning("Upstream build number is empty")
            return None
        if state.store is None or state.store.get_project(project_name) is None:
            logger.warning("Upstream project %r is not found", project_name)
            return None
        upstream = find_build_by_token(state.store, project_name, build_token)
        if upstream is None:
            logger.warning("Upstream build %s of %s is not found", build_token, project_name)
            return None
        if not upstream.kind.tracks_relationships:
            raise UnsupportedTargetError(
                f"{upstream.full_display_name} is a {upstream.kind.value} build without sub-build tracking"
            )
        return upstream

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "upstream_project_name": self.upstream_project_name,
            "upstream_build_number": self.upstream_build_number,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildSelector:
        return cls(
            str(field_value(data, "upstream_project_name", "upstreamProjectName")).strip(),
            str(field_value(data, "upstream_build_number", "upstreamBuildNumber")).strip(),
        )
