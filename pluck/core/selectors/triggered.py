"""Selection of the upstream build that triggered the copier build."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Iterator, Mapping, Optional

from pluck.core import history
from pluck.core.fields import bool_field, field_value
from pluck.core.models import BuildRecord, BuildRef, BuildStatus, Project
from pluck.core.selectors.base import BuildSelector
from pluck.core.state import PickState

if TYPE_CHECKING:
    from pluck.core.codec import SpecDecoder

logger = logging.getLogger(__name__)


class UpstreamFilterStrategy(str, Enum):
    """Order in which multiple triggering builds are proposed."""

    GLOBAL = "global"
    OLDEST = "oldest"
    NEWEST = "newest"

    @classmethod
    def parse(cls, value: str) -> UpstreamFilterStrategy:
        lowered = value.strip().lower()
        legacy = {"useglobalsetting": "global", "useoldest": "oldest", "usenewest": "newest"}
        return cls(legacy.get(lowered, lowered))


@dataclass
class _Cursor:
    upstream: Iterator[BuildRecord]
    proposed: set[BuildRef]
    fallback_from: Optional[BuildRecord] = None
    in_fallback: bool = False


@dataclass(frozen=True)
class TriggeredSelector(BuildSelector):
    """Builds of the target project that caused the copier build to run.

    Upstream references are followed through intermediate projects. With
    several triggering builds they are proposed newest- or oldest-first per
    ``upstream_filter_strategy``. When all of them are declined and
    ``fallback_to_last_successful`` is set, the last successful builds of the
    target project are proposed next, skipping ones already proposed.
    """

    upstream_filter_strategy: UpstreamFilterStrategy = UpstreamFilterStrategy.GLOBAL
    allow_upstream_dependencies: bool = False
    fallback_to_last_successful: bool = False

    type_name: ClassVar[str] = "triggered"
    aliases: ClassVar[tuple[str, ...]] = ("TriggeredBuildSelector", "TriggeringBuildSelector")

    def use_newest(self, state: PickState) -> bool:
        strategy = self.upstream_filter_strategy
        if strategy is UpstreamFilterStrategy.GLOBAL:
            return state.settings.upstream_filter_strategy == UpstreamFilterStrategy.NEWEST.value
        return strategy is UpstreamFilterStrategy.NEWEST

    def propose(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        cursor = state.extensions.get(self)
        if cursor is None:
            builds = self.upstream_builds(project, state)
            builds.sort(key=lambda build: build.number, reverse=self.use_newest(state))
            logger.debug(
                "Triggering builds of %s: %s",
                project.name,
                ", ".join(str(build.number) for build in builds) or "none",
            )
            cursor = _Cursor(upstream=iter(builds), proposed=set())
            state.extensions[self] = cursor

        if not cursor.in_fallback:
            build = next(cursor.upstream, None)
            if build is not None:
                cursor.proposed.add(build.ref)
                return build
            if not self.fallback_to_last_successful:
                return None
            logger.debug("No triggering build accepted; falling back to last successful build")
            cursor.in_fallback = True

        return self._next_fallback(project, cursor)

    def _next_fallback(self, project: Project, cursor: _Cursor) -> Optional[BuildRecord]:
        def predicate(build: BuildRecord) -> bool:
            return build.status is BuildStatus.SUCCESS and build.ref not in cursor.proposed

        if cursor.fallback_from is None:
            build = history.first_matching(project, predicate)
        else:
            build = history.next_matching(project, cursor.fallback_from, predicate)
        cursor.fallback_from = build
        return build

    def upstream_builds(self, project: Project, state: PickState) -> list[BuildRecord]:
        """All builds of ``project`` reachable through the copier build's upstream chain."""
        if state.copier_build is None:
            return []
        found: dict[BuildRef, BuildRecord] = {}
        visited: set[BuildRef] = {state.copier_build.ref}
        pending: list[BuildRecord] = [state.copier_build]
        while pending:
            current = pending.pop()
            refs = current.upstream
            if self.allow_upstream_dependencies:
                refs = refs + current.upstream_dependencies
            for ref in refs:
                if ref in visited:
                    continue
                visited.add(ref)
                if ref.project == project.name:
                    build = history.by_number(project, ref.number)
                    if build is not None:
                        found[ref] = build
                    continue
                intermediate = self._load(ref, state)
                if intermediate is not None:
                    pending.append(intermediate)
        return list(found.values())

    @staticmethod
    def _load(ref: BuildRef, state: PickState) -> Optional[BuildRecord]:
        if state.store is None:
            return None
        upstream_project = state.store.get_project(ref.project)
        if upstream_project is None:
            return None
        return history.by_number(upstream_project, ref.number)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "upstream_filter_strategy": self.upstream_filter_strategy.value,
            "allow_upstream_dependencies": self.allow_upstream_dependencies,
            "fallback_to_last_successful": self.fallback_to_last_successful,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildSelector:
        strategy = field_value(data, "upstream_filter_strategy", "upstreamFilterStrategy", default="global")
        return cls(
            upstream_filter_strategy=UpstreamFilterStrategy.parse(str(strategy)),
            allow_upstream_dependencies=bool_field(
                data, "allow_upstream_dependencies", "allowUpstreamDependencies"
            ),
            fallback_to_last_successful=bool_field(
                data, "fallback_to_last_successful", "fallbackToLastSuccessful", "fallback"
            ),
        )
