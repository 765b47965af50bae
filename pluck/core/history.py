"""Newest-first traversal and direct lookups over a project's build history."""

from __future__ import annotations

from enum import Enum
import re
from typing import Callable, Iterator, Optional, Sequence

from pluck.core.models import BuildRecord, BuildStatus, Project

BuildPredicate = Callable[[BuildRecord], bool]

_BUILD_NUMBER = re.compile(r"[0-9]+")


def ANY(build: BuildRecord) -> bool:
    return True


def COMPLETED(build: BuildRecord) -> bool:
    return build.is_completed


def status_in(*statuses: BuildStatus) -> BuildPredicate:
    allowed = frozenset(statuses)

    def _predicate(build: BuildRecord) -> bool:
        return build.status in allowed

    return _predicate


class StatusFilter(str, Enum):
    """Status classes understood by status-based selection.

    The names are historical: STABLE means success only and SUCCESSFUL means
    success or unstable.
    """

    STABLE = "stable"
    SUCCESSFUL = "successful"
    UNSTABLE = "unstable"
    FAILED = "failed"
    COMPLETED = "completed"
    ANY = "any"

    @classmethod
    def parse(cls, value: str) -> StatusFilter:
        return cls(value.strip().lower())


STATUS_PREDICATES: dict[StatusFilter, BuildPredicate] = {
    StatusFilter.STABLE: status_in(BuildStatus.SUCCESS),
    StatusFilter.SUCCESSFUL: status_in(BuildStatus.SUCCESS, BuildStatus.UNSTABLE),
    StatusFilter.UNSTABLE: status_in(BuildStatus.UNSTABLE),
    StatusFilter.FAILED: status_in(BuildStatus.FAILURE),
    StatusFilter.COMPLETED: COMPLETED,
    StatusFilter.ANY: ANY,
}


def _first_at_or_above(builds: Sequence[BuildRecord], number: int) -> int:
    """Index of the first build numbered ``number`` or higher."""
    low, high = 0, len(builds)
    while low < high:
        middle = (low + high) // 2
        if builds[middle].number < number:
            low = middle + 1
        else:
            high = middle
    return low


def newest_first(project: Project, before: Optional[int] = None) -> Iterator[BuildRecord]:
    """Yield builds newest-first, optionally only those numbered below ``before``."""
    end = len(project.builds)
    if before is not None:
        end = _first_at_or_above(project.builds, before)
    for index in range(end - 1, -1, -1):
        yield project.builds[index]


def first_matching(project: Project, predicate: BuildPredicate = ANY) -> Optional[BuildRecord]:
    return next((build for build in newest_first(project) if predicate(build)), None)


def next_matching(
    project: Project,
    previous: BuildRecord,
    predicate: BuildPredicate = ANY,
) -> Optional[BuildRecord]:
    """Nearest build strictly older than ``previous`` satisfying ``predicate``."""
    return next(
        (build for build in newest_first(project, before=previous.number) if predicate(build)),
        None,
    )


def parse_build_number(token: str) -> Optional[int]:
    """The build number spelled by ``token`` in ASCII digits, else None."""
    if _BUILD_NUMBER.fullmatch(token) is None:
        return None
    return int(token)


def by_number(project: Project, number: int) -> Optional[BuildRecord]:
    index = _first_at_or_above(project.builds, number)
    if index < len(project.builds) and project.builds[index].number == number:
        return project.builds[index]
    return None


def by_id(project: Project, build_id: str) -> Optional[BuildRecord]:
    return first_matching(project, lambda build: build.build_id == build_id)


def by_display_name(project: Project, display_name: str) -> Optional[BuildRecord]:
    return first_matching(project, lambda build: build.display_name == display_name)


def latest_kept(project: Project) -> Optional[BuildRecord]:
    return first_matching(project, lambda build: build.keep)


def _last_unsuccessful(build: BuildRecord) -> bool:
    return build.is_completed and build.status is not BuildStatus.SUCCESS


BUILTIN_PERMALINKS: dict[str, BuildPredicate] = {
    "lastBuild": ANY,
    "lastStableBuild": STATUS_PREDICATES[StatusFilter.STABLE],
    "lastSuccessfulBuild": STATUS_PREDICATES[StatusFilter.SUCCESSFUL],
    "lastFailedBuild": STATUS_PREDICATES[StatusFilter.FAILED],
    "lastUnstableBuild": STATUS_PREDICATES[StatusFilter.UNSTABLE],
    "lastUnsuccessfulBuild": _last_unsuccessful,
    "lastCompletedBuild": COMPLETED,
}


def resolve_permalink(project: Project, permalink_id: str) -> Optional[BuildRecord]:
    """Resolve a symbolic build id; unknown ids resolve to None."""
    predicate = BUILTIN_PERMALINKS.get(permalink_id)
    if predicate is not None:
        return first_matching(project, predicate)
    number = project.permalinks.get(permalink_id)
    if number is None:
        return None
    return by_number(project, number)
