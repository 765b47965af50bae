"""Core data models for build selection and artifact copying."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from pluck.infrastructure.virtual_fs import VirtualFile


class BuildStatus(str, Enum):
    """Completion status of a build record."""

    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    ABORTED = "ABORTED"
    NOT_BUILT = "NOT_BUILT"

    @property
    def is_completed(self) -> bool:
        return self is not BuildStatus.IN_PROGRESS

    @classmethod
    def parse(cls, value: str) -> BuildStatus:
        normalized = value.strip().upper().replace("-", "_").replace(" ", "_")
        return cls(normalized)


class BuildKind(str, Enum):
    """Whether a build records structured upstream/sub-build relationships."""

    STANDARD = "standard"
    WORKFLOW = "workflow"

    @property
    def tracks_relationships(self) -> bool:
        return self is BuildKind.STANDARD


@dataclass(frozen=True)
class BuildRef:
    """Reference to a build by project name and number.

    Used for upstream-trigger references, sub-build entries and build-typed
    parameter values.
    """

    project: str
    number: int

    def __str__(self) -> str:
        return f"{self.project}#{self.number}"


ParameterValue = Union[str, bool, BuildRef]


@dataclass(frozen=True)
class BuildRecord:
    """Immutable snapshot of one execution of a project."""

    project: str
    number: int
    status: BuildStatus = BuildStatus.SUCCESS
    keep: bool = False
    upstream: tuple[BuildRef, ...] = ()
    upstream_dependencies: tuple[BuildRef, ...] = ()
    parameters: dict[str, ParameterValue] = field(default_factory=dict)
    artifacts: Optional["VirtualFile"] = None
    display_name: Optional[str] = None
    build_id: Optional[str] = None
    kind: BuildKind = BuildKind.STANDARD
    sub_builds: tuple[BuildRef, ...] = ()

    def __post_init__(self) -> None:
        if self.display_name is None:
            object.__setattr__(self, "display_name", f"#{self.number}")
        if self.build_id is None:
            object.__setattr__(self, "build_id", str(self.number))

    @property
    def ref(self) -> BuildRef:
        return BuildRef(self.project, self.number)

    @property
    def full_display_name(self) -> str:
        return f"{self.project} {self.display_name}"

    @property
    def is_completed(self) -> bool:
        return self.status.is_completed

    @property
    def has_artifacts(self) -> bool:
        """True if the artifact root exists and holds at least one entry."""
        if self.artifacts is None or not self.artifacts.exists():
            return False
        return bool(self.artifacts.list())

    def string_parameters(self) -> dict[str, str]:
        """Parameters usable as environment variables."""
        env: dict[str, str] = {}
        for name, value in self.parameters.items():
            if isinstance(value, bool):
                env[name] = "true" if value else "false"
            elif isinstance(value, BuildRef):
                env[name] = str(value.number)
            else:
                env[name] = value
        return env


@dataclass
class Project:
    """A build-producing unit with an append-only build history.

    ``builds`` is ordered by increasing number; traversal is newest-first.
    """

    name: str
    builds: list[BuildRecord] = field(default_factory=list)
    permalinks: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        previous: Optional[int] = None
        for build in self.builds:
            self._check_build(build, previous)
            previous = build.number

    def add_build(self, build: BuildRecord) -> BuildRecord:
        previous = self.builds[-1].number if self.builds else None
        self._check_build(build, previous)
        self.builds.append(build)
        return build

    def _check_build(self, build: BuildRecord, previous: Optional[int]) -> None:
        if build.project != self.name:
            raise ValueError(f"Build {build.ref} does not belong to project {self.name}")
        if previous is not None and build.number <= previous:
            raise ValueError(
                f"Build numbers must strictly increase: {build.number} after {previous}"
            )


class PickResult(str, Enum):
    """Tri-state outcome of a pick operation."""

    FOUND = "FOUND"
    BUILD_NOT_FOUND = "BUILD_NOT_FOUND"
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"


@dataclass(frozen=True)
class PickOutcome:
    """Result of attempting to pick the build to copy from."""

    result: PickResult
    project_name: str
    build: Optional[BuildRecord] = None
    reasons: tuple[str, ...] = ()

    @property
    def found(self) -> bool:
        return self.result is PickResult.FOUND


@dataclass
class CopyResult:
    """Files copied by one copy operation.

    ``digests`` is keyed by the relative path inside the artifact root and only
    holds entries for fingerprinted files.
    """

    count: int = 0
    files: list[str] = field(default_factory=list)
    digests: dict[str, str] = field(default_factory=dict)

    @property
    def copied(self) -> bool:
        return self.count > 0

    def add(self, relative_path: str, digest: Optional[str] = None) -> None:
        self.count += 1
        self.files.append(relative_path)
        if digest is not None:
            self.digests[relative_path] = digest
