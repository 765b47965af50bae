"""Selectors walking completed builds with a fixed predicate."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from pluck.core.models import BuildRecord
from pluck.core.selectors.base import WalkingSelector
from pluck.core.state import PickState


@dataclass(frozen=True)
class SavedSelector(WalkingSelector):
    """Newest completed build marked to be kept."""

    type_name: ClassVar[str] = "saved"
    aliases: ClassVar[tuple[str, ...]] = ("SavedBuildSelector",)

    def is_candidate(self, build: BuildRecord, state: PickState) -> bool:
        return build.is_completed and build.keep


@dataclass(frozen=True)
class LastWithArtifactsSelector(WalkingSelector):
    """Newest completed build with a non-empty artifact tree."""

    type_name: ClassVar[str] = "last_with_artifacts"
    aliases: ClassVar[tuple[str, ...]] = ("LastBuildWithArtifactSelector", "lastWithArtifacts")

    def is_candidate(self, build: BuildRecord, state: PickState) -> bool:
        return build.is_completed and build.has_artifacts


@dataclass(frozen=True)
class LastCompletedSelector(WalkingSelector):
    type_name: ClassVar[str] = "last_completed"
    aliases: ClassVar[tuple[str, ...]] = ("LastCompletedBuildSelector", "lastCompleted")

    def is_candidate(self, build: BuildRecord, state: PickState) -> bool:
        return build.is_completed
