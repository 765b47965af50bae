"""Status-based selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Mapping

from pluck.core.fields import field_value, parse_bool
from pluck.core.history import STATUS_PREDICATES, StatusFilter
from pluck.core.models import BuildRecord
from pluck.core.selectors.base import BuildSelector, WalkingSelector
from pluck.core.state import PickState

if TYPE_CHECKING:
    from pluck.core.codec import SpecDecoder


@dataclass(frozen=True)
class StatusSelector(WalkingSelector):
    """Newest build whose status falls into ``status``."""

    status: StatusFilter = StatusFilter.STABLE

    type_name: ClassVar[str] = "status"
    aliases: ClassVar[tuple[str, ...]] = ("StatusBuildSelector",)

    def is_candidate(self, build: BuildRecord, state: PickState) -> bool:
        return STATUS_PREDICATES[self.status](build)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "status": self.status.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildSelector:
        status = field_value(data, "status", "build_status", "buildStatus", default=None)
        if status is not None:
            return cls(StatusFilter.parse(str(status)))
        # Version 1 specs only carried a boolean: stable or merely successful.
        stable = parse_bool(field_value(data, "stable", default=True))
        return cls(StatusFilter.STABLE if stable else StatusFilter.SUCCESSFUL)
