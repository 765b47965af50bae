"""Per-invocation selection state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Mapping, Optional

from pluck.core.models import BuildRecord
from pluck.settings import Settings

if TYPE_CHECKING:
    from pluck.core.filters import BuildFilter
    from pluck.infrastructure.project_store import ProjectStore


@dataclass
class PickState:
    """Caller-owned state for one pick operation.

    ``last_candidate`` is the most recently proposed build (accepted or not),
    which lets a selector resume its enumeration after a filter rejection.
    ``extensions`` holds selector-private cursors keyed by selector identity.
    """

    build_filter: "BuildFilter"
    env: Mapping[str, str] = field(default_factory=dict)
    store: Optional["ProjectStore"] = None
    copier_build: Optional[BuildRecord] = None
    settings: Settings = field(default_factory=Settings)
    last_candidate: Optional[BuildRecord] = None
    extensions: dict[Any, Any] = field(default_factory=dict)

    def child(self, build_filter: Optional["BuildFilter"] = None) -> PickState:
        """Fresh state for a nested pick sharing this invocation's context."""
        return replace(
            self,
            build_filter=build_filter if build_filter is not None else self.build_filter,
            last_candidate=None,
            extensions={},
        )
