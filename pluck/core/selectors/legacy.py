"""Adapter for selectors written against the predicate-only contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Mapping, Optional

from pluck.core import history
from pluck.core.models import BuildRecord, Project
from pluck.core.selectors.base import OneShotSelector
from pluck.core.state import PickState
from pluck.errors import SpecError

LegacyPredicate = Callable[[BuildRecord, Mapping[str, str]], bool]


@dataclass(frozen=True)
class LegacySelector(OneShotSelector):
    """Wraps an ``is_selectable(build, env)`` predicate.

    The newest completed build accepted by both the predicate and the
    operation's filter is proposed, once.
    """

    is_selectable: LegacyPredicate

    type_name: ClassVar[str] = "legacy"

    @classmethod
    def wrap(cls, selector: Any) -> LegacySelector:
        """Adapt an object exposing an ``is_selectable(build, env)`` method."""
        return cls(selector.is_selectable)

    def resolve(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        def predicate(build: BuildRecord) -> bool:
            return (
                build.is_completed
                and self.is_selectable(build, state.env)
                and state.build_filter.accepts(build, state)
            )

        return history.first_matching(project, predicate)

    def to_dict(self) -> dict[str, Any]:
        raise SpecError("Legacy predicate selectors cannot be serialized")
