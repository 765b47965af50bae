"""Selector contract and the pick loop shared by every variant."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional

from pluck.core import history
from pluck.core.models import BuildRecord, BuildRef, Project
from pluck.core.state import PickState

if TYPE_CHECKING:
    from pluck.core.codec import SpecDecoder

logger = logging.getLogger(__name__)


class BuildSelector(ABC):
    """Proposes candidate builds for a pick operation.

    ``propose`` returns the next candidate, resuming from
    ``state.last_candidate`` when the previous one was declined, or None when
    no candidate is left.
    """

    type_name: ClassVar[str]
    aliases: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def propose(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        ...

    def pick(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        """Propose candidates until the state's filter accepts one.

        A candidate proposed twice ends the loop so a misbehaving selector
        cannot spin forever.
        """
        seen: set[BuildRef] = set()
        while True:
            candidate = self.propose(project, state)
            if candidate is None:
                logger.debug("%s: no more candidates in %s", self.type_name, project.name)
                return None
            if candidate.ref in seen:
                logger.warning(
                    "%s proposed %s twice; stopping selection",
                    self.type_name,
                    candidate.full_display_name,
                )
                return None
            seen.add(candidate.ref)
            state.last_candidate = candidate
            logger.debug("%s proposed %s", self.type_name, candidate.full_display_name)
            if state.build_filter.accepts(candidate, state):
                return candidate
            logger.debug("%s declined by filter", candidate.full_display_name)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildSelector:
        return cls()


class WalkingSelector(BuildSelector):
    """Walks the history newest-first over builds satisfying ``is_candidate``."""

    @abstractmethod
    def is_candidate(self, build: BuildRecord, state: PickState) -> bool:
        ...

    def propose(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        def predicate(build: BuildRecord) -> bool:
            return self.is_candidate(build, state)

        if state.last_candidate is None:
            return history.first_matching(project, predicate)
        return history.next_matching(project, state.last_candidate, predicate)


class OneShotSelector(BuildSelector):
    """Resolves at most one candidate per pick."""

    @abstractmethod
    def resolve(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        ...

    def propose(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        if state.last_candidate is not None:
            return None
        return self.resolve(project, state)
