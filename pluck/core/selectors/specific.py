"""Selection of one build named by number, id, display name or permalink."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional

from pluck.core import history
from pluck.core.env import contains_variable, expand
from pluck.core.fields import field_value
from pluck.core.models import BuildRecord, Project
from pluck.core.selectors.base import BuildSelector, OneShotSelector
from pluck.core.state import PickState

if TYPE_CHECKING:
    from pluck.core.codec import SpecDecoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpecificSelector(OneShotSelector):
    """A build named by number, permalink, build id or display name.

    ``build_number`` may reference run-time variables. A token that is blank
    or still holds an unexpanded variable after expansion selects nothing.
    """

    build_number: str

    type_name: ClassVar[str] = "specific"
    aliases: ClassVar[tuple[str, ...]] = ("SpecificBuildSelector",)

    def resolve(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        token = expand(self.build_number, state.env).strip()
        if not token:
            logger.debug("Specific build number is empty")
            return None
        if contains_variable(token):
            logger.debug("Specific build number %r has unresolved variables", token)
            return None
        number = history.parse_build_number(token)
        if number is not None:
            return history.by_number(project, number)
        return (
            history.resolve_permalink(project, token)
            or history.by_id(project, token)
            or history.by_display_name(project, token)
        )

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "build_number": self.build_number}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildSelector:
        return cls(str(field_value(data, "build_number", "buildNumber")))


@dataclass(frozen=True)
class PermalinkSelector(OneShotSelector):
    """A build named by a symbolic permalink such as ``lastSuccessfulBuild``."""

    permalink_id: str

    type_name: ClassVar[str] = "permalink"
    aliases: ClassVar[tuple[str, ...]] = ("PermalinkBuildSelector",)

    def resolve(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        return history.resolve_permalink(project, expand(self.permalink_id, state.env).strip())

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "id": self.permalink_id}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildSelector:
        return cls(str(field_value(data, "id", "permalink_id", "permalinkId")))
