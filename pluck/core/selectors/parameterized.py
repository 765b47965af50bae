"""Selection delegated to a selector spec held in a run-time variable."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional

from pluck.core import history
from pluck.core.env import variable_name
from pluck.core.fields import field_value
from pluck.core.models import BuildRecord, BuildRef, Project
from pluck.core.selectors.base import BuildSelector, OneShotSelector
from pluck.core.state import PickState

if TYPE_CHECKING:
    from pluck.core.codec import SpecDecoder

logger = logging.getLogger(__name__)

_INLINE_SPEC_PREFIXES = ("{", "<")


@dataclass(frozen=True)
class ParameterizedSelector(OneShotSelector):
    """Reads a selector spec from ``parameter_name`` and picks with it.

    ``parameter_name`` may be a bare name, ``$NAME``, ``${NAME}`` or an inline
    spec. A build-typed parameter of the same name on the copier build naming
    the target project selects that build directly.
    """

    parameter_name: str

    type_name: ClassVar[str] = "parameterized"
    aliases: ClassVar[tuple[str, ...]] = ("ParameterizedBuildSelector",)

    def resolve(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        from pluck.core.codec import parse_selector

        name = variable_name(self.parameter_name) or self.parameter_name.strip()
        referenced = self._referenced_build(name, state)
        if referenced is not None:
            if referenced.project != project.name:
                logger.warning(
                    "Build parameter %s refers to %s, not to project %s",
                    name,
                    referenced,
                    project.name,
                )
                return None
            return history.by_number(project, referenced.number)

        text = state.env.get(name)
        if text is None and name.startswith(_INLINE_SPEC_PREFIXES):
            text = name
        if text is None or not text.strip():
            logger.warning("Parameter %s holds no build selector", name)
            return None
        selector = parse_selector(text)
        if selector is None:
            return None
        logger.debug("Delegating to %s from parameter %s", selector.type_name, name)
        return selector.pick(project, state.child())

    @staticmethod
    def _referenced_build(name: str, state: PickState) -> Optional[BuildRef]:
        if state.copier_build is None:
            return None
        value = state.copier_build.parameters.get(name)
        return value if isinstance(value, BuildRef) else None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "parameter_name": self.parameter_name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildSelector:
        return cls(str(field_value(data, "parameter_name", "parameterName")))
