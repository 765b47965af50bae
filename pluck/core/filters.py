"""Composable predicates applied to proposed candidate builds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import re
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional

from pluck.core import history
from pluck.core.env import expand
from pluck.core.fields import FALSE_STRINGS, TRUE_STRINGS, field_value
from pluck.core.models import BuildRecord, BuildRef
from pluck.core.relationships import matches_build_token, upstream_relationship_build
from pluck.core.state import PickState

if TYPE_CHECKING:
    from pluck.core.codec import SpecDecoder

logger = logging.getLogger(__name__)


class BuildFilter(ABC):
    """Read-only predicate over a candidate build."""

    type_name: ClassVar[str]
    aliases: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        ...

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildFilter:
        return cls()


def _member_filters(data: Mapping[str, Any], decoder: "SpecDecoder") -> tuple[BuildFilter, ...]:
    members = field_value(data, "filters", "filter_list", "filterList", default=[])
    return tuple(decoder.filter(item) for item in members)


@dataclass(frozen=True)
class NoFilter(BuildFilter):
    type_name: ClassVar[str] = "none"
    aliases: ClassVar[tuple[str, ...]] = ("NoBuildFilter",)

    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        return True


@dataclass(frozen=True)
class AndFilter(BuildFilter):
    """Accepts when every member accepts; an empty chain accepts everything."""

    filters: tuple[BuildFilter, ...] = ()

    type_name: ClassVar[str] = "and"
    aliases: ClassVar[tuple[str, ...]] = ("AndBuildFilter",)

    @classmethod
    def of(cls, *filters: Optional[BuildFilter]) -> BuildFilter:
        members: list[BuildFilter] = []
        for item in filters:
            if item is None or isinstance(item, NoFilter):
                continue
            if isinstance(item, AndFilter):
                members.extend(item.filters)
            else:
                members.append(item)
        if not members:
            return NoFilter()
        if len(members) == 1:
            return members[0]
        return cls(tuple(members))

    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        for item in self.filters:
            if not item.accepts(candidate, state):
                logger.debug("%s declined %s", type(item).__name__, candidate.full_display_name)
                return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "filters": [item.to_dict() for item in self.filters]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildFilter:
        return cls(_member_filters(data, decoder))


@dataclass(frozen=True)
class OrFilter(BuildFilter):
    """Accepts when any member accepts; an empty chain accepts nothing."""

    filters: tuple[BuildFilter, ...] = ()

    type_name: ClassVar[str] = "or"
    aliases: ClassVar[tuple[str, ...]] = ("OrBuildFilter",)

    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        return any(item.accepts(candidate, state) for item in self.filters)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "filters": [item.to_dict() for item in self.filters]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildFilter:
        return cls(_member_filters(data, decoder))


@dataclass(frozen=True)
class NotFilter(BuildFilter):
    build_filter: BuildFilter

    type_name: ClassVar[str] = "not"
    aliases: ClassVar[tuple[str, ...]] = ("NotBuildFilter",)

    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        result = self.build_filter.accepts(candidate, state)
        logger.debug("%s: inverted %s -> %s", candidate.full_display_name, result, not result)
        return not result

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "filter": self.build_filter.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildFilter:
        return cls(decoder.filter(field_value(data, "filter", "build_filter", "buildFilter")))


@dataclass(frozen=True)
class SavedFilter(BuildFilter):
    type_name: ClassVar[str] = "saved"
    aliases: ClassVar[tuple[str, ...]] = ("SavedBuildFilter",)

    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        return candidate.keep


_PARAMETER_PAIR = re.compile(r"(.*?)=([^,]*)(,|$)")


def parse_parameter_spec(spec: str) -> list[tuple[str, str, Optional[bool]]]:
    """Parse ``name=value`` pairs; the third item is the boolean reading of the value."""
    pairs: list[tuple[str, str, Optional[bool]]] = []
    for match in _PARAMETER_PAIR.finditer(spec):
        name, value = match.group(1), match.group(2)
        lowered = value.lower()
        boolean: Optional[bool] = None
        if lowered in TRUE_STRINGS:
            boolean = True
        elif lowered in FALSE_STRINGS:
            boolean = False
        pairs.append((name, value, boolean))
    return pairs


def _parameter_matches(actual: Any, value: str, boolean: Optional[bool]) -> bool:
    if isinstance(actual, bool):
        return boolean is not None and actual is boolean
    if isinstance(actual, BuildRef):
        return str(actual.number) == value
    return actual == value


@dataclass(frozen=True)
class ParametersFilter(BuildFilter):
    """Requires every ``name=value`` pair to be present in the build parameters.

    Boolean-looking values also match boolean parameters. A spec that does not
    parse into any pair matches nothing.
    """

    spec: str

    type_name: ClassVar[str] = "parameters"
    aliases: ClassVar[tuple[str, ...]] = ("ParametersBuildFilter",)

    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        pairs = parse_parameter_spec(expand(self.spec, state.env))
        if not pairs:
            logger.warning("Unable to parse parameter filter %r", self.spec)
            return False
        for name, value, boolean in pairs:
            if name not in candidate.parameters:
                return False
            if not _parameter_matches(candidate.parameters[name], value, boolean):
                return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "spec": self.spec}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildFilter:
        return cls(str(field_value(data, "spec", "params_to_match", "paramsToMatch")))


@dataclass(frozen=True)
class DownstreamFilter(BuildFilter):
    """Accepts builds that descend from a given upstream build."""

    upstream_project_name: str
    upstream_build_number: str

    type_name: ClassVar[str] = "downstream"
    aliases: ClassVar[tuple[str, ...]] = ("DownstreamBuildFilter",)

    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        if not candidate.kind.tracks_relationships:
            logger.info(
                "Downstream filter only applies to builds tracking relationships: %s is %s",
                candidate.full_display_name,
                candidate.kind.value,
            )
            return False
        project_name = expand(self.upstream_project_name, state.env).strip()
        build_token = expand(self.upstream_build_number, state.env).strip()
        if not project_name or not build_token:
            logger.info("Downstream filter: upstream project or build number is empty")
            return False
        if state.store is None or state.store.get_project(project_name) is None:
            logger.info("Downstream filter: upstream project %r is not found", project_name)
            return False
        ref = upstream_relationship_build(state.store, candidate, project_name)
        if ref is None:
            logger.debug(
                "No upstream build of %s found for %s", project_name, candidate.full_display_name
            )
            return False
        upstream = state.store.get_build(ref)
        if upstream is None:
            return history.parse_build_number(build_token) == ref.number
        return matches_build_token(upstream, build_token)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "upstream_project_name": self.upstream_project_name,
            "upstream_build_number": self.upstream_build_number,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildFilter:
        return cls(
            str(field_value(data, "upstream_project_name", "upstreamProjectName", default="")).strip(),
            str(field_value(data, "upstream_build_number", "upstreamBuildNumber", default="")).strip(),
        )


@dataclass(frozen=True)
class ParameterizedFilter(BuildFilter):
    """Reads a filter spec from a run-time variable; a blank spec accepts everything."""

    parameter: str

    type_name: ClassVar[str] = "parameterized"
    aliases: ClassVar[tuple[str, ...]] = ("ParameterizedBuildFilter",)

    def accepts(self, candidate: BuildRecord, state: PickState) -> bool:
        from pluck.core.codec import parse_filter

        text = expand(self.parameter, state.env)
        logger.debug("Expanded build filter: %s", text)
        if not text.strip():
            return True
        build_filter = parse_filter(text)
        if build_filter is None:
            return False
        return build_filter.accepts(candidate, state)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "parameter": self.parameter}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildFilter:
        return cls(str(field_value(data, "parameter", default="")))


FILTER_TYPES: tuple[type[BuildFilter], ...] = (
    NoFilter,
    AndFilter,
    OrFilter,
    NotFilter,
    SavedFilter,
    ParametersFilter,
    DownstreamFilter,
    ParameterizedFilter,
)
