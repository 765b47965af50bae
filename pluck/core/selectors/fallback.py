"""Selection trying several selector/filter pairs in order."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional

from pluck.core.fields import field_value
from pluck.core.filters import AndFilter, BuildFilter, NoFilter
from pluck.core.models import BuildRecord, Project
from pluck.core.selectors.base import BuildSelector, OneShotSelector
from pluck.core.state import PickState

if TYPE_CHECKING:
    from pluck.core.codec import SpecDecoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackEntry:
    selector: BuildSelector
    build_filter: BuildFilter = field(default_factory=NoFilter)

    def to_dict(self) -> dict[str, Any]:
        return {"selector": self.selector.to_dict(), "filter": self.build_filter.to_dict()}


@dataclass(frozen=True)
class FallbackSelector(OneShotSelector):
    """First build picked by any entry.

    Each entry starts from scratch with its own filter combined with the
    operation's filter.
    """

    entries: tuple[FallbackEntry, ...] = ()

    type_name: ClassVar[str] = "fallback"
    aliases: ClassVar[tuple[str, ...]] = ("FallbackBuildSelector",)

    @classmethod
    def of(cls, *selectors: BuildSelector) -> FallbackSelector:
        return cls(tuple(FallbackEntry(selector) for selector in selectors))

    def resolve(self, project: Project, state: PickState) -> Optional[BuildRecord]:
        for entry in self.entries:
            child = state.child(AndFilter.of(state.build_filter, entry.build_filter))
            logger.debug("Trying %s", entry.selector.type_name)
            candidate = entry.selector.pick(project, child)
            if candidate is not None:
                return candidate
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "entries": [entry.to_dict() for entry in self.entries]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decoder: "SpecDecoder") -> BuildSelector:
        entries: list[FallbackEntry] = []
        for item in field_value(data, "entries", "entry_list", "entryList"):
            selector = decoder.selector(field_value(item, "selector", "build_selector", "buildSelector"))
            raw_filter = field_value(item, "filter", "build_filter", "buildFilter", default=None)
            build_filter = decoder.filter(raw_filter) if raw_filter is not None else NoFilter()
            entries.append(FallbackEntry(selector, build_filter))
        return cls(tuple(entries))
