"""Build selector variants."""

from pluck.core.selectors.base import BuildSelector, OneShotSelector, WalkingSelector
from pluck.core.selectors.downstream import DownstreamSelector
from pluck.core.selectors.fallback import FallbackEntry, FallbackSelector
from pluck.core.selectors.legacy import LegacySelector
from pluck.core.selectors.parameterized import ParameterizedSelector
from pluck.core.selectors.simple import LastCompletedSelector, LastWithArtifactsSelector, SavedSelector
from pluck.core.selectors.specific import PermalinkSelector, SpecificSelector
from pluck.core.selectors.status import StatusSelector
from pluck.core.selectors.triggered import TriggeredSelector, UpstreamFilterStrategy

SELECTOR_TYPES: tuple[type[BuildSelector], ...] = (
    StatusSelector,
    SpecificSelector,
    PermalinkSelector,
    ParameterizedSelector,
    TriggeredSelector,
    DownstreamSelector,
    SavedSelector,
    LastWithArtifactsSelector,
    LastCompletedSelector,
    FallbackSelector,
)

__all__ = [
    "BuildSelector",
    "DownstreamSelector",
    "FallbackEntry",
    "FallbackSelector",
    "LastCompletedSelector",
    "LastWithArtifactsSelector",
    "LegacySelector",
    "OneShotSelector",
    "ParameterizedSelector",
    "PermalinkSelector",
    "SELECTOR_TYPES",
    "SavedSelector",
    "SpecificSelector",
    "StatusSelector",
    "TriggeredSelector",
    "UpstreamFilterStrategy",
    "WalkingSelector",
]
