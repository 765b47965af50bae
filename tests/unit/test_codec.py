"""Unit tests for selector/filter spec decoding and encoding.

Contract:
- tagged JSON, compact ``<Type k=v>`` and bare type names decode through one
  registry
- legacy type names and field spellings are accepted
- strict decoding raises SpecError, lenient parsing logs and returns None
- encoding emits sorted, versioned JSON that decodes to an equal value
"""

from __future__ import annotations

import json
import logging

import pytest

from pluck.core.codec import (
    FILTER_REGISTRY,
    SELECTOR_REGISTRY,
    SPEC_VERSION,
    decode_filter,
    decode_selector,
    encode_filter,
    encode_selector,
    parse_filter,
    parse_selector,
)
from pluck.core.filters import (
    AndFilter,
    DownstreamFilter,
    NoFilter,
    NotFilter,
    OrFilter,
    ParameterizedFilter,
    ParametersFilter,
    SavedFilter,
)
from pluck.core.history import StatusFilter
from pluck.core.selectors import (
    DownstreamSelector,
    FallbackEntry,
    FallbackSelector,
    LastCompletedSelector,
    LastWithArtifactsSelector,
    ParameterizedSelector,
    PermalinkSelector,
    SavedSelector,
    SpecificSelector,
    StatusSelector,
    TriggeredSelector,
    UpstreamFilterStrategy,
)
from pluck.errors import SpecError


def test_compact_form() -> None:
    assert decode_selector("<Specific buildNumber=2>") == SpecificSelector("2")
    assert decode_selector("<SpecificBuildSelector buildNumber='lastStableBuild' />") == SpecificSelector(
        "lastStableBuild"
    )
    assert decode_filter('<ParametersBuildFilter paramsToMatch="A=1,B=2">') == ParametersFilter("A=1,B=2")


def test_json_form() -> None:
    spec = '{"type": "status", "status": "successful", "version": 2}'

    assert decode_selector(spec) == StatusSelector(StatusFilter.SUCCESSFUL)
    assert decode_selector({"type": "permalink", "id": "lastBuild"}) == PermalinkSelector("lastBuild")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("saved", SavedSelector()),
        ("SavedBuildSelector", SavedSelector()),
        ("last_with_artifacts", LastWithArtifactsSelector()),
        ("LastBuildWithArtifactSelector", LastWithArtifactsSelector()),
        ("lastCompleted", LastCompletedSelector()),
        ("LAST-COMPLETED", LastCompletedSelector()),
        ("status", StatusSelector()),
        ("TriggeringBuildSelector", TriggeredSelector()),
    ],
)
def test_bare_type_names(name: str, expected) -> None:
    assert decode_selector(name) == expected


def test_legacy_status_flag() -> None:
    assert decode_selector({"type": "StatusBuildSelector", "stable": False}) == StatusSelector(
        StatusFilter.SUCCESSFUL
    )
    assert decode_selector({"type": "StatusBuildSelector", "stable": "true"}) == StatusSelector()
    assert decode_selector({"type": "status", "buildStatus": "Failed"}) == StatusSelector(StatusFilter.FAILED)


def test_legacy_triggered_fields() -> None:
    spec = {
        "type": "TriggeredBuildSelector",
        "fallback": "true",
        "upstreamFilterStrategy": "UseNewest",
        "allowUpstreamDependencies": False,
    }

    assert decode_selector(spec) == TriggeredSelector(UpstreamFilterStrategy.NEWEST, False, True)


def test_nested_specs() -> None:
    selector = decode_selector(
        {
            "type": "fallback",
            "entries": [
                {"selector": "<Specific buildNumber=$N>", "filter": {"type": "saved"}},
                {"selector": {"type": "status", "status": "any"}},
            ],
        }
    )
    build_filter = decode_filter(
        {
            "type": "AndBuildFilter",
            "filterList": [
                {"type": "not", "filter": "saved"},
                {"type": "or", "filters": ["none", {"type": "parameterized", "parameter": "$F"}]},
            ],
        }
    )

    assert selector == FallbackSelector(
        (
            FallbackEntry(SpecificSelector("$N"), SavedFilter()),
            FallbackEntry(StatusSelector(StatusFilter.ANY), NoFilter()),
        )
    )
    assert build_filter == AndFilter(
        (NotFilter(SavedFilter()), OrFilter((NoFilter(), ParameterizedFilter("$F"))))
    )


@pytest.mark.parametrize(
    "spec",
    [
        "",
        "   ",
        "unknown",
        "<Specific",
        "<Specific buildNumber>",
        "<Specific buildNumber='2>",
        "{not json",
        '{"status": "stable"}',
        '{"type": "status", "version": 3}',
        '{"type": "status", "version": "x"}',
        '{"type": "status", "status": "sometimes"}',
        '{"type": "specific"}',
        '{"type": "triggered", "fallback": "perhaps"}',
        "legacy",
    ],
)
def test_invalid_selector_specs(spec: str) -> None:
    with pytest.raises(SpecError):
        decode_selector(spec)


def test_invalid_nested_filter_is_a_spec_error() -> None:
    with pytest.raises(SpecError, match="Unknown filter type"):
        decode_filter({"type": "and", "filters": ["saved", "mystery"]})


def test_lenient_parsing_logs_and_returns_none(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="pluck.core.codec"):
        assert parse_selector("mystery") is None
        assert parse_filter("<Saved") is None

    assert parse_selector(None) is None
    assert parse_filter("saved") == SavedFilter()
    assert "Ignoring build selector spec" in caplog.text
    assert "Ignoring build filter spec" in caplog.text


def test_encoding_is_sorted_and_versioned() -> None:
    assert encode_selector(StatusSelector()) == '{"status":"stable","type":"status","version":2}'
    assert json.loads(encode_filter(SavedFilter())) == {"type": "saved", "version": SPEC_VERSION}


@pytest.mark.parametrize(
    "selector",
    [
        TriggeredSelector(UpstreamFilterStrategy.NEWEST, True, True),
        DownstreamSelector("U", "$N"),
        ParameterizedSelector("${SEL}"),
        FallbackSelector(
            (FallbackEntry(SpecificSelector("2"), ParametersFilter("A=1")), FallbackEntry(SavedSelector()))
        ),
    ],
)
def test_encoded_selectors_decode_to_equal_values(selector) -> None:
    assert decode_selector(encode_selector(selector)) == selector


def test_encoded_filters_decode_to_equal_values() -> None:
    build_filter = AndFilter((DownstreamFilter("U", "3"), NotFilter(ParametersFilter("A=1"))))

    assert decode_filter(encode_filter(build_filter)) == build_filter


def test_registries_cover_names_and_stems() -> None:
    assert SELECTOR_REGISTRY["specific"] is SpecificSelector
    assert SELECTOR_REGISTRY["lastcompletedbuild"] is LastCompletedSelector
    assert FILTER_REGISTRY["parameters"] is ParametersFilter
    assert FILTER_REGISTRY["no"] is NoFilter
    assert "legacy" not in SELECTOR_REGISTRY
