"""Unit tests for selection through a run-time variable."""

from __future__ import annotations

import logging

import pytest

from pluck.core.filters import ParametersFilter
from pluck.core.models import BuildRecord, BuildRef, BuildStatus, Project
from pluck.core.selectors import ParameterizedSelector
from tests.helpers.builds import make_project, make_state


@pytest.fixture
def five_builds() -> Project:
    return make_project(
        "P",
        [
            BuildStatus.SUCCESS,
            BuildStatus.FAILURE,
            BuildStatus.SUCCESS,
            BuildStatus.UNSTABLE,
            BuildStatus.SUCCESS,
        ],
    )


@pytest.mark.parametrize("reference", ["SEL", "$SEL", "${SEL}"])
def test_compact_spec_from_variable(five_builds: Project, reference: str) -> None:
    state = make_state(env={"SEL": "<Specific buildNumber=2>"})

    picked = ParameterizedSelector(reference).pick(five_builds, state)

    assert picked.number == 2
    assert picked.status is BuildStatus.FAILURE


def test_json_spec_from_variable(five_builds: Project) -> None:
    state = make_state(env={"SEL": '{"type": "status", "status": "successful"}'})

    assert ParameterizedSelector("SEL").pick(five_builds, state).number == 5


def test_inline_spec(five_builds: Project) -> None:
    selector = ParameterizedSelector('{"type": "status", "status": "unstable"}')

    assert selector.pick(five_builds, make_state()).number == 4


def test_delegated_selection_keeps_the_filter() -> None:
    project = Project(
        "P",
        builds=[BuildRecord("P", n, parameters={"A": "1" if n == 2 else "0"}) for n in range(1, 5)],
    )
    state = make_state(
        build_filter=ParametersFilter("A=1"),
        env={"SEL": '{"type": "status", "status": "any"}'},
    )

    assert ParameterizedSelector("SEL").pick(project, state).number == 2


def test_missing_or_malformed_spec_selects_nothing(
    five_builds: Project, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        assert ParameterizedSelector("SEL").pick(five_builds, make_state()) is None
        assert ParameterizedSelector("SEL").pick(five_builds, make_state(env={"SEL": "<Specific"})) is None
        assert ParameterizedSelector("SEL").pick(five_builds, make_state(env={"SEL": "bogus"})) is None

    assert "Parameter SEL holds no build selector" in caplog.text
    assert "Ignoring build selector spec" in caplog.text


def test_build_parameter_on_copier_build_selects_directly(five_builds: Project) -> None:
    copier = BuildRecord("C", 1, parameters={"SEL": BuildRef("P", 3)})

    assert ParameterizedSelector("SEL").pick(five_builds, make_state(copier_build=copier)).number == 3


def test_build_parameter_for_another_project(
    five_builds: Project, caplog: pytest.LogCaptureFixture
) -> None:
    copier = BuildRecord("C", 1, parameters={"SEL": BuildRef("Other", 3)})

    with caplog.at_level(logging.WARNING):
        assert ParameterizedSelector("SEL").pick(five_builds, make_state(copier_build=copier)) is None

    assert "refers to Other#3" in caplog.text
