"""Unit tests for the pick coordinator.

Contract: pick_build returns a tri-state outcome; missing projects and
exhausted selectors are outcomes, permission failures are raised.
"""

from __future__ import annotations

import pytest

from pluck.core.filters import SavedFilter
from pluck.core.models import BuildRecord, BuildRef, PickResult, Project
from pluck.core.picker import pick_build, split_parameter_suffix
from pluck.core.selectors import SpecificSelector, StatusSelector, TriggeredSelector
from pluck.errors import PermissionDenied
from pluck.infrastructure.project_store import MemoryProjectStore
from pluck.settings import Settings
from tests.helpers.builds import make_project


def test_found(memory_store: MemoryProjectStore) -> None:
    outcome = pick_build(memory_store, "A", StatusSelector())

    assert outcome.result is PickResult.FOUND
    assert outcome.found
    assert outcome.build.number == 2
    assert outcome.project_name == "A"


def test_project_not_found(memory_store: MemoryProjectStore) -> None:
    outcome = pick_build(memory_store, "B", StatusSelector())

    assert outcome.result is PickResult.PROJECT_NOT_FOUND
    assert outcome.build is None
    assert outcome.reasons == ("project not found",)


def test_blank_project_name(memory_store: MemoryProjectStore) -> None:
    outcome = pick_build(memory_store, "  ", StatusSelector())

    assert outcome.result is PickResult.PROJECT_NOT_FOUND
    assert outcome.reasons == ("empty project name",)


def test_zero_builds_is_build_not_found() -> None:
    store = MemoryProjectStore([make_project("Empty")])

    outcome = pick_build(store, "Empty", SpecificSelector("1"))

    assert outcome.result is PickResult.BUILD_NOT_FOUND
    assert outcome.project_name == "Empty"
    assert outcome.reasons


def test_filter_is_applied(memory_store: MemoryProjectStore) -> None:
    outcome = pick_build(memory_store, "A", StatusSelector(), SavedFilter())

    assert outcome.result is PickResult.BUILD_NOT_FOUND


def test_project_name_expansion_prefers_env_over_copier_parameters(
    memory_store: MemoryProjectStore,
) -> None:
    copier = BuildRecord("C", 1, parameters={"SRC": "A", "N": "1"})

    by_copier = pick_build(memory_store, "$SRC", SpecificSelector("$N"), copier_build=copier)
    by_env = pick_build(
        memory_store, "${SRC}", SpecificSelector("$N"), env={"N": "3"}, copier_build=copier
    )

    assert by_copier.build.number == 1
    assert by_env.build.number == 3


def test_parameter_suffix_becomes_a_filter() -> None:
    project = Project(
        "folder/app",
        builds=[
            BuildRecord("folder/app", 1, parameters={"ENV": "prod"}),
            BuildRecord("folder/app", 2, parameters={"ENV": "dev"}),
        ],
    )
    store = MemoryProjectStore([project])

    assert pick_build(store, "folder/app", StatusSelector()).build.number == 2
    assert pick_build(store, "folder/app/ENV=prod", StatusSelector()).build.number == 1
    assert pick_build(store, "folder/app/ENV=qa", StatusSelector()).result is PickResult.BUILD_NOT_FOUND


def test_split_parameter_suffix(memory_store: MemoryProjectStore) -> None:
    project, parameter_filter = split_parameter_suffix(memory_store, "A/X=1,Y=2")

    assert project.name == "A"
    assert parameter_filter.spec == "X=1,Y=2"
    assert split_parameter_suffix(memory_store, "A/sub") == (None, None)
    assert split_parameter_suffix(memory_store, "B/X=1") == (None, None)


def test_access_check_rejection_raises(memory_store: MemoryProjectStore) -> None:
    with pytest.raises(PermissionDenied, match="A"):
        pick_build(memory_store, "A", StatusSelector(), access_check=lambda project: False)

    outcome = pick_build(memory_store, "A", StatusSelector(), access_check=lambda project: True)
    assert outcome.found


def test_settings_reach_the_selector() -> None:
    upstream = make_project("U")
    for number in (4, 5, 6):
        upstream.add_build(BuildRecord("U", number))
    copier = BuildRecord("C", 1, upstream=(BuildRef("U", 4), BuildRef("U", 5), BuildRef("U", 6)))
    store = MemoryProjectStore([upstream])

    newest = pick_build(
        store,
        "U",
        TriggeredSelector(),
        copier_build=copier,
        settings=Settings(upstream_filter_strategy="newest"),
    )
    oldest = pick_build(store, "U", TriggeredSelector(), copier_build=copier)

    assert newest.build.number == 6
    assert oldest.build.number == 4
