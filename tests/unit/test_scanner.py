"""Unit tests for the artifact tree scanner.

Contract: TreeScanner lists matching files with:
- exclusion taking precedence over inclusion
- deterministic name ordering
- subtree pruning that never changes the result
- listing failures surfaced as IOFailure
"""

from __future__ import annotations

import os
from pathlib import Path
from threading import Event

import pytest

from pluck.errors import IOFailure, OperationCancelled
from pluck.infrastructure.scanner import TreeScanner
from pluck.infrastructure.virtual_fs import LocalVirtualFile
from tests.helpers.vfs import MemoryVirtualFile, all_file_paths

TREE = {
    "a.txt": "a",
    "README": "readme",
    "sub": {"b.txt": "b", "c.log": "c", "nested": {"d.txt": "d"}},
    "build": {"deep": {"x.txt": "x", "x.o": "o"}, "out.log": "log"},
    "docs": {"index.html": "<html>", "img": {"logo.PNG": "png"}},
}


def _paths(scanner: TreeScanner, root: MemoryVirtualFile) -> list[str]:
    return [item.relative_path for item in scanner.scan(root)]


def test_include_minus_exclude() -> None:
    root = MemoryVirtualFile.tree({"a.txt": "a", "sub": {"b.txt": "b", "c.log": "c"}})
    scanner = TreeScanner("**/*.txt", "sub/*.log")

    assert sorted(_paths(scanner, root)) == ["a.txt", "sub/b.txt"]


def test_exclusion_wins_over_inclusion() -> None:
    root = MemoryVirtualFile.tree(TREE)
    scanner = TreeScanner("**", "**/*.log,README")

    paths = _paths(scanner, root)

    assert "sub/c.log" not in paths
    assert "build/out.log" not in paths
    assert "README" not in paths
    assert "a.txt" in paths


def test_results_follow_name_order() -> None:
    root = MemoryVirtualFile.tree({"b.txt": "b", "c": {"d.txt": "d"}, "a.txt": "a"})

    assert _paths(TreeScanner("**"), root) == ["a.txt", "b.txt", "c/d.txt"]


def test_scan_is_idempotent() -> None:
    root = MemoryVirtualFile.tree(TREE)
    scanner = TreeScanner("**/*.txt,docs/", "build/**")

    assert _paths(scanner, root) == _paths(scanner, root)


def test_directories_without_possible_matches_are_not_listed() -> None:
    root = MemoryVirtualFile.tree(TREE)

    TreeScanner("sub/**").scan(root)

    assert "sub" in root.listed
    assert "sub/nested" in root.listed
    assert "build" not in root.listed
    assert "docs" not in root.listed


def test_excluded_subtrees_are_not_listed() -> None:
    root = MemoryVirtualFile.tree(TREE)

    paths = _paths(TreeScanner("**", "build/**"), root)

    assert "build" not in root.listed
    assert not any(path.startswith("build/") for path in paths)


def test_literal_exclude_does_not_prune_a_directory_of_the_same_name() -> None:
    root = MemoryVirtualFile.tree(TREE)

    paths = _paths(TreeScanner("**", "build/deep"), root)

    assert "build/deep/x.txt" in paths


@pytest.mark.parametrize(
    ("includes", "excludes", "case_sensitive"),
    [
        ("**/*.txt", "sub/*.log", False),
        ("**/x.txt", "build/deep", False),
        ("sub/b.txt", None, False),
        ("*/*.txt", "sub/**", False),
        ("**", "**/deep/**", False),
        ("SUB/*.TXT", None, False),
        ("SUB/*.TXT", None, True),
        ("docs/", "**/*.png", False),
        ("**/nested/*,build/*/x.?", "", False),
    ],
)
def test_pruning_never_changes_the_result(includes, excludes, case_sensitive) -> None:
    scanner = TreeScanner(includes, excludes, case_sensitive=case_sensitive)
    reference = [
        path for path in all_file_paths(TREE) if scanner.is_included(tuple(path.split("/")))
    ]

    assert sorted(_paths(scanner, MemoryVirtualFile.tree(TREE))) == reference


def test_empty_includes_match_nothing_without_listing() -> None:
    root = MemoryVirtualFile.tree(TREE)

    assert TreeScanner("", "**/*.log").scan(root) == []
    assert root.listed == []


def test_unlistable_directory_raises_io_failure() -> None:
    root = MemoryVirtualFile.tree(TREE, unreadable=frozenset({"sub"}))

    with pytest.raises(IOFailure, match="sub"):
        TreeScanner("**").scan(root)


def test_unlistable_directory_is_ignored_when_pruned() -> None:
    root = MemoryVirtualFile.tree(TREE, unreadable=frozenset({"sub"}))

    assert _paths(TreeScanner("docs/**"), root) == ["docs/index.html", "docs/img/logo.PNG"]


def test_cancelled_scan_raises() -> None:
    cancel = Event()
    cancel.set()

    with pytest.raises(OperationCancelled):
        TreeScanner("**").scan(MemoryVirtualFile.tree(TREE), cancel)


def test_local_tree_skips_symlinks(tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "sub" / "b.txt").write_text("b")
    os.symlink(tmp_path / "a.txt", tmp_path / "link.txt")

    found = TreeScanner("**/*.txt").scan(LocalVirtualFile(tmp_path))

    assert [item.relative_path for item in found] == ["a.txt", "sub/b.txt"]
    assert found[0].file == LocalVirtualFile(tmp_path / "a.txt")
