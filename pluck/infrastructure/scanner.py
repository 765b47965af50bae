"""Artifact tree scanner with include/exclude matching and subtree pruning."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Event
from typing import Optional

from pluck.core.pattern import PatternSet
from pluck.errors import IOFailure, OperationCancelled
from pluck.infrastructure.virtual_fs import VirtualFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScannedFile:
    """A matched file and its path fragments relative to the scan root."""

    file: VirtualFile
    path_fragments: tuple[str, ...]

    @property
    def relative_path(self) -> str:
        return "/".join(self.path_fragments)


class TreeScanner:
    """Lists files of a virtual tree that match an include/exclude spec.

    Exclusion always wins over inclusion. Directories are only entered when an
    include could still match below them and no exclude covers the whole
    subtree, so pruning never changes the result, only the traversal cost.
    An empty include spec matches nothing.
    """

    def __init__(
        self,
        includes: Optional[str],
        excludes: Optional[str] = None,
        *,
        case_sensitive: bool = False,
    ) -> None:
        self.includes = PatternSet.parse(includes, case_sensitive)
        self.excludes = PatternSet.parse(excludes, case_sensitive)

    def is_included(self, path: tuple[str, ...]) -> bool:
        if self.excludes.matches(path):
            return False
        return self.includes.matches(path)

    def can_descend(self, path: tuple[str, ...]) -> bool:
        if self.excludes.covers_subtree(path):
            return False
        return self.includes.could_match_below(path)

    def scan(self, root: VirtualFile, cancel_event: Event | None = None) -> list[ScannedFile]:
        """Scan ``root`` depth-first with children in name order.

        Raises:
            IOFailure: a directory could not be listed
            OperationCancelled: ``cancel_event`` was set during the scan
        """
        found: list[ScannedFile] = []
        if self.includes.is_empty:
            return found

        pending: list[tuple[tuple[str, ...], VirtualFile]] = [((), root)]
        while pending:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelled("Artifact scan cancelled")
            fragments, directory = pending.pop()
            try:
                children = sorted(directory.list(), key=lambda entry: entry.name)
            except OSError as exc:
                location = "/".join(fragments) or "."
                raise IOFailure(f"Failed to list artifact directory {location}: {exc}") from exc

            subdirectories: list[tuple[tuple[str, ...], VirtualFile]] = []
            for child in children:
                path = fragments + (child.name,)
                if child.is_dir():
                    if self.can_descend(path):
                        subdirectories.append((path, child))
                    else:
                        logger.debug("Pruned artifact directory %s", "/".join(path))
                elif self.is_included(path):
                    found.append(ScannedFile(child, path))
            pending.extend(reversed(subdirectories))
        return found
