"""Copy matched artifact files from a build's artifact tree."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Event
from typing import Callable, Optional

from pluck.core.models import CopyResult
from pluck.core.pattern import tokenize
from pluck.errors import OperationCancelled, ValidationError
from pluck.infrastructure.scanner import TreeScanner
from pluck.infrastructure.virtual_fs import VirtualFile
from pluck.services.copier import Copier, StreamCopier

logger = logging.getLogger(__name__)

DEFAULT_INCLUDES = "**"

CopiedCallback = Callable[[str, Optional[str]], None]


def resolve_base_dir(root: VirtualFile, src_base_dir: Optional[str]) -> Optional[VirtualFile]:
    """Descend from ``root`` into ``src_base_dir``; None if it does not exist.

    Raises:
        ValidationError: ``src_base_dir`` has a "." or ".." segment
    """
    segments = tokenize(src_base_dir or "")
    if any(segment in (".", "..") for segment in segments):
        raise ValidationError(f"Source base directory must stay inside the artifacts: {src_base_dir}")
    current = root
    for segment in segments:
        current = current.child(segment)
    if not current.exists() or not current.is_dir():
        return None
    return current


def copy_artifacts(
    root: Optional[VirtualFile],
    destination: Path,
    *,
    includes: Optional[str] = None,
    excludes: Optional[str] = None,
    flatten: bool = False,
    fingerprint: bool = False,
    src_base_dir: Optional[str] = None,
    copier: Optional[Copier] = None,
    cancel_event: Optional[Event] = None,
    case_sensitive: bool = False,
    on_copied: Optional[CopiedCallback] = None,
) -> CopyResult:
    """Copy files of ``root`` matching ``includes``/``excludes`` into ``destination``.

    Blank includes copy everything. Paths are matched and reported relative to
    ``src_base_dir`` when given. With ``flatten`` each file lands directly in
    ``destination`` under its base name. A copy failure aborts the batch and
    files copied so far stay in place.

    Raises:
        IOFailure: scanning or copying failed
        ValidationError: ``src_base_dir`` leaves the artifact root
        OperationCancelled: ``cancel_event`` was set
    """
    result = CopyResult()
    if root is None or not root.exists():
        logger.info("No artifacts to copy")
        return result
    base = resolve_base_dir(root, src_base_dir)
    if base is None:
        logger.info("Source base directory %s does not exist", src_base_dir)
        return result

    if not (includes or "").strip():
        includes = DEFAULT_INCLUDES
    scanner = TreeScanner(includes, excludes, case_sensitive=case_sensitive)
    matched = scanner.scan(base, cancel_event)
    copier = copier or StreamCopier()

    for item in matched:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelled(f"Copy cancelled after {result.count} files")
        if flatten:
            target = destination / item.file.name
        else:
            target = destination.joinpath(*item.path_fragments)
        digest = copier.copy_one(item.file, target, fingerprint)
        result.add(item.relative_path, digest)
        if on_copied is not None:
            on_copied(item.relative_path, digest)
        logger.debug("Copied %s -> %s", item.relative_path, target)

    logger.info("Copied %d artifacts", result.count)
    return result
