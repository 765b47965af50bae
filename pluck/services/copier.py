"""Per-file artifact copiers."""

from __future__ import annotations

from abc import ABC, abstractmethod
import hashlib
import logging
import os
from pathlib import Path
from typing import Optional

from pluck.errors import IOFailure
from pluck.infrastructure.virtual_fs import VirtualFile

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class Copier(ABC):
    """Copies one artifact file to a destination path."""

    @abstractmethod
    def copy_one(self, source: VirtualFile, destination: Path, fingerprint: bool) -> Optional[str]:
        """Copy ``source`` to ``destination``.

        Returns:
            Hex digest of the copied bytes when ``fingerprint`` is set, else None

        Raises:
            IOFailure: the source could not be read or the destination written
        """
        ...


class StreamCopier(Copier):
    """Streams bytes to a local file, digesting them in the same pass."""

    def __init__(
        self,
        digest_algorithm: str = "md5",
        chunk_size: int = _CHUNK_SIZE,
        preserve_mtime: bool = True,
    ) -> None:
        # Unknown algorithms fail here rather than on the first copied file.
        hashlib.new(digest_algorithm)
        self.digest_algorithm = digest_algorithm
        self.chunk_size = chunk_size
        self.preserve_mtime = preserve_mtime

    def copy_one(self, source: VirtualFile, destination: Path, fingerprint: bool) -> Optional[str]:
        digest = hashlib.new(self.digest_algorithm) if fingerprint else None
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IOFailure(f"Failed to create directory {destination.parent}: {exc}") from exc
        try:
            stream = source.open()
        except OSError as exc:
            raise IOFailure(f"Failed to open artifact {source.name}: {exc}") from exc
        try:
            with stream, destination.open("wb") as handle:
                while True:
                    chunk = stream.read(self.chunk_size)
                    if not chunk:
                        break
                    if digest is not None:
                        digest.update(chunk)
                    handle.write(chunk)
        except OSError as exc:
            raise IOFailure(f"Failed to copy {source.name} to {destination}: {exc}") from exc

        if self.preserve_mtime:
            self._copy_mtime(source, destination)
        return digest.hexdigest() if digest is not None else None

    @staticmethod
    def _copy_mtime(source: VirtualFile, destination: Path) -> None:
        try:
            mtime = source.last_modified()
            os.utime(destination, (mtime, mtime))
        except OSError as exc:
            logger.warning("Could not preserve modification time of %s: %s", destination, exc)
