"""Read-only virtual directory trees for build artifacts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO


class VirtualFile(ABC):
    """A file or directory inside a build's artifact tree.

    Implementations are read-only views owned by the build that produced them.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def exists(self) -> bool:
        ...

    @abstractmethod
    def is_dir(self) -> bool:
        ...

    @abstractmethod
    def list(self) -> list[VirtualFile]:
        """List direct children; raises OSError if the directory is unreadable."""
        ...

    @abstractmethod
    def child(self, name: str) -> VirtualFile:
        ...

    @abstractmethod
    def open(self) -> BinaryIO:
        ...

    @abstractmethod
    def size(self) -> int:
        ...

    @abstractmethod
    def last_modified(self) -> float:
        """Modification time in seconds since the epoch."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class LocalVirtualFile(VirtualFile):
    """Artifact tree backed by a local directory."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def name(self) -> str:
        return self.path.name

    def exists(self) -> bool:
        return self.path.exists()

    def is_dir(self) -> bool:
        return self.path.is_dir()

    def list(self) -> list[VirtualFile]:
        # Symlinked entries are skipped so an archive cannot point outside itself.
        return [
            LocalVirtualFile(entry)
            for entry in sorted(self.path.iterdir())
            if not entry.is_symlink()
        ]

    def child(self, name: str) -> VirtualFile:
        return LocalVirtualFile(self.path / name)

    def open(self) -> BinaryIO:
        return self.path.open("rb")

    def size(self) -> int:
        return self.path.stat().st_size

    def last_modified(self) -> float:
        return self.path.stat().st_mtime

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LocalVirtualFile) and other.path == self.path

    def __hash__(self) -> int:
        return hash(self.path)
