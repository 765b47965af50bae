"""Project and build history stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Iterable, Optional

from pluck.core import history
from pluck.core.models import BuildKind, BuildRecord, BuildRef, BuildStatus, ParameterValue, Project
from pluck.errors import IOFailure, ValidationError
from pluck.infrastructure.virtual_fs import LocalVirtualFile

logger = logging.getLogger(__name__)


class ProjectStore(ABC):
    """Read access to projects and their build histories."""

    @abstractmethod
    def get_project(self, name: str) -> Optional[Project]:
        ...

    def get_build(self, ref: BuildRef) -> Optional[BuildRecord]:
        project = self.get_project(ref.project)
        if project is None:
            return None
        return history.by_number(project, ref.number)


class MemoryProjectStore(ProjectStore):
    def __init__(self, projects: Iterable[Project] = ()) -> None:
        self._projects: dict[str, Project] = {}
        for project in projects:
            self.add(project)

    def add(self, project: Project) -> Project:
        self._projects[project.name] = project
        return project

    def get_project(self, name: str) -> Optional[Project]:
        return self._projects.get(name)


class FileProjectStore(ProjectStore):
    """Projects laid out on disk as exported build records.

    Layout::

        <jobs_root>/<project>/permalinks.json          optional {"id": number}
        <jobs_root>/<project>/builds/<number>/build.json
        <jobs_root>/<project>/builds/<number>/archive/  artifact tree

    Project names may contain ``/`` for nested folders. Projects are loaded
    once and cached for the lifetime of the store.
    """

    def __init__(self, jobs_root: Path) -> None:
        self.jobs_root = jobs_root
        self._lock = Lock()
        self._cache: dict[str, Optional[Project]] = {}

    def _project_dir(self, name: str) -> Optional[Path]:
        parts = [part for part in name.split("/") if part]
        if not parts or any(part in (".", "..") for part in parts):
            return None
        return self.jobs_root.joinpath(*parts)

    def get_project(self, name: str) -> Optional[Project]:
        with self._lock:
            if name not in self._cache:
                self._cache[name] = self._load_project(name)
            return self._cache[name]

    def _load_project(self, name: str) -> Optional[Project]:
        project_dir = self._project_dir(name)
        if project_dir is None or not (project_dir / "builds").is_dir():
            return None
        builds_dir = project_dir / "builds"
        try:
            parsed = [
                (history.parse_build_number(entry.name), entry)
                for entry in builds_dir.iterdir()
                if entry.is_dir()
            ]
            build_dirs = sorted((number, entry) for number, entry in parsed if number is not None)
        except OSError as exc:
            raise IOFailure(f"Failed to list builds of {name}: {exc}") from exc

        project = Project(name=name, permalinks=self._load_permalinks(project_dir))
        for number, build_dir in build_dirs:
            project.add_build(self._load_build(name, number, build_dir))
        logger.debug("Loaded project %s with %d builds", name, len(project.builds))
        return project

    def _load_permalinks(self, project_dir: Path) -> dict[str, int]:
        path = project_dir / "permalinks.json"
        if not path.exists():
            return {}
        data = _read_json(path)
        if not isinstance(data, dict):
            raise ValidationError(f"Permalinks must be a JSON object: {path}")
        try:
            return {str(key): int(value) for key, value in data.items()}
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid permalink in {path}: {exc}") from exc

    def _load_build(self, project: str, number: int, build_dir: Path) -> BuildRecord:
        path = build_dir / "build.json"
        data: dict[str, Any] = {}
        if path.exists():
            loaded = _read_json(path)
            if not isinstance(loaded, dict):
                raise ValidationError(f"Build record must be a JSON object: {path}")
            data = loaded
        archive = build_dir / "archive"
        try:
            return BuildRecord(
                project=project,
                number=number,
                status=BuildStatus.parse(str(data.get("status", BuildStatus.SUCCESS.value))),
                keep=bool(data.get("keep", False)),
                upstream=_refs(data.get("upstream", [])),
                upstream_dependencies=_refs(data.get("upstream_dependencies", [])),
                parameters=_parameters(data.get("parameters", {})),
                artifacts=LocalVirtualFile(archive) if archive.is_dir() else None,
                display_name=data.get("display_name"),
                build_id=data.get("build_id"),
                kind=BuildKind(str(data.get("kind", BuildKind.STANDARD.value)).lower()),
                sub_builds=_refs(data.get("sub_builds", [])),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid build record {path}: {exc}") from exc


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON in {path}: {exc}") from exc
    except OSError as exc:
        raise IOFailure(f"Failed to read {path}: {exc}") from exc


def _ref(value: Any) -> BuildRef:
    if isinstance(value, str):
        project, sep, number = value.rpartition("#")
        if not sep:
            raise ValueError(f"Build reference must look like project#number: {value!r}")
        return BuildRef(project, int(number))
    return BuildRef(str(value["project"]), int(value["number"]))


def _refs(values: Iterable[Any]) -> tuple[BuildRef, ...]:
    return tuple(_ref(value) for value in values)


def _parameters(values: dict[str, Any]) -> dict[str, ParameterValue]:
    parameters: dict[str, ParameterValue] = {}
    for name, value in values.items():
        if isinstance(value, bool):
            parameters[name] = value
        elif isinstance(value, dict):
            parameters[name] = _ref(value)
        else:
            parameters[name] = str(value)
    return parameters
