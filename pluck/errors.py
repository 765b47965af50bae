"""Error taxonomy and exit code mapping for CLI."""

from __future__ import annotations


class PluckError(Exception):
    """Base error for deterministic CLI exit codes."""

    exit_code: int = 1


class ValidationError(PluckError):
    """Invalid user input or command usage."""

    exit_code = 2


class SpecError(ValidationError):
    """A selector or filter specification could not be decoded."""


class RuntimeFailure(PluckError):
    """Unexpected runtime failure."""

    exit_code = 1


class IOFailure(PluckError):
    """Filesystem or I/O failure while scanning or copying artifacts."""

    exit_code = 3


class ResolutionError(PluckError):
    """The source project could not be resolved."""

    exit_code = 4


class ProjectNotFound(ResolutionError):
    """No project with the requested name exists."""


class PermissionDenied(ResolutionError):
    """The caller may not read the requested project."""


class SelectionError(PluckError):
    """Build selection failed in a way that indicates a configuration mismatch."""

    exit_code = 5


class UnsupportedTargetError(SelectionError):
    """The build kind does not track upstream/sub-build relationships."""


class OperationCancelled(PluckError):
    """A scan or copy was cancelled between files."""

    exit_code = 6


def exit_code_for_exception(exc: BaseException) -> int:
    """Resolve a deterministic exit code for an exception."""
    if isinstance(exc, PluckError):
        return exc.exit_code
    if isinstance(exc, OSError):
        return IOFailure.exit_code
    return RuntimeFailure.exit_code
