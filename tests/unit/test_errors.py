"""Unit tests for the error taxonomy and exit codes."""

from __future__ import annotations

import pytest

from pluck.errors import (
    IOFailure,
    OperationCancelled,
    PermissionDenied,
    ProjectNotFound,
    RuntimeFailure,
    SelectionError,
    SpecError,
    UnsupportedTargetError,
    ValidationError,
    exit_code_for_exception,
)


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (ValidationError("bad"), 2),
        (SpecError("bad spec"), 2),
        (IOFailure("disk"), 3),
        (ProjectNotFound("lib"), 4),
        (PermissionDenied("lib"), 4),
        (SelectionError("none"), 5),
        (UnsupportedTargetError("workflow"), 5),
        (OperationCancelled("stop"), 6),
        (RuntimeFailure("boom"), 1),
        (FileNotFoundError("gone"), 3),
        (KeyError("x"), 1),
    ],
)
def test_exit_codes(exc: BaseException, code: int) -> None:
    assert exit_code_for_exception(exc) == code
