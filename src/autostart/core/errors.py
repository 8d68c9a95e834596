"""Registry error taxonomy.

Every error carries a machine-readable :class:`ErrorCategory` so callers
branch on ``exc.category`` rather than parsing message text.  The concrete
classes also inherit the closest builtin exception, so ``except
PermissionError`` or ``except LookupError`` keep working at call sites that
do not know about this module.
"""

from __future__ import annotations

import builtins
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    OPERATION_FAILED = "operation_failed"
    ENUMERATION_FAILED = "enumeration_failed"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    INVALID_INPUT = "invalid_input"
    INCONSISTENT_STATE = "inconsistent_state"


_CATEGORY_LABELS: dict[ErrorCategory, str] = {
    ErrorCategory.OPERATION_FAILED: "Operation failed",
    ErrorCategory.ENUMERATION_FAILED: "Could not read entries",
    ErrorCategory.NOT_FOUND: "Not found",
    ErrorCategory.PERMISSION_DENIED: "Permission denied",
    ErrorCategory.INVALID_INPUT: "Invalid input",
    ErrorCategory.INCONSISTENT_STATE: "Change did not take effect",
}


class RegistryError(Exception):
    """Base class for all caller-facing registry failures.

    Raised directly for OS failures that fit no narrower category (e.g. a
    service manager exiting non-zero for an unexpected reason).
    """

    category: ErrorCategory = ErrorCategory.OPERATION_FAILED

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key

    @property
    def label(self) -> str:
        """Short human-readable category label (e.g. ``"Permission denied"``)."""
        return _CATEGORY_LABELS[self.category]

    def __str__(self) -> str:
        return self.message


class EnumerationError(RegistryError):
    """A backing store could not be read."""

    category = ErrorCategory.ENUMERATION_FAILED


class NotFoundError(RegistryError, LookupError):
    """The target path / service name does not exist at operation time."""

    category = ErrorCategory.NOT_FOUND


class PermissionDeniedError(RegistryError, builtins.PermissionError):
    """The backing store requires rights the process does not hold."""

    category = ErrorCategory.PERMISSION_DENIED


class InvalidCommandError(RegistryError, ValueError):
    """A create request was malformed (empty or unresolvable command)."""

    category = ErrorCategory.INVALID_INPUT


class InconsistentStateError(RegistryError):
    """The write succeeded but re-reading the store disagrees with the intent."""

    category = ErrorCategory.INCONSISTENT_STATE


def error_payload(exc: BaseException) -> dict[str, Any]:
    """Convert *exc* into a ``{"category", "label", "message"}`` dict for display.

    Non-registry exceptions are reported under ``"internal"``.
    """
    if isinstance(exc, RegistryError):
        return {
            "category": exc.category.value,
            "label": exc.label,
            "message": exc.message,
        }
    return {
        "category": "internal",
        "label": "Unexpected error",
        "message": str(exc) or exc.__class__.__name__,
    }
