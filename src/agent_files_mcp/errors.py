"""Structured error handling — exception taxonomy, classification, and tool error model."""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel

logger = logging.getLogger(__name__)

SECURITY_PREFIX = "Security violation:"
GENERIC_SECURITY_MESSAGE = f"{SECURITY_PREFIX} Access denied"


class PathResolutionError(ValueError):
    """Raised when a path expression is malformed or cannot be resolved."""


class UnknownVariableError(PathResolutionError):
    """Raised when an expression references a variable absent from the context."""

    def __init__(self, variables: list[str], expression: str = "") -> None:
        self.variables = list(variables)
        self.variable = self.variables[0] if self.variables else ""
        self.expression = expression
        names = ", ".join("{" + v + "}" for v in self.variables)
        super().__init__(f"Unknown path variable(s): {names}")


class SecurityViolation(PermissionError):
    """Raised when a path breaks a read/write boundary.

    The message always starts with ``"Security violation:"`` so callers can
    map any instance to a uniform "forbidden" response.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"{SECURITY_PREFIX} {reason}")


class PathTraversalError(SecurityViolation):
    """Raised when a resolved path still contains a ``..`` segment."""

    def __init__(self, reason: str = "Path traversal attempt detected") -> None:
        super().__init__(reason)


class InvalidFilenameError(ValueError):
    """Raised when an output filename is unsafe or non-descriptive."""


class BundleManifestError(ValueError):
    """Raised when a bundle.yaml manifest is missing required structure."""


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    UNKNOWN_VARIABLE = "UNKNOWN_VARIABLE"
    PATH_INVALID = "PATH_INVALID"
    SECURITY_VIOLATION = "SECURITY_VIOLATION"
    FILENAME_INVALID = "FILENAME_INVALID"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    IS_DIRECTORY = "IS_DIRECTORY"
    DISK_FULL = "DISK_FULL"
    READ_ONLY_FS = "READ_ONLY_FS"
    MANIFEST_INVALID = "MANIFEST_INVALID"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, SecurityViolation):
        return (
            ErrorCategory.SECURITY_VIOLATION,
            "Reads are limited to the bundle, core and project roots; "
            "writes are limited to {output-root}",
        )
    if isinstance(error, UnknownVariableError):
        return (
            ErrorCategory.UNKNOWN_VARIABLE,
            "Use only {bundle-root}, {core-root}, {project-root}, {output-root} "
            "or a path entry from the bundle's config.yaml",
        )
    if isinstance(error, PathResolutionError):
        return (ErrorCategory.PATH_INVALID, "Check the path expression format")
    if isinstance(error, InvalidFilenameError):
        return (
            ErrorCategory.FILENAME_INVALID,
            "Use a descriptive filename without separators or special characters",
        )
    if isinstance(error, BundleManifestError):
        return (ErrorCategory.MANIFEST_INVALID, "Fix the bundle's bundle.yaml or config.yaml")
    if isinstance(error, FileNotFoundError):
        return (ErrorCategory.FILE_NOT_FOUND, "File not found — check the path")
    if isinstance(error, IsADirectoryError):
        return (ErrorCategory.IS_DIRECTORY, "Path is a directory — point at a file")
    if isinstance(error, PermissionError):
        return (ErrorCategory.PERMISSION_DENIED, "The server process lacks filesystem permission")

    s = str(error).lower()
    if "exceeds size limit" in s:
        return (ErrorCategory.FILE_TOO_LARGE, "File is larger than AGENT_FILES_MAX_READ_BYTES")
    if "no space left" in s:
        return (ErrorCategory.DISK_FULL, "Disk full — free space on the output volume")
    if "read-only file system" in s:
        return (ErrorCategory.READ_ONLY_FS, "Output volume is mounted read-only")

    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception.

    Security violations are reported with a generic message; the detailed
    message stays in the server log.
    """
    cat, hint = categorize_error(error)
    if cat == ErrorCategory.SECURITY_VIOLATION:
        logger.warning("Rejected file access: %s", error)
        message = GENERIC_SECURITY_MESSAGE
    else:
        message = str(error)
    return ToolError(
        error=message,
        category=cat.value,
        hint=hint,
        retryable=cat == ErrorCategory.DISK_FULL,
    ).model_dump(mode="json")
