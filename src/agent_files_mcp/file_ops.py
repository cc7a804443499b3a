"""Guarded file reads and writes.

Every operation resolves its expression, passes the canonical path through
the matching gate, then passes the symlink-resolved path through the same
gate (with symlink-resolved roots) before touching the file. A rejection at
any step is fatal for the call; there is no fallback location.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from .errors import SecurityViolation
from .filenames import validate_filename
from .models.files import FileReadResult, FileWriteResult, ResolvedPath
from .path_policy import validate_read_path, validate_write_path
from .path_resolver import resolve_path
from .variables import VariableContext

logger = logging.getLogger(__name__)


def _realized(context: VariableContext) -> VariableContext:
    """Return *context* with every root replaced by its symlink-free form."""
    return VariableContext(
        {name: os.path.realpath(value) for name, value in context.items()},
        output_root=os.path.realpath(context.output_root),
    )


def describe_path(expression: str, context: VariableContext) -> ResolvedPath:
    """Resolve *expression* and report whether the write gate would accept it."""
    path = resolve_path(expression, context)
    try:
        validate_write_path(path, context)
        writable = True
    except SecurityViolation:
        writable = False
    return ResolvedPath(expression=expression, path=path, writable=writable)


def read_file(expression: str, context: VariableContext, *, max_bytes: int) -> FileReadResult:
    """Read a UTF-8 text file addressed by a symbolic expression.

    Raises:
        UnknownVariableError, PathTraversalError: From resolution.
        SecurityViolation: The path, or its symlink target, is outside the
            read roots.
        FileNotFoundError, IsADirectoryError: The target is unusable.
        ValueError: The file exceeds *max_bytes*.
    """
    start = time.monotonic()
    path = resolve_path(expression, context)
    validate_read_path(path, context)

    real = os.path.realpath(path)
    validate_read_path(real, _realized(context))
    if real != path:
        logger.info("Symbolic link resolved: %s -> %s", path, real)

    target = Path(real)
    if target.is_dir():
        raise IsADirectoryError(f"Is a directory: {expression}")
    size = target.stat().st_size
    if size > max_bytes:
        raise ValueError(f"File {expression} exceeds size limit ({max_bytes} bytes)")

    content = target.read_text(encoding="utf-8")
    logger.info("Read %s (%d chars, %.2fms)", path, len(content), (time.monotonic() - start) * 1000)
    return FileReadResult(path=path, content=content, size=len(content))


def save_output(
    expression: str,
    content: str,
    context: VariableContext,
    *,
    check_filename: bool = True,
    reject_generic: bool = True,
) -> FileWriteResult:
    """Write *content* to a path inside the output root, creating parents.

    Raises:
        UnknownVariableError, PathTraversalError: From resolution.
        InvalidFilenameError: The target filename is unsafe or generic.
        SecurityViolation: The path, or its symlink target, is outside the
            output root.
        OSError: The write itself failed (permissions, disk full, ...).
    """
    start = time.monotonic()
    path = resolve_path(expression, context)
    if check_filename:
        validate_filename(os.path.basename(path), reject_generic=reject_generic)
    validate_write_path(path, context)

    real = os.path.realpath(path)
    validate_write_path(real, _realized(context))

    target = Path(real)
    if target.is_dir():
        raise IsADirectoryError(f"Is a directory: {expression}")
    created = not target.parent.exists()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")

    logger.info("Wrote %s (%d chars, %.2fms)", path, len(content), (time.monotonic() - start) * 1000)
    return FileWriteResult(path=path, size=len(content), created_directories=created)
