"""Policy gates for filesystem access boundaries.

``validate_write_path`` is the last check before any write: it trusts
nothing upstream, re-normalizes its input and accepts only the configured
output root or its descendants. ``validate_read_path`` limits reads to the
context's system roots. Both are pure; symlink resolution, when needed, is
done by the I/O layer, which passes the real path back through the gate.
"""

from __future__ import annotations

import logging

from .errors import PathTraversalError, SecurityViolation
from .path_resolver import has_traversal, normalize_path
from .variables import VariableContext

logger = logging.getLogger(__name__)


def is_within(path: str, root: str) -> bool:
    """Return True when *path* equals *root* or lies below it.

    Comparison is on segment boundaries: ``/data/out`` does not contain
    ``/data/out-fake``. Both arguments must already be normalized.
    """
    if path == root:
        return True
    prefix = root if root.endswith("/") else root + "/"
    return path.startswith(prefix)


def _canonical_candidate(candidate_path: str, operation: str) -> str:
    if not isinstance(candidate_path, str) or not candidate_path.strip():
        logger.warning("%s rejected: empty path", operation)
        raise SecurityViolation("Invalid path")
    if "\0" in candidate_path:
        logger.warning("%s rejected: NUL byte in %r", operation, candidate_path)
        raise SecurityViolation("Invalid path characters detected")
    if has_traversal(candidate_path):
        logger.warning("%s rejected: traversal in %r", operation, candidate_path)
        raise PathTraversalError()
    normalized = normalize_path(candidate_path)
    if not normalized.startswith("/"):
        logger.warning("%s rejected: relative path %r", operation, candidate_path)
        raise SecurityViolation("Path must be absolute")
    return normalized


def validate_write_path(candidate_path: str, context: VariableContext) -> None:
    """Enforce the single write allow-list entry.

    Args:
        candidate_path: Absolute path the caller intends to write.
        context: Variable context carrying the configured output root.

    Raises:
        SecurityViolation: The path is relative, malformed, contains a ``..``
            segment, or lies outside the output root.
    """
    root = normalize_path(context.output_root)
    path = _canonical_candidate(candidate_path, "Write")
    if not is_within(path, root):
        logger.warning("Write rejected: %s is outside output root %s", path, root)
        raise SecurityViolation("Write access denied outside the output directory")


def validate_read_path(candidate_path: str, context: VariableContext) -> None:
    """Limit reads to the bundle, core, project and output roots.

    Raises:
        SecurityViolation: The path is malformed or outside every read root.
    """
    path = _canonical_candidate(candidate_path, "Read")
    roots = [normalize_path(r) for r in context.read_roots()]
    if not any(is_within(path, root) for root in roots):
        logger.warning("Read rejected: %s is outside allowed roots %s", path, roots)
        raise SecurityViolation("Access denied")
