"""Symbolic path resolution — ``{variable}`` expressions to canonical paths.

Resolution is a single pass over the expression:

1. every ``{name}`` placeholder must exist in the context (all-or-nothing),
2. each placeholder is replaced by its value as literal text; the inserted
   text is never rescanned, so a value cannot inject further variables,
3. the substituted string is normalized (separator runs collapsed, ``.``
   segments dropped),
4. any surviving ``..`` segment is a security violation, wherever it came
   from and wherever it would land.

Normalization never interprets ``..``: :func:`os.path.normpath` would fold it
away and hide the traversal, so segments are handled explicitly here.
"""

from __future__ import annotations

import re

from .errors import PathResolutionError, PathTraversalError, SecurityViolation, UnknownVariableError
from .variables import PROJECT_ROOT, VariableContext

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]*)\}")

# Both separators split segments, so "..\\" cannot slip through on POSIX.
_SEPARATOR_PATTERN = re.compile(r"[\\/]+")


def find_placeholders(expression: str) -> list[str]:
    """Return placeholder names in order of first appearance, without duplicates."""
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(expression):
        seen.setdefault(match.group(1), None)
    return list(seen)


def split_segments(path: str) -> list[str]:
    """Split *path* on ``/`` and ``\\`` runs, dropping empty and ``.`` segments."""
    return [s for s in _SEPARATOR_PATTERN.split(path) if s and s != "."]


def has_traversal(path: str) -> bool:
    """Return True when any segment of *path* is ``..``."""
    return ".." in split_segments(path)


def normalize_path(path: str) -> str:
    """Collapse separators and ``.`` segments, keeping ``..`` visible.

    Absolute input stays absolute (``//a///b/./c`` -> ``/a/b/c``); relative
    input stays relative. An empty relative path normalizes to ``.``.
    """
    absolute = path.startswith(("/", "\\"))
    body = "/".join(split_segments(path))
    if absolute:
        return "/" + body
    return body or "."


def resolve_path(expression: str, context: VariableContext) -> str:
    """Resolve a symbolic path expression to a canonical absolute path.

    Args:
        expression: Path with zero or more ``{name}`` placeholders, e.g.
            ``"{bundle-root}/workflows/intake/workflow.yaml"``.
        context: Variable context for this bundle/request.

    Returns:
        Absolute, normalized path with no ``..`` segment and no placeholder.
        A result that is still relative is anchored at ``{project-root}``.

    Raises:
        UnknownVariableError: A placeholder is not defined in *context*.
        PathTraversalError: The substituted path contains a ``..`` segment.
        SecurityViolation: The expression contains a NUL character.
        PathResolutionError: The expression is empty, has a brace outside a
            ``{name}`` placeholder, or is relative with no ``project-root``
            in the context to anchor it.
    """
    if not expression or not expression.strip():
        raise PathResolutionError("Path expression is empty")
    if "\0" in expression:
        raise SecurityViolation("Invalid path characters detected")

    stray = PLACEHOLDER_PATTERN.sub("", expression)
    if "{" in stray or "}" in stray:
        raise PathResolutionError(f"Path '{expression}' contains unbalanced or nested braces")

    missing = [name for name in find_placeholders(expression) if name not in context]
    if missing:
        raise UnknownVariableError(missing, expression)

    substituted = PLACEHOLDER_PATTERN.sub(lambda m: context[m.group(1)], expression)

    if has_traversal(substituted):
        raise PathTraversalError()

    canonical = normalize_path(substituted)
    if not canonical.startswith("/"):
        if PROJECT_ROOT not in context:
            raise PathResolutionError(
                f"Path '{expression}' is relative and the context has no {{{PROJECT_ROOT}}}"
            )
        anchor = normalize_path(context[PROJECT_ROOT])
        canonical = normalize_path(f"{anchor}/{canonical}")

    return canonical
