"""Variable contexts — immutable name -> directory mappings for path resolution."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import ServerConfig

BUNDLE_ROOT = "bundle-root"
CORE_ROOT = "core-root"
PROJECT_ROOT = "project-root"
OUTPUT_ROOT = "output-root"
SYSTEM_VARIABLES = frozenset({BUNDLE_ROOT, CORE_ROOT, PROJECT_ROOT, OUTPUT_ROOT})

VARIABLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def _clean_directory(name: str, value: str) -> str:
    """Validate a variable value and return it with redundant separators removed."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"Variable '{name}' must map to a non-empty path string")
    if "\0" in value or "{" in value or "}" in value:
        raise ValueError(f"Variable '{name}' contains invalid characters")
    if not os.path.isabs(value):
        raise ValueError(f"Variable '{name}' must be an absolute path, got '{value}'")
    segments = [s for s in value.split("/") if s and s != "."]
    if ".." in segments:
        raise ValueError(f"Variable '{name}' must not contain '..' segments")
    return "/" + "/".join(segments)


class VariableContext(Mapping[str, str]):
    """Read-only mapping of variable name (no braces) to absolute directory.

    The context also records the configured output root, which the write
    gate uses as its single allow-list entry. Instances are never mutated;
    build a new one per bundle or request.
    """

    __slots__ = ("_variables", "_output_root")

    def __init__(self, variables: Mapping[str, str], *, output_root: str) -> None:
        cleaned: dict[str, str] = {}
        for name, value in variables.items():
            if not VARIABLE_NAME_PATTERN.match(name):
                raise ValueError(f"Invalid variable name '{name}'")
            cleaned[name] = _clean_directory(name, value)
        self._variables = MappingProxyType(cleaned)
        self._output_root = _clean_directory("output root", output_root)

    @property
    def output_root(self) -> str:
        """Absolute output root, the only directory writes may target."""
        return self._output_root

    def __getitem__(self, name: str) -> str:
        return self._variables[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __repr__(self) -> str:
        return f"VariableContext({dict(self._variables)!r}, output_root={self._output_root!r})"

    def read_roots(self) -> list[str]:
        """Directories reads may reach: the system roots present in this context."""
        roots = [self._variables[n] for n in (BUNDLE_ROOT, CORE_ROOT, PROJECT_ROOT) if n in self._variables]
        roots.append(self._output_root)
        return roots


def _validate_bundle_name(bundle_name: str) -> str:
    name = bundle_name.strip()
    if not name:
        return ""
    if name in (".", "..") or "/" in name or "\\" in name or "\0" in name:
        raise ValueError(f"Bundle name must be a single directory name, got '{bundle_name}'")
    return name


def create_variable_context(
    bundle_name: str,
    config: ServerConfig,
    custom_variables: Mapping[str, str] | None = None,
) -> VariableContext:
    """Build the variable context for one bundle.

    Args:
        bundle_name: Bundle directory under the bundles root. Empty means
            "no bundle": ``{bundle-root}`` then points at the bundles root.
        config: Process configuration supplying the trusted roots.
        custom_variables: Extra name -> absolute directory entries. They may
            not redefine a system variable.

    Returns:
        A VariableContext with ``bundle-root``, ``core-root``,
        ``project-root`` and ``output-root`` plus any custom entries.

    Raises:
        ValueError: Invalid bundle name, custom variable name or value, or a
            custom variable shadowing a system variable.
    """
    name = _validate_bundle_name(bundle_name)
    bundle_root = os.path.join(config.bundles_root, name) if name else config.bundles_root

    variables = {
        BUNDLE_ROOT: bundle_root,
        CORE_ROOT: config.core_root,
        PROJECT_ROOT: config.project_root,
        OUTPUT_ROOT: config.output_root,
    }
    for key, value in (custom_variables or {}).items():
        if key in SYSTEM_VARIABLES:
            raise ValueError(f"Custom variable '{key}' would shadow a system variable")
        variables[key] = value

    return VariableContext(variables, output_root=config.output_root)
