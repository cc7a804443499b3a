"""Bundle manifest discovery — ``{bundles_root}/*/bundle.yaml``.

Manifest shapes:

- ``type: bundle`` — multi-agent; ``agents`` list, at least one entry with
  ``entry_point: true``. Only entry-point agents are listed.
- ``type: standalone`` — single ``agent`` mapping.

Every agent entry names its definition ``file`` relative to the bundle
directory; entries resolving outside the bundle are rejected.

A bundle may also ship ``config.yaml``; its path-valued entries become
custom variables for that bundle's context (see :func:`load_bundle_variables`).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .definition_validator import sanitize
from .errors import BundleManifestError, PathResolutionError, SecurityViolation
from .models.agents import BundleAgent
from .path_policy import is_within
from .path_resolver import has_traversal, normalize_path, resolve_path
from .variables import SYSTEM_VARIABLES, VARIABLE_NAME_PATTERN, VariableContext

logger = logging.getLogger(__name__)

MANIFEST_NAME = "bundle.yaml"
CONFIG_NAME = "config.yaml"
BUNDLE_TYPES = ("bundle", "standalone")
_AGENT_FIELDS = ("id", "name", "title", "file")


def validate_bundle_manifest(manifest: Any) -> None:
    """Check the required manifest structure.

    Raises:
        BundleManifestError: Describing the first structural problem found.
    """
    if not isinstance(manifest, dict):
        raise BundleManifestError("Bundle manifest must be a mapping")
    for key in ("type", "name", "version"):
        if not manifest.get(key):
            raise BundleManifestError(f"Bundle manifest missing required field: {key}")

    bundle_type = manifest["type"]
    if bundle_type not in BUNDLE_TYPES:
        raise BundleManifestError(
            f"Invalid bundle type: {bundle_type}. Must be 'bundle' or 'standalone'"
        )

    if bundle_type == "bundle":
        agents = manifest.get("agents")
        if not isinstance(agents, list):
            raise BundleManifestError(
                "Multi-agent bundle manifest missing required field: agents (must be array)"
            )
        if not any(isinstance(a, dict) and a.get("entry_point") is True for a in agents):
            raise BundleManifestError(
                "Multi-agent bundle must have at least one agent with entry_point: true"
            )
    elif not isinstance(manifest.get("agent"), dict):
        raise BundleManifestError("Standalone bundle manifest missing required field: agent")


def load_bundle_manifest(path: Path) -> dict:
    """Read and validate one ``bundle.yaml``.

    Raises:
        FileNotFoundError: The manifest does not exist.
        BundleManifestError: Invalid YAML or structure.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise BundleManifestError(f"Invalid YAML in bundle manifest {path}: {exc}") from exc
    validate_bundle_manifest(data)
    return data


def load_bundle_variables(context: VariableContext) -> dict[str, str]:
    """Read path-valued entries of ``{bundle-root}/config.yaml``.

    A value counts as a path when it is absolute or starts with a
    ``{name}`` placeholder; it is resolved once against *context* (system
    variables only, no rescanning). Other values (user names, flags, lists)
    are ignored, as are entries that would redefine a system variable or
    fail resolution.

    Returns:
        Mapping of variable name -> canonical absolute path, empty when the
        bundle has no config file.

    Raises:
        BundleManifestError: The config file is not valid YAML or not a mapping.
    """
    bundle_root = context["bundle-root"]
    path = os.path.join(bundle_root, CONFIG_NAME)
    if not os.path.isfile(path):
        return {}
    real = normalize_path(os.path.realpath(path))
    if not is_within(real, normalize_path(os.path.realpath(bundle_root))):
        logger.warning("Ignoring %s: link target %s is outside the bundle", path, real)
        return {}

    try:
        with open(real, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise BundleManifestError(f"Invalid YAML in bundle config {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BundleManifestError(f"Bundle config {path} must be a mapping")

    variables: dict[str, str] = {}
    for name, value in data.items():
        if not isinstance(value, str) or not value.startswith(("/", "{")):
            continue
        if not isinstance(name, str) or not VARIABLE_NAME_PATTERN.match(name):
            logger.warning("Ignoring config entry %r in %s: invalid variable name", name, path)
            continue
        if name in SYSTEM_VARIABLES:
            logger.warning("Ignoring config entry '%s' in %s: shadows a system variable", name, path)
            continue
        try:
            variables[name] = resolve_path(value, context)
        except (PathResolutionError, SecurityViolation) as exc:
            logger.warning("Ignoring config entry '%s' in %s: %s", name, path, exc)
    return variables


def _agent_file(bundle_path: Path, relative: str) -> str:
    """Return the absolute definition path, refusing anything outside the bundle."""
    root = normalize_path(str(bundle_path.resolve()))
    if has_traversal(relative) or relative.startswith(("/", "\\")):
        raise SecurityViolation(f"Agent file '{relative}' escapes bundle directory")
    candidate = normalize_path(f"{root}/{relative}")
    if not is_within(candidate, root):
        raise SecurityViolation(f"Agent file '{relative}' escapes bundle directory")
    return candidate


def _bundle_agent(entry: dict, manifest: dict, bundle_path: Path) -> BundleAgent:
    missing = [k for k in _AGENT_FIELDS if not str(entry.get(k) or "").strip()]
    if missing:
        raise BundleManifestError(f"Agent entry missing required field(s): {', '.join(missing)}")
    return BundleAgent(
        id=sanitize(str(entry["id"])),
        name=sanitize(str(entry["name"])),
        title=sanitize(str(entry["title"])),
        description=sanitize(str(entry.get("description") or "")),
        icon=sanitize(str(entry.get("icon") or "")),
        bundle_name=str(manifest["name"]),
        bundle_path=str(bundle_path.resolve()),
        file_path=_agent_file(bundle_path, str(entry["file"])),
    )


def discover_bundles(bundles_root: str | Path) -> list[BundleAgent]:
    """List entry-point agents from every bundle directory.

    A bundle whose manifest is missing, malformed, or declares an escaping
    agent file is logged and skipped; the scan continues.

    Returns:
        Agents in bundle-directory order. A missing root yields ``[]``.
    """
    root = Path(bundles_root)
    if not root.is_dir():
        logger.info("Bundles directory not found: %s", root)
        return []

    agents: list[BundleAgent] = []
    for bundle_dir in sorted(root.iterdir()):
        if not bundle_dir.is_dir() or bundle_dir.name.startswith("."):
            continue
        try:
            manifest = load_bundle_manifest(bundle_dir / MANIFEST_NAME)
            if manifest["type"] == "bundle":
                entries = [a for a in manifest["agents"] if isinstance(a, dict) and a.get("entry_point") is True]
            else:
                entries = [manifest["agent"]]
            agents.extend([_bundle_agent(entry, manifest, bundle_dir) for entry in entries])
        except (OSError, BundleManifestError, SecurityViolation) as exc:
            logger.warning("Failed to load bundle %s: %s", bundle_dir.name, exc)
            continue

    logger.info("Discovered %d bundle agent(s) in %s", len(agents), root)
    return agents
