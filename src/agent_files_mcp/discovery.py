"""Agent-definition discovery — scans ``agents/{group}/*.md``, no caching."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .definition_validator import (
    OUTSIDE_ROOT_ERROR,
    parse_definition_metadata,
    sanitize,
    validate_definition_file,
)
from .models.agents import AgentDefinition, SkippedFile
from .path_policy import is_within
from .path_resolver import normalize_path

logger = logging.getLogger(__name__)


def _candidate_files(agents_root: Path) -> list[Path]:
    files: list[Path] = []
    for group in sorted(agents_root.iterdir()):
        if not group.is_dir() or group.name.startswith("."):
            continue
        files.extend(sorted(f for f in group.glob("*.md") if f.is_file()))
    return files


def discover_definitions(agents_root: str | Path) -> tuple[list[AgentDefinition], list[SkippedFile]]:
    """Validate every candidate definition file under *agents_root*.

    Invalid files, symlinks whose target lies outside the agents root and
    files repeating an already-seen agent id are logged and skipped;
    the scan always continues with the remaining files.

    Returns:
        ``(definitions, skipped)`` in path order. A missing root yields two
        empty lists.
    """
    root = Path(agents_root)
    if not root.is_dir():
        logger.info("Agents folder not found: %s", root)
        return [], []

    definitions: list[AgentDefinition] = []
    skipped: list[SkippedFile] = []
    seen_ids: set[str] = set()
    real_root = normalize_path(os.path.realpath(root))

    for path in _candidate_files(root):
        real = os.path.realpath(path)
        if not is_within(normalize_path(real), real_root):
            logger.warning("Skipping definition %s: link target %s is outside %s", path, real, real_root)
            skipped.append(SkippedFile(file_path=str(path), errors=[OUTSIDE_ROOT_ERROR]))
            continue
        try:
            raw = Path(real).read_bytes()
        except OSError as exc:
            logger.warning("Skipping unreadable definition %s: %s", path, exc)
            skipped.append(SkippedFile(file_path=str(path), errors=[f"Unreadable file: {exc}"]))
            continue

        result = validate_definition_file(str(path), str(root), raw)
        if not result.valid:
            logger.warning("Skipping invalid definition %s: %s", path, "; ".join(result.errors))
            skipped.append(SkippedFile(file_path=str(path), errors=result.errors))
            continue

        meta = parse_definition_metadata(raw.decode("utf-8"))
        if meta is None:
            skipped.append(SkippedFile(file_path=str(path), errors=["Unusable <agent> tag"]))
            continue
        if meta.id in seen_ids:
            logger.warning("Skipping duplicate agent id '%s' in %s", meta.id, path)
            skipped.append(SkippedFile(file_path=str(path), errors=[f"Duplicate agent id: {meta.id}"]))
            continue

        seen_ids.add(meta.id)
        definitions.append(AgentDefinition(
            id=sanitize(meta.id),
            name=sanitize(meta.name),
            title=sanitize(meta.title),
            icon=sanitize(meta.icon),
            file_path=str(path),
        ))

    logger.info("Discovered %d agent definition(s), skipped %d, in %s", len(definitions), len(skipped), root)
    return definitions, skipped
