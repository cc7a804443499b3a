"""Validation for untrusted agent-definition files.

Checks run on raw file text during discovery, before any metadata is
trusted: placement under the agents root (``root/{group}/{file}.md``),
excluded asset directories, the ``<agent id name title [icon]>`` tag, and
injection signatures in attribute values. Validation never raises; every
problem becomes an entry in the result's ``errors`` list so one bad file
cannot stop a batch scan.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field

from .path_policy import is_within
from .path_resolver import normalize_path

logger = logging.getLogger(__name__)

DEFINITION_EXTENSION = ".md"
EXCLUDED_DIRECTORIES = frozenset({"workflows", "templates", "files"})
REQUIRED_ATTRIBUTES = ("id", "name", "title")
OPTIONAL_ATTRIBUTES = ("icon",)
OUTSIDE_ROOT_ERROR = "File path is outside agents folder"

_AGENT_TAG = re.compile(r"""<agent\b((?:[^>"']|"[^"]*"|'[^']*')*)>""", re.IGNORECASE)
_ATTRIBUTE = re.compile(r"([A-Za-z_][\w-]*)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")

INJECTION_SIGNATURES = (
    re.compile(r"<\s*script", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"\bon[a-z]+\s*=", re.IGNORECASE),
)

_SANITIZE_STEPS = (
    (re.compile(r"[<>]"), ""),
    (re.compile(r"javascript:", re.IGNORECASE), ""),
    (re.compile(r"on\w+=", re.IGNORECASE), ""),
)


@dataclass(frozen=True)
class DefinitionValidationResult:
    """Outcome of validating one definition file."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DefinitionMetadata:
    """Attributes of the ``<agent>`` tag, unsanitized."""

    id: str
    name: str
    title: str
    icon: str = ""


def _parse_attributes(raw: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for match in _ATTRIBUTE.finditer(raw):
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attrs.setdefault(match.group(1).lower(), value)
    return attrs


def validate_location(file_path: str, base_path: str) -> list[str]:
    """Check the file sits at ``base/{group}/{name}.md`` outside excluded dirs.

    Returns:
        List of issue strings (empty = placement is valid).
    """
    path = normalize_path(os.path.abspath(file_path))
    base = normalize_path(os.path.abspath(base_path))

    if path == base or not is_within(path, base):
        return [OUTSIDE_ROOT_ERROR]

    relative = path[len(base):].lstrip("/")
    parts = relative.split("/")
    issues: list[str] = []

    if len(parts) != 2:
        issues.append(f"File must be at depth 1 (agents/{{dir}}/*.md), found: {relative}")
    if not parts[-1].endswith(DEFINITION_EXTENSION):
        issues.append(f"File must have {DEFINITION_EXTENSION} extension")
    if len(parts) > 1 and parts[0] in EXCLUDED_DIRECTORIES:
        issues.append(f"File is in excluded directory: {parts[0]}")
    return issues


def validate_agent_tag(content: str) -> tuple[list[str], dict[str, str]]:
    """Check for exactly one ``<agent>`` tag with non-empty required attributes.

    Returns:
        ``(issues, attributes)``; attributes is empty when no tag was found.
    """
    tags = _AGENT_TAG.findall(content)
    if not tags:
        return ["Missing <agent> tag with required attributes (id, name, title)"], {}

    issues: list[str] = []
    if len(tags) > 1:
        issues.append(f"Expected a single <agent> tag, found {len(tags)}")

    attrs = _parse_attributes(tags[0])
    for name in REQUIRED_ATTRIBUTES:
        if name not in attrs:
            issues.append(f"Agent {name} attribute is missing")
        elif not attrs[name].strip():
            issues.append(f"Agent {name} attribute is empty")
    for name in OPTIONAL_ATTRIBUTES:
        if name in attrs and not attrs[name].strip():
            issues.append(f"Agent {name} attribute is empty")
    return issues, attrs


def scan_for_injection(attrs: dict[str, str]) -> list[str]:
    """Report the first injection signature found in tag attribute values."""
    checked = [a for a in (*REQUIRED_ATTRIBUTES, *OPTIONAL_ATTRIBUTES) if a in attrs]
    for name in checked:
        value = attrs[name]
        for signature in INJECTION_SIGNATURES:
            if signature.search(value):
                if name == "icon":
                    return ["Agent icon contains potentially dangerous content (XSS risk)"]
                return ["Agent metadata contains potentially dangerous content (XSS risk)"]
    return []


def validate_definition_file(
    file_path: str,
    base_path: str,
    file_content: str | bytes,
) -> DefinitionValidationResult:
    """Validate an agent-definition file before its metadata is trusted.

    Args:
        file_path: Path of the file being validated.
        base_path: Agents root the file must sit under.
        file_content: Raw text of the file. Bytes are accepted and must be
            valid UTF-8.

    Returns:
        DefinitionValidationResult; ``valid`` is True iff ``errors`` is empty.
    """
    errors = validate_location(file_path, base_path)
    if OUTSIDE_ROOT_ERROR in errors:
        return DefinitionValidationResult(valid=False, errors=errors)

    if isinstance(file_content, bytes):
        try:
            file_content = file_content.decode("utf-8")
        except UnicodeDecodeError as exc:
            errors.append(f"File is not valid UTF-8 text: {exc.reason}")
            return DefinitionValidationResult(valid=False, errors=errors)
    if not isinstance(file_content, str):
        errors.append(f"Unreadable file content of type {type(file_content).__name__}")
        return DefinitionValidationResult(valid=False, errors=errors)
    if "\0" in file_content:
        errors.append("File contains NUL bytes (binary or corrupted content)")
        return DefinitionValidationResult(valid=False, errors=errors)

    tag_issues, attrs = validate_agent_tag(file_content)
    errors.extend(tag_issues)
    errors.extend(scan_for_injection(attrs))

    if errors:
        logger.debug("Definition %s invalid: %s", file_path, errors)
    return DefinitionValidationResult(valid=not errors, errors=errors)


def parse_definition_metadata(content: str) -> DefinitionMetadata | None:
    """Extract ``<agent>`` attributes, or None when the tag is unusable."""
    tags = _AGENT_TAG.findall(content)
    if not tags:
        return None
    attrs = _parse_attributes(tags[0])
    if any(not attrs.get(name, "").strip() for name in REQUIRED_ATTRIBUTES):
        return None
    return DefinitionMetadata(
        id=attrs["id"].strip(),
        name=attrs["name"].strip(),
        title=attrs["title"].strip(),
        icon=attrs.get("icon", "").strip(),
    )


def sanitize(value: str) -> str:
    """Strip angle brackets, ``javascript:`` and ``on*=`` handlers for display.

    Defense in depth for values that already passed validation; not a
    substitute for :func:`validate_definition_file`.
    """
    for pattern, replacement in _SANITIZE_STEPS:
        value = pattern.sub(replacement, value)
    return value.strip()
