"""Output filename checks — unsafe characters and non-descriptive names."""

from __future__ import annotations

import re

from .errors import InvalidFilenameError

GENERIC_PATTERNS = (
    re.compile(r"^output(-\d+)?\.md$", re.IGNORECASE),
    re.compile(r"^result(-\d+)?\.txt$", re.IGNORECASE),
    re.compile(r"^file(-?\d+)?\.", re.IGNORECASE),
    re.compile(r"^untitled", re.IGNORECASE),
    re.compile(r"^document\d*\.", re.IGNORECASE),
)

INVALID_CHARS_PATTERN = re.compile(r'[<>:"|?*\x00]')

_GENERIC_HINT = (
    "Use descriptive names based on content or purpose.\n\n"
    "Examples:\n"
    "  procurement-request.md\n"
    "  budget-analysis-q3.csv\n"
    "  approval-checklist.md\n\n"
    "Rejected:\n"
    "  output.md\n"
    "  result.txt\n"
    "  file-1.md"
)


def validate_filename(filename: str, *, reject_generic: bool = True) -> None:
    """Validate a bare filename (no directory part).

    Args:
        filename: Name to check.
        reject_generic: Also reject meaningless names like ``output.md``.

    Raises:
        InvalidFilenameError: With an explanatory message.
    """
    trimmed = filename.strip()
    if not trimmed:
        raise InvalidFilenameError("Filename cannot be empty")

    if ".." in trimmed or "/" in trimmed or "\\" in trimmed:
        raise InvalidFilenameError(
            'Filename cannot contain path separators or "..".\n'
            "Path traversal is not allowed for security reasons."
        )

    if INVALID_CHARS_PATTERN.search(trimmed):
        raise InvalidFilenameError(
            'Filename contains invalid characters: < > : " | ? *\n'
            "These characters are not allowed on most operating systems."
        )

    if reject_generic and any(p.match(trimmed) for p in GENERIC_PATTERNS):
        raise InvalidFilenameError(f'Generic filename "{trimmed}" not allowed. {_GENERIC_HINT}')


def is_valid_filename(filename: str, *, reject_generic: bool = True) -> bool:
    try:
        validate_filename(filename, reject_generic=reject_generic)
    except InvalidFilenameError:
        return False
    return True


def get_validation_error(filename: str, *, reject_generic: bool = True) -> str | None:
    """Return the validation message for *filename*, or None when it is valid."""
    try:
        validate_filename(filename, reject_generic=reject_generic)
    except InvalidFilenameError as exc:
        return str(exc)
    return None
