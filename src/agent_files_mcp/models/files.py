"""File operation models — output schemas for read_file, save_output, resolve_path."""

from __future__ import annotations

from pydantic import BaseModel


class ResolvedPath(BaseModel):
    """Canonical form of a symbolic path expression."""

    expression: str
    path: str
    writable: bool


class FileReadResult(BaseModel):
    """Output schema for read_file."""

    path: str
    content: str
    size: int


class FileWriteResult(BaseModel):
    """Output schema for save_output.

    ``size`` counts characters written, matching ``len(content)``.
    """

    path: str
    size: int
    created_directories: bool = False
