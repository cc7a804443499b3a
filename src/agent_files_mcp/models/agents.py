"""Agent discovery models — output schemas for agents_list.

Definitions come from ``agents/{group}/*.md`` files validated by the
definition validator; bundle agents come from ``bundle.yaml`` manifests.
Display fields are sanitized before they are placed in these models.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class AgentDefinition(BaseModel):
    """A validated agent-definition file."""

    id: str
    name: str
    title: str
    icon: str = ""
    file_path: str


class SkippedFile(BaseModel):
    """A discovered file rejected during validation."""

    file_path: str
    errors: list[str] = Field(default_factory=list)


class BundleAgent(BaseModel):
    """An entry-point agent declared in a bundle manifest."""

    id: str
    name: str
    title: str
    description: str = ""
    icon: str = ""
    bundle_name: str
    bundle_path: str
    file_path: str


class AgentListing(BaseModel):
    """Output schema for agents_list."""

    definitions: list[AgentDefinition] = Field(default_factory=list)
    bundle_agents: list[BundleAgent] = Field(default_factory=list)
    skipped: list[SkippedFile] = Field(default_factory=list)
