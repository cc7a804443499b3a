"""Server configuration via environment variables."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator, model_validator

from .path_policy import is_within


def _absolute(value: str) -> str:
    """Return *value* as an absolute, normalized path string."""
    return os.path.normpath(os.path.abspath(os.path.expanduser(value)))


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment.

    All roots are absolutized on construction. Root fields left empty are
    derived from ``project_root``:

    - ``core_root``    -> ``{project_root}/bmad/core``
    - ``bundles_root`` -> ``{project_root}/bmad/custom/bundles``
    - ``output_root``  -> ``{project_root}/data/agent-outputs``
    - ``agents_root``  -> ``{project_root}/agents``
    """

    project_root: str = Field(default_factory=os.getcwd)
    core_root: str = Field(default="")
    bundles_root: str = Field(default="")
    output_root: str = Field(default="")
    agents_root: str = Field(default="")
    max_read_bytes: int = Field(default=1024 * 1024)
    reject_generic_filenames: bool = Field(default=True)

    @field_validator("project_root")
    @classmethod
    def validate_project_root(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("project_root must not be empty")
        return _absolute(value.strip())

    @field_validator("max_read_bytes")
    @classmethod
    def validate_max_read_bytes(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_read_bytes must be >= 1")
        return value

    @model_validator(mode="after")
    def derive_roots(self) -> ServerConfig:
        defaults = {
            "core_root": ("bmad", "core"),
            "bundles_root": ("bmad", "custom", "bundles"),
            "output_root": ("data", "agent-outputs"),
            "agents_root": ("agents",),
        }
        for name, parts in defaults.items():
            raw = getattr(self, name).strip()
            value = _absolute(raw) if raw else os.path.join(self.project_root, *parts)
            setattr(self, name, value)

        if is_within(self.project_root, self.output_root):
            raise ValueError(
                "output_root must be a dedicated directory, not the project root or one of its parents"
            )
        for name in ("core_root", "bundles_root", "agents_root"):
            root = getattr(self, name)
            if is_within(root, self.output_root) or is_within(self.output_root, root):
                raise ValueError(f"output_root must not overlap {name} ({root})")
        return self

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            project_root=os.getenv("AGENT_FILES_PROJECT_ROOT", "") or os.getcwd(),
            core_root=os.getenv("AGENT_FILES_CORE_ROOT", ""),
            bundles_root=os.getenv("AGENT_FILES_BUNDLES_ROOT", ""),
            output_root=os.getenv("AGENT_FILES_OUTPUT_ROOT", ""),
            agents_root=os.getenv("AGENT_FILES_AGENTS_ROOT", ""),
            max_read_bytes=int(os.getenv("AGENT_FILES_MAX_READ_BYTES", str(1024 * 1024))),
            reject_generic_filenames=os.getenv(
                "AGENT_FILES_REJECT_GENERIC_FILENAMES", "true"
            ).lower() in ("1", "true", "yes"),
        )


# Singleton: read once on first access, never patched at request time.
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access."""
    global _config
    if _config is None:
        import logging

        _config = ServerConfig.from_env()
        logging.getLogger(__name__).info(
            "Configured roots: project=%s core=%s bundles=%s output=%s agents=%s",
            _config.project_root,
            _config.core_root,
            _config.bundles_root,
            _config.output_root,
            _config.agents_root,
        )
    return _config
