"""Shared test fixtures for agent-files-mcp."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from agent_files_mcp.config import ServerConfig
from agent_files_mcp.variables import VariableContext, create_variable_context

BUNDLE_MANIFEST = """\
type: bundle
name: procurement
version: 1.0.0
agents:
  - id: intake
    name: Alex
    title: Intake Specialist
    icon: "📋"
    file: agents/intake.md
    entry_point: true
  - id: helper
    name: Sam
    title: Internal Helper
    file: agents/helper.md
"""

INTAKE_DEFINITION = """\
# Intake

<agent id="intake" name="Alex" title="Intake Specialist" icon="📋">
Collects procurement requests.
</agent>
"""


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


def definition(agent_id: str, name: str = "Agent", title: str = "Helper", icon: str = "") -> str:
    """Return definition-file text with a single well-formed <agent> tag."""
    icon_attr = f' icon="{icon}"' if icon else ""
    return f'<agent id="{agent_id}" name="{name}" title="{title}"{icon_attr}>\nBody\n</agent>\n'


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Reset the config singleton and strip AGENT_FILES_* env between tests."""
    import agent_files_mcp.config as cfg_mod

    for var in (
        "AGENT_FILES_PROJECT_ROOT",
        "AGENT_FILES_CORE_ROOT",
        "AGENT_FILES_BUNDLES_ROOT",
        "AGENT_FILES_OUTPUT_ROOT",
        "AGENT_FILES_AGENTS_ROOT",
        "AGENT_FILES_MAX_READ_BYTES",
        "AGENT_FILES_REJECT_GENERIC_FILENAMES",
    ):
        monkeypatch.delenv(var, raising=False)
    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture()
def project(tmp_path, monkeypatch) -> Path:
    """Build a project tree on disk and point the server config at it.

    Layout::

        proj/
          bmad/core/tasks/workflow.md
          bmad/custom/bundles/procurement/{bundle.yaml, agents/intake.md, agents/helper.md}
          agents/finance/analyst.md
          data/agent-outputs/
          src/app.py
    """
    root = tmp_path / "proj"
    (root / "bmad" / "core" / "tasks").mkdir(parents=True)
    (root / "bmad" / "core" / "tasks" / "workflow.md").write_text("# Core workflow\n", encoding="utf-8")

    bundle = root / "bmad" / "custom" / "bundles" / "procurement"
    (bundle / "agents").mkdir(parents=True)
    (bundle / "bundle.yaml").write_text(BUNDLE_MANIFEST, encoding="utf-8")
    (bundle / "agents" / "intake.md").write_text(INTAKE_DEFINITION, encoding="utf-8")
    (bundle / "agents" / "helper.md").write_text(definition("helper", "Sam"), encoding="utf-8")

    (root / "agents" / "finance").mkdir(parents=True)
    (root / "agents" / "finance" / "analyst.md").write_text(
        definition("analyst", "Morgan", "Budget Analyst", "💰"), encoding="utf-8"
    )

    (root / "data" / "agent-outputs").mkdir(parents=True)
    (root / "src").mkdir()
    (root / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")

    monkeypatch.setenv("AGENT_FILES_PROJECT_ROOT", str(root))
    return root


@pytest.fixture()
def project_config(project) -> ServerConfig:
    return ServerConfig(project_root=str(project))


@pytest.fixture()
def project_context(project_config) -> VariableContext:
    """Variable context for the ``procurement`` bundle of the on-disk project."""
    return create_variable_context("procurement", project_config)


@pytest.fixture()
def proj_context() -> VariableContext:
    """In-memory context rooted at ``/proj`` with output root ``/data/agent-outputs``."""
    return VariableContext(
        {
            "bundle-root": "/proj/bundles/x",
            "core-root": "/proj/core",
            "project-root": "/proj",
            "output-root": "/data/agent-outputs",
        },
        output_root="/data/agent-outputs",
    )
