"""Main FastMCP server — mounts all sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from .config import get_config
from .tools.agents import agents_server
from .tools.files import files_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — reads configuration once at startup."""
    cfg = get_config()
    logger.info("Write allow-list: %s", cfg.output_root)
    yield {}
    logger.info("Lifespan shutdown: agent-files-mcp")


app = FastMCP(
    "agent-files",
    instructions=(
        "Guarded file access for agents. Address files with symbolic roots "
        "({bundle-root}, {core-root}, {project-root}, {output-root}). Reads may "
        "reach any of those roots; writes are only accepted under {output-root}."
    ),
    lifespan=_lifespan,
)

app.mount(files_server)
app.mount(agents_server)


def main() -> None:
    """Entry-point for ``agent-files-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
