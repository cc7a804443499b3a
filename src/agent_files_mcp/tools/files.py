"""File tools — 3 tools on a FastMCP sub-server."""

from __future__ import annotations

import asyncio
import logging

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .. import file_ops
from ..bundles import load_bundle_variables
from ..config import get_config
from ..errors import BundleManifestError, PathResolutionError, make_tool_error
from ..types import BundleName, FileContent, PathExpression
from ..variables import VariableContext, create_variable_context

logger = logging.getLogger(__name__)
files_server = FastMCP("files")


def _context(bundle: str) -> VariableContext:
    """Build a fresh context for one call from process configuration.

    Path entries of the bundle's ``config.yaml`` are layered on as custom
    variables. Blocking: reads the config file.
    """
    cfg = get_config()
    try:
        ctx = create_variable_context(bundle, cfg)
    except ValueError as exc:
        raise PathResolutionError(str(exc)) from exc
    if not bundle.strip():
        return ctx
    custom = load_bundle_variables(ctx)
    return create_variable_context(bundle, cfg, custom) if custom else ctx


@files_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def resolve_path(file_path: PathExpression, bundle: BundleName = "") -> dict:
    """Show the absolute path a symbolic expression resolves to.

    Args:
        file_path: Path expression with {variable} placeholders.
        bundle: Bundle whose root backs {bundle-root}.

    Returns:
        Dict with expression, path, and writable (True when save_output
        would accept the path).
    """
    try:
        ctx = await asyncio.to_thread(_context, bundle)
        return file_ops.describe_path(file_path, ctx).model_dump(mode="json")
    except (PathResolutionError, BundleManifestError, OSError) as exc:
        return make_tool_error(exc)


@files_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def read_file(file_path: PathExpression, bundle: BundleName = "") -> dict:
    """Read a text file from the bundle, core, project or output roots.

    Args:
        file_path: Path expression with {variable} placeholders.
        bundle: Bundle whose root backs {bundle-root}.

    Returns:
        Dict with path, content, and size, or a tool error dict.
    """
    try:
        ctx = await asyncio.to_thread(_context, bundle)
        max_bytes = get_config().max_read_bytes
        result = await asyncio.to_thread(file_ops.read_file, file_path, ctx, max_bytes=max_bytes)
    except Exception as exc:
        return make_tool_error(exc)
    return result.model_dump(mode="json")


@files_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def save_output(
    file_path: PathExpression,
    content: FileContent,
    bundle: BundleName = "",
) -> dict:
    """Write generated content under {output-root}, creating parent folders.

    Any path outside the output root is refused, including the bundle,
    core and project roots.

    Args:
        file_path: Target path expression, normally starting with {output-root}.
        content: Text to write.
        bundle: Bundle whose root backs {bundle-root}.

    Returns:
        Dict with path, size, and created_directories, or a tool error dict.
    """
    try:
        ctx = await asyncio.to_thread(_context, bundle)
        cfg = get_config()
        result = await asyncio.to_thread(
            file_ops.save_output,
            file_path,
            content,
            ctx,
            reject_generic=cfg.reject_generic_filenames,
        )
    except Exception as exc:
        logger.error("save_output failed for %s: %s", file_path, exc)
        return make_tool_error(exc)
    return result.model_dump(mode="json")
