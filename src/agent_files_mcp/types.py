"""Shared type aliases for tool parameters."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

PathExpression = Annotated[str, Field(
    min_length=1,
    description=(
        "Path using symbolic roots, e.g. '{bundle-root}/workflows/intake/workflow.yaml' "
        "or '{output-root}/reports/budget-analysis.md'. Available: {bundle-root}, "
        "{core-root}, {project-root}, {output-root}, plus path entries of the "
        "bundle's config.yaml (e.g. {output_folder})"
    ),
)]
BundleName = Annotated[str, Field(
    description="Bundle directory name under the bundles root; empty for no bundle",
)]
FileContent = Annotated[str, Field(description="UTF-8 text to write")]
