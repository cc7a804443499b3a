"""Tests for symbolic path resolution."""

from __future__ import annotations

import pytest

from agent_files_mcp.config import ServerConfig
from agent_files_mcp.errors import (
    PathResolutionError,
    PathTraversalError,
    SecurityViolation,
    UnknownVariableError,
)
from agent_files_mcp.path_policy import validate_write_path
from agent_files_mcp.path_resolver import (
    find_placeholders,
    has_traversal,
    normalize_path,
    resolve_path,
)
from agent_files_mcp.variables import VariableContext, create_variable_context


class TestNormalizePath:
    def test_collapses_separators_and_dots(self):
        assert normalize_path("//a///b/./c/") == "/a/b/c"

    def test_backslashes_are_separators(self):
        assert normalize_path("/a\\b\\\\c") == "/a/b/c"

    def test_keeps_parent_segments_visible(self):
        assert normalize_path("/a/../b") == "/a/../b"

    def test_relative_stays_relative(self):
        assert normalize_path("a//b") == "a/b"
        assert normalize_path("./") == "."


class TestFindPlaceholders:
    def test_order_and_dedup(self):
        assert find_placeholders("{b}/{a}/{b}") == ["b", "a"]

    def test_none(self):
        assert find_placeholders("/plain/path") == []


class TestResolvePath:
    def test_substitutes_variables(self, proj_context):
        assert resolve_path("{bundle-root}/workflows/intake/workflow.yaml", proj_context) == (
            "/proj/bundles/x/workflows/intake/workflow.yaml"
        )

    @pytest.mark.parametrize("expression", ["/etc/hosts", "//var///log/./app.log", "/"])
    def test_no_placeholders_returns_normalized_input(self, proj_context, expression):
        assert resolve_path(expression, proj_context) == normalize_path(expression)

    def test_no_placeholders_with_empty_context(self):
        ctx = VariableContext({}, output_root="/out")
        assert resolve_path("/a//b", ctx) == "/a/b"

    def test_unknown_variable_is_named(self, proj_context):
        with pytest.raises(UnknownVariableError) as exc_info:
            resolve_path("{x}/file.md", proj_context)
        assert exc_info.value.variable == "x"
        assert "{x}" in str(exc_info.value)

    def test_all_missing_variables_reported(self, proj_context):
        with pytest.raises(UnknownVariableError) as exc_info:
            resolve_path("{core-root}/{first}/{second}/{first}", proj_context)
        assert exc_info.value.variables == ["first", "second"]

    def test_empty_placeholder_is_unknown(self, proj_context):
        with pytest.raises(UnknownVariableError):
            resolve_path("{}/file.md", proj_context)

    def test_literal_traversal_rejected(self, proj_context):
        with pytest.raises(PathTraversalError):
            resolve_path("{bundle-root}/a/../b", proj_context)

    def test_traversal_landing_inside_root_still_rejected(self, proj_context):
        with pytest.raises(PathTraversalError):
            resolve_path("{project-root}/core/../core/tasks.md", proj_context)

    def test_backslash_traversal_rejected(self, proj_context):
        with pytest.raises(PathTraversalError):
            resolve_path("{output-root}\\..\\..\\etc\\passwd", proj_context)

    def test_traversal_error_message_prefix(self, proj_context):
        with pytest.raises(SecurityViolation, match=r"^Security violation:"):
            resolve_path("{output-root}/../../etc/passwd", proj_context)

    def test_separator_collapsing_is_idempotent(self, proj_context):
        messy = resolve_path("{bundle-root}//workflows///test.yaml", proj_context)
        clean = resolve_path("{bundle-root}/workflows/test.yaml", proj_context)
        assert messy == clean == "/proj/bundles/x/workflows/test.yaml"
        assert resolve_path(messy, proj_context) == messy

    def test_single_pass_substitution(self):
        ctx = VariableContext(
            {"project-root": "/proj", "weird": "/proj/literal"},
            output_root="/proj/out",
        )
        # Inserted text is never rescanned for further placeholders.
        assert resolve_path("{weird}/x", ctx) == "/proj/literal/x"
        assert "{" not in resolve_path("{weird}/{project-root}", ctx)

    def test_relative_expression_anchored_at_project_root(self, proj_context):
        assert resolve_path("docs//readme.md", proj_context) == "/proj/docs/readme.md"

    def test_relative_without_project_root_rejected(self):
        ctx = VariableContext({"core-root": "/core"}, output_root="/out")
        with pytest.raises(PathResolutionError, match="relative"):
            resolve_path("docs/readme.md", ctx)

    @pytest.mark.parametrize("expression", ["", "   "])
    def test_empty_expression_rejected(self, proj_context, expression):
        with pytest.raises(PathResolutionError):
            resolve_path(expression, proj_context)

    def test_nul_rejected(self, proj_context):
        with pytest.raises(SecurityViolation):
            resolve_path("{output-root}/a\0.md", proj_context)

    def test_custom_variables_resolve_like_system_ones(self):
        cfg = ServerConfig(project_root="/proj")
        ctx = create_variable_context("x", cfg, {"templates": "/proj/shared/templates"})
        assert resolve_path("{templates}/memo.md", ctx) == "/proj/shared/templates/memo.md"

    def test_result_never_contains_parent_segment(self, proj_context):
        for expression in ("{core-root}/a/b", "/x/./y", "{output-root}//z"):
            assert not has_traversal(resolve_path(expression, proj_context))


class TestCrossBundleIndependence:
    def test_bundles_resolve_to_distinct_paths(self):
        cfg = ServerConfig(project_root="/proj")
        alpha = create_variable_context("alpha", cfg)
        beta = create_variable_context("beta", cfg)
        a = resolve_path("{bundle-root}/workflows/intake.yaml", alpha)
        b = resolve_path("{bundle-root}/workflows/intake.yaml", beta)
        assert a != b
        assert "/alpha/" in a
        assert "/beta/" in b


class TestEndToEnd:
    def test_core_file_resolves_but_is_not_writable(self, proj_context):
        path = resolve_path("{core-root}/tasks/workflow.md", proj_context)
        assert path == "/proj/core/tasks/workflow.md"
        with pytest.raises(SecurityViolation):
            validate_write_path(path, proj_context)


class TestStrayBraces:
    @pytest.mark.parametrize(
        "expression",
        ["{{core-root}}/a.md", "{core-root}}/a.md", "{{core-root}/a.md", "/proj/{draft/a.md", "/proj/}/a.md"],
    )
    def test_rejected(self, proj_context, expression):
        with pytest.raises(PathResolutionError, match="braces"):
            resolve_path(expression, proj_context)

    def test_result_never_contains_braces(self, proj_context):
        path = resolve_path("{core-root}/{project-root}/x.md", proj_context)
        assert "{" not in path and "}" not in path
