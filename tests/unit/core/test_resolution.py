"""Tests for resolving identifiers against a context."""

from pathlib import Path

import pytest

from tests.test_utils.worktree_env import (
    HOME,
    PROJECTS_DIR,
    TEST_CONFIG,
    build_env,
    project_path,
    worktree_path,
)
from twiggit.core.detection import Context, ContextType
from twiggit.core.errors import (
    ErrorKind,
    PathTraversalError,
    TraversalLocation,
    ValidationError,
)
from twiggit.core.resolution import (
    ContextResolver,
    PathType,
    ResolutionResult,
    contains_path_traversal,
    parse_cross_project_reference,
)

PROJECT_CTX = Context(type=ContextType.PROJECT, path=project_path("p"), project_name="p")
WORKTREE_CTX = Context(
    type=ContextType.WORKTREE,
    path=worktree_path("acme", "feature-x"),
    project_name="acme",
    branch_name="feature-x",
)
OUTSIDE_CTX = Context(type=ContextType.OUTSIDE_GIT, path=HOME)
UNKNOWN_CTX = Context(type=ContextType.UNKNOWN, path=Path("/test/elsewhere"))


def _resolver() -> ContextResolver:
    env = build_env({"p": [], "acme": ["feature-x"]})
    return ContextResolver(TEST_CONFIG, env.git, env.fs)


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("proj/branch", ("proj", "branch", True)),
        ("projbranch", ("", "", False)),
        ("a/b/c", ("", "", False)),
        ("/b", ("", "", False)),
        ("a/", ("", "", False)),
        ("/", ("", "", False)),
    ],
)
def test_parse_cross_project_reference(identifier: str, expected: tuple[str, str, bool]) -> None:
    assert parse_cross_project_reference(identifier) == expected


@pytest.mark.parametrize(
    "value",
    [
        "..",
        "../etc",
        "feature/..",
        "a..b",
        "%2e%2e",
        "%2E%2E/x",
        "%252e%252e",
        "%252E%252e",
        "%2e.",
    ],
)
def test_contains_path_traversal_detects_encoded_forms(value: str) -> None:
    assert contains_path_traversal(value)


@pytest.mark.parametrize("value", ["feature-x", "v1.2", "main", "%2e", "a.b.c", ""])
def test_contains_path_traversal_allows_safe_values(value: str) -> None:
    assert not contains_path_traversal(value)


def test_main_in_project_context_resolves_to_project_root() -> None:
    result = _resolver().resolve_identifier(PROJECT_CTX, "main")

    assert result.type == PathType.PROJECT
    assert result.resolved_path == project_path("p")
    assert result.project_name == "p"
    assert "p" in result.explanation


def test_token_in_project_context_resolves_to_worktree() -> None:
    result = _resolver().resolve_identifier(PROJECT_CTX, "f")

    assert result.type == PathType.WORKTREE
    assert result.resolved_path == worktree_path("p", "f")
    assert result.branch_name == "f"
    assert "'p'" in result.explanation


def test_main_in_worktree_context_resolves_to_project_root() -> None:
    """From <worktrees>/acme/feature-x, main is <projects>/acme."""
    result = _resolver().resolve_identifier(WORKTREE_CTX, "main")

    assert result == ResolutionResult(
        type=PathType.PROJECT,
        resolved_path=PROJECTS_DIR / "acme",
        project_name="acme",
        explanation=result.explanation,
    )
    assert "acme" in result.explanation


def test_token_in_worktree_context_resolves_to_sibling() -> None:
    result = _resolver().resolve_identifier(WORKTREE_CTX, "bugfix")

    assert result.type == PathType.WORKTREE
    assert result.resolved_path == worktree_path("acme", "bugfix")


@pytest.mark.parametrize("context", [PROJECT_CTX, WORKTREE_CTX, OUTSIDE_CTX])
def test_cross_project_reference_resolves_to_worktree(context: Context) -> None:
    result = _resolver().resolve_identifier(context, "other/feature")

    assert result.type == PathType.WORKTREE
    assert result.resolved_path == worktree_path("other", "feature")
    assert result.project_name == "other"
    assert result.branch_name == "feature"
    assert "other" in result.explanation


def test_token_outside_git_resolves_to_project() -> None:
    result = _resolver().resolve_identifier(OUTSIDE_CTX, "acme")

    assert result.type == PathType.PROJECT
    assert result.resolved_path == project_path("acme")
    assert "acme" in result.explanation


@pytest.mark.parametrize("identifier", ["main", "feature", "acme/feature"])
def test_unknown_context_is_invalid_without_error(identifier: str) -> None:
    result = _resolver().resolve_identifier(UNKNOWN_CTX, identifier)

    assert result.type == PathType.INVALID
    assert result.resolved_path is None


@pytest.mark.parametrize("identifier", ["a/b/c", "/absolute/path", "/abs", "proj/"])
def test_malformed_cross_project_reference_is_invalid(identifier: str) -> None:
    result = _resolver().resolve_identifier(PROJECT_CTX, identifier)

    assert result.type == PathType.INVALID
    assert result.resolved_path is None
    assert "project/branch" in result.explanation


def test_empty_identifier_is_validation_error() -> None:
    with pytest.raises(ValidationError) as exc_info:
        _resolver().resolve_identifier(PROJECT_CTX, "")

    assert exc_info.value.kind == ErrorKind.VALIDATION


@pytest.mark.parametrize(
    "identifier", ["..", "../secrets", "acme/..", "%2e%2e", "%2E%2E", "%252e%252e", "x%252E%252Ey"]
)
def test_traversal_in_identifier_is_rejected(identifier: str) -> None:
    with pytest.raises(PathTraversalError) as exc_info:
        _resolver().resolve_identifier(PROJECT_CTX, identifier)

    assert exc_info.value.location == TraversalLocation.IDENTIFIER
    assert exc_info.value.kind == ErrorKind.VALIDATION


def test_traversal_in_context_project_name_is_rejected() -> None:
    context = Context(type=ContextType.PROJECT, path=PROJECTS_DIR, project_name="..")

    with pytest.raises(PathTraversalError) as exc_info:
        _resolver().resolve_identifier(context, "feature")

    assert exc_info.value.location == TraversalLocation.PROJECT_NAME
    assert "project name" in str(exc_info.value)


def test_resolution_is_deterministic() -> None:
    resolver = _resolver()

    first = resolver.resolve_identifier(WORKTREE_CTX, "other/feature")
    second = resolver.resolve_identifier(WORKTREE_CTX, "other/feature")

    assert first == second


def test_invalid_result_cannot_carry_a_path() -> None:
    with pytest.raises(ValueError):
        ResolutionResult(type=PathType.INVALID, resolved_path=Path("/x"))


def test_valid_result_requires_a_path() -> None:
    with pytest.raises(ValueError):
        ResolutionResult(type=PathType.WORKTREE)


# Suggestions


def test_project_suggestions_include_main_worktrees_and_branches() -> None:
    env = build_env({"acme": ["feature-x"]}, extra_branches={"acme": ["feature-y"]})
    resolver = ContextResolver(TEST_CONFIG, env.git, env.fs)
    context = Context(type=ContextType.PROJECT, path=project_path("acme"), project_name="acme")

    suggestions = resolver.get_resolution_suggestions(context, "")

    assert [(s.text, s.description) for s in suggestions] == [
        ("main", "Project root directory"),
        ("feature-x", "Worktree for branch feature-x"),
        ("feature-y", "Branch feature-y (create worktree)"),
    ]


def test_worktree_suggestions_exclude_branches_without_worktrees() -> None:
    env = build_env({"acme": ["feature-x"]}, extra_branches={"acme": ["feature-y"]})
    resolver = ContextResolver(TEST_CONFIG, env.git, env.fs)

    suggestions = resolver.get_resolution_suggestions(WORKTREE_CTX, "")

    assert [s.text for s in suggestions] == ["main", "feature-x"]


def test_suggestions_filter_by_case_sensitive_prefix() -> None:
    env = build_env({"acme": ["feature-x", "Fix-1", "fix-2"]})
    resolver = ContextResolver(TEST_CONFIG, env.git, env.fs)

    suggestions = resolver.get_resolution_suggestions(WORKTREE_CTX, "f")

    assert [s.text for s in suggestions] == ["feature-x", "fix-2"]


def test_no_matching_suggestions_returns_empty_list() -> None:
    env = build_env({"acme": ["feature-x"]})
    resolver = ContextResolver(TEST_CONFIG, env.git, env.fs)

    assert resolver.get_resolution_suggestions(WORKTREE_CTX, "zzz") == []


def test_outside_git_suggests_valid_repositories_only() -> None:
    env = build_env({"acme": [], "widgets": []}, extra_directories={PROJECTS_DIR / "notes"})
    resolver = ContextResolver(TEST_CONFIG, env.git, env.fs)

    suggestions = resolver.get_resolution_suggestions(OUTSIDE_CTX, "")

    assert [(s.text, s.type) for s in suggestions] == [
        ("acme", PathType.PROJECT),
        ("widgets", PathType.PROJECT),
    ]
    assert all(s.description == "Project directory" for s in suggestions)


def test_cross_project_suggestions() -> None:
    env = build_env({"acme": ["feature-x", "bugfix"]})
    resolver = ContextResolver(TEST_CONFIG, env.git, env.fs)

    suggestions = resolver.get_resolution_suggestions(OUTSIDE_CTX, "acme/f")

    assert [s.text for s in suggestions] == ["acme/feature-x"]


def test_existing_only_skips_main_and_missing_worktrees() -> None:
    env = build_env({"acme": ["feature-x"]}, extra_branches={"acme": ["feature-y"]})
    env.git.add_worktree(project_path("acme"), "ghost", worktree_path("acme", "ghost"), base=None)
    resolver = ContextResolver(TEST_CONFIG, env.git, env.fs)
    context = Context(type=ContextType.PROJECT, path=project_path("acme"), project_name="acme")

    suggestions = resolver.get_resolution_suggestions(context, "", existing_only=True)

    assert [s.text for s in suggestions] == ["feature-x"]


def test_unknown_context_has_no_suggestions() -> None:
    assert _resolver().get_resolution_suggestions(UNKNOWN_CTX, "") == []
