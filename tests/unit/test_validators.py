"""
Unit tests for the input validation layer.
"""

import os

import pytest

from ai_review_adapter.errors import ValidationError
from ai_review_adapter.security.validators import (
    escape_shell_arg,
    validate_branch_name,
    validate_env_var,
    validate_file_path,
    validate_git_url,
    validate_org_or_repo_name,
    validate_pr_number,
)


class TestValidateGitUrl:
    """Unit tests for validate_git_url."""

    def test_accepts_https_github_url(self):
        """Test a canonical clone URL passes and is returned trimmed."""
        assert validate_git_url("https://github.com/acme/widgets.git") == "https://github.com/acme/widgets.git"
        assert validate_git_url("  https://github.com/acme/widgets.git  ") == "https://github.com/acme/widgets.git"

    def test_accepts_dots_and_hyphens_in_names(self):
        """Test owner and repo may contain word characters, hyphens and dots."""
        assert validate_git_url("https://github.com/my-org/my.repo_1.git")

    @pytest.mark.parametrize("url", [
        "git@github.com:acme/widgets.git",
        "http://github.com/acme/widgets.git",
        "https://gitlab.com/acme/widgets.git",
        "https://github.com/acme/widgets",
        "https://github.com/acme.git",
        "https://github.com/acme/widgets/extra.git",
    ])
    def test_rejects_non_matching_shapes(self, url):
        """Test only https://github.com/<owner>/<repo>.git is accepted."""
        with pytest.raises(ValidationError):
            validate_git_url(url)

    @pytest.mark.parametrize("url", [
        "https://github.com/acme/widgets.git; rm -rf /",
        "https://github.com/acme/widgets.git && echo",
        "https://github.com/acme/widgets.git|cat",
        "https://github.com/acme/`id`.git",
        "https://github.com/acme/$(id).git",
        "https://github.com/acme/widgets.git\nls",
        "https://github.com/acme/widgets.git\r",
        "https://github.com/acme/wid\tgets.git",
        "https://github.com/acme/<x>.git",
    ])
    def test_rejects_shell_metacharacters(self, url):
        """Test shell metacharacters are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_git_url(url)
        assert exc_info.value.field == "git URL"

    def test_rejects_traversal_backslash_and_slashes(self):
        """Test '..', backslashes and runs of three slashes are rejected."""
        for url in (
            "https://github.com/acme/../widgets.git",
            "https://github.com/acme\\widgets.git",
            "https:///github.com/acme/widgets.git",
        ):
            with pytest.raises(ValidationError):
                validate_git_url(url)

    @pytest.mark.parametrize("repo", ["exec-tools", "evaluator", "system-config"])
    def test_rejects_dangerous_command_tokens(self, repo):
        """Test the dangerous command token denylist applies to the whole URL."""
        with pytest.raises(ValidationError) as exc_info:
            validate_git_url(f"https://github.com/acme/{repo}.git")
        assert "dangerous command" in exc_info.value.rule

    @pytest.mark.parametrize("value", [None, "", "   ", 42])
    def test_requires_string(self, value):
        """Test missing or non-string URLs are rejected."""
        with pytest.raises(ValidationError):
            validate_git_url(value)

    def test_error_names_rule_not_value(self):
        """Test the error message does not echo the rejected input."""
        with pytest.raises(ValidationError) as exc_info:
            validate_git_url("https://github.com/acme/widgets.git; curl evil.example")
        assert "evil.example" not in str(exc_info.value)


class TestValidateBranchName:
    """Unit tests for validate_branch_name."""

    @pytest.mark.parametrize("branch", ["main", "feature/my-fix", "release-1.2", "user_name/topic.v2"])
    def test_accepts_valid_branches(self, branch):
        """Test ordinary branch names pass."""
        assert validate_branch_name(branch) == branch

    def test_trims_whitespace(self):
        """Test surrounding whitespace is trimmed."""
        assert validate_branch_name("  develop  ") == "develop"

    @pytest.mark.parametrize("branch", [
        "../../etc/passwd",
        "feature/../main",
        "/absolute",
        "feature//double",
        "has space",
        "semi;colon",
        "pipe|branch",
        "back`tick",
        "dollar$branch",
        "paren(branch)",
        "new\nline",
        "tab\tbranch",
        "star*branch",
    ])
    def test_rejects_invalid_branches(self, branch):
        """Test traversal, metacharacters and disallowed characters are rejected."""
        with pytest.raises(ValidationError):
            validate_branch_name(branch)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_requires_non_empty(self, value):
        """Test empty branch names are rejected."""
        with pytest.raises(ValidationError):
            validate_branch_name(value)


class TestValidateFilePath:
    """Unit tests for validate_file_path."""

    def test_resolves_under_base(self, tmp_path):
        """Test a relative path resolves to an absolute path inside the base."""
        resolved = validate_file_path("diffs/change.diff", str(tmp_path))
        assert resolved == os.path.join(str(tmp_path), "diffs", "change.diff")
        assert os.path.isabs(resolved)

    def test_does_not_require_existence(self, tmp_path):
        """Test resolution performs no existence check."""
        assert validate_file_path("missing.diff", str(tmp_path)).endswith("missing.diff")

    @pytest.mark.parametrize("path", ["../secret.diff", "a/../../b.diff", "~/x.diff", "/etc/passwd", ""])
    def test_rejects_unsafe_paths(self, tmp_path, path):
        """Test traversal, home shortcuts, absolute and empty paths are rejected."""
        with pytest.raises(ValidationError):
            validate_file_path(path, str(tmp_path))


class TestIdentifiers:
    """Unit tests for organization, repository and PR number validation."""

    @pytest.mark.parametrize("name", ["myorg", "test-org_123", "Adobe", "123org"])
    def test_accepts_names(self, name):
        """Test alphanumerics, hyphens and underscores are accepted."""
        assert validate_org_or_repo_name(name) == name

    @pytest.mark.parametrize("name", ["org with spaces", "org@special", "org.with.dots", "org$pecial", ""])
    def test_rejects_names(self, name):
        """Test other characters are rejected."""
        with pytest.raises(ValidationError):
            validate_org_or_repo_name(name)

    @pytest.mark.parametrize("number,expected", [("0", 0), ("42", 42), ("999", 999), (7, 7)])
    def test_accepts_pr_numbers(self, number, expected):
        """Test digit sequences are accepted, including the unusual '0'."""
        assert validate_pr_number(number) == expected

    @pytest.mark.parametrize("number", ["4.2", "-1", "abc", "12a", "", " 1", "+3", -1, True])
    def test_rejects_pr_numbers(self, number):
        """Test signs, decimals and letters are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_pr_number(number)
        assert "PR number must be numeric" in str(exc_info.value)


class TestValidateEnvVar:
    """Unit tests for validate_env_var."""

    def test_passes_none_through(self):
        """Test None values are returned unchanged."""
        assert validate_env_var("LLM_API_KEY", None) is None

    def test_accepts_plain_values(self):
        """Test ordinary values such as URLs and keys pass."""
        assert validate_env_var("LLM_ENDPOINT", "https://api.example.com/v1/review") == \
            "https://api.example.com/v1/review"
        assert validate_env_var("LLM_API_KEY", "sk-abc_123") == "sk-abc_123"

    @pytest.mark.parametrize("value", ["$(whoami)", "`id`", "${HOME}", "a;b", "a&b", "a|b", "a<b", "a>b",
                                       "a\nb", "a\rb", "a\0b"])
    def test_rejects_injection_sequences(self, value):
        """Test shell expansion and control characters are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_env_var("ORG_NAME", value)
        assert "ORG_NAME" in exc_info.value.field


class TestEscapeShellArg:
    """Unit tests for escape_shell_arg."""

    def test_wraps_in_single_quotes(self):
        assert escape_shell_arg("main") == "'main'"

    def test_escapes_embedded_quotes(self):
        assert escape_shell_arg("it's") == "'it'\\''s'"
