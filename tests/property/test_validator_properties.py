"""
Property-based tests for the input validators.

Property: any input carrying a denylisted shell metacharacter is rejected,
wherever the character appears.
"""

import shlex

import pytest
from hypothesis import given, strategies as st

from ai_review_adapter.errors import ValidationError
from ai_review_adapter.security.validators import (
    SHELL_METACHARACTERS,
    escape_shell_arg,
    validate_branch_name,
    validate_git_url,
    validate_pr_number,
)


safe_name = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_-", min_size=1, max_size=20)


class TestDenylistProperties:
    """Property tests for metacharacter rejection."""

    @given(
        owner=safe_name,
        repo=safe_name,
        char=st.sampled_from(SHELL_METACHARACTERS),
        position=st.integers(min_value=0, max_value=60),
    )
    def test_git_url_rejects_metacharacters_anywhere(self, owner, repo, char, position):
        """
        Property: a metacharacter inserted anywhere in a clone URL is rejected.

        Given: A clone URL with one denylisted character inserted
        When: The URL is validated
        Then: ValidationError is raised
        """
        url = f"https://github.com/{owner}/{repo}.git"
        index = min(position, len(url) - 1)
        # Leading/trailing whitespace is trimmed before validation, so stay inside the URL
        tainted = url[:index] + char + url[index:] if index > 0 else "h" + char + url[1:]
        with pytest.raises(ValidationError):
            validate_git_url(tainted)

    @given(
        prefix=safe_name,
        suffix=safe_name,
        char=st.sampled_from(SHELL_METACHARACTERS),
    )
    def test_branch_rejects_metacharacters(self, prefix, suffix, char):
        """
        Property: a branch name containing a metacharacter is rejected.

        Given: A branch name with a denylisted character in the middle
        When: The branch is validated
        Then: ValidationError is raised
        """
        with pytest.raises(ValidationError):
            validate_branch_name(prefix + char + suffix)

    @given(segments=st.lists(safe_name, min_size=1, max_size=4))
    def test_branch_accepts_slash_separated_names(self, segments):
        """
        Property: slash-separated safe segments form a valid branch.

        Given: Segments from the allowed alphabet
        When: They are joined with single slashes
        Then: The branch validates unchanged
        """
        branch = "/".join(segments)
        assert validate_branch_name(branch) == branch


class TestPrNumberProperties:
    """Property tests for PR number validation."""

    @given(number=st.integers(min_value=0, max_value=10 ** 9))
    def test_non_negative_integers_round_trip(self, number):
        """Property: every unsigned decimal string validates to its integer."""
        assert validate_pr_number(str(number)) == number

    @given(text=st.text(min_size=1, max_size=10).filter(lambda s: not s.isascii() or not s.isdigit()))
    def test_non_digit_text_rejected(self, text):
        """Property: text that is not an ASCII digit sequence is rejected."""
        with pytest.raises(ValidationError):
            validate_pr_number(text)


class TestEscapeShellArgProperties:
    """Property tests for shell escaping."""

    @given(arg=st.text(alphabet=st.characters(blacklist_characters="\0", blacklist_categories=("Cs",)), max_size=50))
    def test_escaped_argument_parses_back(self, arg):
        """
        Property: a POSIX shell word-split of the escaped form yields the original.

        Given: Arbitrary text without NUL
        When: It is escaped and split with shlex
        Then: Exactly the original argument comes back
        """
        assert shlex.split(escape_shell_arg(arg)) == [arg]
