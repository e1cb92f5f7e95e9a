"""
Input Validators

Positive-allowlist checks for every value that can reach a shell, the
filesystem or the GitHub API. Each validator rejects the whole input on the
first violated rule; nothing is partially sanitized.
"""

import os
import re
from typing import Optional, Union

from ..errors import ValidationError


SHELL_METACHARACTERS = (';', '&', '|', '`', '$', '(', ')', '<', '>', '\n', '\r', '\t')

DANGEROUS_COMMANDS = ('rm ', 'curl ', 'wget ', 'nc ', 'bash ', 'sh ', 'exec', 'eval', 'system')

ENV_VAR_PATTERNS = ('$(', '`', '${', ';', '&', '|', '<', '>', '\n', '\r', '\0')

_GIT_URL_PATTERN = re.compile(r'^https://github\.com/[\w.-]+/[\w.-]+\.git$')
_BRANCH_PATTERN = re.compile(r'^[A-Za-z0-9_./-]+$')
_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
_PR_NUMBER_PATTERN = re.compile(r'^[0-9]+$')
_TRIPLE_SLASH_PATTERN = re.compile(r'/{3,}')


def _describe(char: str) -> str:
    names = {'\n': 'newline', '\r': 'carriage return', '\t': 'tab', '\0': 'NUL'}
    return names.get(char, repr(char))


def _reject_metacharacters(field: str, value: str) -> None:
    for char in SHELL_METACHARACTERS:
        if char in value:
            raise ValidationError(field, f"contains shell metacharacter {_describe(char)}")


def validate_git_url(url: str) -> str:
    """
    Validate a git clone URL.

    Only ``https://github.com/<owner>/<repo>.git`` is accepted.

    Args:
        url: Candidate clone URL

    Returns:
        The trimmed URL

    Raises:
        ValidationError: If any rule is violated
    """
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("git URL", "a non-empty string is required")

    clean_url = url.strip()

    _reject_metacharacters("git URL", clean_url)
    if '..' in clean_url:
        raise ValidationError("git URL", "contains path traversal pattern '..'")
    if '\\' in clean_url:
        raise ValidationError("git URL", "contains a backslash")
    if _TRIPLE_SLASH_PATTERN.search(clean_url):
        raise ValidationError("git URL", "contains three or more consecutive slashes")

    lowered = clean_url.lower()
    for token in DANGEROUS_COMMANDS:
        if token in lowered:
            raise ValidationError("git URL", f"contains dangerous command token {token.strip()!r}")

    if not _GIT_URL_PATTERN.fullmatch(clean_url):
        raise ValidationError(
            "git URL", "only HTTPS GitHub URLs of the form https://github.com/<owner>/<repo>.git are allowed"
        )

    return clean_url


def validate_branch_name(branch: str) -> str:
    """
    Validate a git branch name.

    Args:
        branch: Candidate branch name

    Returns:
        The trimmed branch name

    Raises:
        ValidationError: If any rule is violated
    """
    if not isinstance(branch, str) or not branch.strip():
        raise ValidationError("branch name", "a non-empty string is required")

    clean_branch = branch.strip()

    _reject_metacharacters("branch name", clean_branch)
    if ' ' in clean_branch:
        raise ValidationError("branch name", "contains a space")
    if '..' in clean_branch:
        raise ValidationError("branch name", "contains path traversal pattern '..'")
    if clean_branch.startswith('/'):
        raise ValidationError("branch name", "starts with a slash")
    if '//' in clean_branch:
        raise ValidationError("branch name", "contains doubled slashes")
    if not _BRANCH_PATTERN.fullmatch(clean_branch):
        raise ValidationError("branch name", "only letters, digits, '_', '.', '/' and '-' are allowed")

    return clean_branch


def validate_file_path(path: str, base_dir: str) -> str:
    """
    Validate a relative file path and resolve it under ``base_dir``.

    Resolution is lexical (no symlinks are followed and existence is not
    checked).

    Args:
        path: Relative path supplied by the caller
        base_dir: Directory the path must stay inside

    Returns:
        The resolved absolute path

    Raises:
        ValidationError: If the path is absolute, uses traversal or escapes ``base_dir``
    """
    if not isinstance(path, str) or not path.strip():
        raise ValidationError("file path", "a non-empty string is required")
    if '..' in path:
        raise ValidationError("file path", "contains path traversal pattern '..'")
    if '~' in path:
        raise ValidationError("file path", "contains home directory shortcut '~'")
    if path.startswith('/'):
        raise ValidationError("file path", "absolute paths are not allowed")

    resolved_base = os.path.abspath(base_dir)
    resolved_path = os.path.abspath(os.path.join(resolved_base, path))

    if resolved_path != resolved_base and not resolved_path.startswith(resolved_base.rstrip(os.sep) + os.sep):
        raise ValidationError("file path", "resolves outside the allowed directory")

    return resolved_path


def validate_org_or_repo_name(name: str, field: str = "organization or repository name") -> str:
    """Accept only ``[A-Za-z0-9_-]+``."""
    if not isinstance(name, str) or not _NAME_PATTERN.fullmatch(name):
        raise ValidationError(field, "only letters, digits, '_' and '-' are allowed")
    return name


def validate_pr_number(number: Union[str, int]) -> int:
    """
    Validate a pull request number.

    Only unsigned digit sequences are accepted. ``"0"`` passes even though
    GitHub never issues it.

    Returns:
        The PR number as an int
    """
    if isinstance(number, bool):
        raise ValidationError("PR number", "PR number must be numeric")
    text = str(number) if isinstance(number, int) else number
    if not isinstance(text, str) or not _PR_NUMBER_PATTERN.fullmatch(text):
        raise ValidationError("PR number", "PR number must be numeric")
    return int(text)


def validate_env_var(name: str, value: Optional[str]) -> Optional[str]:
    """
    Reject environment values carrying shell expansion or control characters.

    ``None`` passes through unchanged.
    """
    if value is None or not isinstance(value, str):
        return value
    for pattern in ENV_VAR_PATTERNS:
        if pattern in value:
            raise ValidationError(f"environment variable {name}", f"contains forbidden sequence {_describe(pattern)}")
    return value


def escape_shell_arg(arg: str) -> str:
    """Single-quote ``arg`` for a POSIX shell command line."""
    return "'" + str(arg).replace("'", "'\\''") + "'"
