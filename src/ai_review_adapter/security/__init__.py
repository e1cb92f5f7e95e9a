"""
Input Validation Layer

Sanitizes identifiers, git URLs, branch names, file paths and environment
values before they reach a shell, the filesystem or the network.
"""

from .validators import (
    escape_shell_arg,
    validate_branch_name,
    validate_env_var,
    validate_file_path,
    validate_git_url,
    validate_org_or_repo_name,
    validate_pr_number,
)

__all__ = [
    'escape_shell_arg',
    'validate_branch_name',
    'validate_env_var',
    'validate_file_path',
    'validate_git_url',
    'validate_org_or_repo_name',
    'validate_pr_number',
]
