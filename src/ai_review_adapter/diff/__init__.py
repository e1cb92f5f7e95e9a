"""
Diff Acquisition Layer

Obtains a unified diff from stdin, a file, a git clone or the GitHub API.
"""

from .acquirer import DiffAcquirer
from .sources import (
    FileDiffSource,
    GitCloneDiffSource,
    GitCommandError,
    GitHubApiDiffSource,
    StdinDiffSource,
    run_git,
    scoped_temp_dir,
)

__all__ = [
    'DiffAcquirer',
    'FileDiffSource',
    'GitCloneDiffSource',
    'GitCommandError',
    'GitHubApiDiffSource',
    'StdinDiffSource',
    'run_git',
    'scoped_temp_dir',
]
