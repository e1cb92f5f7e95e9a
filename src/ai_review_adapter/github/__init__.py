"""
GitHub Integration Layer

This module provides GitHub API integration for PR diff retrieval,
comment publishing, and unified diff parsing.
"""

from .client import GitHubAPIError, GitHubClient
from .parser import UnifiedDiffParser

__all__ = ['GitHubAPIError', 'GitHubClient', 'UnifiedDiffParser']
