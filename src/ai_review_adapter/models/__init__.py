"""
Data Models

Request, diff and review models shared by the adapter
"""

from .diff import Diff, DiffChunk, DiffSource, DiffStats, FileChange
from .request import ReviewRequest, resolve_diff_source
from .review import NO_CHANGES_SUMMARY, ReviewComment, ReviewMetadata, ReviewResult

__all__ = [
    "Diff",
    "DiffChunk",
    "DiffSource",
    "DiffStats",
    "FileChange",
    "NO_CHANGES_SUMMARY",
    "ReviewComment",
    "ReviewMetadata",
    "ReviewRequest",
    "ReviewResult",
    "resolve_diff_source",
]
