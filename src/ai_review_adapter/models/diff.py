"""
Diff Data Models

Unified diff text and its parsed structure
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class DiffSource(str, Enum):
    """Where a diff comes from, in descending precedence"""
    STDIN = "stdin"
    FILE = "file"
    GIT_CLONE = "git_clone"
    GIT_API = "git_api"


@dataclass(frozen=True)
class Diff:
    """Unified diff text obtained from exactly one source"""
    text: str
    source: DiffSource

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass
class DiffChunk:
    """One hunk of a unified diff"""
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    content: str
    context_lines: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.old_start < 0 or self.new_start < 0:
            raise ValueError("Line numbers must be non-negative")
        if self.old_lines < 0 or self.new_lines < 0:
            raise ValueError("Line counts must be non-negative")


@dataclass
class FileChange:
    """Changes to one file"""
    file_path: str
    change_type: str  # 'added', 'modified', 'deleted', 'renamed'
    additions: int
    deletions: int
    chunks: List[DiffChunk] = field(default_factory=list)
    is_binary: bool = False

    def __post_init__(self):
        valid_types = {'added', 'modified', 'deleted', 'renamed'}
        if self.change_type not in valid_types:
            raise ValueError(f"Invalid change_type: {self.change_type}")
        if self.additions < 0 or self.deletions < 0:
            raise ValueError("Addition and deletion counts must be non-negative")


@dataclass
class DiffStats:
    """Totals over a parsed diff"""
    files: List[FileChange]

    @property
    def files_changed(self) -> int:
        return len(self.files)

    @property
    def total_hunks(self) -> int:
        return sum(len(f.chunks) for f in self.files)

    @property
    def additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    def to_dict(self) -> dict:
        return {
            'filesChanged': self.files_changed,
            'totalHunks': self.total_hunks,
            'additions': self.additions,
            'deletions': self.deletions,
        }
