"""
Unified Diff Parser

Parses unified diff text (as produced by ``git diff`` or the GitHub diff
media type) into file changes and hunks. Used for hunk counts and diff
statistics; the review itself is left to the engine.
"""

import re
import logging
from typing import Dict, List, Optional

from ..models.diff import DiffChunk, DiffStats, FileChange


logger = logging.getLogger(__name__)


class UnifiedDiffParser:
    """
    Parser for unified diff text.

    Hunk bodies are consumed by their header line counts, so removed lines
    that happen to start with ``---`` are never mistaken for file headers.
    """

    def __init__(self):
        """Initialize unified diff parser."""
        self.diff_header_pattern = re.compile(r'^@@\s*-(\d+)(?:,(\d+))?\s*\+(\d+)(?:,(\d+))?\s*@@(.*)$')
        self.git_header_pattern = re.compile(r'^diff --git a/(.*) b/(.*)$')
        self.binary_file_pattern = re.compile(r'^Binary files? .* differ')

    def parse(self, diff_text: str) -> List[FileChange]:
        """
        Parse diff text into structured file changes.

        Args:
            diff_text: Raw unified diff

        Returns:
            List of FileChange objects in diff order
        """
        files: List[FileChange] = []
        current: Optional[Dict] = None
        chunk: Optional[DiffChunk] = None
        chunk_content: List[str] = []
        old_remaining = new_remaining = 0

        def close_chunk():
            nonlocal chunk, chunk_content
            if chunk is not None and current is not None:
                chunk.content = '\n'.join(chunk_content)
                current['chunks'].append(chunk)
            chunk = None
            chunk_content = []

        def close_file():
            nonlocal current
            close_chunk()
            if current is not None:
                files.append(self._build_file_change(current))
            current = None

        for line in diff_text.splitlines():
            if chunk is not None and (old_remaining > 0 or new_remaining > 0):
                chunk_content.append(line)
                tag = line[:1]
                if tag == '+':
                    new_remaining -= 1
                    current['additions'] += 1
                elif tag == '-':
                    old_remaining -= 1
                    current['deletions'] += 1
                elif tag == '\\':
                    pass  # "\ No newline at end of file"
                else:
                    old_remaining -= 1
                    new_remaining -= 1
                    if tag == ' ' and len(chunk.context_lines) < 3:
                        chunk.context_lines.append(line[1:])
                continue

            if chunk is not None and line.startswith('\\'):
                chunk_content.append(line)
                continue

            git_header = self.git_header_pattern.match(line)
            if git_header:
                close_file()
                current = self._new_file(git_header.group(2))
                continue

            if line.startswith('--- '):
                if current is None or current['chunks'] or chunk is not None:
                    close_file()
                    current = self._new_file(None)
                if line[4:].strip() == '/dev/null':
                    current['change_type'] = 'added'
                continue

            if line.startswith('+++ ') and current is not None:
                target = line[4:].strip()
                if target == '/dev/null':
                    current['change_type'] = 'deleted'
                else:
                    current['path'] = target[2:] if target.startswith('b/') else target
                continue

            if current is None:
                continue

            if line.startswith('new file mode'):
                current['change_type'] = 'added'
            elif line.startswith('deleted file mode'):
                current['change_type'] = 'deleted'
            elif line.startswith('rename to '):
                current['change_type'] = 'renamed'
                current['path'] = line[len('rename to '):]
            elif self.binary_file_pattern.match(line):
                current['is_binary'] = True
            else:
                header_match = self.diff_header_pattern.match(line)
                if header_match:
                    close_chunk()
                    old_lines = int(header_match.group(2) or 1)
                    new_lines = int(header_match.group(4) or 1)
                    chunk = DiffChunk(
                        old_start=int(header_match.group(1)),
                        old_lines=old_lines,
                        new_start=int(header_match.group(3)),
                        new_lines=new_lines,
                        content='',
                    )
                    context = header_match.group(5).strip()
                    if context:
                        chunk.context_lines.append(context)
                    old_remaining, new_remaining = old_lines, new_lines

        close_file()

        logger.debug(f"Parsed {len(files)} files, {sum(len(f.chunks) for f in files)} hunks")
        return files

    def stats(self, diff_text: str) -> DiffStats:
        """Totals for a diff."""
        return DiffStats(files=self.parse(diff_text))

    def count_hunks(self, diff_text: str) -> int:
        """Number of hunks across all files."""
        return self.stats(diff_text).total_hunks

    @staticmethod
    def _new_file(path: Optional[str]) -> Dict:
        return {
            'path': path,
            'change_type': 'modified',
            'additions': 0,
            'deletions': 0,
            'chunks': [],
            'is_binary': False,
        }

    @staticmethod
    def _build_file_change(data: Dict) -> FileChange:
        return FileChange(
            file_path=data['path'] or '',
            change_type=data['change_type'],
            additions=data['additions'],
            deletions=data['deletions'],
            chunks=data['chunks'],
            is_binary=data['is_binary'],
        )
