"""
Result Formatter

Renders a ReviewResult as json, markdown or plain text for the result file.
"""

import json
import logging
from collections import OrderedDict
from typing import Dict, List

from ..models.review import ReviewComment, ReviewResult


logger = logging.getLogger(__name__)

GENERAL_SECTION = "General"


class ResultFormatter:
    """
    Renders review results.

    The json form is the ReviewResult document itself and can be read back
    with ``ReviewResult.model_validate``.
    """

    def render(self, result: ReviewResult, output_format: str) -> str:
        """
        Render a result.

        Args:
            result: Review to render
            output_format: 'json', 'markdown' or 'text'

        Returns:
            Rendered text ending with a newline
        """
        renderers = {
            'json': self.to_json,
            'markdown': self.to_markdown,
            'text': self.to_text,
        }
        if output_format not in renderers:
            raise ValueError(f"Unsupported output format: {output_format}")
        return renderers[output_format](result)

    def to_json(self, result: ReviewResult) -> str:
        return json.dumps(result.to_json_dict(), indent=2, ensure_ascii=False) + "\n"

    def to_markdown(self, result: ReviewResult) -> str:
        body_parts = ["# AI Code Review", "", "## Summary", "", result.summary or "_No summary provided._", ""]

        if result.comments:
            body_parts.append(f"## Comments ({result.total_comments})")
            body_parts.append("")
            for file_path, comments in self._group_by_file(result.comments).items():
                body_parts.append(f"### `{file_path}`" if file_path != GENERAL_SECTION else f"### {GENERAL_SECTION}")
                body_parts.append("")
                for comment in comments:
                    prefix = f"**Line {comment.line}:** " if comment.line is not None else ""
                    body_parts.append(f"- {prefix}{comment.body}")
                body_parts.append("")

        if result.metadata.total_hunks is not None:
            body_parts.append("---")
            body_parts.append(f"_Hunks reviewed: {result.metadata.total_hunks}_")

        return '\n'.join(body_parts).rstrip() + "\n"

    def to_text(self, result: ReviewResult) -> str:
        lines = [f"Summary: {result.summary}", f"Comments: {result.total_comments}"]
        for comment in result.comments:
            if comment.file and comment.line is not None:
                location = f"{comment.file}:{comment.line}"
            else:
                location = comment.file or GENERAL_SECTION.lower()
            lines.append(f"{location}: {comment.body}")
        return '\n'.join(lines) + "\n"

    @staticmethod
    def _group_by_file(comments) -> Dict[str, List[ReviewComment]]:
        groups: Dict[str, List[ReviewComment]] = OrderedDict()
        for comment in comments:
            groups.setdefault(comment.file or GENERAL_SECTION, []).append(comment)
        for group in groups.values():
            group.sort(key=lambda c: c.line if c.line is not None else 0)
        return groups
