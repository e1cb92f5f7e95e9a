"""
Result Writer

Persists the review (or the error that prevented it) to the configured
output path, plus a JSON sidecar next to it: ``<name>.metadata.json`` on
success, ``<name>.error.json`` on failure.
"""

import json
import logging
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .errors import PersistenceError
from .formatting.output import ResultFormatter
from .models.review import ReviewResult


logger = logging.getLogger(__name__)


def sidecar_path(output_path: str, kind: str) -> Path:
    """``review.json`` -> ``review.<kind>.json``"""
    path = Path(output_path)
    return path.with_name(f"{path.stem if path.suffix else path.name}.{kind}.json")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResultWriter:
    """Writes results and error artifacts to disk."""

    def __init__(self, formatter: Optional[ResultFormatter] = None, clock: Callable[[], str] = _timestamp):
        self.formatter = formatter or ResultFormatter()
        self.clock = clock

    def write(
        self,
        result: ReviewResult,
        output_path: str,
        output_format: str,
        parameters: Dict[str, Any],
        extra: Optional[Dict[str, Any]] = None,
    ) -> Path:
        """
        Write a review result and its metadata sidecar.

        Args:
            result: Review to persist
            output_path: Primary result file
            output_format: 'json', 'markdown' or 'text'
            parameters: Echoed input parameters (no secrets)
            extra: Additional summary entries such as diff statistics

        Returns:
            Path of the metadata sidecar

        Raises:
            PersistenceError: A file could not be written
        """
        self._write_text(Path(output_path), self.formatter.render(result, output_format))

        metadata = {
            'timestamp': self.clock(),
            'parameters': parameters,
            'summary': {
                'totalComments': result.total_comments,
                'totalHunks': result.metadata.total_hunks or 0,
                'hasIssues': result.has_issues,
            },
        }
        if extra:
            metadata.update(extra)

        metadata_path = sidecar_path(output_path, 'metadata')
        self._write_text(metadata_path, json.dumps(metadata, indent=2, ensure_ascii=False, default=str) + "\n")

        logger.info(f"Results saved to {output_path} (metadata: {metadata_path})")
        return metadata_path

    def write_error(
        self,
        error: BaseException,
        output_path: str,
        output_format: str,
        parameters: Dict[str, Any],
    ) -> Path:
        """
        Write an error result and its error sidecar.

        Returns:
            Path of the error sidecar

        Raises:
            PersistenceError: A file could not be written
        """
        timestamp = self.clock()
        message = str(error)
        error_type = type(error).__name__

        if output_format == 'markdown':
            primary = f"# AI Code Review\n\n**Review failed** ({error_type}): {message}\n"
        elif output_format == 'text':
            primary = f"Error ({error_type}): {message}\n"
        else:
            primary = json.dumps(
                {'success': False, 'error': message, 'errorType': error_type, 'timestamp': timestamp},
                indent=2,
                ensure_ascii=False,
            ) + "\n"
        self._write_text(Path(output_path), primary)

        trace = None
        if error.__traceback__ is not None:
            trace = ''.join(traceback.format_exception(type(error), error, error.__traceback__))

        details = {
            'error': message,
            'errorType': error_type,
            'field': getattr(error, 'field', None),
            'traceback': trace,
            'timestamp': timestamp,
            'parameters': parameters,
        }
        error_path = sidecar_path(output_path, 'error')
        self._write_text(error_path, json.dumps(details, indent=2, ensure_ascii=False, default=str) + "\n")

        logger.info(f"Error details saved to {error_path}")
        return error_path

    @staticmethod
    def _write_text(path: Path, content: str) -> None:
        try:
            if path.parent and not path.parent.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise PersistenceError(str(path), e.strerror or str(e)) from e
