"""
Review Orchestrator

Runs the review engine over a diff and publishes the result back to the
pull request.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from ..errors import AIReviewError, EngineError, PublishError
from ..github.client import GitHubAPIError, GitHubClient
from ..github.parser import UnifiedDiffParser
from ..models.diff import Diff
from ..models.request import ReviewRequest
from ..models.review import ReviewResult
from .engine import ReviewEngine, ReviewOptions


logger = logging.getLogger(__name__)

ATTRIBUTION_FOOTER = "\n\n---\n_🤖 Generated by AI Code Reviewer_"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PublishReport:
    """Outcome of posting a review to GitHub"""
    posted: int = 0
    failed: int = 0
    skipped: int = 0  # comments without a file and line

    def to_dict(self) -> Dict[str, int]:
        return {'posted': self.posted, 'failed': self.failed, 'skipped': self.skipped}


class ReviewOrchestrator:
    """
    Calls the review engine and posts its output.

    Publishing is best effort: every comment is posted independently and a
    failure is logged and counted without stopping the batch.
    """

    def __init__(
        self,
        engine: ReviewEngine,
        github_client: Optional[GitHubClient] = None,
        parser: Optional[UnifiedDiffParser] = None,
        generate_summary: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.engine = engine
        self.github_client = github_client
        self.parser = parser or UnifiedDiffParser()
        self.generate_summary = generate_summary
        self.clock = clock

    def review(self, diff: Diff, request: ReviewRequest, context: Optional[str] = None) -> ReviewResult:
        """
        Review a diff.

        Args:
            diff: Non-empty diff
            request: The request the diff belongs to
            context: Free-form text forwarded to the engine

        Returns:
            ReviewResult with hunk count and timestamps filled in

        Raises:
            EngineError: The engine failed or returned something unusable
        """
        options = ReviewOptions(
            generate_summary=self.generate_summary,
            context={
                'repository': request.full_name,
                'pullRequest': request.pull_request_number,
                'baseBranch': request.base_branch,
                'headBranch': request.head_branch,
                'diffSource': diff.source.value,
                'notes': context,
            },
        )

        started_at = self.clock()
        logger.info(f"Reviewing {request.full_name}#{request.pull_request_number}")

        try:
            result = self.engine.review(diff.text, options)
        except AIReviewError:
            raise
        except Exception as e:
            raise EngineError(f"Review engine failed: {e}") from e

        if not isinstance(result, ReviewResult):
            try:
                result = ReviewResult.model_validate(result)
            except ValueError as e:
                raise EngineError(f"Review engine returned an invalid result: {e}") from e

        metadata = result.metadata
        updates = {}
        if metadata.total_hunks is None:
            updates['total_hunks'] = self.parser.count_hunks(diff.text)
        if metadata.started_at is None:
            updates['started_at'] = started_at
        if metadata.completed_at is None:
            updates['completed_at'] = self.clock()

        if updates:
            result = result.model_copy(update={'metadata': metadata.model_copy(update=updates)})

        logger.info(f"Review produced {result.total_comments} comments")
        return result

    def publish(self, result: ReviewResult, request: ReviewRequest) -> PublishReport:
        """
        Post the summary and line comments to the pull request.

        Args:
            result: Review to publish
            request: Identifies the pull request

        Returns:
            PublishReport with posted/failed/skipped counts
        """
        report = PublishReport()
        if self.github_client is None:
            logger.warning("Comment posting requested but no GitHub token is configured; skipping")
            return report

        owner, repo, number = request.organization, request.repository, request.pull_request_number

        if result.summary:
            if self._try_post(
                "summary comment",
                self.github_client.create_issue_comment,
                owner, repo, number, result.summary + ATTRIBUTION_FOOTER,
            ):
                report.posted += 1
            else:
                report.failed += 1

        positioned = result.positioned_comments
        report.skipped = result.total_comments - len(positioned)

        if positioned:
            try:
                commit_id = self.github_client.get_head_sha(owner, repo, number)
            except (GitHubAPIError, KeyError, TypeError) as e:
                logger.warning(f"Cannot resolve head commit of {request.full_name}#{number}: {e}; "
                               f"skipping {len(positioned)} line comments")
                report.failed += len(positioned)
                return report

            for comment in positioned:
                if self._try_post(
                    f"comment on {comment.file}:{comment.line}",
                    self.github_client.create_review_comment,
                    owner, repo, number,
                    body=comment.body,
                    commit_id=commit_id,
                    path=comment.file,
                    line=comment.line,
                    side='RIGHT',
                ):
                    report.posted += 1
                else:
                    report.failed += 1

        logger.info(f"Posted {report.posted} comments ({report.failed} failed, {report.skipped} without position)")
        return report

    @staticmethod
    def _try_post(description: str, post: Callable, *args, **kwargs) -> bool:
        try:
            post(*args, **kwargs)
            return True
        except GitHubAPIError as e:
            logger.warning(str(PublishError(f"Failed to post {description}: {e}")))
            return False
