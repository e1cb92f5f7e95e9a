"""
Diff Acquirer

Builds exactly one diff source for a request and returns its diff.
"""

import logging
import time
from typing import Callable, Optional, TextIO

from ..config import AppConfig
from ..errors import NoDiffSourceError, TransientError
from ..github.client import GitHubClient
from ..models.diff import Diff, DiffSource
from ..models.request import ReviewRequest
from ..retry import RetryPolicy
from .sources import (
    BaseDiffSource,
    FileDiffSource,
    GitCloneDiffSource,
    GitHubApiDiffSource,
    GitRunner,
    StdinDiffSource,
    run_git,
)


logger = logging.getLogger(__name__)


class DiffAcquirer:
    """
    Obtains the diff for a ReviewRequest.

    The source was chosen when the request was built (stdin, then file, then
    git clone, then the GitHub API); only that source is ever constructed, so
    lower-precedence sources have no side effects.

    An empty diff is returned as-is for every source except the git clone,
    which raises instead.
    """

    def __init__(
        self,
        config: AppConfig,
        github_client: Optional[GitHubClient] = None,
        stdin: Optional[TextIO] = None,
        git_runner: GitRunner = run_git,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.github_client = github_client
        self.stdin = stdin
        self.git_runner = git_runner
        self.sleep = sleep

    def build_source(self, request: ReviewRequest) -> BaseDiffSource:
        """Instantiate the source named by ``request.diff_source``."""
        review = self.config.review

        if request.diff_source is DiffSource.STDIN:
            return StdinDiffSource(stream=self.stdin, timeout=review.stdin_timeout_seconds)

        if request.diff_source is DiffSource.FILE:
            return FileDiffSource(request.diff_file, base_dir=review.diff_base_dir)

        if request.diff_source is DiffSource.GIT_CLONE:
            return GitCloneDiffSource(
                request.git_url,
                request.base_branch,
                request.head_branch,
                runner=self.git_runner,
            )

        if request.diff_source is DiffSource.GIT_API and self.github_client is not None:
            return GitHubApiDiffSource(
                self.github_client,
                request.organization,
                request.repository,
                request.pull_request_number,
                retry_policy=RetryPolicy(
                    max_attempts=self.config.retry.max_attempts,
                    base_delay=self.config.retry.base_delay_seconds,
                    retryable=(TransientError,),
                    sleep=self.sleep,
                ),
            )

        raise NoDiffSourceError()

    def acquire(self, request: ReviewRequest) -> Diff:
        """
        Fetch the diff for a request.

        Args:
            request: Validated ReviewRequest

        Returns:
            Diff tagged with its source

        Raises:
            ValidationError: Source inputs failed validation
            AcquisitionError: The source could not produce a diff
        """
        source = self.build_source(request)
        logger.info(f"Acquiring diff for {request.full_name}#{request.pull_request_number} via {source.source.value}")

        diff = Diff(text=source.fetch(), source=source.source)

        if diff.is_empty:
            logger.info("Diff is empty: no changes to review")
        else:
            logger.info(f"Acquired diff ({len(diff.text)} characters)")
        return diff
