"""
AI Review Adapter

Main interface that runs one review from diff acquisition to the
persisted result file.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO

from .config import AppConfig
from .diff.acquirer import DiffAcquirer
from .diff.sources import GitRunner, run_git
from .github.client import GitHubClient
from .github.parser import UnifiedDiffParser
from .models.diff import Diff
from .models.request import ReviewRequest
from .models.review import ReviewResult
from .review.engine import ReviewEngine, create_engine
from .review.orchestrator import PublishReport, ReviewOrchestrator
from .writer import ResultWriter


logger = logging.getLogger(__name__)


@dataclass
class RunOutcome:
    """What a successful run produced."""
    request: ReviewRequest
    diff: Diff
    result: ReviewResult
    publish_report: Optional[PublishReport]
    metadata_path: Path


class AIReviewAdapter:
    """
    Main AI review adapter interface.

    Runs the complete review process:
    1. Validate identifiers and select the diff source
    2. Acquire the diff
    3. Review it with the external engine (skipped for an empty diff)
    4. Optionally post the review to the pull request
    5. Write the result file and its metadata sidecar
    """

    def __init__(
        self,
        config: AppConfig,
        engine: Optional[ReviewEngine] = None,
        github_client: Optional[GitHubClient] = None,
        stdin: Optional[TextIO] = None,
        git_runner: GitRunner = run_git,
        writer: Optional[ResultWriter] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the adapter.

        Args:
            config: Resolved configuration
            engine: Review engine; built from ``config.engine`` when omitted
            github_client: GitHub client; built from ``config.github`` when a token is set
            stdin: Stream read in stdin mode (default: ``sys.stdin``)
            git_runner: Executes git commands for the clone source
            writer: Result writer
            sleep: Sleep function used for rate-limit waits and retry back-off
        """
        self.config = config
        self.sleep = sleep
        self.engine = engine
        self.github_client = github_client if github_client is not None else self._create_github_client(sleep)
        self.stdin = stdin
        self.git_runner = git_runner
        self.writer = writer or ResultWriter()
        self.parser = UnifiedDiffParser()
        self.request: Optional[ReviewRequest] = None

    def _create_github_client(self, sleep: Callable[[float], None]) -> Optional[GitHubClient]:
        github = self.config.github
        if not github.token:
            return None
        return GitHubClient(
            github.token,
            base_url=github.api_base_url,
            timeout=github.timeout_seconds,
            rate_limit_low_water=github.rate_limit_low_water,
            rate_limit_buffer=github.rate_limit_buffer_seconds,
            sleep=sleep,
        )

    def run(self) -> RunOutcome:
        """
        Execute one review.

        Returns:
            RunOutcome describing the persisted result

        Raises:
            AIReviewError: Validation, acquisition, engine or persistence failure
        """
        logger.info("Starting AI code review")

        self.request = request = ReviewRequest.from_config(self.config)
        engine = self.engine or create_engine(self.config.engine)

        diff = DiffAcquirer(
            self.config,
            github_client=self.github_client,
            stdin=self.stdin,
            git_runner=self.git_runner,
            sleep=self.sleep,
        ).acquire(request)

        publish_report = None
        if diff.is_empty:
            result = ReviewResult.no_changes(datetime.now(timezone.utc))
        else:
            orchestrator = ReviewOrchestrator(
                engine,
                github_client=self.github_client,
                parser=self.parser,
                generate_summary=self.config.engine.generate_summary,
            )
            result = orchestrator.review(diff, request, context=self.config.review.context)
            if self.config.review.post_comments:
                publish_report = orchestrator.publish(result, request)

        extra: Dict[str, Any] = {'diffStats': self.parser.stats(diff.text).to_dict()}
        if publish_report is not None:
            extra['publish'] = publish_report.to_dict()

        metadata_path = self.writer.write(
            result,
            request.output_path,
            request.output_format,
            request.to_parameters(),
            extra=extra,
        )

        logger.info(f"Review completed for {request.full_name}#{request.pull_request_number}")
        return RunOutcome(
            request=request,
            diff=diff,
            result=result,
            publish_report=publish_report,
            metadata_path=metadata_path,
        )

    def write_failure(self, error: BaseException) -> Path:
        """Persist an error result for a failed run."""
        return self.writer.write_error(
            error,
            self.config.output.path,
            self.config.output.format,
            self._failure_parameters(),
        )

    def _failure_parameters(self) -> Dict[str, Any]:
        if self.request is not None:
            return self.request.to_parameters()
        review = self.config.review
        return {
            'organization': review.organization,
            'repository': review.repository,
            'pullRequest': review.pr_number,
            'gitUrl': review.git_url,
            'baseBranch': review.base_branch,
            'headBranch': review.head_branch,
            'diffFile': review.diff_file,
            'outputFormat': self.config.output.format,
            'outputPath': self.config.output.path,
        }
