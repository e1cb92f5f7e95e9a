"""
Review Request Model

A validated description of one review run, built once from configuration.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import AppConfig
from ..errors import NoDiffSourceError, ValidationError
from ..security.validators import validate_org_or_repo_name, validate_pr_number
from .diff import DiffSource


@dataclass(frozen=True)
class ReviewRequest:
    """Identifiers, diff source and output target for one run"""
    organization: str
    repository: str
    pull_request_number: int
    diff_source: DiffSource
    git_url: Optional[str] = None
    base_branch: Optional[str] = None
    head_branch: Optional[str] = None
    diff_file: Optional[str] = None
    output_format: str = "json"
    output_path: str = "review-results.json"

    @property
    def full_name(self) -> str:
        return f"{self.organization}/{self.repository}"

    @classmethod
    def from_config(cls, config: AppConfig) -> "ReviewRequest":
        """
        Validate identifiers and pick the diff source.

        Args:
            config: Resolved application configuration

        Returns:
            ReviewRequest ready for acquisition

        Raises:
            ValidationError: Missing or malformed organization, repository or PR number
            NoDiffSourceError: No diff source is configured
        """
        review = config.review
        if not review.organization or not review.repository or review.pr_number in (None, ''):
            raise ValidationError(
                "pull request identifiers", "Organization, repository, and PR number are required"
            )

        organization = validate_org_or_repo_name(review.organization, "organization name")
        repository = validate_org_or_repo_name(review.repository, "repository name")
        pr_number = validate_pr_number(review.pr_number)

        return cls(
            organization=organization,
            repository=repository,
            pull_request_number=pr_number,
            diff_source=resolve_diff_source(config),
            git_url=review.git_url,
            base_branch=review.base_branch,
            head_branch=review.head_branch,
            diff_file=review.diff_file,
            output_format=config.output.format,
            output_path=config.output.path,
        )

    def to_parameters(self) -> Dict[str, Any]:
        """Input parameters echoed into output sidecars"""
        return {
            'organization': self.organization,
            'repository': self.repository,
            'pullRequest': self.pull_request_number,
            'diffSource': self.diff_source.value,
            'gitUrl': self.git_url,
            'baseBranch': self.base_branch,
            'headBranch': self.head_branch,
            'diffFile': self.diff_file,
            'outputFormat': self.output_format,
            'outputPath': self.output_path,
        }


def resolve_diff_source(config: AppConfig) -> DiffSource:
    """Highest-precedence configured source: stdin, file, git clone, then API."""
    review = config.review
    if review.use_stdin:
        return DiffSource.STDIN
    if review.diff_file:
        return DiffSource.FILE
    if review.git_url:
        return DiffSource.GIT_CLONE
    if config.github.token:
        return DiffSource.GIT_API
    raise NoDiffSourceError()
