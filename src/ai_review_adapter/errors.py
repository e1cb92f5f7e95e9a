"""
Error Taxonomy

Exceptions raised by the adapter. Validation errors abort before any side
effect, acquisition errors describe why no diff could be obtained, publish
errors are logged and skipped, persistence errors are fatal.
"""

from typing import Optional


class AIReviewError(Exception):
    """Base class for all adapter errors"""


class ValidationError(AIReviewError):
    """Input failed a validation rule"""
    def __init__(self, field: str, rule: str):
        super().__init__(f"Invalid {field}: {rule}")
        self.field = field
        self.rule = rule


class AcquisitionError(AIReviewError):
    """Diff retrieval failed"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AcquisitionError):
    """Pull request or file does not exist"""


class AuthenticationError(AcquisitionError):
    """Credentials were rejected (HTTP 401)"""


class ForbiddenError(AcquisitionError):
    """Credentials lack permission (HTTP 403)"""


class TransientError(AcquisitionError):
    """Retryable failure: 5xx, 429 or a reset connection"""


class DiffTimeoutError(AcquisitionError):
    """A bounded wait for diff input expired"""


class NoDiffSourceError(AcquisitionError):
    """No diff source is configured"""
    def __init__(self):
        super().__init__(
            "No diff source available: provide --stdin, --diff-file, --git-url "
            "or a GitHub token for the pull request API"
        )


class EngineError(AIReviewError):
    """The review engine failed or returned an unusable payload"""


class PublishError(AIReviewError):
    """Posting a comment back to the pull request failed"""


class PersistenceError(AIReviewError):
    """Review output could not be written"""
    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot write {path}: {reason}")
        self.path = path
