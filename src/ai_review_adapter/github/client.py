"""
GitHub REST Client

Token-authenticated access to the pull request endpoints the adapter needs:
the PR document, its diff media type, and the two comment endpoints.
Works against github.com and enterprise servers alike.
"""

import time
import logging
from typing import Callable, Dict, Optional
from datetime import datetime
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


logger = logging.getLogger(__name__)

DIFF_MEDIA_TYPE = 'application/vnd.github.v3.diff'
JSON_MEDIA_TYPE = 'application/vnd.github.v3+json'


class GitHubAPIError(Exception):
    """GitHub API related errors"""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict] = None,
        connection_error: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data
        self.connection_error = connection_error

    @property
    def is_transient(self) -> bool:
        """Server errors, throttling and dropped connections are worth retrying"""
        if self.connection_error:
            return True
        return self.status_code is not None and (self.status_code == 429 or self.status_code >= 500)


class GitHubClient:
    """
    Pull request client with bearer authentication and rate-limit awareness.

    Covers:
    - PR diff retrieval in the diff media type
    - Issue comments and positioned review comments
    - Waiting out a nearly exhausted rate limit
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30,
        rate_limit_low_water: int = 10,
        rate_limit_buffer: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access or installation token
            base_url: GitHub API base URL; enterprise servers use ``https://<host>/api/v3``
            timeout: Per-request timeout in seconds
            rate_limit_low_water: Remaining quota below which the client sleeps until reset
            rate_limit_buffer: Extra seconds slept past the reported reset time
            sleep: Sleep function
        """
        if not token:
            raise ValueError("GitHub token is required")

        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.rate_limit_low_water = rate_limit_low_water
        self.rate_limit_buffer = rate_limit_buffer
        self._sleep = sleep
        self.session = self._create_session()
        self.rate_limit_remaining: Optional[int] = None
        self.rate_limit_reset: Optional[datetime] = None

    def _create_session(self) -> requests.Session:
        """Create requests session with authentication."""
        session = requests.Session()

        # Retries are applied by RetryPolicy so the transport must not add its own
        adapter = HTTPAdapter(max_retries=Retry(total=0, raise_on_status=False))
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'Accept': JSON_MEDIA_TYPE,
            'User-Agent': 'AI-Review-Adapter/1.0'
        })

        return session

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers; malformed values are ignored."""
        try:
            if 'X-RateLimit-Remaining' in response.headers:
                self.rate_limit_remaining = int(response.headers['X-RateLimit-Remaining'])

            if 'X-RateLimit-Reset' in response.headers:
                reset_timestamp = int(response.headers['X-RateLimit-Reset'])
                self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp)
        except (ValueError, OverflowError, OSError) as e:
            logger.warning(f"Ignoring malformed rate limit headers: {e}")

    @staticmethod
    def _json(response: requests.Response) -> Dict:
        """Decode a successful response body."""
        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                f"GitHub API returned a non-JSON body ({response.status_code}): {e}",
                status_code=response.status_code,
            ) from e

    def _wait_for_rate_limit(self) -> None:
        """Sleep until the quota resets when it has dropped below the low-water mark."""
        if self.rate_limit_remaining is None or self.rate_limit_reset is None:
            return
        if self.rate_limit_remaining >= self.rate_limit_low_water:
            return

        wait_time = (self.rate_limit_reset - datetime.now()).total_seconds()
        if wait_time > 0:
            wait_time += self.rate_limit_buffer
            logger.warning(f"Rate limit low ({self.rate_limit_remaining}), waiting {wait_time:.1f}s")
            self._sleep(wait_time)

    def _make_request(self, method: str, endpoint: str, accept: Optional[str] = None, **kwargs) -> requests.Response:
        """
        Make authenticated request to GitHub API with rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            accept: Media type overriding the default JSON one
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            GitHubAPIError: For API and transport errors
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        if accept:
            kwargs['headers'] = {**kwargs.get('headers', {}), 'Accept': accept}
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.ConnectionError as e:
            logger.error(f"Connection to GitHub failed: {e}")
            raise GitHubAPIError(f"Connection failed: {e}", connection_error=True) from e
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise GitHubAPIError(f"Request failed: {e}") from e

        if not response.ok:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {error_data.get('message', 'Unknown error')}",
                status_code=response.status_code,
                response_data=error_data
            )

        self._update_rate_limit(response)
        self._wait_for_rate_limit()
        return response

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> Dict:
        """
        Get pull request information.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Pull request data
        """
        logger.info(f"Fetching PR {owner}/{repo}#{pr_number}")

        response = self._make_request('GET', f'/repos/{owner}/{repo}/pulls/{pr_number}')
        return self._json(response)

    def get_pull_request_diff(self, owner: str, repo: str, pr_number: int) -> str:
        """
        Get the unified diff of a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Diff text, possibly empty
        """
        logger.info(f"Fetching diff for PR {owner}/{repo}#{pr_number}")

        response = self._make_request('GET', f'/repos/{owner}/{repo}/pulls/{pr_number}', accept=DIFF_MEDIA_TYPE)
        return response.text

    def get_head_sha(self, owner: str, repo: str, pr_number: int) -> str:
        """Commit SHA at the head of the pull request."""
        return self.get_pull_request(owner, repo, pr_number)['head']['sha']

    def create_issue_comment(self, owner: str, repo: str, pr_number: int, body: str) -> Dict:
        """
        Post a general comment on the pull request conversation.

        Returns:
            Created comment data
        """
        response = self._make_request(
            'POST',
            f'/repos/{owner}/{repo}/issues/{pr_number}/comments',
            json={'body': body},
        )
        return self._json(response)

    def create_review_comment(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        body: str,
        commit_id: str,
        path: str,
        line: int,
        side: str = 'RIGHT',
    ) -> Dict:
        """
        Post a comment anchored to a line of the pull request diff.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number
            body: Comment text
            commit_id: Head commit the position refers to
            path: File path relative to the repository root
            line: Line number in the file
            side: 'RIGHT' for the new version, 'LEFT' for the old one

        Returns:
            Created comment data
        """
        response = self._make_request(
            'POST',
            f'/repos/{owner}/{repo}/pulls/{pr_number}/comments',
            json={
                'body': body,
                'commit_id': commit_id,
                'path': path,
                'line': line,
                'side': side,
            },
        )
        return self._json(response)
