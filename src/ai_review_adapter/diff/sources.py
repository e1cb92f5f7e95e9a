"""
Diff Sources

The four places a unified diff can come from. Each source validates its own
inputs before touching a shell, the filesystem or the network.
"""

import logging
import os
import secrets
import shutil
import subprocess
import sys
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, TextIO

from ..errors import (
    AcquisitionError,
    AuthenticationError,
    DiffTimeoutError,
    ForbiddenError,
    NotFoundError,
    TransientError,
)
from ..github.client import GitHubAPIError, GitHubClient
from ..models.diff import DiffSource
from ..retry import RetryPolicy, retry_call
from ..security.validators import (
    escape_shell_arg,
    validate_branch_name,
    validate_file_path,
    validate_git_url,
)


logger = logging.getLogger(__name__)

STDIN_CHUNK_SIZE = 64 * 1024

# runner(args, cwd) -> stdout; args exclude the leading "git"
GitRunner = Callable[[List[str], Optional[str]], str]


class GitCommandError(Exception):
    """A git subprocess exited non-zero"""


def run_git(args: List[str], cwd: Optional[str] = None) -> str:
    """Run git without a shell and return its stdout."""
    cmd = ["git", "-c", "core.quotepath=false", "-c", "color.ui=never"] + args
    logger.debug(f"Running {' '.join(escape_shell_arg(a) for a in cmd)}")

    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, check=False)
    except OSError as e:
        raise GitCommandError(f"cannot execute git: {e}") from e

    if result.returncode != 0:
        detail = result.stderr.strip().splitlines()
        raise GitCommandError(f"git {args[0]} exited with {result.returncode}: {detail[-1] if detail else 'no output'}")
    return result.stdout


@contextmanager
def scoped_temp_dir(prefix: str = "ai-review-") -> Iterator[str]:
    """Uniquely named temporary directory removed on every exit path."""
    path = tempfile.mkdtemp(prefix=f"{prefix}{secrets.token_hex(8)}-")
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        if os.path.exists(path):
            logger.warning(f"Temporary directory {path} could not be fully removed")


class BaseDiffSource(ABC):
    """One configured origin of diff text"""

    source: DiffSource

    @abstractmethod
    def fetch(self) -> str:
        """Return the raw diff text."""


class StdinDiffSource(BaseDiffSource):
    """Reads a diff piped into the process, with a bounded wait"""

    source = DiffSource.STDIN

    def __init__(self, stream: Optional[TextIO] = None, timeout: float = 30.0):
        self.stream = stream
        self.timeout = timeout

    def fetch(self) -> str:
        stream = self.stream if self.stream is not None else sys.stdin
        chunks: List[str] = []
        failures: List[BaseException] = []
        done = threading.Event()

        def reader():
            try:
                while True:
                    chunk = stream.read(STDIN_CHUNK_SIZE)
                    if not chunk:
                        break
                    chunks.append(chunk)
            except Exception as e:
                failures.append(e)
            finally:
                done.set()

        # Daemon thread: a reader still blocked after the timeout must not keep the process alive
        threading.Thread(target=reader, name="stdin-diff-reader", daemon=True).start()

        if not done.wait(self.timeout):
            raise DiffTimeoutError(f"Timeout reading from stdin after {self.timeout:g}s")
        if failures:
            raise AcquisitionError(f"Failed to read diff from stdin: {failures[0]}")

        logger.info(f"Read {sum(len(c) for c in chunks)} characters from stdin")
        return ''.join(chunks)


class FileDiffSource(BaseDiffSource):
    """Reads a diff file located under a base directory"""

    source = DiffSource.FILE

    def __init__(self, path: str, base_dir: str = "."):
        self.path = path
        self.base_dir = base_dir

    def fetch(self) -> str:
        resolved = validate_file_path(self.path, self.base_dir)
        if not os.path.isfile(resolved):
            raise NotFoundError(f"Diff file not found: {self.path}")

        try:
            with open(resolved, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise AcquisitionError(f"Cannot read diff file {self.path}: {e}") from e

        logger.info(f"Read diff from {resolved}")
        return content


class GitCloneDiffSource(BaseDiffSource):
    """
    Clones the repository into a throwaway directory and diffs two branches.

    The diff uses merge-base (three-dot) semantics against the remote-tracking
    base branch.
    """

    source = DiffSource.GIT_CLONE

    def __init__(
        self,
        git_url: str,
        base_branch: str,
        head_branch: Optional[str] = None,
        runner: GitRunner = run_git,
    ):
        self.git_url = git_url
        self.base_branch = base_branch
        self.head_branch = head_branch
        self.runner = runner

    def fetch(self) -> str:
        clean_url = validate_git_url(self.git_url)
        clean_base = validate_branch_name(self.base_branch)
        clean_head = validate_branch_name(self.head_branch) if self.head_branch else None

        with scoped_temp_dir() as workdir:
            try:
                logger.info("Cloning repository")
                self.runner(['clone', '--quiet', '--no-tags', '--', clean_url, workdir], None)

                if clean_head and clean_head != clean_base:
                    self.runner(
                        ['fetch', '--quiet', '--update-head-ok', 'origin', f'{clean_head}:{clean_head}'],
                        workdir,
                    )
                    head_ref = clean_head
                elif clean_head:
                    head_ref = f'origin/{clean_base}'
                else:
                    head_ref = 'HEAD'

                diff = self.runner(['diff', f'origin/{clean_base}...{head_ref}'], workdir)
            except GitCommandError as e:
                raise AcquisitionError(f"Git diff failed: {e}") from e

        if not diff.strip():
            raise AcquisitionError(
                f"No differences found between {clean_base} and {clean_head or 'HEAD'}"
            )
        return diff


class GitHubApiDiffSource(BaseDiffSource):
    """Fetches the pull request diff from the GitHub REST API"""

    source = DiffSource.GIT_API

    def __init__(
        self,
        client: GitHubClient,
        organization: str,
        repository: str,
        pr_number: int,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = client
        self.organization = organization
        self.repository = repository
        self.pr_number = pr_number
        self.retry_policy = retry_policy or RetryPolicy(retryable=(TransientError,))

    def fetch(self) -> str:
        return retry_call(self.retry_policy, self._fetch_once)

    def _fetch_once(self) -> str:
        try:
            return self.client.get_pull_request_diff(self.organization, self.repository, self.pr_number)
        except GitHubAPIError as e:
            raise self._translate(e) from e

    def _translate(self, error: GitHubAPIError) -> AcquisitionError:
        """Map an API failure onto the acquisition error taxonomy."""
        target = f"PR #{self.pr_number} in {self.organization}/{self.repository}"
        status = error.status_code

        if status == 404:
            return NotFoundError(f"PR #{self.pr_number} not found in {self.organization}/{self.repository}", status)
        if status == 401:
            return AuthenticationError(f"GitHub authentication failed while fetching {target}: check the token", status)
        if status == 403:
            return ForbiddenError(f"Access to {target} is forbidden: the token lacks permission", status)
        if error.is_transient:
            return TransientError(f"Transient GitHub failure while fetching {target}: {error}", status)
        return AcquisitionError(f"Failed to fetch {target}: {error}", status)
