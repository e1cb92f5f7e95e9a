"""CLI entry point for the AI review adapter.

Usage:
    ai-review <org> <repo> <pr> [output-file]
    ai-review <org> <repo> <pr> --git-url https://github.com/<org>/<repo>.git --base-branch main --head-branch feature
    git diff main...HEAD | ai-review <org> <repo> <pr> --stdin --format markdown

Environment overrides (command-line flags win):
    GITHUB_TOKEN, GITHUB_BASE_URL  GitHub access for the API diff source and comment posting
    LLM_API_KEY, LLM_ENDPOINT      review engine credentials and URL
    AI_REVIEW_ENGINE               in-process engine as module:attribute
    ORG_NAME, REPO_NAME, PR_NUMBER, GIT_URL, BASE_BRANCH, HEAD_BRANCH,
    DIFF_FILE, USE_STDIN, POST_COMMENTS, REVIEW_CONTEXT,
    OUTPUT_FORMAT, OUTPUT_FILE, LOG_LEVEL, LOG_FILE
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from . import __version__
from .api import AIReviewAdapter
from .config import OUTPUT_FORMATS, AppConfig, setup_logging
from .errors import AIReviewError, PersistenceError
from .writer import ResultWriter


logger = logging.getLogger("ai_review_adapter")

DEFAULT_OUTPUT = "review-results.json"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="ai-review",
        description="Review a pull request diff with an AI review engine.",
    )
    parser.add_argument("org", nargs="?", help="Organization/owner name.")
    parser.add_argument("repo", nargs="?", help="Repository name.")
    parser.add_argument("pr", nargs="?", help="Pull request number.")
    parser.add_argument("output_file", nargs="?", help=f"Output file (default: {DEFAULT_OUTPUT}).")

    parser.add_argument("--org", dest="org_flag", help="Organization/owner name.")
    parser.add_argument("--repo", dest="repo_flag", help="Repository name.")
    parser.add_argument("--pr", dest="pr_flag", help="Pull request number.")

    source = parser.add_argument_group("diff source (first match wins: stdin, file, git, API)")
    source.add_argument("--stdin", action="store_true", default=None, help="Read the diff from standard input.")
    source.add_argument("--diff-file", help="Diff file, relative to the working directory.")
    source.add_argument("--git-url", help="HTTPS GitHub clone URL.")
    source.add_argument("--base-branch", help="Base branch (default: main).")
    source.add_argument("--head-branch", help="Head branch (default: the cloned HEAD).")

    output = parser.add_argument_group("output")
    output.add_argument("--format", choices=OUTPUT_FORMATS, help="Output format (default: json).")
    output.add_argument("--output", "-o", help=f"Output file (default: {DEFAULT_OUTPUT}).")

    engine = parser.add_argument_group("review engine")
    engine.add_argument("--api-key", help="Review engine API key.")
    engine.add_argument("--endpoint", help="Review engine endpoint URL.")
    engine.add_argument("--engine", help="In-process engine factory as module:attribute.")
    engine.add_argument("--context", help="Free-form context passed to the engine.")

    github = parser.add_argument_group("github")
    github.add_argument("--github-token", help="GitHub token.")
    github.add_argument("--github-url", help="GitHub API base URL (enterprise: https://<host>/api/v3).")
    github.add_argument("--post-comments", action="store_true", default=None,
                        help="Post the summary and line comments to the pull request.")

    parser.add_argument("--config", help="YAML configuration file.")
    parser.add_argument("--log-level", help="Logging level (default: INFO).")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Map parsed arguments onto ``section.field`` configuration keys."""
    return {
        'review.organization': args.org_flag or args.org,
        'review.repository': args.repo_flag or args.repo,
        'review.pr_number': args.pr_flag or args.pr,
        'review.use_stdin': args.stdin,
        'review.diff_file': args.diff_file,
        'review.git_url': args.git_url,
        'review.base_branch': args.base_branch,
        'review.head_branch': args.head_branch,
        'review.post_comments': args.post_comments,
        'review.context': args.context,
        'output.format': args.format,
        'output.path': args.output or args.output_file,
        'engine.api_key': args.api_key,
        'engine.endpoint': args.endpoint,
        'engine.engine': args.engine,
        'github.token': args.github_token,
        'github.api_base_url': args.github_url,
        'logging.level': args.log_level,
    }


def _write_config_failure(error: AIReviewError, args: argparse.Namespace) -> None:
    """Error artifact for a run whose configuration never resolved."""
    try:
        ResultWriter().write_error(
            error,
            args.output or args.output_file or DEFAULT_OUTPUT,
            args.format or 'json',
            {'organization': args.org_flag or args.org, 'repository': args.repo_flag or args.repo,
             'pullRequest': args.pr_flag or args.pr},
        )
    except PersistenceError as e:
        logger.error(f"{type(e).__name__}: {e}")


def main(argv: Optional[List[str]] = None) -> int:
    """Run one review; returns the process exit code."""
    args = parse_args(argv)
    load_dotenv()

    try:
        config = AppConfig.resolve(cli_overrides(args), config_path=args.config)
    except AIReviewError as e:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
        logger.error(f"Configuration error: {e}")
        _write_config_failure(e, args)
        return 1

    setup_logging(config.logging)
    adapter = None

    try:
        adapter = AIReviewAdapter(config)
        outcome = adapter.run()
    except Exception as e:
        if isinstance(e, AIReviewError):
            logger.error(f"{type(e).__name__}: {e}")
        else:
            logger.error(f"Unexpected error: {e}")
            logger.debug("Traceback", exc_info=True)
        if adapter is not None and not isinstance(e, PersistenceError):
            try:
                adapter.write_failure(e)
            except PersistenceError as write_error:
                logger.error(f"{type(write_error).__name__}: {write_error}")
        return 1

    logger.info(f"Review completed! Results saved to {outcome.request.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
