"""Lint the JavaScript/TypeScript files of a pull request and report a check run."""

import logging
import sys

from dotenv import load_dotenv

from config import ActionConfig
from errors import ActionError
from file_filter import describe_extensions, select_lint_targets
from github_client import CheckRunReporter, CheckRunState, fetch_change_set
from linter import run_eslint
from models import Conclusion
from report import build_report

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
# "Neutral" exit code understood by GitHub Actions v1 as a failed lint
EXIT_LINT_FAILURE = 78


def _close_as_failure(reporter: CheckRunReporter, check_run_id: int) -> None:
    """Best-effort: mark the check run failed after a pipeline error."""
    if reporter.state is not CheckRunState.IN_PROGRESS:
        return
    try:
        reporter.close(check_run_id, None)
    except ActionError as e:
        logger.error("Could not mark check run %d as failed: %s", check_run_id, e)


def run(config: ActionConfig) -> int:
    """
    Run the whole pipeline once.

    Resolve the PR change set, pick lint targets, open the check run,
    lint, build the report and complete the check run.

    Returns:
        Process exit code (0, or 78 when ESLint found errors)

    Raises:
        ActionError: On any fatal failure; the check run, if open, has
            already been marked as failed
    """
    logger.info("📥 Fetching PR #%d from %s...", config.pr_number, config.repository)
    change_set = fetch_change_set(config)
    logger.info(
        "   Head commit %s, %d changed file(s)",
        change_set.head_commit_id,
        len(change_set.files),
    )
    if config.event_sha and config.event_sha != change_set.head_commit_id:
        logger.info("   Event commit %s differs from PR head", config.event_sha)

    targets = select_lint_targets(change_set.files, config)
    if not targets:
        logger.warning(
            "No files with [%s] extensions added or modified in this PR, "
            "nothing to lint...",
            describe_extensions(),
        )
        return EXIT_SUCCESS

    reporter = CheckRunReporter(config, change_set.head_commit_id)
    check_run_id = reporter.open()

    try:
        logger.info("🔍 Linting %d file(s)...", len(targets))
        lint_run = run_eslint(targets, config)
        report = build_report(lint_run, config.workspace)
        logger.info("   %s", report.summary)
        reporter.close(check_run_id, report)
    except Exception:
        _close_as_failure(reporter, check_run_id)
        raise

    if report.conclusion is Conclusion.FAILURE:
        return EXIT_LINT_FAILURE
    return EXIT_SUCCESS


def main() -> int:
    """Main entry point."""
    load_dotenv()

    try:
        config = ActionConfig.from_env()
        return run(config)
    except ActionError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return EXIT_ERROR
    except Exception:
        logger.exception("Unexpected failure")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
