"""Run ESLint over the lint targets and collect its diagnostics."""

import logging
import shlex
import subprocess
from pathlib import PurePosixPath

from pydantic import TypeAdapter, ValidationError

from config import ActionConfig
from errors import EngineError
from file_filter import absolute_targets
from models import LintFileResult, LintRun

logger = logging.getLogger(__name__)

# Extensions handed to the engine. Narrower than LINTABLE_EXTENSIONS on
# purpose: .ts and .mjs files are accepted by the filter but not linted.
ENGINE_EXTENSIONS = (".js", ".jsx", ".tsx")

# ESLint exits 0 (clean) or 1 (lint errors); 2 means config/crash
_ESLINT_FATAL_EXIT = 2

_RESULTS_ADAPTER = TypeAdapter(list[LintFileResult])


def engine_targets(targets: list[str]) -> list[str]:
    """Keep the targets the engine's extension table covers."""
    selected = []
    for target in targets:
        if PurePosixPath(target).suffix in ENGINE_EXTENSIONS:
            selected.append(target)
        else:
            logger.info("Accepted but not linted (extension not in engine table): %s", target)
    return selected


def build_command(files: list[str], config: ActionConfig) -> list[str]:
    """Assemble the ESLint command line for *files* (absolute paths)."""
    cmd = shlex.split(config.eslint_command)
    cmd += ["--format", "json", "--ext", ",".join(ENGINE_EXTENSIONS)]

    ignore_path = config.workspace / config.ignore_file
    if ignore_path.is_file():
        cmd += ["--ignore-path", str(ignore_path)]
    else:
        logger.debug("No ignore file at %s", ignore_path)

    cmd += files
    return cmd


def parse_eslint_output(stdout: str) -> LintRun:
    """
    Parse ``eslint --format json`` output into a LintRun.

    Raises:
        EngineError: If the output is not the expected JSON array
    """
    try:
        results = _RESULTS_ADAPTER.validate_json(stdout)
    except ValidationError as e:
        raise EngineError(f"Unreadable ESLint output: {e}") from e
    return LintRun.from_results(results)


def run_eslint(targets: list[str], config: ActionConfig) -> LintRun:
    """
    Lint *targets* and return per-file diagnostics plus aggregate counts.

    Args:
        targets: Repository-relative paths from the lint target filter
        config: Run configuration

    Returns:
        LintRun for the files ESLint actually processed

    Raises:
        EngineError: If ESLint cannot run, crashes, or its output is unreadable
    """
    files = engine_targets(targets)
    if not files:
        logger.info("No targets match %s; ESLint not started", ", ".join(ENGINE_EXTENSIONS))
        return LintRun()

    cmd = build_command(absolute_targets(files, config.workspace), config)
    logger.debug("Running %s in %s", cmd, config.working_directory)

    try:
        completed = subprocess.run(
            cmd,
            cwd=config.working_directory,
            capture_output=True,
            text=True,
            timeout=config.eslint_timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise EngineError(f"ESLint executable not found: {cmd[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise EngineError(
            f"ESLint timed out after {config.eslint_timeout:.0f}s"
        ) from e

    if completed.returncode >= _ESLINT_FATAL_EXIT:
        stderr = (completed.stderr or "").strip()
        raise EngineError(
            f"ESLint exited with code {completed.returncode}: {stderr or 'no output'}"
        )

    lint_run = parse_eslint_output(completed.stdout)
    logger.info(
        "ESLint processed %d file(s): %d error(s), %d warning(s)",
        len(lint_run.results),
        lint_run.error_count,
        lint_run.warning_count,
    )
    return lint_run
