"""Select which changed files get linted."""

import logging
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from config import ActionConfig, MissingFilePolicy
from models import ChangedFile

logger = logging.getLogger(__name__)

# Extensions a PR file must have to be considered at all
LINTABLE_EXTENSIONS = frozenset({".mjs", ".js", ".ts", ".jsx", ".tsx"})


def is_lintable(path: str) -> bool:
    """Check if *path* has one of the lintable extensions."""
    return PurePosixPath(path).suffix in LINTABLE_EXTENSIONS


def filter_lint_targets(files: Iterable[ChangedFile]) -> list[str]:
    """Keep the lintable paths, preserving the PR's file order."""
    return [file.path for file in files if is_lintable(file.path)]


def select_lint_targets(
    files: Iterable[ChangedFile], config: ActionConfig
) -> list[str]:
    """
    Filter the change set and apply the missing-file policy.

    Paths are resolved against the workspace root. A path that is not on
    disk (typically a file deleted by the PR) is dropped under
    ``MissingFilePolicy.EXCLUDE`` and kept under ``INCLUDE``, in which case
    ESLint will report it as an engine failure.

    Args:
        files: Files from the PR change set
        config: Run configuration

    Returns:
        Repository-relative paths to lint, in PR order
    """
    targets = []
    for path in filter_lint_targets(files):
        if not (config.workspace / path).is_file():
            if config.missing_files is MissingFilePolicy.EXCLUDE:
                logger.warning("Skipping %s: not found in %s", path, config.workspace)
                continue
            logger.warning(
                "%s not found in %s; passing it to ESLint anyway",
                path,
                config.workspace,
            )
        targets.append(path)
    return targets


def describe_extensions(extensions: Iterable[str] = LINTABLE_EXTENSIONS) -> str:
    return ", ".join(sorted(extensions))


def absolute_targets(targets: Iterable[str], workspace: Path) -> list[str]:
    """Turn repository-relative targets into absolute filesystem paths."""
    return [str(workspace / target) for target in targets]
