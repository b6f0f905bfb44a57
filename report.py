"""Turn ESLint diagnostics into a check-run report."""

import logging
from pathlib import Path, PurePath

from config import CHECK_NAME
from errors import PreconditionError
from models import (
    Annotation,
    AnnotationLevel,
    Conclusion,
    Diagnostic,
    LintRun,
    Report,
    Severity,
)

logger = logging.getLogger(__name__)

# INFO has no entry: those diagnostics are never surfaced
LEVELS: dict[Severity, AnnotationLevel] = {
    Severity.WARNING: AnnotationLevel.WARNING,
    Severity.ERROR: AnnotationLevel.FAILURE,
}

UNKNOWN_RULE = "unknown-rule"


def rebase_path(file_path: str, workspace_root: str | Path) -> str:
    """
    Express *file_path* relative to *workspace_root* with ``/`` separators.

    Raises:
        PreconditionError: If the path does not lie strictly under the root
    """
    try:
        relative = PurePath(file_path).relative_to(PurePath(workspace_root))
    except ValueError as e:
        raise PreconditionError(
            f"{file_path} is not under workspace root {workspace_root}"
        ) from e

    if not relative.parts or ".." in relative.parts:
        raise PreconditionError(
            f"{file_path} does not name a file inside {workspace_root}"
        )
    return relative.as_posix()


def format_message(diagnostic: Diagnostic) -> str:
    return f"[{diagnostic.rule_id or UNKNOWN_RULE}] {diagnostic.message}"


def to_annotation(diagnostic: Diagnostic, path: str) -> Annotation | None:
    """Map one diagnostic to an annotation, or None if it is not surfaced."""
    level = LEVELS.get(diagnostic.severity)
    if level is None:
        logger.debug("Dropping %s diagnostic at %s:%d", diagnostic.severity.name, path, diagnostic.line)
        return None
    return Annotation(
        path=path,
        start_line=diagnostic.line,
        end_line=diagnostic.line,
        annotation_level=level,
        message=format_message(diagnostic),
    )


def summarize(error_count: int, warning_count: int) -> str:
    return f"{error_count} error(s), {warning_count} warning(s) found"


def build_report(
    lint_run: LintRun,
    workspace_root: str | Path,
    title: str = CHECK_NAME,
) -> Report:
    """
    Build the check-run report for a lint run.

    Annotations keep file order, then message order within each file.
    The conclusion is a failure iff ESLint counted at least one error;
    warnings alone never fail the check.
    """
    annotations: list[Annotation] = []
    for result in lint_run.results:
        path = rebase_path(result.file_path, workspace_root)
        for diagnostic in result.diagnostics:
            annotation = to_annotation(diagnostic, path)
            if annotation is not None:
                annotations.append(annotation)

    conclusion = Conclusion.FAILURE if lint_run.error_count > 0 else Conclusion.SUCCESS
    return Report(
        conclusion=conclusion,
        title=title,
        summary=summarize(lint_run.error_count, lint_run.warning_count),
        annotations=annotations,
    )
