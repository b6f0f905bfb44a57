"""Data models for change sets, lint diagnostics and check-run reports."""

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ChangedFile(BaseModel):
    """A file touched by the pull request."""

    model_config = ConfigDict(frozen=True)

    path: str


class ChangeSet(BaseModel):
    """Files attached to a PR plus the oid of its latest commit."""

    model_config = ConfigDict(frozen=True)

    head_commit_id: str
    files: tuple[ChangedFile, ...] = ()


class Severity(enum.IntEnum):
    """ESLint message severity."""

    INFO = 0
    WARNING = 1
    ERROR = 2


class Diagnostic(BaseModel):
    """A single ESLint message, as found in ``--format json`` output."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    file_path: str = Field(default="", alias="filePath")
    line: int = Field(default=1, ge=1)
    column: int | None = None
    severity: Severity = Severity.WARNING
    rule_id: str | None = Field(default=None, alias="ruleId")
    message: str = ""

    @field_validator("line", mode="before")
    @classmethod
    def _default_line(cls, value: Any) -> Any:
        # File-level messages ("File ignored ...") carry no position
        if value is None or (isinstance(value, int) and value < 1):
            return 1
        return value


class LintFileResult(BaseModel):
    """ESLint's result for one processed file."""

    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(alias="filePath")
    diagnostics: list[Diagnostic] = Field(default_factory=list, alias="messages")
    error_count: int = Field(default=0, alias="errorCount")
    warning_count: int = Field(default=0, alias="warningCount")

    @model_validator(mode="after")
    def _attach_file_path(self) -> "LintFileResult":
        self.diagnostics = [
            d if d.file_path else d.model_copy(update={"file_path": self.file_path})
            for d in self.diagnostics
        ]
        return self


class LintRun(BaseModel):
    """Everything the collector learned from one ESLint invocation."""

    results: list[LintFileResult] = Field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0

    @classmethod
    def from_results(cls, results: list[LintFileResult]) -> "LintRun":
        return cls(
            results=results,
            error_count=sum(r.error_count for r in results),
            warning_count=sum(r.warning_count for r in results),
        )


class AnnotationLevel(str, enum.Enum):
    """Annotation levels accepted by the GitHub checks API."""

    NOTICE = "notice"
    WARNING = "warning"
    FAILURE = "failure"


class Conclusion(str, enum.Enum):
    """Conclusions this check can finish with."""

    SUCCESS = "success"
    FAILURE = "failure"


class Annotation(BaseModel):
    """A line-anchored comment attached to the check-run output."""

    path: str
    start_line: int = Field(ge=1)
    end_line: int = Field(ge=1)
    annotation_level: AnnotationLevel
    message: str


class Report(BaseModel):
    """The normalised outcome of a lint run."""

    conclusion: Conclusion
    title: str
    summary: str
    annotations: list[Annotation] = Field(default_factory=list)

    def to_output(self, annotations: list[Annotation] | None = None) -> dict:
        """Render the ``output`` object for the checks API.

        *annotations* overrides the attached list, used when batching.
        """
        selected = self.annotations if annotations is None else annotations
        return {
            "title": self.title,
            "summary": self.summary,
            "annotations": [a.model_dump(mode="json") for a in selected],
        }
