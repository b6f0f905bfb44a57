"""Shared builders and fakes for the test suite."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

from config import ActionConfig


def make_config(workspace: Path, **overrides: Any) -> ActionConfig:
    """ActionConfig rooted at *workspace* with test defaults."""
    values: dict[str, Any] = {
        "token": "t0ken",
        "repository": "octo-org/web-app",
        "pr_number": 7,
        "workspace": workspace,
        "working_directory": workspace,
    }
    values.update(overrides)
    return ActionConfig(**values)


def write_file(root: Path, relative: str, content: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def eslint_message(
    line: int | None, severity: int, rule_id: str | None, message: str
) -> dict:
    payload: dict[str, Any] = {"severity": severity, "ruleId": rule_id, "message": message}
    if line is not None:
        payload["line"] = line
        payload["column"] = 1
    return payload


def eslint_result(file_path: Path | str, messages: list[dict]) -> dict:
    """One entry of ``eslint --format json`` output."""
    return {
        "filePath": str(file_path),
        "messages": messages,
        "errorCount": sum(1 for m in messages if m["severity"] == 2),
        "warningCount": sum(1 for m in messages if m["severity"] == 1),
        "fixableErrorCount": 0,
        "fixableWarningCount": 0,
    }


def completed(cmd: list[str], returncode: int, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(
        args=cmd, returncode=returncode, stdout=stdout, stderr=stderr
    )


class FakeCheckRun:
    """Records ``edit`` calls the way PyGithub's CheckRun receives them."""

    def __init__(self, check_run_id: int, fail_on_edit: Exception | None = None):
        self.id = check_run_id
        self.edits: list[dict] = []
        self.fail_on_edit = fail_on_edit

    def edit(self, **kwargs: Any) -> None:
        if self.fail_on_edit is not None:
            raise self.fail_on_edit
        self.edits.append(kwargs)


class FakeRepository:
    """Stands in for a PyGithub Repository in check-run tests."""

    def __init__(
        self,
        check_run_id: int = 4242,
        fail_on_create: Exception | None = None,
        fail_on_edit: Exception | None = None,
    ):
        self.check_run = FakeCheckRun(check_run_id, fail_on_edit)
        self.created: list[dict] = []
        self.fail_on_create = fail_on_create

    def create_check_run(self, **kwargs: Any) -> FakeCheckRun:
        if self.fail_on_create is not None:
            raise self.fail_on_create
        self.created.append(kwargs)
        return self.check_run


class FakeResponse:
    """Minimal ``requests.Response`` replacement."""

    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self) -> None:
        import requests

        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")


def pr_payload(
    paths: list[str],
    oid: str | None = "abc123",
    has_next_page: bool = False,
    end_cursor: str | None = None,
) -> dict:
    """GraphQL response body for the PR files query."""
    commits = [{"commit": {"oid": oid}}] if oid is not None else []
    return {
        "data": {
            "repository": {
                "pullRequest": {
                    "files": {
                        "nodes": [{"path": p} for p in paths],
                        "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
                    },
                    "commits": {"nodes": commits},
                }
            }
        }
    }
