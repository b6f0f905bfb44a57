"""Tests for lint target selection."""

from __future__ import annotations

import logging

from config import MissingFilePolicy
from file_filter import LINTABLE_EXTENSIONS, filter_lint_targets, is_lintable, select_lint_targets
from models import ChangedFile
from tests.helpers import make_config, write_file


def _files(*paths: str) -> list[ChangedFile]:
    return [ChangedFile(path=p) for p in paths]


def test_filter_keeps_only_lintable_paths_in_pr_order() -> None:
    files = _files(
        "src/z.tsx",
        "README.md",
        "lib/a.js",
        "setup.py",
        "types/index.d.ts",
        "esm/entry.mjs",
        "package.json",
        "ui/Button.jsx",
    )

    assert filter_lint_targets(files) == [
        "src/z.tsx",
        "lib/a.js",
        "types/index.d.ts",
        "esm/entry.mjs",
        "ui/Button.jsx",
    ]


def test_filter_matches_extension_exactly() -> None:
    assert not is_lintable("LEGACY.JS")
    assert not is_lintable("scripts/build.js.map")
    assert not is_lintable("Makefile")
    assert is_lintable("dist/app.min.js")
    assert LINTABLE_EXTENSIONS == {".mjs", ".js", ".ts", ".jsx", ".tsx"}


def test_filter_of_non_lintable_change_set_is_empty() -> None:
    assert filter_lint_targets(_files("README.md", "docs/guide.rst")) == []
    assert filter_lint_targets([]) == []


def test_select_excludes_missing_files_by_default(tmp_path, caplog) -> None:
    write_file(tmp_path, "a.js", "var a = 1;\n")
    write_file(tmp_path, "c.ts", "const c = 1;\n")
    config = make_config(tmp_path)

    with caplog.at_level(logging.WARNING):
        targets = select_lint_targets(_files("a.js", "deleted.js", "c.ts"), config)

    assert targets == ["a.js", "c.ts"]
    assert "deleted.js" in caplog.text


def test_select_include_policy_passes_missing_files_through(tmp_path, caplog) -> None:
    write_file(tmp_path, "a.js")
    config = make_config(tmp_path, missing_files=MissingFilePolicy.INCLUDE)

    with caplog.at_level(logging.WARNING):
        targets = select_lint_targets(_files("gone.jsx", "a.js", "notes.txt"), config)

    assert targets == ["gone.jsx", "a.js"]
    assert "gone.jsx" in caplog.text


def test_select_resolves_paths_against_workspace(tmp_path) -> None:
    write_file(tmp_path, "packages/web/src/app.tsx")
    config = make_config(tmp_path, working_directory=tmp_path / "packages" / "web")

    assert select_lint_targets(_files("packages/web/src/app.tsx"), config) == [
        "packages/web/src/app.tsx"
    ]
