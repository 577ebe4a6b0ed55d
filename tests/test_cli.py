# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the command-line host."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from formatsteps.cli import app

CONFIG = """
[[steps]]
tool = "ktlint"
version = "1.0.1"

[[steps]]
tool = "ktfmt"
style = "dropbox"
"""


def _write_config(root: Path, text: str = CONFIG) -> None:
    (root / ".formatsteps.toml").write_text(text, encoding="utf-8")


def test_plan_json_lists_steps(project: Path) -> None:
    _write_config(project)
    runner = CliRunner()

    result = runner.invoke(app, ["plan", "--root", str(project), "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [step["name"] for step in payload["steps"]] == ["ktlint", "ktfmt"]
    assert payload["steps"][1]["snapshot"]["variant"] == "dropbox"
    assert payload["steps"][0]["snapshot"]["file_refs"] == {"editorconfig": "unset"}


def test_plan_table(project: Path) -> None:
    _write_config(project)

    result = CliRunner().invoke(app, ["plan", "--root", str(project)])

    assert result.exit_code == 0, result.output
    assert "ktlint" in result.stdout
    assert "1.0.1" in result.stdout


def test_plan_without_steps_warns(project: Path) -> None:
    result = CliRunner().invoke(app, ["plan", "--root", str(project)])

    assert result.exit_code == 0
    assert "No formatter steps configured" in result.stdout


def test_plan_reports_configuration_errors(project: Path) -> None:
    _write_config(project, '[[steps]]\ntool = "diktat"\nconfig = "missing.yml"\n')

    result = CliRunner().invoke(app, ["plan", "--root", str(project)])

    assert result.exit_code == 1
    assert "does not exist" in result.stdout


def test_check_records_and_detects_changes(project: Path) -> None:
    _write_config(project)
    runner = CliRunner()

    first = runner.invoke(app, ["check", "--root", str(project)])
    assert first.exit_code == 1
    assert "needs a rerun" in first.stdout

    recorded = runner.invoke(app, ["check", "--root", str(project), "--record"])
    assert recorded.exit_code == 0
    assert (project / ".formatsteps-cache" / "steps.json").is_file()

    clean = runner.invoke(app, ["check", "--root", str(project)])
    assert clean.exit_code == 0
    assert "All steps up to date" in clean.stdout

    _write_config(project, CONFIG.replace("dropbox", "google"))
    changed = runner.invoke(app, ["check", "--root", str(project)])
    assert changed.exit_code == 1
    assert "ktfmt (slot 1) needs a rerun" in changed.stdout


def test_check_reports_removed_steps(project: Path) -> None:
    _write_config(project)
    runner = CliRunner()
    assert runner.invoke(app, ["check", "--root", str(project), "--record"]).exit_code == 0

    _write_config(project, '[[steps]]\ntool = "ktlint"\nversion = "1.0.1"\n')
    result = runner.invoke(app, ["check", "--root", str(project)])

    assert result.exit_code == 1
    assert "ktfmt (slot 1) was removed" in result.stdout
    assert "All steps up to date" not in result.stdout


def test_versions_lists_defaults() -> None:
    result = CliRunner().invoke(app, ["versions"])

    assert result.exit_code == 0
    assert "ktlint 1.0.1" in result.stdout
