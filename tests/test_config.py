# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for configuration loading and replay."""

from __future__ import annotations

from pathlib import Path

import pytest

from formatsteps.builders import DiktatBuilder, KtfmtBuilder, KtlintBuilder
from formatsteps.config import ProjectConfig, build_pipeline, load_config, parse_config
from formatsteps.errors import ConfigError, FileNotFound
from formatsteps.extension import ScriptFormatExtension
from formatsteps.pipeline import StepPipeline
from formatsteps.snapshot import ReferenceState

from helpers.provisioning import RecordingProvisioner

PYPROJECT = """
[project]
name = "demo"

[tool.formatsteps]
target = ["*.gradle.kts", "*.kts"]

[[tool.formatsteps.steps]]
tool = "ktlint"
version = "1.0"
user_data = { android = "true" }
editorconfig_override = { indent_size = 2 }

[[tool.formatsteps.steps]]
tool = "ktfmt"
style = "google"
options = { max_width = 120 }

[[tool.formatsteps.steps]]
tool = "diktat"
config = "diktat-analysis.yml"
"""


def test_missing_configuration_is_empty(project: Path) -> None:
    assert load_config(project) == ProjectConfig()


def test_pyproject_section_is_loaded(project: Path) -> None:
    (project / "pyproject.toml").write_text(PYPROJECT, encoding="utf-8")

    config = load_config(project)

    assert config.target == ("*.gradle.kts", "*.kts")
    assert [entry.tool for entry in config.steps] == ["ktlint", "ktfmt", "diktat"]


def test_standalone_file_takes_precedence(project: Path) -> None:
    (project / "pyproject.toml").write_text(PYPROJECT, encoding="utf-8")
    (project / ".formatsteps.toml").write_text('[[steps]]\ntool = "ktfmt"\n', encoding="utf-8")

    assert [entry.tool for entry in load_config(project).steps] == ["ktfmt"]


def test_invalid_toml_raises_config_error(project: Path) -> None:
    (project / ".formatsteps.toml").write_text("[[steps]\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(project)


@pytest.mark.parametrize(
    "data",
    [
        {"steps": [{"tool": "prettier"}]},
        {"steps": [{"tool": "ktfmt", "editorconfig": "x"}]},
        {"steps": [{"tool": "ktlint", "unknown": 1}]},
        {"steps": [{"tool": "ktlint", "editorconfig": ""}]},
        {"steps": [{"tool": "diktat", "config": "  "}]},
        {"unknown": True},
    ],
)
def test_invalid_entries_raise_config_error(data: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        parse_config(data)


def test_replay_matches_programmatic_configuration(provisioner: RecordingProvisioner, project: Path) -> None:
    (project / "diktat-analysis.yml").write_text("[]\n", encoding="utf-8")
    (project / "pyproject.toml").write_text(PYPROJECT, encoding="utf-8")

    configured = build_pipeline(load_config(project), project, provisioner=provisioner)

    manual = StepPipeline(provisioner=provisioner)
    extension = ScriptFormatExtension(manual, project)
    extension.ktlint("1.0").user_data({"android": "true"}).editor_config_override({"indent_size": 2})
    extension.ktfmt().google_style().configure(lambda options: setattr(options, "max_width", 120))
    extension.diktat().config_file("diktat-analysis.yml")

    assert configured.pipeline.cache_key() == manual.cache_key()
    assert [type(builder) for builder in configured.builders] == [KtlintBuilder, KtfmtBuilder, DiktatBuilder]
    assert configured.extension.target == ("*.gradle.kts", "*.kts")


def test_false_clears_default_editorconfig(provisioner: RecordingProvisioner, project: Path) -> None:
    (project / ".editorconfig").write_text("root = true\n", encoding="utf-8")
    config = parse_config({"steps": [{"tool": "ktlint", "editorconfig": False}]})

    configured = build_pipeline(config, project, provisioner=provisioner)

    assert configured.builders[0].snapshot.file_ref("editorconfig").state is ReferenceState.CLEARED


def test_replay_surfaces_missing_files(provisioner: RecordingProvisioner, project: Path) -> None:
    config = parse_config({"steps": [{"tool": "diktat", "config": "missing.yml"}]})

    with pytest.raises(FileNotFound):
        build_pipeline(config, project, provisioner=provisioner)


def test_unknown_ktfmt_option_is_a_config_error(provisioner: RecordingProvisioner, project: Path) -> None:
    config = parse_config({"steps": [{"tool": "ktfmt", "options": {"tabs": True}}]})

    with pytest.raises(ConfigError):
        build_pipeline(config, project, provisioner=provisioner)
