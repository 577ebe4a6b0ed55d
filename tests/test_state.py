# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for persisted step fingerprints."""

from __future__ import annotations

from pathlib import Path

from formatsteps.builders import KtlintBuilder
from formatsteps.pipeline import StepPipeline
from formatsteps.state import RecordedStep, compare, load_fingerprints, save_fingerprints


def test_compare_detects_changed_steps(pipeline: StepPipeline, tmp_path: Path) -> None:
    builder = KtlintBuilder(pipeline, "1.0")
    save_fingerprints(tmp_path, pipeline)

    assert all(status.up_to_date for status in compare(pipeline, load_fingerprints(tmp_path)))

    builder.user_data({"android": "true"})
    statuses = compare(pipeline, load_fingerprints(tmp_path))

    assert [status.up_to_date for status in statuses] == [False]
    assert statuses[0].name == "ktlint"


def test_unchanged_reconfiguration_stays_up_to_date(pipeline: StepPipeline, tmp_path: Path) -> None:
    builder = KtlintBuilder(pipeline, "1.0").user_data({"a": "1"})
    save_fingerprints(tmp_path, pipeline)

    builder.user_data({"a": "1"})

    assert compare(pipeline, load_fingerprints(tmp_path))[0].up_to_date


def test_missing_or_corrupt_state(pipeline: StepPipeline, tmp_path: Path) -> None:
    KtlintBuilder(pipeline, "1.0")
    assert load_fingerprints(tmp_path) == []
    assert compare(pipeline, [])[0].recorded is None

    (tmp_path / "steps.json").write_text("not json", encoding="utf-8")
    assert load_fingerprints(tmp_path) == []


def test_removed_steps_are_reported(pipeline: StepPipeline, tmp_path: Path) -> None:
    KtlintBuilder(pipeline, "1.0")
    KtlintBuilder(pipeline, "1.1")
    save_fingerprints(tmp_path, pipeline)

    shorter = StepPipeline(provisioner=pipeline.provisioner())
    KtlintBuilder(shorter, "1.0")
    statuses = compare(shorter, load_fingerprints(tmp_path))

    assert [status.up_to_date for status in statuses] == [True, False]
    assert statuses[1].removed
    assert statuses[1].index == 1
    assert statuses[1].name == "ktlint"
    assert statuses[1].current is None


def test_recorded_entries_carry_step_names(pipeline: StepPipeline, tmp_path: Path) -> None:
    step = KtlintBuilder(pipeline, "1.0").step
    save_fingerprints(tmp_path, pipeline)

    assert load_fingerprints(tmp_path) == [RecordedStep(name="ktlint", fingerprint=step.fingerprint())]


def test_legacy_flat_state_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "steps.json").write_text('{"steps": ["abc"]}', encoding="utf-8")

    assert load_fingerprints(tmp_path) == []
