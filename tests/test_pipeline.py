# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the ordered step list."""

from __future__ import annotations

import pytest

from formatsteps.pipeline import StepPipeline, StepSlot
from formatsteps.provisioning import CatalogProvisioner
from formatsteps.snapshot import ConfigurationSnapshot
from formatsteps.steps import Step, compile_step

from helpers.provisioning import RecordingProvisioner


def _step(provisioner: RecordingProvisioner, tool: str, version: str) -> Step:
    return compile_step(ConfigurationSnapshot(tool=tool, tool_version=version), provisioner)


def test_replace_keeps_length_and_order(pipeline: StepPipeline, provisioner: RecordingProvisioner) -> None:
    first = pipeline.add_step(_step(provisioner, "ktlint", "1.0"))
    second = pipeline.add_step(_step(provisioner, "diktat", "1.2.5"))
    third = pipeline.add_step(_step(provisioner, "ktfmt", "0.46"))

    pipeline.replace_step(second, _step(provisioner, "diktat", "1.2.4"))

    assert [slot.index for slot in (first, second, third)] == [0, 1, 2]
    assert len(pipeline) == 3
    assert [step.name for step in pipeline] == ["ktlint", "diktat", "ktfmt"]
    assert pipeline.step_at(second).tool.version == "1.2.4"


def test_replace_unknown_slot(pipeline: StepPipeline, provisioner: RecordingProvisioner) -> None:
    with pytest.raises(IndexError):
        pipeline.replace_step(StepSlot(0), _step(provisioner, "ktlint", "1.0"))


def test_pipeline_cache_key_follows_steps(pipeline: StepPipeline, provisioner: RecordingProvisioner) -> None:
    slot = pipeline.add_step(_step(provisioner, "ktlint", "1.0"))
    before = pipeline.cache_key()

    pipeline.replace_step(slot, _step(provisioner, "ktlint", "1.0"))
    assert pipeline.cache_key() == before

    pipeline.replace_step(slot, _step(provisioner, "ktlint", "1.1"))
    assert pipeline.cache_key() != before


def test_pipeline_exposes_provisioner(provisioner: RecordingProvisioner) -> None:
    assert StepPipeline(provisioner=provisioner).provisioner() is provisioner
    assert isinstance(StepPipeline().provisioner(), CatalogProvisioner)


def test_steps_view_is_a_copy(pipeline: StepPipeline, provisioner: RecordingProvisioner) -> None:
    pipeline.add_step(_step(provisioner, "ktlint", "1.0"))

    assert isinstance(pipeline.steps, tuple)
    assert len(pipeline.steps) == 1
