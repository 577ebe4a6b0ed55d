# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from helpers.provisioning import RecordingProvisioner

from formatsteps.pipeline import StepPipeline


@pytest.fixture
def provisioner() -> RecordingProvisioner:
    return RecordingProvisioner(unavailable=frozenset({"9.9.9"}))


@pytest.fixture
def pipeline(provisioner: RecordingProvisioner) -> StepPipeline:
    return StepPipeline(provisioner=provisioner)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Return an empty project root."""
    root = tmp_path / "project"
    root.mkdir()
    return root
