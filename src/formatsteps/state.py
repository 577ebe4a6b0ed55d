# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Persisted step fingerprints backing the command-line up-to-date check."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .pipeline import StepPipeline

LOGGER = logging.getLogger(__name__)

CACHE_DIRNAME: Final[str] = ".formatsteps-cache"
_STATE_FILE: Final[str] = "steps.json"


@dataclass(frozen=True, slots=True)
class RecordedStep:
    """Fingerprint of one step as written by :func:`save_fingerprints`."""

    name: str
    fingerprint: str


@dataclass(frozen=True, slots=True)
class StepStatus:
    """Compare one slot's current fingerprint with the recorded one.

    Attributes:
        index: Slot position in the pipeline.
        name: Step name, taken from the recording when the slot was removed.
        current: Fingerprint of the live step, ``None`` when the slot no longer exists.
        recorded: Fingerprint from the last recording, ``None`` when the slot is new.
    """

    index: int
    name: str
    current: str | None
    recorded: str | None

    @property
    def up_to_date(self) -> bool:
        return self.current is not None and self.current == self.recorded

    @property
    def removed(self) -> bool:
        return self.current is None


def load_fingerprints(cache_dir: Path) -> list[RecordedStep]:
    """Read the recorded step fingerprints from ``cache_dir``.

    Args:
        cache_dir: Directory that may contain the state file.

    Returns:
        list[RecordedStep]: Recorded steps in slot order, or an empty list when
        the state file is missing or unreadable.
    """

    path = cache_dir / _STATE_FILE
    if not path.is_file():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        LOGGER.warning("ignoring unreadable step state at %s", path)
        return []
    steps = data.get("steps") if isinstance(data, dict) else None
    if not isinstance(steps, list):
        return []
    recorded: list[RecordedStep] = []
    for entry in steps:
        if not isinstance(entry, dict):
            LOGGER.warning("ignoring malformed step state at %s", path)
            return []
        recorded.append(RecordedStep(name=str(entry.get("name", "")), fingerprint=str(entry.get("fingerprint", ""))))
    return recorded


def save_fingerprints(cache_dir: Path, pipeline: StepPipeline) -> None:
    """Write the name and fingerprint of every step in ``pipeline`` to ``cache_dir``.

    Args:
        cache_dir: Directory where the state file should be stored.
        pipeline: Pipeline whose steps are recorded in slot order.
    """

    cache_dir.mkdir(parents=True, exist_ok=True)
    payload = {"steps": [{"name": step.name, "fingerprint": step.fingerprint()} for step in pipeline]}
    (cache_dir / _STATE_FILE).write_text(json.dumps(payload, indent=2), encoding="utf-8")


def compare(pipeline: StepPipeline, recorded: Sequence[RecordedStep]) -> list[StepStatus]:
    """Pair each slot with the fingerprint recorded at the same position.

    Recorded slots beyond the end of ``pipeline`` are reported as removed, so a
    shrinking pipeline is never mistaken for an up-to-date one.

    Args:
        pipeline: Pipeline whose steps are checked.
        recorded: Steps from a previous recording, in slot order.

    Returns:
        list[StepStatus]: One entry per current or recorded slot; a slot needs
        attention when its entry is not ``up_to_date``.
    """

    statuses: list[StepStatus] = []
    for index, step in enumerate(pipeline):
        previous = recorded[index].fingerprint if index < len(recorded) else None
        statuses.append(StepStatus(index=index, name=step.name, current=step.fingerprint(), recorded=previous))
    for index in range(len(pipeline), len(recorded)):
        entry = recorded[index]
        statuses.append(StepStatus(index=index, name=entry.name, current=None, recorded=entry.fingerprint))
    return statuses


__all__ = [
    "CACHE_DIRNAME",
    "RecordedStep",
    "StepStatus",
    "compare",
    "load_fingerprints",
    "save_fingerprints",
]
