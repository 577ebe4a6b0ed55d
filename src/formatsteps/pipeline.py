# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Ordered step list owned by a formatting pipeline definition."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from .provisioning import CatalogProvisioner, Provisioner
from .serialization import fingerprint, serialize
from .steps import Step

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StepSlot:
    """Position of a registered step inside its owning pipeline."""

    index: int


class StepPipeline:
    """Hold the ordered steps of one formatting pipeline.

    Builders register once through :meth:`add_step` and afterwards only swap
    the step at their own slot through :meth:`replace_step`. The pipeline never
    calls back into a builder.
    """

    def __init__(self, name: str = "format", *, provisioner: Provisioner | None = None) -> None:
        self.name = name
        self._steps: list[Step] = []
        self._provisioner = provisioner or CatalogProvisioner()

    def provisioner(self) -> Provisioner:
        """Return the collaborator step factories use to resolve tool versions."""

        return self._provisioner

    def add_step(self, step: Step) -> StepSlot:
        """Append ``step`` and return the slot it now occupies."""

        self._steps.append(step)
        slot = StepSlot(len(self._steps) - 1)
        LOGGER.debug("pipeline %s registered %s at slot %d", self.name, step.name, slot.index)
        return slot

    def replace_step(self, slot: StepSlot, step: Step) -> None:
        """Swap the step at ```slot``` for ``step`` without moving other steps.

        Raises:
            IndexError: If ```slot``` was not issued by this pipeline.
        """

        if not 0 <= slot.index < len(self._steps):
            raise IndexError(f"pipeline {self.name} has no step slot {slot.index}")
        self._steps[slot.index] = step
        LOGGER.debug("pipeline %s replaced slot %d with %s", self.name, slot.index, step.name)

    def step_at(self, slot: StepSlot) -> Step:
        """Return the step currently registered at ``slot``."""

        return self._steps[slot.index]

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(tuple(self._steps))

    def cache_key(self) -> str:
        """Return the canonical serialization of every step in order."""

        return serialize(list(self._steps))

    def fingerprint(self) -> str:
        return fingerprint(list(self._steps))


__all__ = ["StepPipeline", "StepSlot"]
