# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Offline provisioner recording every tool resolution made in tests."""

from __future__ import annotations

from formatsteps.errors import ToolResolutionError
from formatsteps.provisioning import DEFAULT_CATALOG, ResolvedTool


class RecordingProvisioner:
    """Resolve any catalog tool without touching the network and log every call."""

    def __init__(self, unavailable: frozenset[str] = frozenset()) -> None:
        self.calls: list[tuple[str, str]] = []
        self.unavailable = set(unavailable)

    def default_version(self, tool: str) -> str:
        return DEFAULT_CATALOG[tool].default_version

    def resolve(self, tool: str, version: str) -> ResolvedTool:
        self.calls.append((tool, version))
        if version in self.unavailable:
            raise ToolResolutionError(tool, version, "unavailable in test mirror")
        return ResolvedTool(name=tool, version=version, coordinate=f"test:{tool}:{version}")
