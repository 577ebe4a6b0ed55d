# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Entry point creating formatter builders for Kotlin build scripts."""

from __future__ import annotations

from collections.abc import Sequence
from fnmatch import fnmatch
from pathlib import Path
from typing import Final

from .builders import DiktatBuilder, KtfmtBuilder, KtlintBuilder
from .pipeline import StepPipeline
from .signature import compute_optional

SCRIPT_TARGET: Final[tuple[str, ...]] = ("*.gradle.kts",)
EDITORCONFIG_FILENAME: Final[str] = ".editorconfig"


class ScriptFormatExtension:
    """Create formatter builders bound to one pipeline and project root.

    Relative paths handed to builders resolve against ``project_root``.
    """

    name = "kotlinGradle"

    def __init__(
        self,
        pipeline: StepPipeline,
        project_root: Path,
        *,
        target: Sequence[str] | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.project_root = project_root.resolve()
        self.target: tuple[str, ...] = tuple(target) if target else SCRIPT_TARGET

    def file(self, path: Path | str) -> Path:
        """Resolve ``path`` against the project root."""

        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.project_root / candidate

    def matches(self, path: Path | str) -> bool:
        """Return ``True`` when ``path`` is covered by the target patterns."""

        name = Path(path).name
        return any(fnmatch(name, pattern) for pattern in self.target)

    def _version(self, tool: str, version: str | None) -> str:
        return version if version is not None else self.pipeline.provisioner().default_version(tool)

    def ktlint(self, version: str | None = None) -> KtlintBuilder:
        """Add a ktlint step, signing the root ``.editorconfig`` when present."""

        editorconfig = compute_optional(self.file(EDITORCONFIG_FILENAME))
        return KtlintBuilder(
            self.pipeline,
            self._version("ktlint", version),
            editorconfig=editorconfig,
            resolve_path=self.file,
        )

    def ktfmt(self, version: str | None = None) -> KtfmtBuilder:
        return KtfmtBuilder(self.pipeline, self._version("ktfmt", version), resolve_path=self.file)

    def diktat(self, version: str | None = None) -> DiktatBuilder:
        return DiktatBuilder(self.pipeline, self._version("diktat", version), resolve_path=self.file)


__all__ = ["EDITORCONFIG_FILENAME", "SCRIPT_TARGET", "ScriptFormatExtension"]
