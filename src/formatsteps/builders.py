# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Mutable builders that recompile and re-register a step on every change."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .pipeline import StepPipeline, StepSlot
from .signature import FileSignature, compute
from .snapshot import ConfigurationSnapshot, FileReference
from .steps import CONFIG_ROLE, EDITORCONFIG_ROLE, KtfmtStyle, Step, compile_step

LOGGER = logging.getLogger(__name__)

PathResolver = Callable[[Path | str], Path]
SnapshotUpdate = Callable[[ConfigurationSnapshot], ConfigurationSnapshot]


class BuilderState(str, Enum):
    """Lifecycle states of a formatter builder."""

    UNINITIALIZED = "uninitialized"
    REGISTERED = "registered"
    RECONFIGURING = "reconfiguring"


def _default_resolver(path: Path | str) -> Path:
    return Path(path)


def _new_snapshot(**values: Any) -> ConfigurationSnapshot:
    try:
        return ConfigurationSnapshot(**values)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid {values.get('tool')} configuration: {exc}") from exc


class FormatterBuilder:
    """Own one configuration snapshot and one step slot in a pipeline.

    The constructor compiles the initial snapshot and registers it, so a
    builder is never observable without a live step. Each setter validates its
    input, derives a new snapshot, compiles it and replaces the step at the
    builder's slot. Any failure leaves the previous snapshot and step in place.
    """

    tool: ClassVar[str]

    def __init__(
        self,
        pipeline: StepPipeline,
        snapshot: ConfigurationSnapshot,
        *,
        resolve_path: PathResolver | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._resolve_path = resolve_path or _default_resolver
        self._state = BuilderState.UNINITIALIZED
        step = self._compile(snapshot)
        self._slot = pipeline.add_step(step)
        self._snapshot = step.snapshot
        self._state = BuilderState.REGISTERED

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def slot(self) -> StepSlot:
        return self._slot

    @property
    def snapshot(self) -> ConfigurationSnapshot:
        return self._snapshot

    @property
    def step(self) -> Step:
        """Return the step currently registered at this builder's slot."""

        return self._pipeline.step_at(self._slot)

    def _compile(self, snapshot: ConfigurationSnapshot) -> Step:
        return compile_step(snapshot, self._pipeline.provisioner())

    def _reconfigure(self, update: SnapshotUpdate) -> None:
        """Apply ``update`` to the current snapshot and re-register the step.

        Args:
            update: Function deriving the next snapshot from the current one.

        Raises:
            ValidationError: If the derived snapshot is invalid.
            UnsupportedConfigValue: If an option cannot be serialized.
            ToolResolutionError: If the tool version cannot be resolved.
        """

        self._state = BuilderState.RECONFIGURING
        try:
            try:
                candidate = update(self._snapshot)
            except PydanticValidationError as exc:
                raise ValidationError(f"Invalid {self.tool} configuration: {exc}") from exc
            step = self._compile(candidate)
        finally:
            self._state = BuilderState.REGISTERED
        self._pipeline.replace_step(self._slot, step)
        self._snapshot = step.snapshot
        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug("recompiled %s step at slot %d: %s", self.tool, self._slot.index, step.fingerprint())

    def _sign(self, path: Path | str | None) -> FileReference:
        if path is None:
            return FileReference.cleared()
        return FileReference.of(compute(self._resolve_path(path)))


class KtlintBuilder(FormatterBuilder):
    """Configure a ktlint step."""

    tool = "ktlint"

    def __init__(
        self,
        pipeline: StepPipeline,
        version: str,
        *,
        editorconfig: FileSignature | None = None,
        user_data: Mapping[str, str] | None = None,
        editor_config_override: Mapping[str, Any] | None = None,
        resolve_path: PathResolver | None = None,
    ) -> None:
        refs = {EDITORCONFIG_ROLE: FileReference.of(editorconfig)} if editorconfig is not None else {}
        super().__init__(
            pipeline,
            _new_snapshot(
                tool=self.tool,
                tool_version=version,
                named_options=dict(user_data or {}),
                override_options=dict(editor_config_override or {}),
                file_refs=refs,
            ),
            resolve_path=resolve_path,
        )

    def set_editor_config_path(self, path: Path | str | None) -> KtlintBuilder:
        """Point ktlint at ``path``, or clear the reference when ``None``.

        Raises:
            FileNotFound: If ``path`` does not exist.
        """

        reference = self._sign(path)
        self._reconfigure(lambda snapshot: snapshot.with_file_ref(EDITORCONFIG_ROLE, reference))
        return self

    def user_data(self, user_data: Mapping[str, str]) -> KtlintBuilder:
        data = dict(user_data)
        self._reconfigure(lambda snapshot: snapshot.evolve(named_options=data))
        return self

    def editor_config_override(self, overrides: Mapping[str, Any]) -> KtlintBuilder:
        data = dict(overrides)
        self._reconfigure(lambda snapshot: snapshot.evolve(override_options=data))
        return self


@dataclass(slots=True)
class KtfmtFormattingOptions:
    """Optional ktfmt overrides; ``None`` keeps the style's default."""

    max_width: int | None = None
    block_indent: int | None = None
    continuation_indent: int | None = None
    remove_unused_imports: bool | None = None

    def to_overrides(self) -> dict[str, Any]:
        return {item.name: getattr(self, item.name) for item in fields(self) if getattr(self, item.name) is not None}


class ConfigurableStyle:
    """View over a :class:`KtfmtBuilder` exposing only formatting options.

    The view holds no snapshot or slot of its own; every call is routed
    through the parent's recompile cycle.
    """

    def __init__(self, parent: KtfmtBuilder) -> None:
        self._parent = parent

    def configure(self, configure: Callable[[KtfmtFormattingOptions], None]) -> None:
        self._parent.configure(configure)


class KtfmtBuilder(FormatterBuilder):
    """Configure a ktfmt step with a style and formatting options."""

    tool = "ktfmt"

    def __init__(
        self,
        pipeline: StepPipeline,
        version: str,
        *,
        resolve_path: PathResolver | None = None,
    ) -> None:
        super().__init__(
            pipeline,
            _new_snapshot(tool=self.tool, tool_version=version, variant=KtfmtStyle.DEFAULT.value),
            resolve_path=resolve_path,
        )
        self._style_view = ConfigurableStyle(self)

    @property
    def style(self) -> KtfmtStyle:
        return KtfmtStyle(self.snapshot.variant)

    def set_style(self, style: KtfmtStyle | str) -> ConfigurableStyle:
        """Switch to ``style`` and return the options view."""

        try:
            value = KtfmtStyle(style).value
        except ValueError as exc:
            raise ValidationError(f"Unknown ktfmt style: {style!r}") from exc
        self._reconfigure(lambda snapshot: snapshot.evolve(variant=value))
        return self._style_view

    def dropbox_style(self) -> ConfigurableStyle:
        return self.set_style(KtfmtStyle.DROPBOX)

    def google_style(self) -> ConfigurableStyle:
        return self.set_style(KtfmtStyle.GOOGLE)

    def kotlinlang_style(self) -> ConfigurableStyle:
        return self.set_style(KtfmtStyle.KOTLINLANG)

    def configure(self, configure: Callable[[KtfmtFormattingOptions], None]) -> None:
        """Replace the formatting options with those set by ``configure``.

        ``configure`` receives a fresh :class:`KtfmtFormattingOptions`; options
        from earlier calls are not carried over.
        """

        options = KtfmtFormattingOptions()
        configure(options)
        overrides = options.to_overrides()
        self._reconfigure(lambda snapshot: snapshot.evolve(override_options=overrides))


class DiktatBuilder(FormatterBuilder):
    """Configure a diktat step."""

    tool = "diktat"

    def __init__(
        self,
        pipeline: StepPipeline,
        version: str,
        *,
        resolve_path: PathResolver | None = None,
    ) -> None:
        super().__init__(
            pipeline,
            _new_snapshot(tool=self.tool, tool_version=version),
            resolve_path=resolve_path,
        )

    def config_file(self, path: Path | str | None) -> DiktatBuilder:
        """Use the diktat rules file at ``path``; ``None`` clears it.

        Raises:
            FileNotFound: If ``path`` does not exist.
        """

        reference = self._sign(path)
        self._reconfigure(lambda snapshot: snapshot.with_file_ref(CONFIG_ROLE, reference))
        return self


__all__ = [
    "BuilderState",
    "ConfigurableStyle",
    "DiktatBuilder",
    "FormatterBuilder",
    "KtfmtBuilder",
    "KtfmtFormattingOptions",
    "KtlintBuilder",
]
