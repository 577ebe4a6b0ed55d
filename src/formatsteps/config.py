# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Project configuration sources and replay into a step pipeline."""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .builders import DiktatBuilder, FormatterBuilder, KtfmtBuilder, KtfmtFormattingOptions, KtlintBuilder
from .errors import ConfigError
from .extension import SCRIPT_TARGET, ScriptFormatExtension
from .pipeline import StepPipeline
from .provisioning import Provisioner
from .steps import KTFMT_OPTION_TYPES

LOGGER = logging.getLogger(__name__)

PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
STANDALONE_FILENAME: Final[str] = ".formatsteps.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "formatsteps"

_TOOL_KEYS: Final[Mapping[str, frozenset[str]]] = {
    "ktlint": frozenset({"editorconfig", "user_data", "editorconfig_override"}),
    "ktfmt": frozenset({"style", "options"}),
    "diktat": frozenset({"config"}),
}


class StepConfig(BaseModel):
    """One ``[[steps]]`` entry.

    ``editorconfig = false`` (or ``config = false``) explicitly clears a file
    reference, which for ktlint also drops the project's default
    ``.editorconfig``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    tool: Literal["ktlint", "ktfmt", "diktat"]
    version: str | None = None
    editorconfig: str | Literal[False] | None = None
    user_data: dict[str, str] | None = None
    editorconfig_override: dict[str, Any] | None = None
    style: str | None = None
    options: dict[str, Any] | None = None
    config: str | Literal[False] | None = None

    @field_validator("editorconfig", "config")
    @classmethod
    def _reject_empty_path(cls, value: str | Literal[False] | None) -> str | Literal[False] | None:
        """Reject blank paths; clearing a reference is spelled ``false``.

        Args:
            value: Raw path, ``False`` or ``None``.

        Returns:
            str | Literal[False] | None: ``value`` unchanged when it is usable.

        Raises:
            ValueError: If ``value`` is an empty or whitespace-only string.
        """

        if isinstance(value, str) and not value.strip():
            raise ValueError("path must not be empty; use false to clear the reference")
        return value

    @model_validator(mode="after")
    def _check_keys(self) -> StepConfig:
        allowed = _TOOL_KEYS[self.tool] | {"tool", "version"}
        stray = sorted(name for name in self.model_fields_set if name not in allowed)
        if stray:
            raise ValueError(f"{self.tool} does not accept: {', '.join(stray)}")
        return self


class ProjectConfig(BaseModel):
    """Top-level ``[tool.formatsteps]`` table."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    target: tuple[str, ...] = SCRIPT_TARGET
    steps: tuple[StepConfig, ...] = Field(default_factory=tuple)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


class TomlConfigSource:
    """Load configuration from a standalone TOML document."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.name = str(path)

    def load(self) -> Mapping[str, Any]:
        if not self.path.is_file():
            return {}
        return _read_toml(self.path)

    def describe(self) -> str:
        return f"TOML configuration at {self.name}"


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.formatsteps]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        data = super().load()
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return dict(section)

    def describe(self) -> str:
        return f"pyproject.toml ({self.name})"


def load_config(root: Path) -> ProjectConfig:
    """Load the project configuration found under ``root``.

    A standalone ``.formatsteps.toml`` takes precedence over the
    ``[tool.formatsteps]`` table of ``pyproject.toml``.

    Args:
        root: Project root directory.

    Returns:
        ProjectConfig: Validated configuration, empty when nothing is found.

    Raises:
        ConfigError: If a configuration document is malformed.
    """

    for source in (TomlConfigSource(root / STANDALONE_FILENAME), PyProjectConfigSource(root / PYPROJECT_FILENAME)):
        data = source.load()
        if data:
            LOGGER.debug("loaded configuration from %s", source.describe())
            return parse_config(data, source=source.describe())
    return ProjectConfig()


def parse_config(data: Mapping[str, Any], *, source: str = "<memory>") -> ProjectConfig:
    try:
        return ProjectConfig.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid configuration in {source}: {exc}") from exc


@dataclass(slots=True)
class ConfiguredPipeline:
    """Pipeline compiled from configuration together with the builders owning its slots."""

    pipeline: StepPipeline
    extension: ScriptFormatExtension
    builders: tuple[FormatterBuilder, ...]


def _option_setter(options: Mapping[str, Any]) -> Callable[[KtfmtFormattingOptions], None]:
    unknown = sorted(set(options) - set(KTFMT_OPTION_TYPES))
    if unknown:
        raise ConfigError(f"Unknown ktfmt options: {', '.join(unknown)}")

    def apply(target: KtfmtFormattingOptions) -> None:
        for name, value in options.items():
            setattr(target, name, value)

    return apply


def _build_step(extension: ScriptFormatExtension, entry: StepConfig) -> FormatterBuilder:
    if entry.tool == "ktlint":
        ktlint: KtlintBuilder = extension.ktlint(entry.version)
        if entry.editorconfig is not None:
            ktlint.set_editor_config_path(None if entry.editorconfig is False else entry.editorconfig)
        if entry.user_data is not None:
            ktlint.user_data(entry.user_data)
        if entry.editorconfig_override is not None:
            ktlint.editor_config_override(entry.editorconfig_override)
        return ktlint
    if entry.tool == "ktfmt":
        ktfmt: KtfmtBuilder = extension.ktfmt(entry.version)
        if entry.style is not None:
            ktfmt.set_style(entry.style)
        if entry.options is not None:
            ktfmt.configure(_option_setter(entry.options))
        return ktfmt
    diktat: DiktatBuilder = extension.diktat(entry.version)
    if entry.config is not None:
        diktat.config_file(None if entry.config is False else entry.config)
    return diktat


def build_pipeline(config: ProjectConfig, root: Path, *, provisioner: Provisioner | None = None) -> ConfiguredPipeline:
    """Replay ``config`` through the builder setters.

    Args:
        config: Validated project configuration.
        root: Project root used to resolve relative file references.
        provisioner: Optional tool resolver handed to the pipeline.

    Returns:
        ConfiguredPipeline: The compiled pipeline and its builders.
    """

    pipeline = StepPipeline(provisioner=provisioner)
    extension = ScriptFormatExtension(pipeline, root, target=config.target)
    builders = tuple(_build_step(extension, entry) for entry in config.steps)
    return ConfiguredPipeline(pipeline=pipeline, extension=extension, builders=builders)


__all__ = [
    "ConfiguredPipeline",
    "ProjectConfig",
    "PyProjectConfigSource",
    "StepConfig",
    "TomlConfigSource",
    "build_pipeline",
    "load_config",
    "parse_config",
]
