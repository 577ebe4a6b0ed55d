# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatter steps and the factories compiling snapshots into them."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Final, Protocol

from pydantic import BaseModel, ConfigDict, Field

from .errors import ToolResolutionError, ValidationError
from .provisioning import Provisioner, ResolvedTool
from .serialization import JsonValue, canonicalize, fingerprint, serialize
from .snapshot import ConfigurationSnapshot

EDITORCONFIG_ROLE: Final[str] = "editorconfig"
CONFIG_ROLE: Final[str] = "config"


class KtfmtStyle(str, Enum):
    """Styles understood by ktfmt."""

    DEFAULT = "default"
    DROPBOX = "dropbox"
    GOOGLE = "google"
    KOTLINLANG = "kotlinlang"


KTFMT_OPTION_TYPES: Final[Mapping[str, type]] = {
    "max_width": int,
    "block_indent": int,
    "continuation_indent": int,
    "remove_unused_imports": bool,
}


class FormatterInvocation(BaseModel):
    """Describe how a runner should invoke a resolved formatter.

    Attributes:
        coordinate: Artifact coordinate supplied by the provisioner.
        args: Command-line arguments, files last.
        settings: Structured settings the runner injects in-process.
    """

    model_config = ConfigDict(frozen=True)

    coordinate: str
    args: tuple[str, ...]
    settings: Mapping[str, Any] = Field(default_factory=dict)


class CommandProducer(Protocol):
    """Build a formatter invocation for a set of target files."""

    def build(self, files: Sequence[Path]) -> FormatterInvocation:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class _KtlintCommand:
    snapshot: ConfigurationSnapshot
    tool: ResolvedTool

    def build(self, files: Sequence[Path]) -> FormatterInvocation:
        cmd = ["ktlint", "--format"]
        editorconfig = self.snapshot.file_ref(EDITORCONFIG_ROLE).signature
        if editorconfig is not None:
            cmd.append(f"--editorconfig={editorconfig.path}")
        cmd.extend(str(path) for path in files)
        settings: dict[str, JsonValue] = {}
        if self.snapshot.named_options:
            settings["user_data"] = canonicalize(self.snapshot.named_options)
        if self.snapshot.override_options:
            settings["editorconfig_override"] = canonicalize(self.snapshot.override_options)
        return FormatterInvocation(coordinate=self.tool.coordinate, args=tuple(cmd), settings=settings)


@dataclass(frozen=True, slots=True)
class _KtfmtCommand:
    snapshot: ConfigurationSnapshot
    tool: ResolvedTool

    def build(self, files: Sequence[Path]) -> FormatterInvocation:
        cmd = ["ktfmt"]
        style = KtfmtStyle(self.snapshot.variant or KtfmtStyle.DEFAULT.value)
        if style is not KtfmtStyle.DEFAULT:
            cmd.append(f"--{style.value}-style")
        options = self.snapshot.override_options
        for name in ("max_width", "block_indent", "continuation_indent"):
            if name in options:
                cmd.append(f"--{name.replace('_', '-')}={options[name]}")
        if options.get("remove_unused_imports") is False:
            cmd.append("--do-not-remove-unused-imports")
        cmd.extend(str(path) for path in files)
        return FormatterInvocation(coordinate=self.tool.coordinate, args=tuple(cmd))


@dataclass(frozen=True, slots=True)
class _DiktatCommand:
    snapshot: ConfigurationSnapshot
    tool: ResolvedTool

    def build(self, files: Sequence[Path]) -> FormatterInvocation:
        cmd = ["diktat", "--mode=fix"]
        config = self.snapshot.file_ref(CONFIG_ROLE).signature
        if config is not None:
            cmd.append(f"--config={config.path}")
        cmd.extend(str(path) for path in files)
        return FormatterInvocation(coordinate=self.tool.coordinate, args=tuple(cmd))


@dataclass(frozen=True, slots=True, eq=False)
class Step:
    """Immutable unit of work registered into a pipeline.

    Steps compare and hash by their canonical serialization, so two steps
    compiled from cache-equivalent snapshots are interchangeable.
    """

    name: str
    snapshot: ConfigurationSnapshot
    tool: ResolvedTool
    producer: CommandProducer = field(repr=False)

    def cache_payload(self) -> JsonValue:
        return {
            "name": self.name,
            "snapshot": self.snapshot.cache_payload(),
            "tool": self.tool.cache_payload(),
        }

    def cache_key(self) -> str:
        return serialize(self)

    def fingerprint(self) -> str:
        return fingerprint(self)

    def command(self, files: Iterable[Path]) -> FormatterInvocation:
        """Return the invocation formatting ``files`` with this step's configuration."""

        return self.producer.build(tuple(files))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Step):
            return NotImplemented
        return self.cache_key() == other.cache_key()

    def __hash__(self) -> int:
        return hash(self.cache_key())


StepFactory = Callable[[ConfigurationSnapshot, Provisioner], Step]


def _normalise_roles(snapshot: ConfigurationSnapshot, roles: tuple[str, ...]) -> ConfigurationSnapshot:
    unknown = sorted(set(snapshot.file_refs) - set(roles))
    if unknown:
        raise ValidationError(f"{snapshot.tool} does not accept file references: {', '.join(unknown)}")
    refs = {role: snapshot.file_ref(role) for role in roles}
    if refs == dict(snapshot.file_refs):
        return snapshot
    return snapshot.evolve(file_refs=refs)


def _reject_variant(snapshot: ConfigurationSnapshot) -> None:
    if snapshot.variant is not None:
        raise ValidationError(f"{snapshot.tool} has no style variants (got {snapshot.variant!r})")


def compile_ktlint(snapshot: ConfigurationSnapshot, provisioner: Provisioner) -> Step:
    _reject_variant(snapshot)
    snapshot = _normalise_roles(snapshot, (EDITORCONFIG_ROLE,))
    tool = provisioner.resolve(snapshot.tool, snapshot.tool_version)
    return Step(name="ktlint", snapshot=snapshot, tool=tool, producer=_KtlintCommand(snapshot, tool))


def validate_ktfmt_options(options: Mapping[str, Any]) -> None:
    """Check ktfmt formatting overrides against their expected types.

    Raises:
        ValidationError: If an option is unknown or carries the wrong type.
    """

    for name, value in options.items():
        expected = KTFMT_OPTION_TYPES.get(name)
        if expected is None:
            raise ValidationError(f"Unknown ktfmt option: {name}")
        if expected is int and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
            raise ValidationError(f"ktfmt option {name} must be a positive integer, got {value!r}")
        if expected is bool and not isinstance(value, bool):
            raise ValidationError(f"ktfmt option {name} must be a boolean, got {value!r}")


def compile_ktfmt(snapshot: ConfigurationSnapshot, provisioner: Provisioner) -> Step:
    try:
        KtfmtStyle(snapshot.variant or KtfmtStyle.DEFAULT.value)
    except ValueError as exc:
        raise ValidationError(f"Unknown ktfmt style: {snapshot.variant!r}") from exc
    if snapshot.named_options:
        raise ValidationError("ktfmt does not accept named options")
    validate_ktfmt_options(snapshot.override_options)
    snapshot = _normalise_roles(snapshot, ())
    tool = provisioner.resolve(snapshot.tool, snapshot.tool_version)
    return Step(name="ktfmt", snapshot=snapshot, tool=tool, producer=_KtfmtCommand(snapshot, tool))


def compile_diktat(snapshot: ConfigurationSnapshot, provisioner: Provisioner) -> Step:
    _reject_variant(snapshot)
    if snapshot.named_options or snapshot.override_options:
        raise ValidationError("diktat is configured through its config file only")
    snapshot = _normalise_roles(snapshot, (CONFIG_ROLE,))
    tool = provisioner.resolve(snapshot.tool, snapshot.tool_version)
    return Step(name="diktat", snapshot=snapshot, tool=tool, producer=_DiktatCommand(snapshot, tool))


STEP_FACTORIES: Final[Mapping[str, StepFactory]] = {
    "ktlint": compile_ktlint,
    "ktfmt": compile_ktfmt,
    "diktat": compile_diktat,
}


def compile_step(snapshot: ConfigurationSnapshot, provisioner: Provisioner) -> Step:
    """Compile ``snapshot`` into a :class:`Step`.

    The snapshot is never modified. Equal snapshots compile to steps with equal
    cache keys.

    Args:
        snapshot: Configuration to compile.
        provisioner: Collaborator resolving the requested tool version.

    Returns:
        Step: Newly compiled step.

    Raises:
        ToolResolutionError: If no factory exists for the tool or the
            provisioner cannot resolve the version.
        ValidationError: If the snapshot holds options the tool rejects.
    """

    factory = STEP_FACTORIES.get(snapshot.tool)
    if factory is None:
        raise ToolResolutionError(snapshot.tool, snapshot.tool_version, "no step factory is registered")
    return factory(snapshot, provisioner)


__all__ = [
    "CONFIG_ROLE",
    "EDITORCONFIG_ROLE",
    "FormatterInvocation",
    "KTFMT_OPTION_TYPES",
    "KtfmtStyle",
    "STEP_FACTORIES",
    "Step",
    "StepFactory",
    "compile_diktat",
    "compile_ktfmt",
    "compile_ktlint",
    "compile_step",
    "validate_ktfmt_options",
]
