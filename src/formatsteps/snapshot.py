# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable configuration snapshots compiled into formatter steps."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .serialization import JsonValue, canonicalize, fingerprint, serialize
from .signature import FileSignature

ABSENT = "absent"


def _freeze(value: JsonValue) -> Any:
    """Return ``value`` with mappings as read-only proxies and lists as tuples."""

    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


class ReferenceState(str, Enum):
    """Enumerate the lifecycle of a file reference held by a snapshot."""

    UNSET = "unset"
    CLEARED = "cleared"
    SET = "set"


class FileReference(BaseModel):
    """Tri-state reference to an external file.

    ``UNSET`` means the reference was never configured, ``CLEARED`` means a
    caller explicitly assigned the absent state. Both encode identically in
    cache keys because the formatter behaves the same for either.
    """

    model_config = ConfigDict(frozen=True)

    state: ReferenceState = ReferenceState.UNSET
    signature: FileSignature | None = None

    @model_validator(mode="after")
    def _check_state(self) -> FileReference:
        if (self.state is ReferenceState.SET) != (self.signature is not None):
            raise ValueError("a file reference carries a signature exactly when it is set")
        return self

    @classmethod
    def unset(cls) -> FileReference:
        """Return a reference that was never configured."""

        return cls()

    @classmethod
    def cleared(cls) -> FileReference:
        """Return a reference explicitly set to the absent state."""

        return cls(state=ReferenceState.CLEARED)

    @classmethod
    def of(cls, signature: FileSignature | None) -> FileReference:
        """Return a ``SET`` reference, or ``CLEARED`` when ``signature`` is ``None``."""

        if signature is None:
            return cls.cleared()
        return cls(state=ReferenceState.SET, signature=signature)

    @property
    def is_set(self) -> bool:
        return self.state is ReferenceState.SET

    def cache_payload(self) -> JsonValue:
        """Return the cache-relevant view of the reference.

        Returns:
            JsonValue: ``"absent"`` for unset and cleared references, otherwise
            the signature payload carrying the content digest.
        """

        if self.signature is None:
            return ABSENT
        return self.signature.cache_payload()


class ConfigurationSnapshot(BaseModel):
    """All options currently set for one formatter binding.

    Snapshots never change after construction; :meth:`evolve` returns a new
    snapshot carrying the requested changes.

    Attributes:
        tool: Formatter name, e.g. ``"ktlint"``.
        tool_version: Requested formatter version.
        variant: Optional style selector.
        named_options: String options passed through to the formatter.
        override_options: Arbitrary overrides; must be canonically serializable.
        file_refs: File references keyed by role (``"editorconfig"``, ``"config"``).
    """

    model_config = ConfigDict(frozen=True)

    tool: str
    tool_version: str
    variant: str | None = None
    named_options: Mapping[str, str] = Field(default_factory=dict)
    override_options: Mapping[str, Any] = Field(default_factory=dict)
    file_refs: Mapping[str, FileReference] = Field(default_factory=dict)

    @field_validator("tool", "tool_version")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("named_options", "file_refs", mode="after")
    @classmethod
    def _freeze_mapping(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_validator("override_options", mode="after")
    @classmethod
    def _freeze_overrides(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        """Store overrides in canonical form, frozen at every nesting level.

        Args:
            value: Override mapping supplied by the caller.

        Returns:
            Mapping[str, Any]: Read-only canonical copy sharing nothing with ``value``.

        Raises:
            UnsupportedConfigValue: If a nested value cannot be serialized.
        """

        return _freeze(canonicalize(value, location="$.override_options"))

    def cache_payload(self) -> JsonValue:
        """Return the payload whose canonical encoding identifies this snapshot."""

        return {
            "tool": self.tool,
            "version": self.tool_version,
            "variant": self.variant,
            "named_options": canonicalize(self.named_options, location="$.named_options"),
            "override_options": canonicalize(self.override_options, location="$.override_options"),
            "file_refs": {role: ref.cache_payload() for role, ref in self.file_refs.items()},
        }

    def cache_key(self) -> str:
        """Return the canonical serialization of this snapshot."""

        return serialize(self)

    def fingerprint(self) -> str:
        return fingerprint(self)

    def file_ref(self, role: str) -> FileReference:
        return self.file_refs.get(role, FileReference.unset())

    def evolve(self, **changes: Any) -> ConfigurationSnapshot:
        """Return a validated copy of this snapshot with ``changes`` applied.

        Args:
            **changes: Field values replacing the current ones.

        Returns:
            ConfigurationSnapshot: A new snapshot; ``self`` is left untouched.
        """

        payload: dict[str, Any] = {
            "tool": self.tool,
            "tool_version": self.tool_version,
            "variant": self.variant,
            "named_options": dict(self.named_options),
            "override_options": dict(self.override_options),
            "file_refs": dict(self.file_refs),
        }
        payload.update(changes)
        return ConfigurationSnapshot(**payload)

    def with_file_ref(self, role: str, reference: FileReference) -> ConfigurationSnapshot:
        refs = dict(self.file_refs)
        refs[role] = reference
        return self.evolve(file_refs=refs)

    def describe(self) -> dict[str, Any]:
        """Return a human-oriented view that keeps the unset/cleared distinction."""

        refs: dict[str, Any] = {}
        for role, ref in sorted(self.file_refs.items()):
            if ref.signature is None:
                refs[role] = ref.state.value
            else:
                refs[role] = {"path": str(ref.signature.path), "sha256": ref.signature.digest}
        return {
            "tool": self.tool,
            "version": self.tool_version,
            "variant": self.variant,
            "named_options": dict(sorted(self.named_options.items())),
            "override_options": canonicalize(self.override_options),
            "file_refs": refs,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigurationSnapshot):
            return NotImplemented
        return self.cache_key() == other.cache_key()

    def __hash__(self) -> int:
        return hash(self.cache_key())


__all__ = ["ABSENT", "ConfigurationSnapshot", "FileReference", "ReferenceState"]
