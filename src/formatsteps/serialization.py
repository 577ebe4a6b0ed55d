# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Canonical, order-independent serialization used for step cache keys."""

from __future__ import annotations

import hashlib
import json
import math
from collections.abc import Mapping, Sequence
from collections.abc import Set as AbstractSet
from enum import Enum
from pathlib import PurePath
from typing import Any, Protocol, TypeAlias, runtime_checkable

from pydantic import BaseModel

from .errors import UnsupportedConfigValue

JsonPrimitive: TypeAlias = str | int | float | bool | None
JsonValue: TypeAlias = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]


@runtime_checkable
class SupportsCachePayload(Protocol):
    """Protocol for values that describe their own cache-relevant payload."""

    def cache_payload(self) -> Any:
        """Return the portion of the value that participates in cache keys."""

        raise NotImplementedError


def canonicalize(value: Any, *, location: str = "$") -> JsonValue:
    """Convert ``value`` into a canonical JSON-compatible payload.

    Mapping keys are sorted lexicographically at every nesting level, sets are
    ordered by their canonical encoding and sequences keep their order.

    Args:
        value: Arbitrary configuration value.
        location: JSON-path-like position of ``value`` used in error messages.

    Returns:
        JsonValue: Canonical payload safe to hand to :func:`json.dumps`.

    Raises:
        UnsupportedConfigValue: If ``value`` (or a nested value) has no
            canonical representation.
    """

    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedConfigValue(value, location=location)
        return value
    if isinstance(value, Enum):
        return canonicalize(value.value, location=location)
    if isinstance(value, PurePath):
        return value.as_posix()
    if isinstance(value, SupportsCachePayload):
        return canonicalize(value.cache_payload(), location=location)
    if isinstance(value, BaseModel):
        return canonicalize(value.model_dump(mode="python"), location=location)
    if isinstance(value, Mapping):
        return _canonical_mapping(value, location=location)
    if isinstance(value, AbstractSet):
        items = [canonicalize(item, location=f"{location}[]") for item in value]
        return sorted(items, key=_encode)
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [canonicalize(item, location=f"{location}[{index}]") for index, item in enumerate(value)]
    raise UnsupportedConfigValue(value, location=location)


def _canonical_mapping(value: Mapping[Any, Any], *, location: str) -> dict[str, JsonValue]:
    result: dict[str, JsonValue] = {}
    for key in sorted(value, key=lambda item: str(item)):
        if not isinstance(key, str):
            raise UnsupportedConfigValue(key, location=f"{location}.<key>")
        result[key] = canonicalize(value[key], location=f"{location}.{key}")
    return result


def _encode(payload: JsonValue) -> str:
    """Encode ``payload`` with sorted keys and no insignificant whitespace."""

    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def serialize(value: Any) -> str:
    """Return the canonical text encoding of ``value``.

    Args:
        value: Configuration value to encode.

    Returns:
        str: Compact JSON text whose bytes are stable for equal inputs.
    """

    return _encode(canonicalize(value))


def fingerprint(value: Any) -> str:
    """Return the SHA-256 hex digest of the canonical encoding of ``value``."""

    return hashlib.sha256(serialize(value).encode("utf-8")).hexdigest()


__all__ = [
    "JsonPrimitive",
    "JsonValue",
    "SupportsCachePayload",
    "canonicalize",
    "fingerprint",
    "serialize",
]
