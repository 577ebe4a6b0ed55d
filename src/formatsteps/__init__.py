# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Compile mutable formatter configuration into immutable, cacheable steps."""

from __future__ import annotations

from importlib import metadata

from .builders import BuilderState, DiktatBuilder, KtfmtBuilder, KtfmtFormattingOptions, KtlintBuilder
from .errors import (
    ConfigError,
    FileNotFound,
    FormatStepsError,
    ToolResolutionError,
    UnsupportedConfigValue,
    ValidationError,
)
from .extension import ScriptFormatExtension
from .pipeline import StepPipeline, StepSlot
from .serialization import canonicalize, fingerprint, serialize
from .signature import FileSignature, compute, compute_optional
from .snapshot import ConfigurationSnapshot, FileReference, ReferenceState
from .steps import Step, compile_step

__all__ = [
    "BuilderState",
    "ConfigError",
    "ConfigurationSnapshot",
    "DiktatBuilder",
    "FileNotFound",
    "FileReference",
    "FileSignature",
    "FormatStepsError",
    "KtfmtBuilder",
    "KtfmtFormattingOptions",
    "KtlintBuilder",
    "ReferenceState",
    "ScriptFormatExtension",
    "Step",
    "StepPipeline",
    "StepSlot",
    "ToolResolutionError",
    "UnsupportedConfigValue",
    "ValidationError",
    "__version__",
    "canonicalize",
    "compile_step",
    "compute",
    "compute_optional",
    "fingerprint",
    "serialize",
]

try:
    __version__ = metadata.version("formatsteps")
except metadata.PackageNotFoundError:  # pragma: no cover - local development fallback
    __version__ = "0.0.0"
