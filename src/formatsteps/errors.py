# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception taxonomy raised while compiling formatter steps."""

from __future__ import annotations

from pathlib import Path


class FormatStepsError(Exception):
    """Base class for every error surfaced by formatter step compilation."""


class ValidationError(FormatStepsError):
    """Raised when a builder setter receives bad or missing required input."""


class FileNotFound(ValidationError):
    """Raised when an explicitly referenced file does not exist."""

    def __init__(self, path: Path) -> None:
        """Create the error for the missing ``path``.

        Args:
            path: Location that was expected to hold a regular file.
        """

        super().__init__(f"Referenced file does not exist: {path}")
        self.path = path


class UnsupportedConfigValue(FormatStepsError):
    """Raised when a configuration value cannot be canonically serialized."""

    def __init__(self, value: object, *, location: str = "$") -> None:
        super().__init__(f"Unsupported configuration value at {location}: {type(value).__name__} ({value!r})")
        self.value = value
        self.location = location


class ToolResolutionError(FormatStepsError):
    """Raised when the provisioner cannot obtain the requested tool version."""

    def __init__(self, tool: str, version: str, reason: str | None = None) -> None:
        message = f"Unable to resolve {tool} {version}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.tool = tool
        self.version = version


class ConfigError(FormatStepsError):
    """Raised when configuration input is invalid."""


__all__ = [
    "ConfigError",
    "FileNotFound",
    "FormatStepsError",
    "ToolResolutionError",
    "UnsupportedConfigValue",
    "ValidationError",
]
