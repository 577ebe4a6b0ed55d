# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tool resolution collaborators handed to the step factories."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from .errors import ToolResolutionError
from .serialization import JsonValue

LOGGER = logging.getLogger(__name__)

_VERSION_FILE: Final[str] = "tool-versions.json"
_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+(?:\.\d+)*(?:[-.][0-9A-Za-z]+)*$")


class ToolCoordinates(BaseModel):
    """Describe where a formatter's artifact lives and its default version."""

    model_config = ConfigDict(frozen=True)

    group: str
    artifact: str
    default_version: str

    def coordinate(self, version: str) -> str:
        """Return the ``group:artifact:version`` coordinate for ``version``."""

        return f"{self.group}:{self.artifact}:{version}"


class ResolvedTool(BaseModel):
    """A formatter version the provisioner has agreed to supply."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    coordinate: str

    def cache_payload(self) -> JsonValue:
        """Return the coordinate, name and version identifying this tool in cache keys."""

        return {"coordinate": self.coordinate, "name": self.name, "version": self.version}


DEFAULT_CATALOG: Final[Mapping[str, ToolCoordinates]] = {
    "ktlint": ToolCoordinates(group="com.pinterest.ktlint", artifact="ktlint-cli", default_version="1.0.1"),
    "ktfmt": ToolCoordinates(group="com.facebook", artifact="ktfmt", default_version="0.46"),
    "diktat": ToolCoordinates(group="com.saveourtool.diktat", artifact="diktat-runner", default_version="1.2.5"),
}


@runtime_checkable
class Provisioner(Protocol):
    """Resolve a formatter name and version into a :class:`ResolvedTool`."""

    def resolve(self, tool: str, version: str) -> ResolvedTool:
        """Return the resolved tool or raise :class:`ToolResolutionError`."""

        raise NotImplementedError

    def default_version(self, tool: str) -> str:
        """Return the version used when a builder does not name one."""

        raise NotImplementedError


class CatalogProvisioner:
    """Resolve tools against a static catalog of artifact coordinates.

    ``available`` optionally restricts the versions that may be resolved per
    tool, which models an offline mirror. Resolved versions are recorded in a
    ``tool-versions.json`` manifest when ``cache_dir`` is supplied.
    """

    def __init__(
        self,
        catalog: Mapping[str, ToolCoordinates] | None = None,
        *,
        available: Mapping[str, frozenset[str]] | None = None,
        cache_dir: Path | None = None,
    ) -> None:
        self._catalog = dict(DEFAULT_CATALOG if catalog is None else catalog)
        self._available = dict(available or {})
        self._cache_dir = cache_dir

    @property
    def tools(self) -> tuple[str, ...]:
        return tuple(sorted(self._catalog))

    def default_version(self, tool: str) -> str:
        """Return the catalog default for ``tool``.

        Raises:
            ToolResolutionError: If ``tool`` is not in the catalog.
        """

        coords = self._catalog.get(tool)
        if coords is None:
            raise ToolResolutionError(tool, "<default>", "tool is not in the catalog")
        return coords.default_version

    def resolve(self, tool: str, version: str) -> ResolvedTool:
        """Resolve ```tool``` at ```version```.

        Args:
            tool: Catalog name of the formatter.
            version: Requested version string.

        Returns:
            ResolvedTool: Resolved artifact coordinate.

        Raises:
            ToolResolutionError: If the tool is unknown, the version is
                malformed, or the version is not available.
        """

        coords = self._catalog.get(tool)
        if coords is None:
            raise ToolResolutionError(tool, version, "tool is not in the catalog")
        if not _VERSION_PATTERN.match(version):
            raise ToolResolutionError(tool, version, "malformed version string")
        allowed = self._available.get(tool)
        if allowed is not None and version not in allowed:
            raise ToolResolutionError(tool, version, "version is not available")
        resolved = ResolvedTool(name=tool, version=version, coordinate=coords.coordinate(version))
        LOGGER.debug("resolved %s to %s", tool, resolved.coordinate)
        if self._cache_dir is not None:
            versions = load_versions(self._cache_dir)
            if versions.get(tool) != version:
                versions[tool] = version
                save_versions(self._cache_dir, versions)
        return resolved


def load_versions(cache_dir: Path) -> dict[str, str]:
    """Read recorded tool versions from ``cache_dir``.

    Args:
        cache_dir: Directory location that may contain the version manifest.

    Returns:
        dict[str, str]: Mapping of tool name to recorded version string.
    """
    path = cache_dir / _VERSION_FILE
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        LOGGER.warning("ignoring unreadable tool version manifest at %s", path)
        return {}
    if not isinstance(data, dict):
        return {}
    return {str(k): str(v) for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}


def save_versions(cache_dir: Path, versions: Mapping[str, str]) -> None:
    """Write tool version information into ``cache_dir``."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    path = cache_dir / _VERSION_FILE
    path.write_text(json.dumps(dict(versions), indent=2, sort_keys=True), encoding="utf-8")


__all__ = [
    "CatalogProvisioner",
    "DEFAULT_CATALOG",
    "Provisioner",
    "ResolvedTool",
    "ToolCoordinates",
    "load_versions",
    "save_versions",
]
