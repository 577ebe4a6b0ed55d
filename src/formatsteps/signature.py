# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Content-addressed signatures for files referenced by formatter steps."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .errors import FileNotFound
from .serialization import JsonValue

_CHUNK_SIZE = 1 << 16


class FileSignature(BaseModel):
    """Fingerprint of a referenced file's content.

    Attributes:
        path: Absolute location the signature was computed from.
        digest: Hex-encoded SHA-256 of the file's bytes.
        exists: ``True`` when the file was present at signing time.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    digest: str
    exists: bool = True

    def cache_payload(self) -> JsonValue:
        """Return the cache-relevant view of the signature, excluding the path."""

        return {"exists": self.exists, "sha256": self.digest}


def _hash_file(path: Path) -> str:
    """Stream ``path`` through SHA-256 and return the hex digest."""

    hasher = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def compute(path: Path | str) -> FileSignature:
    """Sign the file at ```path```.

    Args:
        path: File that must exist.

    Returns:
        FileSignature: Signature derived from the file content.

    Raises:
        FileNotFound: If ```path``` does not name an existing regular file.
    """

    resolved = Path(path).resolve()
    if not resolved.is_file():
        raise FileNotFound(resolved)
    return FileSignature(path=resolved, digest=_hash_file(resolved))


def compute_optional(path: Path | str) -> FileSignature | None:
    """Sign ```path``` when it exists, otherwise return ``None``."""

    resolved = Path(path).resolve()
    if not resolved.is_file():
        return None
    return FileSignature(path=resolved, digest=_hash_file(resolved))


def sign_all(paths: Iterable[Path | str]) -> str:
    """Return a combined digest covering every file in ``paths``.

    The combined digest ignores the order in which paths are supplied and the
    location of each file; only the multiset of contents matters.

    Args:
        paths: Files that must all exist.

    Returns:
        str: Hex-encoded SHA-256 over the sorted per-file digests.

    Raises:
        FileNotFound: If any path is missing.
    """

    hasher = hashlib.sha256()
    for digest in sorted(compute(path).digest for path in paths):
        hasher.update(digest.encode("ascii"))
        hasher.update(b"\0")
    return hasher.hexdigest()


__all__ = ["FileSignature", "compute", "compute_optional", "sign_all"]
