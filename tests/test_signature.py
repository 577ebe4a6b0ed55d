# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for content-addressed file signatures."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from formatsteps.errors import FileNotFound, ValidationError
from formatsteps.serialization import serialize
from formatsteps.signature import compute, compute_optional, sign_all


def test_signature_hashes_content(tmp_path: Path) -> None:
    target = tmp_path / "rules.yml"
    target.write_text("X", encoding="utf-8")

    signature = compute(target)

    assert signature.digest == hashlib.sha256(b"X").hexdigest()
    assert signature.exists is True
    assert signature.path == target.resolve()


def test_signature_is_independent_of_location(tmp_path: Path) -> None:
    first = tmp_path / "a" / ".editorconfig"
    second = tmp_path / "b" / ".editorconfig"
    for path in (first, second):
        path.parent.mkdir()
        path.write_text("root = true\n", encoding="utf-8")

    assert serialize(compute(first)) == serialize(compute(second))
    assert str(tmp_path) not in serialize(compute(first))


def test_signature_changes_with_content(tmp_path: Path) -> None:
    target = tmp_path / "rules.yml"
    target.write_text("X", encoding="utf-8")
    before = compute(target)
    target.write_text("Y", encoding="utf-8")

    assert compute(target).digest != before.digest


def test_missing_required_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFound) as excinfo:
        compute(tmp_path / "missing")

    assert isinstance(excinfo.value, ValidationError)


def test_directory_is_not_a_signable_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFound):
        compute(tmp_path)


def test_optional_signature(tmp_path: Path) -> None:
    assert compute_optional(tmp_path / "missing") is None
    present = tmp_path / "present"
    present.write_text("data", encoding="utf-8")
    optional = compute_optional(present)
    assert optional is not None
    assert optional.digest == compute(present).digest


def test_sign_all_ignores_order(tmp_path: Path) -> None:
    one = tmp_path / "one"
    two = tmp_path / "two"
    one.write_text("1", encoding="utf-8")
    two.write_text("2", encoding="utf-8")

    assert sign_all([one, two]) == sign_all([two, one])
    with pytest.raises(FileNotFound):
        sign_all([one, tmp_path / "three"])
