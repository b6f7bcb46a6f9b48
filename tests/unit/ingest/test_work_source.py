"""Unit tests for JSONL work manifests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from core.errors import BootlogWorkSourceError
from ingest.work_source import read_work_items


def _row(**overrides: object) -> str:
    payload: dict[str, object] = {
        "staging_path": "staging/chunk.gz",
        "output_dir": "out/D1",
        "device_id": "D1",
        "package_name": "edu.buffalo.cse.phonelab",
        "version": "1.0",
        "upload_timestamp": 1000,
    }
    payload.update(overrides)
    return json.dumps(payload)


def test_read_work_items_resolves_relative_paths(tmp_path: Path) -> None:
    """Relative paths should resolve against the manifest directory."""
    manifest = tmp_path / "work.jsonl"
    manifest.write_text(_row() + "\n\n" + _row(version="1.1") + "\n", encoding="utf-8")

    items = read_work_items(manifest)

    assert [item.version for item in items] == ["1.0", "1.1"]
    assert items[0].staging_path == tmp_path / "staging" / "chunk.gz"


def test_read_work_items_keeps_absolute_paths(tmp_path: Path) -> None:
    """Absolute paths are used as given."""
    manifest = tmp_path / "work.jsonl"
    manifest.write_text(_row(output_dir="/srv/bootlog/D1") + "\n", encoding="utf-8")

    items = read_work_items(manifest)

    assert items[0].output_dir == Path("/srv/bootlog/D1")


def test_read_work_items_raises_for_invalid_json(tmp_path: Path) -> None:
    """Malformed lines should fail with their location."""
    manifest = tmp_path / "work.jsonl"
    manifest.write_text(_row() + "\n{not json\n", encoding="utf-8")

    with pytest.raises(BootlogWorkSourceError, match=":2"):
        read_work_items(manifest)


def test_read_work_items_raises_for_mistyped_timestamp(tmp_path: Path) -> None:
    """Upload timestamps must be integers."""
    manifest = tmp_path / "work.jsonl"
    manifest.write_text(_row(upload_timestamp="soon") + "\n", encoding="utf-8")

    with pytest.raises(BootlogWorkSourceError):
        read_work_items(manifest)


def test_read_work_items_raises_for_missing_manifest(tmp_path: Path) -> None:
    """A missing manifest is a work source error."""
    with pytest.raises(BootlogWorkSourceError):
        read_work_items(tmp_path / "missing.jsonl")
