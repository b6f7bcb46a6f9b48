"""Unit tests for archive targets."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import BootlogConfig
from core.errors import BootlogIOError, BootlogResolutionError
from core.types import IngestionContext
from store.archive_target import (
    ArchiveAppender,
    archive_path,
    build_output_target_step,
    ensure_output_dir,
    open_archive_target,
)
from tests.chunk_factory import build_work_item


def test_open_archive_target_creates_nested_directory(tmp_path: Path) -> None:
    """The output directory is created recursively on first use."""
    out_dir = tmp_path / "devices" / "D1"

    with open_archive_target(out_dir, "X", "gz", buffer_size=16) as appender:
        target = appender.path

    assert target == out_dir / "X.gz" and target.exists()


def test_ensure_output_dir_raises_when_path_is_a_file(tmp_path: Path) -> None:
    """A file in the way of the output directory is an IO error."""
    blocker = tmp_path / "out"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(BootlogIOError):
        ensure_output_dir(blocker / "D1")


@pytest.mark.parametrize("boot_id", ["", "..", "a/b", "a\\b"])
def test_archive_path_rejects_unsafe_boot_ids(tmp_path: Path, boot_id: str) -> None:
    """Boot ids must name a file inside the output directory."""
    with pytest.raises(BootlogResolutionError):
        archive_path(tmp_path, boot_id, "gz")


def test_appender_buffers_until_flush(tmp_path: Path) -> None:
    """Writes below the buffer size stay in memory until flushed."""
    target = tmp_path / "X.gz"
    appender = ArchiveAppender(target, buffer_size=1024)

    appender.write(b"abc")
    size_before_flush = target.stat().st_size
    appender.close()

    assert size_before_flush == 0 and target.read_bytes() == b"abc"


def test_appender_rollback_truncates_to_append_start(tmp_path: Path) -> None:
    """Rollback removes everything written since begin_append."""
    target = tmp_path / "X.gz"
    target.write_bytes(b"existing")
    with ArchiveAppender(target, buffer_size=2) as appender:
        appender.begin_append()
        appender.write(b"partial-member")
        appender.rollback()

    assert target.read_bytes() == b"existing"


def test_appender_close_is_idempotent(tmp_path: Path) -> None:
    """Closing twice is harmless."""
    appender = ArchiveAppender(tmp_path / "X.gz", buffer_size=4)

    appender.close()
    appender.close()

    assert appender.closed


def test_output_target_step_requires_boot_id(tmp_path: Path) -> None:
    """The step refuses to run before boot resolution."""
    step = build_output_target_step(BootlogConfig())
    context = IngestionContext(work_item=build_work_item(tmp_path / "c.gz", tmp_path / "out"))

    with pytest.raises(BootlogResolutionError):
        step(context)
