"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import BootlogConfig
from core.errors import BootlogConfigError


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fall back to gzip archives, YAML metadata, and 1 MiB buffers."""
    for name in (
        "BOOTLOG_ARCHIVE_EXT",
        "BOOTLOG_METADATA_EXT",
        "BOOTLOG_BUFFER_SIZE",
        "BOOTLOG_WORKERS",
        "BOOTLOG_QUARANTINE_DIR",
    ):
        monkeypatch.delenv(name, raising=False)

    config = BootlogConfig.from_env()

    assert (config.archive_ext, config.metadata_ext, config.buffer_size) == ("gz", "yaml", 1048576)


def test_from_env_reads_quarantine_dir(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve the quarantine directory from environment."""
    monkeypatch.setenv("BOOTLOG_QUARANTINE_DIR", "./.tmp-quarantine")

    config = BootlogConfig.from_env()

    assert config.quarantine_dir is not None and config.quarantine_dir.name == ".tmp-quarantine"


def test_from_env_raises_for_invalid_buffer_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric buffer size."""
    monkeypatch.setenv("BOOTLOG_BUFFER_SIZE", "not-a-number")

    with pytest.raises(BootlogConfigError):
        BootlogConfig.from_env()

    assert os.getenv("BOOTLOG_BUFFER_SIZE") == "not-a-number"


def test_from_env_raises_for_non_positive_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should reject zero worker threads."""
    monkeypatch.setenv("BOOTLOG_WORKERS", "0")

    with pytest.raises(BootlogConfigError):
        BootlogConfig.from_env()


def test_from_env_rejects_path_like_extension(monkeypatch: pytest.MonkeyPatch) -> None:
    """Extensions must be bare names, not paths."""
    monkeypatch.setenv("BOOTLOG_ARCHIVE_EXT", "../gz")

    with pytest.raises(BootlogConfigError):
        BootlogConfig.from_env()


def test_from_env_rejects_identical_extensions(monkeypatch: pytest.MonkeyPatch) -> None:
    """Archive and metadata files must not share a name."""
    monkeypatch.setenv("BOOTLOG_ARCHIVE_EXT", "log")
    monkeypatch.setenv("BOOTLOG_METADATA_EXT", "log")

    with pytest.raises(BootlogConfigError):
        BootlogConfig.from_env()
