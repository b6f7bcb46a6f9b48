"""Unit tests for the default log-line parser."""

from __future__ import annotations

from core.types import ParsedLogLine
from ingest.log_line import parse_log_line


def test_parse_log_line_reads_boot_and_timestamp() -> None:
    """Parser should extract both tokens regardless of position."""
    parsed = parse_log_line("I/ActivityManager ts=1500 boot=abc-123 started")

    assert parsed == ParsedLogLine(boot_id="abc-123", timestamp=1500)


def test_parse_log_line_allows_missing_timestamp() -> None:
    """A boot token alone is enough to make a line parseable."""
    parsed = parse_log_line("boot=X hello")

    assert parsed == ParsedLogLine(boot_id="X", timestamp=None)


def test_parse_log_line_rejects_lines_without_boot_id() -> None:
    """Lines without a usable boot token are not parseable."""
    results = [parse_log_line(line) for line in ("", "hello world", "boot= empty", "ts=5")]

    assert results == [None, None, None, None]


def test_parse_log_line_rejects_malformed_timestamp() -> None:
    """A non-numeric timestamp makes the line unparseable."""
    assert parse_log_line("boot=X ts=yesterday") is None
