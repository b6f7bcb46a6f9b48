"""Boot session resolution for staged chunks.

This module opens staged chunks with transparent gzip detection and
scans their lines to find the boot session a chunk belongs to.
Each step opens the staged file fresh, so resolution and transfer
read the full content independently.
"""

from __future__ import annotations

import gzip
import zlib
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO, Iterator

from core.constants import GZIP_MAGIC, MAX_SCANNED_LINE_BYTES, STAGED_TEXT_ENCODING
from core.errors import BootlogIOError, BootlogResolutionError
from core.logging_config import get_logger
from core.types import IngestionContext, LogLineParser, ProcessingStep

_LOGGER = get_logger(__name__)


def open_staged_stream(staging_path: Path) -> BinaryIO:
    """Open a staged chunk for reading decompressed bytes.

    Args:
        staging_path: Staged chunk path, gzip-compressed or plain.

    Returns:
        Binary stream of the chunk's decompressed content.

    Raises:
        BootlogIOError: If the file cannot be opened.
    """
    with _wrap_read_errors(staging_path):
        with staging_path.open("rb") as probe:
            is_gzip = probe.read(len(GZIP_MAGIC)) == GZIP_MAGIC
        if is_gzip:
            return gzip.open(staging_path, "rb")
        return staging_path.open("rb")


def iter_staged_lines(
    stream: BinaryIO,
    max_line_bytes: int = MAX_SCANNED_LINE_BYTES,
) -> Iterator[str]:
    """Yield decoded lines without their trailing newline.

    Lines longer than ``max_line_bytes`` are cut to that length and the
    rest of such a line is skipped in bounded reads, so scanning never
    holds more than one bounded piece in memory.
    """
    skipping = False
    while True:
        piece = stream.readline(max_line_bytes)
        if not piece:
            return
        if not skipping:
            yield piece.decode(STAGED_TEXT_ENCODING, errors="replace").rstrip("\r\n")
        skipping = not piece.endswith(b"\n")


def resolve_boot_id(
    stream: BinaryIO,
    parser: LogLineParser,
    source: Path | None = None,
) -> str:
    """Return the boot id of the first parseable line in ``stream``.

    Only one boot id is assumed per chunk, so reading stops at the
    first line the parser accepts.

    Args:
        stream: Decompressed chunk content.
        parser: Log-line tokenizer.
        source: Chunk path used in error messages.

    Returns:
        Resolved boot identifier.

    Raises:
        BootlogResolutionError: If no line yields a boot id.
        BootlogIOError: If the stream cannot be decompressed.
    """
    with _wrap_read_errors(source):
        for line in iter_staged_lines(stream):
            parsed = parser(line)
            if parsed is not None:
                return parsed.boot_id
    raise BootlogResolutionError(
        f"No parseable log line found in staged chunk {source or '<stream>'}. "
        "The chunk cannot be assigned to a boot session."
    )


def resolve_content_timestamps(
    staging_path: Path,
    parser: LogLineParser,
) -> tuple[int | None, int | None]:
    """Return the first and last line timestamps of a staged chunk.

    Args:
        staging_path: Staged chunk path.
        parser: Log-line tokenizer.

    Returns:
        ``(start, end)`` timestamps, ``(None, None)`` when no line has one.

    Raises:
        BootlogIOError: If the chunk cannot be read.
    """
    start_timestamp: int | None = None
    end_timestamp: int | None = None
    with open_staged_stream(staging_path) as stream, _wrap_read_errors(staging_path):
        for line in iter_staged_lines(stream):
            parsed = parser(line)
            if parsed is None or parsed.timestamp is None:
                continue
            if start_timestamp is None:
                start_timestamp = parsed.timestamp
            end_timestamp = parsed.timestamp
    return start_timestamp, end_timestamp


def build_boot_resolution_step(parser: LogLineParser) -> ProcessingStep:
    """Build the pre-processing step that resolves a chunk's boot id."""

    def resolve_boot_session(context: IngestionContext) -> IngestionContext:
        staging_path = context.work_item.staging_path
        with open_staged_stream(staging_path) as stream:
            boot_id = resolve_boot_id(stream, parser, source=staging_path)
        _LOGGER.info("boot_id_resolved", staging_path=str(staging_path), boot_id=boot_id)
        return replace(context, boot_id=boot_id)

    return resolve_boot_session


def build_timestamp_step(parser: LogLineParser) -> ProcessingStep:
    """Build the pre-processing step that records content start/end times."""

    def resolve_timestamps(context: IngestionContext) -> IngestionContext:
        start_timestamp, end_timestamp = resolve_content_timestamps(
            context.work_item.staging_path, parser
        )
        return replace(context, start_timestamp=start_timestamp, end_timestamp=end_timestamp)

    return resolve_timestamps


@contextmanager
def _wrap_read_errors(source: Path | None) -> Iterator[None]:
    """Translate file and decompression failures into BootlogIOError."""
    try:
        yield
    except (OSError, EOFError, zlib.error) as error:
        raise BootlogIOError(
            f"Failed to read staged chunk {source or '<stream>'}: {error}. "
            "Check that the staged file exists and is a complete gzip or text file."
        ) from error
