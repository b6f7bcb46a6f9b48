"""Transfer of staged chunk content into boot session archives.

Each transfer appends exactly one new gzip member to the archive.
Gzip readers decompress concatenated members back to back, so the
archive always decompresses to every transferred chunk in order.
"""

from __future__ import annotations

import threading
import zlib
from pathlib import Path
from typing import BinaryIO

from core.constants import GZIP_WBITS
from core.errors import BootlogCancelledError, BootlogIOError
from core.logging_config import get_logger
from ingest.boot_resolver import open_staged_stream
from store.archive_target import ArchiveAppender

_LOGGER = get_logger(__name__)


def append_staged_content(
    staging_path: Path,
    appender: ArchiveAppender,
    buffer_size: int,
    cancel_event: threading.Event | None = None,
) -> int:
    """Decompress a staged chunk and append it as one gzip member.

    Args:
        staging_path: Staged chunk path.
        appender: Open archive appender for the chunk's boot id.
        buffer_size: Read buffer size in bytes.
        cancel_event: Optional token checked between buffers.

    Returns:
        Number of decompressed bytes appended.

    Raises:
        BootlogIOError: If decompression, reading, or writing fails.
        BootlogCancelledError: If ``cancel_event`` is set mid-transfer.
    """
    appender.begin_append()
    try:
        bytes_appended = _copy_as_gzip_member(staging_path, appender, buffer_size, cancel_event)
        appender.flush()
    except BaseException:
        appender.rollback()
        raise
    _LOGGER.info(
        "staged_content_appended",
        staging_path=str(staging_path),
        archive_path=str(appender.path),
        bytes_appended=bytes_appended,
    )
    return bytes_appended


def _copy_as_gzip_member(
    staging_path: Path,
    appender: ArchiveAppender,
    buffer_size: int,
    cancel_event: threading.Event | None,
) -> int:
    """Stream decompressed chunk bytes through a fresh gzip compressor."""
    compressor = zlib.compressobj(wbits=GZIP_WBITS)
    bytes_appended = 0
    with open_staged_stream(staging_path) as source:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise BootlogCancelledError(
                    f"Transfer of {staging_path} into {appender.path} was cancelled. "
                    "The partial gzip member has been discarded."
                )
            chunk = _read_chunk(source, staging_path, buffer_size)
            if not chunk:
                break
            bytes_appended += len(chunk)
            appender.write(compressor.compress(chunk))
    appender.write(compressor.flush())
    return bytes_appended


def _read_chunk(source: BinaryIO, staging_path: Path, buffer_size: int) -> bytes:
    """Read one buffer of decompressed bytes from a staged stream."""
    try:
        return source.read(buffer_size)
    except (OSError, EOFError, zlib.error) as error:
        raise BootlogIOError(
            f"Failed to decompress staged chunk {staging_path}: {error}. "
            "The chunk is corrupt or truncated; re-stage it and retry."
        ) from error
