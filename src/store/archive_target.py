"""Per-boot archive targets.

This module owns the output directory layout and the append-only
handle used to grow a boot session archive. The handle remembers
where each append started so incomplete appends can be cut away.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path
from types import TracebackType

from core.config import BootlogConfig
from core.errors import BootlogIOError, BootlogResolutionError
from core.logging_config import get_logger
from core.types import IngestionContext, ProcessingStep

_LOGGER = get_logger(__name__)


class ArchiveAppender:
    """Append-only, buffered writer on one boot session archive.

    Writes go to an unbuffered file through an explicit in-memory
    buffer, so rolled back bytes can never be flushed later.
    """

    def __init__(self, path: Path, buffer_size: int) -> None:
        """Open or create the archive for appending.

        Args:
            path: Archive file path.
            buffer_size: Bytes buffered before each file write.

        Raises:
            BootlogIOError: If the archive cannot be opened.
        """
        self._path = path
        self._buffer_size = buffer_size
        self._buffer = bytearray()
        self._append_offset: int | None = None
        try:
            self._file = path.open("ab", buffering=0)
        except OSError as error:
            raise BootlogIOError(
                f"Failed to open archive {path} for appending: {error}. "
                "Check output directory permissions and free space."
            ) from error

    @property
    def path(self) -> Path:
        """Archive file path."""
        return self._path

    @property
    def closed(self) -> bool:
        """Whether the underlying file has been closed."""
        return self._file.closed

    def begin_append(self) -> None:
        """Mark the current end of the archive as the rollback point."""
        self.flush()
        try:
            self._append_offset = self._file.seek(0, os.SEEK_END)
        except OSError as error:
            raise self._io_error("locate end of", error) from error

    def write(self, data: bytes) -> None:
        """Buffer ``data`` and write it out once the buffer is full."""
        self._buffer.extend(data)
        if len(self._buffer) >= self._buffer_size:
            self.flush()

    def flush(self) -> None:
        """Write all buffered bytes to the archive file."""
        view = memoryview(self._buffer)
        written = 0
        try:
            while written < len(view):
                written += self._file.write(view[written:]) or 0
        except OSError as error:
            raise self._io_error("write to", error) from error
        finally:
            view.release()
            del self._buffer[:written]

    def rollback(self) -> None:
        """Truncate the archive back to the last rollback point."""
        self._buffer.clear()
        if self._append_offset is None:
            return
        try:
            self._file.truncate(self._append_offset)
        except OSError as error:
            raise self._io_error("roll back", error) from error
        _LOGGER.warning(
            "archive_append_rolled_back",
            archive_path=str(self._path),
            offset=self._append_offset,
        )
        self._append_offset = None

    def close(self) -> None:
        """Flush pending bytes and close the archive. Safe to call twice."""
        if self._file.closed:
            return
        try:
            self.flush()
        finally:
            self._file.close()

    def __enter__(self) -> "ArchiveAppender":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _io_error(self, action: str, error: OSError) -> BootlogIOError:
        return BootlogIOError(
            f"Failed to {action} archive {self._path}: {error}. "
            "Check output directory permissions and free space."
        )


def ensure_output_dir(output_dir: Path) -> None:
    """Create ``output_dir`` recursively when it does not exist.

    Raises:
        BootlogIOError: If the directory cannot be created.
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise BootlogIOError(
            f"Failed to create output directory {output_dir}: {error}. "
            "Check that the path is not a file and is writable."
        ) from error


def archive_path(output_dir: Path, boot_id: str, archive_ext: str) -> Path:
    """Return the archive path for ``boot_id`` under ``output_dir``."""
    return output_dir / f"{validate_boot_id(boot_id)}.{archive_ext}"


def validate_boot_id(boot_id: str) -> str:
    """Reject boot ids that cannot safely name a file.

    Raises:
        BootlogResolutionError: If the boot id is empty or path-like.
    """
    unsafe = boot_id in (".", "..") or "\\" in boot_id or "\x00" in boot_id
    if not boot_id or unsafe or Path(boot_id).name != boot_id:
        raise BootlogResolutionError(
            f"Resolved boot id '{boot_id}' cannot be used as a file name. "
            "Check the log-line parser for the staged chunk's format."
        )
    return boot_id


def open_archive_target(
    output_dir: Path,
    boot_id: str,
    archive_ext: str,
    buffer_size: int,
) -> ArchiveAppender:
    """Ensure ``output_dir`` exists and open the boot id's archive.

    Args:
        output_dir: Per-device output directory.
        boot_id: Resolved boot identifier.
        archive_ext: Archive file extension.
        buffer_size: Write buffer size in bytes.

    Returns:
        Open appender; the caller must close it.

    Raises:
        BootlogIOError: If the directory or archive cannot be opened.
        BootlogResolutionError: If the boot id is not a valid file name.
    """
    target_path = archive_path(output_dir, boot_id, archive_ext)
    ensure_output_dir(output_dir)
    return ArchiveAppender(target_path, buffer_size)


def build_output_target_step(config: BootlogConfig) -> ProcessingStep:
    """Build the pre-processing step that opens the boot session archive."""

    def open_output_target(context: IngestionContext) -> IngestionContext:
        if context.boot_id is None:
            raise BootlogResolutionError(
                f"Cannot open an archive for {context.work_item.staging_path}: "
                "boot id is unresolved. Run boot resolution before this step."
            )
        appender = open_archive_target(
            context.work_item.output_dir,
            context.boot_id,
            config.archive_ext,
            config.buffer_size,
        )
        _LOGGER.info("archive_target_opened", archive_path=str(appender.path))
        return replace(context, archive=appender)

    return open_output_target
