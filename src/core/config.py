"""Runtime configuration model for bootlog.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_ARCHIVE_EXTENSION,
    DEFAULT_BUFFER_SIZE,
    DEFAULT_METADATA_EXTENSION,
    DEFAULT_WORKER_COUNT,
)
from core.errors import BootlogConfigError


@dataclass(frozen=True)
class BootlogConfig:
    """Validated runtime configuration.

    Attributes:
        archive_ext: File extension of per-boot gzip archives.
        metadata_ext: File extension of per-boot metadata records.
        buffer_size: Read and write buffer size for content transfer.
        max_workers: Worker threads used for batch ingestion.
        quarantine_dir: Optional directory receiving quarantined chunks.
    """

    archive_ext: str = DEFAULT_ARCHIVE_EXTENSION
    metadata_ext: str = DEFAULT_METADATA_EXTENSION
    buffer_size: int = DEFAULT_BUFFER_SIZE
    max_workers: int = DEFAULT_WORKER_COUNT
    quarantine_dir: Path | None = None

    @classmethod
    def from_env(cls) -> "BootlogConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            BootlogConfigError: If environment values are invalid.
        """
        archive_ext = _parse_extension(
            "BOOTLOG_ARCHIVE_EXT",
            os.getenv("BOOTLOG_ARCHIVE_EXT", DEFAULT_ARCHIVE_EXTENSION),
        )
        metadata_ext = _parse_extension(
            "BOOTLOG_METADATA_EXT",
            os.getenv("BOOTLOG_METADATA_EXT", DEFAULT_METADATA_EXTENSION),
        )
        if archive_ext == metadata_ext:
            raise BootlogConfigError(
                f"Archive and metadata extensions must differ, both are '{archive_ext}'. "
                "Set BOOTLOG_ARCHIVE_EXT or BOOTLOG_METADATA_EXT to another value."
            )
        buffer_size = _parse_positive_int(
            "BOOTLOG_BUFFER_SIZE",
            os.getenv("BOOTLOG_BUFFER_SIZE", str(DEFAULT_BUFFER_SIZE)),
        )
        max_workers = _parse_positive_int(
            "BOOTLOG_WORKERS",
            os.getenv("BOOTLOG_WORKERS", str(DEFAULT_WORKER_COUNT)),
        )
        quarantine_value = os.getenv("BOOTLOG_QUARANTINE_DIR")
        return cls(
            archive_ext=archive_ext,
            metadata_ext=metadata_ext,
            buffer_size=buffer_size,
            max_workers=max_workers,
            quarantine_dir=Path(quarantine_value).expanduser().resolve()
            if quarantine_value
            else None,
        )


def _parse_extension(variable_name: str, raw_value: str) -> str:
    """Validate a file extension value.

    Args:
        variable_name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Extension without surrounding whitespace.

    Raises:
        BootlogConfigError: If the value is empty or path-like.
    """
    value = raw_value.strip()
    if not value or value.startswith(".") or "/" in value or "\\" in value:
        raise BootlogConfigError(
            f"Invalid {variable_name} value: '{raw_value}'. "
            "Use a bare extension such as 'gz' or 'yaml'."
        )
    return value


def _parse_positive_int(variable_name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        variable_name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        BootlogConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise BootlogConfigError(
            f"Invalid {variable_name} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a positive numeric value."
        ) from error
    if value <= 0:
        raise BootlogConfigError(
            f"Invalid {variable_name} value: expected a positive integer, got {value}."
        )
    return value
