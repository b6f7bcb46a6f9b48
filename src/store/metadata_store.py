"""Per-boot device metadata records.

This module loads, validates, merges, and rewrites the YAML record
that tracks every ingestion event of one boot session. Rewrites go
through a temporary file and an atomic replace, so a shorter record
never leaves stale bytes behind.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from core.config import BootlogConfig
from core.constants import (
    METADATA_DEVICE_ID_KEY,
    METADATA_END_TIMESTAMPS_KEY,
    METADATA_PACKAGE_NAMES_KEY,
    METADATA_START_TIMESTAMPS_KEY,
    METADATA_UPLOAD_TIMESTAMPS_KEY,
    METADATA_VERSIONS_KEY,
    UNKNOWN_TIMESTAMP,
)
from core.errors import BootlogConsistencyError, BootlogIOError, BootlogResolutionError
from core.logging_config import get_logger
from core.types import DeviceMetadataRecord, IngestionContext, IngestionEvent, ProcessingStep
from store.archive_target import validate_boot_id

_LOGGER = get_logger(__name__)

_SEQUENCE_KEYS = (
    METADATA_VERSIONS_KEY,
    METADATA_PACKAGE_NAMES_KEY,
    METADATA_UPLOAD_TIMESTAMPS_KEY,
    METADATA_START_TIMESTAMPS_KEY,
    METADATA_END_TIMESTAMPS_KEY,
)


def metadata_path(output_dir: Path, boot_id: str, metadata_ext: str) -> Path:
    """Return the metadata record path for ``boot_id``."""
    return output_dir / f"{validate_boot_id(boot_id)}.{metadata_ext}"


def load_metadata_record(record_path: Path) -> DeviceMetadataRecord | None:
    """Load a metadata record if one exists.

    Args:
        record_path: Metadata file path.

    Returns:
        Parsed record, or None when the file does not exist.

    Raises:
        BootlogIOError: If the file is unreadable or not valid YAML.
        BootlogConsistencyError: If the record is structurally corrupt.
    """
    if not record_path.exists():
        return None
    try:
        payload = yaml.safe_load(record_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as error:
        raise BootlogIOError(
            f"Failed to read metadata record {record_path}: {error}. "
            "Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise BootlogIOError(
            f"Failed to parse metadata record {record_path}: {error}. "
            "Restore the record from backup or rebuild it from the archive."
        ) from error
    return record_from_payload(record_path, payload)


def record_from_payload(record_path: Path, payload: Any) -> DeviceMetadataRecord:
    """Validate and convert a parsed YAML payload into a record.

    Raises:
        BootlogConsistencyError: If fields are missing, mistyped, or the
            event sequences have unequal lengths.
    """
    if not isinstance(payload, dict):
        raise _corrupt_record(record_path, "expected a mapping at top level")
    device_id = payload.get(METADATA_DEVICE_ID_KEY)
    if not isinstance(device_id, str) or not device_id:
        raise _corrupt_record(record_path, f"missing string field '{METADATA_DEVICE_ID_KEY}'")
    sequences: dict[str, list[Any]] = {}
    for key in _SEQUENCE_KEYS:
        value = payload.get(key)
        if value is None:
            value = []
        if not isinstance(value, list):
            raise _corrupt_record(record_path, f"field '{key}' is not a list")
        sequences[key] = value
    lengths = {len(value) for value in sequences.values()}
    if len(lengths) > 1:
        raise _corrupt_record(record_path, "event sequences have unequal lengths")
    try:
        return DeviceMetadataRecord(
            device_id=device_id,
            versions=tuple(str(item) for item in sequences[METADATA_VERSIONS_KEY]),
            package_names=tuple(str(item) for item in sequences[METADATA_PACKAGE_NAMES_KEY]),
            upload_timestamps=_int_tuple(sequences[METADATA_UPLOAD_TIMESTAMPS_KEY]),
            start_timestamps=_int_tuple(sequences[METADATA_START_TIMESTAMPS_KEY]),
            end_timestamps=_int_tuple(sequences[METADATA_END_TIMESTAMPS_KEY]),
        )
    except (TypeError, ValueError) as error:
        raise _corrupt_record(record_path, f"non-integer timestamp ({error})") from error


def record_to_payload(record: DeviceMetadataRecord) -> dict[str, object]:
    """Serialize a record into its YAML field layout."""
    return {
        METADATA_DEVICE_ID_KEY: record.device_id,
        METADATA_VERSIONS_KEY: list(record.versions),
        METADATA_PACKAGE_NAMES_KEY: list(record.package_names),
        METADATA_UPLOAD_TIMESTAMPS_KEY: list(record.upload_timestamps),
        METADATA_START_TIMESTAMPS_KEY: list(record.start_timestamps),
        METADATA_END_TIMESTAMPS_KEY: list(record.end_timestamps),
    }


def write_metadata_record(record_path: Path, record: DeviceMetadataRecord) -> None:
    """Replace the metadata file with ``record``.

    Raises:
        BootlogIOError: If the record cannot be written.
    """
    body = yaml.safe_dump(record_to_payload(record), sort_keys=False)
    temp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=record_path.parent,
            prefix=f".{record_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as temp_file:
            temp_name = temp_file.name
            temp_file.write(body)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_name, record_path)
    except OSError as error:
        if temp_name is not None and os.path.exists(temp_name):
            os.unlink(temp_name)
        raise BootlogIOError(
            f"Failed to write metadata record {record_path}: {error}. "
            "Check output directory permissions and free space."
        ) from error


def merge_metadata(
    output_dir: Path,
    boot_id: str,
    device_id: str,
    event: IngestionEvent,
    metadata_ext: str,
) -> DeviceMetadataRecord:
    """Append one ingestion event to the boot id's metadata record.

    Args:
        output_dir: Per-device output directory.
        boot_id: Boot identifier owning the record.
        device_id: Device claimed by the incoming work item.
        event: Ingestion event to append.
        metadata_ext: Metadata file extension.

    Returns:
        The record as written.

    Raises:
        BootlogConsistencyError: If the stored device id differs from
            ``device_id``; nothing is appended in that case.
        BootlogIOError: If the record cannot be read or written.
    """
    record_path = metadata_path(output_dir, boot_id, metadata_ext)
    existing = load_metadata_record(record_path)
    if existing is None:
        existing = DeviceMetadataRecord(device_id=device_id)
    elif existing.device_id != device_id:
        raise BootlogConsistencyError(
            f"Device id mismatch for boot id '{boot_id}': metadata {record_path} "
            f"belongs to '{existing.device_id}' but the work item claims '{device_id}'. "
            "The chunk is misrouted or the record is corrupt; inspect before releasing."
        )
    updated = existing.append_event(event)
    write_metadata_record(record_path, updated)
    _LOGGER.info(
        "metadata_merged",
        metadata_path=str(record_path),
        boot_id=boot_id,
        device_id=device_id,
        event_count=updated.event_count,
    )
    return updated


def build_metadata_step(config: BootlogConfig) -> ProcessingStep:
    """Build the post-processing step that records the ingestion event."""

    def update_metadata(context: IngestionContext) -> IngestionContext:
        if context.boot_id is None:
            raise BootlogResolutionError(
                f"Cannot record metadata for {context.work_item.staging_path}: "
                "boot id is unresolved."
            )
        work_item = context.work_item
        event = IngestionEvent(
            version=work_item.version,
            package_name=work_item.package_name,
            upload_timestamp=work_item.upload_timestamp,
            start_timestamp=_or_unknown(context.start_timestamp),
            end_timestamp=_or_unknown(context.end_timestamp),
        )
        merge_metadata(
            work_item.output_dir,
            context.boot_id,
            work_item.device_id,
            event,
            config.metadata_ext,
        )
        return context

    return update_metadata


def _int_tuple(values: list[Any]) -> tuple[int, ...]:
    """Convert YAML list items into integers, rejecting booleans."""
    if any(isinstance(value, bool) for value in values):
        raise TypeError("boolean value in timestamp list")
    return tuple(int(value) for value in values)


def _or_unknown(timestamp: int | None) -> int:
    return UNKNOWN_TIMESTAMP if timestamp is None else timestamp


def _corrupt_record(record_path: Path, detail: str) -> BootlogConsistencyError:
    return BootlogConsistencyError(
        f"Metadata record {record_path} is corrupt: {detail}. "
        "Restore the record from backup or rebuild it from the archive."
    )
