"""Shared typed models.

This module defines immutable data models used by the resolver,
transfer, metadata, and pipeline layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from store.archive_target import ArchiveAppender


@dataclass(frozen=True)
class WorkItem:
    """One staged chunk handed to the pipeline by the work source.

    Attributes:
        staging_path: Path of the staged, usually gzip-compressed, chunk.
        output_dir: Per-device directory holding archives and metadata.
        device_id: Identifier of the uploading device.
        package_name: Package that uploaded the chunk.
        version: Version string of the uploading package.
        upload_timestamp: Upload time reported by the work source.
    """

    staging_path: Path
    output_dir: Path
    device_id: str
    package_name: str
    version: str
    upload_timestamp: int


@dataclass(frozen=True)
class ParsedLogLine:
    """Fields extracted from one log line.

    Attributes:
        boot_id: Boot session identifier carried by the line.
        timestamp: Event time in nanoseconds, when the line has one.
    """

    boot_id: str
    timestamp: int | None = None


@dataclass(frozen=True)
class IngestionContext:
    """Per-execution state evolved by pipeline steps.

    Attributes:
        work_item: Work item being ingested.
        boot_id: Resolved boot identifier.
        archive: Open append handle on the boot session archive.
        start_timestamp: Time of the first timestamped line in the chunk.
        end_timestamp: Time of the last timestamped line in the chunk.
    """

    work_item: WorkItem
    boot_id: str | None = None
    archive: "ArchiveAppender | None" = None
    start_timestamp: int | None = None
    end_timestamp: int | None = None


@dataclass(frozen=True)
class IngestionEvent:
    """One ingestion recorded in a device metadata record."""

    version: str
    package_name: str
    upload_timestamp: int
    start_timestamp: int
    end_timestamp: int


@dataclass(frozen=True)
class DeviceMetadataRecord:
    """Ingestion history for one boot identifier.

    Index ``i`` of every sequence describes the ``i``-th ingestion event.

    Attributes:
        device_id: Device owning the boot session, fixed at creation.
        versions: Package versions per event.
        package_names: Package names per event.
        upload_timestamps: Upload times per event.
        start_timestamps: First content timestamps per event.
        end_timestamps: Last content timestamps per event.
    """

    device_id: str
    versions: tuple[str, ...] = ()
    package_names: tuple[str, ...] = ()
    upload_timestamps: tuple[int, ...] = ()
    start_timestamps: tuple[int, ...] = ()
    end_timestamps: tuple[int, ...] = ()

    @property
    def event_count(self) -> int:
        """Return the number of recorded ingestion events."""
        return len(self.versions)

    def append_event(self, event: IngestionEvent) -> "DeviceMetadataRecord":
        """Return a copy with ``event`` appended to every sequence."""
        return replace(
            self,
            versions=(*self.versions, event.version),
            package_names=(*self.package_names, event.package_name),
            upload_timestamps=(*self.upload_timestamps, event.upload_timestamp),
            start_timestamps=(*self.start_timestamps, event.start_timestamp),
            end_timestamps=(*self.end_timestamps, event.end_timestamp),
        )


class IngestStatus(str, Enum):
    """Terminal state of one pipeline execution."""

    COMPLETED = "completed"
    ABORTED = "aborted"
    QUARANTINED = "quarantined"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class IngestOutcome:
    """Result of running the pipeline on one work item.

    Attributes:
        status: Terminal state of the execution.
        staging_path: Staged chunk the outcome refers to.
        boot_id: Resolved boot identifier, when resolution succeeded.
        bytes_appended: Decompressed bytes committed to the archive.
        error: Message of the failure that ended the execution.
        post_processing_errors: Non-fatal post-processing failure messages.
    """

    status: IngestStatus
    staging_path: Path
    boot_id: str | None = None
    bytes_appended: int = 0
    error: str | None = None
    post_processing_errors: tuple[str, ...] = field(default_factory=tuple)


ProcessingStep = Callable[[IngestionContext], IngestionContext]
LogLineParser = Callable[[str], ParsedLogLine | None]
