"""Public SDK surface for bootlog.

This module provides a stable import path for hosts embedding the
ingest pipeline. It re-exports the runner, step builders, and typed
models.
"""

from __future__ import annotations

from core.config import BootlogConfig
from core.errors import (
    BootlogCancelledError,
    BootlogConfigError,
    BootlogConsistencyError,
    BootlogError,
    BootlogIOError,
    BootlogResolutionError,
    BootlogWorkSourceError,
)
from core.types import (
    DeviceMetadataRecord,
    IngestionContext,
    IngestionEvent,
    IngestOutcome,
    IngestStatus,
    ParsedLogLine,
    WorkItem,
)
from ingest.arrival_order import ArrivalOrderGate, ArrivalTicket
from ingest.boot_locks import BootLockRegistry
from ingest.log_line import parse_log_line
from ingest.pipeline import (
    IngestPipelineRunner,
    PipelineSteps,
    default_pipeline_steps,
    ingest_work_item,
)
from ingest.quarantine import QuarantineRegistry
from ingest.work_source import read_work_items
from ingest.worker_pool import ingest_work_items

__all__ = [
    "ArrivalOrderGate",
    "ArrivalTicket",
    "BootLockRegistry",
    "BootlogCancelledError",
    "BootlogConfig",
    "BootlogConfigError",
    "BootlogConsistencyError",
    "BootlogError",
    "BootlogIOError",
    "BootlogResolutionError",
    "BootlogWorkSourceError",
    "DeviceMetadataRecord",
    "IngestOutcome",
    "IngestPipelineRunner",
    "IngestStatus",
    "IngestionContext",
    "IngestionEvent",
    "ParsedLogLine",
    "PipelineSteps",
    "QuarantineRegistry",
    "WorkItem",
    "default_pipeline_steps",
    "ingest_work_item",
    "ingest_work_items",
    "parse_log_line",
    "read_work_items",
]
