"""Concurrent ingestion of independent work items.

Each item gets its own pipeline execution on a worker thread. Items
are prepared in parallel, but items sharing a boot id commit in the
order they were submitted.
"""

from __future__ import annotations

import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from core.logging_config import get_logger
from core.types import IngestOutcome, WorkItem
from ingest.arrival_order import ArrivalOrderGate
from ingest.pipeline import IngestPipelineRunner

_LOGGER = get_logger(__name__)


def ingest_work_items(
    work_items: Iterable[WorkItem],
    runner: IngestPipelineRunner,
    max_workers: int,
    cancel_event: threading.Event | None = None,
) -> list[IngestOutcome]:
    """Ingest work items concurrently.

    Args:
        work_items: Items to ingest.
        runner: Shared pipeline runner.
        max_workers: Maximum worker threads.
        cancel_event: Optional token cancelling in-flight and pending items.

    Returns:
        Outcomes in the same order as ``work_items``. Items with the same
        boot id are appended and recorded in that order too.
    """
    items = list(work_items)
    if not items:
        return []
    worker_count = max(1, min(max_workers, len(items)))
    with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="bootlog-ingest") as pool:
        gate = ArrivalOrderGate()
        tickets = [gate.issue() for _ in items]
        futures = [
            pool.submit(runner.run, item, cancel_event, ticket)
            for item, ticket in zip(items, tickets)
        ]
        outcomes = [future.result() for future in futures]
    status_counts = Counter(outcome.status.value for outcome in outcomes)
    _LOGGER.info(
        "batch_completed",
        item_count=len(outcomes),
        worker_count=worker_count,
        **{f"{status}_count": count for status, count in sorted(status_counts.items())},
    )
    return outcomes
