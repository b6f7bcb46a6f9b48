"""Ingest orchestration for staged log chunks.

This module runs the ordered pre-processing, transfer, and
post-processing stages for one work item. Step lists are immutable
configuration injected at construction, so hosts and tests can
substitute their own steps.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from core.config import BootlogConfig
from core.errors import BootlogCancelledError, BootlogConsistencyError, BootlogError
from core.logging_config import get_logger
from core.types import (
    IngestionContext,
    IngestOutcome,
    IngestStatus,
    LogLineParser,
    ProcessingStep,
    WorkItem,
)
from ingest.arrival_order import ArrivalTicket
from ingest.boot_locks import BootLockRegistry
from ingest.boot_resolver import build_boot_resolution_step, build_timestamp_step
from ingest.log_line import parse_log_line
from ingest.quarantine import QuarantineRegistry
from store.archive_target import ArchiveAppender, build_output_target_step
from store.metadata_store import build_metadata_step
from store.stream_merger import append_staged_content

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PipelineSteps:
    """Ordered step configuration shared by every pipeline execution."""

    pre_processing: tuple[ProcessingStep, ...]
    post_processing: tuple[ProcessingStep, ...]


def default_pipeline_steps(
    config: BootlogConfig,
    parser: LogLineParser = parse_log_line,
) -> PipelineSteps:
    """Build the standard step configuration.

    Args:
        config: Runtime configuration.
        parser: Log-line tokenizer used for resolution and timestamps.

    Returns:
        Boot resolution, timestamps, and output target before transfer;
        metadata merge after it.
    """
    return PipelineSteps(
        pre_processing=(
            build_boot_resolution_step(parser),
            build_timestamp_step(parser),
            build_output_target_step(config),
        ),
        post_processing=(build_metadata_step(config),),
    )


class IngestPipelineRunner:
    """Runs the ingest stages for one work item at a time per call.

    A runner may be shared by worker threads. Items resolving to the
    same boot id are serialized across transfer and post-processing.
    """

    def __init__(
        self,
        config: BootlogConfig,
        steps: PipelineSteps,
        locks: BootLockRegistry | None = None,
        quarantine: QuarantineRegistry | None = None,
    ) -> None:
        self._config = config
        self._steps = steps
        self._locks = locks or BootLockRegistry()
        self._quarantine = quarantine or QuarantineRegistry(config.quarantine_dir)

    @property
    def quarantine(self) -> QuarantineRegistry:
        """Registry of boot ids fenced off by this runner."""
        return self._quarantine

    def run(
        self,
        work_item: WorkItem,
        cancel_event: threading.Event | None = None,
        ticket: ArrivalTicket | None = None,
    ) -> IngestOutcome:
        """Ingest one work item.

        Args:
            work_item: Staged chunk and its upload context.
            cancel_event: Optional token that cancels the transfer.
            ticket: Optional arrival ticket. When given, the transfer
                waits until earlier items with the same boot id finish.
                The ticket is finished when this call returns.

        Returns:
            Outcome describing how far the item got.
        """
        context = IngestionContext(work_item=work_item)
        try:
            if cancel_event is not None and cancel_event.is_set():
                return _outcome(context, IngestStatus.CANCELLED, error="cancelled before start")
            for step in self._steps.pre_processing:
                try:
                    context = step(context)
                except Exception as error:
                    _log_failure("pre_processing_failed", context, error, step)
                    return _outcome(context, IngestStatus.ABORTED, error=str(error))
            return self._transfer_and_record(context, cancel_event, ticket)
        finally:
            _close_archive(context)
            if ticket is not None:
                ticket.finish()

    def _transfer_and_record(
        self,
        context: IngestionContext,
        cancel_event: threading.Event | None,
        ticket: ArrivalTicket | None,
    ) -> IngestOutcome:
        boot_id = context.boot_id
        if boot_id is None or context.archive is None:
            error = BootlogError(
                "Pre-processing finished without a boot id and archive target. "
                "Include boot resolution and output target steps in the pipeline."
            )
            _log_failure("pre_processing_failed", context, error)
            return _outcome(context, IngestStatus.ABORTED, error=str(error))
        if ticket is not None:
            ticket.wait_turn(boot_id)
        with self._locks.hold(boot_id):
            reason = self._quarantine.reason_for(boot_id)
            if reason is not None:
                _LOGGER.warning(
                    "boot_id_quarantined_skip",
                    boot_id=boot_id,
                    staging_path=str(context.work_item.staging_path),
                )
                return _outcome(context, IngestStatus.QUARANTINED, error=reason)
            try:
                bytes_appended = append_staged_content(
                    context.work_item.staging_path,
                    context.archive,
                    self._config.buffer_size,
                    cancel_event,
                )
            except BootlogCancelledError as error:
                _log_failure("transfer_cancelled", context, error)
                return _outcome(context, IngestStatus.CANCELLED, error=str(error))
            except Exception as error:
                _log_failure("transfer_failed", context, error)
                return _outcome(context, IngestStatus.ABORTED, error=str(error))
            return self._post_process(context, boot_id, context.archive, bytes_appended)

    def _post_process(
        self,
        context: IngestionContext,
        boot_id: str,
        archive: ArchiveAppender,
        bytes_appended: int,
    ) -> IngestOutcome:
        post_errors: list[str] = []
        for step in self._steps.post_processing:
            try:
                context = step(context)
            except BootlogConsistencyError as error:
                _log_failure("post_processing_inconsistent", context, error, step)
                return self._quarantine_item(context, boot_id, archive, error)
            except Exception as error:
                _log_failure("post_processing_failed", context, error, step)
                post_errors.append(str(error))
        _LOGGER.info(
            "ingest_completed",
            staging_path=str(context.work_item.staging_path),
            boot_id=context.boot_id,
            device_id=context.work_item.device_id,
            bytes_appended=bytes_appended,
            post_processing_errors=len(post_errors),
        )
        return _outcome(
            context,
            IngestStatus.COMPLETED,
            bytes_appended=bytes_appended,
            post_processing_errors=tuple(post_errors),
        )

    def _quarantine_item(
        self,
        context: IngestionContext,
        boot_id: str,
        archive: ArchiveAppender,
        error: BootlogConsistencyError,
    ) -> IngestOutcome:
        """Undo the item's append and fence off its boot id."""
        follow_up: list[str] = []
        try:
            archive.rollback()
        except BootlogError as rollback_error:
            _log_failure("archive_rollback_failed", context, rollback_error)
            follow_up.append(str(rollback_error))
        try:
            self._quarantine.quarantine(boot_id, context.work_item, str(error))
        except BootlogError as preserve_error:
            _log_failure("quarantine_preserve_failed", context, preserve_error)
            follow_up.append(str(preserve_error))
        return _outcome(
            context,
            IngestStatus.QUARANTINED,
            error=str(error),
            post_processing_errors=tuple(follow_up),
        )


def ingest_work_item(
    work_item: WorkItem,
    config: BootlogConfig,
    parser: LogLineParser = parse_log_line,
) -> IngestOutcome:
    """Ingest a single work item with the default step configuration.

    Args:
        work_item: Staged chunk and its upload context.
        config: Runtime configuration.
        parser: Log-line tokenizer.

    Returns:
        Outcome of the pipeline execution.
    """
    runner = IngestPipelineRunner(config, default_pipeline_steps(config, parser))
    return runner.run(work_item)


def _close_archive(context: IngestionContext) -> None:
    """Release the archive handle, reporting but not raising flush errors."""
    if context.archive is None:
        return
    try:
        context.archive.close()
    except BootlogError as error:
        _log_failure("archive_close_failed", context, error)


def _outcome(
    context: IngestionContext,
    status: IngestStatus,
    bytes_appended: int = 0,
    error: str | None = None,
    post_processing_errors: tuple[str, ...] = (),
) -> IngestOutcome:
    return IngestOutcome(
        status=status,
        staging_path=context.work_item.staging_path,
        boot_id=context.boot_id,
        bytes_appended=bytes_appended,
        error=error,
        post_processing_errors=post_processing_errors,
    )


def _log_failure(
    event: str,
    context: IngestionContext,
    error: Exception,
    step: ProcessingStep | None = None,
) -> None:
    """Report a stage failure on the diagnostics channel.

    Errors outside the bootlog hierarchy come from substituted steps or
    parsers and are logged with their traceback.
    """
    extra = {} if isinstance(error, BootlogError) else {"exc_info": error}
    _LOGGER.error(
        event,
        staging_path=str(context.work_item.staging_path),
        boot_id=context.boot_id,
        device_id=context.work_item.device_id,
        step=getattr(step, "__name__", None) if step is not None else None,
        error_type=type(error).__name__,
        error=str(error),
        **extra,
    )
