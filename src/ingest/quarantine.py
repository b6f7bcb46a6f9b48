"""Quarantine of boot ids with inconsistent metadata.

A device id mismatch means a misrouted chunk or a corrupt record.
Instead of stopping the process, the boot id is fenced off so other
boot ids keep ingesting while an operator investigates.
"""

from __future__ import annotations

import shutil
import threading
from datetime import datetime, timezone
from pathlib import Path

import yaml

from core.constants import QUARANTINE_NOTES_FILE_NAME
from core.errors import BootlogIOError
from core.logging_config import get_logger
from core.types import WorkItem
from store.archive_target import validate_boot_id

_LOGGER = get_logger(__name__)


class QuarantineRegistry:
    """Thread-safe registry of quarantined boot ids.

    When a quarantine directory is configured, each offending staged
    chunk is copied to ``<quarantine_dir>/<boot_id>/`` together with a
    YAML note describing why.
    """

    def __init__(self, quarantine_dir: Path | None = None) -> None:
        self._quarantine_dir = quarantine_dir
        self._lock = threading.Lock()
        self._reasons: dict[str, str] = {}

    def quarantine(self, boot_id: str, work_item: WorkItem, reason: str) -> None:
        """Fence off ``boot_id`` and preserve the offending chunk.

        Raises:
            BootlogIOError: If the chunk cannot be copied; the boot id is
                quarantined regardless.
        """
        with self._lock:
            self._reasons.setdefault(boot_id, reason)
        _LOGGER.error(
            "boot_id_quarantined",
            boot_id=boot_id,
            device_id=work_item.device_id,
            staging_path=str(work_item.staging_path),
            reason=reason,
        )
        if self._quarantine_dir is not None:
            _preserve_chunk(self._quarantine_dir, boot_id, work_item, reason)

    def is_quarantined(self, boot_id: str) -> bool:
        """Return whether ``boot_id`` is currently fenced off."""
        with self._lock:
            return boot_id in self._reasons

    def reason_for(self, boot_id: str) -> str | None:
        """Return the first recorded reason for ``boot_id``, if quarantined."""
        with self._lock:
            return self._reasons.get(boot_id)

    def release(self, boot_id: str) -> bool:
        """Lift the quarantine on ``boot_id``; return whether it was set."""
        with self._lock:
            released = self._reasons.pop(boot_id, None) is not None
        if released:
            _LOGGER.info("boot_id_released", boot_id=boot_id)
        return released

    def quarantined_boot_ids(self) -> tuple[str, ...]:
        """Return the quarantined boot ids in sorted order."""
        with self._lock:
            return tuple(sorted(self._reasons))


def _preserve_chunk(
    quarantine_dir: Path,
    boot_id: str,
    work_item: WorkItem,
    reason: str,
) -> None:
    """Copy the staged chunk and append a note under the quarantine dir."""
    target_dir = quarantine_dir / validate_boot_id(boot_id)
    note = {
        "quarantinedAt": datetime.now(timezone.utc).isoformat(),
        "deviceId": work_item.device_id,
        "packageName": work_item.package_name,
        "version": work_item.version,
        "uploadTimestamp": work_item.upload_timestamp,
        "stagingPath": str(work_item.staging_path),
        "reason": reason,
    }
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(work_item.staging_path, target_dir / work_item.staging_path.name)
        with (target_dir / QUARANTINE_NOTES_FILE_NAME).open("a", encoding="utf-8") as notes:
            notes.write(yaml.safe_dump([note], sort_keys=False))
    except OSError as error:
        raise BootlogIOError(
            f"Failed to preserve quarantined chunk {work_item.staging_path} "
            f"under {target_dir}: {error}. Copy it manually before it is cleaned up."
        ) from error
