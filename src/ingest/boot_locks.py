"""Per-boot-id mutual exclusion.

Work items resolving to the same boot id must not interleave their
archive appends or metadata rewrites. Items for different boot ids
proceed in parallel.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class BootLockRegistry:
    """Keyed locks, created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _LockEntry] = {}

    @contextmanager
    def hold(self, boot_id: str) -> Iterator[None]:
        """Hold the lock for ``boot_id`` for the duration of the block."""
        with self._guard:
            entry = self._entries.setdefault(boot_id, _LockEntry())
            entry.holders += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[boot_id]

    def active_boot_ids(self) -> tuple[str, ...]:
        """Return boot ids currently held or waited on."""
        with self._guard:
            return tuple(sorted(self._entries))
