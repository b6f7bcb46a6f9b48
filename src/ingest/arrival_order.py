"""Arrival-order admission for concurrently prepared work items.

Workers may resolve and prepare items in any order, but items sharing
a boot id must commit in the order they arrived. A gate hands out one
ticket per item in arrival order. Before committing, a ticket waits
until every earlier item has either resolved to a different boot id
or finished.
"""

from __future__ import annotations

import threading


class ArrivalOrderGate:
    """Orders commits per boot id by ticket issue order."""

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._next_index = 0
        self._pending: set[int] = set()
        self._boot_ids: dict[int, str] = {}

    def issue(self) -> "ArrivalTicket":
        """Issue the next ticket. Call in arrival order."""
        with self._condition:
            index = self._next_index
            self._next_index += 1
            self._pending.add(index)
        return ArrivalTicket(self, index)

    def pending_count(self) -> int:
        """Return the number of issued tickets not yet finished."""
        with self._condition:
            return len(self._pending)

    def _wait_turn(self, index: int, boot_id: str) -> None:
        with self._condition:
            self._boot_ids[index] = boot_id
            self._condition.notify_all()
            self._condition.wait_for(lambda: not self._is_blocked(index, boot_id))

    def _finish(self, index: int) -> None:
        with self._condition:
            self._pending.discard(index)
            self._boot_ids.pop(index, None)
            self._condition.notify_all()

    def _is_blocked(self, index: int, boot_id: str) -> bool:
        """Whether an earlier pending ticket is unresolved or shares ``boot_id``."""
        for earlier in self._pending:
            if earlier >= index:
                continue
            earlier_boot_id = self._boot_ids.get(earlier)
            if earlier_boot_id is None or earlier_boot_id == boot_id:
                return True
        return False


class ArrivalTicket:
    """One work item's place in an :class:`ArrivalOrderGate`."""

    def __init__(self, gate: ArrivalOrderGate, index: int) -> None:
        self._gate = gate
        self._index = index
        self._finished = False

    @property
    def index(self) -> int:
        """Arrival position of the ticket's item."""
        return self._index

    def wait_turn(self, boot_id: str) -> None:
        """Record ``boot_id`` and block until earlier same-boot items finish.

        Also blocks while any earlier item has not resolved its boot id,
        since it may turn out to share ``boot_id``.
        """
        self._gate._wait_turn(self._index, boot_id)

    def finish(self) -> None:
        """Release the ticket. Safe to call twice."""
        if self._finished:
            return
        self._finished = True
        self._gate._finish(self._index)
