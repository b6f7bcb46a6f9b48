"""Unit tests for arrival-order admission."""

from __future__ import annotations

import threading

from ingest.arrival_order import ArrivalOrderGate, ArrivalTicket


def _admit_in_thread(
    ticket: ArrivalTicket,
    boot_id: str,
) -> tuple[threading.Thread, threading.Event]:
    admitted = threading.Event()

    def _wait() -> None:
        ticket.wait_turn(boot_id)
        admitted.set()

    thread = threading.Thread(target=_wait)
    thread.start()
    return thread, admitted


def test_later_same_boot_ticket_waits_for_earlier_finish() -> None:
    """A later item for the same boot id is admitted only after the earlier one."""
    gate = ArrivalOrderGate()
    first, second = gate.issue(), gate.issue()
    first.wait_turn("X")
    thread, admitted = _admit_in_thread(second, "X")

    blocked = not admitted.wait(0.1)
    first.finish()
    thread.join(timeout=5)

    assert blocked and admitted.is_set()


def test_different_boot_ids_do_not_wait_on_each_other() -> None:
    """Items for different boot ids are admitted once earlier ones resolve."""
    gate = ArrivalOrderGate()
    first, second = gate.issue(), gate.issue()
    first.wait_turn("X")

    second.wait_turn("Y")

    assert gate.pending_count() == 2


def test_unresolved_earlier_ticket_blocks_later_ones() -> None:
    """An earlier item that has not resolved yet may share the boot id."""
    gate = ArrivalOrderGate()
    first, second = gate.issue(), gate.issue()
    thread, admitted = _admit_in_thread(second, "Y")

    blocked = not admitted.wait(0.1)
    first.wait_turn("X")
    thread.join(timeout=5)

    assert blocked and admitted.is_set()


def test_finishing_without_resolution_unblocks_later_tickets() -> None:
    """An item that aborts before resolving releases later items."""
    gate = ArrivalOrderGate()
    first, second = gate.issue(), gate.issue()
    thread, admitted = _admit_in_thread(second, "X")

    first.finish()
    first.finish()
    thread.join(timeout=5)

    assert admitted.is_set() and gate.pending_count() == 1
