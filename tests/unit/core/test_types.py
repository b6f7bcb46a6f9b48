"""Unit tests for shared typed models."""

from __future__ import annotations

from core.types import DeviceMetadataRecord, IngestionEvent


def _event(version: str) -> IngestionEvent:
    return IngestionEvent(
        version=version,
        package_name="pkg",
        upload_timestamp=1,
        start_timestamp=2,
        end_timestamp=3,
    )


def test_append_event_extends_every_sequence() -> None:
    """Appending should grow all five sequences in step."""
    record = DeviceMetadataRecord(device_id="D1").append_event(_event("1.0"))
    record = record.append_event(_event("1.1"))

    lengths = {
        len(record.versions),
        len(record.package_names),
        len(record.upload_timestamps),
        len(record.start_timestamps),
        len(record.end_timestamps),
    }

    assert lengths == {2} and record.versions == ("1.0", "1.1")


def test_append_event_keeps_original_record_unchanged() -> None:
    """Records are immutable; appending returns a new record."""
    original = DeviceMetadataRecord(device_id="D1")

    updated = original.append_event(_event("1.0"))

    assert original.event_count == 0 and updated.event_count == 1
