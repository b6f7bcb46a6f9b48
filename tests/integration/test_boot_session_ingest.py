"""Integration tests for boot session ingestion scenarios."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from core.config import BootlogConfig
from core.types import IngestStatus
from ingest.pipeline import IngestPipelineRunner, default_pipeline_steps
from store.metadata_store import load_metadata_record
from tests.chunk_factory import build_work_item, read_archive_text, write_gzip_chunk


def test_two_chunks_then_misrouted_chunk_for_same_boot_id(tmp_path: Path) -> None:
    """Chunks A and B merge into X; chunk C from another device is quarantined."""
    config = replace(BootlogConfig(), metadata_ext="meta", quarantine_dir=tmp_path / "quarantine")
    runner = IngestPipelineRunner(config, default_pipeline_steps(config))
    out_dir = tmp_path / "out"
    chunk_a = write_gzip_chunk(tmp_path / "staging" / "a.gz", "boot=X hello\n")
    chunk_b = write_gzip_chunk(tmp_path / "staging" / "b.gz", "boot=X world\n")
    chunk_c = write_gzip_chunk(tmp_path / "staging" / "c.gz", "boot=X intruder\n")

    outcome_a = runner.run(build_work_item(chunk_a, out_dir, device_id="D1", version="1.0"))
    after_a = load_metadata_record(out_dir / "X.meta")
    archive_after_a = read_archive_text(out_dir / "X.gz")
    outcome_b = runner.run(build_work_item(chunk_b, out_dir, device_id="D1", version="1.1"))
    outcome_c = runner.run(build_work_item(chunk_c, out_dir, device_id="D2", version="2.0"))

    final = load_metadata_record(out_dir / "X.meta")
    assert [outcome_a.status, outcome_b.status, outcome_c.status] == [
        IngestStatus.COMPLETED,
        IngestStatus.COMPLETED,
        IngestStatus.QUARANTINED,
    ]
    assert archive_after_a == "boot=X hello\n"
    assert after_a is not None and after_a.device_id == "D1" and after_a.event_count == 1
    assert read_archive_text(out_dir / "X.gz") == "boot=X hello\nboot=X world\n"
    assert final is not None and final.versions == ("1.0", "1.1") and final.device_id == "D1"
    assert (tmp_path / "quarantine" / "X" / "c.gz").exists()


def test_independent_boot_ids_do_not_share_files(tmp_path: Path) -> None:
    """Different boot ids grow separate archives and metadata records."""
    config = BootlogConfig()
    runner = IngestPipelineRunner(config, default_pipeline_steps(config))
    out_dir = tmp_path / "out"

    for boot_id in ("P", "Q"):
        staged = tmp_path / "staging" / f"{boot_id}.gz"
        chunk = write_gzip_chunk(staged, f"boot={boot_id} ts=3 a\n")
        runner.run(build_work_item(chunk, out_dir))

    records = [load_metadata_record(out_dir / f"{boot_id}.yaml") for boot_id in ("P", "Q")]
    assert read_archive_text(out_dir / "P.gz") == "boot=P ts=3 a\n"
    assert read_archive_text(out_dir / "Q.gz") == "boot=Q ts=3 a\n"
    assert all(record is not None and record.end_timestamps == (3,) for record in records)
