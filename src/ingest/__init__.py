"""Staged log chunk ingestion.

This package resolves boot sessions for staged chunks and runs the
ordered ingest stages that grow per-boot archives and metadata.
"""
