"""JSONL work manifests.

Each manifest line describes one staged chunk and its upload context.
Relative paths are resolved against the manifest's directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.errors import BootlogWorkSourceError
from core.types import WorkItem

_STRING_FIELDS = ("staging_path", "output_dir", "device_id", "package_name", "version")


def read_work_items(manifest_path: Path) -> list[WorkItem]:
    """Load work items from a JSONL manifest.

    Args:
        manifest_path: Manifest file path.

    Returns:
        Work items in manifest order.

    Raises:
        BootlogWorkSourceError: If the manifest is unreadable or invalid.
    """
    try:
        body = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise BootlogWorkSourceError(
            f"Failed to read work manifest {manifest_path}: {error}. "
            "Provide an existing UTF-8 JSONL file."
        ) from error
    base_dir = manifest_path.parent
    work_items: list[WorkItem] = []
    for line_number, line in enumerate(body.splitlines(), 1):
        if not line.strip():
            continue
        payload = _parse_manifest_line(manifest_path, line, line_number)
        work_items.append(_work_item_from_payload(base_dir, payload))
    return work_items


def _parse_manifest_line(manifest_path: Path, line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one manifest row.

    Args:
        manifest_path: Manifest path for error context.
        line: Raw JSON text line.
        line_number: One-based line number.

    Returns:
        Validated payload.

    Raises:
        BootlogWorkSourceError: If the line is not a valid work item.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise BootlogWorkSourceError(
            f"Failed to parse work manifest at {manifest_path}:{line_number}: "
            f"{error.msg}. Fix the JSON syntax and retry."
        ) from error
    if not isinstance(payload, dict):
        raise BootlogWorkSourceError(
            f"Invalid work item at {manifest_path}:{line_number}: expected a JSON object."
        )
    for field_name in _STRING_FIELDS:
        value = payload.get(field_name)
        if not isinstance(value, str) or not value:
            raise BootlogWorkSourceError(
                f"Invalid work item at {manifest_path}:{line_number}: "
                f"expected non-empty string field '{field_name}'."
            )
    upload_timestamp = payload.get("upload_timestamp")
    if not isinstance(upload_timestamp, int) or isinstance(upload_timestamp, bool):
        raise BootlogWorkSourceError(
            f"Invalid work item at {manifest_path}:{line_number}: "
            "expected integer field 'upload_timestamp'."
        )
    return payload


def _work_item_from_payload(base_dir: Path, payload: dict[str, Any]) -> WorkItem:
    return WorkItem(
        staging_path=base_dir / Path(payload["staging_path"]).expanduser(),
        output_dir=base_dir / Path(payload["output_dir"]).expanduser(),
        device_id=payload["device_id"],
        package_name=payload["package_name"],
        version=payload["version"],
        upload_timestamp=payload["upload_timestamp"],
    )
