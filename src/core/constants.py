"""Core constants used across bootlog modules.

This module centralizes file naming and sizing defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_ARCHIVE_EXTENSION = "gz"
DEFAULT_METADATA_EXTENSION = "yaml"
DEFAULT_BUFFER_SIZE = 1048576
DEFAULT_WORKER_COUNT = 4
GZIP_MAGIC = b"\x1f\x8b"
GZIP_WBITS = 31
STAGED_TEXT_ENCODING = "utf-8"
MAX_SCANNED_LINE_BYTES = 65536
BOOT_ID_TOKEN_PREFIX = "boot="
TIMESTAMP_TOKEN_PREFIX = "ts="
UNKNOWN_TIMESTAMP = 0
QUARANTINE_NOTES_FILE_NAME = "quarantine.yaml"
METADATA_DEVICE_ID_KEY = "deviceId"
METADATA_VERSIONS_KEY = "versions"
METADATA_PACKAGE_NAMES_KEY = "packageNames"
METADATA_UPLOAD_TIMESTAMPS_KEY = "uploadTimestamps"
METADATA_START_TIMESTAMPS_KEY = "startTimestamps"
METADATA_END_TIMESTAMPS_KEY = "endTimestamps"
