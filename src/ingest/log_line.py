"""Default log-line tokenizer.

Hosts with their own log format inject a different parser into the
pipeline steps; this one understands ``key=value`` tokens.
"""

from __future__ import annotations

from core.constants import BOOT_ID_TOKEN_PREFIX, TIMESTAMP_TOKEN_PREFIX
from core.types import ParsedLogLine


def parse_log_line(line: str) -> ParsedLogLine | None:
    """Extract boot id and event time from one log line.

    A line is parseable when it carries a non-empty ``boot=<id>`` token.
    An optional ``ts=<nanoseconds>`` token supplies the event time.

    Args:
        line: One line of decoded log text.

    Returns:
        Parsed line, or None when the line carries no usable boot id.
    """
    boot_id: str | None = None
    timestamp: int | None = None
    for token in line.split():
        if token.startswith(BOOT_ID_TOKEN_PREFIX) and boot_id is None:
            boot_id = token[len(BOOT_ID_TOKEN_PREFIX) :]
        elif token.startswith(TIMESTAMP_TOKEN_PREFIX) and timestamp is None:
            timestamp = _parse_timestamp(token[len(TIMESTAMP_TOKEN_PREFIX) :])
            if timestamp is None:
                return None
    if not boot_id:
        return None
    return ParsedLogLine(boot_id=boot_id, timestamp=timestamp)


def _parse_timestamp(raw_value: str) -> int | None:
    """Parse a nanosecond timestamp token value."""
    if not raw_value.isdigit():
        return None
    return int(raw_value)
