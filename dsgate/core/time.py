from __future__ import annotations

from datetime import datetime, timezone


def utc_timestamp_iso_z() -> str:
    """Millisecond-precision UTC timestamp, e.g. 2024-05-01T12:30:45.123Z."""

    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def filename_stamp(timestamp: str) -> str:
    """Make an ISO-8601 timestamp filename-safe (colons and dots become dashes)."""

    return timestamp.replace(":", "-").replace(".", "-")
