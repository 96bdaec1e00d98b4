"""clock.py - UTC timestamp helper used for every record's ``time`` field."""

from datetime import datetime, timezone


def now_utc() -> str:
    """Return the current instant as an ISO-8601 UTC string.

    Millisecond precision with a ``Z`` suffix, e.g.
    ``"2024-01-15T12:34:56.789Z"``.
    """
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
