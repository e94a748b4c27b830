# webapp/routes/__init__.py

from datetime import datetime, timezone


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp for response envelopes."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
