from datetime import datetime, timezone as dt_timezone


def utcnow() -> datetime:
    """Current time as UTC-naive, the form stored in every DateTime column."""
    return datetime.now(dt_timezone.utc).replace(tzinfo=None)
