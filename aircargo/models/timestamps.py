from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC: every DateTime column in the schema is stored without tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)
