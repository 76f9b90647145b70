"""ISO-8601 timestamps for deck metadata (generatedAt, lastModified, ...)."""

from datetime import datetime, timezone


def iso_timestamp(moment: datetime | None = None) -> str:
    """
    UTC timestamp in the wire format the app stores, e.g.
    '2025-01-31T09:15:02.123Z'.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.isoformat(timespec="milliseconds") + "Z"
