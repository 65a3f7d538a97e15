from datetime import UTC, datetime
from typing import Any


def utcnow() -> datetime:
    return datetime.now(UTC)


def encode_timestamp(value: datetime) -> datetime:
    """Normalize a datetime for storage as a Firestore timestamp.

    Naive values are taken to be UTC. The client library writes aware
    datetimes as native timestamps.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def decode_timestamp(value: Any) -> datetime:
    """Turn a stored timestamp back into a plain UTC datetime.

    Firestore hands back ``DatetimeWithNanoseconds``; it is rebuilt as a plain
    ``datetime`` so values compare and serialize like any other.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if not isinstance(value, datetime):
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    value = encode_timestamp(value)
    return datetime(
        value.year,
        value.month,
        value.day,
        value.hour,
        value.minute,
        value.second,
        value.microsecond,
        tzinfo=UTC,
    )
