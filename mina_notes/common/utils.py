from datetime import datetime, timedelta, timezone

from mina_notes.common.errors import BadRequestError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite rend des datetimes naïfs
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def next_timestamp(previous: datetime | None) -> datetime:
    """Horodatage courant, strictement postérieur à ``previous``."""
    now = utcnow()
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def parse_id(value: str, message: str) -> int:
    """Identifiant d'URL -> int, sinon 400 avec ``message``."""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequestError(message) from None
