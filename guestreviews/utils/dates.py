import datetime as dt


def parse_instant(value: str) -> dt.datetime:
    """Parse an ISO-ish timestamp into an aware UTC datetime.

    Accepts a trailing 'Z', explicit offsets and the space-separated
    'YYYY-MM-DD HH:MM:SS' form. Naive values are taken as UTC.
    Raises ValueError when the string is not a date.
    """
    s = value.strip()
    if not s:
        raise ValueError("empty timestamp")
    parsed = dt.datetime.fromisoformat(s.replace('Z', '+00:00').replace('z', '+00:00'))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def to_iso(value: dt.datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S') + f'.{value.microsecond // 1000:03d}Z'


def to_naive_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
