from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_timestamp(value):
    """Coerce a datetime, date or ISO-8601 string to an aware UTC datetime.

    Naive datetimes are taken as UTC and plain dates become midnight UTC.
    Blank or unparseable values yield None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        if value_text.endswith("Z"):
            value_text = value_text[:-1] + "+00:00"
        try:
            return normalize_timestamp(datetime.fromisoformat(value_text))
        except ValueError:
            return None
    return None


def same_day(left, right) -> bool:
    left_ts = normalize_timestamp(left)
    right_ts = normalize_timestamp(right)
    if left_ts is None or right_ts is None:
        return False
    return left_ts.date() == right_ts.date()
