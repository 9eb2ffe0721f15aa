from __future__ import annotations

from datetime import date, datetime, time, timedelta


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 datetime (``Z`` suffix allowed) into a naive local datetime.

    Aware values are converted to server local time first so that day-based
    rules always compare against the server's calendar day.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def end_of_tomorrow(now: datetime) -> datetime:
    return datetime.combine(now.date() + timedelta(days=1), time.max)


def age_in_days(day: date, now: datetime) -> int:
    return (now.date() - day).days


def hours_since(moment: datetime, now: datetime) -> float:
    return (now - moment).total_seconds() / 3600


def minutes_since(moment: datetime, now: datetime) -> int:
    return int((now - moment).total_seconds() // 60)
