from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Mapping

from ..common.datetime_utils import parse_iso_datetime
from ..common.validators import ValidationResult, Violations, check_object_id
from ..core.constants import MAX_RANGE_DAYS

DEFAULT_WINDOW_DAYS = 30


@dataclass(frozen=True)
class CalendarQuery:
    viewer_id: str
    start_date: date
    end_date: date


def validate_calendar_query(args: Mapping[str, Any], *, now: datetime) -> ValidationResult[CalendarQuery]:
    """viewerId is required; the range defaults to the next 30 days."""
    errors = Violations()
    viewer_id = check_object_id(errors, args.get("viewerId"), "viewerId", "Viewer ID")

    start = now.date()
    end = start + timedelta(days=DEFAULT_WINDOW_DAYS)
    dates_ok = True
    for name, label in (("startDate", "start date"), ("endDate", "end date")):
        raw = args.get(name)
        if not raw:
            continue
        try:
            parsed = parse_iso_datetime(raw).date()
        except ValueError:
            errors.add(name, f"Invalid {label} format")
            dates_ok = False
            continue
        if name == "startDate":
            start = parsed
            if not args.get("endDate"):
                end = start + timedelta(days=DEFAULT_WINDOW_DAYS)
        else:
            end = parsed

    if dates_ok:
        if end < start:
            errors.add("endDate", "End date must be after start date")
        elif (end - start).days > MAX_RANGE_DAYS:
            errors.add("endDate", f"Date range cannot exceed {MAX_RANGE_DAYS} days")

    if errors:
        return errors.result()
    return errors.result(CalendarQuery(viewer_id=viewer_id, start_date=start, end_date=end))
