from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import CalendarEvent


class EventRepository(Protocol):
    def query_events(self, *, school_id: str, start_date: date, end_date: date) -> Sequence[CalendarEvent]:
        """Active events of a school in the date range, ordered by date then time."""

        raise NotImplementedError
