from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from ..core.exceptions import NotFoundError
from ..users.repository import UserRepository
from .matcher import filter_visible
from .model import CalendarEvent
from .repository import EventRepository

logger = logging.getLogger(__name__)


class EventService:
    def __init__(self, events: EventRepository, users: UserRepository):
        self._events = events
        self._users = users

    def events_for_viewer(self, *, viewer_id: str, start: date, end: date) -> Sequence[CalendarEvent]:
        viewer = self._users.get_viewer(viewer_id)
        if not viewer:
            logger.info("calendar requested for unknown viewer %s", viewer_id)
            raise NotFoundError("Viewer not found")

        candidates = self._events.query_events(school_id=viewer.school_id, start_date=start, end_date=end)
        visible = filter_visible(viewer, candidates)
        logger.debug("viewer %s sees %d of %d events", viewer_id, len(visible), len(candidates))
        return visible
