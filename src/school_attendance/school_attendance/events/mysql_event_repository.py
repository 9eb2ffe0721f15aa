from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_time
from .model import CalendarEvent, TargetAudience
from .repository import EventRepository

logger = logging.getLogger(__name__)


def _json_list(value: Any) -> list:
    """JSON columns arrive as str/bytes depending on the connector build."""
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        value = json.loads(value) if value.strip() else []
    return list(value or [])


def _known_roles(values: list, *, event_id: str) -> list[str]:
    """Drop role names this service does not know; the event stays visible to the rest."""
    known = {r.value for r in Role}
    unknown = [v for v in values if v not in known]
    if unknown:
        logger.warning("event %s targets unknown roles %s", event_id, unknown)
    return [v for v in values if v in known]


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def query_events(self, *, school_id: str, start_date: date, end_date: date) -> Sequence[CalendarEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT event_id, school_id, title, event_type, description, event_date, event_time, is_active,
                       target_roles, target_grades, target_sections
                FROM events
                WHERE school_id=%s AND is_active=1 AND event_date BETWEEN %s AND %s
                ORDER BY event_date ASC, event_time ASC
                """,
                (school_id, start_date, end_date),
            )
            return [
                CalendarEvent(
                    event_id=r["event_id"],
                    school_id=r["school_id"],
                    title=r["title"],
                    type=r.get("event_type"),
                    description=r.get("description"),
                    date=r["event_date"],
                    time=normalize_mysql_time(r.get("event_time")),
                    is_active=bool(r["is_active"]),
                    target_audience=TargetAudience.from_lists(
                        roles=_known_roles(_json_list(r.get("target_roles")), event_id=r["event_id"]),
                        grades=_json_list(r.get("target_grades")),
                        sections=_json_list(r.get("target_sections")),
                    ),
                )
                for r in fetchall(cur)
            ]
