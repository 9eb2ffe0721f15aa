from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.web import login_required
from ..container import Container
from .validation import validate_calendar_query


def register(app: Flask, container: Container) -> None:
    @app.route("/api/calendar-events", methods=["GET"], endpoint="calendar_events")
    @login_required
    def calendar_events():
        query = validate_calendar_query(request.args, now=now_local()).unwrap()
        events = container.event_service.events_for_viewer(
            viewer_id=query.viewer_id, start=query.start_date, end=query.end_date
        )
        return jsonify(
            {
                "success": True,
                "data": [
                    {
                        "id": e.event_id,
                        "title": e.title,
                        "type": e.type,
                        "description": e.description,
                        "date": e.date.isoformat(),
                        "time": e.time.strftime("%H:%M") if e.time else None,
                        "targetAudience": e.target_audience.as_dict(),
                    }
                    for e in events
                ],
            }
        )
