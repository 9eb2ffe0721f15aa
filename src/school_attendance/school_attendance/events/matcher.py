from __future__ import annotations

from typing import Iterable

from ..users.model import Viewer
from .model import CalendarEvent


def matches(viewer: Viewer, event: CalendarEvent) -> bool:
    """Whether ``event`` is visible to ``viewer``.

    Active, role listed, and grade/section either unrestricted or listed.
    """
    if not event.is_active:
        return False
    audience = event.target_audience
    return (
        audience.roles.allows(viewer.role)
        and audience.grades.allows(viewer.grade)
        and audience.sections.allows(viewer.section)
    )


def filter_visible(viewer: Viewer, events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
    return [e for e in events if matches(viewer, e)]
