from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, Optional, Union

from ..core.enums import Role


@dataclass(frozen=True)
class Unrestricted:
    """Audience dimension that lets every value through."""

    def allows(self, value) -> bool:
        return True


@dataclass(frozen=True)
class RestrictedTo:
    """Audience dimension limited to an explicit set (an empty set allows nothing)."""

    values: frozenset

    def allows(self, value) -> bool:
        return value in self.values


AudienceDimension = Union[Unrestricted, RestrictedTo]

UNRESTRICTED = Unrestricted()


def wildcard_if_empty(values: Optional[Iterable]) -> AudienceDimension:
    """Stored-list convention for grades/sections: missing or empty means everyone."""
    items = frozenset(values or ())
    return RestrictedTo(items) if items else UNRESTRICTED


@dataclass(frozen=True)
class TargetAudience:
    # Roles are always an explicit restriction, unlike grades and sections.
    roles: RestrictedTo
    grades: AudienceDimension = UNRESTRICTED
    sections: AudienceDimension = UNRESTRICTED

    @classmethod
    def from_lists(
        cls,
        *,
        roles: Optional[Iterable] = None,
        grades: Optional[Iterable] = None,
        sections: Optional[Iterable] = None,
    ) -> "TargetAudience":
        return cls(
            roles=RestrictedTo(frozenset(Role(r) for r in (roles or ()))),
            grades=wildcard_if_empty(int(g) for g in (grades or ())),
            sections=wildcard_if_empty(sections),
        )

    def as_dict(self) -> dict:
        def listed(dim: AudienceDimension) -> list:
            return sorted(dim.values) if isinstance(dim, RestrictedTo) else []

        return {
            "roles": sorted(r.value for r in self.roles.values),
            "grades": listed(self.grades),
            "sections": listed(self.sections),
        }


@dataclass(frozen=True)
class CalendarEvent:
    event_id: str
    school_id: str
    title: str
    date: date
    target_audience: TargetAudience
    is_active: bool = True
    time: Optional[time] = None
    type: Optional[str] = None
    description: Optional[str] = None
