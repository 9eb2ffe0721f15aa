from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import PolicyDenial
from ..schools.model import SchoolAttendancePolicy
from .model import AttendanceRecord
from .rules.base import ModificationRule
from .rules.edit_window_rule import EditWindowRule
from .rules.lock_age_rule import LockAgeRule


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: Optional[PolicyDenial] = None


ALLOWED = PolicyDecision(allowed=True)


def default_rules() -> tuple[ModificationRule, ...]:
    # Order is the reporting precedence: age lock first.
    return (LockAgeRule(), EditWindowRule())


@dataclass(frozen=True)
class AttendancePolicyEngine:
    """Decides whether an existing mark may be changed.

    Pure: the decision depends only on the record, the injected policy and
    ``now``. Creating a mark for a new key is never gated here.
    """

    rules: Sequence[ModificationRule] = field(default_factory=default_rules)

    def can_modify(
        self, record: Optional[AttendanceRecord], policy: SchoolAttendancePolicy, now: datetime
    ) -> PolicyDecision:
        if record is None:
            return ALLOWED
        for rule in self.rules:
            reason = rule.deny(record=record, policy=policy, now=now)
            if reason is not None:
                return PolicyDecision(allowed=False, reason=reason)
        return ALLOWED


def can_modify(record: Optional[AttendanceRecord], policy: SchoolAttendancePolicy, now: datetime) -> PolicyDecision:
    return AttendancePolicyEngine().can_modify(record, policy, now)
