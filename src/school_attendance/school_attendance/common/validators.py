from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from ..core.exceptions import ValidationError

OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
SECTION_RE = re.compile(r"^[A-Z]$")
DIGITS_RE = re.compile(r"^\d+$")

T = TypeVar("T")


@dataclass(frozen=True)
class Violation:
    path: str
    message: str

    def as_dict(self) -> dict:
        return {"path": self.path, "message": self.message}


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Either a typed value (ok) or the list of violations found."""

    value: Optional[T] = None
    violations: tuple[Violation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations

    def unwrap(self) -> T:
        if self.violations:
            raise ValidationError(self.violations)
        return self.value


@dataclass
class Violations:
    """Accumulates violations; checks never short-circuit."""

    items: list[Violation] = field(default_factory=list)

    def add(self, path: str, message: str) -> None:
        self.items.append(Violation(path, message))

    def __bool__(self) -> bool:
        return bool(self.items)

    def result(self, value: Any = None) -> ValidationResult:
        if self.items:
            return ValidationResult(violations=tuple(self.items))
        return ValidationResult(value=value)


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and bool(OBJECT_ID_RE.match(value))


def check_object_id(errors: Violations, value: Any, path: str, label: str, *, required: bool = True) -> Optional[str]:
    if value is None or value == "":
        if required:
            errors.add(path, f"{label} is required")
        return None
    if not is_object_id(value):
        errors.add(path, f"Invalid {label[0].lower() + label[1:]} format")
        return None
    # canonical lower-case so the composite key matches regardless of spelling
    return value.lower()
