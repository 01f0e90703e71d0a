from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from taskdeck.domain.common.errors import ValidationError
from taskdeck.domain.common.time import ensure_aware
from taskdeck.domain.tasks.models import (
    ALL,
    EDITABLE_FIELDS,
    Category,
    FilterCriteria,
    Permission,
    Priority,
    RecurrencePattern,
    TaskStatus,
)

E = TypeVar("E", bound=Enum)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000


def validate_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise ValidationError("Title is required.")
    title = title.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title is too long (max {MAX_TITLE_LENGTH} chars).")
    return title


def validate_description(description: Optional[str]) -> str:
    description = (description or "").strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description is too long (max {MAX_DESCRIPTION_LENGTH} chars).")
    return description


def coerce_enum(enum_cls: Type[E], value: Any, label: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {label} '{value}'. Allowed: {allowed}.") from None


def validate_due_date(due_date: Optional[datetime]) -> Optional[datetime]:
    if due_date is None:
        return None
    try:
        return ensure_aware(due_date)
    except ValueError:
        raise ValidationError("Due date must carry a timezone.") from None


def validate_recurrence(is_recurring: bool, pattern: Any) -> Optional[RecurrencePattern]:
    if pattern is None or pattern == "":
        return None
    return coerce_enum(RecurrencePattern, pattern, "recurrence pattern")


def validate_share_target(user_ref: Optional[str]) -> str:
    if not user_ref or not user_ref.strip():
        raise ValidationError("A user reference is required to share a task.")
    return user_ref.strip()


def validate_shared_with(raw: Optional[Mapping[str, Any]]) -> Dict[str, Permission]:
    if not raw:
        return {}
    return {
        validate_share_target(user_ref): coerce_enum(Permission, perm, "permission")
        for user_ref, perm in raw.items()
    }


def normalize_edit_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate a partial update. Unknown keys are rejected; enum-valued fields are
    coerced so callers may pass raw strings.
    """
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}.")

    out: Dict[str, Any] = {}
    for key, value in fields.items():
        if key == "title":
            out[key] = validate_title(value)
        elif key == "description":
            out[key] = validate_description(value)
        elif key == "priority":
            out[key] = coerce_enum(Priority, value, "priority")
        elif key == "category":
            out[key] = coerce_enum(Category, value, "category")
        elif key == "status":
            out[key] = coerce_enum(TaskStatus, value, "status")
        elif key == "due_date":
            out[key] = validate_due_date(value)
        elif key == "recurrence_pattern":
            out[key] = validate_recurrence(True, value)
        elif key == "shared_with":
            out[key] = validate_shared_with(value)
        elif key in ("is_recurring", "is_urgent", "is_important"):
            out[key] = bool(value)
        else:
            out[key] = value
    return out


def make_criteria(
    status: Any = ALL,
    priority: Any = ALL,
    category: Any = ALL,
    search: str = "",
) -> FilterCriteria:
    """Build criteria from raw values, validating everything that is not ALL."""

    def pick(enum_cls: Type[E], value: Any, label: str) -> str:
        if value is None or str(value).lower() == ALL:
            return ALL
        return coerce_enum(enum_cls, value, label).value

    return FilterCriteria(
        status=pick(TaskStatus, status, "status"),
        priority=pick(Priority, priority, "priority"),
        category=pick(Category, category, "category"),
        search=search or "",
    )
