from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple


ALL = "all"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Category(str, Enum):
    WORK = "work"
    PERSONAL = "personal"
    SHOPPING = "shopping"
    HEALTH = "health"
    OTHER = "other"


class TaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class RecurrencePattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Permission(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"


class ViewType(str, Enum):
    GRID = "grid"
    LIST = "list"
    CALENDAR = "calendar"
    MATRIX = "matrix"
    ANALYTICS = "analytics"


class Quadrant(str, Enum):
    URGENT_IMPORTANT = "urgent-important"
    URGENT_NOT_IMPORTANT = "urgent-not-important"
    NOT_URGENT_IMPORTANT = "not-urgent-important"
    NOT_URGENT_NOT_IMPORTANT = "not-urgent-not-important"

    @property
    def flags(self) -> Tuple[bool, bool]:
        """(is_urgent, is_important) fixed for this quadrant."""
        return _QUADRANT_FLAGS[self]

    @classmethod
    def of(cls, is_urgent: bool, is_important: bool) -> "Quadrant":
        for q, flags in _QUADRANT_FLAGS.items():
            if flags == (bool(is_urgent), bool(is_important)):
                return q
        raise AssertionError("unreachable")


_QUADRANT_FLAGS = {
    Quadrant.URGENT_IMPORTANT: (True, True),
    Quadrant.URGENT_NOT_IMPORTANT: (True, False),
    Quadrant.NOT_URGENT_IMPORTANT: (False, True),
    Quadrant.NOT_URGENT_NOT_IMPORTANT: (False, False),
}


@dataclass(frozen=True)
class Task:
    id: str
    owner_id: str
    title: str
    description: str
    priority: Priority
    category: Category
    status: TaskStatus
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]
    order: int
    is_recurring: bool = False
    recurrence_pattern: Optional[RecurrencePattern] = None
    is_urgent: bool = False
    is_important: bool = False
    shared_with: Dict[str, Permission] = field(default_factory=dict)
    calendar_event_id: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def quadrant(self) -> Quadrant:
        return Quadrant.of(self.is_urgent, self.is_important)


@dataclass(frozen=True)
class TaskDraft:
    """Task shape without identity, timestamps or derived fields."""
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    category: Category = Category.OTHER
    due_date: Optional[datetime] = None
    is_recurring: bool = False
    recurrence_pattern: Optional[RecurrencePattern] = None
    is_urgent: bool = False
    is_important: bool = False


@dataclass(frozen=True)
class FilterCriteria:
    # each field holds an enum value or ALL
    status: str = ALL
    priority: str = ALL
    category: str = ALL
    search: str = ""

    @property
    def is_default(self) -> bool:
        return (
            self.status == ALL
            and self.priority == ALL
            and self.category == ALL
            and not self.search.strip()
        )


# fields a caller may replace through an edit
EDITABLE_FIELDS = frozenset(
    {
        "title",
        "status",
        "description",
        "priority",
        "category",
        "due_date",
        "is_recurring",
        "recurrence_pattern",
        "is_urgent",
        "is_important",
        "shared_with",
        "calendar_event_id",
    }
)
