from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from taskdeck.domain.tasks.models import Category, Priority


@dataclass(frozen=True)
class TaskTemplate:
    id: str
    name: str
    description: str
    priority: Priority
    category: Category
    created_at: datetime
    created_by: str
    estimated_minutes: Optional[int] = None
    steps: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TemplateDraft:
    name: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    category: Category = Category.OTHER
    estimated_minutes: Optional[int] = None
    steps: List[str] = field(default_factory=list)
