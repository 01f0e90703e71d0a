from __future__ import annotations

from typing import Iterable, List, Optional

from taskdeck.domain.common.errors import ValidationError
from taskdeck.domain.tasks.models import TaskDraft
from taskdeck.domain.tasks.rules import MAX_TITLE_LENGTH
from taskdeck.domain.templates.models import TaskTemplate

MAX_ESTIMATE_MINUTES = 24 * 60


def validate_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Template name is required.")
    if len(name) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Template name is too long (max {MAX_TITLE_LENGTH} chars).")
    return name


def clean_steps(steps: Iterable[str]) -> List[str]:
    return [s.strip() for s in steps if s and s.strip()]


def validate_estimate(minutes: Optional[int]) -> Optional[int]:
    if minutes is None:
        return None
    if not 1 <= minutes <= MAX_ESTIMATE_MINUTES:
        raise ValidationError(f"Estimated duration must be between 1 and {MAX_ESTIMATE_MINUTES} minutes.")
    return minutes


def search_templates(templates: Iterable[TaskTemplate], query: str) -> List[TaskTemplate]:
    needle = (query or "").strip().lower()
    if not needle:
        return list(templates)
    return [t for t in templates if needle in t.name.lower() or needle in t.description.lower()]


def describe_with_steps(description: str, steps: Iterable[str]) -> str:
    lines = [f"- [ ] {s}" for s in steps]
    if not lines:
        return description
    checklist = "\n".join(lines)
    return f"{description}\n\n{checklist}" if description else checklist


def draft_from_template(template: TaskTemplate) -> TaskDraft:
    return TaskDraft(
        title=template.name,
        description=describe_with_steps(template.description, template.steps),
        priority=template.priority,
        category=template.category,
    )
