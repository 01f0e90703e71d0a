"""
Prompt building and response parsing for AI task suggestions.
Model output is untrusted: everything is coerced or dropped, never raised.
"""
from __future__ import annotations

import json
import re
from datetime import date, datetime, time, tzinfo
from typing import Any, Dict, List, Optional, Sequence, Tuple

from taskdeck.domain.common.errors import ValidationError
from taskdeck.domain.tasks.models import Category, Priority, Task, TaskDraft
from taskdeck.domain.tasks.rules import validate_description, validate_title
from taskdeck.domain.suggestions.models import (
    MAX_CONTEXT_TASKS,
    PARSE_ERROR_DESCRIPTION,
    PARSE_ERROR_EXPLANATION,
    PARSE_ERROR_TITLE,
    SuggestionResult,
)

# Date-only due dates land at the end of that local day
DUE_TIME_FOR_DATE_ONLY = time(23, 59)

INSTRUCTIONS = (
    "You are an AI assistant integrated into a todo app. The user is asking for help with task suggestions.\n"
    "Ensure each suggestion is practical, specific, and actionable.\n"
    "Your response must be valid JSON that follows this structure exactly:\n"
    "{\n"
    '  "suggestions": [\n'
    "    {\n"
    '      "title": "Task title",\n'
    '      "description": "Task description (optional)",\n'
    '      "priority": "high|medium|low",\n'
    '      "category": "work|personal|shopping|health|other",\n'
    '      "isUrgent": true|false,\n'
    '      "isImportant": true|false,\n'
    '      "dueDate": "YYYY-MM-DD" (optional)\n'
    "    }\n"
    "  ],\n"
    '  "explanation": "Brief explanation of your suggestions (optional)"\n'
    "}\n"
    "Do not include any explanatory text outside of the JSON response."
)

_FENCED = re.compile(r"```(?:json)?\s*\n(.*?)\n?```", re.DOTALL)


def task_context(tasks: Sequence[Task]) -> List[Dict[str, Any]]:
    """The recent tasks sent along with the prompt, newest first."""
    recent = sorted(tasks, key=lambda t: t.created_at, reverse=True)[:MAX_CONTEXT_TASKS]
    return [
        {
            "title": t.title,
            "priority": t.priority.value,
            "category": t.category.value,
            "status": t.status.value,
            "dueDate": t.due_date.date().isoformat() if t.due_date else None,
        }
        for t in recent
    ]


def build_prompt(prompt: str, recent_tasks: Sequence[Task], count: int) -> Tuple[str, str]:
    """(instructions, user_message) for the provider."""
    context = task_context(recent_tasks)
    parts = [f'USER PROMPT: "{prompt.strip()}"']
    if context:
        parts.append("EXISTING TASKS (for context):\n" + json.dumps(context, ensure_ascii=False, indent=2))
    basis = "the user's request and their existing tasks" if context else "the user's request"
    parts.append(f"Based on {basis}, generate {count} task suggestions.")
    return INSTRUCTIONS, "\n\n".join(parts)


def extract_json(text: str) -> str:
    m = _FENCED.search(text)
    if m:
        return m.group(1).strip()
    return text.strip()


def parse_due_date(raw: Any, tz: Optional[tzinfo]) -> Optional[datetime]:
    if not raw or not isinstance(raw, str):
        return None
    raw = raw.strip()
    try:
        if len(raw) == 10:
            d = date.fromisoformat(raw)
            return datetime.combine(d, DUE_TIME_FOR_DATE_ONLY, tzinfo=tz)
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        if tz is None:
            return None
        dt = dt.replace(tzinfo=tz)
    return dt


def _flag(raw: Any) -> bool:
    # models sometimes answer "false" as a string
    if isinstance(raw, bool):
        return raw
    return isinstance(raw, (str, int)) and str(raw).strip().lower() in ("true", "1")


def _enum_or(enum_cls, raw: Any, fallback):
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        return fallback


def draft_from_item(item: Any, tz: Optional[tzinfo]) -> Optional[TaskDraft]:
    if not isinstance(item, dict):
        return None
    try:
        title = validate_title(item.get("title"))
        description = validate_description(item.get("description"))
    except ValidationError:
        return None
    return TaskDraft(
        title=title,
        description=description,
        priority=_enum_or(Priority, item.get("priority"), Priority.MEDIUM),
        category=_enum_or(Category, item.get("category"), Category.OTHER),
        due_date=parse_due_date(item.get("dueDate"), tz),
        is_urgent=_flag(item.get("isUrgent")),
        is_important=_flag(item.get("isImportant")),
    )


def parse_error_result() -> SuggestionResult:
    return SuggestionResult(
        suggestions=[
            TaskDraft(
                title=PARSE_ERROR_TITLE,
                description=PARSE_ERROR_DESCRIPTION,
                priority=Priority.MEDIUM,
                category=Category.OTHER,
            )
        ],
        explanation=PARSE_ERROR_EXPLANATION,
        parse_failed=True,
    )


def parse_response(text: str, tz: Optional[tzinfo] = None) -> SuggestionResult:
    try:
        payload = json.loads(extract_json(text or ""))
    except ValueError:
        return parse_error_result()
    if not isinstance(payload, dict) or not isinstance(payload.get("suggestions"), list):
        return parse_error_result()

    drafts = [d for d in (draft_from_item(i, tz) for i in payload["suggestions"]) if d is not None]
    explanation = payload.get("explanation")
    if not isinstance(explanation, str) or not explanation.strip():
        explanation = None
    return SuggestionResult(suggestions=drafts, explanation=explanation)
