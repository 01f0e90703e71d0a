from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from taskdeck.domain.tasks.models import TaskDraft

DEFAULT_SUGGESTION_COUNT = 3
MAX_CONTEXT_TASKS = 10

PARSE_ERROR_TITLE = "Error parsing suggestions"
PARSE_ERROR_DESCRIPTION = "Try a different prompt or contact support if this persists."
PARSE_ERROR_EXPLANATION = "Could not parse AI response properly."


@dataclass(frozen=True)
class SuggestionResult:
    suggestions: List[TaskDraft] = field(default_factory=list)
    explanation: Optional[str] = None
    error: Optional[str] = None
    parse_failed: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and not self.parse_failed

    @classmethod
    def fail(cls, error: str) -> "SuggestionResult":
        return cls(error=error)
