from __future__ import annotations

import logging
from typing import Optional, Sequence

from taskdeck.domain.common.errors import RemoteError
from taskdeck.domain.common.models import MutationResult
from taskdeck.domain.common.ports import Clock
from taskdeck.domain.suggestions.models import DEFAULT_SUGGESTION_COUNT, SuggestionResult
from taskdeck.domain.suggestions.ports import SuggestionProvider
from taskdeck.domain.suggestions.rules import build_prompt, parse_response
from taskdeck.domain.tasks.models import Task, TaskDraft
from taskdeck.domain.tasks.service import TaskService

logger = logging.getLogger(__name__)

MAX_SUGGESTION_COUNT = 10
NOT_CONFIGURED = "AI suggestions are not configured."
UNAVAILABLE = "AI suggestions are not available right now. Please try again later."


class SuggestionService:
    """
    provider=None means no API key was configured; every call then returns an
    error result without touching the network.
    """

    def __init__(self, provider: Optional[SuggestionProvider], clock: Clock) -> None:
        self._provider = provider
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._provider is not None

    async def suggest(
        self,
        prompt: str,
        recent_tasks: Sequence[Task] = (),
        count: int = DEFAULT_SUGGESTION_COUNT,
    ) -> SuggestionResult:
        if self._provider is None:
            return SuggestionResult.fail(NOT_CONFIGURED)
        if not prompt or not prompt.strip():
            return SuggestionResult.fail("Please describe what you need help with.")
        count = max(1, min(MAX_SUGGESTION_COUNT, count))

        instructions, user_message = build_prompt(prompt, recent_tasks, count)
        try:
            text = await self._provider.complete(instructions, user_message)
        except RemoteError as e:
            logger.warning("Suggestion request failed: %s", e, exc_info=True)
            return SuggestionResult.fail(UNAVAILABLE)

        result = parse_response(text, self._clock.tz)
        if result.parse_failed:
            logger.warning("Suggestion response could not be parsed (len=%d)", len(text or ""))
        return result

    async def accept(self, tasks: TaskService, draft: TaskDraft) -> MutationResult[Task]:
        return await tasks.create(draft)
