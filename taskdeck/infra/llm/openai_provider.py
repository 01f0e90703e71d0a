"""
Task suggestions through the OpenAI Responses API.
Never logs the API key or user prompts.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import openai
from openai import OpenAI

from taskdeck.domain.common.errors import RemoteError
from taskdeck.domain.suggestions.ports import SuggestionProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
MAX_OUTPUT_TOKENS = 2048
TEMPERATURE = 0.7


def response_text(response: Any) -> str:
    """Prefer the SDK convenience property; else walk output for output_text blocks."""
    text = getattr(response, "output_text", None)
    if isinstance(text, str) and text.strip():
        return text.strip()

    for item in getattr(response, "output", None) or []:
        for block in getattr(item, "content", None) or []:
            if getattr(block, "type", None) == "output_text":
                t = getattr(block, "text", None)
                if isinstance(t, str) and t.strip():
                    return t.strip()
    return ""


class OpenAISuggestionProvider(SuggestionProvider):
    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, client: Optional[OpenAI] = None) -> None:
        self._model = model
        self._client = client or OpenAI(api_key=api_key)

    def _complete_sync(self, instructions: str, user_message: str) -> str:
        try:
            response = self._client.responses.create(
                model=self._model,
                instructions=instructions,
                input=user_message,
                max_output_tokens=MAX_OUTPUT_TOKENS,
                temperature=TEMPERATURE,
            )
        except openai.OpenAIError as e:
            raise RemoteError(f"OpenAI request failed: {type(e).__name__}") from e

        text = response_text(response)
        if not text:
            raise RemoteError("OpenAI returned an empty response")
        return text

    async def complete(self, instructions: str, user_message: str) -> str:
        # the SDK client is synchronous here; run it off the event loop
        return await asyncio.to_thread(self._complete_sync, instructions, user_message)
