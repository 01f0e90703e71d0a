from __future__ import annotations

from abc import ABC, abstractmethod


class SuggestionProvider(ABC):
    """Hosted LLM. Returns raw model text; raises RemoteError on failure."""

    @abstractmethod
    async def complete(self, instructions: str, user_message: str) -> str: ...
