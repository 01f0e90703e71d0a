from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from taskdeck.domain.templates.models import TaskTemplate


class TemplateRepository(ABC):
    @abstractmethod
    async def add(self, template: TaskTemplate) -> None: ...

    @abstractmethod
    async def update(self, template: TaskTemplate) -> None: ...

    @abstractmethod
    async def delete(self, owner_id: str, template_id: str) -> bool: ...

    @abstractmethod
    async def get(self, owner_id: str, template_id: str) -> Optional[TaskTemplate]: ...

    @abstractmethod
    async def list_for(self, owner_id: str) -> List[TaskTemplate]: ...
