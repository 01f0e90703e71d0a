from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Sequence

from taskdeck.domain.tasks.models import Task


class TaskRepository(ABC):
    """
    Remote document store for tasks. Every method raises RemoteError on
    failure; nothing is retried here.
    """

    @abstractmethod
    async def create_task(self, task: Task) -> Task: ...

    @abstractmethod
    async def update_task(self, owner_id: str, task_id: str, fields: Dict[str, Any]) -> None: ...

    @abstractmethod
    async def update_orders(self, owner_id: str, orders: Dict[str, int]) -> None: ...

    @abstractmethod
    async def update_task_and_orders(
        self,
        owner_id: str,
        task_id: str,
        fields: Dict[str, Any],
        orders: Dict[str, int],
    ) -> None:
        """Apply both writes or neither."""

    @abstractmethod
    async def delete_task(self, owner_id: str, task_id: str) -> None: ...

    @abstractmethod
    async def list_tasks(self, owner_id: str) -> Sequence[Task]: ...
