from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from taskdeck.domain.common.errors import NotFoundError
from taskdeck.domain.tasks.models import Task


class TaskStore:
    """
    In-memory task collection for one client session.

    Only TaskService writes to it; views read `tasks` (ordered by `order`) on
    every render.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._by_id: Dict[str, Task] = {}
        self.replace_all(tasks)

    def replace_all(self, tasks: Iterable[Task]) -> None:
        ordered = sorted(tasks, key=lambda t: (t.order, t.created_at))
        self._by_id = {t.id: t for t in ordered}

    @property
    def tasks(self) -> List[Task]:
        return sorted(self._by_id.values(), key=lambda t: t.order)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._by_id

    def find(self, task_id: str) -> Optional[Task]:
        return self._by_id.get(task_id)

    def get(self, task_id: str) -> Task:
        task = self._by_id.get(task_id)
        if task is None:
            raise NotFoundError("Task not found.")
        return task

    def next_order(self) -> int:
        if not self._by_id:
            return 0
        return max(t.order for t in self._by_id.values()) + 1

    def put(self, task: Task) -> None:
        self._by_id[task.id] = task

    def put_many(self, tasks: Iterable[Task]) -> None:
        for t in tasks:
            self._by_id[t.id] = t

    def remove(self, task_id: str) -> Task:
        task = self.get(task_id)
        del self._by_id[task_id]
        return task
