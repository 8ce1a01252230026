from __future__ import annotations

from dataclasses import dataclass

from .entities import TaskEntity


@dataclass(frozen=True)
class TaskFilters:
    title: str | None = None
    category_id: str | None = None
    priority_id: str | None = None

    def matches(self, task: TaskEntity) -> bool:
        if self.title and self.title.lower() not in (task.title or "").lower():
            return False
        if self.category_id is not None and task.category_id != self.category_id:
            return False
        if self.priority_id is not None and task.priority_id != self.priority_id:
            return False
        return True
