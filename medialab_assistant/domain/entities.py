from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from .enums import ReminderType, TaskStatus

DEFAULT_PRIORITY_NAME = "Default"


def new_id() -> str:
    return str(uuid.uuid4())


def is_default_priority_name(name: str | None) -> bool:
    return (name or "").strip().lower() == DEFAULT_PRIORITY_NAME.lower()


@dataclass(frozen=True)
class CategoryEntity:
    id: str
    name: str

    @classmethod
    def create(cls, name: str) -> CategoryEntity:
        return cls(id=new_id(), name=name)


@dataclass(frozen=True)
class PriorityEntity:
    id: str
    name: str

    @classmethod
    def create(cls, name: str) -> PriorityEntity:
        return cls(id=new_id(), name=name)

    @property
    def is_default_name(self) -> bool:
        return is_default_priority_name(self.name)


@dataclass(frozen=True)
class TaskEntity:
    id: str
    title: str
    description: str
    category_id: str | None
    priority_id: str
    deadline: Optional[date]
    status: TaskStatus = TaskStatus.OPEN

    @classmethod
    def create(
        cls,
        title: str,
        description: str,
        category_id: str | None,
        priority_id: str,
        deadline: Optional[date],
    ) -> TaskEntity:
        return cls(
            id=new_id(),
            title=title,
            description=description,
            category_id=category_id,
            priority_id=priority_id,
            deadline=deadline,
        )

    def should_be_delayed(self, today: date) -> bool:
        """A task is overdue once its deadline has passed, unless completed."""
        if self.status == TaskStatus.COMPLETED or self.deadline is None:
            return False
        return self.deadline < today

    def reconciled(self, today: date) -> TaskEntity:
        if self.status != TaskStatus.DELAYED and self.should_be_delayed(today):
            return replace(self, status=TaskStatus.DELAYED)
        return self


@dataclass(frozen=True)
class ReminderEntity:
    id: str
    task_id: str
    type: ReminderType
    reminder_date: date

    @classmethod
    def create(cls, task_id: str, reminder_type: ReminderType, reminder_date: date) -> ReminderEntity:
        return cls(id=new_id(), task_id=task_id, type=reminder_type, reminder_date=reminder_date)


@dataclass(frozen=True)
class TaskStats:
    total: int
    completed: int
    delayed: int
    due_within_week: int
