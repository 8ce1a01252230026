from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional

from medialab_assistant.domain.entities import (
    CategoryEntity,
    PriorityEntity,
    ReminderEntity,
    TaskEntity,
)
from medialab_assistant.domain.enums import ReminderType, TaskStatus
from medialab_assistant.domain.errors import StorageError

logger = logging.getLogger(__name__)

CATEGORIES_FILE = "categories.json"
PRIORITIES_FILE = "priorities.json"
TASKS_FILE = "tasks.json"
REMINDERS_FILE = "reminders.json"


@dataclass
class Snapshot:
    categories: list[CategoryEntity] = field(default_factory=list)
    priorities: list[PriorityEntity] = field(default_factory=list)
    tasks: list[TaskEntity] = field(default_factory=list)
    reminders: list[ReminderEntity] = field(default_factory=list)


def _format_date(value: Optional[date]) -> str | None:
    return value.isoformat() if value else None


def _parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    return date.fromisoformat(value)


def _category_to_dict(category: CategoryEntity) -> dict:
    return {"id": category.id, "name": category.name}


def _category_from_dict(raw: dict) -> CategoryEntity:
    return CategoryEntity(id=raw["id"], name=raw["name"])


def _priority_to_dict(priority: PriorityEntity) -> dict:
    return {"id": priority.id, "name": priority.name}


def _priority_from_dict(raw: dict) -> PriorityEntity:
    return PriorityEntity(id=raw["id"], name=raw["name"])


def _task_to_dict(task: TaskEntity) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "categoryId": task.category_id,
        "priorityId": task.priority_id,
        "deadline": _format_date(task.deadline),
        "status": task.status.value,
    }


def _task_from_dict(raw: dict) -> TaskEntity:
    return TaskEntity(
        id=raw["id"],
        title=raw["title"],
        description=raw.get("description") or "",
        category_id=raw.get("categoryId"),
        priority_id=raw["priorityId"],
        deadline=_parse_date(raw.get("deadline")),
        status=TaskStatus(raw.get("status", TaskStatus.OPEN.value)),
    )


def _reminder_to_dict(reminder: ReminderEntity) -> dict:
    return {
        "id": reminder.id,
        "taskId": reminder.task_id,
        "type": reminder.type.value,
        "reminderDate": _format_date(reminder.reminder_date),
    }


def _reminder_from_dict(raw: dict) -> ReminderEntity:
    reminder_date = _parse_date(raw["reminderDate"])
    if reminder_date is None:
        raise ValueError("reminderDate is empty")
    return ReminderEntity(
        id=raw["id"],
        task_id=raw["taskId"],
        type=ReminderType(raw["type"]),
        reminder_date=reminder_date,
    )


class JsonRepository:
    """Reads and writes the four collections, one JSON array per file."""

    def __init__(self, data_dir: Path | str) -> None:
        self._data_dir = Path(data_dir)

    def load_all(self) -> Snapshot:
        snapshot = Snapshot(
            categories=self._read(CATEGORIES_FILE, _category_from_dict),
            priorities=self._read(PRIORITIES_FILE, _priority_from_dict),
            tasks=self._read(TASKS_FILE, _task_from_dict),
            reminders=self._read(REMINDERS_FILE, _reminder_from_dict),
        )
        logger.info(
            "Loaded %d categories, %d priorities, %d tasks, %d reminders from %s",
            len(snapshot.categories),
            len(snapshot.priorities),
            len(snapshot.tasks),
            len(snapshot.reminders),
            self._data_dir,
        )
        return snapshot

    def save_all(
        self,
        categories: Sequence[CategoryEntity],
        priorities: Sequence[PriorityEntity],
        tasks: Sequence[TaskEntity],
        reminders: Sequence[ReminderEntity],
    ) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._write(CATEGORIES_FILE, [_category_to_dict(c) for c in categories])
        self._write(PRIORITIES_FILE, [_priority_to_dict(p) for p in priorities])
        self._write(TASKS_FILE, [_task_to_dict(t) for t in tasks])
        self._write(REMINDERS_FILE, [_reminder_to_dict(r) for r in reminders])
        logger.info(
            "Saved %d categories, %d priorities, %d tasks, %d reminders to %s",
            len(categories),
            len(priorities),
            len(tasks),
            len(reminders),
            self._data_dir,
        )

    def _read(self, file_name: str, convert: Callable[[dict], Any]) -> list:
        path = self._data_dir / file_name
        if not path.exists():
            logger.debug("%s not found, starting empty", path)
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise StorageError(f"{path} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc

        if not isinstance(raw, list):
            raise StorageError(f"{path} must contain a JSON array")
        try:
            items = [convert(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"{path} contains an invalid record: {exc!r}") from exc
        logger.debug("Read %d records from %s", len(items), path)
        return items

    def _write(self, file_name: str, payload: list[dict]) -> None:
        path = self._data_dir / file_name
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        logger.debug("Wrote %d records to %s", len(payload), path)
