from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import date, timedelta
from typing import Optional, TypeVar

from medialab_assistant.domain.dates import reminder_date_for
from medialab_assistant.domain.entities import (
    DEFAULT_PRIORITY_NAME,
    CategoryEntity,
    PriorityEntity,
    ReminderEntity,
    TaskEntity,
    TaskStats,
    is_default_priority_name,
)
from medialab_assistant.domain.enums import ReminderType, TaskStatus
from medialab_assistant.domain.errors import ValidationError
from medialab_assistant.domain.filters import TaskFilters
from medialab_assistant.infra.repository import JsonRepository

logger = logging.getLogger(__name__)

CategoryRef = CategoryEntity | str
PriorityRef = PriorityEntity | str
TaskRef = TaskEntity | str
ReminderRef = ReminderEntity | str

_E = TypeVar("_E", CategoryEntity, PriorityEntity, TaskEntity, ReminderEntity)


def _ref_id(ref: object) -> str | None:
    if ref is None:
        return None
    if isinstance(ref, str):
        return ref
    return ref.id  # type: ignore[attr-defined]


def _find(items: list[_E], entity_id: str | None) -> Optional[_E]:
    if entity_id is None:
        return None
    return next((item for item in items if item.id == entity_id), None)


def _swap(items: list[_E], entity: _E) -> list[_E]:
    return [entity if item.id == entity.id else item for item in items]


def _require_text(value: str | None, what: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{what} must not be empty.")
    return value


class DataManager:
    """Owns categories, priorities, tasks and reminders and enforces the rules between them.

    Every mutation validates first and only then touches the collections, so a
    rejected call leaves all four exactly as they were. Collections are handed
    out as tuples of frozen entities; callers never get the live lists.
    """

    def __init__(self, repo: JsonRepository, today: Callable[[], date] = date.today) -> None:
        self._repo = repo
        self._today = today
        self._categories: list[CategoryEntity] = []
        self._priorities: list[PriorityEntity] = []
        self._tasks: list[TaskEntity] = []
        self._reminders: list[ReminderEntity] = []
        self._default_priority_id = ""
        self.ensure_default_priority()

    # Load / save

    def load(self) -> None:
        snapshot = self._repo.load_all()
        self._categories = list(snapshot.categories)
        self._priorities = list(snapshot.priorities)
        self._tasks = list(snapshot.tasks)
        self._reminders = list(snapshot.reminders)
        self._default_priority_id = ""

        self.ensure_default_priority()
        self._repair_references()
        self.reconcile_delayed_tasks()

    def save(self) -> None:
        self._repo.save_all(self._categories, self._priorities, self._tasks, self._reminders)

    def ensure_default_priority(self) -> PriorityEntity:
        """Make sure exactly one priority is named Default and remember its id.

        Extra Default-named priorities (only possible in hand-edited files) are
        merged into the tracked one: their tasks move over and they are removed.
        """
        current = _find(self._priorities, self._default_priority_id or None)
        if current is None:
            current = next((p for p in self._priorities if p.is_default_name), None)
        if current is None:
            current = PriorityEntity.create(DEFAULT_PRIORITY_NAME)
            self._priorities.append(current)
            logger.info("Created missing %s priority %s", DEFAULT_PRIORITY_NAME, current.id)
        self._default_priority_id = current.id

        duplicate_ids = {p.id for p in self._priorities if p.is_default_name and p.id != current.id}
        if duplicate_ids:
            logger.warning(
                "Merged %d duplicate %s priorities into %s",
                len(duplicate_ids),
                DEFAULT_PRIORITY_NAME,
                current.id,
            )
            self._tasks = [
                replace(t, priority_id=current.id) if t.priority_id in duplicate_ids else t
                for t in self._tasks
            ]
            self._priorities = [p for p in self._priorities if p.id not in duplicate_ids]
        return current

    def reconcile_delayed_tasks(self) -> int:
        today = self._today()
        changed = 0
        reconciled = []
        for task in self._tasks:
            updated = task.reconciled(today)
            if updated is not task:
                changed += 1
            reconciled.append(updated)
        self._tasks = reconciled
        if changed:
            logger.info("Marked %d task(s) as delayed", changed)
        return changed

    def _repair_references(self) -> None:
        priority_ids = {p.id for p in self._priorities}
        category_ids = {c.id for c in self._categories}
        repaired = []
        for task in self._tasks:
            if task.priority_id not in priority_ids:
                logger.warning("Task %s referenced unknown priority %s", task.id, task.priority_id)
                task = replace(task, priority_id=self._default_priority_id)
            if task.category_id is not None and task.category_id not in category_ids:
                logger.warning("Task %s referenced unknown category %s", task.id, task.category_id)
                task = replace(task, category_id=None)
            repaired.append(task)
        self._tasks = repaired

        task_ids = {t.id for t in self._tasks}
        orphans = [r for r in self._reminders if r.task_id not in task_ids]
        if orphans:
            logger.warning("Dropped %d reminder(s) for unknown tasks", len(orphans))
            self._reminders = [r for r in self._reminders if r.task_id in task_ids]

        completed_ids = {t.id for t in self._tasks if t.status == TaskStatus.COMPLETED}
        stale = [r for r in self._reminders if r.task_id in completed_ids]
        if stale:
            logger.warning("Dropped %d reminder(s) for completed tasks", len(stale))
            self._reminders = [r for r in self._reminders if r.task_id not in completed_ids]

    # Collections

    @property
    def categories(self) -> tuple[CategoryEntity, ...]:
        return tuple(self._categories)

    @property
    def priorities(self) -> tuple[PriorityEntity, ...]:
        return tuple(self._priorities)

    @property
    def tasks(self) -> tuple[TaskEntity, ...]:
        return tuple(self._tasks)

    @property
    def reminders(self) -> tuple[ReminderEntity, ...]:
        return tuple(self._reminders)

    @property
    def default_priority_id(self) -> str:
        return self._default_priority_id

    # Categories

    def create_category(self, name: str) -> CategoryEntity:
        category = CategoryEntity.create(_require_text(name, "Category name"))
        self._categories.append(category)
        logger.info("Created category %s (%s)", category.id, category.name)
        return category

    def rename_category(self, category: CategoryRef, new_name: str) -> CategoryEntity:
        current = self._require_category(category)
        renamed = replace(current, name=_require_text(new_name, "Category name"))
        self._categories = _swap(self._categories, renamed)
        return renamed

    def delete_category(self, category: CategoryRef) -> None:
        current = self._require_category(category)
        task_ids = {t.id for t in self._tasks if t.category_id == current.id}
        before = len(self._reminders)
        self._reminders = [r for r in self._reminders if r.task_id not in task_ids]
        self._tasks = [t for t in self._tasks if t.id not in task_ids]
        self._categories = [c for c in self._categories if c.id != current.id]
        logger.info(
            "Deleted category %s with %d task(s) and %d reminder(s)",
            current.id,
            len(task_ids),
            before - len(self._reminders),
        )

    # Priorities

    def create_priority(self, name: str) -> PriorityEntity:
        priority = PriorityEntity.create(self._require_priority_name(name))
        self._priorities.append(priority)
        logger.info("Created priority %s (%s)", priority.id, priority.name)
        return priority

    def rename_priority(self, priority: PriorityRef, new_name: str) -> PriorityEntity:
        """Rename a priority; the Default priority is returned unchanged."""
        current = self._require_priority(priority)
        if current.id == self._default_priority_id:
            logger.info("Ignored rename of the %s priority", DEFAULT_PRIORITY_NAME)
            return current
        renamed = replace(current, name=self._require_priority_name(new_name))
        self._priorities = _swap(self._priorities, renamed)
        return renamed

    def delete_priority(self, priority: PriorityRef) -> bool:
        """Delete a priority and move its tasks to Default.

        Returns False, and changes nothing, when asked to delete the Default
        priority itself.
        """
        current = self._require_priority(priority)
        if current.id == self._default_priority_id:
            logger.info("Ignored delete of the %s priority", DEFAULT_PRIORITY_NAME)
            return False
        reassigned = 0
        tasks = []
        for task in self._tasks:
            if task.priority_id == current.id:
                task = replace(task, priority_id=self._default_priority_id)
                reassigned += 1
            tasks.append(task)
        self._tasks = tasks
        self._priorities = [p for p in self._priorities if p.id != current.id]
        logger.info("Deleted priority %s, %d task(s) moved to default", current.id, reassigned)
        return True

    def get_default_priority(self) -> PriorityEntity:
        default = _find(self._priorities, self._default_priority_id)
        return default if default is not None else self.ensure_default_priority()

    # Tasks

    def create_task(
        self,
        title: str,
        description: str = "",
        category: CategoryRef | None = None,
        priority: PriorityRef | None = None,
        deadline: Optional[date] = None,
    ) -> TaskEntity:
        """Create an OPEN task; a deadline already in the past makes it DELAYED right away."""
        title = _require_text(title, "Task title")
        category_id = self._require_category(category).id if category is not None else None
        priority_id = self._resolve_priority_id(priority)

        task = TaskEntity.create(title, description or "", category_id, priority_id, deadline)
        task = task.reconciled(self._today())
        self._tasks.append(task)
        logger.info("Created task %s (%s)", task.id, task.title)
        return task

    def update_task(
        self,
        task: TaskRef,
        title: str,
        description: str,
        category: CategoryRef | None,
        priority: PriorityRef | None,
        deadline: Optional[date],
        status: TaskStatus | str,
    ) -> TaskEntity:
        current = self._require_task(task)
        title = _require_text(title, "Task title")
        category_id = self._require_category(category).id if category is not None else None
        priority_id = self._resolve_priority_id(priority)
        new_status = self._coerce_status(status)

        updated = replace(
            current,
            title=title,
            description=description or "",
            category_id=category_id,
            priority_id=priority_id,
            deadline=deadline,
            status=new_status,
        ).reconciled(self._today())

        if new_status == TaskStatus.COMPLETED and current.status != TaskStatus.COMPLETED:
            dropped = self._drop_reminders_for(current.id)
            logger.info("Task %s completed, removed %d reminder(s)", current.id, dropped)
        elif updated.deadline != current.deadline:
            self._realign_reminders(updated)
        self._tasks = _swap(self._tasks, updated)
        return updated

    def delete_task(self, task: TaskRef) -> None:
        current = self._require_task(task)
        self._drop_reminders_for(current.id)
        self._tasks = [t for t in self._tasks if t.id != current.id]
        logger.info("Deleted task %s", current.id)

    # Reminders

    def create_reminder(
        self,
        task: TaskRef,
        reminder_type: ReminderType | str,
        custom_date: Optional[date] = None,
    ) -> ReminderEntity:
        target = self._require_task(task)
        kind = self._coerce_reminder_type(reminder_type)
        reminder_date = self._validated_reminder_date(target, kind, custom_date)

        reminder = ReminderEntity.create(target.id, kind, reminder_date)
        self._reminders.append(reminder)
        logger.info("Created reminder %s for task %s on %s", reminder.id, target.id, reminder_date)
        return reminder

    def update_reminder(
        self,
        reminder: ReminderRef,
        task: TaskRef,
        reminder_type: ReminderType | str,
        new_date: Optional[date] = None,
    ) -> ReminderEntity:
        current = self._require_reminder(reminder)
        target = self._require_task(task)
        kind = self._coerce_reminder_type(reminder_type)
        reminder_date = self._validated_reminder_date(target, kind, new_date)

        updated = replace(current, task_id=target.id, type=kind, reminder_date=reminder_date)
        self._reminders = _swap(self._reminders, updated)
        return updated

    def delete_reminder(self, reminder: ReminderRef) -> None:
        current = self._require_reminder(reminder)
        self._reminders = [r for r in self._reminders if r.id != current.id]

    def get_reminders_for_task(self, task: TaskRef) -> list[ReminderEntity]:
        task_id = _ref_id(task)
        return [r for r in self._reminders if r.task_id == task_id]

    def list_due_reminders(self) -> list[ReminderEntity]:
        today = self._today()
        open_ids = {t.id for t in self._tasks if t.status != TaskStatus.COMPLETED}
        due = [r for r in self._reminders if r.reminder_date <= today and r.task_id in open_ids]
        return sorted(due, key=lambda r: r.reminder_date)

    # Queries

    def search_tasks(
        self,
        title: str | None = None,
        category: CategoryRef | None = None,
        priority: PriorityRef | None = None,
    ) -> list[TaskEntity]:
        filters = TaskFilters(
            title=title or None,
            category_id=_ref_id(category),
            priority_id=_ref_id(priority),
        )
        return [task for task in self._tasks if filters.matches(task)]

    def find_category_by_id(self, category_id: str | None) -> CategoryEntity | None:
        return _find(self._categories, category_id)

    def find_priority_by_id(self, priority_id: str | None) -> PriorityEntity | None:
        return _find(self._priorities, priority_id)

    def find_task_by_id(self, task_id: str | None) -> TaskEntity | None:
        return _find(self._tasks, task_id)

    def find_reminder_by_id(self, reminder_id: str | None) -> ReminderEntity | None:
        return _find(self._reminders, reminder_id)

    def get_delayed_tasks(self) -> list[TaskEntity]:
        return [t for t in self._tasks if t.status == TaskStatus.DELAYED]

    def get_stats(self) -> TaskStats:
        today = self._today()
        window_start = today - timedelta(days=1)
        window_end = today + timedelta(days=7)
        due_soon = [
            t
            for t in self._tasks
            if t.deadline is not None
            and t.status != TaskStatus.COMPLETED
            and window_start <= t.deadline <= window_end
        ]
        return TaskStats(
            total=len(self._tasks),
            completed=sum(1 for t in self._tasks if t.status == TaskStatus.COMPLETED),
            delayed=sum(1 for t in self._tasks if t.status == TaskStatus.DELAYED),
            due_within_week=len(due_soon),
        )

    # Helpers

    def _validated_reminder_date(
        self,
        task: TaskEntity,
        kind: ReminderType,
        custom_date: Optional[date],
    ) -> date:
        if task.status == TaskStatus.COMPLETED:
            raise ValidationError("Cannot set a reminder for a completed task.")

        if not kind.is_relative:
            if custom_date is None:
                raise ValidationError("A specific-date reminder needs a date.")
            reminder_date = custom_date
        else:
            if task.deadline is None:
                raise ValidationError("Task has no deadline, cannot create this type of reminder.")
            reminder_date = reminder_date_for(task.deadline, kind)

        if reminder_date < self._today():
            raise ValidationError(f"Reminder date {reminder_date.isoformat()} has already passed.")
        if not kind.is_relative and task.deadline is not None and reminder_date >= task.deadline:
            raise ValidationError("Reminder date must be before the task deadline.")
        return reminder_date

    def _realign_reminders(self, task: TaskEntity) -> None:
        """Follow a deadline change: relative reminders move with the deadline.

        Relative reminders that no longer have a deadline or would land in the
        past are dropped, and so are specific-date reminders that are no longer
        before the deadline.
        """
        today = self._today()
        kept = []
        dropped = 0
        for reminder in self._reminders:
            if reminder.task_id != task.id:
                kept.append(reminder)
                continue
            if reminder.type.is_relative:
                if task.deadline is None:
                    dropped += 1
                    continue
                new_date = reminder_date_for(task.deadline, reminder.type)
                if new_date < today:
                    dropped += 1
                    continue
                reminder = replace(reminder, reminder_date=new_date)
            elif task.deadline is not None and reminder.reminder_date >= task.deadline:
                dropped += 1
                continue
            kept.append(reminder)
        self._reminders = kept
        if dropped:
            logger.info("Deadline of task %s changed, removed %d reminder(s)", task.id, dropped)

    def _drop_reminders_for(self, task_id: str) -> int:
        before = len(self._reminders)
        self._reminders = [r for r in self._reminders if r.task_id != task_id]
        return before - len(self._reminders)

    def _resolve_priority_id(self, priority: PriorityRef | None) -> str:
        if priority is None:
            return self.get_default_priority().id
        return self._require_priority(priority).id

    @staticmethod
    def _require_priority_name(name: str | None) -> str:
        name = _require_text(name, "Priority name")
        if is_default_priority_name(name):
            raise ValidationError(f"Only one priority can be named {DEFAULT_PRIORITY_NAME}.")
        return name

    def _require_category(self, category: CategoryRef) -> CategoryEntity:
        found = _find(self._categories, _ref_id(category))
        if found is None:
            raise ValidationError(f"Unknown category: {_ref_id(category)}")
        return found

    def _require_priority(self, priority: PriorityRef) -> PriorityEntity:
        found = _find(self._priorities, _ref_id(priority))
        if found is None:
            raise ValidationError(f"Unknown priority: {_ref_id(priority)}")
        return found

    def _require_task(self, task: TaskRef) -> TaskEntity:
        found = _find(self._tasks, _ref_id(task))
        if found is None:
            raise ValidationError(f"Unknown task: {_ref_id(task)}")
        return found

    def _require_reminder(self, reminder: ReminderRef) -> ReminderEntity:
        found = _find(self._reminders, _ref_id(reminder))
        if found is None:
            raise ValidationError(f"Unknown reminder: {_ref_id(reminder)}")
        return found

    @staticmethod
    def _coerce_status(status: TaskStatus | str) -> TaskStatus:
        try:
            return TaskStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown task status: {status!r}") from None

    @staticmethod
    def _coerce_reminder_type(reminder_type: ReminderType | str) -> ReminderType:
        try:
            return ReminderType(reminder_type)
        except ValueError:
            raise ValidationError(f"Unknown reminder type: {reminder_type!r}") from None
