from __future__ import annotations

from datetime import date

import pytest

from medialab_assistant.domain.dates import add_months, reminder_date_for
from medialab_assistant.domain.entities import PriorityEntity, TaskEntity
from medialab_assistant.domain.enums import ReminderType, TaskStatus


def make_task(deadline: date | None, status: TaskStatus = TaskStatus.OPEN) -> TaskEntity:
    return TaskEntity("t-1", "Task", "", None, "p-1", deadline, status)


def test_new_entities_get_unique_ids() -> None:
    first = TaskEntity.create("A", "", None, "p-1", None)
    second = TaskEntity.create("A", "", None, "p-1", None)

    assert first.id != second.id
    assert first.status == TaskStatus.OPEN


@pytest.mark.parametrize("name", ["Default", "default", "DEFAULT"])
def test_default_priority_name_is_case_insensitive(name: str) -> None:
    assert PriorityEntity.create(name).is_default_name


def test_reconciled_sets_delayed_only_when_past_and_not_completed() -> None:
    today = date(2026, 3, 10)

    assert make_task(date(2026, 3, 9)).reconciled(today).status == TaskStatus.DELAYED
    assert make_task(date(2026, 3, 10)).reconciled(today).status == TaskStatus.OPEN
    assert make_task(None).reconciled(today).status == TaskStatus.OPEN
    done = make_task(date(2026, 1, 1), TaskStatus.COMPLETED)
    assert done.reconciled(today) is done


def test_reconciled_is_idempotent() -> None:
    today = date(2026, 3, 10)
    once = make_task(date(2026, 3, 1)).reconciled(today)

    assert once.reconciled(today) is once


@pytest.mark.parametrize(
    ("deadline", "reminder_type", "expected"),
    [
        (date(2026, 3, 1), ReminderType.ONE_DAY_BEFORE, date(2026, 2, 28)),
        (date(2026, 3, 1), ReminderType.ONE_WEEK_BEFORE, date(2026, 2, 22)),
        (date(2026, 3, 31), ReminderType.ONE_MONTH_BEFORE, date(2026, 2, 28)),
        (date(2028, 3, 31), ReminderType.ONE_MONTH_BEFORE, date(2028, 2, 29)),
        (date(2026, 1, 15), ReminderType.ONE_MONTH_BEFORE, date(2025, 12, 15)),
    ],
)
def test_reminder_offsets(deadline: date, reminder_type: ReminderType, expected: date) -> None:
    assert reminder_date_for(deadline, reminder_type) == expected


def test_specific_date_has_no_offset() -> None:
    with pytest.raises(ValueError):
        reminder_date_for(date(2026, 3, 1), ReminderType.SPECIFIC_DATE)


def test_add_months_forward_wraps_year() -> None:
    assert add_months(date(2026, 11, 30), 3) == date(2027, 2, 28)
