from __future__ import annotations

import json
from datetime import date

import pytest

from medialab_assistant.domain.entities import CategoryEntity, PriorityEntity, ReminderEntity, TaskEntity
from medialab_assistant.domain.enums import ReminderType, TaskStatus
from medialab_assistant.domain.errors import StorageError
from medialab_assistant.infra.repository import JsonRepository
from medialab_assistant.services.data_manager import DataManager


def sample_data() -> tuple[list, list, list, list]:
    categories = [CategoryEntity("c-1", "Work")]
    priorities = [PriorityEntity("p-1", "Default"), PriorityEntity("p-2", "High")]
    tasks = [
        TaskEntity("t-1", "Report", "Quarterly", "c-1", "p-2", date(2026, 4, 1), TaskStatus.IN_PROGRESS),
        TaskEntity("t-2", "Someday", "", None, "p-1", None, TaskStatus.OPEN),
    ]
    reminders = [ReminderEntity("r-1", "t-1", ReminderType.ONE_WEEK_BEFORE, date(2026, 3, 25))]
    return categories, priorities, tasks, reminders


def test_missing_directory_loads_empty(tmp_path) -> None:
    snapshot = JsonRepository(tmp_path / "medialab").load_all()

    assert snapshot.categories == []
    assert snapshot.priorities == []
    assert snapshot.tasks == []
    assert snapshot.reminders == []


def test_save_then_load_round_trip(tmp_path) -> None:
    repo = JsonRepository(tmp_path / "nested" / "medialab")
    categories, priorities, tasks, reminders = sample_data()

    repo.save_all(categories, priorities, tasks, reminders)
    snapshot = repo.load_all()

    assert snapshot.categories == categories
    assert snapshot.priorities == priorities
    assert snapshot.tasks == tasks
    assert snapshot.reminders == reminders


def test_file_layout_uses_names_and_iso_dates(tmp_path) -> None:
    repo = JsonRepository(tmp_path)
    repo.save_all(*sample_data())

    tasks = json.loads((tmp_path / "tasks.json").read_text(encoding="utf-8"))
    reminders = json.loads((tmp_path / "reminders.json").read_text(encoding="utf-8"))

    assert tasks[0] == {
        "id": "t-1",
        "title": "Report",
        "description": "Quarterly",
        "categoryId": "c-1",
        "priorityId": "p-2",
        "deadline": "2026-04-01",
        "status": "IN_PROGRESS",
    }
    assert tasks[1]["deadline"] is None
    assert tasks[1]["categoryId"] is None
    assert reminders == [
        {"id": "r-1", "taskId": "t-1", "type": "ONE_WEEK_BEFORE", "reminderDate": "2026-03-25"}
    ]
    assert (tmp_path / "categories.json").exists()
    assert (tmp_path / "priorities.json").exists()


def test_absent_optional_keys_load_as_none(tmp_path) -> None:
    (tmp_path / "tasks.json").write_text(
        json.dumps([{"id": "t-1", "title": "Bare", "priorityId": "p-1", "status": "OPEN"}]),
        encoding="utf-8",
    )

    task = JsonRepository(tmp_path).load_all().tasks[0]

    assert task.deadline is None
    assert task.category_id is None
    assert task.description == ""


def test_malformed_json_is_an_error(tmp_path) -> None:
    (tmp_path / "categories.json").write_text("[{", encoding="utf-8")

    with pytest.raises(StorageError, match="categories.json"):
        JsonRepository(tmp_path).load_all()


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "r-1"},
        [{"id": "r-1", "taskId": "t-1", "type": "TOMORROW", "reminderDate": "2026-03-25"}],
        [{"id": "r-1", "taskId": "t-1", "type": "SPECIFIC_DATE", "reminderDate": "25/03/2026"}],
        [{"id": "r-1", "type": "SPECIFIC_DATE", "reminderDate": "2026-03-25"}],
    ],
)
def test_invalid_records_are_errors(tmp_path, payload) -> None:
    (tmp_path / "reminders.json").write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(StorageError):
        JsonRepository(tmp_path).load_all()


def test_manager_state_survives_save_and_reload(tmp_path) -> None:
    today = date(2026, 3, 10)
    manager = DataManager(JsonRepository(tmp_path), today=lambda: today)
    manager.load()
    work = manager.create_category("Work")
    task = manager.create_task("Report", "", work, None, date(2026, 3, 20))
    manager.create_reminder(task, ReminderType.ONE_DAY_BEFORE)
    manager.save()

    reloaded = DataManager(JsonRepository(tmp_path), today=lambda: today)
    reloaded.load()

    assert reloaded.categories == manager.categories
    assert reloaded.priorities == manager.priorities
    assert reloaded.tasks == manager.tasks
    assert reloaded.reminders == manager.reminders
    assert reloaded.default_priority_id == manager.default_priority_id
