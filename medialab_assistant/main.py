from __future__ import annotations

import logging
import sys

from medialab_assistant.config import SETTINGS
from medialab_assistant.domain.errors import StorageError
from medialab_assistant.infra.logging import setup_logging
from medialab_assistant.infra.repository import JsonRepository
from medialab_assistant.services.data_manager import DataManager

logger = logging.getLogger(__name__)


def build_manager() -> DataManager:
    return DataManager(JsonRepository(SETTINGS.data_path))


def main() -> None:
    setup_logging()
    manager = build_manager()
    try:
        manager.load()
    except StorageError as exc:
        logger.error("Could not load data: %s", exc)
        sys.exit(1)

    stats = manager.get_stats()
    logger.info(
        "Total tasks: %d, completed: %d, delayed: %d, due within 7 days: %d",
        stats.total,
        stats.completed,
        stats.delayed,
        stats.due_within_week,
    )
    if stats.delayed:
        logger.warning("There are %d delayed tasks!", stats.delayed)
    for reminder in manager.list_due_reminders():
        task = manager.find_task_by_id(reminder.task_id)
        logger.info("Reminder due %s: %s", reminder.reminder_date.isoformat(), task.title if task else reminder.task_id)

    manager.save()


if __name__ == "__main__":
    main()
