from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    POSTPONED = "POSTPONED"
    COMPLETED = "COMPLETED"
    DELAYED = "DELAYED"


class ReminderType(StrEnum):
    ONE_DAY_BEFORE = "ONE_DAY_BEFORE"
    ONE_WEEK_BEFORE = "ONE_WEEK_BEFORE"
    ONE_MONTH_BEFORE = "ONE_MONTH_BEFORE"
    SPECIFIC_DATE = "SPECIFIC_DATE"

    @property
    def is_relative(self) -> bool:
        return self is not ReminderType.SPECIFIC_DATE
