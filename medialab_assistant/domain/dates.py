from __future__ import annotations

from datetime import date, timedelta

from .enums import ReminderType


def reminder_date_for(deadline: date, reminder_type: ReminderType) -> date:
    if reminder_type == ReminderType.ONE_DAY_BEFORE:
        return deadline - timedelta(days=1)
    if reminder_type == ReminderType.ONE_WEEK_BEFORE:
        return deadline - timedelta(weeks=1)
    if reminder_type == ReminderType.ONE_MONTH_BEFORE:
        return add_months(deadline, -1)
    raise ValueError(f"{reminder_type} has no fixed offset")


def add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, _days_in_month(year, month))
    return date(year, month, day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day
