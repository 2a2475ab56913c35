"""Recurrence arithmetic and due checks for reminders."""
import calendar
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from models.helper import ensure_utc
from models.reminders import Reminder, RecurrenceType


def _add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp e.g. Jan 31 -> Feb 28
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(value: datetime, recurrence: RecurrenceType, custom_interval: Optional[int] = None) -> Optional[datetime]:
    """The occurrence following `value`, or None for one-off reminders."""
    if recurrence == RecurrenceType.DAILY:
        return value + timedelta(days=1)
    if recurrence == RecurrenceType.WEEKLY:
        return value + timedelta(weeks=1)
    if recurrence == RecurrenceType.MONTHLY:
        return _add_months(value, 1)
    if recurrence == RecurrenceType.YEARLY:
        return _add_months(value, 12)
    if recurrence == RecurrenceType.CUSTOM and custom_interval:
        return value + timedelta(days=custom_interval)
    return None


def advance_past(reminder: Reminder, now: datetime) -> datetime:
    """Roll a recurring reminder forward until its next occurrence is after `now`."""
    current = ensure_utc(reminder.date_time)
    following = next_occurrence(current, reminder.recurrence, reminder.custom_interval)
    if following is None:
        return current
    while following <= now:
        following = next_occurrence(following, reminder.recurrence, reminder.custom_interval)
    return following


def due_reminders(reminders: Iterable[Reminder], now: datetime) -> List[Reminder]:
    return [
        reminder for reminder in reminders
        if not reminder.is_completed and ensure_utc(reminder.date_time) <= now
    ]
