"""Urgency tiers for reminder notifications."""
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

import pytz

# Reminders are only manufactured up to this many days ahead
REMINDER_HORIZON_DAYS = 60
REMINDER_TIMEZONE = os.environ.get("REMINDER_TIMEZONE", "UTC")

_MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@dataclass(frozen=True)
class UrgencyTier:
    """Notification type, priority and message for a days-until-due value."""
    type: str
    priority: int
    message: str


def parse_candidate_date(value: Any) -> Optional[date]:
    """
    Parse an extracted date string into a calendar date.

    Accepts ISO calendar dates ("2024-03-15") and ISO datetimes, which are
    truncated to their date. Anything else returns None.
    """
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
    except ValueError:
        return None


def format_due_date(due: date) -> str:
    """Render a date as "Mar 15, 2024"."""
    return f"{_MONTH_ABBR[due.month - 1]} {due.day}, {due.year}"


def local_today(now: datetime, timezone) -> date:
    """Calendar date of `now` in `timezone` (a name or pytz zone). Naive values are UTC."""
    if isinstance(timezone, str):
        timezone = pytz.timezone(timezone)
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(timezone).date()


def days_until(due: date, today: date) -> int:
    return (due - today).days


def classify(days_until_due: int, title: str, due: date) -> Optional[UrgencyTier]:
    """
    Pick the urgency tier for a candidate date.

    Args:
        days_until_due: Whole days from today to the due date, negative when overdue
        title: Document title embedded in the message
        due: The due date, rendered into the message

    Returns:
        The matching tier, or None when the date is beyond the reminder horizon
    """
    formatted = format_due_date(due)

    if days_until_due < 0:
        overdue = abs(days_until_due)
        unit = "day" if overdue == 1 else "days"
        return UrgencyTier(
            "overdue", 10,
            f'OVERDUE: "{title}" was due {overdue} {unit} ago ({formatted})'
        )
    if days_until_due == 0:
        return UrgencyTier("urgent", 10, f'DUE TODAY: "{title}" is due today ({formatted})')
    if days_until_due == 1:
        return UrgencyTier("urgent", 9, f'DUE TOMORROW: "{title}" is due tomorrow ({formatted})')
    if days_until_due <= 3:
        return UrgencyTier("urgent", 8, f'URGENT: "{title}" is due in {days_until_due} days ({formatted})')
    if days_until_due <= 7:
        return UrgencyTier("due_date", 7, f'This Week: "{title}" is due in {days_until_due} days ({formatted})')
    if days_until_due <= 14:
        return UrgencyTier("due_date", 6, f'Next 2 Weeks: "{title}" is due in {days_until_due} days ({formatted})')
    if days_until_due <= 30:
        return UrgencyTier("due_date", 5, f'This Month: "{title}" is due in {days_until_due} days ({formatted})')
    if days_until_due <= REMINDER_HORIZON_DAYS:
        return UrgencyTier("due_date", 4, f'Next 2 Months: "{title}" is due in {days_until_due} days ({formatted})')
    return None
