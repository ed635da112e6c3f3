"""
Reminder classification.

Everything here is a pure function of the todos and a timezone-aware
``now``. "Today" is ``now.date()``, so callers pass a local time when they
want local days.
"""
from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Iterable, List

from pydantic import BaseModel

from .config import DUE_SOON_DAYS, STALE_AFTER_DAYS
from .models import Status, Todo


class Tier(str, Enum):
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_SOON = "due_soon"
    STALE = "stale"
    NONE = "none"
    # Completed todos only
    NO_REMINDER = "no_reminder"


# Every outcome a pending todo can have
PENDING_TIERS = frozenset({Tier.OVERDUE, Tier.DUE_TODAY, Tier.DUE_SOON, Tier.STALE, Tier.NONE})


class Severity(IntEnum):
    INFO = 1
    WARNING = 2
    CRITICAL = 3


TIER_SEVERITY = {
    Tier.OVERDUE: Severity.CRITICAL,
    Tier.DUE_TODAY: Severity.WARNING,
    Tier.DUE_SOON: Severity.INFO,
    Tier.STALE: Severity.INFO,
}

TIER_LABELS = {
    Tier.OVERDUE: "Overdue",
    Tier.DUE_TODAY: "Due today",
    Tier.DUE_SOON: "Due soon",
    Tier.STALE: "No due date",
    Tier.NONE: "",
    Tier.NO_REMINDER: "",
}


class Reminder(BaseModel):
    todo: Todo
    tier: Tier
    severity: Severity
    message: str


class DailySummary(BaseModel):
    pending: int
    completed_today: int
    due_today: int
    overdue: int

    def __str__(self) -> str:
        return (
            f"Daily Summary: {self.pending} pending, {self.completed_today} completed today, "
            f"{self.due_today} due today, {self.overdue} overdue"
        )


def classify(todo: Todo, now: datetime) -> Tier:
    """Urgency tier of a todo at now. First matching rule wins."""
    if todo.status != Status.PENDING:
        return Tier.NO_REMINDER

    today = now.date()
    if todo.due_date is not None:
        if todo.due_date < today:
            return Tier.OVERDUE
        if todo.due_date == today:
            return Tier.DUE_TODAY
        if todo.due_date <= today + timedelta(days=DUE_SOON_DAYS):
            return Tier.DUE_SOON
        return Tier.NONE

    if now - todo.created_at > timedelta(days=STALE_AFTER_DAYS):
        return Tier.STALE
    return Tier.NONE


def in_tier(todos: Iterable[Todo], tier: Tier, now: datetime) -> List[Todo]:
    return [todo for todo in todos if classify(todo, now) == tier]


def _message(todo: Todo, tier: Tier, now: datetime) -> str:
    today = now.date()
    if tier == Tier.OVERDUE:
        return f"'{todo.title}' is {(today - todo.due_date).days} day(s) overdue!"
    if tier == Tier.DUE_TODAY:
        return f"'{todo.title}' is due today!"
    if tier == Tier.DUE_SOON:
        days_left = (todo.due_date - today).days
        if days_left == 1:
            return f"'{todo.title}' is due tomorrow!"
        return f"'{todo.title}' is due in {days_left} day(s)"
    days_old = (now - todo.created_at).days
    return f"'{todo.title}' has been pending for {days_old} day(s) - consider setting a due date!"


def build_reminders(todos: Iterable[Todo], now: datetime) -> List[Reminder]:
    """Reminders for every todo worth surfacing, most severe first."""
    reminders = []
    for todo in todos:
        tier = classify(todo, now)
        if tier not in TIER_SEVERITY:
            continue
        reminders.append(Reminder(
            todo=todo,
            tier=tier,
            severity=TIER_SEVERITY[tier],
            message=_message(todo, tier, now),
        ))
    # sorted() is stable, so equal severities keep creation order
    return sorted(reminders, key=lambda r: r.severity, reverse=True)


def daily_summary(todos: Iterable[Todo], now: datetime) -> DailySummary:
    todos = list(todos)
    tiers = [classify(todo, now) for todo in todos]
    completed_today = sum(
        1 for todo in todos
        if todo.status == Status.COMPLETED
        and todo.completed_at is not None
        and todo.completed_at.astimezone(now.tzinfo).date() == now.date()
    )
    return DailySummary(
        pending=sum(1 for todo in todos if todo.status == Status.PENDING),
        completed_today=completed_today,
        due_today=tiers.count(Tier.DUE_TODAY),
        overdue=tiers.count(Tier.OVERDUE),
    )
