import pytest
from datetime import date, datetime, timedelta, timezone

from todo_core.models import Status, Todo
from todo_core.reminders import (
    PENDING_TIERS, Severity, Tier, build_reminders, classify, daily_summary, in_tier,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def make_todo(title="Task", due_date=None, created_at=NOW, status=Status.PENDING, completed_at=None):
    return Todo(
        title=title,
        owner_username="alice",
        due_date=due_date,
        created_at=created_at,
        updated_at=created_at,
        status=status,
        completed_at=completed_at,
    )


@pytest.mark.parametrize("due_date, expected", [
    (TODAY - timedelta(days=30), Tier.OVERDUE),
    (TODAY - timedelta(days=1), Tier.OVERDUE),
    (TODAY, Tier.DUE_TODAY),
    (TODAY + timedelta(days=1), Tier.DUE_SOON),
    (TODAY + timedelta(days=7), Tier.DUE_SOON),
    (TODAY + timedelta(days=8), Tier.NONE),
])
def test_classify_by_due_date(due_date, expected):
    assert classify(make_todo(due_date=due_date), NOW) == expected


def test_due_date_takes_precedence_over_age():
    """An old todo with a distant due date is not stale."""
    old = NOW - timedelta(days=60)
    assert classify(make_todo(due_date=TODAY + timedelta(days=30), created_at=old), NOW) == Tier.NONE
    assert classify(make_todo(due_date=TODAY, created_at=old), NOW) == Tier.DUE_TODAY


def test_stale_only_after_threshold():
    exactly_seven = make_todo(created_at=NOW - timedelta(days=7))
    just_over = make_todo(created_at=NOW - timedelta(days=7, seconds=1))

    assert classify(make_todo(), NOW) == Tier.NONE
    assert classify(exactly_seven, NOW) == Tier.NONE
    assert classify(just_over, NOW) == Tier.STALE


def test_completed_todos_never_remind():
    for due_date in (None, TODAY - timedelta(days=3), TODAY, TODAY + timedelta(days=2)):
        todo = make_todo(due_date=due_date, created_at=NOW - timedelta(days=90),
                         status=Status.COMPLETED, completed_at=NOW)
        assert classify(todo, NOW) == Tier.NO_REMINDER

    assert Tier.NO_REMINDER not in PENDING_TIERS


def test_classify_is_total_over_pending_todos():
    due_dates = [None] + [TODAY + timedelta(days=offset) for offset in range(-10, 11)]
    ages = [timedelta(0), timedelta(days=3), timedelta(days=7), timedelta(days=8), timedelta(days=400)]
    nows = [NOW, NOW.replace(hour=0, minute=0), NOW.replace(hour=23, minute=59, second=59)]

    for due_date in due_dates:
        for age in ages:
            for now in nows:
                todo = make_todo(due_date=due_date, created_at=now - age)
                assert classify(todo, now) in PENDING_TIERS


def test_in_tier():
    overdue = make_todo("Late", due_date=TODAY - timedelta(days=1))
    today = make_todo("Now", due_date=TODAY)
    done = make_todo("Done", due_date=TODAY - timedelta(days=1), status=Status.COMPLETED, completed_at=NOW)

    assert in_tier([overdue, today, done], Tier.OVERDUE, NOW) == [overdue]
    assert in_tier([overdue, today, done], Tier.DUE_TODAY, NOW) == [today]


def test_build_reminders_orders_by_severity():
    todos = [
        make_todo("Someday", created_at=NOW - timedelta(days=10)),
        make_todo("Tomorrow", due_date=TODAY + timedelta(days=1)),
        make_todo("Today", due_date=TODAY),
        make_todo("Late", due_date=TODAY - timedelta(days=2)),
        make_todo("Far away", due_date=TODAY + timedelta(days=20)),
        make_todo("Finished", due_date=TODAY, status=Status.COMPLETED, completed_at=NOW),
    ]

    reminders = build_reminders(todos, NOW)

    assert [r.todo.title for r in reminders] == ["Late", "Today", "Someday", "Tomorrow"]
    assert [r.severity for r in reminders] == [
        Severity.CRITICAL, Severity.WARNING, Severity.INFO, Severity.INFO,
    ]
    assert reminders[0].message == "'Late' is 2 day(s) overdue!"
    assert reminders[1].message == "'Today' is due today!"
    assert reminders[2].message == "'Someday' has been pending for 10 day(s) - consider setting a due date!"
    assert reminders[3].message == "'Tomorrow' is due tomorrow!"


def test_due_soon_message_counts_days():
    reminders = build_reminders([make_todo("Report", due_date=TODAY + timedelta(days=4))], NOW)

    assert reminders[0].tier == Tier.DUE_SOON
    assert reminders[0].message == "'Report' is due in 4 day(s)"


def test_daily_summary():
    todos = [
        make_todo("Late", due_date=TODAY - timedelta(days=1)),
        make_todo("Today", due_date=TODAY),
        make_todo("Plain"),
        make_todo("Done now", status=Status.COMPLETED, completed_at=NOW - timedelta(hours=1)),
        make_todo("Done earlier", status=Status.COMPLETED, completed_at=NOW - timedelta(days=2)),
    ]

    summary = daily_summary(todos, NOW)

    assert (summary.pending, summary.completed_today, summary.due_today, summary.overdue) == (3, 1, 1, 1)
    assert str(summary) == "Daily Summary: 3 pending, 1 completed today, 1 due today, 1 overdue"
