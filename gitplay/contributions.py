"""Contribution histogram and streak computation."""

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone

from .models import Account, ContributionRecord, DailyContribution, Event, EventCategory

DEFAULT_WINDOW_DAYS = 30


def daily_commit_counts(
    events: list[Event], window_days: int, now: datetime
) -> dict[date, int]:
    """Sum pushed commits per UTC day for pushes inside the window.

    A push without commits still records its day, with a count of 0.
    """
    cutoff = now - timedelta(days=window_days)
    counts: dict[date, int] = defaultdict(int)
    for event in events:
        if event.category is not EventCategory.PUSH or event.timestamp < cutoff:
            continue
        counts[event.timestamp.astimezone(timezone.utc).date()] += len(event.commits)
    return dict(counts)


def current_streak(counts: dict[date, int], today: date) -> int:
    """Count consecutive active days walking back from today.

    The walk stops at the first day with no entry or a zero count, so a
    user with no pushes today has a streak of 0.
    """
    streak = 0
    day = today
    while counts.get(day, 0) > 0:
        streak += 1
        day -= timedelta(days=1)
    return streak


def compute_contributions(
    account: Account,
    events: list[Event],
    window_days: int = DEFAULT_WINDOW_DAYS,
    now: datetime | None = None,
) -> ContributionRecord:
    """Compute one account's contribution record.

    Args:
        account: The account the events belong to
        events: That account's events, in any order
        window_days: Lookback window in days
        now: Processing instant (defaults to the current UTC time)

    Returns:
        ContributionRecord with history ordered newest day first
    """
    if now is None:
        now = datetime.now(timezone.utc)

    counts = daily_commit_counts(events, window_days, now)
    history = tuple(
        DailyContribution(day=day, count=counts[day])
        for day in sorted(counts, reverse=True)
    )

    return ContributionRecord(
        account=account,
        total_count=sum(counts.values()),
        current_streak=current_streak(counts, now.astimezone(timezone.utc).date()),
        daily_history=history,
    )


def compute_all_contributions(
    accounts: list[Account],
    per_account_events: dict[str, list[Event]],
    window_days: int = DEFAULT_WINDOW_DAYS,
    now: datetime | None = None,
) -> list[ContributionRecord]:
    """Compute a record for every account, in the given account order."""
    if now is None:
        now = datetime.now(timezone.utc)
    return [
        compute_contributions(
            account, per_account_events.get(account.key, []), window_days, now
        )
        for account in accounts
    ]
