"""Day-scoped summaries and digest helpers over the merged timeline."""

from datetime import date, timezone

from .contributions import DEFAULT_WINDOW_DAYS
from .models import ActivitySummary, ContributionRecord, DailyDigest, Event, EventCategory


def _event_day(event: Event) -> date:
    return event.timestamp.astimezone(timezone.utc).date()


def get_activity_summary(events: list[Event], day: date) -> ActivitySummary:
    """Count pushes, stars, pull requests and issues on one day.

    Other categories are ignored.

    Args:
        events: Merged timeline
        day: UTC calendar day

    Returns:
        ActivitySummary for that day
    """
    summary = ActivitySummary()
    for event in events:
        if _event_day(event) != day:
            continue
        if event.category is EventCategory.PUSH:
            summary.push_count += 1
        elif event.category is EventCategory.WATCH:
            summary.star_count += 1
        elif event.category is EventCategory.PULL_REQUEST:
            summary.pr_count += 1
        elif event.category is EventCategory.ISSUE:
            summary.issue_count += 1
    return summary


def rank_by_streak(records: list[ContributionRecord]) -> list[ContributionRecord]:
    """Order records for the streak leaderboard."""
    return sorted(
        records,
        key=lambda r: (-r.current_streak, -r.total_count, r.account.key),
    )


def top_contributor(records: list[ContributionRecord]) -> ContributionRecord | None:
    """Return the record with the most contributions, or None if nobody pushed."""
    ranked = sorted(
        records,
        key=lambda r: (-r.total_count, -r.current_streak, r.account.key),
    )
    if not ranked or ranked[0].total_count == 0:
        return None
    return ranked[0]


def average_daily_activity(events: list[Event], window_days: int = DEFAULT_WINDOW_DAYS) -> int:
    return round(len(events) / window_days)


def build_daily_digest(
    events: list[Event],
    records: list[ContributionRecord],
    total_following: int,
    day: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> DailyDigest:
    """Assemble the daily digest view from already-computed data."""
    return DailyDigest(
        day=day,
        summary=get_activity_summary(events, day),
        top_contributor=top_contributor(records),
        total_following=total_following,
        average_daily_activity=average_daily_activity(events, window_days),
        window_days=window_days,
    )


def describe_event(event: Event) -> str:
    """Return the verb phrase shown between actor and repository in the feed."""
    if event.category is EventCategory.PUSH:
        commits = len(event.commits)
        return f"pushed {commits} commit{'' if commits == 1 else 's'} to"
    return {
        EventCategory.WATCH: "starred",
        EventCategory.CREATE: "created",
        EventCategory.FORK: "forked",
        EventCategory.ISSUE: "opened an issue in",
        EventCategory.PULL_REQUEST: "opened a pull request in",
    }.get(event.category, "interacted with")
