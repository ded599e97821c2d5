"""Markdown report generation."""

from datetime import datetime
from pathlib import Path

from .models import ContributionRecord, DailyDigest, Event, FeedSnapshot
from .summary import describe_event, rank_by_streak

DEFAULT_FEED_LIMIT = 50
STREAK_GOAL_DAYS = 7


def generate_markdown_report(
    snapshot: FeedSnapshot, output_path: str | Path, feed_limit: int = DEFAULT_FEED_LIMIT
) -> None:
    """Generate a Markdown report and write it to a file.

    Args:
        snapshot: Result of a feed load
        output_path: Path where the report should be written
        feed_limit: Maximum number of feed entries to include
    """
    output_path = Path(output_path)

    md_content = build_markdown(snapshot, feed_limit)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(md_content)


def build_markdown(snapshot: FeedSnapshot, feed_limit: int = DEFAULT_FEED_LIMIT) -> str:
    """Build the complete Markdown content for the report.

    Args:
        snapshot: Result of a feed load
        feed_limit: Maximum number of feed entries to include

    Returns:
        Complete Markdown document as a string
    """
    lines = []

    lines.append("# GitPlay Feed")
    lines.append("")
    lines.append(f"**Fetched:** {snapshot.fetched_at.strftime('%B %d, %Y %H:%M UTC')}")
    lines.append("")
    lines.append(f"**Following:** {len(snapshot.following)}")
    lines.append("")
    lines.append("---")
    lines.append("")

    if snapshot.digest is not None:
        lines.append("## Daily Digest")
        lines.append("")
        lines.extend(_build_digest(snapshot.digest))
        lines.append("")

    lines.append("## Contribution Streaks")
    lines.append("")
    if snapshot.contributions:
        lines.extend(_build_streak_table(snapshot.contributions))
    else:
        lines.append("*Not following anyone yet.*")
    lines.append("")

    lines.append("## Activity Feed")
    lines.append("")
    if snapshot.events:
        for event in snapshot.events[:feed_limit]:
            lines.extend(_build_feed_entry(event))
        remaining = len(snapshot.events) - feed_limit
        if remaining > 0:
            lines.append("")
            lines.append(f"*{remaining} more events not shown.*")
    else:
        lines.append("*No recent activity.*")
    lines.append("")

    lines.append("---")
    lines.append("")
    lines.append(
        f"*Report generated on {datetime.now().strftime('%B %d, %Y at %I:%M %p')}*"
    )

    return "\n".join(lines)


def _build_digest(digest: DailyDigest) -> list[str]:
    lines = []
    top = digest.top_contributor
    if top is not None:
        lines.append(
            f"**Top contributor:** [{top.account.login}](https://github.com/{top.account.login}) "
            f"with {top.total_count} contributions in the last {digest.window_days} days "
            f"({top.current_streak} day streak)"
        )
        lines.append("")

    lines.append("| Today | Count |")
    lines.append("|-------|-------|")
    lines.append(f"| Pushes | {digest.summary.push_count} |")
    lines.append(f"| Stars | {digest.summary.star_count} |")
    lines.append(f"| Pull Requests | {digest.summary.pr_count} |")
    lines.append(f"| Issues | {digest.summary.issue_count} |")
    lines.append(f"| Following | {digest.total_following} |")
    lines.append(f"| Avg. Daily Activity | {digest.average_daily_activity} |")

    return lines


def _build_streak_table(records: list[ContributionRecord]) -> list[str]:
    """Build the streak leaderboard table.

    Args:
        records: Contribution records in any order

    Returns:
        List of Markdown table lines
    """
    lines = []
    lines.append("| User | Streak | Progress | Contributions |")
    lines.append("|------|--------|----------|---------------|")

    for record in rank_by_streak(records):
        streak = record.current_streak
        flame = " 🔥" if streak >= 3 else ""
        lines.append(
            f"| {record.account.login} | {streak} day{'' if streak == 1 else 's'}{flame} | "
            f"{min(streak, STREAK_GOAL_DAYS)}/{STREAK_GOAL_DAYS} | {record.total_count} |"
        )

    return lines


def _build_feed_entry(event: Event) -> list[str]:
    lines = [
        f"- **{event.actor.login}** {describe_event(event)} "
        f"[{event.target_repo}](https://github.com/{event.target_repo}) "
        f"({event.timestamp.strftime('%b %d %H:%M')})"
    ]
    commits = event.commits
    for commit in commits[:3]:
        lines.append(f"  - `{commit.sha[:7]}` {commit.title}")
    if len(commits) > 3:
        lines.append(f"  - +{len(commits) - 3} more commits")
    return lines
