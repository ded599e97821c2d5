"""Data models for followed accounts, events and derived metrics."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class AccountKind(Enum):
    """Kind of a followed account, as reported in the API ``type`` field."""

    PERSON = "User"
    ORGANIZATION = "Organization"

    @classmethod
    def from_api(cls, value: str | None) -> "AccountKind":
        if value == cls.ORGANIZATION.value:
            return cls.ORGANIZATION
        return cls.PERSON


class EventCategory(Enum):
    """Closed set of event categories shown in the feed."""

    PUSH = "PushEvent"
    WATCH = "WatchEvent"
    CREATE = "CreateEvent"
    FORK = "ForkEvent"
    ISSUE = "IssuesEvent"
    PULL_REQUEST = "PullRequestEvent"
    OTHER = "Other"

    @classmethod
    def from_api(cls, event_type: str | None) -> "EventCategory":
        # Older payloads used the singular form.
        if event_type == "IssueEvent":
            return cls.ISSUE
        for category in cls:
            if category.value == event_type:
                return category
        return cls.OTHER


@dataclass(frozen=True)
class Account:
    """A followed identity on the forge."""

    login: str
    avatar_url: str = ""
    kind: AccountKind = AccountKind.PERSON

    @property
    def key(self) -> str:
        """Identity key; logins are case-insensitive."""
        return self.login.lower()

    @classmethod
    def from_api(cls, data: dict) -> "Account":
        return cls(
            login=data["login"],
            avatar_url=data.get("avatar_url") or "",
            kind=AccountKind.from_api(data.get("type")),
        )


@dataclass(frozen=True)
class Commit:
    """A single commit carried in a push event payload."""

    sha: str
    message: str

    @property
    def title(self) -> str:
        return self.message.split("\n", 1)[0]


@dataclass(frozen=True)
class Event:
    """A single public activity item attributed to an account."""

    id: str
    category: EventCategory
    actor: Account
    target_repo: str
    timestamp: datetime
    payload: dict = field(default_factory=dict, compare=False, hash=False)
    raw_type: str = ""

    @property
    def commits(self) -> list[Commit]:
        """Commits of a push event; empty when the payload carries none."""
        raw = self.payload.get("commits") or []
        return [
            Commit(sha=c.get("sha", ""), message=c.get("message", ""))
            for c in raw
        ]

    @classmethod
    def from_api(cls, data: dict) -> "Event":
        """Build an event from an API event record.

        Args:
            data: Event dict with ``id``, ``type``, ``actor``, ``repo``,
                ``payload`` and ``created_at`` keys

        Returns:
            Parsed Event
        """
        actor = data.get("actor") or {}
        return cls(
            id=str(data["id"]),
            category=EventCategory.from_api(data.get("type")),
            actor=Account(
                login=actor.get("login", ""),
                avatar_url=actor.get("avatar_url") or "",
            ),
            target_repo=(data.get("repo") or {}).get("name", ""),
            timestamp=parse_timestamp(data["created_at"]),
            payload=data.get("payload") or {},
            raw_type=data.get("type") or "",
        )


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 API timestamp into an aware datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class DailyContribution:
    """Commit count for one calendar day."""

    day: date
    count: int


@dataclass
class ContributionRecord:
    """Per-account contribution statistics over the lookback window."""

    account: Account
    total_count: int = 0
    current_streak: int = 0
    daily_history: tuple[DailyContribution, ...] = ()


@dataclass
class ActivitySummary:
    """Counts of feed activity for a single day."""

    push_count: int = 0
    star_count: int = 0
    pr_count: int = 0
    issue_count: int = 0


@dataclass
class DailyDigest:
    """Everything the daily digest view shows."""

    day: date
    summary: ActivitySummary
    top_contributor: ContributionRecord | None
    total_following: int
    average_daily_activity: int
    window_days: int = 30


@dataclass
class FeedSnapshot:
    """Complete output of one feed load."""

    generation: int
    fetched_at: datetime
    following: list[Account] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    contributions: list[ContributionRecord] = field(default_factory=list)
    digest: DailyDigest | None = None
    failed_accounts: dict[str, str] = field(default_factory=dict)
