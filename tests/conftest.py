from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from gitplay.forges.github import GitHubClient
from gitplay.models import Account, Event, EventCategory

NOW = datetime(2024, 6, 5, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_event() -> Callable[..., Event]:
    counter = {"value": 0}

    def factory(
        login: str = "octocat",
        category: EventCategory = EventCategory.PUSH,
        *,
        at: datetime | None = None,
        days_ago: int = 0,
        commits: int | None = 1,
        repo: str = "octo/repo",
    ) -> Event:
        counter["value"] += 1
        timestamp = at or (NOW - timedelta(days=days_ago))
        payload: dict[str, Any] = {}
        if commits is not None:
            payload["commits"] = [
                {"sha": f"{counter['value']:04d}{i:036d}", "message": f"change {i}\n\nbody"}
                for i in range(commits)
            ]
        return Event(
            id=str(counter["value"]),
            category=category,
            actor=Account(login=login),
            target_repo=repo,
            timestamp=timestamp,
            payload=payload,
            raw_type=category.value,
        )

    return factory


@pytest.fixture
def api_event() -> Callable[..., dict[str, Any]]:
    def factory(
        event_id: str,
        login: str = "octocat",
        event_type: str = "PushEvent",
        created_at: str = "2024-06-05T10:00:00Z",
        commits: list[dict[str, str]] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if commits is not None:
            payload["commits"] = commits
        return {
            "id": event_id,
            "type": event_type,
            "actor": {"login": login, "avatar_url": f"https://avatars.example/{login}"},
            "repo": {"name": f"{login}/project"},
            "payload": payload,
            "created_at": created_at,
        }

    return factory


@pytest.fixture
def make_client() -> Callable[..., GitHubClient]:
    def factory(
        handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any
    ) -> GitHubClient:
        return GitHubClient(
            token="test-token",
            endpoint="https://api.github.test",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    return factory

