"""Concurrent aggregation of followed accounts' public events."""

import asyncio
import logging
from dataclasses import dataclass, field

from .errors import AuthenticationFailure, PartialFetchFailure
from .forge_client import ForgeClient
from .models import Account, Event

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10


@dataclass
class AggregationResult:
    """Merged timeline plus the per-account lists it was built from."""

    events: list[Event] = field(default_factory=list)
    per_account: dict[str, list[Event]] = field(default_factory=dict)
    failures: dict[str, PartialFetchFailure] = field(default_factory=dict)


def merge_timeline(event_lists: list[list[Event]]) -> list[Event]:
    """Flatten per-account lists and sort newest first."""
    merged = [event for events in event_lists for event in events]
    merged.sort(key=lambda e: e.timestamp, reverse=True)
    return merged


async def get_multiple_users_events(
    client: ForgeClient,
    accounts: list[Account],
    concurrency: int = DEFAULT_CONCURRENCY,
) -> AggregationResult:
    """Fetch events for every account concurrently and merge them.

    A failure for one account yields an empty list for that account only.
    A rejected credential is not scoped to one account and is re-raised.

    Args:
        client: Forge client holding the user's credential
        accounts: Followed accounts
        concurrency: Maximum number of requests in flight

    Returns:
        AggregationResult with the timeline sorted by timestamp descending
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")
    semaphore = asyncio.Semaphore(concurrency)

    async def fetch(account: Account) -> list[Event]:
        async with semaphore:
            return await client.get_user_events(account)

    outcomes = await asyncio.gather(
        *(fetch(account) for account in accounts), return_exceptions=True
    )

    result = AggregationResult()
    for account, outcome in zip(accounts, outcomes):
        if isinstance(outcome, AuthenticationFailure):
            raise outcome
        if isinstance(outcome, Exception):
            failure = PartialFetchFailure(account.login, outcome)
            logger.debug(str(failure))
            result.failures[account.key] = failure
            result.per_account[account.key] = []
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        result.per_account[account.key] = outcome

    result.events = merge_timeline(list(result.per_account.values()))
    logger.debug(
        f"Aggregated {len(result.events)} events from {len(accounts)} accounts "
        f"({len(result.failures)} failed)"
    )
    return result
