"""Feed loading: one load per view, stale loads discarded."""

import logging
from datetime import datetime, timezone

from .aggregator import DEFAULT_CONCURRENCY, get_multiple_users_events
from .contributions import DEFAULT_WINDOW_DAYS, compute_all_contributions
from .forge_client import ForgeClient
from .models import FeedSnapshot
from .summary import build_daily_digest

logger = logging.getLogger(__name__)


class FeedLoader:
    """Builds FeedSnapshots from live API data.

    Every call to load() takes a new generation. A load whose generation
    has been superseded by the time its network calls finish is dropped
    and never replaces ``latest``.
    """

    def __init__(
        self,
        client: ForgeClient,
        window_days: int = DEFAULT_WINDOW_DAYS,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        if window_days < 1:
            raise ValueError(f"window_days must be at least 1, got {window_days}")
        self.client = client
        self.window_days = window_days
        self.concurrency = concurrency
        self.generation = 0
        self.latest: FeedSnapshot | None = None

    def invalidate(self) -> None:
        """Supersede any in-flight load, e.g. when the view goes away."""
        self.generation += 1

    def _is_current(self, generation: int) -> bool:
        return generation == self.generation

    async def load(
        self, now: datetime | None = None, verify: bool = False
    ) -> FeedSnapshot | None:
        """Fetch everything the feed views need.

        Args:
            now: Processing instant (defaults to the current UTC time)
            verify: Check the credential against the forge before loading

        Returns:
            The new snapshot, or None if a newer load superseded this one

        Raises:
            ForgeError: If the credential check fails or the followed-account
                list cannot be fetched
        """
        self.generation += 1
        generation = self.generation
        if now is None:
            now = datetime.now(timezone.utc)

        if verify:
            viewer = await self.client.validate_credential()
            logger.debug(f"Loading feed for {viewer.login}")
            if not self._is_current(generation):
                logger.debug(f"Discarding stale feed load {generation}")
                return None

        following = await self.client.get_following()
        if not self._is_current(generation):
            logger.debug(f"Discarding stale feed load {generation}")
            return None
        logger.debug(f"Following {len(following)} accounts")

        aggregation = await get_multiple_users_events(
            self.client, following, concurrency=self.concurrency
        )
        if not self._is_current(generation):
            logger.debug(f"Discarding stale feed load {generation}")
            return None

        contributions = compute_all_contributions(
            following, aggregation.per_account, self.window_days, now
        )
        snapshot = FeedSnapshot(
            generation=generation,
            fetched_at=now,
            following=following,
            events=aggregation.events,
            contributions=contributions,
            digest=build_daily_digest(
                aggregation.events,
                contributions,
                len(following),
                now.astimezone(timezone.utc).date(),
                self.window_days,
            ),
            failed_accounts={
                key: str(failure) for key, failure in aggregation.failures.items()
            },
        )
        self.latest = snapshot
        return snapshot
