"""Base class for git forge API clients."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from .errors import UpstreamProtocolError
from .models import Account, Event

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 50


@dataclass
class Page:
    """One page of a paginated listing."""

    items: list[Any] = field(default_factory=list)
    has_next: bool = False
    next_page: int = 0


class ForgeClient(ABC):
    """Abstract base class for git forge API clients.

    This class defines the interface the feed needs from a forge: paginated
    listing, the followed-account list and per-account public events.
    Clients are async context managers.
    """

    def __init__(
        self,
        token: str,
        max_pages: int = DEFAULT_MAX_PAGES,
        page_size: int = MAX_PAGE_SIZE,
    ):
        """Initialize the forge client.

        Args:
            token: Access credential issued for the signed-in user
            max_pages: Upper bound on pages followed by fetch_all
            page_size: Items requested per page by get_following
        """
        if max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")
        self.token = token
        self.max_pages = max_pages
        self.page_size = page_size
        self.api_call_count = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release any network resources held by the client."""

    @abstractmethod
    async def fetch_page(
        self, endpoint: str, page: int = 1, page_size: int = MAX_PAGE_SIZE
    ) -> Page:
        """Fetch one page of a paginated endpoint.

        Args:
            endpoint: API path, e.g. "/user/following"
            page: 1-based page number
            page_size: Items per page, at most MAX_PAGE_SIZE

        Returns:
            Page with the items and the cursor for the next request
        """

    @abstractmethod
    async def get_user_events(self, account: Account) -> list[Event]:
        """Fetch the recent public events of one account.

        Args:
            account: Followed account

        Returns:
            Events in the order the forge returned them
        """

    @abstractmethod
    async def validate_credential(self) -> Account:
        """Return the account the credential belongs to."""

    @abstractmethod
    def get_forge_name(self) -> str:
        """Return the name of this forge (e.g., 'GitHub')."""

    async def fetch_all(self, endpoint: str, page_size: int = MAX_PAGE_SIZE) -> list[Any]:
        """Fetch every page of an endpoint and concatenate the items.

        Args:
            endpoint: API path
            page_size: Items per page

        Returns:
            All items in request order

        Raises:
            UpstreamProtocolError: If the cursor does not move forward or is
                still advancing after max_pages requests
        """
        results: list[Any] = []
        page_num = 1

        for _ in range(self.max_pages):
            page = await self.fetch_page(endpoint, page_num, page_size)
            results.extend(page.items)
            if not page.has_next:
                logger.debug(f"{endpoint}: Total results: {len(results)}")
                return results
            if page.next_page <= page_num:
                raise UpstreamProtocolError(
                    f"Pagination for {endpoint} returned cursor {page.next_page} "
                    f"after page {page_num}"
                )
            page_num = page.next_page

        raise UpstreamProtocolError(
            f"Pagination for {endpoint} did not terminate after {self.max_pages} pages"
        )

    async def get_following(self) -> list[Account]:
        """Fetch every account the signed-in user follows."""
        items = await self.fetch_all("/user/following", self.page_size)
        try:
            return [Account.from_api(item) for item in items]
        except (KeyError, TypeError, AttributeError) as e:
            raise UpstreamProtocolError(f"Malformed /user/following item: {e!r}") from e

    def get_api_call_count(self) -> int:
        """Get the number of API calls made by this client.

        Returns:
            Total number of API calls
        """
        return self.api_call_count

    def reset_api_call_count(self) -> None:
        """Reset the API call counter to zero."""
        self.api_call_count = 0
