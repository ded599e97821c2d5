"""GitHub API client implementation."""

import logging
from typing import Any

import httpx

from ..errors import AuthenticationFailure, RateLimitOrPermission, UpstreamProtocolError
from ..forge_client import DEFAULT_MAX_PAGES, MAX_PAGE_SIZE, ForgeClient, Page
from ..models import Account, AccountKind, Event

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0


class GitHubClient(ForgeClient):
    """GitHub API client for the followed-accounts feed."""

    def __init__(
        self,
        token: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        max_pages: int = DEFAULT_MAX_PAGES,
        page_size: int = MAX_PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize GitHub client.

        Args:
            token: GitHub OAuth or personal access token
            endpoint: API endpoint URL (for GitHub Enterprise)
            timeout: Per-request timeout in seconds
            max_pages: Upper bound on pages followed by fetch_all
            page_size: Items requested per page by get_following
            transport: Optional httpx transport, used by tests
        """
        super().__init__(token, max_pages=max_pages, page_size=page_size)
        self.endpoint = endpoint.rstrip("/")
        self.headers = {
            "Authorization": f"token {self.token}",
            "Accept": "application/vnd.github.v3+json",
        }
        self._client = httpx.AsyncClient(
            base_url=self.endpoint,
            headers=self.headers,
            timeout=timeout,
            transport=transport,
        )

    def get_forge_name(self) -> str:
        """Return the forge name."""
        return "GitHub"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_page(
        self, endpoint: str, page: int = 1, page_size: int = MAX_PAGE_SIZE
    ) -> Page:
        """Fetch one page of a paginated GitHub listing.

        Whether another page exists is decided by the ``rel="next"`` entry
        of the Link header alone, since GitHub does not report totals.

        Args:
            endpoint: API path, e.g. "/user/following"
            page: 1-based page number
            page_size: Items per page (1-100)

        Returns:
            Page of items with the next cursor
        """
        if page < 1:
            raise ValueError(f"page must be at least 1, got {page}")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

        response = await self._get(endpoint, params={"page": page, "per_page": page_size})
        items = self._json_list(response, endpoint)
        logger.debug(f"GitHub API: Received {len(items)} items")

        next_url = self._get_next_page_url(response.headers.get("Link", ""))
        if next_url is None:
            return Page(items=items, has_next=False, next_page=page + 1)
        return Page(items=items, has_next=True, next_page=self._page_number(next_url, page + 1))

    async def get_user_events(self, account: Account) -> list[Event]:
        """Fetch the recent public events of a user or organization.

        Users and organizations live under different namespaces. Only the
        API's default page is consumed.

        Args:
            account: Followed account

        Returns:
            Events in API order
        """
        if account.kind is AccountKind.ORGANIZATION:
            path = f"/orgs/{account.login}/events"
        else:
            path = f"/users/{account.login}/events"

        response = await self._get(path)
        return [Event.from_api(item) for item in self._json_list(response, path)]

    async def validate_credential(self) -> Account:
        """Check the token by fetching the authenticated user."""
        response = await self._get("/user")
        try:
            return Account.from_api(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamProtocolError(
                f"Malformed /user response: {e}", response.status_code, response.text
            ) from e

    async def _get(self, path: str, params: dict | None = None) -> httpx.Response:
        """Issue one GET and map failure statuses to forge errors.

        Args:
            path: API path relative to the endpoint
            params: Query parameters

        Returns:
            The successful response
        """
        logger.debug(f"GitHub API: GET {path} (params: {params})")
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamProtocolError(f"GitHub API request to {path} failed: {e}") from e
        self.api_call_count += 1

        if response.is_success:
            return response

        status = response.status_code
        body = response.text
        if status == 401:
            raise AuthenticationFailure(
                "GitHub rejected the access token; sign in again", status, body
            )
        if status == 403:
            raise RateLimitOrPermission(
                self._error_message(response),
                status,
                body,
                rate_limit_remaining=self._int_header(response, "X-RateLimit-Remaining"),
                rate_limit_reset=self._int_header(response, "X-RateLimit-Reset"),
            )
        raise UpstreamProtocolError(f"GitHub API error: {status} for {path}", status, body)

    @staticmethod
    def _json_list(response: httpx.Response, path: str) -> list[Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamProtocolError(
                f"GitHub API returned invalid JSON for {path}", response.status_code, response.text
            ) from e
        if not isinstance(data, list):
            raise UpstreamProtocolError(
                f"GitHub API returned {type(data).__name__} for {path}, expected a list",
                response.status_code,
                response.text,
            )
        return data

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            message = response.json().get("message")
        except (ValueError, AttributeError):
            message = None
        return message or response.text or f"GitHub API error: {response.status_code}"

    @staticmethod
    def _int_header(response: httpx.Response, name: str) -> int | None:
        value = response.headers.get(name)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    def _get_next_page_url(self, link_header: str) -> str | None:
        """Extract next page URL from Link header.

        Args:
            link_header: GitHub Link header value

        Returns:
            URL of next page or None if no more pages
        """
        if not link_header:
            return None

        for link in link_header.split(","):
            parts = link.split(";")
            if len(parts) >= 2 and any(p.strip() == 'rel="next"' for p in parts[1:]):
                return parts[0].strip("<> ")

        return None

    @staticmethod
    def _page_number(url: str, default: int) -> int:
        value = httpx.URL(url).params.get("page")
        try:
            return int(value) if value is not None else default
        except ValueError:
            return default
