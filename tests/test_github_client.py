from __future__ import annotations

import httpx
import pytest

from gitplay.errors import AuthenticationFailure, RateLimitOrPermission, UpstreamProtocolError
from gitplay.models import Account, AccountKind, EventCategory


def _link(page: int, rel: str = "next") -> str:
    return f'<https://api.github.test/user/following?page={page}&per_page=2>; rel="{rel}"'


async def test_fetch_page_sends_credential_and_reads_next_link(make_client) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[{"login": "a"}, {"login": "b"}],
            headers={"Link": f"{_link(2)}, {_link(5, 'last')}"},
        )

    async with make_client(handler) as client:
        page = await client.fetch_page("/user/following", page=1, page_size=2)

    assert page.items == [{"login": "a"}, {"login": "b"}]
    assert page.has_next is True
    assert page.next_page == 2

    request = seen[0]
    assert request.url.path == "/user/following"
    assert request.url.params["page"] == "1"
    assert request.url.params["per_page"] == "2"
    assert request.headers["Authorization"] == "token test-token"
    assert request.headers["Accept"] == "application/vnd.github.v3+json"
    assert client.get_api_call_count() == 1


async def test_fetch_page_without_next_link_is_last_even_when_full(make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[{"login": "a"}, {"login": "b"}],
            headers={"Link": _link(1, "prev")},
        )

    async with make_client(handler) as client:
        page = await client.fetch_page("/user/following", page=2, page_size=2)

    assert page.has_next is False


@pytest.mark.parametrize("page, page_size", [(0, 10), (1, 0), (1, 101)])
async def test_fetch_page_rejects_out_of_range_arguments(make_client, page, page_size) -> None:
    async with make_client(lambda request: httpx.Response(200, json=[])) as client:
        with pytest.raises(ValueError):
            await client.fetch_page("/user/following", page=page, page_size=page_size)
        assert client.get_api_call_count() == 0


async def test_fetch_all_concatenates_pages_in_order(make_client) -> None:
    pages = {
        "1": ([{"login": "a"}, {"login": "b"}], _link(2)),
        "2": ([{"login": "c"}, {"login": "d"}], _link(3)),
        "3": ([{"login": "e"}], ""),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        items, link = pages[request.url.params["page"]]
        headers = {"Link": link} if link else {}
        return httpx.Response(200, json=items, headers=headers)

    async with make_client(handler, page_size=2) as client:
        following = await client.get_following()

    assert [a.login for a in following] == ["a", "b", "c", "d", "e"]
    assert client.get_api_call_count() == 3


async def test_fetch_all_stops_runaway_pagination(make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        # Always claims another page.
        current = int(request.url.params["page"])
        return httpx.Response(
            200, json=[{"login": "loop"}], headers={"Link": _link(current + 1)}
        )

    async with make_client(handler, max_pages=4) as client:
        with pytest.raises(UpstreamProtocolError, match="did not terminate"):
            await client.fetch_all("/user/following")
        assert client.get_api_call_count() == 4


@pytest.mark.parametrize("next_page", [0, 1])
async def test_fetch_all_rejects_cursor_that_does_not_advance(make_client, next_page) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json=[{"login": "a"}], headers={"Link": _link(next_page)}
        )

    async with make_client(handler) as client:
        with pytest.raises(UpstreamProtocolError, match="returned cursor"):
            await client.get_following()
        assert client.get_api_call_count() == 1


@pytest.mark.parametrize("item", [{"avatar_url": "x"}, "octocat", None])
async def test_malformed_following_item_raises_upstream_error(make_client, item) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"login": "a"}, item])

    async with make_client(handler) as client:
        with pytest.raises(UpstreamProtocolError, match="Malformed"):
            await client.get_following()


async def test_unauthorized_raises_authentication_failure(make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Bad credentials"})

    async with make_client(handler) as client:
        with pytest.raises(AuthenticationFailure) as exc_info:
            await client.get_following()

    assert exc_info.value.status_code == 401
    assert exc_info.value.retryable is False


async def test_forbidden_raises_rate_limit_with_api_message(make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            403,
            json={"message": "API rate limit exceeded for user ID 1."},
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1717600000"},
        )

    async with make_client(handler) as client:
        with pytest.raises(RateLimitOrPermission) as exc_info:
            await client.get_following()

    error = exc_info.value
    assert str(error) == "API rate limit exceeded for user ID 1."
    assert error.retryable is True
    assert error.rate_limit_remaining == 0
    assert error.rate_limit_reset == 1717600000
    assert client.get_api_call_count() == 1


async def test_other_status_raises_upstream_error_with_body(make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    async with make_client(handler) as client:
        with pytest.raises(UpstreamProtocolError) as exc_info:
            await client.get_following()

    assert exc_info.value.status_code == 502
    assert exc_info.value.body == "bad gateway"


async def test_non_list_body_raises_upstream_error(make_client) -> None:
    async with make_client(lambda request: httpx.Response(200, json={"oops": True})) as client:
        with pytest.raises(UpstreamProtocolError, match="expected a list"):
            await client.fetch_page("/user/following")


async def test_transport_error_is_wrapped(make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    async with make_client(handler) as client:
        with pytest.raises(UpstreamProtocolError) as exc_info:
            await client.get_following()

    assert exc_info.value.status_code is None


async def test_user_and_org_events_use_different_namespaces(make_client, api_event) -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json=[api_event("1", commits=[{"sha": "abc", "message": "m"}])])

    async with make_client(handler) as client:
        user_events = await client.get_user_events(Account(login="alice"))
        await client.get_user_events(Account(login="acme", kind=AccountKind.ORGANIZATION))

    assert paths == ["/users/alice/events", "/orgs/acme/events"]
    assert user_events[0].category is EventCategory.PUSH
    assert len(user_events[0].commits) == 1


async def test_user_events_keep_api_order_and_tolerate_missing_commits(make_client, api_event) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                api_event("2", event_type="WatchEvent", created_at="2024-06-04T00:00:00Z"),
                api_event("1", created_at="2024-06-05T00:00:00Z"),
                api_event("3", event_type="IssueEvent", created_at="2024-06-03T00:00:00Z"),
            ],
        )

    async with make_client(handler) as client:
        events = await client.get_user_events(Account(login="octocat"))

    assert [e.id for e in events] == ["2", "1", "3"]
    assert events[1].commits == []
    assert events[2].category is EventCategory.ISSUE


async def test_validate_credential_returns_signed_in_account(make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/user"
        return httpx.Response(200, json={"login": "me", "avatar_url": "x", "type": "User"})

    async with make_client(handler) as client:
        account = await client.validate_credential()

    assert account == Account(login="me", avatar_url="x", kind=AccountKind.PERSON)


def test_get_next_page_url(make_client) -> None:
    client = make_client(lambda request: httpx.Response(200, json=[]))

    assert client._get_next_page_url("") is None
    assert client._get_next_page_url(_link(3, "last")) is None
    assert client._get_next_page_url(f"{_link(1, 'prev')}, {_link(3)}") == (
        "https://api.github.test/user/following?page=3&per_page=2"
    )
