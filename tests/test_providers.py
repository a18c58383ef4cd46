"""Tests for the Twitter provider and following-list predicate with mocked HTTP calls."""

import json
import urllib.parse
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from followgate import OAuthError
from followgate.providers.base import ExternalIdentity, FollowPredicate
from followgate.providers.twitter import TwitterFollowPredicate, TwitterProvider

from conftest import TARGET_ID


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_response(json_data: dict, status_code: int = 200) -> MagicMock:
    """Create a mock httpx.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data
    resp.raise_for_status = MagicMock()
    if status_code >= 400:
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            "error", request=MagicMock(), response=resp,
        )
    return resp


def _mock_client(method: str, response: MagicMock) -> AsyncMock:
    client = AsyncMock()
    getattr(client, method).return_value = response
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


def _identity(access_token: str | None = "user-token") -> ExternalIdentity:
    return ExternalIdentity(
        provider="twitter", account_id="42", account_name="alice", access_token=access_token,
    )


def _following_transport(pages: list[dict], calls: list[httpx.Request], status_code: int = 200):
    """MockTransport serving pages of /following, keyed by pagination_token."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"title": "Too Many Requests"})
        index = int(request.url.params.get("pagination_token", "0"))
        return httpx.Response(200, json=pages[index])

    return httpx.MockTransport(handler)


def _page(ids: list[str], next_index: int | None = None) -> dict:
    body: dict = {"data": [{"id": i} for i in ids], "meta": {"result_count": len(ids)}}
    if next_index is not None:
        body["meta"]["next_token"] = str(next_index)
    return body


# ---------------------------------------------------------------------------
# Twitter Provider
# ---------------------------------------------------------------------------


class TestTwitterProvider:
    """Test TwitterProvider with mocked httpx."""

    def _provider(self, **kwargs) -> TwitterProvider:
        return TwitterProvider(
            client_id="twitter-client-id",
            client_secret="twitter-client-secret",
            **kwargs,
        )

    def test_authorization_url(self):
        url = self._provider().get_authorization_url(
            redirect_uri="http://localhost/twitter/callback",
            state="state-123",
            code_challenge="challenge",
        )
        parsed = urllib.parse.urlparse(url)
        params = urllib.parse.parse_qs(parsed.query)

        assert url.startswith("https://twitter.com/i/oauth2/authorize?")
        assert params["client_id"] == ["twitter-client-id"]
        assert params["state"] == ["state-123"]
        assert params["code_challenge_method"] == ["S256"]
        assert params["scope"] == ["tweet.read users.read follows.read"]

    def test_extra_scopes_deduplicated(self):
        provider = self._provider(extra_scopes=("users.read", "offline.access"))
        assert provider.scopes == ("tweet.read", "users.read", "follows.read", "offline.access")

    async def test_exchange_code_with_pkce(self):
        provider = self._provider()
        mock_client = _mock_client("post", _mock_response({"access_token": "tok"}))

        with patch("followgate.providers.twitter.httpx.AsyncClient", return_value=mock_client):
            result = await provider.exchange_code(
                code="auth-code", redirect_uri="http://localhost/cb", code_verifier="verifier-123",
            )

        assert result["access_token"] == "tok"
        call_kwargs = mock_client.post.call_args[1]
        assert call_kwargs["data"]["code"] == "auth-code"
        assert call_kwargs["data"]["code_verifier"] == "verifier-123"
        assert call_kwargs["auth"] == ("twitter-client-id", "twitter-client-secret")

    async def test_exchange_code_http_error(self):
        provider = self._provider()
        mock_client = _mock_client("post", _mock_response({"error": "invalid_grant"}, 400))

        with patch("followgate.providers.twitter.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(httpx.HTTPStatusError):
                await provider.exchange_code(code="bad", redirect_uri="http://localhost/cb")

    async def test_get_identity(self):
        provider = self._provider()
        mock_client = _mock_client("get", _mock_response(
            {"data": {"id": "42", "name": "Alice", "username": "alice"}},
        ))

        with patch("followgate.providers.twitter.httpx.AsyncClient", return_value=mock_client):
            identity = await provider.get_identity(access_token="user-token")

        assert identity.account_id == "42"
        assert identity.account_name == "alice"
        assert identity.display_name == "Alice"
        assert identity.access_token == "user-token"
        headers = mock_client.get.call_args[1]["headers"]
        assert headers["Authorization"] == "Bearer user-token"

    async def test_get_identity_missing_username(self):
        provider = self._provider()
        mock_client = _mock_client("get", _mock_response({"data": {"id": "42"}}))

        with patch("followgate.providers.twitter.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(OAuthError) as exc:
                await provider.get_identity(access_token="user-token")
        assert exc.value.code == "oauth_user_info_failed"


# ---------------------------------------------------------------------------
# Following-list predicate
# ---------------------------------------------------------------------------


class TestTwitterFollowPredicate:
    def test_satisfies_protocol(self):
        assert isinstance(TwitterFollowPredicate(TARGET_ID), FollowPredicate)

    async def test_found_on_first_page(self):
        calls: list[httpx.Request] = []
        predicate = TwitterFollowPredicate(
            TARGET_ID, _transport=_following_transport([_page(["1", TARGET_ID])], calls),
        )
        assert await predicate.is_following(_identity()) is True

        assert len(calls) == 1
        assert calls[0].url.path == "/2/users/42/following"
        assert calls[0].headers["Authorization"] == "Bearer user-token"
        assert calls[0].url.params["max_results"] == "1000"

    async def test_found_on_later_page(self):
        calls: list[httpx.Request] = []
        pages = [_page(["1", "2"], next_index=1), _page(["3", TARGET_ID])]
        predicate = TwitterFollowPredicate(TARGET_ID, _transport=_following_transport(pages, calls))

        assert await predicate.is_following(_identity()) is True
        assert len(calls) == 2
        assert calls[1].url.params["pagination_token"] == "1"

    async def test_not_following(self):
        calls: list[httpx.Request] = []
        pages = [_page(["1"], next_index=1), _page(["2"])]
        predicate = TwitterFollowPredicate(TARGET_ID, _transport=_following_transport(pages, calls))

        assert await predicate.is_following(_identity()) is False
        assert len(calls) == 2

    async def test_empty_following_list(self):
        calls: list[httpx.Request] = []
        predicate = TwitterFollowPredicate(
            TARGET_ID, _transport=_following_transport([{"meta": {"result_count": 0}}], calls),
        )
        assert await predicate.is_following(_identity()) is False

    async def test_max_pages_stops_scan(self):
        calls: list[httpx.Request] = []
        pages = [_page(["1"], next_index=1), _page(["2"], next_index=2), _page([TARGET_ID])]
        predicate = TwitterFollowPredicate(
            TARGET_ID, max_pages=2, _transport=_following_transport(pages, calls),
        )

        assert await predicate.is_following(_identity()) is False
        assert len(calls) == 2

    async def test_api_error_is_not_following(self):
        calls: list[httpx.Request] = []
        predicate = TwitterFollowPredicate(
            TARGET_ID, _transport=_following_transport([], calls, status_code=429),
        )
        assert await predicate.is_following(_identity()) is False

    async def test_invalid_json_is_not_following(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
        predicate = TwitterFollowPredicate(TARGET_ID, _transport=transport)
        assert await predicate.is_following(_identity()) is False

    async def test_no_access_token(self):
        calls: list[httpx.Request] = []
        predicate = TwitterFollowPredicate(
            TARGET_ID, _transport=_following_transport([_page([TARGET_ID])], calls),
        )
        assert await predicate.is_following(_identity(access_token=None)) is False
        assert calls == []

    async def test_numeric_ids_compare_as_strings(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=json.dumps({"data": [{"id": int(TARGET_ID)}]})),
        )
        predicate = TwitterFollowPredicate(TARGET_ID, _transport=transport)
        assert await predicate.is_following(_identity()) is True
