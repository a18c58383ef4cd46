"""Twitter / X OAuth 2.0 provider and following-list predicate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

import httpx

from followgate.core.oauth import OAuthError
from followgate.providers.base import ExternalIdentity, IdentityProvider

logger = logging.getLogger("followgate.providers.twitter")

API_BASE = "https://api.twitter.com/2"


@dataclass(frozen=True)
class TwitterProvider(IdentityProvider):
    """Twitter OAuth 2.0 (authorization code + PKCE) provider.

    Required scopes: tweet.read, users.read, follows.read.
    Token exchange authenticates the client with HTTP Basic, as required
    for confidential clients.
    """

    REQUIRED_SCOPES: ClassVar[tuple[str, ...]] = ("tweet.read", "users.read", "follows.read")

    @property
    def name(self) -> str:
        return "twitter"

    @property
    def authorize_url(self) -> str:
        return "https://twitter.com/i/oauth2/authorize"

    @property
    def token_url(self) -> str:
        return f"{API_BASE}/oauth2/token"

    async def exchange_code(
        self, *, code: str, redirect_uri: str, code_verifier: str | None = None,
    ) -> dict[str, Any]:
        """Exchange authorization code for a user access token."""
        data = {
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
            "client_id": self.client_id,
        }
        if code_verifier:
            data["code_verifier"] = code_verifier

        async with httpx.AsyncClient() as client:
            response = await client.post(
                self.token_url, data=data, auth=(self.client_id, self.client_secret),
            )
            response.raise_for_status()
            return response.json()

    async def get_identity(self, *, access_token: str) -> ExternalIdentity:
        """Fetch the authenticated account from /2/users/me."""
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{API_BASE}/users/me",
                params={"user.fields": "id,name,username"},
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            data = response.json().get("data")

        if not data or not data.get("id") or not data.get("username"):
            raise OAuthError(
                "Twitter did not return an account id",
                code="oauth_user_info_failed",
                status_code=400,
            )

        return ExternalIdentity(
            provider="twitter",
            account_id=str(data["id"]),
            account_name=data["username"],
            display_name=data.get("name"),
            access_token=access_token,
        )


class TwitterFollowPredicate:
    """Checks the user's following list for target_account_id.

    Pages through GET /2/users/{id}/following with the user's own access
    token. Any API failure counts as "not following".
    """

    def __init__(
        self,
        target_account_id: str,
        *,
        page_size: int = 1000,
        max_pages: int | None = None,
        http_timeout: float = 10.0,
        _transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.target_account_id = target_account_id
        self.page_size = page_size
        self.max_pages = max_pages
        self._http_timeout = http_timeout
        self._transport = _transport

    async def is_following(self, identity: ExternalIdentity) -> bool:
        if not identity.access_token:
            logger.warning("No access token for @%s, cannot check following", identity.account_name)
            return False

        headers = {"Authorization": f"Bearer {identity.access_token}"}
        params: dict[str, Any] = {"max_results": self.page_size, "user.fields": "id"}
        pages = 0

        try:
            async with httpx.AsyncClient(
                timeout=self._http_timeout, transport=self._transport,
            ) as client:
                while True:
                    response = await client.get(
                        f"{API_BASE}/users/{identity.account_id}/following",
                        params=params,
                        headers=headers,
                    )
                    response.raise_for_status()
                    body = response.json()
                    pages += 1

                    for user in body.get("data") or []:
                        if str(user.get("id")) == self.target_account_id:
                            return True

                    next_token = (body.get("meta") or {}).get("next_token")
                    if not next_token:
                        return False
                    if self.max_pages is not None and pages >= self.max_pages:
                        logger.warning(
                            "Stopped following scan for @%s after %d pages",
                            identity.account_name, pages,
                        )
                        return False
                    params["pagination_token"] = next_token
        except (httpx.HTTPError, ValueError):
            logger.warning(
                "Error checking follow status for @%s", identity.account_name, exc_info=True,
            )
            return False
