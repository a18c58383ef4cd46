"""Identity provider and follow predicate interfaces."""

from __future__ import annotations

import abc
import urllib.parse
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ExternalIdentity:
    """Normalized account info returned by an identity provider after the OAuth handshake."""

    provider: str
    account_id: str
    account_name: str
    display_name: str | None = None
    access_token: str | None = None


@dataclass(frozen=True)
class IdentityProvider(abc.ABC):
    """Abstract base for social identity providers.

    Subclasses must implement:
        name            — provider identifier (e.g. "twitter")
        authorize_url   — provider's authorization endpoint
        token_url       — provider's token exchange endpoint
        exchange_code() — exchange auth code for tokens
        get_identity()  — fetch the authenticated account
    """

    client_id: str
    client_secret: str
    extra_scopes: tuple[str, ...] = ()
    redirect_uri: str | None = None

    REQUIRED_SCOPES: ClassVar[tuple[str, ...]] = ()

    @property
    @abc.abstractmethod
    def name(self) -> str: ...

    @property
    @abc.abstractmethod
    def authorize_url(self) -> str: ...

    @property
    @abc.abstractmethod
    def token_url(self) -> str: ...

    @property
    def scopes(self) -> tuple[str, ...]:
        """Combined required + extra scopes (deduplicated, order-preserving)."""
        seen: set[str] = set()
        result: list[str] = []
        for s in self.REQUIRED_SCOPES + self.extra_scopes:
            if s not in seen:
                seen.add(s)
                result.append(s)
        return tuple(result)

    def get_authorization_url(
        self, *, redirect_uri: str, state: str, code_challenge: str | None = None,
    ) -> str:
        """Build the full authorization URL with query params.

        Includes PKCE code_challenge (S256) when provided.
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "state": state,
            "scope": " ".join(self.scopes),
        }
        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"
        return f"{self.authorize_url}?{urllib.parse.urlencode(params)}"

    @abc.abstractmethod
    async def exchange_code(
        self, *, code: str, redirect_uri: str, code_verifier: str | None = None,
    ) -> dict[str, Any]:
        """Exchange authorization code for provider tokens.

        Returns raw token response dict from the provider.
        """
        ...

    @abc.abstractmethod
    async def get_identity(self, *, access_token: str) -> ExternalIdentity:
        """Fetch the authenticated account from the provider API."""
        ...


@runtime_checkable
class FollowPredicate(Protocol):
    """Best-effort answer to "does this account follow the target account?".

    Implementations should return False rather than raise when they cannot
    tell; callers additionally treat any exception as False.
    """

    async def is_following(self, identity: ExternalIdentity) -> bool: ...
