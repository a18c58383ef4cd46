"""Core OAuth logic — state token management, PKCE, and identity + follow resolution.

Framework-agnostic. Called by integration adapters (FastAPI router, etc.).
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

import jwt

from followgate.config import SESSION_JWT_ALGORITHM, FollowGateConfig
from followgate.utils import utc_now

if TYPE_CHECKING:
    from followgate.providers.base import ExternalIdentity, FollowPredicate, IdentityProvider

logger = logging.getLogger("followgate.oauth")


class OAuthError(Exception):
    """OAuth handshake failure with an error code and HTTP status."""

    def __init__(self, message: str, code: str, status_code: int = 400):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


def _generate_pkce() -> tuple[str, str]:
    """Generate PKCE code_verifier and code_challenge (S256).

    Returns:
        (code_verifier, code_challenge) tuple.
    """
    code_verifier = secrets.token_urlsafe(64)  # 86 chars, within the 43-128 range
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    code_challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return code_verifier, code_challenge


@dataclass(frozen=True, slots=True)
class OAuthState:
    """Result of creating OAuth state — the signed state token and PKCE values."""

    state: str
    code_verifier: str
    code_challenge: str


def create_oauth_state(config: FollowGateConfig, *, provider_name: str) -> OAuthState:
    """Create a signed state token with the PKCE code_verifier embedded.

    The verifier travels inside the signed state, so the callback can
    recover it without server-side storage.
    """
    now = utc_now()
    code_verifier, code_challenge = _generate_pkce()

    payload = {
        "typ": "oauth_state",
        "prv": provider_name,
        "nonce": secrets.token_urlsafe(16),
        "pkce": code_verifier,
        "iat": now,
        "exp": now + timedelta(seconds=config.oauth_state_ttl_seconds),
    }
    state = jwt.encode(payload, config.session_secret, algorithm=SESSION_JWT_ALGORITHM)
    return OAuthState(state=state, code_verifier=code_verifier, code_challenge=code_challenge)


def verify_oauth_state(config: FollowGateConfig, *, state: str, expected_provider: str) -> str:
    """Verify the OAuth state token and return its PKCE code_verifier.

    Raises:
        OAuthError: If invalid, expired, or issued for another provider.
    """
    try:
        payload = jwt.decode(state, config.session_secret, algorithms=[SESSION_JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise OAuthError("OAuth state expired", code="oauth_state_expired")
    except jwt.InvalidTokenError:
        raise OAuthError("Invalid OAuth state", code="oauth_state_invalid")

    if payload.get("typ") != "oauth_state":
        raise OAuthError("Invalid OAuth state", code="oauth_state_invalid")

    if payload.get("prv") != expected_provider:
        raise OAuthError("OAuth state provider mismatch", code="oauth_state_provider_mismatch")

    return payload.get("pkce", "")


async def resolve_identity(
    *,
    provider: IdentityProvider,
    code: str,
    redirect_uri: str,
    code_verifier: str | None = None,
) -> ExternalIdentity:
    """Complete the OAuth handshake: exchange the code and fetch the account.

    Raises:
        OAuthError: If the code exchange or the account lookup fails.
    """
    try:
        token_data = await provider.exchange_code(
            code=code, redirect_uri=redirect_uri, code_verifier=code_verifier,
        )
    except OAuthError:
        raise
    except Exception as e:
        raise OAuthError(f"Failed to exchange OAuth code: {e}", code="oauth_exchange_failed")

    access_token = token_data.get("access_token")
    if not access_token:
        raise OAuthError("No access token in provider response", code="oauth_exchange_failed")

    try:
        return await provider.get_identity(access_token=access_token)
    except OAuthError:
        raise
    except Exception as e:
        raise OAuthError(
            f"Failed to fetch account from {provider.name}: {e}",
            code="oauth_user_info_failed",
        )


async def evaluate_follow(predicate: FollowPredicate, identity: ExternalIdentity) -> bool:
    """Run the follow predicate, fail-closed: an error means not following."""
    try:
        return bool(await predicate.is_following(identity))
    except Exception:
        logger.exception("Follow check failed for @%s", identity.account_name)
        return False
