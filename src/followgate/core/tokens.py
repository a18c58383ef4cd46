"""Token utilities — opaque verification tokens and signed wallet-session tokens."""

import secrets
from datetime import datetime, timedelta

import jwt

from followgate.config import SESSION_JWT_ALGORITHM, FollowGateConfig
from followgate.utils import utc_now

_SESSION_TYPE = "wallet_session"


def generate_verification_token() -> str:
    """Generate an unguessable verification token (256 bits of entropy, URL-safe)."""
    return secrets.token_urlsafe(32)


def create_session_token(
    wallet_address: str,
    config: FollowGateConfig,
    *,
    now: datetime | None = None,
) -> str:
    """Sign a wallet-session token carrying the wallet address.

    This is the session binder: the OAuth callback reads the wallet back
    from it and stamps the new verification record with it.
    """
    now = now or utc_now()
    payload = {
        "typ": _SESSION_TYPE,
        "wallet": wallet_address,
        "iat": now,
        "exp": now + timedelta(seconds=config.session.max_age_seconds),
    }
    return jwt.encode(payload, config.session_secret, algorithm=SESSION_JWT_ALGORITHM)


def read_session_wallet(token: str | None, config: FollowGateConfig) -> str | None:
    """Return the wallet bound in a session token, or None if missing, tampered or expired."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, config.session_secret, algorithms=[SESSION_JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    if payload.get("typ") != _SESSION_TYPE:
        return None
    wallet = payload.get("wallet")
    return wallet or None
