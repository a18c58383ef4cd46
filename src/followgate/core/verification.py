"""Verification service — issue follow-verification records and answer verify-follow checks.

Framework-agnostic. All functions take a CredentialStore and config.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from followgate.config import FollowGateConfig
from followgate.core.schemas import VerificationResult
from followgate.core.tokens import generate_verification_token
from followgate.models import VerificationRecord
from followgate.store import CredentialStore, DuplicateToken, RecordNotFound
from followgate.utils import utc_now

if TYPE_CHECKING:
    from followgate.events import EventCollector

logger = logging.getLogger("followgate.verification")

_MAX_TOKEN_ATTEMPTS = 3


class ErrorCode(StrEnum):
    """User-facing lifecycle failures. Returned in results, never raised to callers."""

    INVALID_OR_EXPIRED = "InvalidOrExpired"
    WALLET_MISMATCH = "WalletMismatch"
    PREDICATE_NOT_SATISFIED = "PredicateNotSatisfied"
    ALREADY_CLAIMED = "AlreadyClaimed"


class VerificationError(Exception):
    """Lifecycle rule violation with an error code and a human-readable message."""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class TokenCollisionError(RuntimeError):
    """Token generation kept colliding with live records. The generator is broken."""


def _invalid_or_expired() -> VerificationError:
    return VerificationError(ErrorCode.INVALID_OR_EXPIRED, "Invalid or expired token")


def load_for_wallet(
    store: CredentialStore,
    token: str | None,
    wallet_address: str | None,
) -> VerificationRecord:
    """Fetch a live record and check it belongs to wallet_address.

    Raises:
        VerificationError: INVALID_OR_EXPIRED if the token is unknown or past its TTL.
        VerificationError: WALLET_MISMATCH if the record is bound to another wallet
            (or to no wallet at all).
    """
    if not token:
        raise _invalid_or_expired()
    try:
        record = store.get(token)
    except RecordNotFound:
        raise _invalid_or_expired()
    if not record.belongs_to(wallet_address):
        raise VerificationError(ErrorCode.WALLET_MISMATCH, "Token does not match wallet")
    return record


def issue_verification(
    store: CredentialStore,
    *,
    config: FollowGateConfig,
    wallet_address: str | None,
    account_id: str,
    account_name: str,
    follows: bool,
    now: datetime | None = None,
    events: EventCollector | None = None,
) -> str:
    """Create a verification record for a resolved identity and return its token.

    wallet_address may be None when no session binding happened; such a
    record can never be verified or claimed (every wallet comparison fails).

    Raises:
        TokenCollisionError: If fresh tokens keep colliding with stored ones.
    """
    now = now or utc_now()
    expires_at = now + timedelta(seconds=config.verification_ttl_seconds)

    for _ in range(_MAX_TOKEN_ATTEMPTS):
        token = generate_verification_token()
        record = VerificationRecord(
            token=token,
            account_id=account_id,
            account_name=account_name,
            follows=follows,
            wallet_address=wallet_address or None,
            verified_at=now,
            expires_at=expires_at,
        )
        try:
            store.put(record)
        except DuplicateToken:
            logger.error("Verification token collision, regenerating")
            continue
        break
    else:
        raise TokenCollisionError(
            f"Could not generate a unique verification token after {_MAX_TOKEN_ATTEMPTS} attempts"
        )

    if not wallet_address:
        logger.warning("Verification issued for @%s without a bound wallet", account_name)
    logger.info(
        "Verification issued for @%s (wallet=%s, follows=%s)",
        account_name, wallet_address, follows,
    )

    if events is not None:
        from followgate.events import VerificationIssued

        events.collect("verification_issued", VerificationIssued(
            wallet_address=record.wallet_address,
            account_id=account_id,
            account_name=account_name,
            follows=follows,
            expires_at=expires_at,
        ))

    return token


def check_verification(
    store: CredentialStore,
    *,
    token: str | None,
    wallet_address: str | None,
    events: EventCollector | None = None,
) -> VerificationResult:
    """Read-only confirmation that token is verified for wallet_address.

    Never mutates the record; the only side effect is the store removing
    an expired record on read.
    """
    try:
        record = load_for_wallet(store, token, wallet_address)
    except VerificationError as e:
        result = VerificationResult(verified=False, error=e.code.value)
    else:
        result = VerificationResult(verified=record.follows, twitter_handle=record.account_name)

    if events is not None:
        from followgate.events import VerificationChecked

        events.collect("verification_checked", VerificationChecked(
            wallet_address=wallet_address or "",
            verified=result.verified,
            error=result.error,
        ))

    return result
