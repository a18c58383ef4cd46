"""Claim service — exactly-once reward grants and per-wallet claim status."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from followgate.config import FollowGateConfig
from followgate.core.schemas import ClaimResult, ClaimStatusEntry, ClaimStatusResponse
from followgate.core.verification import ErrorCode, VerificationError
from followgate.models import VerificationRecord
from followgate.store import CredentialStore, RecordNotFound
from followgate.utils import utc_now

if TYPE_CHECKING:
    from followgate.events import EventCollector

logger = logging.getLogger("followgate.claims")


def claim_reward(
    store: CredentialStore,
    *,
    config: FollowGateConfig,
    token: str | None,
    wallet_address: str | None,
    now: datetime | None = None,
    events: EventCollector | None = None,
) -> ClaimResult:
    """Grant the reward for a verified record, at most once.

    Checks run in a fixed order, first failure wins: invalid/expired token,
    wallet mismatch, not following, already claimed. The checks and the
    claimed flip happen inside a single store.update(), so of any number of
    concurrent calls for one token exactly one can succeed.
    """
    now = now or utc_now()

    def _mark_claimed(record: VerificationRecord) -> VerificationRecord:
        if not record.belongs_to(wallet_address):
            raise VerificationError(ErrorCode.WALLET_MISMATCH, "Token does not match wallet")
        if not record.follows:
            handle = config.target_handle or "the target account"
            raise VerificationError(
                ErrorCode.PREDICATE_NOT_SATISFIED,
                f"You do not follow @{handle.lstrip('@')} on Twitter",
            )
        if record.claimed:
            raise VerificationError(
                ErrorCode.ALREADY_CLAIMED, "Reward already claimed for this verification",
            )
        return record.mark_claimed(now)

    invalid = VerificationError(ErrorCode.INVALID_OR_EXPIRED, "Invalid or expired token")
    if not token:
        return _rejected(invalid, wallet_address, events)
    try:
        record = store.update(token, _mark_claimed)
    except RecordNotFound:
        return _rejected(invalid, wallet_address, events)
    except VerificationError as e:
        return _rejected(e, wallet_address, events)

    amount = config.reward_amount
    logger.info(
        "Claiming reward for %s (%s): %d energy",
        wallet_address, record.account_name, amount,
    )

    if events is not None:
        from followgate.events import RewardClaimed

        events.collect("reward_claimed", RewardClaimed(
            wallet_address=record.wallet_address or "",
            account_name=record.account_name,
            amount=amount,
            claimed_at=record.claimed_at,
        ))

    return ClaimResult(
        success=True,
        message=f"Successfully claimed {amount} energy",
        energy=amount,
        twitter_handle=record.account_name,
    )


def _rejected(
    error: VerificationError,
    wallet_address: str | None,
    events: EventCollector | None,
) -> ClaimResult:
    logger.debug("Claim rejected for %s: %s", wallet_address, error.code.value)
    if events is not None:
        from followgate.events import ClaimRejected

        events.collect("claim_rejected", ClaimRejected(
            wallet_address=wallet_address or "", reason=error.code.value,
        ))
    return ClaimResult(success=False, message=error.message, error=error.code.value)


def claim_status(store: CredentialStore, wallet_address: str) -> ClaimStatusResponse:
    """List every live record bound to wallet_address, claimed or not."""
    records = store.list_by_wallet(wallet_address)
    return ClaimStatusResponse(claims=[
        ClaimStatusEntry(
            twitter_handle=r.account_name,
            claimed=r.claimed,
            claimed_at=r.claimed_at,
            verified_at=r.verified_at,
        )
        for r in records
    ])
