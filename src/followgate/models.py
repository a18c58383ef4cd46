"""Verification record — the single entity held by the credential store."""

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True, slots=True)
class VerificationRecord:
    """A follow-check result bound to a wallet, redeemable once until expires_at.

    Records are immutable; the store swaps in a new instance on update
    (see ``VerificationRecord.mark_claimed``).
    """

    token: str
    account_id: str
    account_name: str
    follows: bool
    wallet_address: str | None
    verified_at: datetime
    expires_at: datetime
    claimed: bool = False
    claimed_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """True once now is past expires_at. A record is still usable at exactly expires_at."""
        return now > self.expires_at

    def belongs_to(self, wallet_address: str | None) -> bool:
        """True if the record is bound to this wallet.

        A record created without a session wallet never matches anything.
        """
        if not self.wallet_address or not wallet_address:
            return False
        return self.wallet_address == wallet_address

    def mark_claimed(self, now: datetime) -> "VerificationRecord":
        return replace(self, claimed=True, claimed_at=now)
