"""FollowGate schemas — request/response models for verification and claim results.

Responses serialize with camelCase keys (twitterHandle, claimedAt, ...) to
match what the browser widget expects; Python code uses snake_case names.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VerificationResult(_CamelModel):
    """Outcome of a read-only verify-follow check."""
    verified: bool
    twitter_handle: str | None = None
    error: str | None = None


class ClaimResult(_CamelModel):
    """Outcome of a claim attempt."""
    success: bool
    message: str | None = None
    energy: int | None = None
    twitter_handle: str | None = None
    error: str | None = None


class ClaimStatusEntry(_CamelModel):
    """One record bound to a wallet, as shown by /claim-status."""
    twitter_handle: str
    claimed: bool
    claimed_at: datetime | None = None
    verified_at: datetime


class ClaimStatusResponse(BaseModel):
    """All records bound to a wallet."""
    claims: list[ClaimStatusEntry]


class HealthResponse(_CamelModel):
    """Liveness probe payload."""
    status: str
    twitter_user_id: str
    claims_count: int


class WalletSessionRequest(_CamelModel):
    """Wallet binding input for /save-wallet-session."""
    wallet_address: str | None = None


class TokenRequest(BaseModel):
    """Verify-follow / claim-reward input."""
    wallet_address: str | None = None
    token: str | None = None
