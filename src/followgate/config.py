"""FollowGate configuration — dataclasses for session cookie and reward settings."""

from dataclasses import dataclass, field
from typing import Literal

SESSION_JWT_ALGORITHM = "HS256"


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Configuration for the wallet session cookie set by /save-wallet-session."""

    cookie_name: str = "followgate_session"
    secure: bool = True
    httponly: bool = True
    samesite: Literal["lax", "strict", "none"] = "lax"
    path: str = "/"
    domain: str | None = None
    max_age_seconds: int = 60 * 60  # 1 hour


@dataclass(frozen=True, slots=True)
class FollowGateConfig:
    """Internal config built by the FollowGate constructor. Not user-facing.

    reward_amount and verification_ttl_seconds are the two constants the
    credential lifecycle depends on; everything else belongs to the HTTP
    and OAuth surfaces.
    """

    session_secret: str
    target_account_id: str = ""
    target_handle: str = ""
    reward_amount: int = 50
    verification_ttl_seconds: int = 900  # 15 minutes
    session: SessionConfig = field(default_factory=SessionConfig)
    oauth_state_ttl_seconds: int = 300  # 5 minutes
    frontend_url: str | None = None
    sweep_interval_seconds: int | None = None

    def __post_init__(self) -> None:
        if not self.session_secret:
            raise ValueError("session_secret must be a non-empty string")
        if self.reward_amount < 0:
            raise ValueError(f"reward_amount must be >= 0, got {self.reward_amount}")
        if self.verification_ttl_seconds <= 0:
            raise ValueError(
                f"verification_ttl_seconds must be positive, got {self.verification_ttl_seconds}"
            )
        if self.sweep_interval_seconds is not None and self.sweep_interval_seconds <= 0:
            raise ValueError(
                f"sweep_interval_seconds must be positive, got {self.sweep_interval_seconds}"
            )
