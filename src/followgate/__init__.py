"""FollowGate — single-use social-follow verification credentials and reward claims."""

__version__ = "0.1.0"

from followgate.config import FollowGateConfig, SessionConfig
from followgate.core.oauth import OAuthError
from followgate.core.schemas import ClaimResult, ClaimStatusEntry, ClaimStatusResponse, VerificationResult
from followgate.core.verification import ErrorCode, TokenCollisionError
from followgate.events import (
    ClaimRejected,
    RecordsPurged,
    RewardClaimed,
    VerificationChecked,
    VerificationIssued,
    WalletBound,
)
from followgate.followgate import FollowGate
from followgate.models import VerificationRecord
from followgate.providers.base import ExternalIdentity, FollowPredicate, IdentityProvider
from followgate.providers.twitter import TwitterFollowPredicate, TwitterProvider
from followgate.store import CredentialStore, DuplicateToken, InMemoryCredentialStore, RecordNotFound

__all__ = [
    "ClaimRejected",
    "ClaimResult",
    "ClaimStatusEntry",
    "ClaimStatusResponse",
    "CredentialStore",
    "DuplicateToken",
    "ErrorCode",
    "ExternalIdentity",
    "FollowGate",
    "FollowGateConfig",
    "FollowPredicate",
    "IdentityProvider",
    "InMemoryCredentialStore",
    "OAuthError",
    "RecordNotFound",
    "RecordsPurged",
    "RewardClaimed",
    "SessionConfig",
    "TokenCollisionError",
    "TwitterFollowPredicate",
    "TwitterProvider",
    "VerificationChecked",
    "VerificationIssued",
    "VerificationRecord",
    "VerificationResult",
    "WalletBound",
]
