"""FastAPI integration for FollowGate."""

from followgate.integrations.fastapi.oauth_router import create_oauth_router
from followgate.integrations.fastapi.router import create_claim_router

__all__ = [
    "create_claim_router",
    "create_oauth_router",
]
