"""FastAPI claim router — factory that creates wallet, verify and claim endpoints bound to a FollowGate."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Response

from followgate.core.schemas import (
    ClaimResult,
    ClaimStatusResponse,
    HealthResponse,
    TokenRequest,
    VerificationResult,
    WalletSessionRequest,
)
from followgate.integrations.fastapi.cookies import set_session_cookie

if TYPE_CHECKING:
    from followgate.followgate import FollowGate


def _require(value: str | None, error: str, message: str) -> str:
    """Raise a 400 if a required body field is missing or empty."""
    if not value:
        raise HTTPException(status_code=400, detail={"error": error, "message": message})
    return value


def create_claim_router(gate: "FollowGate") -> APIRouter:
    """Create a FastAPI router with the credential lifecycle endpoints.

    Registers:
        POST /save-wallet-session
        POST /twitter/verify-follow
        POST /claim-reward
        GET  /claim-status/{wallet_address}
        GET  /health
    """
    router = APIRouter(tags=["followgate"])
    config = gate.config

    @router.post("/save-wallet-session")
    async def save_wallet_session(data: WalletSessionRequest, response: Response):
        """Bind a wallet to the caller's session ahead of the OAuth popup."""
        wallet = _require(data.wallet_address, "wallet_required", "Wallet address is required")
        session_token = await gate.bind_wallet(wallet)
        set_session_cookie(config, response, session_token)
        return {"success": True}

    @router.post(
        "/twitter/verify-follow",
        response_model=VerificationResult,
        response_model_exclude_none=True,
    )
    async def verify_follow(data: TokenRequest):
        """Confirm that a verification token is valid for the wallet. Read-only."""
        wallet = _require(data.wallet_address, "wallet_required", "Wallet address is required")
        token = _require(data.token, "token_required", "Verification token is required")
        return await gate.check_verification(token, wallet)

    @router.post(
        "/claim-reward",
        response_model=ClaimResult,
        response_model_exclude_none=True,
    )
    async def claim_reward(data: TokenRequest):
        """Consume a verification token and grant the reward once."""
        wallet = _require(data.wallet_address, "wallet_required", "Wallet address is required")
        token = _require(data.token, "token_required", "Verification token is required")
        return await gate.claim(token, wallet)

    @router.get("/claim-status/{wallet_address}", response_model=ClaimStatusResponse)
    async def claim_status(wallet_address: str):
        """List the verification records bound to a wallet."""
        return await gate.claim_status(wallet_address)

    @router.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            status="ok",
            twitter_user_id=config.target_account_id,
            claims_count=gate.record_count(),
        )

    return router
