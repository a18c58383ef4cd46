"""Example reward server using FollowGate.

This server:
  - Binds the visitor's wallet to a signed session cookie
  - Runs the Twitter OAuth 2.0 popup flow and checks the follow
  - Hands the widget a single-use verification token (15 min TTL)
  - Lets the widget confirm the token and claim 50 energy exactly once

Run:  uvicorn main:app --reload --port 3000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from followgate import FollowGate, SessionConfig, TwitterProvider

gate = FollowGate(
    os.environ.get("SESSION_SECRET", "dev-secret-change-me"),
    target_account_id=os.environ.get("TWITTER_TARGET_USER_ID", "1916522994236825600"),
    target_handle=os.environ.get("TWITTER_TARGET_HANDLE", "sunaryum"),
    reward_amount=50,
    verification_ttl=15 * 60,
    session=SessionConfig(secure=False),  # secure=False for localhost dev
    # Setup:
    #   https://developer.x.com/en/portal/dashboard
    #   - Enable OAuth 2.0 (Web App, confidential client)
    #   - Add callback URL: http://localhost:3000/twitter/callback
    provider=TwitterProvider(
        client_id=os.environ.get("TWITTER_CLIENT_ID", ""),
        client_secret=os.environ.get("TWITTER_CLIENT_SECRET", ""),
        redirect_uri=f"{os.environ.get('BASE_URL', 'http://localhost:3000')}/twitter/callback",
    ),
    frontend_url=os.environ.get("FRONTEND_URL", "http://localhost:5500"),
    sweep_interval=60,  # purge expired records every minute
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    gate.start_sweeper()
    yield
    await gate.stop_sweeper()


app = FastAPI(title="FollowGate Reward Server", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[gate.config.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Event hooks: credit the ledger, write audit logs
# Hooks fire after the store operation completes. Errors are logged, never propagate.
# ---------------------------------------------------------------------------


@gate.on("verification_issued")
async def on_verification_issued(event):
    print(f"[hook] @{event.account_name} verified for {event.wallet_address} (follows={event.follows})")


@gate.on("reward_claimed")
async def on_reward_claimed(event):
    """Credit the wallet in your ledger / on-chain here."""
    print(f"[hook] {event.wallet_address} claimed {event.amount} energy (@{event.account_name})")


@gate.on("claim_rejected")
async def on_claim_rejected(event):
    print(f"[hook] Claim rejected for {event.wallet_address}: {event.reason}")


# ---------------------------------------------------------------------------
# Mount routers
# ---------------------------------------------------------------------------

# /save-wallet-session, /twitter/auth, /twitter/callback, /twitter/verify-follow,
# /claim-reward, /claim-status/{wallet}, /health
app.include_router(gate.fastapi_router())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.environ.get("PORT", "3000")), reload=True)
