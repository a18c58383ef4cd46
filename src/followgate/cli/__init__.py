"""FollowGate CLI — run a standalone verification server configured from the environment."""

import argparse
import logging
import os
import sys
from contextlib import asynccontextmanager


def main() -> None:
    """Entry point for the ``followgate`` console script."""
    parser = argparse.ArgumentParser(prog="followgate", description="FollowGate CLI")
    sub = parser.add_subparsers(dest="command")

    serve_cmd = sub.add_parser("serve", help="Run the verification and claim server")
    serve_cmd.add_argument("--host", default="0.0.0.0", help="Bind address (default 0.0.0.0)")
    serve_cmd.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", "3000")),
        help="Port to listen on (default $PORT or 3000)",
    )
    serve_cmd.add_argument("--log-level", default="info", help="Log level (default info)")

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        _serve(args.host, args.port, args.log_level)


def create_app():
    """Build a FastAPI app from environment variables.

    Reads SESSION_SECRET (required), TWITTER_CLIENT_ID, TWITTER_CLIENT_SECRET,
    TWITTER_TARGET_USER_ID, TWITTER_TARGET_HANDLE, BASE_URL, FRONTEND_URL,
    CLAIM_ENERGY and VERIFICATION_TTL.
    """
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware

    from followgate import FollowGate, SessionConfig, TwitterProvider

    session_secret = os.environ.get("SESSION_SECRET")
    if not session_secret:
        raise SystemExit("SESSION_SECRET must be set")

    base_url = os.environ.get("BASE_URL", "http://localhost:3000").rstrip("/")
    frontend_url = os.environ.get("FRONTEND_URL")

    provider = None
    client_id = os.environ.get("TWITTER_CLIENT_ID")
    if client_id:
        provider = TwitterProvider(
            client_id=client_id,
            client_secret=os.environ.get("TWITTER_CLIENT_SECRET", ""),
            redirect_uri=f"{base_url}/twitter/callback",
        )

    gate = FollowGate(
        session_secret,
        target_account_id=os.environ.get("TWITTER_TARGET_USER_ID", ""),
        target_handle=os.environ.get("TWITTER_TARGET_HANDLE", ""),
        reward_amount=int(os.environ.get("CLAIM_ENERGY", "50")),
        verification_ttl=int(os.environ.get("VERIFICATION_TTL", "900")),
        session=SessionConfig(secure=base_url.startswith("https://")),
        provider=provider,
        frontend_url=frontend_url,
        sweep_interval=60,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        gate.start_sweeper()
        yield
        await gate.stop_sweeper()

    app = FastAPI(title="FollowGate", lifespan=lifespan)
    if frontend_url:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[frontend_url],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.include_router(gate.fastapi_router())
    app.state.followgate = gate
    return app


def _serve(host: str, port: int, log_level: str) -> None:
    import uvicorn

    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(create_app(), host=host, port=port, log_level=log_level)
