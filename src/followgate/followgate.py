"""FollowGate — instance-based configuration and entry point."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from followgate.config import FollowGateConfig, SessionConfig
from followgate.core.schemas import ClaimResult, ClaimStatusResponse, VerificationResult
from followgate.events import EventCollector, HookRegistry, RecordsPurged, WalletBound
from followgate.store import CredentialStore, InMemoryCredentialStore

if TYPE_CHECKING:
    from fastapi import APIRouter

    from followgate.providers.base import ExternalIdentity, FollowPredicate, IdentityProvider

logger = logging.getLogger("followgate")


class FollowGate:
    """Main FollowGate instance — holds config, the credential store and hooks.

    Args:
        session_secret: Required HMAC key for the wallet session cookie and OAuth state.
        target_account_id: Account id users must follow.
        target_handle: Display handle of that account, used in claim messages.
        reward_amount: Units granted per successful claim (default 50).
        verification_ttl: Verification record lifetime in seconds (default 900 = 15 min).
        session: SessionConfig for the wallet session cookie.
        provider: IdentityProvider used by the OAuth routes (e.g. TwitterProvider).
        predicate: FollowPredicate. Defaults to TwitterFollowPredicate(target_account_id)
            when a target account is configured.
        store: CredentialStore. Defaults to a fresh InMemoryCredentialStore.
        frontend_url: Origin of the widget opening the OAuth popup.
        sweep_interval: Seconds between background purges of expired records
            (None = lazy expiry only).
        time_func: Clock returning an aware UTC datetime (for testing). Used to build
            the default store; a supplied store brings its own clock.
    """

    def __init__(
        self,
        session_secret: str,
        *,
        target_account_id: str = "",
        target_handle: str = "",
        reward_amount: int = 50,
        verification_ttl: int = 900,
        session: SessionConfig | None = None,
        provider: IdentityProvider | None = None,
        predicate: FollowPredicate | None = None,
        store: CredentialStore | None = None,
        frontend_url: str | None = None,
        sweep_interval: int | None = None,
        time_func: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = FollowGateConfig(
            session_secret=session_secret,
            target_account_id=target_account_id,
            target_handle=target_handle,
            reward_amount=reward_amount,
            verification_ttl_seconds=verification_ttl,
            session=session or SessionConfig(),
            frontend_url=frontend_url,
            sweep_interval_seconds=sweep_interval,
        )
        if store is not None and time_func is not None:
            raise ValueError("Pass time_func to the store, not to FollowGate, when supplying a store")
        self._store = store if store is not None else InMemoryCredentialStore(time_func=time_func)
        self._provider = provider
        if predicate is None and target_account_id:
            from followgate.providers.twitter import TwitterFollowPredicate

            predicate = TwitterFollowPredicate(target_account_id)
        self._predicate = predicate
        self._hooks = HookRegistry()
        self._sweeper: asyncio.Task | None = None

    @property
    def config(self) -> FollowGateConfig:
        """Read-only access to the internal config."""
        return self._config

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def hooks(self) -> HookRegistry:
        """Access the hook registry."""
        return self._hooks

    @property
    def provider(self) -> IdentityProvider | None:
        return self._provider

    @property
    def predicate(self) -> FollowPredicate | None:
        return self._predicate

    # ------ Event hooks ------

    def on(self, event_name: str):
        """Decorator to register an event hook.

        Usage:
            @gate.on("reward_claimed")
            async def credit(event):
                await ledger.credit(event.wallet_address, event.amount)
        """
        def decorator(fn):
            self._hooks.register(event_name, fn)
            return fn
        return decorator

    def add_hook(self, event_name: str, callback) -> None:
        """Register an event hook callback programmatically."""
        self._hooks.register(event_name, callback)

    # ------ Credential lifecycle ------

    async def issue(
        self,
        wallet_address: str | None,
        account_id: str,
        account_name: str,
        follows: bool,
    ) -> str:
        """Create a verification record and return its opaque token.

        Raises:
            TokenCollisionError: If the token generator keeps producing live tokens.
        """
        from followgate.core.verification import issue_verification

        collector = EventCollector(self._hooks)
        token = issue_verification(
            self._store,
            config=self._config,
            wallet_address=wallet_address,
            account_id=account_id,
            account_name=account_name,
            follows=follows,
            now=self._store.now(),
            events=collector,
        )
        await collector.flush()
        return token

    async def check_verification(
        self, token: str | None, wallet_address: str | None,
    ) -> VerificationResult:
        """Read-only check that token is verified for wallet_address."""
        from followgate.core.verification import check_verification

        collector = EventCollector(self._hooks)
        result = check_verification(
            self._store, token=token, wallet_address=wallet_address, events=collector,
        )
        await collector.flush()
        return result

    async def claim(self, token: str | None, wallet_address: str | None) -> ClaimResult:
        """Consume a verified record and grant the reward. Succeeds at most once per token."""
        from followgate.core.claims import claim_reward

        collector = EventCollector(self._hooks)
        result = claim_reward(
            self._store,
            config=self._config,
            token=token,
            wallet_address=wallet_address,
            now=self._store.now(),
            events=collector,
        )
        await collector.flush()
        return result

    async def claim_status(self, wallet_address: str) -> ClaimStatusResponse:
        """List every live record bound to wallet_address."""
        from followgate.core.claims import claim_status

        return claim_status(self._store, wallet_address)

    def record_count(self) -> int:
        return self._store.count()

    # ------ Session binding and OAuth ------

    async def bind_wallet(self, wallet_address: str) -> str:
        """Create a signed session token carrying wallet_address."""
        from followgate.core.tokens import create_session_token

        # Wall clock: the token is verified by jwt.decode against real time.
        token = create_session_token(wallet_address, self._config)
        await self._hooks.emit("wallet_bound", WalletBound(wallet_address=wallet_address))
        return token

    def session_wallet(self, session_token: str | None) -> str | None:
        """Wallet bound in a session token, or None."""
        from followgate.core.tokens import read_session_wallet

        return read_session_wallet(session_token, self._config)

    async def complete_oauth(
        self,
        *,
        code: str,
        state: str,
        redirect_uri: str,
        wallet_address: str | None,
    ) -> tuple[str, ExternalIdentity, bool]:
        """Finish the OAuth callback: verify state, resolve identity, check follow, issue.

        No record is created if any OAuth step fails.

        Returns:
            (token, identity, follows)

        Raises:
            OAuthError: If no provider is configured, the state is invalid, or
                the provider handshake fails.
        """
        from followgate.core.oauth import (
            OAuthError,
            evaluate_follow,
            resolve_identity,
            verify_oauth_state,
        )

        if self._provider is None:
            raise OAuthError("No identity provider configured", code="oauth_not_configured", status_code=500)

        code_verifier = verify_oauth_state(
            self._config, state=state, expected_provider=self._provider.name,
        )
        identity = await resolve_identity(
            provider=self._provider, code=code, redirect_uri=redirect_uri,
            code_verifier=code_verifier,
        )

        follows = False
        if self._predicate is not None:
            follows = await evaluate_follow(self._predicate, identity)
        else:
            logger.warning("No follow predicate configured, treating @%s as not following", identity.account_name)

        token = await self.issue(
            wallet_address, identity.account_id, identity.account_name, follows,
        )
        return token, identity, follows

    # ------ Expiry sweep ------

    async def cleanup_expired(self) -> int:
        """Delete expired records now. Returns the number removed."""
        count = self._store.purge_expired()
        if count:
            await self._hooks.emit("records_purged", RecordsPurged(count=count))
        return count

    def start_sweeper(self) -> None:
        """Start the periodic purge task, if sweep_interval is configured. Idempotent."""
        interval = self._config.sweep_interval_seconds
        if interval is None or self._sweeper is not None:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop(interval))

    async def stop_sweeper(self) -> None:
        """Cancel the periodic purge task and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self, interval: int) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.cleanup_expired()
            except Exception:
                logger.exception("Expired record sweep failed")

    # ------ FastAPI integration ------

    def fastapi_router(self) -> APIRouter:
        """Create a FastAPI router with the verification and claim endpoints.

        Includes: save-wallet-session, twitter/verify-follow, claim-reward,
        claim-status, health. With a provider configured, also the
        twitter/auth and twitter/callback OAuth endpoints.
        """
        from followgate.integrations.fastapi.router import create_claim_router

        router = create_claim_router(self)

        if self._provider is not None:
            from followgate.integrations.fastapi.oauth_router import create_oauth_router

            router.include_router(create_oauth_router(self))

        return router
