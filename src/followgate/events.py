"""FollowGate event system — typed events, hook registry, and event collection.

Applications register hooks via @gate.on("event_name") to react to lifecycle
events (credit the reward on-chain, audit logs, analytics). Hooks run after the
store operation has completed and are fail-open (errors logged, never break
the verification or claim flow).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Callable

logger = logging.getLogger("followgate.events")


# ---------------------------------------------------------------------------
# Event dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Event:
    """Base event — all events carry a timestamp."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class WalletBound(Event):
    """Fired when a wallet address is saved to the caller's session."""
    wallet_address: str = ""


@dataclass(frozen=True, slots=True)
class VerificationIssued(Event):
    """Fired when a verification record is created after the OAuth callback."""
    wallet_address: str | None = None
    account_id: str = ""
    account_name: str = ""
    follows: bool = False
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class VerificationChecked(Event):
    """Fired on every verify-follow call, successful or not."""
    wallet_address: str = ""
    verified: bool = False
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RewardClaimed(Event):
    """Fired exactly once per record, when the reward is granted."""
    wallet_address: str = ""
    account_name: str = ""
    amount: int = 0
    claimed_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ClaimRejected(Event):
    """Fired when a claim attempt fails (expired, wrong wallet, not following, double claim)."""
    wallet_address: str = ""
    reason: str = ""


@dataclass(frozen=True, slots=True)
class RecordsPurged(Event):
    """Fired when a sweep removes expired records."""
    count: int = 0


# ---------------------------------------------------------------------------
# Event name mapping
# ---------------------------------------------------------------------------

EVENT_MAP: dict[str, type[Event]] = {
    "wallet_bound": WalletBound,
    "verification_issued": VerificationIssued,
    "verification_checked": VerificationChecked,
    "reward_claimed": RewardClaimed,
    "claim_rejected": ClaimRejected,
    "records_purged": RecordsPurged,
}


# ---------------------------------------------------------------------------
# Hook registry
# ---------------------------------------------------------------------------

HookCallback = Callable[..., Any]


class HookRegistry:
    """Registry for event hook callbacks. Supports multiple listeners per event."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[HookCallback]] = {}

    def register(self, event_name: str, callback: HookCallback) -> None:
        """Register a callback for an event name."""
        if event_name not in EVENT_MAP:
            raise ValueError(
                f"Unknown event '{event_name}'. "
                f"Valid events: {', '.join(sorted(EVENT_MAP))}"
            )
        self._hooks.setdefault(event_name, []).append(callback)

    def get_hooks(self, event_name: str) -> list[HookCallback]:
        """Get all registered callbacks for an event name."""
        return self._hooks.get(event_name, [])

    async def emit(self, event_name: str, event: Event) -> None:
        """Fire all registered callbacks for an event. Fail-open: errors are logged."""
        for callback in self.get_hooks(event_name):
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(event)
                else:
                    loop = asyncio.get_running_loop()
                    await loop.run_in_executor(None, callback, event)
            except Exception:
                logger.exception(
                    "Hook error in '%s' handler %s.%s",
                    event_name,
                    callback.__module__,
                    callback.__qualname__,
                )


# ---------------------------------------------------------------------------
# Event collector
# ---------------------------------------------------------------------------

class EventCollector:
    """Collects events during an operation, emits them once it has completed."""

    def __init__(self, registry: HookRegistry) -> None:
        self._registry = registry
        self._pending: list[tuple[str, Event]] = []

    def collect(self, event_name: str, event: Event) -> None:
        """Add an event to the pending list."""
        self._pending.append((event_name, event))

    async def flush(self) -> None:
        """Emit all pending events. Clears the list."""
        events = self._pending.copy()
        self._pending.clear()
        for event_name, event in events:
            await self._registry.emit(event_name, event)
