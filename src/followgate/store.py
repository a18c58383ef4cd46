"""Credential store — token-keyed verification records with lazy expiry and pluggable storage."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Protocol, runtime_checkable

from followgate.models import VerificationRecord
from followgate.utils import utc_now

logger = logging.getLogger("followgate.store")

Mutator = Callable[[VerificationRecord], VerificationRecord]


class StoreError(Exception):
    """Base class for credential store errors."""


class RecordNotFound(StoreError):
    """No live record exists for the token (never issued, deleted, or expired)."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__("Verification record not found")


class DuplicateToken(StoreError):
    """A record already exists under this token. Indicates a broken token generator."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__("Verification token already exists")


@runtime_checkable
class CredentialStore(Protocol):
    """Protocol for verification record storage backends.

    Every read path applies the expiry rule: a record past its expires_at
    is deleted and reported as not found. Implementations must be safe to
    call from concurrent request handlers.
    """

    def now(self) -> datetime:
        """Current time on the clock this store judges expiry by."""
        ...

    def put(self, record: VerificationRecord) -> None:
        """Insert a record under record.token.

        Raises:
            DuplicateToken: If the token is already present.
        """
        ...

    def get(self, token: str) -> VerificationRecord:
        """Return the live record for token.

        Raises:
            RecordNotFound: If absent or expired (expired records are removed).
        """
        ...

    def delete(self, token: str) -> None:
        """Remove the record for token. Idempotent."""
        ...

    def update(self, token: str, mutator: Mutator) -> VerificationRecord:
        """Atomically replace the record for token with mutator(record).

        If the mutator raises, the stored record is left untouched and the
        exception propagates.

        Raises:
            RecordNotFound: Same rule as get().
        """
        ...

    def list_by_wallet(self, wallet_address: str) -> list[VerificationRecord]:
        """Return every live record bound to wallet_address, oldest first."""
        ...

    def purge_expired(self) -> int:
        """Delete all expired records. Returns the number removed."""
        ...

    def count(self) -> int:
        """Number of records currently held (expired-but-unobserved included)."""
        ...


class InMemoryCredentialStore:
    """Thread-safe in-memory credential store.

    A single lock guards the whole map, so update() is one critical section:
    the mutator sees the current record and its result is written back
    before any other caller can read it. No I/O happens under the lock.

    State is process-local and starts empty; nothing survives a restart.
    """

    def __init__(self, time_func: Callable[[], datetime] | None = None) -> None:
        self._time_func = time_func or utc_now
        self._records: dict[str, VerificationRecord] = {}
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self._time_func()

    def _get_live(self, token: str) -> VerificationRecord:
        # Caller must hold self._lock.
        record = self._records.get(token)
        if record is None:
            raise RecordNotFound(token)
        if record.is_expired(self._time_func()):
            del self._records[token]
            logger.debug("Expired verification record removed on read")
            raise RecordNotFound(token)
        return record

    def put(self, record: VerificationRecord) -> None:
        with self._lock:
            if record.token in self._records:
                raise DuplicateToken(record.token)
            self._records[record.token] = record

    def get(self, token: str) -> VerificationRecord:
        with self._lock:
            return self._get_live(token)

    def delete(self, token: str) -> None:
        with self._lock:
            self._records.pop(token, None)

    def update(self, token: str, mutator: Mutator) -> VerificationRecord:
        with self._lock:
            current = self._get_live(token)
            updated = mutator(current)
            if updated.token != current.token:
                raise ValueError("update() must not change the record token")
            if updated.wallet_address != current.wallet_address:
                raise ValueError("update() must not change the bound wallet address")
            self._records[token] = updated
            return updated

    def list_by_wallet(self, wallet_address: str) -> list[VerificationRecord]:
        now = self._time_func()
        with self._lock:
            expired = [t for t, r in self._records.items() if r.is_expired(now)]
            for token in expired:
                del self._records[token]
            return [
                r for r in self._records.values()
                if r.wallet_address is not None and r.wallet_address == wallet_address
            ]

    def purge_expired(self) -> int:
        now = self._time_func()
        with self._lock:
            expired = [t for t, r in self._records.items() if r.is_expired(now)]
            for token in expired:
                del self._records[token]
        if expired:
            logger.info("Purged %d expired verification record(s)", len(expired))
        return len(expired)

    def count(self) -> int:
        with self._lock:
            return len(self._records)
