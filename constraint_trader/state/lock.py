"""
Evaluation lock: TTL-bounded mutual exclusion so at most one evaluation pass
runs at a time. TTL expiry frees the lock if a holder crashes mid-tick.
"""

from __future__ import annotations
import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from constraint_trader.core.errors import LockUnavailableError

logger = logging.getLogger("constraint_trader.state.lock")

DEFAULT_LOCK_KEY = "constraint_evaluation_lock"
DEFAULT_LEASE_SECONDS = 30

# Delete only if we still own the key (a TTL-expired lock may belong to someone else now).
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class EvaluationLock(ABC):
    """Single named lock with a lease. Each acquire hands out an owner token."""

    default_lease_seconds: int = DEFAULT_LEASE_SECONDS

    @abstractmethod
    def try_acquire(self, lease_seconds: Optional[int] = None) -> Optional[str]:
        """Return the owner token if acquired, else None; never blocks."""
        pass

    @abstractmethod
    def release(self, token: str) -> bool:
        """Release only if token still owns the lease. Returns False if it lapsed to another holder."""
        pass

    @abstractmethod
    def is_held(self) -> bool:
        """True while any holder owns an unexpired lease."""
        pass

    @contextmanager
    def hold(self, lease_seconds: Optional[int] = None) -> Iterator[str]:
        """Hold the lock for the block; raise LockUnavailableError if busy."""
        token = self.try_acquire(lease_seconds)
        if token is None:
            raise LockUnavailableError("evaluation lock is held")
        try:
            yield token
        finally:
            self.release(token)


class InMemoryEvaluationLock(EvaluationLock):
    """Process-local lock. Share one instance between the callers that must exclude each other."""

    def __init__(self, default_lease_seconds: int = DEFAULT_LEASE_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.default_lease_seconds = default_lease_seconds
        self._clock = clock
        self._mutex = threading.Lock()
        self._owner: Optional[str] = None
        self._expires_at: Optional[float] = None

    def try_acquire(self, lease_seconds: Optional[int] = None) -> Optional[str]:
        lease = lease_seconds or self.default_lease_seconds
        with self._mutex:
            now = self._clock()
            if self._expires_at is not None and self._expires_at > now:
                return None
            self._owner = uuid.uuid4().hex
            self._expires_at = now + lease
            return self._owner

    def release(self, token: str) -> bool:
        with self._mutex:
            if token != self._owner:
                logger.warning("Lease expired before release, lock now belongs to another holder")
                return False
            self._owner = None
            self._expires_at = None
            return True

    def is_held(self) -> bool:
        with self._mutex:
            return self._expires_at is not None and self._expires_at > self._clock()


class RedisEvaluationLock(EvaluationLock):
    """Lock shared by every process pointing at the same Redis (SET NX EX + owner token)."""

    def __init__(self, client, key: str = DEFAULT_LOCK_KEY, default_lease_seconds: int = DEFAULT_LEASE_SECONDS):
        self._redis = client
        self._key = key
        self.default_lease_seconds = default_lease_seconds

    def try_acquire(self, lease_seconds: Optional[int] = None) -> Optional[str]:
        lease = int(lease_seconds or self.default_lease_seconds)
        token = uuid.uuid4().hex
        if self._redis.set(self._key, token, ex=lease, nx=True):
            return token
        return None

    def release(self, token: str) -> bool:
        if not self._redis.eval(_RELEASE_SCRIPT, 1, self._key, token):
            logger.warning("Lease on %s expired before release", self._key)
            return False
        return True

    def is_held(self) -> bool:
        return bool(self._redis.exists(self._key))
