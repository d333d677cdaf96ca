import logging
import threading
from contextlib import contextmanager
from typing import Dict, Optional

import redis
from redis.exceptions import LockError, RedisError

from hr_payroll.core.config import settings
from hr_payroll.core.exceptions import DeliveryLockError

logger = logging.getLogger(__name__)


class _KeyLock:
    """A process-local lock plus the number of callers holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class DeliveryLockService:
    """Per-key mutual exclusion for salary deliveries.

    Uses a Redis lock when Redis locking is enabled and reachable, so several
    worker processes serialise on the same ledger key. Falls back to a
    process-local lock otherwise; the ledger's unique constraint still rejects
    a duplicate row that slips past a process-local lock.
    """

    KEY_PREFIX = "payroll:delivery:"

    def __init__(
        self,
        redis_url: str = None,
        password: Optional[str] = None,
        enabled: Optional[bool] = None
    ):
        self.enabled = settings.enable_redis_locks if enabled is None else enabled
        self.lock_timeout = settings.delivery_lock_timeout
        self.lock_wait = settings.delivery_lock_wait
        self.redis_client = None
        self._local_locks: Dict[str, _KeyLock] = {}
        self._registry_lock = threading.Lock()

        if not self.enabled:
            return

        try:
            self.redis_client = redis.from_url(
                redis_url or settings.redis_url,
                password=password or settings.redis_password,
                socket_timeout=settings.redis_socket_timeout,
                socket_connect_timeout=settings.redis_socket_connect_timeout
            )
            self.redis_client.ping()
            logger.info("Redis connection established for delivery locks")
        except RedisError as e:
            logger.error(f"Failed to connect to Redis, using process-local delivery locks: {str(e)}")
            self.redis_client = None

    def is_available(self) -> bool:
        """Check if Redis is available"""
        return self.redis_client is not None

    def _checkout_local(self, key: str) -> _KeyLock:
        with self._registry_lock:
            entry = self._local_locks.get(key)
            if entry is None:
                entry = self._local_locks[key] = _KeyLock()
            entry.users += 1
            return entry

    def _return_local(self, key: str, entry: _KeyLock):
        with self._registry_lock:
            entry.users -= 1
            # nobody holds or waits on the key any more
            if entry.users == 0:
                del self._local_locks[key]

    @contextmanager
    def _hold_local(self, key: str, wait: float):
        entry = self._checkout_local(key)
        try:
            if not entry.lock.acquire(timeout=wait):
                raise DeliveryLockError(key)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._return_local(key, entry)

    def _release_redis(self, lock, key: str):
        try:
            lock.release()
        except LockError as e:
            # Expired before release; the ledger constraint is the final guard
            logger.warning(f"Delivery lock {key} expired before release: {str(e)}")
        except RedisError as e:
            logger.error(f"Failed to release delivery lock {key}: {str(e)}")

    @contextmanager
    def hold(self, key: str, wait: Optional[float] = None):
        """Hold the lock for ``key`` for the duration of the block.

        Raises DeliveryLockError when the key stays busy for ``wait`` seconds.
        """
        wait = self.lock_wait if wait is None else wait

        if self.is_available():
            lock = self.redis_client.lock(
                f"{self.KEY_PREFIX}{key}",
                timeout=self.lock_timeout,
                blocking_timeout=wait
            )
            try:
                acquired = lock.acquire()
            except RedisError as e:
                logger.error(f"Redis lock unavailable for {key}, using process-local lock: {str(e)}")
            else:
                if not acquired:
                    raise DeliveryLockError(key)
                try:
                    yield
                finally:
                    self._release_redis(lock, key)
                return

        with self._hold_local(key, wait):
            yield


# Global lock service instance
delivery_lock_service = DeliveryLockService()
