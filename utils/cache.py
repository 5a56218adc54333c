"""
Key-value stores for OTP records.

Both backends expose the same async interface so the OTP manager does not
care whether it runs against a dict in tests or Redis in production:

    set(key, value, ttl_seconds)
    get(key) -> value | None
    delete(key)
    get_and_delete(key) -> value | None
    compare_and_delete(key, expected) -> bool

``compare_and_delete`` is the primitive verification relies on: it removes the
record only when its current value equals ``expected`` and reports whether it
did, as one atomic step.
"""

import asyncio
import logging
import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

from redis.exceptions import RedisError

from core.exceptions import StorageError


logger = logging.getLogger(__name__)


class OtpCache(Protocol):
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def delete(self, key: str) -> None: ...

    async def get_and_delete(self, key: str) -> Optional[str]: ...

    async def compare_and_delete(self, key: str, expected: str) -> bool: ...


# ---------------- In-memory ----------------
class InMemoryOtpCache:
    """Dict-backed cache with lazy expiry.

    Expired entries are dropped when they are read, and all of them are
    swept on every write; there is no eviction thread. The lock is only
    held for the check-and-mutate step of each call.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[str, Tuple[str, float]] = {}

    def _live_value(self, key: str) -> Optional[str]:
        # caller holds the lock
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, (_, expires_at) in self._store.items() if now >= expires_at]
        for key in expired:
            del self._store[key]

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            self._store[key] = (value, now + ttl_seconds)

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._live_value(key)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    async def get_and_delete(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._live_value(key)
            self._store.pop(key, None)
            return value

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        with self._lock:
            if self._live_value(key) != expected:
                return False
            del self._store[key]
            return True

    def __len__(self) -> int:
        return len(self._store)


# ---------------- Redis ----------------
# GET, compare and DEL in one server-side step
COMPARE_AND_DELETE_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class RedisOtpCache:
    """Cache on top of a ``redis.asyncio`` client.

    Every call is a single command or script, so a call that is cancelled or
    times out was either applied whole by the server or not at all. Failures
    and timeouts surface as :class:`StorageError`.
    """

    name = "redis"

    def __init__(self, client, timeout: float = 2.0):
        self.client = client
        self.timeout = timeout
        self._compare_and_delete = client.register_script(COMPARE_AND_DELETE_SCRIPT)

    async def _run(self, operation: str, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Redis {operation} timed out after {self.timeout}s")
            raise StorageError() from e
        except (RedisError, OSError) as e:
            logger.warning(f"Redis {operation} failed: {e}")
            raise StorageError() from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._run("SET", self.client.set(key, value, ex=ttl_seconds))

    async def get(self, key: str) -> Optional[str]:
        return await self._run("GET", self.client.get(key))

    async def delete(self, key: str) -> None:
        await self._run("DEL", self.client.delete(key))

    async def get_and_delete(self, key: str) -> Optional[str]:
        return await self._run("GETDEL", self.client.getdel(key))

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        deleted = await self._run(
            "compare-and-delete",
            self._compare_and_delete(keys=[key], args=[expected]),
        )
        return bool(deleted)

    async def ping(self) -> bool:
        return bool(await self._run("PING", self.client.ping()))

    async def close(self) -> None:
        await self.client.aclose()
