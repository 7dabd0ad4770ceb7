"""In-memory documentation cache with sliding/absolute expiry and single-flight fills."""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, TypeVar

from cachetools import TLRUCache  # type: ignore[import-untyped]
from pydantic import BaseModel

from mudblazor_index.errors import CacheDisposedError, InvalidKeyError

if TYPE_CHECKING:
    from mudblazor_index.core.config import CacheConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Rough per-item size used for the statistics estimate
ESTIMATED_ITEM_BYTES = 10_000


class CacheStatistics(BaseModel):
    item_count: int
    estimated_size_bytes: int
    hit_count: int
    miss_count: int
    last_cleared: Optional[datetime] = None

    class Config:
        frozen = True


class _Miss:
    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Any = _Miss()


@dataclass(frozen=True)
class _Entry:
    value: Any
    deadline: float  # absolute expiry on the cache timer


@dataclass
class _Flight:
    task: "asyncio.Task[Any]"
    waiters: int = 0


class DocumentationCache:
    """Key/value cache fronting expensive index work.

    Each entry expires at ``min(last access + sliding, created + absolute)``.
    ``get_or_create`` runs the factory once per key no matter how many callers
    arrive while it is running; failures and cancellations store nothing.
    """

    def __init__(
        self,
        sliding_expiration: timedelta = timedelta(minutes=60),
        absolute_expiration: timedelta = timedelta(minutes=1440),
        max_entries: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sliding = sliding_expiration.total_seconds()
        self._absolute = absolute_expiration.total_seconds()
        self._timer = timer
        self._store: TLRUCache = TLRUCache(maxsize=max_entries, ttu=self._time_to_use, timer=timer)
        self._lock = threading.Lock()
        self._pending: dict[str, _Flight] = {}
        self._hits = 0
        self._misses = 0
        self._last_cleared: Optional[datetime] = None
        self._disposed = False

    @classmethod
    def from_config(
        cls, config: "CacheConfig", timer: Callable[[], float] = time.monotonic
    ) -> "DocumentationCache":
        return cls(
            sliding_expiration=timedelta(minutes=config.sliding_expiration_minutes),
            absolute_expiration=timedelta(minutes=config.absolute_expiration_minutes),
            max_entries=config.max_entries,
            timer=timer,
        )

    def _time_to_use(self, key: str, entry: _Entry, now: float) -> float:
        return min(now + self._sliding, entry.deadline)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = MISS) -> Any:
        key = self._check(key)
        value = self._lookup(key)
        return default if value is MISS else value

    def set(self, key: str, value: Any, absolute_expiration: Optional[timedelta] = None) -> None:
        key = self._check(key)
        self._store_value(key, value, absolute_expiration)
        logger.debug("Cache set for key: %s", key)

    async def get_or_create(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        key = self._check(key)
        value = self._lookup(key)
        if value is not MISS:
            return value

        flight = self._pending.get(key)
        if flight is None:
            flight = _Flight(asyncio.ensure_future(self._create(key, factory)))
            self._pending[key] = flight
            flight.task.add_done_callback(partial(self._end_flight, key, flight))
        else:
            logger.debug("Joining in-flight creation for key: %s", key)

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._disposed and (current is None or current.cancelling() == 0):
                # close() cancelled the factory, not this caller
                raise CacheDisposedError() from None
            # Last interested caller gone; stop the factory
            if flight.waiters == 1 and not flight.task.done():
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    def remove(self, key: str) -> None:
        key = self._check(key)
        with self._lock:
            self._store.pop(key, None)
        logger.debug("Cache removed key: %s", key)

    def clear(self) -> None:
        self._check_disposed()
        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._last_cleared = datetime.now(timezone.utc)
        logger.info("Cache cleared")

    def statistics(self) -> CacheStatistics:
        self._check_disposed()
        with self._lock:
            self._store.expire()
            count = len(self._store)
            return CacheStatistics(
                item_count=count,
                estimated_size_bytes=count * ESTIMATED_ITEM_BYTES,
                hit_count=self._hits,
                miss_count=self._misses,
                last_cleared=self._last_cleared,
            )

    def close(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for flight in list(self._pending.values()):
            flight.task.cancel()
        self._pending.clear()
        with self._lock:
            self._store.clear()
        logger.debug("Cache disposed")

    @property
    def is_closed(self) -> bool:
        return self._disposed

    async def __aenter__(self) -> "DocumentationCache":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check(self, key: str) -> str:
        if not isinstance(key, str) or not key.strip():
            raise InvalidKeyError(key)
        self._check_disposed()
        return key

    def _check_disposed(self) -> None:
        if self._disposed:
            raise CacheDisposedError()

    def _lookup(self, key: str) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("Cache miss for key: %s", key)
                return MISS
            self._hits += 1
            # Re-inserting recomputes the expiry, which slides it forward
            self._store[key] = entry
        logger.debug("Cache hit for key: %s", key)
        return entry.value

    def _store_value(self, key: str, value: Any, absolute_expiration: Optional[timedelta] = None) -> None:
        absolute = absolute_expiration.total_seconds() if absolute_expiration else self._absolute
        with self._lock:
            self._store[key] = _Entry(value=value, deadline=self._timer() + absolute)

    async def _create(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        logger.debug("Creating value for key: %s", key)
        value = await factory()
        if not self._disposed:
            self._store_value(key, value)
        return value

    def _end_flight(self, key: str, flight: _Flight, task: "asyncio.Task[Any]") -> None:
        if self._pending.get(key) is flight:
            del self._pending[key]
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Creation failed for key %s: %s", key, task.exception())
