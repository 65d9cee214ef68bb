"""Concurrent, in-memory entity store for events and notification requests.

Design:
- Three independent tables: events, requests, dead-letter requests.
- Each table is lock-striped: keys hash onto a fixed number of shards,
  each shard a plain dict guarded by its own lock.
- Only frozen models are stored, so a reader either sees the previous
  entity or the new one, never a half-built one.
- Counters are derived from the current table contents on every call.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

from notiroute.models.events import Event
from notiroute.models.notifications import NotificationRequest, NotificationStatus

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_SHARD_COUNT = 16


class ShardedTable(Generic[V]):
    """A lock-striped string-keyed table.

    Writes lock exactly one shard.  Iteration copies one shard at a time
    under that shard's lock, so results are a point-in-time view per shard
    rather than a transactional snapshot of the whole table.

    Parameters
    ----------
    shard_count:
        Number of lock stripes.  Must be positive.
    """

    def __init__(self, shard_count: int = DEFAULT_SHARD_COUNT) -> None:
        if shard_count < 1:
            raise ValueError(f"shard_count must be positive, got {shard_count}")
        self._shards: list[dict[str, V]] = [{} for _ in range(shard_count)]
        self._locks = [threading.Lock() for _ in range(shard_count)]

    def _index(self, key: str) -> int:
        return hash(key) % len(self._shards)

    def put(self, key: str, value: V) -> None:
        idx = self._index(key)
        with self._locks[idx]:
            self._shards[idx][key] = value

    def get(self, key: str) -> V | None:
        idx = self._index(key)
        with self._locks[idx]:
            return self._shards[idx].get(key)

    def compute(self, key: str, fn: Callable[[V | None], V | None]) -> V | None:
        """Apply *fn* to the current value under the shard lock.

        *fn* returns the replacement, or ``None`` to leave the entry as it
        is.  Returns whatever *fn* returned.
        """
        idx = self._index(key)
        with self._locks[idx]:
            replacement = fn(self._shards[idx].get(key))
            if replacement is not None:
                self._shards[idx][key] = replacement
            return replacement

    def values(self) -> list[V]:
        """Return a list copy of every stored value."""
        return list(self._iter_values())

    def filter(self, predicate: Callable[[V], bool]) -> list[V]:
        return [value for value in self._iter_values() if predicate(value)]

    def count(self, predicate: Callable[[V], bool] | None = None) -> int:
        if predicate is None:
            return len(self)
        return sum(1 for value in self._iter_values() if predicate(value))

    def clear(self) -> None:
        for shard, lock in zip(self._shards, self._locks):
            with lock:
                shard.clear()

    def __len__(self) -> int:
        total = 0
        for shard, lock in zip(self._shards, self._locks):
            with lock:
                total += len(shard)
        return total

    def _iter_values(self) -> Iterator[V]:
        for shard, lock in zip(self._shards, self._locks):
            with lock:
                snapshot = list(shard.values())
            yield from snapshot


class NotificationStore:
    """Thread-safe storage for events, notification requests and dead letters.

    The store is the only synchronization boundary in the system.  Callers
    never lock; every operation is safe under arbitrary interleaving.

    Parameters
    ----------
    shard_count:
        Lock stripes per table.
    """

    def __init__(self, shard_count: int = DEFAULT_SHARD_COUNT) -> None:
        self._events: ShardedTable[Event] = ShardedTable(shard_count)
        self._requests: ShardedTable[NotificationRequest] = ShardedTable(shard_count)
        self._dead_letters: ShardedTable[NotificationRequest] = ShardedTable(shard_count)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def save_event(self, event: Event) -> None:
        self._events.put(event.event_id, event)
        logger.debug("Saved event %s of type %s", event.event_id, event.event_type)

    def get_event(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def list_events(self) -> list[Event]:
        return self._events.values()

    # ------------------------------------------------------------------
    # Notification requests
    # ------------------------------------------------------------------

    def save_request(self, request: NotificationRequest) -> None:
        """Insert a freshly routed request."""
        self._requests.put(request.request_id, request)
        logger.debug(
            "Saved request %s for channel %s",
            request.request_id,
            request.channel.value,
        )

    def update_request(self, request: NotificationRequest) -> bool:
        """Replace the stored request with *request* (last write wins).

        A DEAD_LETTER entry is never overwritten by another status.
        Returns ``False`` when the write was refused.
        """

        def _replace(current: NotificationRequest | None) -> NotificationRequest | None:
            if (
                current is not None
                and current.status == NotificationStatus.DEAD_LETTER
                and request.status != NotificationStatus.DEAD_LETTER
            ):
                return None
            return request

        if self._requests.compute(request.request_id, _replace) is None:
            logger.warning(
                "Refused to move dead-lettered request %s to %s",
                request.request_id,
                request.status.value,
            )
            return False
        logger.debug(
            "Updated request %s to status %s",
            request.request_id,
            request.status.value,
        )
        return True

    def transition_request(
        self,
        request_id: str,
        fn: Callable[[NotificationRequest], NotificationRequest | None],
    ) -> NotificationRequest | None:
        """Atomically replace a stored request with ``fn(current)``.

        *fn* runs under the shard lock and returns ``None`` to leave the
        request untouched.  Unknown ids return ``None``.
        """
        return self._requests.compute(
            request_id, lambda current: None if current is None else fn(current)
        )

    def get_request(self, request_id: str) -> NotificationRequest | None:
        return self._requests.get(request_id)

    def requests_for_event(self, event_id: str) -> list[NotificationRequest]:
        return self._requests.filter(lambda r: r.event_id == event_id)

    def failed_requests(self) -> list[NotificationRequest]:
        """Requests currently FAILED or DEAD_LETTER (point-in-time view)."""
        return self._requests.filter(
            lambda r: r.status in (NotificationStatus.FAILED, NotificationStatus.DEAD_LETTER)
        )

    # ------------------------------------------------------------------
    # Dead letter
    # ------------------------------------------------------------------

    def save_dead_letter(self, request: NotificationRequest) -> None:
        self._dead_letters.put(request.request_id, request)
        logger.warning(
            "Moved request %s to dead letter after %d retries",
            request.request_id,
            request.retry_count,
        )

    def list_dead_letter(self) -> list[NotificationRequest]:
        return self._dead_letters.values()

    # ------------------------------------------------------------------
    # Derived counters
    # ------------------------------------------------------------------

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def request_count(self) -> int:
        return len(self._requests)

    @property
    def successful_delivery_count(self) -> int:
        return self._requests.count(lambda r: r.status == NotificationStatus.SENT)

    @property
    def failed_delivery_count(self) -> int:
        return self._requests.count(lambda r: r.status == NotificationStatus.FAILED)

    @property
    def dead_letter_count(self) -> int:
        return len(self._dead_letters)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear(self) -> None:
        self._events.clear()
        self._requests.clear()
        self._dead_letters.clear()
        logger.info("Cleared all storage data")

    def storage_stats(self) -> str:
        return (
            f"Storage Stats - Events: {self.event_count}, "
            f"Notifications: {self.request_count}, "
            f"Successful: {self.successful_delivery_count}, "
            f"Failed: {self.failed_delivery_count}, "
            f"Dead Letter: {self.dead_letter_count}"
        )
