"""Order state tracking — which orders this service has deducted stock for.

An order id is tracked from the moment its creation deduction runs until a
terminal event (cancellation or fulfillment) has restored or compensated it.

Concurrency contract:
- Set mutations are guarded by a process-wide lock
- lock(order_id) serializes whole check-then-act sequences for one order,
  so a redelivered webhook can't interleave with the original delivery
- Different orders never block each other
- State lives in memory only and resets on restart
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class OrderTracker(Protocol):
    """Store of tracked order ids."""

    def mark_tracked(self, order_id: int | str) -> None:
        """Record that stock was deducted for this order."""
        ...

    def is_tracked(self, order_id: int | str) -> bool:
        """Whether the order is awaiting a terminal event."""
        ...

    def unmark(self, order_id: int | str) -> None:
        """Forget the order (no-op if it isn't tracked)."""
        ...

    def lock(self, order_id: int | str) -> AbstractContextManager[None]:
        """Context manager holding exclusive access to one order's state."""
        ...

    def __len__(self) -> int:
        ...


class KeyedLock:
    """A table of per-key locks, created on demand and dropped when idle."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class InMemoryOrderTracker:
    """Process-local tracker backed by a set of order ids."""

    def __init__(self) -> None:
        self._orders: set[str] = set()
        self._orders_lock = threading.Lock()
        self._keyed = KeyedLock()

    def mark_tracked(self, order_id: int | str) -> None:
        with self._orders_lock:
            self._orders.add(str(order_id))
        logger.debug("Order %s tracked", order_id)

    def is_tracked(self, order_id: int | str) -> bool:
        with self._orders_lock:
            return str(order_id) in self._orders

    def unmark(self, order_id: int | str) -> None:
        with self._orders_lock:
            self._orders.discard(str(order_id))
        logger.debug("Order %s untracked", order_id)

    def lock(self, order_id: int | str) -> AbstractContextManager[None]:
        return self._keyed.hold(str(order_id))

    def __len__(self) -> int:
        with self._orders_lock:
            return len(self._orders)
