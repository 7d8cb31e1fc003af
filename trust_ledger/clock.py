"""
Ledger Clock

The ledger's notion of "today" is a single integer tick kept in the store
and advanced only by administration. Operations receive a clock provider
and call current() at the point they need the tick.
"""

from abc import ABC, abstractmethod

from .storage import LedgerStore


class Clock(ABC):
    """Clock provider injected into ledger operations"""

    @abstractmethod
    def current(self) -> int:
        """Return the current tick"""
        pass


class StoreClock(Clock):
    """
    Clock backed by the ledger store.

    The tick may be advanced by another process between operations, so every
    call re-reads it from the store and refreshes the cached copy. A failed
    read raises StoreUnavailable.
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self.cached = store.read_clock()

    def current(self) -> int:
        self.cached = self.store.read_clock()
        return self.cached


class FixedClock(Clock):
    """Clock pinned to a tick, for tests and offline tools"""

    def __init__(self, tick: int = 0):
        self.tick = tick

    def current(self) -> int:
        return self.tick
