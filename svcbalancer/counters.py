"""Process-wide connection lifecycle counters."""

import threading
from dataclasses import dataclass, fields, replace


@dataclass(frozen=True)
class Counters:
    """A point-in-time copy of the event tallies."""

    wallet_connect: int = 0
    wallet_disconnect: int = 0
    endpoint_add: int = 0
    endpoint_remove: int = 0
    service_restart: int = 0

    @property
    def active_sockets(self) -> int:
        # Negative only when an upstream producer miscounts.
        return self.wallet_connect - self.wallet_disconnect


COUNTER_NAMES: tuple[str, ...] = tuple(f.name for f in fields(Counters))


class CounterStore:
    """Monotonic counters shared by every producer of connection events.

    Writers and readers go through one lock, so a snapshot never observes a
    half-applied increment.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters = Counters()

    def increment(self, name: str, value: int = 1) -> int:
        """Adds ``value`` to the counter ``name`` and returns the new tally."""
        if name not in COUNTER_NAMES:
            raise ValueError(f"Unknown counter '{name}', expected one of {COUNTER_NAMES}.")
        if value < 0:
            raise ValueError(f"Counters only grow, got an increment of {value} for '{name}'.")

        with self._lock:
            current = getattr(self._counters, name) + value
            self._counters = replace(self._counters, **{name: current})
            return current

    def wallet_connected(self) -> int:
        return self.increment("wallet_connect")

    def wallet_disconnected(self) -> int:
        return self.increment("wallet_disconnect")

    def endpoint_added(self) -> int:
        return self.increment("endpoint_add")

    def endpoint_removed(self) -> int:
        return self.increment("endpoint_remove")

    def service_restarted(self) -> int:
        return self.increment("service_restart")

    def snapshot(self) -> Counters:
        with self._lock:
            return self._counters
