"""Per-order serialization of mutating commands.

Status transitions, wallet decisions and scans on the same order must not
interleave: two scans racing past the over-scan check, or a transition
deciding on a packaging state that a concurrent scan is changing, would both
break the order's invariants. Every mutating command therefore runs its whole
load-decide-commit cycle while holding that order's lock. Different orders
never contend.
"""

import threading
from contextlib import contextmanager

from protean.utils.globals import current_domain

from orderflow.utils.logging import bind_order_context, clear_order_context


class OrderLocks:
    """Registry of one lock per order identity."""

    def __init__(self):
        self._locks = {}
        self._guard = threading.Lock()

    def _get_lock(self, order_id: str) -> threading.Lock:
        with self._guard:
            if order_id not in self._locks:
                self._locks[order_id] = threading.Lock()
            return self._locks[order_id]

    @contextmanager
    def hold(self, order_id: str):
        lock = self._get_lock(str(order_id))
        with lock:
            yield

    def clear(self) -> None:
        """Forget all locks (only safe when no command is in flight)."""
        with self._guard:
            self._locks.clear()


order_locks = OrderLocks()


def process_for_order(command, order_id: str | None = None):
    """Process a command synchronously while holding its order's lock.

    The lock spans the handler and the unit of work commit, so the next
    command for the same order always reads committed state.
    """
    key = order_id if order_id is not None else command.order_id
    with order_locks.hold(key):
        bind_order_context(order_id=str(key), command=type(command).__name__)
        try:
            return current_domain.process(command, asynchronous=False)
        finally:
            clear_order_context()
