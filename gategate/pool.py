"""A blocking, thread-safe pool of reusable connections."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

T = TypeVar("T")


class PoolClosedError(RuntimeError):
    """Raised when a connection is requested from a closed pool."""


class ConnectionPool(Generic[T]):
    """Hands out connections first in, first out; waits when none are idle."""

    def __init__(self, connections: Iterable[T]) -> None:
        self._idle: deque[T] = deque(connections)
        self._cond = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire(self, timeout: float | None = None) -> T:
        """Take an idle connection, waiting up to ``timeout`` seconds.

        Raises PoolClosedError once the pool is closed and TimeoutError if
        no connection became free in time.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._closed or bool(self._idle), timeout
            )
            if self._closed:
                raise PoolClosedError("connection pool is closed")
            if not ready:
                raise TimeoutError("no connection became available")
            return self._idle.popleft()

    def release(self, conn: T) -> None:
        """Give a connection back; after close it is closed and dropped."""
        with self._cond:
            if not self._closed:
                self._idle.append(conn)
                self._cond.notify()
                return
        closer = getattr(conn, "close", None)
        if callable(closer):
            closer()

    def close(self) -> None:
        """Stop the pool and wake every waiter."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @contextmanager
    def connection(self) -> Iterator[T]:
        """Borrow a connection for the length of a ``with`` block."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def __len__(self) -> int:
        with self._cond:
            return len(self._idle)