"""Bounded blocking streams that carry worker events to the caller.

A full stream blocks the producing worker until the consumer reads, so a
slow or absent consumer stalls polling and forwarding for every set, not
just logging. Items that were accepted are never dropped: ``close`` only
refuses new items and readers drain whatever is buffered before seeing
:class:`StreamClosedError`.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Generic, Iterator, TypeVar

from xer.errors import StreamClosedError

T = TypeVar("T")

# how often a producer blocked on a full stream rechecks its stop event
_STOP_POLL_SECONDS = 0.1


class EventStream(Generic[T]):
    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._items: deque[T] = deque()
        self._closed = False
        self._cond = threading.Condition()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def put(self, item: T, stop_event: threading.Event | None = None) -> bool:
        """Append ``item``, blocking while the stream is full.

        Returns ``False`` without enqueuing when ``stop_event`` is set while
        waiting for room.
        """
        with self._cond:
            while len(self._items) >= self.capacity and not self._closed:
                if stop_event is not None and stop_event.is_set():
                    return False
                self._cond.wait(timeout=_STOP_POLL_SECONDS if stop_event is not None else None)
            if self._closed:
                raise StreamClosedError("event stream is closed")
            self._items.append(item)
            self._cond.notify_all()
            return True

    def get(self, timeout: float | None = None) -> T:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._items:
                if self._closed:
                    raise StreamClosedError("event stream is closed")
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("no event available")
                self._cond.wait(timeout=remaining)
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except StreamClosedError:
                return
