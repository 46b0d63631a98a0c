"""In-memory work queue, work items and completion latch for the harvester."""

import threading
from collections import deque
from enum import Enum
from typing import Any, Iterator, Optional

from .errors import FetchError, LatchUnderflowError, QueueClosedError
from .models import PageRequest, SearchResultsPayload


class ItemState(str, Enum):
    """Lifecycle state of a work item."""

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class WorkItem:
    """Represents one page's fetch lifecycle, including its retry history."""

    def __init__(
        self,
        page_id: int,
        request: PageRequest,
        attempt_errors: Optional[list[FetchError]] = None,
    ):
        self.page_id = page_id
        self.request = request
        self.attempt_errors = attempt_errors or []
        self.state = ItemState.PENDING
        self.payload: Optional[SearchResultsPayload] = None

    def record_error(self, error: FetchError) -> int:
        """Append a failed attempt and return the number of failures so far."""
        self.attempt_errors.append(error)
        return len(self.attempt_errors)

    def __repr__(self) -> str:
        return (
            f"WorkItem(page_id={self.page_id}, state={self.state.value}, "
            f"errors={len(self.attempt_errors)})"
        )


class ClosableQueue:
    """Bounded FIFO queue that can be closed once no more items will arrive.

    ``put`` blocks while the queue is full and raises ``QueueClosedError``
    if the queue is closed. ``get`` blocks while the queue is empty and
    open; once closed, remaining items are still handed out and
    ``QueueClosedError`` is raised only when the queue is drained.
    """

    def __init__(self, maxsize: int):
        if maxsize < 1:
            raise ValueError(f"maxsize must be at least 1, got {maxsize}")
        self.maxsize = maxsize
        self._items: deque = deque()
        self._closed = False
        self._mutex = threading.Lock()
        self._not_empty = threading.Condition(self._mutex)
        self._not_full = threading.Condition(self._mutex)

    def put(self, item: Any, timeout: Optional[float] = None):
        """Add an item, waiting for free capacity.

        Args:
            item: Item to enqueue
            timeout: Seconds to wait for capacity, or None to wait forever

        Raises:
            QueueClosedError: If the queue is closed before the item fits
            TimeoutError: If no capacity frees up within ``timeout``
        """
        with self._not_full:
            if not self._not_full.wait_for(
                lambda: self._closed or len(self._items) < self.maxsize,
                timeout=timeout,
            ):
                raise TimeoutError("timed out waiting for queue capacity")
            if self._closed:
                raise QueueClosedError("put on closed queue")
            self._items.append(item)
            self._not_empty.notify()

    def get(self, timeout: Optional[float] = None) -> Any:
        """Remove and return the oldest item.

        Args:
            timeout: Seconds to wait for an item, or None to wait forever

        Raises:
            QueueClosedError: If the queue is closed and drained
            TimeoutError: If nothing arrives within ``timeout``
        """
        with self._not_empty:
            if not self._not_empty.wait_for(
                lambda: self._closed or self._items,
                timeout=timeout,
            ):
                raise TimeoutError("timed out waiting for queue item")
            if not self._items:
                raise QueueClosedError("queue closed and drained")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self):
        """Close the queue and wake every waiting producer and consumer."""
        with self._mutex:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def qsize(self) -> int:
        with self._mutex:
            return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                yield self.get()
            except QueueClosedError:
                return


class CompletionLatch:
    """Countdown latch with one count per work item.

    Each work item counts down exactly once, on its terminal transition.
    Waiters are released when the count reaches zero.
    """

    def __init__(self, count: int):
        if count < 0:
            raise ValueError(f"count must not be negative, got {count}")
        self._count = count
        self._cond = threading.Condition()

    @property
    def remaining(self) -> int:
        with self._cond:
            return self._count

    def count_down(self) -> int:
        """Record one terminal transition and return the remaining count.

        Raises:
            LatchUnderflowError: If the latch is already at zero
        """
        with self._cond:
            if self._count == 0:
                raise LatchUnderflowError("completion latch counted down past zero")
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()
            return self._count

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the count reaches zero.

        Returns:
            True once the count is zero, False if ``timeout`` expired first
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout=timeout)
