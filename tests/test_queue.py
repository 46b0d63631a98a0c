"""Tests for the closable work queue, work items and completion latch."""

import threading
import time

import pytest

from catalog_harvest.errors import LatchUnderflowError, QueueClosedError, TransportError
from catalog_harvest.queue import ClosableQueue, CompletionLatch, ItemState, WorkItem
from catalog_harvest.request_builder import build_request


@pytest.fixture
def queue():
    """Create a small test queue."""
    return ClosableQueue(maxsize=3)


def make_item(page_id: int = 1) -> WorkItem:
    return WorkItem(page_id=page_id, request=build_request(page_id))


def test_put_and_get_item(queue):
    """Test that items come out in the order they went in."""
    queue.put(make_item(1))
    queue.put(make_item(2))

    assert queue.qsize() == 2
    assert queue.get().page_id == 1
    assert queue.get().page_id == 2


def test_get_empty_queue_times_out(queue):
    """Test that get on an empty open queue waits."""
    with pytest.raises(TimeoutError):
        queue.get(timeout=0.05)


def test_put_full_queue_times_out(queue):
    """Test that put blocks once the queue is at capacity."""
    for i in range(3):
        queue.put(make_item(i + 1))

    with pytest.raises(TimeoutError):
        queue.put(make_item(4), timeout=0.05)


def test_put_on_closed_queue_raises(queue):
    """Test that sending into a closed queue is an error."""
    queue.close()

    with pytest.raises(QueueClosedError):
        queue.put(make_item())


def test_closed_queue_drains_before_raising(queue):
    """Test that items queued before close are still handed out."""
    queue.put(make_item(1))
    queue.close()

    assert queue.get().page_id == 1
    with pytest.raises(QueueClosedError):
        queue.get()


def test_close_wakes_blocked_consumer(queue):
    """Test that a consumer blocked on an empty queue is released by close."""
    errors = []

    def consume():
        try:
            queue.get()
        except QueueClosedError as e:
            errors.append(e)

    consumer = threading.Thread(target=consume)
    consumer.start()
    time.sleep(0.05)
    queue.close()
    consumer.join(timeout=2)

    assert not consumer.is_alive()
    assert len(errors) == 1


def test_close_wakes_blocked_producer():
    """Test that a producer blocked on a full queue fails once it is closed."""
    queue = ClosableQueue(maxsize=1)
    queue.put(make_item(1))
    errors = []

    def produce():
        try:
            queue.put(make_item(2))
        except QueueClosedError as e:
            errors.append(e)

    producer = threading.Thread(target=produce)
    producer.start()
    time.sleep(0.05)
    queue.close()
    producer.join(timeout=2)

    assert not producer.is_alive()
    assert len(errors) == 1


def test_iteration_stops_when_closed(queue):
    """Test that iterating a queue ends once it is closed and drained."""
    for i in range(3):
        queue.put(make_item(i + 1))
    queue.close()

    assert [item.page_id for item in queue] == [1, 2, 3]


def test_invalid_capacity():
    """Test that a queue needs room for at least one item."""
    with pytest.raises(ValueError):
        ClosableQueue(maxsize=0)


def test_work_item_records_errors():
    """Test that attempt errors accumulate in order."""
    item = make_item(7)
    assert item.state == ItemState.PENDING
    assert item.attempt_errors == []

    assert item.record_error(TransportError("timeout: first")) == 1
    assert item.record_error(TransportError("timeout: second")) == 2

    assert [str(e) for e in item.attempt_errors] == ["timeout: first", "timeout: second"]
    assert item.page_id == 7


def test_latch_counts_down_to_zero():
    """Test that the latch releases waiters once it reaches zero."""
    latch = CompletionLatch(2)
    assert not latch.wait(timeout=0.01)

    assert latch.count_down() == 1
    assert latch.count_down() == 0
    assert latch.remaining == 0
    assert latch.wait(timeout=0.01)


def test_latch_underflow_raises():
    """Test that a duplicate terminal transition is detected."""
    latch = CompletionLatch(1)
    latch.count_down()

    with pytest.raises(LatchUnderflowError):
        latch.count_down()


def test_latch_zero_is_already_released():
    """Test that a latch created at zero never blocks."""
    latch = CompletionLatch(0)
    assert latch.wait(timeout=0.01)


def test_latch_concurrent_count_down():
    """Test that concurrent decrements are each counted exactly once."""
    latch = CompletionLatch(200)

    def count(n):
        for _ in range(n):
            latch.count_down()

    threads = [threading.Thread(target=count, args=(25,)) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert latch.remaining == 0
    with pytest.raises(LatchUnderflowError):
        latch.count_down()
