"""Tests for the bounded connection worker pool."""

import threading

import pytest

from thread_pool import ThreadPool


class FakeConnection:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


def test_thread_pool_starts_fixed_worker_count() -> None:
    pool = ThreadPool(worker_count=3, queue_size=4, handler=lambda _sock, _addr: None)
    pool.start()

    try:
        assert pool.worker_count == 3
        assert len(pool.threads) == 3
        assert all(thread.is_alive() for thread in pool.threads)
    finally:
        pool.shutdown()

    assert not any(thread.is_alive() for thread in pool.threads)


def test_starting_twice_is_rejected() -> None:
    pool = ThreadPool(worker_count=1, queue_size=1, handler=lambda _sock, _addr: None)
    pool.start()
    try:
        with pytest.raises(RuntimeError, match="already started"):
            pool.start()
    finally:
        pool.shutdown()


def test_thread_pool_submit_returns_false_when_full() -> None:
    pool = ThreadPool(worker_count=1, queue_size=1, handler=lambda _sock, _addr: None)

    assert pool.submit(FakeConnection(), ("127.0.0.1", 0)) is True
    assert pool.submit(FakeConnection(), ("127.0.0.1", 1)) is False
    assert pool.pending == 1


@pytest.mark.parametrize(("workers", "queue_size"), [(0, 1), (1, 0)])
def test_thread_pool_rejects_non_positive_sizes(workers: int, queue_size: int) -> None:
    with pytest.raises(ValueError, match="must be positive"):
        ThreadPool(worker_count=workers, queue_size=queue_size, handler=lambda _sock, _addr: None)


def test_failing_handler_does_not_kill_worker() -> None:
    handled: list[int] = []
    done = threading.Event()

    def handler(_sock: object, address: tuple[str, int]) -> None:
        if address[1] == 0:
            raise RuntimeError("boom")
        handled.append(address[1])
        done.set()

    pool = ThreadPool(worker_count=1, queue_size=4, handler=handler)
    pool.start()
    try:
        assert pool.submit(FakeConnection(), ("127.0.0.1", 0))
        assert pool.submit(FakeConnection(), ("127.0.0.1", 1))
        assert done.wait(timeout=2.0)
    finally:
        pool.shutdown()

    assert handled == [1]


def test_submit_after_shutdown_is_rejected() -> None:
    pool = ThreadPool(worker_count=1, queue_size=1, handler=lambda _sock, _addr: None)
    pool.start()
    pool.shutdown()

    assert pool.closed
    assert pool.submit(FakeConnection(), ("127.0.0.1", 0)) is False


def test_shutdown_closes_connections_that_were_never_served() -> None:
    pool = ThreadPool(worker_count=1, queue_size=4, handler=lambda _sock, _addr: None)
    queued = [FakeConnection(), FakeConnection(), FakeConnection()]
    for port, connection in enumerate(queued):
        assert pool.submit(connection, ("127.0.0.1", port))

    assert pool.shutdown() == 3
    assert all(connection.closed for connection in queued)
    assert pool.pending == 0


def test_shutdown_with_busy_worker_closes_only_queued_connections() -> None:
    entered = threading.Event()
    release = threading.Event()
    served: list[int] = []

    def handler(_sock: object, address: tuple[str, int]) -> None:
        served.append(address[1])
        entered.set()
        release.wait(timeout=5.0)

    pool = ThreadPool(worker_count=1, queue_size=4, handler=handler)
    pool.start()
    active = FakeConnection()
    waiting = [FakeConnection(), FakeConnection()]
    try:
        assert pool.submit(active, ("127.0.0.1", 0))
        assert entered.wait(timeout=2.0)
        for port, connection in enumerate(waiting, start=1):
            assert pool.submit(connection, ("127.0.0.1", port))

        assert pool.shutdown(timeout=0.05) == 2
    finally:
        release.set()

    pool.threads[0].join(timeout=2.0)
    assert served == [0]
    assert all(connection.closed for connection in waiting)
    assert not active.closed


def test_second_shutdown_is_a_no_op() -> None:
    pool = ThreadPool(worker_count=1, queue_size=2, handler=lambda _sock, _addr: None)
    pool.submit(FakeConnection(), ("127.0.0.1", 0))

    assert pool.shutdown() == 1
    assert pool.shutdown() == 0
