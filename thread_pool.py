"""Bounded worker pool for accepted client connections."""

from __future__ import annotations

import logging
import queue
import socket
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

ClientAddress = tuple[str, int]
PendingConnection = tuple[socket.socket, ClientAddress]
ConnectionHandler = Callable[[socket.socket, ClientAddress], None]

POLL_INTERVAL_SECS = 0.2


class ThreadPool:
    """Fixed set of workers serving queued connections one at a time each.

    Connections still waiting in the queue when the pool shuts down never
    reach a handler; they are closed and counted instead.
    """

    def __init__(self, worker_count: int, queue_size: int, handler: ConnectionHandler) -> None:
        if worker_count <= 0:
            raise ValueError("worker_count must be positive")
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")

        self._handler = handler
        self._worker_count = worker_count
        self._pending: queue.Queue[PendingConnection] = queue.Queue(maxsize=queue_size)
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._workers: list[threading.Thread] = []

    @property
    def worker_count(self) -> int:
        return self._worker_count

    @property
    def threads(self) -> tuple[threading.Thread, ...]:
        return tuple(self._workers)

    @property
    def pending(self) -> int:
        return self._pending.qsize()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> None:
        with self._lock:
            if self._workers:
                raise RuntimeError("pool already started")
            self._workers = [
                threading.Thread(target=self._serve_forever, name=f"http-worker-{index}", daemon=True)
                for index in range(self._worker_count)
            ]
        for worker in self._workers:
            worker.start()
        logger.debug("Started %d connection workers", self._worker_count)

    def submit(self, client_socket: socket.socket, address: ClientAddress) -> bool:
        """Queue a connection; False when the pool is closed or the queue is full."""
        if self._closed.is_set():
            return False
        try:
            self._pending.put_nowait((client_socket, address))
        except queue.Full:
            return False
        return True

    def shutdown(self, *, timeout: float = 1.0) -> int:
        """Stop the workers and close every connection still queued.

        Returns how many queued connections were closed unserved. A
        connection already inside a handler is left to finish.
        """
        with self._lock:
            if self._closed.is_set():
                return 0
            self._closed.set()

        dropped = self._close_pending()
        for worker in self._workers:
            worker.join(timeout=timeout)
        # submit() may have raced the close flag.
        dropped += self._close_pending()

        if dropped:
            logger.warning("Closed %d queued connection(s) on shutdown", dropped)
        return dropped

    def _close_pending(self) -> int:
        closed = 0
        while True:
            try:
                client_socket, address = self._pending.get_nowait()
            except queue.Empty:
                return closed
            try:
                client_socket.close()
            except OSError as exc:
                logger.debug("Closing queued connection from %s failed: %s", address[0], exc)
            closed += 1

    def _serve_forever(self) -> None:
        while not self._closed.is_set():
            try:
                client_socket, address = self._pending.get(timeout=POLL_INTERVAL_SECS)
            except queue.Empty:
                continue
            try:
                self._handler(client_socket, address)
            except Exception:
                logger.exception("Connection handler for %s failed", address[0])
