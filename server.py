"""HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import json
import logging
import socket
import threading
import time

from config import (
    API_PORT,
    HOST,
    LOG_FORMAT,
    REQUEST_QUEUE_SIZE,
    SERVER_ENGINE,
    SOCKET_TIMEOUT_SECS,
    TEMPLATE_DIR,
    WEB_PORT,
    WORKER_COUNT,
)
from handlers.form_handlers import FormPages, build_form_router
from request import HTTPRequest, HTTPRequestParseError
from response import HTTPResponse
from router import Router
from socket_handler import (
    ConnectionClosedError,
    HTTPReadError,
    MalformedRequestError,
    read_http_message,
    write_http_response_message,
)
from templates import TemplateLoader
from thread_pool import ThreadPool
from user_api import UserAPI, build_api_router
from user_store import UserStore

logger = logging.getLogger(__name__)

ENGINES = ("sequential", "threadpool")


class HTTPServer:
    def __init__(
        self,
        host: str = HOST,
        port: int = API_PORT,
        router: Router | None = None,
        worker_count: int = WORKER_COUNT,
        request_queue_size: int = REQUEST_QUEUE_SIZE,
        *,
        engine: str = SERVER_ENGINE,
        socket_timeout_secs: float | None = SOCKET_TIMEOUT_SECS,
        log_format: str = LOG_FORMAT,
    ) -> None:
        if engine not in ENGINES:
            raise ValueError(f"Unsupported engine: {engine}")
        self.host = host
        self.port = port
        self.router = router or build_api_router(UserAPI(store=UserStore()))
        self.worker_count = worker_count
        self.request_queue_size = request_queue_size
        self.engine = engine
        self.socket_timeout_secs = socket_timeout_secs
        self.log_format = log_format
        self.ready = threading.Event()

        self._server_socket: socket.socket | None = None
        self._pool: ThreadPool | None = None
        self._running = False

    def start(self) -> None:
        """Bind, then accept connections until ``stop`` is called.

        A failure to bind propagates to the caller; failures while serving a
        single connection never leave the accept loop.
        """
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(128)
            server_socket.settimeout(0.2)
            self._server_socket = server_socket
            self.port = server_socket.getsockname()[1]

            if self.engine == "threadpool":
                self._pool = ThreadPool(
                    worker_count=self.worker_count,
                    queue_size=self.request_queue_size,
                    handler=self._handle_client,
                )
                self._pool.start()

            self._running = True
            self.ready.set()
            logger.info("Listening on http://%s:%s/ engine=%s", self.host, self.port, self.engine)
            try:
                while self._running:
                    try:
                        client_socket, address = server_socket.accept()
                    except socket.timeout:
                        continue
                    except OSError:
                        if not self._running:
                            break
                        logger.warning("accept() failed", exc_info=True)
                        continue

                    if self._pool is None:
                        try:
                            self._handle_client(client_socket, address)
                        except Exception:
                            logger.exception("Connection handler for %s failed", address[0])
                    elif not self._pool.submit(client_socket, address):
                        logger.warning("Worker queue full, dropping client %s", address[0])
                        client_socket.close()
            finally:
                self._running = False
                pool, self._pool = self._pool, None
                if pool is not None:
                    pool.shutdown()

    def stop(self) -> None:
        self._running = False
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None
        pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown()

    def _handle_client(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            client_socket.settimeout(self.socket_timeout_secs)
            started_at = time.perf_counter()

            try:
                head, body = read_http_message(client_socket)
            except ConnectionClosedError:
                logger.debug("Client %s closed without sending a request", address[0])
                return
            except MalformedRequestError as exc:
                logger.warning("Rejecting request from %s: %s", address[0], exc)
                self._send_bad_request(client_socket, address, started_at)
                return
            except HTTPReadError as exc:
                logger.warning("Abandoning connection from %s: %s", address[0], exc)
                return

            bytes_in = len(head) + 4 + len(body)
            try:
                request = HTTPRequest.from_message(head, body)
            except HTTPRequestParseError as exc:
                logger.warning("Rejecting request from %s: %s", address[0], exc)
                self._send_bad_request(client_socket, address, started_at, bytes_in=bytes_in)
                return

            response = self._dispatch(request)
            if response is None:
                return

            try:
                bytes_out = write_http_response_message(client_socket, response)
            except OSError as exc:
                logger.warning("Failed to write response to %s: %s", address[0], exc)
                return

            self._log_exchange(
                address=address,
                method=request.method,
                path=request.path,
                status=response.status_code,
                bytes_in=bytes_in,
                bytes_out=bytes_out,
                started_at=started_at,
            )

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse | None:
        match = self.router.resolve(request.method, request.path)
        request.path_params = dict(match.params)
        try:
            return match.handler(request)
        except Exception:
            logger.exception("Unhandled error in route handler for %s %s", request.method, request.path)
            return None

    def _send_bad_request(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        started_at: float,
        *,
        bytes_in: int = 0,
    ) -> None:
        response = HTTPResponse(status_code=400, body="Bad Request")
        try:
            bytes_out = write_http_response_message(client_socket, response)
        except OSError as exc:
            logger.warning("Failed to write response to %s: %s", address[0], exc)
            return
        self._log_exchange(
            address=address,
            method="-",
            path="-",
            status=response.status_code,
            bytes_in=bytes_in,
            bytes_out=bytes_out,
            started_at=started_at,
        )

    def _log_exchange(
        self,
        *,
        address: tuple[str, int],
        method: str,
        path: str,
        status: int,
        bytes_in: int,
        bytes_out: int,
        started_at: float,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        event = {
            "client": address[0],
            "method": method,
            "path": path,
            "status": status,
            "engine": self.engine,
            "bytes_in": bytes_in,
            "bytes_out": bytes_out,
            "latency_ms": round(duration_ms, 3),
        }
        if self.log_format == "json":
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            "client=%s method=%s path=%s status=%s engine=%s bytes_in=%s bytes_out=%s duration_ms=%.2f",
            event["client"],
            event["method"],
            event["path"],
            event["status"],
            event["engine"],
            event["bytes_in"],
            event["bytes_out"],
            duration_ms,
        )


def build_router(app: str, *, template_dir: str = TEMPLATE_DIR) -> Router:
    if app == "api":
        return build_api_router(UserAPI(store=UserStore()))
    if app == "web":
        return build_form_router(FormPages(TemplateLoader(template_dir)))
    raise ValueError(f"Unknown app: {app}")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the socket HTTP server")
    parser.add_argument("--app", choices=["api", "web"], default="api")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--engine", choices=ENGINES, default=SERVER_ENGINE)
    parser.add_argument("--workers", type=int, default=WORKER_COUNT)
    parser.add_argument("--queue-size", type=int, default=REQUEST_QUEUE_SIZE)
    parser.add_argument("--log-format", choices=["plain", "json"], default=LOG_FORMAT)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    port = args.port
    if port is None:
        port = API_PORT if args.app == "api" else WEB_PORT
    router = build_router(args.app)
    server = HTTPServer(
        host=args.host,
        port=port,
        router=router,
        worker_count=args.workers,
        request_queue_size=args.queue_size,
        engine=args.engine,
        log_format=args.log_format,
    )

    logger.info("Available endpoints:")
    for route in router.routes:
        logger.info("  %-4s %s", route.method, route.pattern)

    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()
    except OSError as exc:
        logger.error("Could not bind %s:%s: %s", args.host, port, exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
