"""Configuration constants for the socket HTTP servers."""

from pathlib import Path

HOST: str = "127.0.0.1"
API_PORT: int = 8080
WEB_PORT: int = 7878
READ_CHUNK_SIZE: int = 4096
MAX_HEADER_BYTES: int = 16_384
MAX_BODY_BYTES: int = 524_288
SOCKET_TIMEOUT_SECS: float | None = None
SERVER_ENGINE: str = "sequential"
WORKER_COUNT: int = 4
REQUEST_QUEUE_SIZE: int = 32
LOG_FORMAT: str = "plain"
TEMPLATE_DIR: str = str(Path(__file__).resolve().parent / "html")
TEMPLATE_FALLBACK: str = "<h1>Error loading page</h1>"
NOT_FOUND_FALLBACK: str = "<h1>404 Not Found</h1>"
