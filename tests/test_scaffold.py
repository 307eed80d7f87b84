"""Sanity checks for repository layout, configuration and the entry point."""

import socket
from pathlib import Path

import pytest

from config import API_PORT, HOST, TEMPLATE_DIR, WEB_PORT
from server import build_router, main

ROOT = Path(__file__).resolve().parent.parent


def test_core_files_exist() -> None:
    expected = [
        "server.py",
        "socket_handler.py",
        "request.py",
        "response.py",
        "router.py",
        "config.py",
        "utils.py",
        "user_store.py",
        "user_api.py",
        "templates.py",
        "handlers/form_handlers.py",
        "html/startup.html",
        "html/response.html",
        "html/not_found.html",
    ]
    for rel_path in expected:
        assert (ROOT / rel_path).exists()


def test_basic_config_values() -> None:
    assert HOST == "127.0.0.1"
    assert API_PORT == 8080
    assert WEB_PORT == 7878
    assert Path(TEMPLATE_DIR) == ROOT / "html"


def test_build_router_for_each_app() -> None:
    api_routes = [(route.method, route.pattern) for route in build_router("api").routes]
    web_routes = [(route.method, route.pattern) for route in build_router("web").routes]

    assert api_routes == [("GET", "/api/users"), ("GET", "/api/users/:id"), ("POST", "/api/users")]
    assert web_routes == [("GET", "/"), ("POST", "/submit")]

    with pytest.raises(ValueError, match="Unknown app"):
        build_router("ftp")


def test_main_returns_error_when_port_is_taken() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
        occupied.bind(("127.0.0.1", 0))
        occupied.listen(1)
        port = occupied.getsockname()[1]

        assert main(["--app", "web", "--port", str(port)]) == 1
