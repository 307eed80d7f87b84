"""Tests for the HTML form demo handlers and template loading."""

from pathlib import Path

from handlers.form_handlers import FormPages, build_form_router
from request import HTTPRequest
from response import HTTPResponse
from router import Router
from templates import TemplateLoader


def _call(router: Router, method: str, path: str, body: bytes = b"") -> HTTPResponse:
    request = HTTPRequest(method=method, path=path, http_version="HTTP/1.1", body=body)
    return router.resolve(method, path).handler(request)


def _router(template_dir: str | None = None) -> Router:
    loader = TemplateLoader() if template_dir is None else TemplateLoader(template_dir)
    return build_form_router(FormPages(loader))


def test_get_root_serves_form() -> None:
    response = _call(_router(), "GET", "/")

    assert response.status_code == 200
    assert response.content_type == "text/html; charset=UTF-8"
    assert b'<form action="/submit" method="post">' in response.body


def test_submit_decodes_name_field() -> None:
    response = _call(_router(), "POST", "/submit", b"name=Ada+Lovelace%21&other=x")

    assert response.status_code == 200
    assert b"Hello, Ada Lovelace!!" in response.body


def test_submit_without_name_greets_unknown() -> None:
    response = _call(_router(), "POST", "/submit", b"other=x")

    assert b"Hello, Unknown!" in response.body


def test_submit_with_malformed_escape_uses_raw_text() -> None:
    response = _call(_router(), "POST", "/submit", b"name=100%")

    assert b"Hello, 100%!" in response.body


def test_submit_with_malformed_escape_keeps_spaces() -> None:
    response = _call(_router(), "POST", "/submit", b"name=Tom+100%")

    assert b"Hello, Tom 100%!" in response.body


def test_submitted_name_is_html_escaped() -> None:
    response = _call(_router(), "POST", "/submit", b"name=%3Cb%3E")

    assert b"&lt;b&gt;" in response.body
    assert b"<b>" not in response.body


def test_unknown_route_serves_404_page() -> None:
    router = _router()

    for method, path in [("GET", "/missing"), ("GET", "/submit"), ("POST", "/"), ("PUT", "/")]:
        response = _call(router, method, path)
        assert response.status_code == 404
        assert b"404 Not Found" in response.body


def test_missing_templates_fall_back(tmp_path: Path) -> None:
    router = _router(str(tmp_path))

    assert _call(router, "GET", "/").body == b"<h1>Error loading page</h1>"
    assert _call(router, "POST", "/submit", b"name=x").body == b"<h1>Error loading page</h1>"
    not_found = _call(router, "GET", "/nope")
    assert not_found.status_code == 404
    assert not_found.body == b"<h1>404 Not Found</h1>"


def test_template_loader_reads_and_renders(tmp_path: Path) -> None:
    (tmp_path / "page.html").write_text("<p>{{GREETING}}, {{NAME}}</p>", encoding="utf-8")
    loader = TemplateLoader(str(tmp_path), fallback="fallback")

    assert loader.load("page.html") == "<p>{{GREETING}}, {{NAME}}</p>"
    assert loader.render("page.html", GREETING="Hi", NAME="Bo & Co") == "<p>Hi, Bo &amp; Co</p>"
    assert loader.load("absent.html") == "fallback"
    assert loader.load("absent.html", fallback="other") == "other"
