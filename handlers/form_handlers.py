"""Route handlers for the HTML form demo."""

from config import NOT_FOUND_FALLBACK
from request import HTTPRequest
from response import HTTPResponse
from router import Router
from templates import TemplateLoader
from utils import parse_form_body


class FormPages:
    def __init__(self, loader: TemplateLoader) -> None:
        self._loader = loader

    def show_form(self, request: HTTPRequest) -> HTTPResponse:
        _ = request
        return HTTPResponse.html(self._loader.load("startup.html"))

    def submit(self, request: HTTPRequest) -> HTTPResponse:
        name = parse_form_body(request.body).get("name", "Unknown")
        return HTTPResponse.html(self._loader.render("response.html", NAME=name))

    def not_found(self, request: HTTPRequest) -> HTTPResponse:
        _ = request
        page = self._loader.load("not_found.html", fallback=NOT_FOUND_FALLBACK)
        return HTTPResponse.html(page, status_code=404)


def build_form_router(pages: FormPages) -> Router:
    router = Router(fallback=pages.not_found)
    router.add_route("GET", "/", pages.show_form)
    router.add_route("POST", "/submit", pages.submit)
    return router
