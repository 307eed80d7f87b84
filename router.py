"""Ordered routing table for method/path-pattern handlers."""

from collections.abc import Callable
from dataclasses import dataclass, field

from request import HTTPRequest
from response import HTTPResponse

Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass(frozen=True, slots=True)
class Route:
    method: str
    pattern: str
    handler: Handler
    prefix: str
    param_name: str | None = None

    @property
    def is_literal(self) -> bool:
        return self.param_name is None


@dataclass(slots=True)
class RouteMatch:
    handler: Handler
    params: dict[str, str] = field(default_factory=dict)
    pattern: str | None = None


MAX_PARAM_VALUE = 0xFFFF_FFFF


def _parse_unsigned(token: str) -> int | None:
    """Parse a 32-bit unsigned decimal id, or return None."""
    if not token or not token.isascii() or not token.isdigit():
        return None
    significant = token.lstrip("0") or "0"
    if len(significant) > len(str(MAX_PARAM_VALUE)):
        return None
    value = int(significant)
    if value > MAX_PARAM_VALUE:
        return None
    return value


class Router:
    """Resolves method + path in a fixed priority order.

    Literal routes win over parameter routes, parameter routes are tried in
    registration order, and anything else goes to the fallback handler
    regardless of method.
    """

    def __init__(self, fallback: Handler) -> None:
        self._routes: list[Route] = []
        self._fallback = fallback

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        normalized_method = method.upper().strip()
        if not normalized_method:
            raise ValueError("method cannot be empty")
        if not pattern.startswith("/"):
            raise ValueError("path must start with '/'")

        segments = pattern.split("/")
        param_segments = [index for index, segment in enumerate(segments) if segment.startswith(":")]
        if len(param_segments) > 1:
            raise ValueError("pattern may contain at most one parameter")

        if param_segments:
            if param_segments[0] != len(segments) - 1:
                raise ValueError("parameter must be the last path segment")
            param_name = segments[-1][1:]
            if not param_name:
                raise ValueError("parameter name cannot be empty")
            prefix = "/".join(segments[:-1]) + "/"
            route = Route(normalized_method, pattern, handler, prefix, param_name)
        else:
            route = Route(normalized_method, pattern, handler, pattern)

        for existing in self._routes:
            if existing.method == route.method and existing.pattern == route.pattern:
                raise ValueError(f"duplicate route {route.method} {route.pattern}")
        self._routes.append(route)

    def resolve(self, method: str, path: str) -> RouteMatch:
        normalized_method = method.upper().strip()

        for route in self._routes:
            if route.is_literal and route.method == normalized_method and route.pattern == path:
                return RouteMatch(route.handler, pattern=route.pattern)

        for route in self._routes:
            if route.is_literal or route.method != normalized_method:
                continue
            if not path.startswith(route.prefix):
                continue
            params: dict[str, str] = {}
            value = _parse_unsigned(path[len(route.prefix) :])
            if value is not None:
                params[route.param_name] = str(value)
            return RouteMatch(route.handler, params=params, pattern=route.pattern)

        return RouteMatch(self._fallback)
