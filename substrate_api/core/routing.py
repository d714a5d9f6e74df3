"""
Typed route table for the request dispatcher.

Routers collect handlers the same way an APIRouter does::

    router = Router(prefix="/projects")

    @router.post("/{project_id}/archive")
    async def archive_project(ctx: RequestContext, project_id: str) -> Project:
        ...

The dispatcher merges every router into one ``RouteTrie``. Lookups prefer
literal segments over parameter segments and never let an identity-looking
segment (numeric or UUID) match a literal keyword.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from substrate_api.shared.exceptions import EndpointNotFoundError, InvalidMethodError

Handler = Callable[..., Awaitable[Any]]

METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

_PARAM = re.compile(r"^\{([a-z_][a-z0-9_]*)\}$")
_UUID = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def split_path(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


def looks_like_identity(segment: str) -> bool:
    return segment.isdigit() or bool(_UUID.match(segment))


@dataclass
class Route:
    method: str
    pattern: str
    handler: Handler
    status_code: int = 200

    @property
    def mutates(self) -> bool:
        return self.method in MUTATING_METHODS


@dataclass
class RouteMatch:
    route: Route
    params: Dict[str, str]


@dataclass
class _Node:
    literals: Dict[str, "_Node"] = field(default_factory=dict)
    param: Optional[Tuple[str, "_Node"]] = None
    routes: Dict[str, Route] = field(default_factory=dict)


class Router:
    """Collects routes under a common prefix."""

    def __init__(self, prefix: str = "", tags: Optional[List[str]] = None) -> None:
        self.prefix = prefix.rstrip("/")
        self.tags = tags or []
        self.routes: List[Route] = []

    def add_route(
        self, method: str, path: str, handler: Handler, status_code: int = 200
    ) -> None:
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported method {method}")
        pattern = f"{self.prefix}{path}".rstrip("/") or "/"
        self.routes.append(Route(method, pattern, handler, status_code))

    def _decorator(
        self, method: str, path: str, status_code: int
    ) -> Callable[[Handler], Handler]:
        def register(handler: Handler) -> Handler:
            self.add_route(method, path, handler, status_code)
            return handler

        return register

    def get(self, path: str, status_code: int = 200) -> Callable[[Handler], Handler]:
        return self._decorator("GET", path, status_code)

    def post(self, path: str, status_code: int = 200) -> Callable[[Handler], Handler]:
        return self._decorator("POST", path, status_code)

    def put(self, path: str, status_code: int = 200) -> Callable[[Handler], Handler]:
        return self._decorator("PUT", path, status_code)

    def patch(self, path: str, status_code: int = 200) -> Callable[[Handler], Handler]:
        return self._decorator("PATCH", path, status_code)

    def delete(
        self, path: str, status_code: int = 200
    ) -> Callable[[Handler], Handler]:
        return self._decorator("DELETE", path, status_code)


class RouteTrie:
    """Segment trie mapping (method, path) to a handler and captured params."""

    def __init__(self) -> None:
        self._root = _Node()

    def add(self, route: Route) -> None:
        node = self._root
        for segment in split_path(route.pattern):
            param = _PARAM.match(segment)
            if param:
                name = param.group(1)
                if node.param is None:
                    node.param = (name, _Node())
                elif node.param[0] != name:
                    raise ValueError(
                        f"Conflicting parameter names {node.param[0]!r} and "
                        f"{name!r} in {route.pattern}"
                    )
                node = node.param[1]
            else:
                node = node.literals.setdefault(segment, _Node())
        if route.method in node.routes:
            raise ValueError(f"Duplicate route {route.method} {route.pattern}")
        node.routes[route.method] = route

    def include(self, router: Router) -> None:
        for route in router.routes:
            self.add(route)

    def _walk(
        self, node: _Node, segments: List[str], params: Dict[str, str]
    ) -> Optional[Tuple[_Node, Dict[str, str]]]:
        if not segments:
            return (node, params) if node.routes else None

        head, rest = segments[0], segments[1:]
        if not looks_like_identity(head) and head in node.literals:
            found = self._walk(node.literals[head], rest, params)
            if found:
                return found
        if node.param is not None:
            name, child = node.param
            return self._walk(child, rest, {**params, name: head})
        return None

    def resolve(self, method: str, path: str) -> RouteMatch:
        """
        Resolve a request to a route.

        Raises:
            EndpointNotFoundError: If no route pattern matches the path
            InvalidMethodError: If the path matches but not for this method
        """
        found = self._walk(self._root, split_path(path), {})
        if found is None:
            raise EndpointNotFoundError(method, path)
        node, params = found
        route = node.routes.get(method.upper())
        if route is None:
            raise InvalidMethodError(method, path)
        return RouteMatch(route=route, params=params)
