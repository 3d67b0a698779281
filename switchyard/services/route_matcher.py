"""
Route matching service.

Loads routes.yml and resolves the route for a request path/method.

Note:
    Provides functionality different from FastAPI's APIRouter.
    Routes are matched in declaration order; the first hit wins.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from ..exceptions import InternalError
from ..models.route import Route

logger = logging.getLogger("switchyard.route_matcher")

RouteLike = Union[Route, Dict[str, Any]]


class RouteMatcher:
    def __init__(self, routes: Optional[Iterable[RouteLike]] = None, config_path: str = None):
        """
        Args:
            routes: route declarations, used as-is when given
            config_path: YAML file with a top level `routes:` list
        """
        self.config_path = config_path
        self._routes: List[Route] = []
        self._patterns: List[re.Pattern] = []
        if routes is not None:
            self.set_routes(routes)

    @property
    def routes(self) -> List[Route]:
        return list(self._routes)

    def set_routes(self, routes: Iterable[RouteLike]) -> None:
        try:
            parsed = [r if isinstance(r, Route) else Route.model_validate(r) for r in routes]
        except ValidationError as e:
            raise InternalError("Invalid route declaration", details={"errors": e.errors()})
        self._routes = parsed
        self._patterns = [re.compile(self._path_to_regex(r.path)) for r in parsed]

    def load_routing_config(self) -> List[Route]:
        """
        Load routes.yml and cache it.

        A missing file leaves the table empty; a malformed one is a
        configuration fault.
        """
        if not self.config_path:
            return self.routes

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                cfg = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Routes file not found at {self.config_path}")
            self.set_routes([])
            return self.routes
        except yaml.YAMLError as e:
            logger.error(f"Error parsing routes file: {e}")
            raise InternalError("Cannot parse routes file", details={"path": self.config_path})

        self.set_routes(cfg.get("routes") or [])
        logger.info(f"Loaded {len(self._routes)} routes from {self.config_path}")
        return self.routes

    @staticmethod
    def _path_to_regex(path_pattern: str) -> str:
        """
        Convert a path pattern to a regular expression.

        Example: "/users/{user_id}/files/{key+}"
            → "^/users/(?P<user_id>[^/]+)/files/(?P<key>.+)$"
        """
        regex_pattern = re.sub(r"\{(\w+)\+\}", r"(?P<\1>.+)", path_pattern)
        regex_pattern = re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", regex_pattern)
        return f"^{regex_pattern}$"

    def match_route(
        self, request_path: str, request_method: str
    ) -> Tuple[Optional[Route], Dict[str, str]]:
        """
        Resolve the route for a request.

        Args:
            request_path: request path (e.g., "/test/42")
            request_method: request method (e.g., "get", "socket", "aws:sqs")

        Returns:
            Tuple of:
                - route: matched Route (None if not found)
                - path_params: dict of path parameters
        """
        for route, pattern in zip(self._routes, self._patterns):
            if not route.allows(request_method):
                continue

            match = pattern.match(request_path)
            if match:
                return route, match.groupdict()

        return None, {}
