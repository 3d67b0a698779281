"""
Application orchestrator.

Wires the Globals context, services and middleware, then runs one host event
end to end: normalize -> pipeline -> controller -> serialize. run() never
raises; every failure becomes a Response before the reply is built.
"""

import copy
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Union

from .config import AppConfig
from .config import config as default_config
from .core.normalizer import create_normalizer
from .core.request_context import clear_context, set_request_id
from .core.serializer import create_serializer
from .exceptions import InternalError, map_error
from .models.globals import Globals
from .models.request import Request, Runtime
from .models.response import Response
from .models.route import Route
from .services.controller_resolver import (
    ControllerResolver,
    ModuleControllerResolver,
    RegistryControllerResolver,
)
from .services.pipeline import END, IN, MOUNT, OUT, START, MiddlewarePipeline, as_list
from .services.route_matcher import RouteMatcher

logger = logging.getLogger("switchyard.application")

Routes = Union[RouteMatcher, Iterable[Union[Route, dict]]]


class Application:
    """
    Orchestrates the request processing lifecycle for one runtime.

    Args:
        runtime: hosting runtime kind
        routes: RouteMatcher or route declarations; loaded from
            EAPI_ROUTES_PATH when omitted
        resolver: ControllerResolver or mapping of route name to controller
        config: settings, the module singleton when omitted
        socket/io: connection handles for the socket runtime
    """

    def __init__(
        self,
        runtime: Union[Runtime, str] = Runtime.HTTP,
        routes: Optional[Routes] = None,
        resolver: Union[ControllerResolver, Mapping, None] = None,
        config: Optional[AppConfig] = None,
        socket: Any = None,
        io: Any = None,
    ):
        try:
            self.runtime = Runtime(runtime)
        except ValueError:
            raise InternalError(
                f"Runtime does not exist: {runtime}",
                details={"runtimes": [r.value for r in Runtime]},
            )

        self.config = config or default_config

        environment = self.config.environment()
        environment["EAPI_TYPE"] = self.runtime.value
        self.globals = Globals(environment, socket=socket, io=io)

        self.matcher = self._build_matcher(routes)
        self.resolver = self._build_resolver(resolver)
        self.pipeline = MiddlewarePipeline(error_logging=self.config.EAPI_LOGGING)
        self.normalizer = create_normalizer(
            self.runtime,
            self.matcher,
            path_shift=self.config.EAPI_PATH_SHIFT,
            path_unshift=self.config.EAPI_PATH_UNSHIFT,
        )
        self.serializer = create_serializer(self.runtime)

    def _build_matcher(self, routes: Optional[Routes]) -> RouteMatcher:
        if isinstance(routes, RouteMatcher):
            return routes
        if routes is not None:
            return RouteMatcher(routes)

        matcher = RouteMatcher(config_path=self.config.EAPI_ROUTES_PATH)
        matcher.load_routing_config()
        return matcher

    def _build_resolver(self, resolver) -> ControllerResolver:
        if isinstance(resolver, ControllerResolver):
            return resolver
        if self.config.EAPI_CONTROLLER_PACKAGE:
            return ModuleControllerResolver(self.config.EAPI_CONTROLLER_PACKAGE, resolver)
        return RegistryControllerResolver(resolver)

    # ===========================================
    # Registration
    # ===========================================

    def register_service(self, services: Union[Any, List[Any]]) -> None:
        """
        Attach services to the Globals context under their `service` alias.

        Raises:
            InternalError: alias missing or already registered
        """
        for service in as_list(services):
            alias = getattr(service, "service", None)
            if not alias or not isinstance(alias, str):
                raise InternalError(
                    "Service must declare a string `service` alias",
                    details={"type": type(service).__name__},
                )
            try:
                self.globals.add_service(alias, service)
            except KeyError:
                raise InternalError(
                    f"Service alias already registered: {alias}", details={"alias": alias}
                )
            logger.debug(f"Registered service {alias}")

    def register_middleware(self, middleware: Union[Any, List[Any]]) -> None:
        """Register into every stage the middleware has a handler for."""
        self.pipeline.register_all(middleware)

    def register_start(self, middleware: Union[Any, List[Any]]) -> None:
        self.pipeline.register(START, middleware)

    def register_mount(self, middleware: Union[Any, List[Any]]) -> None:
        self.pipeline.register(MOUNT, middleware)

    def register_in(self, middleware: Union[Any, List[Any]]) -> None:
        self.pipeline.register(IN, middleware)

    def register_out(self, middleware: Union[Any, List[Any]]) -> None:
        self.pipeline.register(OUT, middleware)

    def register_end(self, middleware: Union[Any, List[Any]]) -> None:
        self.pipeline.register(END, middleware)

    def for_connection(self, socket: Any, io: Any = None) -> "Application":
        """
        Application bound to one socket connection.

        Shares routes, resolver, middleware and services; gets its own
        Globals carrying the connection handles.
        """
        bound = copy.copy(self)
        bound.globals = self.globals.with_connection(socket, io)
        return bound

    # ===========================================
    # Execution
    # ===========================================

    async def run(self, event: Any) -> Any:
        """
        Run one host event and return the host reply.

        AWS record batches run one pipeline pass per record and reply with
        the list of bodies. Socket replies are emitted and None is returned.
        """
        try:
            requests = self.normalizer.normalize(event, self.globals)
        except Exception as e:
            response = map_error(e, None, self.config.EAPI_LOGGING)
            response = await self.pipeline.finish(response)
            return await self._reply(response)

        if len(requests) == 1:
            return await self._reply(await self._process(requests[0]))

        responses = [await self._process(request) for request in requests]
        batch = Response(status=200, body=[r.body for r in responses])
        return await self._reply(batch)

    async def _process(self, request: Request) -> Response:
        set_request_id(request.context["id"])
        logger.debug(
            f"Processing {request.method} {request.path}",
            extra={"runtime": self.runtime.value, "route": request.route and request.route.name},
        )
        try:
            return await self.pipeline.execute(request, self._dispatch)
        finally:
            clear_context()

    async def _dispatch(self, request: Request) -> Response:
        action = self.resolver.resolve(request.route, request.method, self.globals)
        result = action(request, self.globals)
        if inspect.isawaitable(result):
            result = await result
        return Response.coerce(result, request)

    async def _reply(self, response: Response) -> Any:
        try:
            return await self.serializer.serialize(response, self.globals)
        except Exception as e:
            fallback = map_error(e, response.request, self.config.EAPI_LOGGING)

        try:
            return await self.serializer.serialize(fallback, self.globals)
        except Exception:
            logger.error("Failed to deliver the error reply", exc_info=True)
            return None
