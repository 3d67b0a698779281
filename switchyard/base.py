"""
Base classes for controllers, middleware and services.

Controllers and middleware receive the application's Globals context and get
shortcuts to its parts. Services only declare an alias and their lifecycle
hooks; they are constructed outside the pipeline.
"""

from typing import Any, Mapping

from .exceptions import InternalError
from .models.globals import Globals


class Core:
    def __init__(self, globals: Globals):
        if globals is None:
            raise InternalError(
                f"{type(self).__name__} needs the application globals to reach "
                "environment, services and socket handles"
            )
        self._globals = globals

    @property
    def globals(self) -> Globals:
        return self._globals

    @property
    def environment(self) -> Mapping[str, str]:
        return self._globals.environment

    @property
    def services(self) -> Mapping[str, Any]:
        return self._globals.services

    @property
    def socket(self) -> Any:
        return self._globals.socket

    @property
    def io(self) -> Any:
        return self._globals.io


class Controller(Core):
    """
    Class based controller.

    A new instance is created for every invocation; actions are methods named
    after the request method (get, post, socket, aws_sqs, ...) and are called
    with (request, globals).
    """


class Middleware(Core):
    """
    Class based middleware.

    Define any of start, mount, in_, out, end.
    """


class Service:
    """
    Connection oriented collaborator registered on the Globals context.

    `service` is the alias it is registered under (namespace:instance).
    connect()/end() are called by process lifecycle code, never by the
    pipeline.
    """

    service: str = ""

    def __init__(self, service: str = None):
        if service:
            self.service = service

    async def connect(self) -> None:
        pass

    async def end(self) -> None:
        pass
