"""
Globals context shared across one application's pipeline.
"""

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class Globals:
    """
    Read-only bag of environment, services and runtime handles.

    Services are attached through add_service() while the application is
    being wired; every consumer sees read-only mappings.
    """

    def __init__(
        self,
        environment: Optional[Mapping[str, str]] = None,
        services: Optional[Mapping[str, Any]] = None,
        socket: Any = None,
        io: Any = None,
    ):
        self._environment: Dict[str, str] = dict(environment or {})
        self._services: Dict[str, Any] = dict(services or {})
        self.socket = socket
        self.io = io

    @property
    def environment(self) -> Mapping[str, str]:
        return MappingProxyType(self._environment)

    @property
    def services(self) -> Mapping[str, Any]:
        return MappingProxyType(self._services)

    def add_service(self, alias: str, service: Any) -> None:
        if alias in self._services:
            raise KeyError(alias)
        self._services[alias] = service

    def with_connection(self, socket: Any, io: Any = None) -> "Globals":
        """Copy sharing environment and services, bound to one connection."""
        return Globals(self._environment, self._services, socket=socket, io=io)

    def __repr__(self) -> str:
        return (
            f"Globals(environment={len(self._environment)} keys, "
            f"services={sorted(self._services)}, socket={self.socket is not None})"
        )
