"""
Controller resolution.

Maps a matched Route and request method to a controller action. Resolution
failures are configuration faults and always surface as system errors.
"""

import importlib
import inspect
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from ..base import Controller
from ..exceptions import InternalError
from ..models.globals import Globals
from ..models.route import Route

logger = logging.getLogger("switchyard.controller_resolver")

Action = Callable[..., Any]


def action_name(method: str) -> str:
    """
    Attribute name of the action for a request method.

    Example: "GET" -> "get", "aws:sqs" -> "aws_sqs"
    """
    return re.sub(r"\W+", "_", method.lower()).strip("_")


class ControllerResolver(ABC):
    @abstractmethod
    def resolve(self, route: Route, method: str, globals: Globals) -> Action:
        """
        Return the action to call as action(request, globals).
        """
        pass


class RegistryControllerResolver(ControllerResolver):
    """
    Resolve controllers from a mapping of route name to controller.

    A controller is a module, an object or a mapping exposing one callable
    per method, or a Controller subclass instantiated per invocation.
    """

    def __init__(self, controllers: Optional[Mapping] = None):
        self._controllers: Dict[str, Any] = dict(controllers or {})

    def register(self, name: str, controller: Any) -> None:
        self._controllers[name] = controller

    def _lookup(self, name: str) -> Optional[Any]:
        return self._controllers.get(name)

    def resolve(self, route: Route, method: str, globals: Globals) -> Action:
        target = self._lookup(route.name)
        if target is None:
            logger.error(
                f"No controller for route '{route.name}'",
                extra={"route": route.name, "path": route.path},
            )
            raise InternalError(
                "Controller missing", details={"route": route.name, "path": route.path}
            )

        if inspect.isclass(target) and issubclass(target, Controller):
            target = target(globals)

        name = action_name(method)
        if isinstance(target, Mapping):
            action = target.get(name) or target.get(method)
        else:
            action = getattr(target, name, None)

        if not callable(action):
            logger.error(
                f"Controller for route '{route.name}' has no '{name}' action",
                extra={"route": route.name, "method": method},
            )
            raise InternalError(
                "Controller action missing", details={"route": route.name, "method": method}
            )

        return action


class ModuleControllerResolver(RegistryControllerResolver):
    """
    Import `<package>.<route name>` on first use and cache it.

    Statically registered controllers take precedence.
    """

    def __init__(self, package: str, controllers: Optional[Mapping] = None):
        super().__init__(controllers)
        self.package = package.rstrip(".")

    def _lookup(self, name: str) -> Optional[Any]:
        found = super()._lookup(name)
        if found is not None:
            return found

        module_name = f"{self.package}.{name}"
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # only a missing controller module means "not found"
            if e.name not in (module_name, self.package):
                raise InternalError(
                    f"Controller module {module_name} failed to import",
                    details={"missing": e.name},
                ) from e
            return None

        self.register(name, module)
        return module
