"""
Middleware pipeline.

Five ordered stages run around the controller:

    start -> mount -> in -> [controller] -> out -> end

Handlers in a stage run strictly one after another in registration order;
each receives the previous handler's result. A failure before `end` skips
the rest of the happy path, is mapped to a Response once, and execution
resumes at `end`. Failures inside `end` are logged and never replace the
response already produced.
"""

import inspect
import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from ..exceptions import InternalError, NotFoundError, map_error
from ..models.request import Request
from ..models.response import Response

logger = logging.getLogger("switchyard.pipeline")

START = "start"
MOUNT = "mount"
IN = "in"
OUT = "out"
END = "end"

STAGES = (START, MOUNT, IN, OUT, END)
REQUEST_STAGES = (START, MOUNT, IN)
RESPONSE_STAGES = (OUT, END)

# `in` is a keyword, so objects expose that handler as `in_`
_ATTRIBUTE_NAMES = {IN: ("in_", "in")}

Handler = Callable[[Any], Any]
Dispatch = Callable[[Request], Awaitable[Response]]


def stage_handler(middleware: Any, stage: str) -> Optional[Handler]:
    """Return the handler a middleware descriptor exposes for a stage, if any."""
    names = _ATTRIBUTE_NAMES.get(stage, (stage,))
    for name in names:
        if isinstance(middleware, Mapping):
            handler = middleware.get(name)
        else:
            handler = getattr(middleware, name, None)
        if callable(handler):
            return handler
    return None


def as_list(items: Any) -> List[Any]:
    if isinstance(items, (list, tuple)):
        return list(items)
    return [items]


class MiddlewarePipeline:
    def __init__(self, error_logging: str = "all"):
        self.error_logging = error_logging
        self._stages: Dict[str, List[Handler]] = {stage: [] for stage in STAGES}

    def handlers(self, stage: str) -> List[Handler]:
        return list(self._stages[stage])

    def register(self, stage: str, middleware: Union[Any, Iterable[Any]]) -> None:
        """
        Append the stage handlers of one or many middleware descriptors.

        Descriptors without a handler for the stage are skipped; the same
        descriptor registered twice runs twice.
        """
        if stage not in self._stages:
            raise InternalError(f"Unknown middleware stage: {stage}", details={"stages": STAGES})

        for mw in as_list(middleware):
            handler = stage_handler(mw, stage)
            if handler is not None:
                self._stages[stage].append(handler)

    def register_all(self, middleware: Union[Any, Iterable[Any]]) -> None:
        """Register descriptors into every stage they have a handler for."""
        items = as_list(middleware)
        for stage in STAGES:
            self.register(stage, items)

    async def run_stage(self, stage: str, value: Any) -> Any:
        expected = Request if stage in REQUEST_STAGES else Response

        for handler in self._stages[stage]:
            result = handler(value)
            if inspect.isawaitable(result):
                result = await result

            if not isinstance(result, expected):
                raise InternalError(
                    f"Middleware {stage} handler must return a {expected.__name__}",
                    details={"handler": getattr(handler, "__qualname__", repr(handler))},
                )
            if expected is Request and result.runtime != value.runtime:
                raise InternalError("Middleware changed the request runtime")

            value = result

        return value

    async def run_end(self, response: Response) -> Response:
        for handler in self._stages[END]:
            try:
                result = handler(response)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                logger.error(
                    f"End middleware failed: {e}",
                    extra={"handler": getattr(handler, "__qualname__", repr(handler))},
                    exc_info=True,
                )
                continue

            if isinstance(result, Response):
                response = result
            else:
                logger.error(
                    "End middleware must return a Response, keeping the previous one",
                    extra={"handler": getattr(handler, "__qualname__", repr(handler))},
                )

        return response

    async def execute(self, request: Request, dispatch: Dispatch) -> Response:
        """
        Run one request through every stage.

        Unmatched routes fail after `start`, so init hooks see every request.
        """
        current = request
        try:
            current = await self.run_stage(START, current)
            if current.route is None:
                raise NotFoundError(current.path)

            current = await self.run_stage(MOUNT, current)
            current = await self.run_stage(IN, current)

            response = await dispatch(current)
            if response.request is None:
                response.request = current

            response = await self.run_stage(OUT, response)
        except Exception as e:
            response = map_error(e, current, self.error_logging)

        return await self.run_end(response)

    async def finish(self, response: Response) -> Response:
        """Run only the end stage, for failures raised before a request exists."""
        return await self.run_end(response)
