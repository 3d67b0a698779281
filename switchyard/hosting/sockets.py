"""
Socket session dispatcher.

Every message on a connection runs as its own asyncio task, so slow messages
never hold up later ones on the same connection. Each task is still one
sequential pipeline pass.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from ..application import Application
from ..exceptions import InternalError
from ..models.request import Runtime

logger = logging.getLogger("switchyard.socket")


class SocketSession:
    def __init__(self, application: Application, socket: Any, io: Any = None):
        if application.runtime is not Runtime.SOCKET:
            raise InternalError(
                "Socket sessions need an application for the socket runtime",
                details={"runtime": application.runtime.value},
            )
        self.application = application.for_connection(socket, io)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(
        self, route: str, data: Any = None, headers: Optional[Dict[str, str]] = None
    ) -> asyncio.Task:
        """Schedule one message; the reply is emitted on the connection."""
        event = {"route": route, "data": data}
        if headers:
            event["headers"] = headers

        task = asyncio.create_task(self.application.run(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every message dispatched so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
