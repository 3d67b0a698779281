"""
FastAPI adapters.

- create_router: catch-all HTTP route feeding an http runtime Application
- create_websocket_router: WebSocket endpoint feeding a socket runtime
  Application, one SocketSession per connection
- create_app: FastAPI app wiring both, with service connect/end on lifespan

Messages on the WebSocket are JSON objects {"route": "/path", "data": ...};
replies are sent back as {"route", "status", "headers", "body"}.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from ..application import Application
from ..core.utils import is_json
from .sockets import SocketSession

logger = logging.getLogger("switchyard.hosting")

HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


class Handshake:
    def __init__(self, headers: Dict[str, str], address: Optional[str]):
        self.headers = headers
        self.address = address


class WebSocketConnection:
    """Socket handle exposing emit() over a Starlette WebSocket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.handshake = Handshake(
            dict(websocket.headers), websocket.client.host if websocket.client else None
        )

    async def emit(self, route: str, payload: Dict[str, Any]) -> None:
        await self.websocket.send_json({"route": route, **payload})


def build_http_event(request: Request, body: bytes) -> Dict[str, Any]:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"

    return {
        "method": request.method,
        "url": url,
        "headers": dict(request.headers),
        "query": dict(request.query_params),
        "body": body.decode("utf-8", errors="replace") if body else None,
        "clientIp": request.client.host if request.client else None,
    }


def to_http_response(reply: Dict[str, Any]) -> Response:
    headers = {k: str(v) for k, v in (reply.get("headers") or {}).items()}
    content_type = next((v for k, v in headers.items() if k.lower() == "content-type"), "")
    body = reply.get("body")

    if is_json(content_type):
        return JSONResponse(
            content=jsonable_encoder(body), status_code=reply["status"], headers=headers
        )

    if body is not None and not isinstance(body, (str, bytes)):
        body = str(body)
    return Response(content=body, status_code=reply["status"], headers=headers)


async def receive_frame(websocket: WebSocket) -> Optional[str]:
    """
    Next text or binary frame as a string; binary frames must be UTF-8.
    """
    frame = await websocket.receive()
    if frame["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(frame.get("code", 1000), frame.get("reason"))

    if frame.get("text") is not None:
        return frame["text"]
    if frame.get("bytes") is not None:
        return frame["bytes"].decode("utf-8")
    return None


def create_router(application: Application) -> APIRouter:
    router = APIRouter()

    @router.api_route("/{path:path}", methods=HTTP_METHODS, include_in_schema=False)
    async def dispatch(request: Request):
        event = build_http_event(request, await request.body())
        reply = await application.run(event)
        return to_http_response(reply)

    return router


def create_websocket_router(application: Application, path: str = "/ws") -> APIRouter:
    router = APIRouter()

    @router.websocket(path)
    async def socket_endpoint(websocket: WebSocket):
        await websocket.accept()
        connection = WebSocketConnection(websocket)
        session = SocketSession(application, connection)

        try:
            while True:
                try:
                    message = json.loads(await receive_frame(websocket))
                except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
                    message = None

                if not isinstance(message, dict) or not isinstance(message.get("route"), str):
                    await connection.emit(
                        "error",
                        {"status": 400, "headers": {}, "body": "Message must carry a route"},
                    )
                    continue

                session.dispatch(message["route"], message.get("data"), message.get("headers"))
        except WebSocketDisconnect:
            logger.info("Socket disconnected", extra={"pending": session.pending})
        finally:
            await session.drain()

    return router


def create_app(
    application: Application,
    socket_application: Optional[Application] = None,
    socket_path: str = "/ws",
) -> FastAPI:
    """
    FastAPI app serving an http runtime Application, and optionally a socket
    runtime one on `socket_path`.

    Registered services are connected on startup and ended on shutdown.
    Logging is left to the host process (see core.logging_config.setup_logging).
    """
    applications = [a for a in (application, socket_application) if a is not None]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = []
        for a in applications:
            for service in a.globals.services.values():
                if not any(service is s for s in services):
                    services.append(service)

        connected = []
        try:
            for service in services:
                await service.connect()
                connected.append(service)
            logger.info("Services connected", extra={"services": len(connected)})

            yield
        finally:
            # only services whose connect() returned are ended
            for service in reversed(connected):
                try:
                    await service.end()
                except Exception as e:
                    logger.error(f"Failed to end service: {e}", exc_info=True)

    app = FastAPI(
        title=application.config.EAPI_NAME,
        version=application.config.EAPI_VERSION,
        lifespan=lifespan,
    )
    if socket_application is not None:
        app.include_router(create_websocket_router(socket_application, path=socket_path))
    app.include_router(create_router(application))
    return app
