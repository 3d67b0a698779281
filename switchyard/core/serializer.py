"""
Reply serializers.

Turn the final Response into whatever the hosting runtime expects back.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Type

from ..models.globals import Globals
from ..models.request import Runtime
from ..models.response import Response
from .utils import encode_body

logger = logging.getLogger("switchyard.serializer")


class ReplySerializer(ABC):
    @abstractmethod
    async def serialize(self, response: Response, globals: Globals) -> Any:
        """
        Build (or deliver) the host reply for a Response.
        """
        pass


class AwsSerializer(ReplySerializer):
    """Lambda proxy integration result."""

    async def serialize(self, response: Response, globals: Globals) -> Dict[str, Any]:
        return {
            "statusCode": response.status,
            "headers": dict(response.headers),
            "body": encode_body(response.body, response.content_type),
            "isBase64Encoded": response.is_base64_encoded,
        }


class AzureSerializer(ReplySerializer):
    async def serialize(self, response: Response, globals: Globals) -> Dict[str, Any]:
        return {
            "status": response.status,
            "headers": dict(response.headers),
            "body": encode_body(response.body, response.content_type),
        }


class HttpSerializer(ReplySerializer):
    """The framework adapter serializes the body itself."""

    async def serialize(self, response: Response, globals: Globals) -> Dict[str, Any]:
        return {
            "status": response.status,
            "headers": dict(response.headers),
            "body": response.body,
        }


class SocketSerializer(ReplySerializer):
    """
    Emit the reply on the originating connection.

    The event name is the request path; nothing is returned to the caller.
    """

    async def serialize(self, response: Response, globals: Globals) -> None:
        socket = globals.socket
        if socket is None or not hasattr(socket, "emit"):
            raise RuntimeError("Socket runtime has no connection to emit on")

        route = response.request.path if response.request is not None else "error"
        payload = {
            "status": response.status,
            "headers": dict(response.headers),
            "body": response.body,
        }

        result = socket.emit(route, payload)
        if inspect.isawaitable(result):
            await result
        return None


SERIALIZERS: Dict[Runtime, Type[ReplySerializer]] = {
    Runtime.AWS: AwsSerializer,
    Runtime.AZURE: AzureSerializer,
    Runtime.HTTP: HttpSerializer,
    Runtime.SOCKET: SocketSerializer,
}


def create_serializer(runtime: Runtime) -> ReplySerializer:
    return SERIALIZERS[Runtime(runtime)]()
