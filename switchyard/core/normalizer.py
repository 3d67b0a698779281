"""
Event normalizers.

Turn a runtime specific host event into one or more Requests. Each runtime
validates the raw event against its pydantic model first; a mismatch is a
system error raised before any middleware runs.
"""

import base64
import logging
import re
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar
from urllib.parse import parse_qsl, urlsplit

from pydantic import BaseModel, ValidationError

from ..exceptions import InternalError
from ..models.events import (
    APIGatewayProxyEvent,
    AwsBatchEvent,
    AwsRecordEvent,
    AzureHttpEvent,
    DirectInvokeEvent,
    HttpFrameworkEvent,
    RabbitBatchEvent,
    SocketMessageEvent,
)
from ..models.globals import Globals
from ..models.request import Parameters, Request, Runtime
from ..models.route import SOCKET_METHOD, Route
from ..services.route_matcher import RouteMatcher
from .utils import normalize_headers, parse_body, split_path

logger = logging.getLogger("switchyard.normalizer")

EventModel = TypeVar("EventModel", bound=BaseModel)

_QUEUE_SEPARATORS = re.compile(r"--|__|\.\.|/")


class EventNormalizer(ABC):
    runtime: Runtime

    def __init__(self, matcher: RouteMatcher, path_shift: str = "", path_unshift: str = ""):
        self.matcher = matcher
        self.path_shift = path_shift
        self.path_unshift = path_unshift

    @abstractmethod
    def normalize(self, event: Any, globals: Globals) -> List[Request]:
        """
        Build the Requests carried by a host event.
        """
        pass

    def _validate(self, model: Type[EventModel], event: Any) -> EventModel:
        if event is None:
            raise InternalError(f"No event passed to the {self.runtime.value} runtime")
        if not isinstance(event, Mapping):
            raise InternalError(
                f"Event for the {self.runtime.value} runtime must be a mapping",
                details={"type": type(event).__name__},
            )
        try:
            return model.model_validate(dict(event))
        except ValidationError as e:
            raise InternalError(
                f"Event does not match the {self.runtime.value} runtime",
                details={"model": model.__name__, "errors": e.errors(include_input=False)},
            )

    def _rewrite(self, path: str) -> str:
        unshift = self.path_unshift.rstrip("/")
        if unshift and (path == unshift or path.startswith(unshift + "/")):
            path = path[len(unshift):] or "/"
        if self.path_shift:
            path = self.path_shift.rstrip("/") + path
        return path

    def _match(self, path: str, method: str) -> Tuple[Optional[Route], Dict[str, str]]:
        route, params = self.matcher.match_route(self._rewrite(path), method)
        if route is None:
            logger.debug(f"No route for {method} {path}")
        return route, params

    def _request(self, globals: Globals, event: Any, **fields) -> Request:
        context = fields.pop("context", {})
        context = {k: v for k, v in context.items() if v is not None}
        context.setdefault("id", str(uuid.uuid4()))
        return Request(runtime=self.runtime, event=event, globals=globals, context=context, **fields)


class AwsNormalizer(EventNormalizer):
    """
    Lambda events: API Gateway proxy, queue records (single, SQS batches or
    Amazon MQ batches) and direct invokes naming {method, path}.
    """

    runtime = Runtime.AWS

    def normalize(self, event: Any, globals: Globals) -> List[Request]:
        if isinstance(event, Mapping) and "Records" in event:
            batch = self._validate(AwsBatchEvent, event)
            return [self._record(record, globals) for record in batch.Records]

        if isinstance(event, Mapping) and "rmqMessagesByQueue" in event:
            return [self._record(record, globals) for record in self._rabbit_records(event)]

        if isinstance(event, Mapping) and "httpMethod" in event:
            return [self._proxy(event, globals)]

        if isinstance(event, Mapping) and "eventSource" in event:
            return [self._record(event, globals)]

        return [self._direct(event, globals)]

    def _rabbit_records(self, event: Mapping) -> List[Dict[str, Any]]:
        """Flatten an Amazon MQ batch, suffixing the ARN with each queue name."""
        batch = self._validate(RabbitBatchEvent, event)
        records = []
        for queue, messages in batch.rmqMessagesByQueue.items():
            arn = f"{batch.eventSourceARN}:{queue.split('::')[0]}"
            for message in messages:
                records.append(
                    dict(message, eventSource=batch.eventSource, eventSourceARN=arn)
                )
        return records

    def _proxy(self, event: Mapping, globals: Globals) -> Request:
        data = self._validate(APIGatewayProxyEvent, event)
        headers = normalize_headers(data.headers)
        method = data.httpMethod.lower()

        route, path_params = self._match(data.path, method)
        # gateway supplied parameters win over our own match
        path_params.update(data.pathParameters or {})

        body = data.body
        if body is not None and data.isBase64Encoded:
            body = base64.b64decode(body).decode("utf-8", errors="replace")

        return self._request(
            globals,
            event,
            source="route",
            method=method,
            path=data.path,
            route=route,
            parameters=Parameters(path=path_params, query=data.queryStringParameters or {}),
            headers=headers,
            body=parse_body(body, headers.get("Content-Type")),
            context={
                "id": data.requestContext.requestId,
                "ip_address": data.requestContext.identity.sourceIp,
            },
        )

    def _record(self, event: Any, globals: Globals) -> Request:
        data = self._validate(AwsRecordEvent, event)
        method = data.eventSource.lower()
        queue = data.eventSourceARN.split(":")[-1]
        path = "/" + "/".join(s for s in _QUEUE_SEPARATORS.split(queue) if s)

        route, path_params = self._match(path, method)
        headers = {"Content-Type": "application/json"}

        if method == "aws:rmq":
            body = data.body
            if isinstance(data.data, str):
                body = base64.b64decode(data.data).decode("utf-8", errors="replace")
            context = dict(data.basicProperties, redelivered=data.redelivered)
            context.setdefault("id", data.basicProperties.get("messageId"))
        else:
            body = data.body
            context = {
                "id": data.messageId,
                "service": data.eventSource,
                "receipt_handle": data.receiptHandle,
            }

        # records without a body are handed over whole
        if body is None:
            body = dict(event)

        return self._request(
            globals,
            event,
            source="event",
            method=method,
            path=path,
            route=route,
            parameters=Parameters(path=path_params),
            headers=headers,
            body=parse_body(body, headers["Content-Type"]),
            context=context,
        )

    def _direct(self, event: Any, globals: Globals) -> Request:
        data = self._validate(DirectInvokeEvent, event)
        method = data.method.lower()
        path = data.path if data.path.startswith("/") else "/" + data.path

        route, path_params = self._match(path, method)

        return self._request(
            globals,
            event,
            source="event",
            method=method,
            path=path,
            route=route,
            parameters=Parameters(path=path_params),
            headers={"Content-Type": "application/json"},
            body=data.body,
        )


class AzureNormalizer(EventNormalizer):
    """Azure Functions HTTP trigger."""

    runtime = Runtime.AZURE

    def normalize(self, event: Any, globals: Globals) -> List[Request]:
        data = self._validate(AzureHttpEvent, event)
        req = data.req
        headers = normalize_headers(req.headers)
        method = req.method.lower()
        path = split_path(req.originalUrl or req.url)

        route, path_params = self._match(path, method)
        path_params.update(req.params)

        request = self._request(
            globals,
            event,
            source="route",
            method=method,
            path=path,
            route=route,
            parameters=Parameters(path=path_params, query=req.query),
            headers=headers,
            body=parse_body(req.rawBody, headers.get("Content-Type")),
            context={"id": data.invocationId, "ip_address": headers.get("X-Forwarded-For")},
        )
        return [request]


class HttpNormalizer(EventNormalizer):
    """Web framework request cycle."""

    runtime = Runtime.HTTP

    def normalize(self, event: Any, globals: Globals) -> List[Request]:
        data = self._validate(HttpFrameworkEvent, event)
        headers = normalize_headers(data.headers)
        method = data.method.lower()
        path = split_path(data.url)
        query = data.query or dict(parse_qsl(urlsplit(data.url).query))

        route, path_params = self._match(path, method)

        request = self._request(
            globals,
            event,
            source="route",
            method=method,
            path=path,
            route=route,
            parameters=Parameters(path=path_params, query=query),
            headers=headers,
            body=parse_body(data.body, headers.get("Content-Type")),
            context={"ip_address": data.clientIp},
        )
        return [request]


class SocketNormalizer(EventNormalizer):
    """
    One message on a persistent connection.

    Headers fall back to the connection handshake when the message has none.
    """

    runtime = Runtime.SOCKET

    def normalize(self, event: Any, globals: Globals) -> List[Request]:
        data = self._validate(SocketMessageEvent, event)
        handshake = getattr(globals.socket, "handshake", None)
        headers = normalize_headers(data.headers or getattr(handshake, "headers", None))
        address = data.address or getattr(handshake, "address", None)
        path = split_path(data.route)
        query = dict(parse_qsl(urlsplit(data.route).query))

        route, path_params = self._match(path, SOCKET_METHOD)

        request = self._request(
            globals,
            event,
            source="route",
            method=SOCKET_METHOD,
            path=path,
            route=route,
            parameters=Parameters(path=path_params, query=query),
            headers=headers,
            body=parse_body(data.data, headers.get("Content-Type")),
            context={"ip_address": address},
        )
        return [request]


NORMALIZERS: Dict[Runtime, Type[EventNormalizer]] = {
    Runtime.AWS: AwsNormalizer,
    Runtime.AZURE: AzureNormalizer,
    Runtime.HTTP: HttpNormalizer,
    Runtime.SOCKET: SocketNormalizer,
}


def create_normalizer(
    runtime: Runtime, matcher: RouteMatcher, path_shift: str = "", path_unshift: str = ""
) -> EventNormalizer:
    return NORMALIZERS[Runtime(runtime)](matcher, path_shift=path_shift, path_unshift=path_unshift)
