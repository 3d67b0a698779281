"""
Trace propagation and structured access logging.

`start` picks up (or generates) the X-Amzn-Trace-Id for the request, `end`
stamps it on the response and writes one access log line per invocation,
failed ones included.
"""

import logging
import time

from ..core.request_context import generate_trace_id, get_trace_id, set_trace_id
from ..models.request import Request
from ..models.response import Response

logger = logging.getLogger("switchyard.access")

TRACE_HEADER = "X-Amzn-Trace-Id"
REQUEST_ID_HEADER = "X-Request-Id"


class AccessLog:
    def start(self, request: Request) -> Request:
        trace_id_str = request.header(TRACE_HEADER)
        if trace_id_str:
            try:
                trace_id_str = set_trace_id(trace_id_str)
            except ValueError as exc:
                logger.warning(
                    "Failed to parse incoming X-Amzn-Trace-Id: '%s', error: %s",
                    trace_id_str,
                    exc,
                )
                trace_id_str = set_trace_id(generate_trace_id())
        else:
            trace_id_str = set_trace_id(generate_trace_id())

        context = dict(request.context, trace_id=trace_id_str, started_at=time.perf_counter())
        return request.model_copy(update={"context": context})

    def end(self, response: Response) -> Response:
        request = response.request
        context = request.context if request is not None else {}

        trace_id_str = context.get("trace_id") or get_trace_id()
        if trace_id_str:
            response.headers[TRACE_HEADER] = trace_id_str
        if context.get("id"):
            response.headers[REQUEST_ID_HEADER] = context["id"]

        started_at = context.get("started_at")
        latency_ms = round((time.perf_counter() - started_at) * 1000, 2) if started_at else None

        method = request.method.upper() if request is not None else "-"
        path = request.path if request is not None else "-"
        logger.info(
            f"{method} {path} {response.status}",
            extra={
                "trace_id": trace_id_str,
                "request_id": context.get("id"),
                "runtime": request.runtime.value if request is not None else None,
                "route": request.route.name if request is not None and request.route else None,
                "status": response.status,
                "error_kind": response.error.value if response.error else None,
                "latency_ms": latency_ms,
                "client_ip": context.get("ip_address"),
            },
        )
        return response
