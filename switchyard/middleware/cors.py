"""
CORS headers for outgoing responses.
"""

from ..base import Middleware
from ..models.response import Response

ALLOW_HEADERS = (
    "Accept, Cache-Control, Content-Type, Content-Length, Authorization, Pragma, "
    "Expires, Api-Key, Accept-Encoding"
)
ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS, PATCH"
EXPOSE_HEADERS = "Cache-Control, Content-Type, Authorization, Pragma, Expires"


class Cors(Middleware):
    """
    Patch CORS headers onto every outgoing response.

    The request Origin is echoed back only when it is in EAPI_CORS_LIST
    (or the list contains "*"). Headers are applied in `end` as well as
    `out`, so error replies that skip `out` still carry them.
    """

    @property
    def allowed_origins(self):
        raw = self.environment.get("EAPI_CORS_LIST", "")
        return [o.strip() for o in raw.split(",") if o.strip()]

    def out(self, response: Response) -> Response:
        origin = response.request.header("Origin") if response.request is not None else None
        allowed = self.allowed_origins

        if origin and (origin in allowed or "*" in allowed):
            response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
        response.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
        response.headers["Access-Control-Expose-Headers"] = EXPOSE_HEADERS

        return response

    def end(self, response: Response) -> Response:
        return self.out(response)
