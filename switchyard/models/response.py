"""
Normalized response model.

Accumulated by the pipeline and consumed once by the runtime serializer.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .request import Request

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class ErrorKind(str, Enum):
    CLIENT = "client"
    DATA = "data"
    SYSTEM = "system"


class Response(BaseModel):
    """
    Mutable response.

    `error` is set only when the response was synthesized from a failure.
    `request` links back to the originating request so outbound stages can
    read client details; it is never serialized.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: int = 200
    body: Any = None
    headers: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_HEADERS))
    error: Optional[ErrorKind] = None
    is_base64_encoded: bool = False
    request: Optional[Request] = Field(default=None, exclude=True, repr=False)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return str(value)
        return ""

    @classmethod
    def coerce(cls, value: Any, request: Optional[Request] = None) -> "Response":
        """
        Turn a controller result into a Response.

        - Response: used as-is
        - mapping with "status" and "body": fields copied, headers merged
          over the defaults
        - anything else: body of a 200 response
        """
        if isinstance(value, Response):
            if value.request is None:
                value.request = request
            return value

        if isinstance(value, Mapping) and "status" in value and "body" in value:
            headers = dict(DEFAULT_HEADERS)
            headers.update(value.get("headers") or {})
            return cls(
                status=value["status"] or 200,
                body=value["body"],
                headers=headers,
                is_base64_encoded=bool(value.get("isBase64Encoded", False)),
                request=request,
            )

        return cls(body=value, request=request)
