"""
Normalized request model.

Runtime independent representation of one inbound call. Built once per
invocation by the event normalizers, read by every stage and the controller.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .globals import Globals
from .route import Route


class Runtime(str, Enum):
    """Hosting execution models."""

    AWS = "aws"
    AZURE = "azure"
    HTTP = "http"
    SOCKET = "socket"


class Parameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Dict[str, str] = Field(default_factory=dict)
    query: Dict[str, Any] = Field(default_factory=dict)


class Request(BaseModel):
    """
    Immutable request.

    Handlers derive modified copies with model_copy(update=...); runtime kind
    is fixed for the lifetime of an invocation.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    runtime: Runtime
    source: str = "route"
    method: str
    path: str
    route: Optional[Route] = None
    parameters: Parameters = Field(default_factory=Parameters)
    headers: Dict[str, Any] = Field(default_factory=dict)
    body: Any = None
    context: Dict[str, Any] = Field(default_factory=dict)
    event: Any = Field(default=None, repr=False)
    globals: Optional[Globals] = Field(default=None, repr=False)

    @property
    def path_parameters(self) -> Dict[str, str]:
        return self.parameters.path

    @property
    def query_parameters(self) -> Dict[str, Any]:
        return self.parameters.query

    def header(self, name: str, default: Any = None) -> Any:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default
