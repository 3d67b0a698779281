"""
Route declaration model.
"""

from typing import List, Union

from pydantic import BaseModel, ConfigDict, field_validator

ANY_METHOD = "any"
SOCKET_METHOD = "socket"


class Route(BaseModel):
    """
    One entry of the routes table.

    `path` uses {param} placeholders, {param+} for a greedy match over
    several segments.
    """

    name: str
    method: Union[str, List[str]]
    path: str

    model_config = ConfigDict(frozen=True)

    @field_validator("method")
    @classmethod
    def _lower_methods(cls, v):
        if isinstance(v, str):
            return v.lower()
        return [m.lower() for m in v]

    @property
    def methods(self) -> List[str]:
        return [self.method] if isinstance(self.method, str) else list(self.method)

    @property
    def is_socket(self) -> bool:
        return SOCKET_METHOD in self.methods

    def allows(self, method: str) -> bool:
        """
        Check whether the route accepts a request method.

        "any" covers every method except socket messages, which only reach
        routes that declare "socket" explicitly.
        """
        method = method.lower()
        if method in self.methods:
            return True
        return method != SOCKET_METHOD and ANY_METHOD in self.methods
