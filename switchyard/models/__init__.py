"""
Data model definitions package.

Aggregates Pydantic models for use in other modules.
"""

from .globals import Globals
from .request import Parameters, Request, Runtime
from .response import DEFAULT_HEADERS, ErrorKind, Response
from .route import Route

__all__ = [
    "DEFAULT_HEADERS",
    "ErrorKind",
    "Globals",
    "Parameters",
    "Request",
    "Response",
    "Route",
    "Runtime",
]
