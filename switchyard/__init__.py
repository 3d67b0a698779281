"""
switchyard: request orchestration across HTTP, cloud function and socket hosts.
"""

from .application import Application
from .base import Controller, Middleware, Service
from .exceptions import ClientError, DataError, InternalError
from .models import ErrorKind, Globals, Request, Response, Route, Runtime

__all__ = [
    "Application",
    "ClientError",
    "Controller",
    "DataError",
    "ErrorKind",
    "Globals",
    "InternalError",
    "Middleware",
    "Request",
    "Response",
    "Route",
    "Runtime",
    "Service",
]
