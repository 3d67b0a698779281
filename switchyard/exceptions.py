"""
Error taxonomy and error-to-response mapping.

Three kinds of failure reach the orchestrator boundary:
- ClientError: expected, carries a status; message is returned verbatim
- DataError: raised by data-access collaborators; details never leave the logs
- InternalError: configuration/programming faults and anything unconverted

map_error() is the single place where a failure becomes a Response.
"""

import logging
from typing import Any, Optional

from .models.request import Request
from .models.response import DEFAULT_HEADERS, ErrorKind, Response

logger = logging.getLogger("switchyard.errors")

GENERIC_ERROR_STATUS = 500
GENERIC_ERROR_MESSAGE = "Internal Server Error"

LOGGING_LEVELS = {
    "all": logging.ERROR,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "none": None,
}


class SwitchyardError(Exception):
    """Base exception class for pipeline failures."""

    kind: ErrorKind = ErrorKind.SYSTEM

    def __init__(self, message: str, details: Any = None, logging: Optional[str] = None):
        self.message = message
        self.details = details if details is not None else {}
        self.exception = True
        self.logging = logging.lower() if logging else None
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ClientError(SwitchyardError):
    """Raised for failures the caller can act on (validation, not found, auth)."""

    kind = ErrorKind.CLIENT

    def __init__(self, message: str, status: int, logging: Optional[str] = None):
        self.status = status
        super().__init__(message, logging=logging)


class DataError(SwitchyardError):
    """Raised by data-layer collaborators; `details` holds the driver error."""

    kind = ErrorKind.DATA


class InternalError(SwitchyardError):
    """Raised for configuration faults and wrapped unexpected exceptions."""

    kind = ErrorKind.SYSTEM


class NotFoundError(ClientError):
    """Raised when no route matches the request."""

    def __init__(self, path: str):
        self.path = path
        super().__init__("Not Found", 404)


def as_pipeline_error(exc: BaseException) -> SwitchyardError:
    """Unconverted failures are treated as system errors."""
    if isinstance(exc, SwitchyardError):
        return exc
    return InternalError(
        str(exc) or type(exc).__name__,
        details={"type": type(exc).__name__},
    )


def log_error(error: SwitchyardError, default_logging: str = "all", cause: BaseException = None):
    """
    Log an error according to its verbosity.

    The error's own setting wins over the application default. "all" also
    includes details and the traceback. Exceptions that were never converted
    to a taxonomy kind are always logged with their traceback.
    """
    if cause is not None and not isinstance(cause, SwitchyardError):
        logger.error(
            f"Unhandled {type(cause).__name__}: {cause}",
            extra={"error_kind": error.kind.value, "error_type": type(cause).__name__},
            exc_info=cause,
        )
        return

    setting = error.logging or (default_logging or "all").lower()
    level = LOGGING_LEVELS.get(setting, logging.ERROR)
    if level is None:
        return

    extra = {"error_kind": error.kind.value, "error_type": type(error).__name__}
    if setting == "all":
        extra["details"] = error.details
        exc_info = cause if cause is not None else error
        logger.log(level, error.message, extra=extra, exc_info=exc_info)
    else:
        logger.log(level, error.message, extra=extra)


def map_error(
    exc: BaseException, request: Optional[Request] = None, default_logging: str = "all"
) -> Response:
    """
    Map any failure to a Response.

    Client errors keep their status and message; data and system errors are
    reported to the caller as a generic 500.
    """
    error = as_pipeline_error(exc)
    log_error(error, default_logging, cause=exc)

    if isinstance(error, ClientError):
        return Response(
            status=error.status,
            body=error.message,
            headers=dict(DEFAULT_HEADERS),
            error=ErrorKind.CLIENT,
            request=request,
        )

    return Response(
        status=GENERIC_ERROR_STATUS,
        body=GENERIC_ERROR_MESSAGE,
        headers=dict(DEFAULT_HEADERS),
        error=error.kind,
        request=request,
    )
