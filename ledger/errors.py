# ledger/errors.py
# Error taxonomy and its HTTP mapping

import logging
from typing import Iterable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised at startup when a required setting is missing or unusable."""


class LedgerError(Exception):
    """Base for errors that are reported to the caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ClientValidationError(LedgerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"

    @classmethod
    def missing(cls, fields: Iterable[str]) -> "ClientValidationError":
        return cls(f"Missing required fields: {', '.join(fields)}")


class InvalidCredentialsError(LedgerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class AuthMissingError(LedgerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class AuthInvalidError(LedgerError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid or expired token"


class AccessDeniedError(LedgerError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class InternalError(LedgerError):
    """Persistence, hashing or signing failure. Details stay in the log."""


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthMissingError):
        headers = {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, InternalError):
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
        body = {"detail": InternalError.default_message}
    else:
        body = {"detail": exc.message}
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's parameter validation failures as 400s naming the fields."""
    fields = []
    for error in exc.errors():
        name = ".".join(str(part) for part in error.get("loc", ()) if part not in ("query", "path", "body"))
        if name and name not in fields:
            fields.append(name)
    message = f"Invalid parameters: {', '.join(fields)}" if fields else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
