"""Error taxonomy for the inventory API.

Every handled failure is returned to the client as ``{"error": "<message>"}``.
Store-engine errors are logged in full and answered with a generic 500 so
driver text never reaches the browser.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(InventoryError):
    """Malformed or missing fields, amount out of range, bad id."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(InventoryError):
    """Missing, malformed or rejected bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(InventoryError):
    """Mutation addressed a record id the store does not have."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


INVALID_FILAMENT_DATA = "Invalid filament data"
INVALID_FILAMENT_ID = "Invalid filament id"
MUTATING_METHODS = {"POST", "PUT", "DELETE"}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    logger.warning("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Collapse FastAPI's 422 details into the API's 400 contract.

    A bad path parameter means the record id was not an integer; anything
    else is a malformed filament payload. FastAPI decodes the JSON body before
    any dependency runs, so a mutation that never got past auth still answers
    401 here.
    """
    from spoolshelf.app.core.auth import edit_token_accepted

    if request.method in MUTATING_METHODS and not edit_token_accepted(request.headers.get("authorization")):
        return await inventory_error_handler(request, AuthError())

    errors = exc.errors()
    if any(error.get("loc", ("",))[0] == "path" for error in errors):
        message = INVALID_FILAMENT_ID
    else:
        message = INVALID_FILAMENT_DATA
    logger.warning("Validation error on %s: %s", request.url.path, errors)
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Not found"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
