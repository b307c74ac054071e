"""Error taxonomy and the single place where failures become JSON envelopes."""

import logging
import re

from bson.errors import InvalidId
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mongoengine.errors import DoesNotExist, NotUniqueError
from mongoengine.errors import ValidationError as DocumentValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from cinereview import config

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server Error"

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation errors"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Duplicate field value entered"


class ServerError(AppError):
    pass


def envelope(success, message=None, data=None, errors=None):
    body = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    return body


def _error_response(status_code, message, errors=None, headers=None):
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope(False, message, errors=errors)),
        headers=headers,
    )


_DUP_KEY_RE = re.compile(r"index: (?:\w+\.\$)?(?P<index>\w+)")


def _duplicate_message(exc):
    text = str(exc)
    match = _DUP_KEY_RE.search(text)
    index = match.group("index") if match else text
    if "email" in index:
        return "Email is already registered"
    if "username" in index:
        return "Username is already taken"
    if "user_1_movie_1" in index:
        return "An entry for this user and movie already exists"
    return ConflictError.default_message


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return _error_response(exc.status_code, exc.message, exc.errors, headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("query", "path", "body")]
        errors.append({
            "field": ".".join(loc),
            "message": err.get("msg", "Invalid value"),
            "value": err.get("input"),
        })
    return _error_response(status.HTTP_400_BAD_REQUEST, "Validation errors", errors)


async def not_unique_handler(request: Request, exc: NotUniqueError):
    return _error_response(status.HTTP_409_CONFLICT, _duplicate_message(exc))


async def document_validation_handler(request: Request, exc: DocumentValidationError):
    errors = [
        {"field": field, "message": str(err), "value": None}
        for field, err in (exc.to_dict() or {}).items()
    ]
    return _error_response(status.HTTP_400_BAD_REQUEST, exc.message or "Validation errors", errors or None)


async def missing_resource_handler(request: Request, exc: Exception):
    return _error_response(status.HTTP_404_NOT_FOUND, "Resource not found")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Route {request.url.path} not found"
    else:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error_response(exc.status_code, message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if config.is_production():
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"Server Error: {exc.__class__.__name__}: {exc}",
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(NotUniqueError, not_unique_handler)
    app.add_exception_handler(DocumentValidationError, document_validation_handler)
    app.add_exception_handler(InvalidId, missing_resource_handler)
    app.add_exception_handler(DoesNotExist, missing_resource_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
