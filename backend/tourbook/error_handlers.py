from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tourbook.errors import AuthenticationError, InternalError, SessionInvalidError, TourbookError

logger = logging.getLogger(__name__)

_STATUS_TO_CODE = {
    400: "validation_error",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    429: "too_many_requests",
    500: "server_error",
}


def _error_response(status_code: int, code: str, message: str, details=None, headers=None) -> JSONResponse:
    body = {
        "status": "fail" if status_code < 500 else "error",
        "code": code,
        "message": message,
    }
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors, request validation and stray exceptions to JSON responses."""

    @app.exception_handler(TourbookError)
    async def handle_domain_error(request: Request, exc: TourbookError):
        if isinstance(exc, InternalError):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        elif isinstance(exc, SessionInvalidError):
            logger.warning("%s %s session rejected (%s)", request.method, request.url.path, exc.reason)
        else:
            logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg")}
            for err in exc.errors()
        ]
        message = "Invalid input data. " + "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        return _error_response(400, "validation_error", message, details={"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = _STATUS_TO_CODE.get(exc.status_code, "server_error" if exc.status_code >= 500 else "error")
        message = exc.detail if isinstance(exc.detail, str) else "http error"
        return _error_response(exc.status_code, code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(500, "server_error", "Something went very wrong!")
