"""Uniform response envelope and the exception handlers that produce it.

Success: ``{"ok": true, ...}``. Failure:
``{"ok": false, "error": "<message>", "trace_id": "<request id>"}``.
"""

import logging
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.errors import AppError, ValidationError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class OkResponse(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    trace_id: str | None = None
    errors: dict[str, str] | None = None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to every request and echo it back."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    errors: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=message, trace_id=_request_id(request), errors=errors)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        # Upstream detail stays in the log, the client only sees exc.message
        logger.warning(
            "[%s] %s %s -> %s: %s",
            _request_id(request), request.method, request.url.path, type(exc).__name__, exc.message,
            exc_info=exc.__cause__ or exc,
        )
    else:
        logger.info(
            "[%s] %s %s -> %s: %s",
            _request_id(request), request.method, request.url.path, type(exc).__name__, exc.message,
        )
    errors = exc.errors if isinstance(exc, ValidationError) else None
    return _error_response(request, exc.status_code, exc.message, errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {
        ".".join(str(part) for part in err["loc"] if part != "body"): err["msg"]
        for err in exc.errors()
    }
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "Solicitud invalida.", errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[%s] Unhandled error on %s %s", _request_id(request), request.method, request.url.path)
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Ocurrio un error inesperado.")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
