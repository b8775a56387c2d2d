"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import (
    AuthError,
    CodeExpiredError,
    CodeMismatchError,
    CodeNotFoundError,
    InvalidTokenError,
    RateLimitedError,
)
from core.exceptions import (
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    SignatureError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

AUTH_ERROR_CODES = {
    InvalidTokenError: ErrorCodes.INVALID_TOKEN,
    CodeNotFoundError: ErrorCodes.CODE_NOT_FOUND,
    CodeExpiredError: ErrorCodes.CODE_EXPIRED,
    CodeMismatchError: ErrorCodes.CODE_MISMATCH,
}


def _json_error(status_code: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=error_response(code, message).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError):
        return _json_error(
            429,
            ErrorCodes.RATE_LIMITED,
            f"Too many requests. Please wait {exc.retry_after_seconds} seconds.",
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        code = AUTH_ERROR_CODES.get(type(exc), ErrorCodes.NOT_AUTHENTICATED)
        return _json_error(401, code, str(exc), headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        return _json_error(400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(SignatureError)
    async def signature_error_handler(request: Request, exc: SignatureError):
        return _json_error(400, ErrorCodes.SIGNATURE_INVALID, str(exc))

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError):
        return _json_error(403, ErrorCodes.FORBIDDEN, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _json_error(404, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        return _json_error(502, ErrorCodes.UPSTREAM_ERROR, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json_error(400, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json_error(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
