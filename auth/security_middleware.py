"""Security middleware for FastAPI - bearer token validation."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.exceptions import InvalidTokenError
from auth.tokens import TokenIssuer
from api.base import error_response, ErrorCodes


def _unauthorized(code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        headers={"WWW-Authenticate": "Bearer"},
        content=error_response(code, message).model_dump(mode="json"),
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates the bearer token on protected routes.

    For protected routes:
    1. Extracts the token from the 'Authorization: Bearer <token>' header
    2. Verifies signature and expiry via TokenIssuer
    3. Sets account_id and email in request.state

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = [
        "/auth/request-otp",
        "/auth/verify-otp",
        "/chat",
        "/health",
        "/docs",
        "/openapi.json",
        "/generated_pdfs/",
    ]

    def __init__(self, app, token_issuer: TokenIssuer):
        super().__init__(app)
        self._token_issuer = token_issuer

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path.rstrip("/") + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        path = request.url.path

        # Skip auth for public paths and CORS preflight
        if request.method == "OPTIONS" or self._is_public_path(path):
            return await call_next(request)

        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")

        if scheme.lower() != "bearer" or not token.strip():
            return _unauthorized(ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            claims = self._token_issuer.verify_token(token.strip())
        except InvalidTokenError as e:
            return _unauthorized(ErrorCodes.INVALID_TOKEN, str(e))

        request.state.account_id = claims.account_id
        request.state.email = claims.email

        return await call_next(request)
