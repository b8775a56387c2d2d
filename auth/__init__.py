"""Authentication: one-time codes, bearer tokens and rate limiting."""

from auth.exceptions import (
    AuthError,
    InvalidTokenError,
    CodeNotFoundError,
    CodeExpiredError,
    CodeMismatchError,
    RateLimitedError,
)
from auth.types import (
    AccountTier,
    Account,
    AccountSummary,
    OtpRequest,
    OtpVerifyRequest,
    TokenClaims,
    IssuedToken,
    AuthenticatedAccount,
)
from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.tokens import TokenIssuer
from auth.service import AuthService, OtpRequestResult
from auth.security_middleware import AuthMiddleware
from auth.api import create_auth_router
