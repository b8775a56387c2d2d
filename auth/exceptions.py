"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class InvalidTokenError(AuthError):
    """Bearer token has a bad signature, is malformed, or has expired."""


class CodeNotFoundError(AuthError):
    """
    No one-time code is pending for this email.

    Also raised when a code was already consumed, so a replayed code fails
    the same way as one that never existed.
    """


class CodeExpiredError(AuthError):
    """One-time code is past its expiry, regardless of whether the digits match."""


class CodeMismatchError(AuthError):
    """Submitted code does not match the pending code."""


class RateLimitedError(AuthError):
    """Too many attempts. Client should wait before retrying."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Retry after {retry_after_seconds} seconds.")
