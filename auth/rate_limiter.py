"""Rate limiting for one-time code requests and verification attempts.

Uses Valkey with sliding window TTL - each attempt resets the expiry.
Attackers bypassing frontend rate limiting hit an ever-extending lockout.
Verification attempts are limited separately so a 6-digit code cannot be
brute-forced inside its expiry window.
"""

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.exceptions import RateLimitedError


class RateLimiter:
    """Per-email sliding-window counters in Valkey."""

    REQUEST_PREFIX = "ratelimit:otp_request:"
    VERIFY_PREFIX = "ratelimit:otp_verify:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config
        self._window_seconds = config.rate_limit_window_minutes * 60

    def _check(self, key: str, limit: int) -> None:
        # Increment counter
        count = self._valkey.incr(key)

        # Reset TTL on every attempt (sliding window)
        self._valkey.expire(key, self._window_seconds)

        if count > limit:
            ttl = self._valkey.ttl(key)
            raise RateLimitedError(retry_after_seconds=max(ttl, 1))

    def check_request_limit(self, email: str) -> None:
        """Count a code request.

        Raises:
            RateLimitedError: If rate limit exceeded.
        """
        self._check(f"{self.REQUEST_PREFIX}{email.lower()}", self._config.otp_request_limit)

    def check_verify_limit(self, email: str) -> None:
        """Count a verification attempt.

        Raises:
            RateLimitedError: If rate limit exceeded.
        """
        self._check(f"{self.VERIFY_PREFIX}{email.lower()}", self._config.otp_verify_limit)

    def reset(self, email: str) -> None:
        """Reset both counters after successful login."""
        self._valkey.delete(f"{self.REQUEST_PREFIX}{email.lower()}")
        self._valkey.delete(f"{self.VERIFY_PREFIX}{email.lower()}")
