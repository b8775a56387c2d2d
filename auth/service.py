"""Authentication service - orchestrates the one-time code login flow."""

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.exceptions import (
    CodeExpiredError,
    CodeMismatchError,
    CodeNotFoundError,
    RateLimitedError,
)
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.tokens import TokenIssuer
from auth.types import AccountSummary, AuthenticatedAccount
from clients.email_client import EmailGatewayClient, EmailGatewayError
from core.exceptions import NotFoundError, UpstreamError
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


@dataclass
class OtpRequestResult:
    """Result of a code request."""

    sent: bool
    is_new_user: bool
    expires_in_minutes: int


class AuthService:
    """Orchestrates one-time code authentication.

    Handles:
    - Code requests (find-or-create account, store code, send email)
    - Code verification (single use, expiry, atomic clear)
    - Bearer token issuance
    """

    def __init__(
        self,
        config: AuthConfig,
        accounts: AccountDatabase,
        tokens: TokenIssuer,
        rate_limiter: RateLimiter,
        email_client: EmailGatewayClient,
        security_logger: SecurityLogger,
    ):
        self._config = config
        self._accounts = accounts
        self._tokens = tokens
        self._rate_limiter = rate_limiter
        self._email_client = email_client
        self._security_logger = security_logger

    def _generate_code(self) -> str:
        """Uniformly random fixed-length numeric code (leading zeros kept)."""
        length = self._config.otp_length
        return f"{secrets.randbelow(10 ** length):0{length}d}"

    def request_code(
        self,
        email: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> OtpRequestResult:
        """Issue a one-time code for email.

        Flow:
        1. Check per-email rate limit
        2. Find or create account
        3. Generate and store code with expiry
        4. Send email

        Raises:
            RateLimitedError: If rate limit exceeded.
            UpstreamError: If the email gateway fails. Distinct from any
                account lookup error so the client can retry.
        """
        email = email.lower().strip()

        try:
            self._rate_limiter.check_request_limit(email)
        except RateLimitedError:
            self._security_logger.log(
                SecurityEvent.RATE_LIMITED,
                email=email,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"action": "otp_request"},
            )
            raise

        account, created = self._accounts.get_or_create_account(email)

        if created:
            self._security_logger.log(
                SecurityEvent.ACCOUNT_CREATED,
                email=account.email,
                account_id=account.id,
                ip_address=ip_address,
                user_agent=user_agent,
            )

        code = self._generate_code()
        expires_at = now_utc() + timedelta(minutes=self._config.otp_expiry_minutes)
        self._accounts.store_otp(account.id, code, expires_at)

        self._security_logger.log(
            SecurityEvent.OTP_REQUESTED,
            email=account.email,
            account_id=account.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        try:
            self._email_client.send_otp(
                email=account.email,
                code=code,
                expiry_minutes=self._config.otp_expiry_minutes,
                app_name=self._config.app_name,
            )
        except EmailGatewayError as e:
            logger.error(f"Failed to deliver code to {account.email}: {e}")
            raise UpstreamError("Failed to send verification code. Please try again.") from e

        self._security_logger.log(
            SecurityEvent.OTP_SENT,
            email=account.email,
            account_id=account.id,
            ip_address=ip_address,
        )

        return OtpRequestResult(
            sent=True,
            is_new_user=created,
            expires_in_minutes=self._config.otp_expiry_minutes,
        )

    def verify_code(
        self,
        email: str,
        code: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthenticatedAccount:
        """Verify a submitted code and issue a bearer token.

        Flow:
        1. Check per-email verification rate limit
        2. Lookup pending code
        3. Reject expired, then mismatched codes
        4. Atomically clear the code, mark verified, set last login
        5. Issue token and reset rate limits

        Raises:
            RateLimitedError: Too many attempts.
            CodeNotFoundError: No pending code, or it was already used.
            CodeExpiredError: Code is past expiry.
            CodeMismatchError: Digits don't match.
        """
        email = email.lower().strip()
        code = code.strip()

        try:
            self._rate_limiter.check_verify_limit(email)
        except RateLimitedError:
            self._security_logger.log(
                SecurityEvent.RATE_LIMITED,
                email=email,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"action": "otp_verify"},
            )
            raise

        account = self._accounts.get_account_by_email(email)

        if account is None or account.otp_code is None:
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                email=email,
                account_id=account.id if account else None,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": "no_pending_code"},
            )
            raise CodeNotFoundError("No pending code for this email. Request a new one.")

        now = now_utc()
        if account.otp_expires_at is None or now > account.otp_expires_at:
            self._security_logger.log(
                SecurityEvent.OTP_EXPIRED,
                email=account.email,
                account_id=account.id,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            raise CodeExpiredError("Code has expired. Request a new one.")

        if not hmac.compare_digest(account.otp_code.encode("utf-8"), code.encode("utf-8")):
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                email=account.email,
                account_id=account.id,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": "mismatch"},
            )
            raise CodeMismatchError("Invalid code.")

        verified = self._accounts.consume_otp(email, code, now)
        if verified is None:
            # Another request consumed the code between our read and the update
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                email=account.email,
                account_id=account.id,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": "already_used"},
            )
            raise CodeNotFoundError("Code has already been used.")

        token = self._tokens.issue_token(verified.id, verified.email)
        self._rate_limiter.reset(email)

        self._security_logger.log(
            SecurityEvent.OTP_VERIFIED,
            email=verified.email,
            account_id=verified.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        return AuthenticatedAccount(
            account=AccountSummary.from_account(verified),
            token=token,
        )

    def get_account(self, account_id: UUID) -> AccountSummary:
        """Current account summary.

        Raises:
            NotFoundError: If the account was deleted after the token was issued.
        """
        account = self._accounts.get_account_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return AccountSummary.from_account(account)
