"""Signed bearer tokens.

Tokens are stateless HS256 JWTs carrying the account id (`sub`), email,
issue time and expiry. Nothing is stored server-side: a token stops working
when it expires or when the signing secret is rotated.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt

from auth.config import AuthConfig
from auth.exceptions import InvalidTokenError
from auth.types import IssuedToken, TokenClaims
from utils.timezone import now_utc


class TokenIssuer:
    """Issues and verifies bearer tokens."""

    def __init__(self, secret: str, config: AuthConfig):
        if not secret:
            raise ValueError("token signing secret is required")
        self._secret = secret
        self._config = config

    def issue_token(self, account_id: UUID, email: str) -> IssuedToken:
        """Sign a token valid for the configured number of days."""
        issued_at = now_utc().replace(microsecond=0)
        expires_at = issued_at + timedelta(days=self._config.token_expiry_days)

        claims = {
            "sub": str(account_id),
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self._secret, algorithm=self._config.token_algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    def verify_token(self, token: str) -> TokenClaims:
        """Check signature and expiry.

        Raises:
            InvalidTokenError: Bad signature, malformed token, missing claims or expired.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._config.token_algorithm],
            )
        except ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except JWTError:
            raise InvalidTokenError("Token is not valid")

        try:
            return TokenClaims(
                account_id=UUID(payload["sub"]),
                email=payload["email"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError):
            raise InvalidTokenError("Token is missing required claims")
