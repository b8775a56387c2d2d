"""Tests for TokenIssuer - signed bearer tokens."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt

from auth.config import AuthConfig
from auth.exceptions import InvalidTokenError
from auth.tokens import TokenIssuer
from fakes import TEST_EMAIL, TEST_SIGNING_SECRET
from utils.timezone import now_utc


class TestIssueToken:
    """Token issuance."""

    def test_round_trips_account_id_and_email(self, token_issuer):
        account_id = uuid4()
        issued = token_issuer.issue_token(account_id, TEST_EMAIL)

        claims = token_issuer.verify_token(issued.token)

        assert claims.account_id == account_id
        assert claims.email == TEST_EMAIL

    def test_expires_after_configured_days(self, token_issuer):
        issued = token_issuer.issue_token(uuid4(), TEST_EMAIL)
        remaining = issued.expires_at - now_utc()
        assert timedelta(days=6, hours=23) < remaining <= timedelta(days=7)

    def test_rejects_empty_secret(self, auth_config):
        with pytest.raises(ValueError):
            TokenIssuer("", auth_config)


class TestVerifyToken:
    """Every failure is InvalidTokenError, never a generic error."""

    def test_wrong_secret_rejected(self, token_issuer, auth_config):
        other = TokenIssuer("another-secret", auth_config)
        issued = other.issue_token(uuid4(), TEST_EMAIL)

        with pytest.raises(InvalidTokenError):
            token_issuer.verify_token(issued.token)

    def test_tampered_token_rejected(self, token_issuer):
        issued = token_issuer.issue_token(uuid4(), TEST_EMAIL)
        tampered = issued.token[:-2] + ("A" if issued.token[-2] != "A" else "B") + issued.token[-1]

        with pytest.raises(InvalidTokenError):
            token_issuer.verify_token(tampered)

    def test_expired_token_rejected(self, token_issuer):
        past = now_utc() - timedelta(days=8)
        token = jwt.encode(
            {
                "sub": str(uuid4()),
                "email": TEST_EMAIL,
                "iat": int(past.timestamp()),
                "exp": int((past + timedelta(days=7)).timestamp()),
            },
            TEST_SIGNING_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError, match="expired"):
            token_issuer.verify_token(token)

    def test_missing_claims_rejected(self, token_issuer):
        token = jwt.encode(
            {"exp": int((now_utc() + timedelta(hours=1)).timestamp())},
            TEST_SIGNING_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError, match="claims"):
            token_issuer.verify_token(token)

    def test_garbage_rejected(self, token_issuer):
        with pytest.raises(InvalidTokenError):
            token_issuer.verify_token("not-a-jwt")

    def test_short_lived_config_respected(self):
        issuer = TokenIssuer(TEST_SIGNING_SECRET, AuthConfig(token_expiry_days=1))
        issued = issuer.issue_token(uuid4(), TEST_EMAIL)
        assert issued.expires_at - now_utc() <= timedelta(days=1)
