"""Tests for AuthConfig bounds and defaults."""

import pytest
from pydantic import ValidationError

from auth.config import AuthConfig


class TestAuthConfigDefaults:
    """Defaults match the documented login flow."""

    def test_defaults(self):
        config = AuthConfig()
        assert config.otp_length == 6
        assert config.otp_expiry_minutes == 10
        assert config.token_expiry_days == 7
        assert config.token_algorithm == "HS256"
        assert config.otp_request_limit == 5
        assert config.otp_verify_limit == 5
        assert config.rate_limit_window_minutes == 15


class TestAuthConfigBounds:
    """Out-of-range values are rejected at construction."""

    @pytest.mark.parametrize(
        "field,value",
        [
            ("otp_length", 3),
            ("otp_length", 11),
            ("otp_expiry_minutes", 0),
            ("token_expiry_days", 91),
            ("otp_verify_limit", 0),
            ("rate_limit_window_minutes", 4),
        ],
    )
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            AuthConfig(**{field: value})
