"""Authentication configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Durations are in their natural units (minutes for codes, days for
    bearer tokens) to make configuration intuitive.
    """

    # One-time code settings
    otp_length: int = Field(
        default=6,
        description="Number of digits in a one-time code",
        ge=4,
        le=10,
    )
    otp_expiry_minutes: int = Field(
        default=10,
        description="How long a one-time code remains valid",
        ge=1,
        le=60,
    )

    # Bearer token settings
    token_expiry_days: int = Field(
        default=7,
        description="Bearer token lifetime in days",
        ge=1,
        le=90,
    )
    token_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm",
    )

    # Rate limiting
    otp_request_limit: int = Field(
        default=5,
        description="Max code requests per email per window",
        ge=1,
        le=20,
    )
    otp_verify_limit: int = Field(
        default=5,
        description="Max code verification attempts per email per window",
        ge=1,
        le=20,
    )
    rate_limit_window_minutes: int = Field(
        default=15,
        description="Rate limit window duration",
        ge=5,
        le=60,
    )

    # Application
    app_name: str = Field(
        default="Nexus AI",
        description="Application name for emails",
    )
