"""Pydantic models for the account and auth domain."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class AccountTier(str, Enum):
    """Paid entitlement level."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class Account(BaseModel):
    """A registered account, identified by its (lowercased) email."""

    id: UUID
    email: EmailStr
    tier: AccountTier = AccountTier.FREE
    is_verified: bool = False
    otp_code: str | None = None
    otp_expires_at: datetime | None = None
    created_at: datetime
    last_login_at: datetime | None = None
    subscription_end_at: datetime | None = None
    last_payment_at: datetime | None = None
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)

    model_config = {"from_attributes": True}

    @property
    def is_pro(self) -> bool:
        return self.tier != AccountTier.FREE


class AccountSummary(BaseModel):
    """Account fields safe to return to the client."""

    id: UUID
    email: EmailStr
    tier: AccountTier
    is_verified: bool
    last_login_at: datetime | None = None
    subscription_end_at: datetime | None = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountSummary":
        return cls(
            id=account.id,
            email=account.email,
            tier=account.tier,
            is_verified=account.is_verified,
            last_login_at=account.last_login_at,
            subscription_end_at=account.subscription_end_at,
        )


class OtpRequest(BaseModel):
    """Request payload for a one-time code."""

    email: EmailStr


class OtpVerifyRequest(BaseModel):
    """Request payload for code verification."""

    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=16)


class TokenClaims(BaseModel):
    """Verified contents of a bearer token."""

    account_id: UUID
    email: EmailStr
    issued_at: datetime
    expires_at: datetime


class IssuedToken(BaseModel):
    """A freshly signed bearer token."""

    token: str
    expires_at: datetime


class AuthenticatedAccount(BaseModel):
    """Returned after successful code verification."""

    account: AccountSummary
    token: IssuedToken
