"""Billing models.

Amounts are integers in the smallest currency unit (paise for INR).
Fields are optional at the schema level; BillingService rejects missing
or non-positive values with InvalidRequestError.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PaidPlan(str, Enum):
    """Plans that can be purchased."""

    PRO = "pro"
    ENTERPRISE = "enterprise"


class CreateOrderRequest(BaseModel):
    """Checkout start."""

    model_config = ConfigDict(populate_by_name=True)

    amount: int | None = None
    currency: str = "INR"
    receipt: str | None = None
    plan: PaidPlan | None = None
    is_yearly: bool = Field(default=False, alias="isYearly")

    @property
    def billing_period(self) -> str:
        return "yearly" if self.is_yearly else "monthly"


class OrderResponse(BaseModel):
    """What the browser needs to open the gateway checkout."""

    order_id: str
    currency: str
    amount: int
    key_id: str


class VerifyPaymentRequest(BaseModel):
    """Client-side payment confirmation forwarded by the browser."""

    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None
    plan: PaidPlan | None = None
    is_yearly: bool = Field(default=False, alias="isYearly")
