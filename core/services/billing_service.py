"""
Billing service - payment gateway checkout and entitlement updates.

Checkout is two steps. The browser asks for an order, pays through the
gateway widget, then posts back the order id, payment id and signature.
The signature is recomputed here; only a match upgrades the account.
"""

import hmac
import logging
from datetime import datetime
from uuid import UUID

from auth.database import AccountDatabase
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.types import AccountSummary, AccountTier
from clients.razorpay_client import PaymentGatewayError, RazorpayClient
from core.exceptions import InvalidRequestError, NotFoundError, SignatureError, UpstreamError
from core.models.billing import CreateOrderRequest, OrderResponse, VerifyPaymentRequest
from utils.timezone import add_months, add_years, now_utc

logger = logging.getLogger(__name__)


def subscription_end(start: datetime, is_yearly: bool) -> datetime:
    """One year or one calendar month after start. start is not modified."""
    return add_years(start, 1) if is_yearly else add_months(start, 1)


class BillingService:
    """Service for creating and verifying gateway payments."""

    def __init__(
        self,
        gateway: RazorpayClient,
        accounts: AccountDatabase,
        security_logger: SecurityLogger,
    ):
        self.gateway = gateway
        self.accounts = accounts
        self.security_logger = security_logger

    def create_order(self, request: CreateOrderRequest, account_id: UUID) -> OrderResponse:
        """
        Create a gateway order for a plan purchase.

        Raises:
            InvalidRequestError: Non-positive amount, or missing receipt or plan.
            UpstreamError: Gateway rejected or could not be reached.
        """
        if request.amount is None or request.amount <= 0 or not request.receipt or request.plan is None:
            raise InvalidRequestError("Invalid or missing amount, receipt, or plan in request.")

        try:
            order = self.gateway.create_order(
                amount=request.amount,
                currency=request.currency,
                receipt=request.receipt,
                notes={
                    "userId": str(account_id),
                    "planType": request.plan.value,
                    "billingPeriod": request.billing_period,
                },
            )
        except PaymentGatewayError as e:
            logger.error(f"Order creation failed for account {account_id}: {e}")
            raise UpstreamError("Failed to create payment order") from e

        return OrderResponse(
            order_id=order["id"],
            currency=order.get("currency", request.currency),
            amount=order.get("amount", request.amount),
            key_id=self.gateway.key_id,
        )

    def verify_payment(
        self,
        request: VerifyPaymentRequest,
        account_id: UUID,
        ip_address: str | None = None,
    ) -> AccountSummary:
        """
        Check the checkout signature and upgrade the account.

        Raises:
            InvalidRequestError: Missing identifiers, signature or plan.
            SignatureError: Signature does not match; nothing is updated.
            NotFoundError: Account no longer exists.
        """
        if not (
            request.razorpay_order_id
            and request.razorpay_payment_id
            and request.razorpay_signature
            and request.plan is not None
        ):
            raise InvalidRequestError("Missing payment verification parameters.")

        expected = self.gateway.payment_signature(
            request.razorpay_order_id, request.razorpay_payment_id
        )
        if not hmac.compare_digest(
            expected.encode("utf-8"), request.razorpay_signature.encode("utf-8")
        ):
            self.security_logger.log(
                SecurityEvent.PAYMENT_SIGNATURE_INVALID,
                account_id=account_id,
                ip_address=ip_address,
                details={
                    "order_id": request.razorpay_order_id,
                    "payment_id": request.razorpay_payment_id,
                },
            )
            raise SignatureError("Payment verification failed: Invalid signature.")

        paid_at = now_utc()
        account = self.accounts.apply_entitlement(
            account_id=account_id,
            tier=AccountTier(request.plan.value),
            order_id=request.razorpay_order_id,
            payment_id=request.razorpay_payment_id,
            paid_at=paid_at,
            subscription_end_at=subscription_end(paid_at, request.is_yearly),
        )
        if account is None:
            raise NotFoundError("Account not found")

        self.security_logger.log(
            SecurityEvent.PAYMENT_VERIFIED,
            email=account.email,
            account_id=account.id,
            ip_address=ip_address,
            details={
                "plan": request.plan.value,
                "billing_period": "yearly" if request.is_yearly else "monthly",
                "order_id": request.razorpay_order_id,
                "payment_id": request.razorpay_payment_id,
            },
        )

        return AccountSummary.from_account(account)
