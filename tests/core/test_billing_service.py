"""Tests for BillingService - orders, signature check and entitlement."""

import json
from datetime import datetime, timezone

import pytest
import responses

from auth.security_logger import SecurityEvent
from auth.types import AccountTier
from clients.razorpay_client import RazorpayClient
from core.exceptions import InvalidRequestError, NotFoundError, SignatureError, UpstreamError
from core.models.billing import CreateOrderRequest, PaidPlan, VerifyPaymentRequest
from core.services.billing_service import subscription_end
from fakes import TEST_EMAIL, TEST_RAZORPAY_KEY_ID


ORDERS_URL = f"{RazorpayClient.BASE_URL}/orders"


def verify_request(gateway, plan=PaidPlan.PRO, is_yearly=False, signature=None):
    return VerifyPaymentRequest(
        razorpay_order_id="order_1",
        razorpay_payment_id="pay_1",
        razorpay_signature=signature or gateway.payment_signature("order_1", "pay_1"),
        plan=plan,
        is_yearly=is_yearly,
    )


class TestCreateOrder:
    """Checkout start."""

    @responses.activate
    def test_returns_order_with_public_key(self, billing_service, account):
        responses.add(
            responses.POST,
            ORDERS_URL,
            json={"id": "order_1", "amount": 49900, "currency": "INR"},
        )

        order = billing_service.create_order(
            CreateOrderRequest(amount=49900, receipt="rcpt_1", plan=PaidPlan.PRO, is_yearly=True),
            account.id,
        )

        notes = json.loads(responses.calls[0].request.body)["notes"]
        assert order.order_id == "order_1"
        assert order.amount == 49900
        assert order.key_id == TEST_RAZORPAY_KEY_ID
        assert notes == {"userId": str(account.id), "planType": "pro", "billingPeriod": "yearly"}

    @pytest.mark.parametrize(
        "request_body",
        [
            CreateOrderRequest(receipt="r", plan=PaidPlan.PRO),
            CreateOrderRequest(amount=0, receipt="r", plan=PaidPlan.PRO),
            CreateOrderRequest(amount=-5, receipt="r", plan=PaidPlan.PRO),
            CreateOrderRequest(amount=100, plan=PaidPlan.PRO),
            CreateOrderRequest(amount=100, receipt="r"),
        ],
    )
    @responses.activate
    def test_invalid_fields_rejected_before_gateway(self, billing_service, account, request_body):
        with pytest.raises(InvalidRequestError, match="Invalid or missing amount"):
            billing_service.create_order(request_body, account.id)
        assert len(responses.calls) == 0

    @responses.activate
    def test_gateway_failure_is_upstream_error(self, billing_service, account):
        responses.add(responses.POST, ORDERS_URL, json={"error": {"description": "bad"}}, status=400)

        with pytest.raises(UpstreamError, match="Failed to create payment order"):
            billing_service.create_order(
                CreateOrderRequest(amount=100, receipt="r", plan=PaidPlan.PRO), account.id
            )


class TestVerifyPayment:
    """Signature verification and upgrade."""

    def test_valid_signature_upgrades_account(self, billing_service, gateway, accounts, account, security_logger):
        summary = billing_service.verify_payment(verify_request(gateway), account.id, ip_address="10.0.0.1")

        stored = accounts.get_account_by_id(account.id)
        assert summary.tier is AccountTier.PRO
        assert stored.razorpay_order_id == "order_1"
        assert stored.razorpay_payment_id == "pay_1"
        assert stored.subscription_end_at is not None
        assert security_logger.log.call_args.args[0] is SecurityEvent.PAYMENT_VERIFIED

    def test_enterprise_plan(self, billing_service, gateway, account):
        summary = billing_service.verify_payment(verify_request(gateway, plan=PaidPlan.ENTERPRISE), account.id)
        assert summary.tier is AccountTier.ENTERPRISE

    def test_mismatched_signature_changes_nothing(self, billing_service, gateway, accounts, account, security_logger):
        good = gateway.payment_signature("order_1", "pay_1")
        tampered = good[:-1] + ("0" if good[-1] != "0" else "1")

        with pytest.raises(SignatureError, match="Invalid signature"):
            billing_service.verify_payment(verify_request(gateway, signature=tampered), account.id)

        stored = accounts.get_account_by_id(account.id)
        assert stored.tier is AccountTier.FREE
        assert stored.razorpay_order_id is None
        assert security_logger.log.call_args.args[0] is SecurityEvent.PAYMENT_SIGNATURE_INVALID

    def test_missing_fields_rejected(self, billing_service, account):
        with pytest.raises(InvalidRequestError):
            billing_service.verify_payment(
                VerifyPaymentRequest(razorpay_order_id="order_1", plan=PaidPlan.PRO), account.id
            )

    def test_deleted_account_is_not_found(self, billing_service, gateway, accounts, account):
        accounts.delete_account(account.id)

        with pytest.raises(NotFoundError):
            billing_service.verify_payment(verify_request(gateway), account.id)

    def test_stored_email_is_logged(self, billing_service, gateway, account, security_logger):
        billing_service.verify_payment(verify_request(gateway), account.id)
        assert security_logger.log.call_args.kwargs["email"] == TEST_EMAIL


class TestSubscriptionEnd:
    """Calendar arithmetic for entitlement expiry."""

    def test_monthly(self):
        start = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)
        assert subscription_end(start, is_yearly=False) == datetime(2024, 4, 15, 9, 30, tzinfo=timezone.utc)

    def test_month_end_is_clamped(self):
        start = datetime(2024, 1, 31, tzinfo=timezone.utc)
        assert subscription_end(start, is_yearly=False) == datetime(2024, 2, 29, tzinfo=timezone.utc)

    def test_yearly(self):
        start = datetime(2024, 3, 15, tzinfo=timezone.utc)
        assert subscription_end(start, is_yearly=True) == datetime(2025, 3, 15, tzinfo=timezone.utc)

    def test_start_is_not_modified(self):
        start = datetime(2024, 3, 15, tzinfo=timezone.utc)
        subscription_end(start, is_yearly=True)
        assert start == datetime(2024, 3, 15, tzinfo=timezone.utc)
