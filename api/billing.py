"""Payment gateway checkout routes. Require a bearer token."""

from fastapi import APIRouter, Request

from api.base import success_response
from auth.api import get_client_ip
from core.models.billing import CreateOrderRequest, VerifyPaymentRequest
from core.services.billing_service import BillingService


def create_billing_router(billing_service: BillingService) -> APIRouter:
    router = APIRouter(tags=["billing"])

    @router.post("/order")
    def create_order(request: Request, body: CreateOrderRequest):
        order = billing_service.create_order(body, request.state.account_id)
        return success_response(order.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/verify")
    def verify_payment(request: Request, body: VerifyPaymentRequest):
        account = billing_service.verify_payment(
            body,
            request.state.account_id,
            ip_address=get_client_ip(request),
        )
        return success_response({
            "success": True,
            "message": "Payment successfully verified and plan updated!",
            "user": account.model_dump(mode="json"),
        }).model_dump(mode="json")

    return router
