"""HTTP routes for authentication."""

import ipaddress

from fastapi import APIRouter, Request

from auth.service import AuthService
from auth.types import OtpRequest, OtpVerifyRequest
from api.base import success_response


def get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def create_auth_router(auth_service: AuthService) -> APIRouter:
    """Create auth router with injected service.

    Auth failures are raised as AuthError subclasses and rendered by the
    global handlers in api.errors.
    """
    router = APIRouter(tags=["auth"])

    @router.post("/request-otp")
    def request_otp(request: Request, body: OtpRequest):
        """Send a one-time login code to the email.

        isNewUser lets the client choose sign-up or sign-in copy.
        """
        result = auth_service.request_code(
            email=body.email,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )

        return success_response({
            "message": f"Verification code sent. It expires in {result.expires_in_minutes} minutes.",
            "isNewUser": result.is_new_user,
        })

    @router.post("/verify-otp")
    def verify_otp(request: Request, body: OtpVerifyRequest):
        """Exchange a valid code for a bearer token."""
        result = auth_service.verify_code(
            email=body.email,
            code=body.otp,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )

        return success_response({
            "message": "Login successful",
            "token": result.token.token,
            "expires_at": result.token.expires_at.isoformat(),
            "user": result.account.model_dump(mode="json"),
        })

    @router.get("/me")
    def get_current_user(request: Request):
        """Get current authenticated account.

        Requires authentication (middleware sets request.state.account_id).
        """
        account = auth_service.get_account(request.state.account_id)
        return success_response({"user": account.model_dump(mode="json")})

    return router
