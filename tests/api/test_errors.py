"""Tests for api/errors.py - exception to status mapping."""

import pytest
from fastapi import FastAPI
from pydantic import BaseModel
from starlette.testclient import TestClient

from api.errors import register_error_handlers
from auth.exceptions import (
    CodeExpiredError,
    CodeMismatchError,
    CodeNotFoundError,
    InvalidTokenError,
    RateLimitedError,
)
from core.exceptions import (
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    SignatureError,
    UpstreamError,
)


RAISES = {
    "invalid-token": InvalidTokenError("Token is not valid"),
    "code-not-found": CodeNotFoundError("No pending code"),
    "code-expired": CodeExpiredError("Code has expired"),
    "code-mismatch": CodeMismatchError("Code does not match"),
    "rate-limited": RateLimitedError(retry_after_seconds=42),
    "invalid": InvalidRequestError("Message is required"),
    "signature": SignatureError("Payment verification failed: Invalid signature."),
    "forbidden": ForbiddenError("Upgrade to Pro to select this advanced AI model."),
    "not-found": NotFoundError("Account not found"),
    "upstream": UpstreamError("Failed to search images"),
    "boom": RuntimeError("secret internals"),
}


class Payload(BaseModel):
    count: int


@pytest.fixture
def client():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/raise/{name}")
    async def raise_named(name: str):
        raise RAISES[name]

    @app.post("/validate")
    async def validate(body: Payload):
        return {"ok": True}

    return TestClient(app, raise_server_exceptions=False)


class TestStatusMapping:
    """Each domain error maps to one status and code."""

    @pytest.mark.parametrize(
        "name, status, code",
        [
            ("invalid-token", 401, "INVALID_TOKEN"),
            ("code-not-found", 401, "CODE_NOT_FOUND"),
            ("code-expired", 401, "CODE_EXPIRED"),
            ("code-mismatch", 401, "CODE_MISMATCH"),
            ("rate-limited", 429, "RATE_LIMITED"),
            ("invalid", 400, "INVALID_REQUEST"),
            ("signature", 400, "SIGNATURE_INVALID"),
            ("forbidden", 403, "FORBIDDEN"),
            ("not-found", 404, "NOT_FOUND"),
            ("upstream", 502, "UPSTREAM_ERROR"),
        ],
    )
    def test_mapping(self, client, name, status, code):
        response = client.get(f"/raise/{name}")

        assert response.status_code == status
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == code

    def test_message_is_passed_through(self, client):
        response = client.get("/raise/forbidden")
        assert response.json()["error"]["message"] == "Upgrade to Pro to select this advanced AI model."

    def test_rate_limit_has_retry_after(self, client):
        response = client.get("/raise/rate-limited")
        assert response.headers["Retry-After"] == "42"

    def test_auth_errors_challenge_bearer(self, client):
        response = client.get("/raise/code-expired")
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_validation_error(self, client):
        response = client.post("/validate", json={"count": "many"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_unexpected_error_hides_details(self, client):
        response = client.get("/raise/boom")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
        assert "secret internals" not in response.text
