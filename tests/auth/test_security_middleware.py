"""Tests for AuthMiddleware - bearer token enforcement."""

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import FastAPI, Request
from jose import jwt
from starlette.testclient import TestClient

from api.errors import register_error_handlers
from auth.security_middleware import AuthMiddleware
from fakes import TEST_EMAIL, TEST_SIGNING_SECRET
from utils.timezone import now_utc


@pytest.fixture
def app(token_issuer):
    """Minimal app with one protected and one public route."""
    app = FastAPI()
    register_error_handlers(app)
    app.add_middleware(AuthMiddleware, token_issuer=token_issuer)

    @app.get("/protected")
    async def protected(request: Request):
        return {"account_id": str(request.state.account_id), "email": request.state.email}

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/chat/images")
    async def images():
        return {"images": []}

    return app


@pytest.fixture
def test_client(app):
    return TestClient(app)


class TestProtectedRoutes:
    """Routes outside PUBLIC_PATHS require a valid bearer token."""

    def test_valid_token_sets_request_state(self, test_client, token_issuer):
        account_id = uuid4()
        token = token_issuer.issue_token(account_id, TEST_EMAIL).token

        response = test_client.get("/protected", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"account_id": str(account_id), "email": TEST_EMAIL}

    def test_missing_header(self, test_client):
        response = test_client.get("/protected")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_wrong_scheme(self, test_client, token_issuer):
        token = token_issuer.issue_token(uuid4(), TEST_EMAIL).token

        response = test_client.get("/protected", headers={"Authorization": f"Token {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"

    def test_invalid_token(self, test_client):
        response = test_client.get("/protected", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_expired_token(self, test_client):
        past = now_utc() - timedelta(days=30)
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

        response = test_client.get("/protected", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"


class TestPublicPaths:
    """Public routes bypass authentication."""

    def test_health_is_public(self, test_client):
        assert test_client.get("/health").status_code == 200

    def test_chat_prefix_is_public(self, test_client):
        assert test_client.get("/chat/images").status_code == 200

    def test_prefix_match_respects_segments(self, app, token_issuer):
        middleware = AuthMiddleware(app, token_issuer=token_issuer)

        assert middleware._is_public_path("/chat") is True
        assert middleware._is_public_path("/chat/stream") is True
        assert middleware._is_public_path("/chatter") is False
        assert middleware._is_public_path("/generated_pdfs/response_x.pdf") is True
        assert middleware._is_public_path("/auth/me") is False
