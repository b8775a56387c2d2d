"""Shared test fixtures for the Nexus AI test suite.

Postgres and Valkey are replaced by the in-memory fakes in fakes.py, so the
suite runs without live infrastructure.
"""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from app import Services, create_app
from auth.config import AuthConfig
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger
from auth.service import AuthService
from auth.tokens import TokenIssuer
from clients.email_client import EmailGatewayClient
from clients.llm_client import LLMClient
from clients.razorpay_client import RazorpayClient
from clients.search_client import SearchClient
from core.config import ChatConfig
from core.services.billing_service import BillingService
from core.services.chat_service import ChatService
from core.services.pdf_service import PdfService
from core.services.settings_service import SettingsService
from fakes import (
    FakeAccountDatabase,
    FakeValkey,
    TEST_EMAIL,
    TEST_RAZORPAY_KEY_ID,
    TEST_RAZORPAY_SECRET,
    TEST_SIGNING_SECRET,
)


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig()


@pytest.fixture
def valkey() -> FakeValkey:
    return FakeValkey()


@pytest.fixture
def accounts() -> FakeAccountDatabase:
    return FakeAccountDatabase()


@pytest.fixture
def security_logger():
    """Security logger mock - no database writes in tests."""
    return Mock(spec=SecurityLogger)


@pytest.fixture
def email_client():
    """Mock email client - no actual emails sent in tests."""
    mock = Mock(spec=EmailGatewayClient)
    mock.send_otp.return_value = None
    return mock


@pytest.fixture
def token_issuer(auth_config) -> TokenIssuer:
    return TokenIssuer(TEST_SIGNING_SECRET, auth_config)


@pytest.fixture
def rate_limiter(valkey, auth_config) -> RateLimiter:
    return RateLimiter(valkey, auth_config)


@pytest.fixture
def auth_service(auth_config, accounts, token_issuer, rate_limiter, email_client, security_logger):
    return AuthService(
        config=auth_config,
        accounts=accounts,
        tokens=token_issuer,
        rate_limiter=rate_limiter,
        email_client=email_client,
        security_logger=security_logger,
    )


# =============================================================================
# APPLICATION FIXTURES
# =============================================================================


@pytest.fixture
def llm():
    """Completion API mock - configure generate/stream per test."""
    return Mock(spec=LLMClient)


@pytest.fixture
def search():
    """Search mock returning no results unless a test says otherwise."""
    mock = Mock(spec=SearchClient)
    mock.search_images.return_value = []
    mock.search_web.return_value = []
    return mock


@pytest.fixture
def chat_config(tmp_path) -> ChatConfig:
    return ChatConfig(pdf_output_dir=str(tmp_path / "generated_pdfs"))


@pytest.fixture
def pdf_service(chat_config) -> PdfService:
    return PdfService(chat_config.pdf_output_dir)


@pytest.fixture
def chat_service(llm, search, pdf_service, chat_config):
    service = ChatService(llm=llm, search=search, pdf=pdf_service, config=chat_config)
    yield service
    service.close()


@pytest.fixture
def gateway() -> RazorpayClient:
    """Real client; HTTP is mocked with `responses` where orders are created."""
    return RazorpayClient(TEST_RAZORPAY_KEY_ID, TEST_RAZORPAY_SECRET)


@pytest.fixture
def billing_service(gateway, accounts, security_logger) -> BillingService:
    return BillingService(gateway, accounts, security_logger)


@pytest.fixture
def settings_service(accounts, security_logger) -> SettingsService:
    return SettingsService(accounts, security_logger)


@pytest.fixture
def services(
    auth_service, token_issuer, chat_service, billing_service, settings_service, chat_config
) -> Services:
    return Services(
        auth=auth_service,
        tokens=token_issuer,
        chat=chat_service,
        billing=billing_service,
        settings=settings_service,
        chat_config=chat_config,
    )


@pytest.fixture
def client(services):
    """TestClient over the fully wired app."""
    with TestClient(create_app(services)) as test_client:
        yield test_client


@pytest.fixture
def account(accounts):
    return accounts.add(TEST_EMAIL)


@pytest.fixture
def auth_headers(token_issuer, account) -> dict[str, str]:
    token = token_issuer.issue_token(account.id, account.email).token
    return {"Authorization": f"Bearer {token}"}
