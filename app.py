"""
Nexus AI API server.

Run with `python app.py` or `uvicorn app:create_app_from_vault --factory`.
Secrets are read from Vault before the app is built; a missing secret stops
startup with VaultError naming the path.
"""

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.base import success_response
from api.billing import create_billing_router
from api.chat import create_chat_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from api.settings import create_settings_router
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.tokens import TokenIssuer
from clients.email_client import EmailGatewayClient
from clients.llm_client import LLMClient
from clients.postgres_client import PostgresClient
from clients.razorpay_client import RazorpayClient
from clients.search_client import SearchClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import (
    get_database_url,
    get_email_config,
    get_jwt_secret,
    get_llm_config,
    get_razorpay_config,
    get_search_config,
    get_valkey_url,
)
from core.config import ChatConfig
from core.services.billing_service import BillingService
from core.services.chat_service import ChatService
from core.services.pdf_service import PDF_URL_PATH, PdfService
from core.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the routers need, built once per process."""

    auth: AuthService
    tokens: TokenIssuer
    chat: ChatService
    billing: BillingService
    settings: SettingsService
    chat_config: ChatConfig
    closeables: list = field(default_factory=list)

    def close(self) -> None:
        for resource in self.closeables:
            try:
                resource.close()
            except Exception:
                logger.exception(f"Failed to close {type(resource).__name__}")


def chat_config_from_env() -> ChatConfig:
    """Non-secret chat settings from the environment."""
    values = {}
    if os.getenv("PUBLIC_BASE_URL"):
        values["public_base_url"] = os.environ["PUBLIC_BASE_URL"]
    if os.getenv("PDF_OUTPUT_DIR"):
        values["pdf_output_dir"] = os.environ["PDF_OUTPUT_DIR"]
    if os.getenv("CORS_ORIGINS"):
        values["cors_origins"] = [o.strip() for o in os.environ["CORS_ORIGINS"].split(",") if o.strip()]
    return ChatConfig(**values)


def build_services(
    auth_config: AuthConfig | None = None,
    chat_config: ChatConfig | None = None,
) -> Services:
    """
    Resolve secrets from Vault and wire clients into services.

    Raises:
        VaultError: A required secret is missing or Vault is unreachable.
    """
    auth_config = auth_config or AuthConfig()
    chat_config = chat_config or chat_config_from_env()

    postgres = PostgresClient(get_database_url())
    valkey = ValkeyClient(get_valkey_url())

    email_config = get_email_config()
    email_client = EmailGatewayClient(
        gateway_url=email_config["gateway_url"],
        api_key=email_config["api_key"],
        hmac_secret=email_config["hmac_secret"],
    )

    llm_config = get_llm_config()
    llm = LLMClient(api_key=llm_config["api_key"], model=llm_config.get("model_name"))

    search_config = get_search_config()
    search = SearchClient(
        google_api_key=search_config["google_api_key"],
        google_cse_id=search_config["google_cse_id"],
    )

    razorpay_config = get_razorpay_config()
    gateway = RazorpayClient(razorpay_config["key_id"], razorpay_config["key_secret"])

    accounts = AccountDatabase(postgres)
    security_logger = SecurityLogger(postgres)
    tokens = TokenIssuer(get_jwt_secret(), auth_config)

    auth_service = AuthService(
        config=auth_config,
        accounts=accounts,
        tokens=tokens,
        rate_limiter=RateLimiter(valkey, auth_config),
        email_client=email_client,
        security_logger=security_logger,
    )
    chat_service = ChatService(
        llm=llm,
        search=search,
        pdf=PdfService(chat_config.pdf_output_dir, chat_config.public_base_url),
        config=chat_config,
    )

    return Services(
        auth=auth_service,
        tokens=tokens,
        chat=chat_service,
        billing=BillingService(gateway, accounts, security_logger),
        settings=SettingsService(accounts, security_logger),
        chat_config=chat_config,
        closeables=[chat_service, search, valkey, postgres],
    )


def create_app(services: Services) -> FastAPI:
    """Assemble routes, middleware and error handlers around built services."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Nexus AI API starting")
        yield
        logger.info("Nexus AI API shutting down")
        services.close()

    app = FastAPI(title="Nexus AI API", lifespan=lifespan)

    register_error_handlers(app)

    # Added innermost first: request id wraps CORS, which wraps auth
    app.add_middleware(AuthMiddleware, token_issuer=services.tokens)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=services.chat_config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.include_router(create_auth_router(services.auth), prefix="/auth")
    app.include_router(create_chat_router(services.chat), prefix="/chat")
    app.include_router(create_billing_router(services.billing), prefix="/razorpay")
    app.include_router(create_settings_router(services.settings), prefix="/settings")

    @app.get("/health", tags=["health"])
    async def health():
        return success_response({"status": "ok"}).model_dump(mode="json")

    pdf_dir = Path(services.chat_config.pdf_output_dir)
    pdf_dir.mkdir(parents=True, exist_ok=True)
    app.mount(PDF_URL_PATH, StaticFiles(directory=pdf_dir), name="generated_pdfs")

    return app


def create_app_from_vault() -> FastAPI:
    return create_app(build_services())


def main() -> None:
    # Local .env supplies VAULT_ADDR / VAULT_ROLE_ID / VAULT_SECRET_ID
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app_from_vault(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
