# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_valkey_url,
    get_email_config,
    get_llm_config,
    get_razorpay_config,
    get_jwt_secret,
    get_search_config,
)
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.email_client import EmailGatewayClient, EmailGatewayError
from clients.llm_client import LLMClient, LLMError
from clients.search_client import SearchClient, SearchError, ImageResult, WebLink
from clients.razorpay_client import RazorpayClient, PaymentGatewayError
