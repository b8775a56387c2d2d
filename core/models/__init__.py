"""Core domain models."""

from core.models.chat import (
    ChatMessage,
    ChatRequest,
    ChatStreamRequest,
    OcrRequest,
    PdfDocument,
    ChatReply,
    ChatFrame,
)
from core.models.billing import PaidPlan, CreateOrderRequest, OrderResponse, VerifyPaymentRequest
from core.models.settings import THEMES, AI_MODELS, AccountSettings, SettingsUpdate, SettingsView

__all__ = [
    # Chat
    "ChatMessage", "ChatRequest", "ChatStreamRequest", "OcrRequest",
    "PdfDocument", "ChatReply", "ChatFrame",
    # Billing
    "PaidPlan", "CreateOrderRequest", "OrderResponse", "VerifyPaymentRequest",
    # Settings
    "THEMES", "AI_MODELS", "AccountSettings", "SettingsUpdate", "SettingsView",
]
