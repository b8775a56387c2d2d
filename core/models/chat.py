"""Chat relay models.

Conversations are held by the client; these shapes only describe one
request and its reply.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from clients.search_client import ImageResult
from core.intent import Intent


class ChatMessage(BaseModel):
    """One prior turn sent by the client as context."""

    role: str
    content: str = ""


class ChatRequest(BaseModel):
    """Non-streaming chat request."""

    message: str = ""
    history: list[ChatMessage] = Field(default_factory=list)


class ChatStreamRequest(ChatRequest):
    """Streaming chat request; may carry an uploaded image as a data URL."""

    model_config = ConfigDict(populate_by_name=True)

    image_data: str | None = Field(default=None, alias="imageData")


class OcrRequest(BaseModel):
    """Image analysis request."""

    model_config = ConfigDict(populate_by_name=True)

    image_data: str | None = Field(default=None, alias="imageData")
    prompt: str | None = None


class PdfDocument(BaseModel):
    """A generated PDF served under /generated_pdfs/."""

    url: str
    filename: str
    title: str


class ChatReply(BaseModel):
    """Complete reply for the non-streaming path."""

    text: str
    images: list[ImageResult] = Field(default_factory=list)
    pdf: PdfDocument | None = None
    intent: Intent


FrameType = Literal["intent", "text", "images", "pdf", "done", "error"]


class ChatFrame(BaseModel):
    """One server-sent event on the streaming path.

    Order: intent first, then text chunks and images (interleaving not
    guaranteed), optional pdf, then done. error replaces done on failure.
    """

    type: FrameType
    intent: Intent | None = None
    content: str | None = None
    images: list[ImageResult] | None = None
    pdf: PdfDocument | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """JSON body with unset fields dropped."""
        return self.model_dump(mode="json", exclude_none=True)

