"""
Chat relay.

Forwards a message plus a bounded window of client-held history to the
completion API. Every reply, whatever its intent, also carries images found
for the message's search terms; the image lookup runs on a worker thread
while the completion is generated or streamed.

Nothing is persisted: each call is independent.
"""

import logging
import re
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Generator

from clients.llm_client import ErrorEvent, LLMClient, LLMError, TextEvent
from clients.search_client import ImageResult, SearchClient, SearchError, WebLink
from core.config import ChatConfig
from core.exceptions import InvalidRequestError, UpstreamError
from core.intent import Intent, classify_intent, extract_search_terms, pdf_title
from core.models.chat import ChatFrame, ChatMessage, ChatReply, PdfDocument
from core.services.pdf_service import PdfService

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are Nexus AI, a helpful, intelligent, and friendly assistant.

Guidelines:
- Provide clear, well-structured responses
- Use markdown formatting when helpful (headers, lists, code blocks)
- Be concise but thorough
- If asked to generate code, provide complete, working examples with proper syntax highlighting
- If asked to create a PDF or document, acknowledge the request and provide the content you would include
- Be conversational and engaging"""

EMPTY_REPLY = "I apologize, but I could not generate a response."
IMAGE_UPLOAD_PREFIX = "The user has uploaded an image. "
DEFAULT_IMAGE_QUESTION = "Please analyze this image and describe what you see."
DEFAULT_OCR_PROMPT = "Please analyze this image and extract any text you can see. Describe the content."
IMAGE_ONLY_SEARCH_TOPIC = "general topic"
STREAM_FAILURE_MESSAGE = "Failed to process message"

MAX_IMAGE_RESULTS = 4
MAX_WEB_RESULTS = 10

SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
_DATA_URL = re.compile(r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)

CONTEXT_ROLES = ("user", "assistant")


def image_block(image_data: str) -> dict:
    """
    Completion-API image content block from a browser data URL.

    Raises:
        InvalidRequestError: Not a base64 data URL, or an unsupported type.
    """
    match = _DATA_URL.match(image_data.strip())
    if not match:
        raise InvalidRequestError("Image must be a base64 data URL")

    media_type = match.group("media_type").lower()
    if media_type == "image/jpg":
        media_type = "image/jpeg"
    if media_type not in SUPPORTED_IMAGE_TYPES:
        raise InvalidRequestError(f"Unsupported image type: {media_type}")

    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media_type, "data": match.group("data")},
    }


def _as_blocks(content: str | list) -> list:
    if isinstance(content, list):
        return content
    return [{"type": "text", "text": content}]


class ChatService:
    """Service for chat replies, image analysis and search lookups."""

    def __init__(
        self,
        llm: LLMClient,
        search: SearchClient,
        pdf: PdfService,
        config: ChatConfig,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.llm = llm
        self.search = search
        self.pdf = pdf
        self.config = config
        self._executor = executor or ThreadPoolExecutor(
            max_workers=8, thread_name_prefix="image-search"
        )

    # === Context ===

    def trim_history(self, history: list[ChatMessage]) -> list[dict]:
        """
        Trailing window of prior turns.

        Unknown roles and empty turns are dropped. The window never starts
        with an assistant turn.
        """
        window = self.config.history_window
        if window <= 0:
            return []

        turns = [
            {"role": m.role, "content": m.content}
            for m in history
            if m.role in CONTEXT_ROLES and m.content.strip()
        ][-window:]

        while turns and turns[0]["role"] == "assistant":
            turns.pop(0)
        return turns

    def build_messages(self, user_content: str | list, history: list[ChatMessage]) -> list[dict]:
        """System preamble, history window, then the new user turn.

        Consecutive turns from the same role are merged so roles alternate.
        """
        conversation: list[dict] = []
        for turn in self.trim_history(history) + [{"role": "user", "content": user_content}]:
            if conversation and conversation[-1]["role"] == turn["role"]:
                previous = conversation[-1]
                if isinstance(previous["content"], str) and isinstance(turn["content"], str):
                    previous["content"] = f"{previous['content']}\n\n{turn['content']}"
                else:
                    previous["content"] = _as_blocks(previous["content"]) + _as_blocks(turn["content"])
            else:
                conversation.append(dict(turn))

        return [{"role": "system", "content": SYSTEM_PROMPT}] + conversation

    # === Images ===

    def _images_for(self, query: str) -> list[ImageResult]:
        """Images attached to a chat reply. Search failure yields none."""
        try:
            return self.search.search_images(query, self.config.image_count)
        except SearchError as e:
            logger.warning(f"Image search failed for '{query}': {e}")
            return []

    def _start_image_search(self, message: str) -> Future:
        query = extract_search_terms(message)
        logger.info(f"Image search terms: {query}")
        return self._executor.submit(self._images_for, query)

    # === Chat ===

    def respond(self, message: str, history: list[ChatMessage]) -> ChatReply:
        """
        Complete reply for one message.

        Raises:
            InvalidRequestError: Message is empty.
            UpstreamError: Completion API failed.
        """
        if not message.strip():
            raise InvalidRequestError("Message is required")

        intent = classify_intent(message)
        logger.info(f"Chat request intent={intent.value} history={len(history)}")

        images_future = self._start_image_search(message)

        try:
            response = self.llm.generate(
                self.build_messages(message, history),
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except LLMError as e:
            images_future.cancel()
            logger.error(f"Completion failed: {e}")
            raise UpstreamError("Failed to generate a response") from e

        text = response.content or EMPTY_REPLY
        images = images_future.result()

        pdf = self._render_pdf(message, text) if intent is Intent.PDF else None

        return ChatReply(text=text, images=images, pdf=pdf, intent=intent)

    def _render_pdf(self, message: str, text: str) -> PdfDocument | None:
        """Render the reply as a PDF; the reply still goes out if this fails."""
        try:
            return self.pdf.render(pdf_title(message), text)
        except Exception:
            logger.exception("PDF generation failed")
            return None

    def stream(
        self,
        message: str,
        history: list[ChatMessage],
        image_data: str | None = None,
    ) -> Generator[ChatFrame, None, None]:
        """
        Validate the request, then return the frame generator.

        Validation happens before the first frame so a bad request can still
        get an ordinary error response.

        Raises:
            InvalidRequestError: Neither message nor image, or a bad image.
        """
        message = message or ""
        if not message.strip() and not image_data:
            raise InvalidRequestError("Message or image is required")

        if image_data:
            question = message if message.strip() else DEFAULT_IMAGE_QUESTION
            user_content = [image_block(image_data), {"type": "text", "text": IMAGE_UPLOAD_PREFIX + question}]
        else:
            user_content = message

        return self._frames(
            message=message,
            messages=self.build_messages(user_content, history),
            search_source=message if message.strip() else IMAGE_ONLY_SEARCH_TOPIC,
        )

    def _frames(
        self,
        message: str,
        messages: list[dict],
        search_source: str,
    ) -> Generator[ChatFrame, None, None]:
        intent = classify_intent(message)
        yield ChatFrame(type="intent", intent=intent)

        images_future = self._start_image_search(search_source)
        events = self.llm.stream(
            messages,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        images_sent = False
        chunks: list[str] = []

        try:
            for event in events:
                if isinstance(event, TextEvent):
                    chunks.append(event.content)
                    yield ChatFrame(type="text", content=event.content)
                elif isinstance(event, ErrorEvent):
                    logger.error(f"Completion stream failed: {event.error}")
                    yield ChatFrame(type="error", error=STREAM_FAILURE_MESSAGE)
                    return

                if not images_sent and images_future.done():
                    images_sent = True
                    yield ChatFrame(type="images", images=images_future.result())

            if not images_sent:
                yield ChatFrame(type="images", images=images_future.result())

            if intent is Intent.PDF:
                pdf = self._render_pdf(message, "".join(chunks) or EMPTY_REPLY)
                if pdf is not None:
                    yield ChatFrame(type="pdf", pdf=pdf)

            yield ChatFrame(type="done")

        except Exception:
            logger.exception("Chat stream failed")
            yield ChatFrame(type="error", error=STREAM_FAILURE_MESSAGE)

        finally:
            # Closing the event generator closes the upstream HTTP stream
            events.close()
            images_future.cancel()

    def ocr(self, image_data: str | None, prompt: str | None = None) -> str:
        """
        Describe an image and read any text in it.

        Raises:
            InvalidRequestError: No image, or not a supported data URL.
            UpstreamError: Completion API failed.
        """
        if not image_data:
            raise InvalidRequestError("Image data is required")

        content = [image_block(image_data), {"type": "text", "text": prompt or DEFAULT_OCR_PROMPT}]

        try:
            response = self.llm.generate(
                [{"role": "system", "content": SYSTEM_PROMPT}, {"role": "user", "content": content}],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except LLMError as e:
            logger.error(f"Image analysis failed: {e}")
            raise UpstreamError("Failed to process image") from e

        return response.content or EMPTY_REPLY

    # === Search ===

    def search_images(self, query: str, count: int = MAX_IMAGE_RESULTS) -> list[ImageResult]:
        """
        Direct image lookup.

        Raises:
            InvalidRequestError: Empty query.
            UpstreamError: Search provider failed.
        """
        if not query.strip():
            raise InvalidRequestError("Query is required")

        try:
            return self.search.search_images(query, max(1, min(count, MAX_IMAGE_RESULTS)))
        except SearchError as e:
            logger.error(f"Image search failed: {e}")
            raise UpstreamError("Failed to search images") from e

    def search_web(self, query: str, count: int = 5) -> list[WebLink]:
        """
        Web links for a query; empty when web search is not configured.

        Raises:
            InvalidRequestError: Empty query.
            UpstreamError: Search provider failed.
        """
        if not query.strip():
            raise InvalidRequestError("Query is required")

        try:
            return self.search.search_web(query, max(1, min(count, MAX_WEB_RESULTS)))
        except SearchError as e:
            logger.error(f"Web search failed: {e}")
            raise UpstreamError("Failed to search the web") from e

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
