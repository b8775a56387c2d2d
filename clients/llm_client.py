"""
Anthropic LLM client for chat completions, blocking and streamed.

Usage:
    # Non-streaming (chat, image analysis)
    response = client.generate(messages)

    # Streaming (chat relay)
    for event in client.stream(messages):
        match event:
            case TextEvent(content):
                print(content, end="")
            case ErrorEvent(error):
                ...
"""

import logging
from dataclasses import dataclass
from typing import Any, Generator

import anthropic
from pydantic import BaseModel

from clients.vault_client import get_llm_config

logger = logging.getLogger(__name__)


# === Response Types ===


class LLMResponse(BaseModel):
    """Non-streaming response."""

    content: str
    raw_response: dict[str, Any] | None = None
    usage: dict[str, int] | None = None


# === Stream Events ===


@dataclass
class TextEvent:
    """Text chunk from LLM."""

    content: str


@dataclass
class CompleteEvent:
    """Stream finished."""

    response: Any  # anthropic.types.Message


@dataclass
class ErrorEvent:
    """Stream error."""

    error: str
    details: str | None = None


StreamEvent = TextEvent | CompleteEvent | ErrorEvent


# === Errors ===


class LLMError(Exception):
    """LLM operation error."""


# === Client ===


class LLMClient:
    """Anthropic API client."""

    DEFAULT_MODEL = "claude-haiku-4-5"

    def __init__(self, api_key: str | None = None, model: str | None = None):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key. If None, fetched from Vault.
            model: Model name. If None, uses DEFAULT_MODEL.
        """
        if api_key is None:
            config = get_llm_config()
            api_key = config["api_key"]
            model = model or config.get("model_name")

        self.model = model or self.DEFAULT_MODEL
        self._client = anthropic.Anthropic(api_key=api_key)
        logger.info(f"LLM client initialized with model: {self.model}")

    def generate(
        self,
        messages: list[dict],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        model: str | None = None,
    ) -> LLMResponse:
        """
        Non-streaming generation.

        Args:
            messages: [{"role": "system"|"user"|"assistant", "content": str | list}]
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum output tokens
            model: Override model for this call

        Returns:
            LLMResponse with content, raw_response, and usage stats

        Raises:
            LLMError: If API call fails
        """
        params = self._build_params(messages, temperature, max_tokens, model)

        try:
            response = self._client.messages.create(**params)
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise LLMError(f"LLM API call failed: {e}")

        return LLMResponse(
            content=self._extract_text(response),
            raw_response={"id": response.id, "model": response.model},
            usage=self._extract_usage(response),
        )

    def stream(
        self,
        messages: list[dict],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        model: str | None = None,
    ) -> Generator[StreamEvent, None, None]:
        """
        Streaming generation.

        Text deltas are yielded as soon as the upstream connection delivers
        them. Closing the generator exits the SDK stream context, which closes
        the upstream HTTP response.

        Yields:
            StreamEvent instances
        """
        params = self._build_params(messages, temperature, max_tokens, model)

        try:
            with self._client.messages.stream(**params) as stream:
                for event in stream:
                    if event.type == "content_block_delta" and hasattr(event.delta, "text"):
                        yield TextEvent(event.delta.text)

                yield CompleteEvent(response=stream.get_final_message())

        except anthropic.APIError as e:
            logger.error(f"Anthropic streaming error: {e}")
            yield ErrorEvent(str(e), getattr(e, "message", None))

    # === Private ===

    def _build_params(
        self,
        messages: list[dict],
        temperature: float,
        max_tokens: int,
        model: str | None,
    ) -> dict:
        system_prompt, api_messages = self._prepare_messages(messages)
        params = {
            "model": model or self.model,
            "messages": api_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_prompt:
            params["system"] = system_prompt
        return params

    def _prepare_messages(
        self, messages: list[dict]
    ) -> tuple[str | None, list[dict]]:
        """Extract system prompt and prepare for Anthropic API."""
        system_content = None
        api_messages = []

        for msg in messages:
            if msg["role"] == "system":
                system_content = msg["content"]
            else:
                api_messages.append(msg)

        return system_content, api_messages

    def _extract_text(self, response) -> str:
        """Extract text content from response."""
        return "".join(b.text for b in response.content if b.type == "text")

    def _extract_usage(self, response) -> dict[str, int] | None:
        """Extract token usage from response."""
        if not response.usage:
            return None
        return {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
        }
