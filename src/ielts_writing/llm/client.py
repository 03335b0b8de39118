"""LLM client for the scoring oracle.

Provides a single-shot chat interface over any OpenAI-compatible
endpoint. The default provider is Anthropic through its
OpenAI-compatible API.

Supported providers:
- anthropic: Anthropic API (via OpenAI-compatible endpoint)
- openai: OpenAI API
- lmstudio: Local LM Studio server
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog
from openai import OpenAI

from ielts_writing.config.app_config import AppConfig, load_app_config

logger = structlog.get_logger(__name__)

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: str = "anthropic"
    base_url: str = "https://api.anthropic.com/v1/"
    model: str = "claude-sonnet-4-20250514"
    temperature: float = 0.2
    max_tokens: int = 3000
    timeout: int = 120
    api_key: str | None = None

    @classmethod
    def from_app_config(cls, config: AppConfig | None = None) -> LLMConfig:
        """Build client configuration from the application config."""
        if config is None:
            config = load_app_config()

        oracle = config.oracle
        provider = config.providers.get(oracle.provider)
        if provider is None:
            logger.warning("oracle_provider_not_configured", provider=oracle.provider)
            return cls(provider=oracle.provider)

        return cls(
            provider=oracle.provider,
            base_url=provider.base_url or cls.base_url,
            model=oracle.model or provider.default_model,
            temperature=oracle.temperature,
            max_tokens=oracle.marking_max_tokens,
            timeout=oracle.timeout,
            api_key=provider.get_api_key(),
        )


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for API call."""
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        """Get total token count."""
        return self.usage.get("total_tokens", 0)


class LLMError(Exception):
    """Error during LLM interaction."""

    pass


class LLMConnectionError(LLMError):
    """Error connecting to LLM server."""

    pass


class LLMResponseError(LLMError):
    """Error in LLM response."""

    pass


def join_text_blocks(content: Any) -> str:
    """Concatenate the text-typed blocks of a message content.

    Content may be a plain string or a list of typed parts
    (``{"type": "text", "text": ...}`` dicts or SDK objects).
    Non-text parts are ignored.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content

    texts = []
    for part in content:
        if isinstance(part, dict):
            part_type, text = part.get("type"), part.get("text")
        else:
            part_type, text = getattr(part, "type", None), getattr(part, "text", None)
        if part_type == "text" and text:
            texts.append(text)
    return "".join(texts)


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """Unified client for oracle interactions.

    Every call is a single request: no retries, no streaming.
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        model: str | None = None,
    ):
        """Initialize LLM client.

        Args:
            config: LLM configuration (built from app config if not provided)
            model: Override model from config
        """
        if config is None:
            config = LLMConfig.from_app_config()

        self.config = config

        if model is not None:
            self.config.model = model

        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
            max_retries=0,
        )

        logger.info(
            "llm_client_initialized",
            provider=self.config.provider,
            model=self.config.model,
            base_url=self.config.base_url,
        )

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Send chat completion request.

        Args:
            messages: List of messages in conversation
            temperature: Override default temperature
            max_tokens: Override default max tokens

        Returns:
            LLMResponse with content and metadata

        Raises:
            LLMConnectionError: If cannot connect to server
            LLMResponseError: If response is invalid
            LLMError: For any other API failure
        """
        if temperature is None:
            temperature = self.config.temperature
        if max_tokens is None:
            max_tokens = self.config.max_tokens

        request_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        start_time = time.time()

        try:
            response = self._client.chat.completions.create(**request_kwargs)
        except Exception as e:
            error_msg = str(e)
            if "Connection" in error_msg or "connect" in error_msg.lower():
                raise LLMConnectionError(
                    f"Could not connect to {self.config.provider} at {self.config.base_url}: {e}"
                ) from e
            raise LLMError(f"LLM call failed: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMResponseError("Empty response from LLM")

        content = join_text_blocks(response.choices[0].message.content)

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "llm_response",
            provider=self.config.provider,
            model=response.model,
            tokens=usage.get("total_tokens", 0),
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            model=response.model,
            provider=self.config.provider,
            usage=usage,
            latency_ms=latency_ms,
        )

    def simple_chat(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Simple chat with system prompt and user message.

        Args:
            system_prompt: System prompt
            user_message: User message
            temperature: Override temperature
            max_tokens: Override max tokens

        Returns:
            Response content as string
        """
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_message),
        ]

        response = self.chat(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        return response.content
