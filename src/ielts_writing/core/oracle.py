"""Single-shot oracle calls and reply decoding.

Shared by the marking and question-generation adapters: one request,
no retry, and a reply that must be JSON (optionally wrapped in a
markdown code fence).
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from ielts_writing.core.errors import MalformedOracleOutputError, OracleUnavailableError
from ielts_writing.llm.client import LLMClient, LLMError

logger = structlog.get_logger(__name__)

RAW_EXCERPT_CHARS = 500

_FENCE_OPEN = re.compile(r"^```(?:json|JSON)?[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")


def strip_json_fence(text: str) -> str:
    """Remove a leading/trailing markdown code fence, if present."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def load_oracle_json(raw_text: str, source: str) -> Any:
    """Parse an oracle reply as JSON.

    Args:
        raw_text: Concatenated text of the oracle reply
        source: Short name of the caller, for logs

    Raises:
        MalformedOracleOutputError: If the reply is not valid JSON
    """
    excerpt = raw_text[:RAW_EXCERPT_CHARS]
    try:
        return json.loads(strip_json_fence(raw_text))
    except json.JSONDecodeError as e:
        logger.error("oracle.malformed_json", source=source, raw=excerpt, error=str(e))
        raise MalformedOracleOutputError(
            "AI returned malformed JSON. Please try again.", raw_excerpt=excerpt
        ) from e


def call_oracle(
    client: LLMClient,
    system_prompt: str,
    user_message: str,
    max_tokens: int,
    source: str,
) -> str:
    """Send exactly one request to the oracle and return its text.

    Raises:
        OracleUnavailableError: If the call fails for any reason
    """
    try:
        return client.simple_chat(
            system_prompt=system_prompt,
            user_message=user_message,
            max_tokens=max_tokens,
        )
    except LLMError as e:
        logger.error("oracle.call_failed", source=source, error=str(e))
        raise OracleUnavailableError(str(e)) from e
