"""Shared service instances for the Web API."""

from __future__ import annotations

from ielts_writing.llm.client import LLMClient

_oracle_client: LLMClient | None = None


def get_oracle_client() -> LLMClient:
    """Get the global oracle client instance."""
    global _oracle_client
    if _oracle_client is None:
        _oracle_client = LLMClient()
    return _oracle_client


def set_oracle_client(client: LLMClient) -> None:
    """Install a specific client (for testing)."""
    global _oracle_client
    _oracle_client = client


def reset_oracle_client() -> None:
    """Reset the oracle client (for testing)."""
    global _oracle_client
    _oracle_client = None
