"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is absent.

Usage:
    from ielts_writing.config.app_config import load_app_config, get_provider_config

    config = load_app_config()
    provider = get_provider_config(config.oracle.provider)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

DEV_JWT_SECRET = "dev-secret-change-me"


@dataclass
class ProviderConfig:
    """Configuration for a single LLM provider."""

    base_url: str | None
    default_model: str
    api_key_env: str | None = None

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class OracleConfig:
    """Settings for the scoring / question-writing oracle."""

    provider: str = "anthropic"
    model: str | None = None
    marking_max_tokens: int = 3000
    generation_max_tokens: int = 2000
    temperature: float = 0.2
    timeout: int = 120


@dataclass
class AuthConfig:
    """Settings for bearer-token authentication."""

    jwt_secret_env: str = "IELTS_JWT_SECRET"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 720

    def get_secret(self) -> str:
        """Get the signing secret, falling back to a development value."""
        secret = os.environ.get(self.jwt_secret_env)
        if not secret:
            logger.warning("jwt_secret_not_set", env=self.jwt_secret_env)
            return DEV_JWT_SECRET
        return secret


@dataclass
class AppConfig:
    """Application-wide configuration."""

    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def db_path(self) -> Path:
        """Location of the SQLite database."""
        return Path(self.paths.get("db_path", "data/db/ielts.db"))


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "providers": {
            "anthropic": {
                "base_url": "https://api.anthropic.com/v1/",
                "default_model": "claude-sonnet-4-20250514",
                "api_key_env": "ANTHROPIC_API_KEY",
            },
            "openai": {
                "base_url": "https://api.openai.com/v1",
                "default_model": "gpt-4o-mini",
                "api_key_env": "OPENAI_API_KEY",
            },
            "lmstudio": {
                "base_url": "http://localhost:1234/v1",
                "default_model": "llama-3.2-3b-instruct",
                "api_key_env": None,
            },
        },
        "oracle": {
            "provider": "anthropic",
            "model": None,
            "marking_max_tokens": 3000,
            "generation_max_tokens": 2000,
            "temperature": 0.2,
            "timeout": 120,
        },
        "auth": {
            "jwt_secret_env": "IELTS_JWT_SECRET",
            "jwt_algorithm": "HS256",
            "access_token_expire_minutes": 720,
        },
        "paths": {
            "db_path": "data/db/ielts.db",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    providers = {}
    for name, pconfig in data.get("providers", defaults["providers"]).items():
        providers[name] = ProviderConfig(
            base_url=pconfig.get("base_url"),
            default_model=pconfig.get("default_model", "default"),
            api_key_env=pconfig.get("api_key_env"),
        )

    oracle_data = {**defaults["oracle"], **(data.get("oracle") or {})}
    oracle = OracleConfig(
        provider=oracle_data["provider"],
        model=oracle_data["model"],
        marking_max_tokens=int(oracle_data["marking_max_tokens"]),
        generation_max_tokens=int(oracle_data["generation_max_tokens"]),
        temperature=float(oracle_data["temperature"]),
        timeout=int(oracle_data["timeout"]),
    )

    auth_data = {**defaults["auth"], **(data.get("auth") or {})}
    auth = AuthConfig(
        jwt_secret_env=auth_data["jwt_secret_env"],
        jwt_algorithm=auth_data["jwt_algorithm"],
        access_token_expire_minutes=int(auth_data["access_token_expire_minutes"]),
    )

    paths = {**defaults["paths"], **(data.get("paths") or {})}

    return AppConfig(providers=providers, oracle=oracle, auth=auth, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, using defaults when no file exists.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def get_provider_config(provider: str) -> ProviderConfig | None:
    """Get configuration for a specific provider.

    Args:
        provider: Provider name (e.g., "anthropic", "openai")

    Returns:
        ProviderConfig or None if provider not found.
    """
    config = load_app_config()
    return config.providers.get(provider)


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
