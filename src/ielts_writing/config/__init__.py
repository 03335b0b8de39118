"""Configuration package for the IELTS writing service."""

from ielts_writing.config.app_config import (
    AppConfig,
    AuthConfig,
    OracleConfig,
    ProviderConfig,
    clear_config_cache,
    get_provider_config,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "OracleConfig",
    "ProviderConfig",
    "clear_config_cache",
    "get_provider_config",
    "load_app_config",
]
