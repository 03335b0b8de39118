"""Tests for the application config loader."""

from pathlib import Path

from ielts_writing.config.app_config import (
    DEV_JWT_SECRET,
    AuthConfig,
    clear_config_cache,
    get_provider_config,
    load_app_config,
)


def write_config(tmp_path, text):
    config_dir = tmp_path / "data" / "config"
    config_dir.mkdir(parents=True)
    (config_dir / "app_config_v1.yaml").write_text(text)


class TestLoadAppConfig:
    """Tests for loading and caching."""

    def test_defaults_without_file(self):
        config = load_app_config()

        assert config.oracle.provider == "anthropic"
        assert config.oracle.marking_max_tokens == 3000
        assert config.oracle.generation_max_tokens == 2000
        assert config.db_path == Path("data/db/ielts.db")
        assert set(config.providers) == {"anthropic", "openai", "lmstudio"}

    def test_partial_file_merges_with_defaults(self, tmp_path):
        write_config(
            tmp_path,
            """
oracle:
  marking_max_tokens: 4000
paths:
  db_path: var/ielts.db
""",
        )

        config = load_app_config()

        assert config.oracle.marking_max_tokens == 4000
        assert config.oracle.provider == "anthropic"
        assert config.db_path == Path("var/ielts.db")
        assert config.auth.access_token_expire_minutes == 720

    def test_cached_until_cleared(self, tmp_path):
        first = load_app_config()
        write_config(tmp_path, "oracle:\n  timeout: 5\n")

        assert load_app_config() is first
        clear_config_cache()
        assert load_app_config().oracle.timeout == 5

    def test_provider_lookup(self):
        assert get_provider_config("openai").api_key_env == "OPENAI_API_KEY"
        assert get_provider_config("nope") is None


class TestAuthConfig:
    """Tests for the signing secret."""

    def test_secret_from_env(self, monkeypatch):
        monkeypatch.setenv("IELTS_JWT_SECRET", "s3cret")
        assert AuthConfig().get_secret() == "s3cret"

    def test_dev_fallback(self, monkeypatch):
        monkeypatch.delenv("IELTS_JWT_SECRET", raising=False)
        assert AuthConfig().get_secret() == DEV_JWT_SECRET
