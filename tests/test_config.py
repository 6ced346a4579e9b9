"""
Tests for configuration helpers.

Configuration is module-level constants; tests patch the constants
on newsintel.config.config rather than the environment.
"""

from unittest.mock import patch

from newsintel.config import config


class TestMaskSecret:

    def test_empty_value_is_not_set(self):
        assert config.mask_secret("") == "NOT SET"
        assert config.mask_secret(None) == "NOT SET"

    def test_keeps_short_prefix(self):
        assert config.mask_secret("sk-abcdefghijkl") == "sk-abc..."

    def test_custom_visible_length(self):
        assert config.mask_secret("abcdefgh", visible=3) == "abc..."


class TestSupabaseConfigured:

    def test_requires_url_and_key(self):
        with patch.object(config, "SUPABASE_URL", "https://x.supabase.co"), \
                patch.object(config, "SUPABASE_KEY", ""):
            assert config.is_supabase_configured() is False

        with patch.object(config, "SUPABASE_URL", "https://x.supabase.co"), \
                patch.object(config, "SUPABASE_KEY", "service-key"):
            assert config.is_supabase_configured() is True


class TestValidateConfig:

    def test_development_without_credentials_is_valid(self):
        with patch.object(config, "APP_ENV", "development"), \
                patch.object(config, "SUPABASE_URL", ""), \
                patch.object(config, "SUPABASE_KEY", ""):
            assert config.validate_config() == []

    def test_production_requires_supabase(self):
        with patch.object(config, "APP_ENV", "production"), \
                patch.object(config, "SUPABASE_URL", ""), \
                patch.object(config, "SUPABASE_KEY", ""):
            errors = config.validate_config()

        assert any("SUPABASE_URL" in e for e in errors)
        assert any("SUPABASE_SERVICE_ROLE_KEY" in e for e in errors)

    def test_rejects_invalid_numbers(self):
        with patch.object(config, "APP_ENV", "development"), \
                patch.object(config, "REQUEST_TIMEOUT", 0), \
                patch.object(config, "FETCH_MAX_RETRIES", -1), \
                patch.object(config, "LLM_MAX_ITEMS", 0):
            errors = config.validate_config()

        assert len(errors) == 3


class TestPrintConfigSummary:

    def test_never_prints_secrets(self, capsys):
        with patch.object(config, "OPENAI_API_KEY", "sk-very-secret-value"), \
                patch.object(config, "SUPABASE_KEY", "service-role-secret"):
            config.print_config_summary()

        out = capsys.readouterr().out
        assert "sk-very-secret-value" not in out
        assert "service-role-secret" not in out
        assert "OPENAI_API_KEY: ***" in out


class TestEnvironment:

    def test_production(self):
        with patch.object(config, "APP_ENV", "production"):
            assert config.is_production() is True
            assert config.is_development() is False

    def test_development(self):
        with patch.object(config, "APP_ENV", "development"):
            assert config.is_development() is True
