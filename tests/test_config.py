"""Tests for humanize configuration."""

import pytest

from anchor_humanizer.config import DEFAULT_BASE_URL, HumanizeConfig


class TestHumanizeConfig:
    """Tests for HumanizeConfig defaults and validation."""

    def test_defaults(self):
        """Defaults match the AIHumanize service limits."""
        config = HumanizeConfig()

        assert config.model == 1
        assert config.model_name == "balance"
        assert config.base_url == DEFAULT_BASE_URL
        assert config.min_text_chars == 100
        assert config.max_text_chars == 10000
        assert config.max_chunk_chars == 9000
        assert config.min_chunk_chars == 1000
        assert config.apply_cleanup
        assert config.validate_anchors
        assert not config.has_credentials

    @pytest.mark.parametrize("overrides", [
        {"model": 3},
        {"model": -1},
        {"min_text_chars": 0},
        {"max_chunk_chars": 20000},
        {"min_chunk_chars": 9000},
        {"chunk_delay_seconds": -1},
        {"timeout_seconds": 0},
    ])
    def test_invalid_values_rejected(self, overrides):
        """Out-of-range values raise ValueError."""
        with pytest.raises(ValueError):
            HumanizeConfig(**overrides)

    def test_offline_preset(self):
        """Offline config never sleeps."""
        config = HumanizeConfig.offline(model=0)
        assert config.chunk_delay_seconds == 0.0
        assert config.model_name == "quality"


class TestFromEnv:
    """Tests for environment configuration."""

    def test_reads_environment(self, monkeypatch):
        """Key, email and model come from AIHUMANIZE_* variables."""
        monkeypatch.setenv("AIHUMANIZE_API_KEY", "env-key")
        monkeypatch.setenv("AIHUMANIZE_EMAIL", "env@example.com")
        monkeypatch.setenv("AIHUMANIZE_MODEL", "2")

        config = HumanizeConfig.from_env()

        assert config.api_key == "env-key"
        assert config.registered_email == "env@example.com"
        assert config.model == 2
        assert config.has_credentials

    def test_overrides_win(self, monkeypatch):
        """Explicit values beat the environment."""
        monkeypatch.setenv("AIHUMANIZE_API_KEY", "env-key")
        monkeypatch.delenv("AIHUMANIZE_MODEL", raising=False)

        config = HumanizeConfig.from_env(api_key="explicit")

        assert config.api_key == "explicit"
        assert config.model == 1

    def test_missing_environment(self, monkeypatch):
        """Unset variables leave credentials empty."""
        for name in ("AIHUMANIZE_API_KEY", "AIHUMANIZE_EMAIL", "AIHUMANIZE_MODEL"):
            monkeypatch.delenv(name, raising=False)

        assert not HumanizeConfig.from_env().has_credentials
