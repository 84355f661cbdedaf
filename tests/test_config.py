"""Tests for configuration loading and validation."""

import pytest

from pump_cpq.config import AppConfig, _validate_config


def _provider(**overrides):
    from pump_cpq.config import ProviderConfig

    provider = ProviderConfig.__new__(ProviderConfig)
    values = {
        "name": "ollama",
        "ollama_host": "http://localhost:11434",
        "ollama_model": "qwen3:8b",
        "openai_api_key": "",
        "openai_base_url": "https://api.openai.com/v1",
        "openai_model": "gpt-4o-mini",
        "timeout_sec": 60.0,
        "max_retries": 3,
        "retry_delay_sec": 1.0,
        "extraction_temperature": 0.1,
        "question_temperature": 0.9,
    }
    values.update(overrides)
    for key, value in values.items():
        object.__setattr__(provider, key, value)
    return provider


def _quote(**overrides):
    from pump_cpq.config import QuoteConfig

    quote = QuoteConfig.__new__(QuoteConfig)
    values = {"bot_name": "PumpBot", "approval_timeout_sec": 5.0, "max_transitions_per_step": 8}
    values.update(overrides)
    for key, value in values.items():
        object.__setattr__(quote, key, value)
    return quote


def _config(provider=None, quote=None):
    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "provider", provider or _provider())
    object.__setattr__(config, "quote", quote or _quote())
    object.__setattr__(config, "log_level", "INFO")
    object.__setattr__(config, "agent_name", "test")
    return config


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(_config())  # should not raise

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="AI_PROVIDER"):
            _validate_config(_config(provider=_provider(name="gemini")))

    def test_openai_provider_accepted(self):
        _validate_config(_config(provider=_provider(name="openai")))

    def test_extraction_temperature_too_high(self):
        with pytest.raises(ValueError, match="EXTRACTION_TEMPERATURE"):
            _validate_config(_config(provider=_provider(extraction_temperature=3.0)))

    def test_question_temperature_negative(self):
        with pytest.raises(ValueError, match="QUESTION_TEMPERATURE"):
            _validate_config(_config(provider=_provider(question_temperature=-0.5)))

    def test_zero_timeout(self):
        with pytest.raises(ValueError, match="LLM_TIMEOUT_SEC"):
            _validate_config(_config(provider=_provider(timeout_sec=0)))

    def test_zero_retries(self):
        with pytest.raises(ValueError, match="LLM_MAX_RETRIES"):
            _validate_config(_config(provider=_provider(max_retries=0)))

    def test_negative_retry_delay(self):
        with pytest.raises(ValueError, match="LLM_RETRY_DELAY_SEC"):
            _validate_config(_config(provider=_provider(retry_delay_sec=-1)))

    def test_negative_approval_timeout(self):
        with pytest.raises(ValueError, match="APPROVAL_TIMEOUT_SEC"):
            _validate_config(_config(quote=_quote(approval_timeout_sec=-1)))

    def test_zero_approval_timeout_allowed(self):
        _validate_config(_config(quote=_quote(approval_timeout_sec=0)))

    def test_transition_bound_at_least_one(self):
        with pytest.raises(ValueError, match="MAX_TRANSITIONS_PER_STEP"):
            _validate_config(_config(quote=_quote(max_transitions_per_step=0)))


class TestEnvParsing:
    def test_safe_int_parsing(self):
        from pump_cpq.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_float_parsing(self):
        from pump_cpq.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    def test_safe_int_reads_env(self, monkeypatch):
        from pump_cpq.config import _safe_int

        monkeypatch.setenv("PUMP_TEST_INT", "7")
        assert _safe_int("PUMP_TEST_INT", "1") == 7

    def test_safe_int_bad_value(self, monkeypatch):
        from pump_cpq.config import _safe_int

        monkeypatch.setenv("PUMP_TEST_INT", "seven")
        with pytest.raises(ValueError, match="PUMP_TEST_INT"):
            _safe_int("PUMP_TEST_INT", "1")

    def test_safe_float_bad_value(self, monkeypatch):
        from pump_cpq.config import _safe_float

        monkeypatch.setenv("PUMP_TEST_FLOAT", "fast")
        with pytest.raises(ValueError, match="Invalid float"):
            _safe_float("PUMP_TEST_FLOAT", "1.0")
