"""
Centralized configuration with environment variable overrides.

Provider endpoints, model names, timeouts, and quoting thresholds are all
configurable here. Nothing is hardcoded in agent or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from pump_cpq.logging_context import SessionIdFilter

load_dotenv()

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("ollama", "openai")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ProviderConfig:
    """Language model provider settings."""

    name: str = os.getenv("AI_PROVIDER", "ollama").lower()
    ollama_host: str = os.getenv("OLLAMA_HOST", "http://localhost:11434")
    ollama_model: str = os.getenv("OLLAMA_MODEL", "qwen3:8b")
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    timeout_sec: float = _safe_float("LLM_TIMEOUT_SEC", "60.0")
    max_retries: int = _safe_int("LLM_MAX_RETRIES", "3")
    retry_delay_sec: float = _safe_float("LLM_RETRY_DELAY_SEC", "1.0")
    extraction_temperature: float = _safe_float("EXTRACTION_TEMPERATURE", "0.1")
    question_temperature: float = _safe_float("QUESTION_TEMPERATURE", "0.9")


@dataclass(frozen=True)
class QuoteConfig:
    """Quoting flow thresholds."""

    bot_name: str = os.getenv("BOT_NAME", "PumpBot")
    approval_timeout_sec: float = _safe_float("APPROVAL_TIMEOUT_SEC", "5.0")
    max_transitions_per_step: int = _safe_int("MAX_TRANSITIONS_PER_STEP", "8")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    quote: QuoteConfig = field(default_factory=QuoteConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "pump-cpq")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.provider.name not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"AI_PROVIDER must be one of {SUPPORTED_PROVIDERS}, got {config.provider.name!r}"
        )
    for temp_name, temp_value in [
        ("EXTRACTION_TEMPERATURE", config.provider.extraction_temperature),
        ("QUESTION_TEMPERATURE", config.provider.question_temperature),
    ]:
        if not 0.0 <= temp_value <= 2.0:
            raise ValueError(f"{temp_name} must be between 0.0 and 2.0, got {temp_value}")
    if config.provider.timeout_sec <= 0:
        raise ValueError(
            f"LLM_TIMEOUT_SEC must be > 0, got {config.provider.timeout_sec}"
        )
    if config.provider.max_retries < 1:
        raise ValueError(
            f"LLM_MAX_RETRIES must be >= 1, got {config.provider.max_retries}"
        )
    if config.provider.retry_delay_sec < 0:
        raise ValueError(
            f"LLM_RETRY_DELAY_SEC must be >= 0, got {config.provider.retry_delay_sec}"
        )
    if config.quote.approval_timeout_sec < 0:
        raise ValueError(
            f"APPROVAL_TIMEOUT_SEC must be >= 0, got {config.quote.approval_timeout_sec}"
        )
    if config.quote.max_transitions_per_step < 1:
        raise ValueError(
            "MAX_TRANSITIONS_PER_STEP must be >= 1, "
            f"got {config.quote.max_transitions_per_step}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, SessionIdFilter) for f in handler.filters):
            handler.addFilter(SessionIdFilter())
    logger.info("Configuration loaded for '%s' (provider: %s)", config.agent_name, config.provider.name)
    return config


# Singleton instance
settings = load_config()
