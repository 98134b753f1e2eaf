"""
Centralized configuration with environment variable overrides.

Clinic contact details, session policy, matcher weights, and responder
model settings are configurable here. Nothing is hardcoded in the
dialog or matching logic.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


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
class ClinicConfig:
    """Clinic contact details shown in replies."""

    name: str = os.getenv("CLINIC_NAME", "Digital Care Clinic")
    phone: str = os.getenv("CLINIC_PHONE", "(11) 3000-0000")
    email: str = os.getenv("CLINIC_EMAIL", "care@clinic.example")
    hours: str = os.getenv("CLINIC_HOURS", "Monday to Friday, 7am to 6pm")
    locations: str = os.getenv("CLINIC_LOCATIONS", "Sao Paulo, Campinas and Santo Andre")


@dataclass(frozen=True)
class SessionConfig:
    """Conversation session policy."""

    inactivity_timeout_minutes: int = _safe_int("INACTIVITY_TIMEOUT_MINUTES", "10")
    reset_token: str = os.getenv("RESET_TOKEN", "0")
    reconstruction_window: int = _safe_int("RECONSTRUCTION_WINDOW", "5")
    max_listed_slots: int = _safe_int("MAX_LISTED_SLOTS", "10")


@dataclass(frozen=True)
class MatcherConfig:
    """Procedure matcher thresholds and weights."""

    similarity_threshold: float = _safe_float("MATCH_SIMILARITY_THRESHOLD", "0.3")
    relevance_weight: float = _safe_float("MATCH_RELEVANCE_WEIGHT", "0.2")


@dataclass(frozen=True)
class ResponderConfig:
    """Free-text responder (LLM) settings."""

    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.3")
    max_history_turns: int = _safe_int("RESPONDER_MAX_HISTORY", "12")
    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    clinic: ClinicConfig = field(default_factory=ClinicConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    responder: ResponderConfig = field(default_factory=ResponderConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.session.inactivity_timeout_minutes < 1:
        raise ValueError(
            "INACTIVITY_TIMEOUT_MINUTES must be >= 1, "
            f"got {config.session.inactivity_timeout_minutes}"
        )
    if not config.session.reset_token.strip():
        raise ValueError("RESET_TOKEN must not be empty")
    if config.session.reconstruction_window < 1:
        raise ValueError(
            f"RECONSTRUCTION_WINDOW must be >= 1, got {config.session.reconstruction_window}"
        )
    if config.session.max_listed_slots < 1:
        raise ValueError(
            f"MAX_LISTED_SLOTS must be >= 1, got {config.session.max_listed_slots}"
        )
    if not 0.0 <= config.matcher.similarity_threshold <= 1.0:
        raise ValueError(
            "MATCH_SIMILARITY_THRESHOLD must be between 0.0 and 1.0, "
            f"got {config.matcher.similarity_threshold}"
        )
    if not 0.0 <= config.matcher.relevance_weight <= 1.0:
        raise ValueError(
            "MATCH_RELEVANCE_WEIGHT must be between 0.0 and 1.0, "
            f"got {config.matcher.relevance_weight}"
        )
    if not 0.0 <= config.responder.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.responder.llm_temperature}"
        )
    if config.responder.max_history_turns < 0:
        raise ValueError(
            f"RESPONDER_MAX_HISTORY must be >= 0, got {config.responder.max_history_turns}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.clinic.name)
    return config


# Singleton instance
settings = load_config()
