"""
Centralized configuration with environment variable overrides.

Matching limits, timeouts, retention windows, and the messaging and index
backends are all configurable here. Nothing is hardcoded in the engine,
matcher, or broker logic.
"""

import logging
import os
from dataclasses import dataclass, field

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
class MatchingConfig:
    """Supplier search limits and fallbacks."""

    fallback_query: str = os.getenv("FALLBACK_QUERY", "chemicals")
    top_k: int = _safe_int("SEARCH_TOP_K", "1000")
    max_results: int = _safe_int("MAX_RESULTS", "5")
    region_prefix_length: int = _safe_int("REGION_PREFIX_LENGTH", "2")
    pincode_length: int = _safe_int("PINCODE_LENGTH", "6")


@dataclass(frozen=True)
class TimeoutConfig:
    """Upper bounds on every external call made during a buyer's turn."""

    embedding_sec: float = _safe_float("EMBEDDING_TIMEOUT", "10.0")
    index_sec: float = _safe_float("INDEX_TIMEOUT", "10.0")
    send_sec: float = _safe_float("SEND_TIMEOUT", "15.0")


@dataclass(frozen=True)
class InquiryConfig:
    """Correlation settings for supplier inquiries."""

    reference_marker: str = os.getenv("INQUIRY_MARKER", "#")
    retention_hours: float = _safe_float("INQUIRY_RETENTION_HOURS", "72")


@dataclass(frozen=True)
class SessionConfig:
    """Buyer session limits."""

    idle_timeout_minutes: float = _safe_float("SESSION_IDLE_MINUTES", "60")
    max_input_length: int = _safe_int("MAX_INPUT_LENGTH", "500")
    sweep_interval_sec: float = _safe_float("SWEEP_INTERVAL", "300")


@dataclass(frozen=True)
class MessagingConfig:
    """Twilio WhatsApp transport settings."""

    backend: str = os.getenv("MESSAGING_BACKEND", "twilio")
    account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    from_number: str = os.getenv("TWILIO_WHATSAPP_FROM", "whatsapp:+14155238886")
    address_prefix: str = os.getenv("ADDRESS_PREFIX", "whatsapp:")
    api_base: str = os.getenv("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01")


@dataclass(frozen=True)
class IndexConfig:
    """Vector index backend settings."""

    backend: str = os.getenv("INDEX_BACKEND", "memory")
    catalog_path: str = os.getenv("CATALOG_PATH", "data/sample_catalog.json")
    qdrant_url: str = os.getenv("QDRANT_URL", "http://localhost:6333")
    qdrant_api_key: str = os.getenv("QDRANT_API_KEY", "")
    collection: str = os.getenv("QDRANT_COLLECTION", "chemicals")


@dataclass(frozen=True)
class EmbeddingConfig:
    """Text embedding settings."""

    backend: str = os.getenv("EMBEDDING_BACKEND", "sentence-transformers")
    model_name: str = os.getenv("EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
    dimension: int = _safe_int("EMBEDDING_DIMENSION", "384")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    matching: MatchingConfig = field(default_factory=MatchingConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    inquiry: InquiryConfig = field(default_factory=InquiryConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    messaging: MessagingConfig = field(default_factory=MessagingConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "Chemical Product Search")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.matching.top_k < 1:
        raise ValueError(f"SEARCH_TOP_K must be >= 1, got {config.matching.top_k}")
    if not 1 <= config.matching.max_results <= config.matching.top_k:
        raise ValueError(
            "MAX_RESULTS must be between 1 and SEARCH_TOP_K, "
            f"got {config.matching.max_results}"
        )
    if not 1 <= config.matching.region_prefix_length <= config.matching.pincode_length:
        raise ValueError(
            "REGION_PREFIX_LENGTH must be between 1 and PINCODE_LENGTH, "
            f"got {config.matching.region_prefix_length}"
        )

    for name, value in [
        ("EMBEDDING_TIMEOUT", config.timeouts.embedding_sec),
        ("INDEX_TIMEOUT", config.timeouts.index_sec),
        ("SEND_TIMEOUT", config.timeouts.send_sec),
    ]:
        if value <= 0:
            raise ValueError(f"{name} must be > 0, got {value}")

    if len(config.inquiry.reference_marker) != 1 or config.inquiry.reference_marker.isdigit():
        raise ValueError(
            f"INQUIRY_MARKER must be a single non-digit character, "
            f"got {config.inquiry.reference_marker!r}"
        )
    if config.inquiry.retention_hours < 0:
        raise ValueError(
            f"INQUIRY_RETENTION_HOURS must be >= 0, got {config.inquiry.retention_hours}"
        )
    if config.session.idle_timeout_minutes < 0:
        raise ValueError(
            f"SESSION_IDLE_MINUTES must be >= 0, got {config.session.idle_timeout_minutes}"
        )
    if config.session.max_input_length < 1:
        raise ValueError(
            f"MAX_INPUT_LENGTH must be >= 1, got {config.session.max_input_length}"
        )
    if config.session.sweep_interval_sec <= 0:
        raise ValueError(
            f"SWEEP_INTERVAL must be > 0, got {config.session.sweep_interval_sec}"
        )

    if config.messaging.backend not in ("memory", "twilio"):
        raise ValueError(
            f"MESSAGING_BACKEND must be 'memory' or 'twilio', got {config.messaging.backend!r}"
        )
    if config.index.backend not in ("memory", "qdrant"):
        raise ValueError(
            f"INDEX_BACKEND must be 'memory' or 'qdrant', got {config.index.backend!r}"
        )
    if config.embedding.backend not in ("hashing", "sentence-transformers"):
        raise ValueError(
            "EMBEDDING_BACKEND must be 'hashing' or 'sentence-transformers', "
            f"got {config.embedding.backend!r}"
        )
    if config.embedding.dimension < 1:
        raise ValueError(
            f"EMBEDDING_DIMENSION must be >= 1, got {config.embedding.dimension}"
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
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
