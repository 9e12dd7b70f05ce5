"""Runtime configuration and environment helpers for the fashion AI gateway."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .schemas import ModelSize, ProviderChoice

_DEFAULT_CACHE_DIR = Path(".cache") / "fashion_ai"
_DEFAULT_ANALYSIS_TTL_S = 60 * 60
_DEFAULT_TRANSFORM_TTL_S = 24 * 60 * 60
_DEFAULT_REQUEST_TIMEOUT_S = 60.0
_DEFAULT_PING_TIMEOUT_S = 1.5
_DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024
_PLACEHOLDER_SUFFIX = "_api_key_here"


@dataclass(frozen=True)
class AppConfig:
    """Immutable application configuration."""

    gemini_api_key: str | None
    openai_api_key: str | None
    venice_api_key: str | None
    proxy_url: str | None
    proxy_ping: bool
    proxy_ping_timeout_s: float
    request_timeout_s: float
    client_hosted: bool
    preference: ProviderChoice
    model_size: ModelSize | None
    cache_enabled: bool
    cache_backend: str
    cache_dir: Path
    analysis_ttl_s: int
    transform_ttl_s: int
    max_image_bytes: int
    log_level: str

    def api_key(self, backend: str) -> str | None:
        """Return the configured key for a remote vendor family, if any."""

        return {
            ProviderChoice.GEMINI: self.gemini_api_key,
            ProviderChoice.OPENAI: self.openai_api_key,
            ProviderChoice.VENICE: self.venice_api_key,
        }.get(ProviderChoice(backend))


def _parse_bool(value: str | None, fallback: bool) -> bool:
    if value is None:
        return fallback
    return value.lower() in {"1", "true", "yes", "on"}


def _parse_int(value: str | None, fallback: int, *, minimum: int = 1) -> int:
    if value is None:
        return fallback
    try:
        parsed = int(value)
    except ValueError:
        return fallback
    return fallback if parsed < minimum else parsed


def _parse_float(value: str | None, fallback: float, *, minimum: float | None = None) -> float:
    if value is None:
        return fallback
    try:
        parsed = float(value)
    except ValueError:
        return fallback
    if minimum is not None and parsed < minimum:
        return fallback
    return parsed


def _parse_secret(value: str | None) -> str | None:
    """Treat blank values and template placeholders as absent."""

    if value is None:
        return None
    stripped = value.strip()
    if not stripped or stripped.lower().endswith(_PLACEHOLDER_SUFFIX):
        return None
    return stripped


def _parse_choice(value: str | None) -> ProviderChoice:
    try:
        return ProviderChoice((value or "auto").lower())
    except ValueError:
        return ProviderChoice.AUTO


def _parse_model_size(value: str | None) -> ModelSize | None:
    if not value:
        return None
    try:
        return ModelSize(value.lower())
    except ValueError:
        return None


def load_config() -> AppConfig:
    """Load configuration from environment variables, applying defaults."""

    cache_backend = os.getenv("FASHION_AI_CACHE_BACKEND", "memory").lower()
    if cache_backend not in {"memory", "file"}:
        cache_backend = "memory"

    proxy_url = (os.getenv("FASHION_AI_PROXY_URL") or "").strip().rstrip("/") or None

    return AppConfig(
        gemini_api_key=_parse_secret(os.getenv("GEMINI_API_KEY")),
        openai_api_key=_parse_secret(os.getenv("OPENAI_API_KEY")),
        venice_api_key=_parse_secret(os.getenv("VENICE_API_KEY")),
        proxy_url=proxy_url,
        proxy_ping=_parse_bool(os.getenv("FASHION_AI_PROXY_PING"), False),
        proxy_ping_timeout_s=_parse_float(
            os.getenv("FASHION_AI_PROXY_PING_TIMEOUT_S"),
            _DEFAULT_PING_TIMEOUT_S,
            minimum=0.05,
        ),
        request_timeout_s=_parse_float(
            os.getenv("FASHION_AI_REQUEST_TIMEOUT_S"),
            _DEFAULT_REQUEST_TIMEOUT_S,
            minimum=0.1,
        ),
        client_hosted=_parse_bool(os.getenv("FASHION_AI_CLIENT_HOSTED"), True),
        preference=_parse_choice(os.getenv("FASHION_AI_PREFERENCE")),
        model_size=_parse_model_size(os.getenv("FASHION_AI_MODEL_SIZE")),
        cache_enabled=_parse_bool(os.getenv("FASHION_AI_CACHE_ENABLED"), True),
        cache_backend=cache_backend,
        cache_dir=Path(os.getenv("FASHION_AI_CACHE_DIR", str(_DEFAULT_CACHE_DIR))),
        analysis_ttl_s=_parse_int(os.getenv("FASHION_AI_ANALYSIS_TTL_S"), _DEFAULT_ANALYSIS_TTL_S),
        transform_ttl_s=_parse_int(os.getenv("FASHION_AI_TRANSFORM_TTL_S"), _DEFAULT_TRANSFORM_TTL_S),
        max_image_bytes=_parse_int(os.getenv("FASHION_AI_MAX_IMAGE_BYTES"), _DEFAULT_MAX_IMAGE_BYTES),
        log_level=os.getenv("FASHION_AI_LOG_LEVEL", "INFO").upper(),
    )


config = load_config()
"""Singleton config loaded at import time for convenience."""
