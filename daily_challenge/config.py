# daily_challenge/config.py

"""
Environment-driven settings for the generation pipeline.

- Accepts the API token from HF_TOKEN or HUGGINGFACEHUB_API_TOKEN
- Missing token or LLM_ENABLED=false disables generation (static pool only)
- Out-of-range retry settings are clamped, unparsable numbers fall back to defaults
"""

import logging
import os
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .schemas import MAX_RETRY_BUDGET

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "meta-llama/Meta-Llama-3.1-8B-Instruct"

MIN_RETRY_DELAY_MS = 100
MAX_RETRY_DELAY_MS = 10000

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")

T = TypeVar("T", int, float)


class GenerationSettings(BaseModel):
    api_token: Optional[str] = None
    model: str = DEFAULT_MODEL
    llm_enabled: bool = True
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    top_p: float = Field(0.95, gt=0.0, le=1.0)
    max_tokens: int = Field(1024, gt=0)
    max_retries: int = Field(3, ge=0, le=MAX_RETRY_BUDGET)
    retry_delay_ms: int = Field(1000, ge=MIN_RETRY_DELAY_MS, le=MAX_RETRY_DELAY_MS)
    request_timeout_ms: int = Field(30000, gt=0)
    enable_fallback: bool = True
    min_quality_score: float = Field(0.7, ge=0.0, le=1.0)
    log_level: str = "INFO"

    @property
    def is_generation_enabled(self) -> bool:
        return self.llm_enabled and bool(self.api_token)


def _env_number(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Invalid value for %s: %r, using default %s", name, raw, default)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    logger.warning("Invalid value for %s: %r, using default %s", name, raw, default)
    return default


def _clamp(name: str, value: T, low: T, high: T) -> T:
    if value < low or value > high:
        clamped = min(max(value, low), high)
        logger.warning("%s=%s is out of range [%s, %s], clamping to %s", name, value, low, high, clamped)
        return clamped
    return value


def load_settings() -> GenerationSettings:
    """Read settings from the environment (and a .env file, if present)."""
    load_dotenv()

    # Accept both env var names for convenience
    token = (os.getenv("HF_TOKEN") or "").strip() or (os.getenv("HUGGINGFACEHUB_API_TOKEN") or "").strip()

    defaults = GenerationSettings()
    temperature = _env_number("LLM_TEMPERATURE", defaults.temperature, float)
    top_p = _env_number("LLM_TOP_P", defaults.top_p, float)
    max_tokens = _env_number("LLM_MAX_TOKENS", defaults.max_tokens, int)
    timeout_ms = _env_number("AI_REQUEST_TIMEOUT", defaults.request_timeout_ms, int)
    min_quality = _env_number("AI_MIN_QUALITY_SCORE", defaults.min_quality_score, float)

    settings = GenerationSettings(
        api_token=token or None,
        model=(os.getenv("LLM_MODEL") or DEFAULT_MODEL).strip(),
        llm_enabled=_env_bool("LLM_ENABLED", True),
        temperature=_clamp("LLM_TEMPERATURE", temperature, 0.0, 2.0),
        top_p=_clamp("LLM_TOP_P", top_p, 0.01, 1.0),
        max_tokens=max_tokens if max_tokens > 0 else defaults.max_tokens,
        max_retries=_clamp("AI_MAX_RETRIES", _env_number("AI_MAX_RETRIES", defaults.max_retries, int), 0, MAX_RETRY_BUDGET),
        retry_delay_ms=_clamp(
            "AI_RETRY_DELAY",
            _env_number("AI_RETRY_DELAY", defaults.retry_delay_ms, int),
            MIN_RETRY_DELAY_MS,
            MAX_RETRY_DELAY_MS,
        ),
        request_timeout_ms=timeout_ms if timeout_ms > 0 else defaults.request_timeout_ms,
        enable_fallback=_env_bool("AI_ENABLE_FALLBACK", True),
        min_quality_score=_clamp("AI_MIN_QUALITY_SCORE", min_quality, 0.0, 1.0),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )

    if not settings.api_token:
        logger.warning("No HF token configured (HF_TOKEN / HUGGINGFACEHUB_API_TOKEN); generation disabled")
    elif not settings.llm_enabled:
        logger.info("LLM_ENABLED=false; serving static challenges only")
    return settings
