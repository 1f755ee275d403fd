# daily_challenge/generator.py

"""
Retrying, fallback-capable challenge pipeline.

States:
  Idle -> Requesting -> Parsing -> Validating -> Succeeded(generated)
  Requesting/Parsing/Validating -> Retrying -> Requesting
  any failure past the budget (or non-retryable) -> FallingBack -> Succeeded(static)

- Client, parse and validation failures all consume one attempt
- At most retry_budget + 1 attempts, sequential, with a blocking delay
- Backoff uses the error's hint when present, otherwise the configured delay,
  never more than MAX_RETRY_DELAY_MS
- With fallback disabled the last classified error propagates unchanged
"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from .config import MAX_RETRY_DELAY_MS, GenerationSettings
from .errors import ClassifiedError, ErrorKind, PoolConfigurationError, classify, disabled
from .llm import ExternalGenerationClient
from .parser import ResponseParser
from .prompts import build_custom_prompt
from .scheduler import DateLike, assign_difficulty, today
from .schemas import (
    Challenge,
    ChallengeContent,
    Difficulty,
    GenerationAttempt,
    GenerationMetadata,
    GenerationRequest,
    GenerationResult,
    GenerationSource,
    HealthReport,
    HealthStatus,
    normalize_date,
    normalize_difficulty,
)
from .static_pool import StaticFallbackPool
from .validator import ContentValidator

logger = logging.getLogger(__name__)

# probe failures that still mean the service is reachable
_DEGRADED_KINDS = (ErrorKind.RATE_LIMIT, ErrorKind.TIMEOUT)


class PipelineState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    PARSING = "parsing"
    VALIDATING = "validating"
    RETRYING = "retrying"
    FALLING_BACK = "falling_back"
    SUCCEEDED = "succeeded"


def challenge_id(date: str, source: GenerationSource, difficulty: Difficulty) -> str:
    return f"{date}-{source.value}-{difficulty.value}"


def static_prompt(date: str, difficulty: Difficulty) -> str:
    return f"Static challenge for {difficulty.value} difficulty on {date}"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class ChallengeGenerator:
    def __init__(
        self,
        settings: GenerationSettings,
        client: Optional[ExternalGenerationClient] = None,
        pool: Optional[StaticFallbackPool] = None,
        validator: Optional[ContentValidator] = None,
        parser: Optional[ResponseParser] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.client = client
        self.pool = pool or StaticFallbackPool()
        self.validator = validator or ContentValidator(min_quality_score=settings.min_quality_score)
        self.parser = parser or ResponseParser()
        self._sleep = sleep

        if settings.enable_fallback:
            self._check_pool()

    @property
    def is_enabled(self) -> bool:
        return self.settings.is_generation_enabled and self.client is not None

    def _check_pool(self) -> None:
        report = self.pool.validate_pool()
        if not report.valid:
            raise PoolConfigurationError("Static challenge pool is invalid: " + "; ".join(report.errors))
        empty = [d.value for d in Difficulty if not self.pool.entries.get(d)]
        if empty:
            raise PoolConfigurationError(f"Static challenge pool has no entries for: {', '.join(empty)}")

    def _backoff_seconds(self, error: ClassifiedError) -> float:
        # hints are scraped from free-form messages and may be unrelated numbers
        delay = error.backoff_hint_seconds or self.settings.retry_delay_ms / 1000.0
        return min(delay, MAX_RETRY_DELAY_MS / 1000.0)

    def _transition(self, state: PipelineState, target: PipelineState, request: GenerationRequest) -> PipelineState:
        logger.debug("[%s/%s] %s -> %s", request.date, request.difficulty.value, state.value, target.value)
        return target

    # ---------- public API ----------
    def generate_challenge(
        self,
        date: Optional[DateLike] = None,
        difficulty: Optional[Union[str, Difficulty]] = None,
        retries: Optional[int] = None,
        context: Optional[str] = None,
        language: Optional[str] = None,
    ) -> GenerationResult:
        """
        Challenge for `date` (default: today, UTC).

        Difficulty defaults to the date's schedule and `retries` to the
        configured budget. `context` and `language` narrow the prompt (see
        build_custom_prompt). Raises ValueError for a malformed date/difficulty,
        and ClassifiedError only when fallback is disabled.
        """
        iso_date = normalize_date(date) if date else today()
        request = GenerationRequest(
            date=iso_date,
            difficulty=normalize_difficulty(difficulty) if difficulty else assign_difficulty(iso_date),
            retry_budget=self.settings.max_retries if retries is None else retries,
        )
        started = time.monotonic()
        state = PipelineState.IDLE
        logger.info(
            "Generating %s challenge for %s (retry budget %d)",
            request.difficulty.value,
            request.date,
            request.retry_budget,
        )

        attempts: List[GenerationAttempt] = []
        last_error: Optional[ClassifiedError] = None

        if not self.is_enabled:
            last_error = disabled()
            logger.info("Generation disabled, skipping the external service")
        else:
            prompt = build_custom_prompt(request.difficulty, context=context, language=language)
            for attempt_index in range(request.retry_budget + 1):
                state = self._transition(state, PipelineState.REQUESTING, request)
                attempt = GenerationAttempt(attempt_index=attempt_index, started_at=datetime.now(timezone.utc))
                attempts.append(attempt)
                try:
                    content, state = self._run_attempt(request, prompt, state)
                except Exception as e:
                    error = classify(e)
                    attempt.error = error
                    last_error = error
                    logger.warning(
                        "Attempt %d/%d failed (%s): %s",
                        attempt_index + 1,
                        request.retry_budget + 1,
                        error.kind.value,
                        error.raw_message,
                    )
                    if not error.retryable:
                        break
                    if attempt_index < request.retry_budget:
                        state = self._transition(state, PipelineState.RETRYING, request)
                        delay = self._backoff_seconds(error)
                        logger.debug("Retrying in %.1fs", delay)
                        self._sleep(delay)
                    continue

                self._transition(state, PipelineState.SUCCEEDED, request)
                elapsed = _elapsed_ms(started)
                logger.info(
                    "Generated %s challenge for %s in %dms (%d attempt(s))",
                    request.difficulty.value,
                    request.date,
                    elapsed,
                    len(attempts),
                )
                return GenerationResult(
                    challenge=self._to_challenge(content, request, GenerationSource.GENERATED),
                    source=GenerationSource.GENERATED,
                    prompt_used=prompt,
                    metadata=GenerationMetadata(
                        generation_time_ms=elapsed,
                        attempts=len(attempts),
                        used_fallback=False,
                        model=self.client.model,
                    ),
                )

            logger.error(
                "Generation failed for %s after %d attempt(s) in %dms: %s",
                request.date,
                len(attempts),
                _elapsed_ms(started),
                last_error.kind.value if last_error else "unknown",
            )

        if not self.settings.enable_fallback:
            logger.error("Fallback disabled, propagating %s", last_error.kind.value)
            raise last_error

        self._transition(state, PipelineState.FALLING_BACK, request)
        return self._static_result(request, started, len(attempts))

    def health_check(self) -> HealthReport:
        """One probe of the external service, without retry or fallback."""
        checked_at = datetime.now(timezone.utc)
        if not self.is_enabled:
            return HealthReport(
                status=HealthStatus.DISABLED,
                detail="Generation is disabled (no token configured or LLM_ENABLED=false)",
                checked_at=checked_at,
            )

        started = time.monotonic()
        try:
            self.client.probe()
        except Exception as e:
            error = classify(e)
            status = HealthStatus.DEGRADED if error.kind in _DEGRADED_KINDS else HealthStatus.UNHEALTHY
            logger.warning("Health probe failed (%s): %s", error.kind.value, error.raw_message)
            return HealthReport(
                status=status,
                detail=f"{error.kind.value}: {error.raw_message}",
                checked_at=checked_at,
                response_time_ms=_elapsed_ms(started),
            )

        return HealthReport(
            status=HealthStatus.HEALTHY,
            detail=f"Model {self.client.model} is responding",
            checked_at=checked_at,
            response_time_ms=_elapsed_ms(started),
        )

    # ---------- internals ----------
    def _run_attempt(
        self, request: GenerationRequest, prompt: str, state: PipelineState
    ) -> Tuple[ChallengeContent, PipelineState]:
        raw = self.client.request(prompt, timeout_ms=self.settings.request_timeout_ms)

        state = self._transition(state, PipelineState.PARSING, request)
        content = self.parser.parse(raw)

        state = self._transition(state, PipelineState.VALIDATING, request)
        self.validator.validate_or_raise(content, request.difficulty, raw_response=raw)
        return content, state

    def _to_challenge(
        self, content: ChallengeContent, request: GenerationRequest, source: GenerationSource
    ) -> Challenge:
        return Challenge(
            id=challenge_id(request.date, source, request.difficulty),
            date=request.date,
            difficulty=request.difficulty,
            starting_content=content.starting_content,
            content=content.content,
            title=content.title,
            explanation=content.explanation,
        )

    def _static_result(self, request: GenerationRequest, started: float, attempts: int) -> GenerationResult:
        content = self.pool.select_for_date(request.date, request.difficulty)
        logger.info("Serving static %s challenge for %s: %s", request.difficulty.value, request.date, content.title)
        return GenerationResult(
            challenge=self._to_challenge(content, request, GenerationSource.STATIC),
            source=GenerationSource.STATIC,
            prompt_used=static_prompt(request.date, request.difficulty),
            metadata=GenerationMetadata(
                generation_time_ms=_elapsed_ms(started),
                attempts=attempts,
                used_fallback=True,
            ),
        )
