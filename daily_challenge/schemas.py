# daily_challenge/schemas.py

import re
from datetime import date as dt_date
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ==== BOUNDS (shared by the parser, the validator and the static pool) ====
CONTENT_MIN_LENGTH = 10
CONTENT_MAX_LENGTH = 1000
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 100
EXPLANATION_MAX_LENGTH = 500
MAX_RETRY_BUDGET = 10
CONTEXT_MAX_LENGTH = 500
CODE_LANGUAGES = ("javascript", "typescript")


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class GenerationSource(str, Enum):
    GENERATED = "generated"
    STATIC = "static"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"


# Accept the prompt wording as well as the canonical keys
DIFFICULTY_ALIASES = {
    "easy": Difficulty.EASY,
    "simple": Difficulty.EASY,
    "beginner": Difficulty.EASY,
    "medium": Difficulty.MEDIUM,
    "intermediate": Difficulty.MEDIUM,
    "hard": Difficulty.HARD,
    "advanced": Difficulty.HARD,
}

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_WS_RE = re.compile(r"\s+")


def normalize_difficulty(v: Union[str, Difficulty]) -> Difficulty:
    if isinstance(v, Difficulty):
        return v
    key = (v or "").strip().lower()
    if key in DIFFICULTY_ALIASES:
        return DIFFICULTY_ALIASES[key]
    raise ValueError(f"difficulty must be one of: {[d.value for d in Difficulty]}")


def normalize_date(v: Union[str, dt_date]) -> str:
    """Return the ISO calendar date (YYYY-MM-DD) for a date or date string."""
    if isinstance(v, datetime):
        return v.date().isoformat()
    if isinstance(v, dt_date):
        return v.isoformat()
    key = (v or "").strip()
    if not _ISO_DATE_RE.match(key):
        raise ValueError(f"date must be in YYYY-MM-DD format, got {v!r}")
    # round-trip rejects impossible dates such as 2024-02-30
    return dt_date.fromisoformat(key).isoformat()


def normalize_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


class ChallengeContent(BaseModel):
    """Starting code, target code and title of one editing puzzle."""

    model_config = ConfigDict(populate_by_name=True)

    starting_content: str = Field(
        ...,
        alias="startingContent",
        min_length=CONTENT_MIN_LENGTH,
        max_length=CONTENT_MAX_LENGTH,
        description="Code the user starts editing from.",
    )
    content: str = Field(
        ...,
        min_length=CONTENT_MIN_LENGTH,
        max_length=CONTENT_MAX_LENGTH,
        description="Code the user has to reach.",
    )
    title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    explanation: Optional[str] = Field(None, max_length=EXPLANATION_MAX_LENGTH)

    @field_validator("starting_content", "content", "title")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be empty or only whitespace")
        return v

    @model_validator(mode="after")
    def validate_contents_differ(self) -> "ChallengeContent":
        if normalize_whitespace(self.starting_content) == normalize_whitespace(self.content):
            raise ValueError("startingContent must differ from content (puzzle is already solved)")
        return self


class Challenge(ChallengeContent):
    id: str
    date: str
    difficulty: Difficulty

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Union[str, dt_date]) -> str:
        return normalize_date(v)


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    difficulty: Difficulty
    retry_budget: int = Field(..., ge=0, le=MAX_RETRY_BUDGET)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Union[str, dt_date]) -> str:
        return normalize_date(v)

    @field_validator("difficulty", mode="before")
    @classmethod
    def validate_difficulty(cls, v: Union[str, Difficulty]) -> Difficulty:
        return normalize_difficulty(v)


class GenerationAttempt(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    attempt_index: int
    started_at: datetime
    error: Optional[Any] = None  # ClassifiedError, set when the attempt failed


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    quality_score: float = Field(..., ge=0.0, le=1.0)
    practice_score: float = Field(0.0, ge=0.0, le=1.0)


class PoolValidation(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class GenerationMetadata(BaseModel):
    generation_time_ms: int
    attempts: int
    used_fallback: bool
    model: Optional[str] = None


class GenerationResult(BaseModel):
    challenge: Challenge
    source: GenerationSource
    prompt_used: str
    metadata: GenerationMetadata


class HealthReport(BaseModel):
    status: HealthStatus
    detail: str
    checked_at: datetime
    response_time_ms: Optional[int] = None


class ServiceStats(BaseModel):
    total_requests: int = 0
    successful_requests: int = 0
    failures: int = 0
    average_response_time_ms: int = 0
    last_error: Optional[str] = None


class GenerateOptions(BaseModel):
    # Body of POST /challenge/generate; every field optional.
    date: Optional[str] = Field(None, description="Calendar date (YYYY-MM-DD), defaults to today (UTC).")
    difficulty: Optional[Difficulty] = Field(None, description="easy / medium / hard; defaults to the date's schedule.")
    retries: Optional[int] = Field(None, ge=0, le=MAX_RETRY_BUDGET, description="Retry budget override.")
    context: Optional[str] = Field(
        None, max_length=CONTEXT_MAX_LENGTH, description="Extra instructions put before the prompt."
    )
    language: Optional[str] = Field(None, description="javascript / typescript; defaults to either.")

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return normalize_date(v) if v else None

    @field_validator("difficulty", mode="before")
    @classmethod
    def validate_difficulty(cls, v: Optional[str]) -> Optional[Difficulty]:
        return normalize_difficulty(v) if v else None

    @field_validator("language", mode="before")
    @classmethod
    def validate_language(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        key = str(v).strip().lower()
        if key not in CODE_LANGUAGES:
            raise ValueError(f"language must be one of: {list(CODE_LANGUAGES)}")
        return key


def challenge_to_wire(challenge: Challenge) -> Dict[str, Any]:
    """camelCase dict for storage and HTTP responses."""
    return challenge.model_dump(by_alias=True, mode="json")
