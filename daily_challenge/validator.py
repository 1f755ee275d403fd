# daily_challenge/validator.py

"""
Safety, structure and editing-practice checks for generated code.

Errors are hard failures (the content is never shown to a user); warnings are
advisory. Two scores are computed:
- quality_score: overall puzzle quality, gates acceptance (min 0.7 by default)
- practice_score: how much editing practice the code offers, advisory unless
  a minimum is configured
"""

import logging
import re
from typing import List, Optional, Tuple

from .errors import validation_failed
from .schemas import (
    CONTENT_MAX_LENGTH,
    CONTENT_MIN_LENGTH,
    ChallengeContent,
    Difficulty,
    ValidationResult,
)

logger = logging.getLogger(__name__)

MAX_LINES = 20
MIN_LINES_FOR_COMPLEX = 3
DEFAULT_MIN_QUALITY_SCORE = 0.7
LOW_PRACTICE_SCORE = 0.3

# Capability-escalating constructs; any match is an error
FORBIDDEN_PATTERNS: List[re.Pattern] = [
    re.compile(r"\beval\s*\("),
    re.compile(r"\bFunction\s*\("),
    re.compile(r"\bdocument\."),
    re.compile(r"\bwindow\."),
    re.compile(r"\bglobalThis\b"),
    re.compile(r"\bprocess\."),
    re.compile(r"\brequire\s*\("),
    re.compile(r"\bimport\s*\("),
    re.compile(r"\bfetch\s*\("),
    re.compile(r"XMLHttpRequest"),
    re.compile(r"\bWebSocket\b"),
    re.compile(r"localStorage"),
    re.compile(r"sessionStorage"),
    re.compile(r"indexedDB"),
    re.compile(r"\balert\s*\("),
    re.compile(r"\bconfirm\s*\("),
    re.compile(r"\bprompt\s*\("),
    re.compile(r"__proto__"),
    re.compile(r"constructor"),
    re.compile(r"prototype"),
]

CODE_STRUCTURE_PATTERNS: List[re.Pattern] = [
    re.compile(r"function\s+\w+"),
    re.compile(r"const\s+\w+\s*="),
    re.compile(r"let\s+\w+\s*="),
    re.compile(r"var\s+\w+\s*="),
    re.compile(r"class\s+\w+"),
    re.compile(r"\w+\s*=>\s*"),
    re.compile(r"for\s*\("),
    re.compile(r"while\s*\("),
    re.compile(r"if\s*\("),
]

# (pattern, max points, description); each signal adds min(points, matches * 0.1)
PRACTICE_SIGNALS: List[Tuple[re.Pattern, float, str]] = [
    (re.compile(r"[{}]"), 2, "brace matching"),
    (re.compile(r"[\[\]]"), 1, "bracket navigation"),
    (re.compile(r"['\"`]"), 1, "quote handling"),
    (re.compile(r"\b\w{4,}\b"), 1, "word navigation"),
    (re.compile(r"^[ \t]+", re.MULTILINE), 2, "indentation practice"),
    (re.compile(r"\n"), 1, "multi-line navigation"),
    (re.compile(r"[()]"), 1, "parentheses navigation"),
    (re.compile(r"[;,]"), 1, "punctuation navigation"),
]
PRACTICE_MAX_SCORE = 10.0

# categories counted for the "enough variety" warning
PRACTICE_OPPORTUNITIES: List[re.Pattern] = [
    re.compile(r"\w+\(\)"),
    re.compile(r"[{}]"),
    re.compile(r"[\[\]]"),
    re.compile(r"['\"]"),
    re.compile(r"\b\w{4,}\b"),
]

_OPENERS = {"{": 0, "[": 1, "(": 2}
_CLOSERS = {"}": 0, "]": 1, ")": 2}


def find_forbidden_patterns(content: str) -> List[str]:
    return [p.pattern for p in FORBIDDEN_PATTERNS if p.search(content or "")]


def has_balanced_delimiters(code: str) -> bool:
    """Count {} [] () independently; fail if any count goes negative or ends non-zero."""
    counts = [0, 0, 0]
    for ch in code:
        if ch in _OPENERS:
            counts[_OPENERS[ch]] += 1
        elif ch in _CLOSERS:
            counts[_CLOSERS[ch]] -= 1
            if counts[_CLOSERS[ch]] < 0:
                return False
    return counts == [0, 0, 0]


def has_code_structure(content: str) -> bool:
    return any(p.search(content) for p in CODE_STRUCTURE_PATTERNS)


def practice_score(content: str) -> float:
    score = 0.0
    for pattern, points, _ in PRACTICE_SIGNALS:
        matches = len(pattern.findall(content))
        if matches:
            score += min(points, matches * 0.1)
    return min(score / PRACTICE_MAX_SCORE, 1.0)


def quality_score(content: str) -> float:
    score = 0.5

    length = len(content)
    if 50 <= length <= 500:
        score += 0.2
    elif 20 <= length <= 800:
        score += 0.1

    line_count = len(content.split("\n"))
    if 3 <= line_count <= 15:
        score += 0.1

    if len(set(re.sub(r"\s", "", content))) >= 10:
        score += 0.1

    if has_code_structure(content):
        score += 0.1

    return round(min(score, 1.0), 4)


def _practice_warnings(content: str) -> List[str]:
    warnings: List[str] = []

    if len(set(re.sub(r"\s", "", content))) < 5:
        warnings.append("Content has low character variety, may not provide good editing practice")

    if not re.search(r"^[ \t]+\S", content, re.MULTILINE):
        warnings.append("Content lacks indentation, missing opportunity for editing practice")

    if len([line for line in content.split("\n") if line.strip()]) < 2:
        warnings.append("Single-line content provides limited movement practice")

    opportunities = sum(1 for p in PRACTICE_OPPORTUNITIES if p.search(content))
    if opportunities < 2:
        warnings.append("Content may not provide enough variety for comprehensive editing practice")

    return warnings


class ContentValidator:
    def __init__(self, min_quality_score: float = DEFAULT_MIN_QUALITY_SCORE, min_practice_score: Optional[float] = None):
        self.min_quality_score = min_quality_score
        self.min_practice_score = min_practice_score

    def validate(self, content: str, difficulty: Optional[Difficulty] = None) -> ValidationResult:
        content = content or ""
        errors: List[str] = []
        warnings: List[str] = []

        # ---- length ----
        if len(content.strip()) < CONTENT_MIN_LENGTH:
            errors.append(f"Content must be at least {CONTENT_MIN_LENGTH} characters")
        if len(content) > CONTENT_MAX_LENGTH:
            errors.append(f"Content must be less than {CONTENT_MAX_LENGTH} characters")

        lines = content.split("\n")
        if len(lines) > MAX_LINES:
            errors.append(f"Content must have at most {MAX_LINES} lines")

        if difficulty in (Difficulty.MEDIUM, Difficulty.HARD):
            non_empty = [line for line in lines if line.strip()]
            if len(non_empty) < MIN_LINES_FOR_COMPLEX:
                warnings.append(f"{difficulty.value} challenges should have at least {MIN_LINES_FOR_COMPLEX} lines of code")

        # ---- safety ----
        for pattern in find_forbidden_patterns(content):
            errors.append(f"Content contains forbidden pattern: {pattern}")

        # ---- structure ----
        if not has_balanced_delimiters(content):
            errors.append("Content has unbalanced brackets, braces or parentheses")
        if not has_code_structure(content):
            errors.append("Content does not look like code (no function, declaration, loop or conditional found)")

        # ---- editing practice ----
        warnings.extend(_practice_warnings(content))
        p_score = practice_score(content)
        if p_score < LOW_PRACTICE_SCORE:
            warnings.append("Challenge may not provide good editing practice opportunities")

        q_score = quality_score(content)
        is_valid = not errors and q_score >= self.min_quality_score
        if self.min_practice_score is not None and p_score < self.min_practice_score:
            is_valid = False

        return ValidationResult(
            is_valid=is_valid,
            errors=errors,
            warnings=warnings,
            quality_score=q_score,
            practice_score=round(p_score, 4),
        )

    def validate_challenge(self, challenge: ChallengeContent, difficulty: Optional[Difficulty] = None) -> ValidationResult:
        """Validate the target code, and run the safety denylist over the starting code users also see."""
        result = self.validate(challenge.content, difficulty)
        starting_errors = [
            f"Starting content contains forbidden pattern: {p}"
            for p in find_forbidden_patterns(challenge.starting_content)
        ]
        if not starting_errors:
            return result
        return result.model_copy(
            update={"is_valid": False, "errors": result.errors + starting_errors}
        )

    def validate_or_raise(
        self,
        challenge: ChallengeContent,
        difficulty: Optional[Difficulty] = None,
        raw_response: Optional[str] = None,
    ) -> ValidationResult:
        result = self.validate_challenge(challenge, difficulty)
        if result.warnings:
            logger.debug("Validation warnings: %s", "; ".join(result.warnings))
        if not result.is_valid:
            details = list(result.errors)
            if not details:
                details.append(
                    f"quality score {result.quality_score:.2f} below minimum {self.min_quality_score:.2f}"
                )
            raise validation_failed(details, raw_response=raw_response)
        return result
