# daily_challenge/parser.py

"""
Extract a ChallengeContent from free-form model output.

Models do not reliably return bare JSON, so extraction strategies are tried in
a fixed order and the first one that yields text wins:
  1) ```json fenced block (with newlines)
  2) generic ``` fenced block
  3) ```json fenced block without surrounding newlines
  4) outermost {...} span
  5) the raw text itself
The extracted text is decoded as-is; only if that fails are trailing commas
dropped and decoding retried. The result is bound-checked through the
ChallengeContent model.
"""

import json
import logging
import re
from typing import Any, Callable, List, Optional, Tuple

from pydantic import ValidationError

from .errors import invalid_response
from .schemas import ChallengeContent

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 200

_JSON_FENCE_RE = re.compile(r"```json\n([\s\S]*?)\n```")
_GENERIC_FENCE_RE = re.compile(r"```\n([\s\S]*?)\n```")
_JSON_FENCE_TIGHT_RE = re.compile(r"```json([\s\S]*?)```")
_BRACES_RE = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

# wire name for each model field, used in error messages
_FIELD_NAMES = {
    "starting_content": "startingContent",
    "startingContent": "startingContent",
    "content": "content",
    "title": "title",
    "explanation": "explanation",
}


def _preview(text: str) -> str:
    return text[:_PREVIEW_CHARS] + ("..." if len(text) > _PREVIEW_CHARS else "")


def _group(pattern: re.Pattern, index: int = 1) -> Callable[[str], Optional[str]]:
    def strategy(text: str) -> Optional[str]:
        m = pattern.search(text)
        return m.group(index) if m else None

    return strategy


def _raw(text: str) -> Optional[str]:
    return text


ExtractionStrategy = Tuple[str, Callable[[str], Optional[str]]]

EXTRACTION_STRATEGIES: List[ExtractionStrategy] = [
    ("json_fence", _group(_JSON_FENCE_RE)),
    ("generic_fence", _group(_GENERIC_FENCE_RE)),
    ("json_fence_tight", _group(_JSON_FENCE_TIGHT_RE)),
    ("outer_braces", _group(_BRACES_RE, 0)),
    ("raw_text", _raw),
]


def extract_payload(text: str) -> Optional[str]:
    """Run the strategies in order; return the first non-empty extraction."""
    for name, strategy in EXTRACTION_STRATEGIES:
        extracted = strategy(text)
        if extracted and extracted.strip():
            logger.debug("Payload extracted with strategy %s (%d chars)", name, len(extracted))
            return extracted.strip()
    return None


def clean_payload(payload: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", payload.strip())


def decode_payload(payload: str) -> Any:
    """json.loads, retried with trailing commas dropped only if the strict parse fails."""
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        # the cleanup is not string-aware, so it must never touch valid JSON
        return json.loads(clean_payload(payload))


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ())]
        field = _FIELD_NAMES.get(loc[0], loc[0]) if loc else "payload"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


def parse_response(text: str) -> ChallengeContent:
    """Decode model output into a ChallengeContent or raise InvalidResponse."""
    raw = text or ""
    logger.debug("Parsing model response (%d chars): %s", len(raw), _preview(raw))

    payload = extract_payload(raw)
    if not payload:
        raise invalid_response("No JSON content found in response", raw_response=raw)

    try:
        data = decode_payload(payload)
    except json.JSONDecodeError as e:
        logger.debug("JSON decoding failed: %s; payload=%s", e, _preview(payload))
        raise invalid_response(f"Invalid JSON response: {e}", raw_response=raw) from e

    if not isinstance(data, dict):
        raise invalid_response(
            f"Expected a JSON object, got {type(data).__name__}",
            raw_response=raw,
        )

    try:
        return ChallengeContent.model_validate(data)
    except ValidationError as e:
        detail = _describe_validation_error(e)
        logger.debug("Response failed bounds check: %s", detail)
        raise invalid_response(f"Response failed bounds check: {detail}", raw_response=raw) from e


class ResponseParser:
    """Thin object wrapper so the orchestrator can take a parser by injection."""

    def parse(self, raw_text: str) -> ChallengeContent:
        return parse_response(raw_text)
