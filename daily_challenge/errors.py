# daily_challenge/errors.py

"""
Closed failure taxonomy for the generation pipeline.

Every failure leaving the client, the parser or the validator is turned into a
ClassifiedError: one exception type with a `kind` discriminant, a uniform
`retryable` flag, an optional backoff hint and a kind-specific `payload`.

classify() walks an ordered list of pure rules; the first rule returning a
value wins. Auth is matched before rate limiting so that an auth failure
whose message happens to mention a quota is never retried.
"""

import json
import logging
import re
import socket
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    RATE_LIMIT = "rate_limit"
    AUTH_ERROR = "auth_error"
    INVALID_MODEL = "invalid_model"
    SAFETY_BLOCKED = "safety_blocked"
    NETWORK = "network"
    TIMEOUT = "timeout"
    INVALID_RESPONSE = "invalid_response"
    DISABLED = "disabled"
    UNCLASSIFIED = "unclassified"


RETRYABLE_BY_KIND: Dict[ErrorKind, bool] = {
    ErrorKind.RATE_LIMIT: True,
    ErrorKind.NETWORK: True,
    ErrorKind.TIMEOUT: True,
    ErrorKind.INVALID_RESPONSE: True,
    ErrorKind.SAFETY_BLOCKED: True,
    ErrorKind.AUTH_ERROR: False,
    ErrorKind.INVALID_MODEL: False,
    ErrorKind.DISABLED: False,
    ErrorKind.UNCLASSIFIED: True,
}


class ClassifiedError(Exception):
    """A failure normalized into the pipeline taxonomy."""

    def __init__(
        self,
        kind: ErrorKind,
        raw_message: str,
        retryable: Optional[bool] = None,
        backoff_hint_seconds: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(raw_message)
        self.kind = kind
        self.raw_message = raw_message
        self.retryable = RETRYABLE_BY_KIND[kind] if retryable is None else retryable
        self.backoff_hint_seconds = backoff_hint_seconds
        self.payload: Dict[str, Any] = payload or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "retryable": self.retryable,
            "backoff_hint_seconds": self.backoff_hint_seconds,
            "raw_message": self.raw_message,
            "payload": self.payload,
        }

    def __repr__(self) -> str:
        return f"ClassifiedError(kind={self.kind.value!r}, retryable={self.retryable}, message={self.raw_message!r})"


# ---------- Factories ----------
def rate_limited(message: str, retry_after: Optional[int] = None) -> ClassifiedError:
    return ClassifiedError(ErrorKind.RATE_LIMIT, message, backoff_hint_seconds=retry_after, payload={"retry_after": retry_after})


def invalid_response(message: str, raw_response: Optional[str] = None, **extra: Any) -> ClassifiedError:
    payload: Dict[str, Any] = {"raw_response": raw_response}
    payload.update(extra)
    return ClassifiedError(ErrorKind.INVALID_RESPONSE, message, payload=payload)


def validation_failed(details: List[str], raw_response: Optional[str] = None) -> ClassifiedError:
    return invalid_response(
        f"Generated content failed validation: {', '.join(details)}",
        raw_response=raw_response,
        validation_details=list(details),
    )


def timed_out(timeout_ms: int) -> ClassifiedError:
    return ClassifiedError(ErrorKind.TIMEOUT, f"Request timed out after {timeout_ms}ms", payload={"timeout_ms": timeout_ms})


def disabled(reason: str = "Generation service is disabled. Check HF_TOKEN / LLM_ENABLED configuration.") -> ClassifiedError:
    return ClassifiedError(ErrorKind.DISABLED, reason)


# ---------- Helpers ----------
_RETRY_RE = re.compile(r"retry.*?(\d+)", re.IGNORECASE)
_WAIT_RE = re.compile(r"wait.*?(\d+)", re.IGNORECASE)


def extract_retry_after(message: str) -> Optional[int]:
    """Seconds to wait, as announced in a rate-limit message ("retry after 30s")."""
    m = _RETRY_RE.search(message or "") or _WAIT_RE.search(message or "")
    if m:
        return int(m.group(1))
    return None


def _message_of(error: BaseException) -> str:
    msg = str(error)
    return msg if msg else error.__class__.__name__


def _status_code_of(error: BaseException) -> Optional[int]:
    # huggingface_hub / requests errors carry the HTTP response
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def _header_retry_after(error: BaseException) -> Optional[int]:
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None) or {}
    try:
        value = headers.get("Retry-After") or headers.get("retry-after")
    except AttributeError:
        return None
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _contains_any(text: str, needles: List[str]) -> bool:
    return any(n in text for n in needles)


# ---------- Rules (ordered; first match wins) ----------
Rule = Callable[[BaseException, str], Optional[ClassifiedError]]


def _rule_http_status(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    status = _status_code_of(error)
    if status in (401, 403):
        return ClassifiedError(ErrorKind.AUTH_ERROR, msg, payload={"status_code": status})
    if status == 404:
        return ClassifiedError(ErrorKind.INVALID_MODEL, msg, payload={"status_code": status})
    if status == 429:
        retry_after = _header_retry_after(error)
        if retry_after is None:
            retry_after = extract_retry_after(msg)
        return ClassifiedError(
            ErrorKind.RATE_LIMIT,
            msg,
            backoff_hint_seconds=retry_after,
            payload={"status_code": status, "retry_after": retry_after},
        )
    return None


def _rule_exception_type(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    # Decoder messages may echo generated text, so match on type before wording
    if isinstance(error, (json.JSONDecodeError, ValidationError)):
        return invalid_response(msg)
    if isinstance(error, (TimeoutError, FutureTimeoutError, socket.timeout)):
        return ClassifiedError(ErrorKind.TIMEOUT, msg)
    if isinstance(error, ConnectionError):
        return ClassifiedError(ErrorKind.NETWORK, msg)
    return None


def _rule_auth(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    low = msg.lower()
    if _contains_any(low, ["api key", "api_key", "apikey", "authentication", "unauthorized", "permission denied", "invalid token"]):
        return ClassifiedError(ErrorKind.AUTH_ERROR, msg)
    return None


_RATE_WORD_RE = re.compile(r"\brate\b|\brate[-_ ]?limit", re.IGNORECASE)


def _rule_rate_limit(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    low = msg.lower()
    if "quota" in low or "429" in low or "too many requests" in low or _RATE_WORD_RE.search(msg):
        retry_after = extract_retry_after(msg)
        return ClassifiedError(
            ErrorKind.RATE_LIMIT,
            msg,
            backoff_hint_seconds=retry_after,
            payload={"retry_after": retry_after},
        )
    return None


_MODEL_MISSING_RE = re.compile(r"model .*(not found|does not exist|is not supported)", re.IGNORECASE)


def _rule_invalid_model(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    low = msg.lower()
    if "model not found" in low or "invalid model" in low or _MODEL_MISSING_RE.search(msg):
        return ClassifiedError(ErrorKind.INVALID_MODEL, msg)
    return None


def _rule_safety(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    if _contains_any(msg.lower(), ["safety", "blocked", "harmful"]):
        return ClassifiedError(ErrorKind.SAFETY_BLOCKED, msg)
    return None


def _rule_timeout(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    if _contains_any(msg.lower(), ["timeout", "timed out"]):
        return ClassifiedError(ErrorKind.TIMEOUT, msg)
    return None


def _rule_network(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    if _contains_any(msg.lower(), ["network", "connection", "fetch", "enotfound", "econnreset", "getaddrinfo"]):
        return ClassifiedError(ErrorKind.NETWORK, msg)
    return None


def _rule_invalid_response(error: BaseException, msg: str) -> Optional[ClassifiedError]:
    if _contains_any(msg.lower(), ["json", "parse"]):
        return invalid_response(msg)
    return None


CLASSIFICATION_RULES: List[Rule] = [
    _rule_http_status,
    _rule_exception_type,
    _rule_auth,
    _rule_rate_limit,
    _rule_invalid_model,
    _rule_safety,
    _rule_timeout,
    _rule_network,
    _rule_invalid_response,
]


def classify(error: BaseException) -> ClassifiedError:
    """Map any exception onto the taxonomy. Already-classified errors pass through."""
    if isinstance(error, ClassifiedError):
        return error

    msg = _message_of(error)
    for rule in CLASSIFICATION_RULES:
        classified = rule(error, msg)
        if classified is not None:
            logger.debug("Classified %s as %s", error.__class__.__name__, classified.kind.value)
            classified.__cause__ = error
            return classified

    logger.warning("Unclassified error, treating as retryable: %s: %s", error.__class__.__name__, msg)
    unclassified = ClassifiedError(ErrorKind.UNCLASSIFIED, msg, payload={"error_type": error.__class__.__name__})
    unclassified.__cause__ = error
    return unclassified


class PoolConfigurationError(ValueError):
    """The static pool cannot serve a difficulty (start-up configuration error)."""
