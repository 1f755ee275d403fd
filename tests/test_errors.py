"""Tests for failure classification."""

import json
import socket
from concurrent.futures import TimeoutError as FutureTimeoutError

import pytest

from daily_challenge.errors import (
    ClassifiedError,
    ErrorKind,
    classify,
    extract_retry_after,
    rate_limited,
    validation_failed,
)


class FakeResponse:
    def __init__(self, status_code, headers=None):
        self.status_code = status_code
        self.headers = headers or {}


class HTTPError(Exception):
    def __init__(self, message, status_code, headers=None):
        super().__init__(message)
        self.response = FakeResponse(status_code, headers)


class TestMessageRules:
    @pytest.mark.parametrize(
        "message, kind",
        [
            ("Invalid API key provided", ErrorKind.AUTH_ERROR),
            ("401 Unauthorized", ErrorKind.AUTH_ERROR),
            ("Rate limit exceeded", ErrorKind.RATE_LIMIT),
            ("Quota exhausted for today", ErrorKind.RATE_LIMIT),
            ("429 Too Many Requests", ErrorKind.RATE_LIMIT),
            ("Model foo/bar not found", ErrorKind.INVALID_MODEL),
            ("Response blocked by safety filters", ErrorKind.SAFETY_BLOCKED),
            ("Request timed out", ErrorKind.TIMEOUT),
            ("Network unreachable", ErrorKind.NETWORK),
            ("getaddrinfo ENOTFOUND api", ErrorKind.NETWORK),
            ("Could not parse JSON body", ErrorKind.INVALID_RESPONSE),
            ("something odd happened", ErrorKind.UNCLASSIFIED),
        ],
    )
    def test_kind_from_message(self, message, kind):
        assert classify(RuntimeError(message)).kind == kind

    def test_auth_wins_over_rate_limit(self):
        error = classify(RuntimeError("API key quota exceeded"))
        assert error.kind == ErrorKind.AUTH_ERROR
        assert error.retryable is False

    def test_generate_is_not_a_rate_word(self):
        assert classify(RuntimeError("failed to generate output")).kind == ErrorKind.UNCLASSIFIED

    def test_unclassified_is_retryable_and_keeps_type(self):
        error = classify(KeyError("weird"))
        assert error.kind == ErrorKind.UNCLASSIFIED
        assert error.retryable is True
        assert error.payload["error_type"] == "KeyError"


class TestStatusAndTypeRules:
    def test_http_429_uses_retry_after_header(self):
        error = classify(HTTPError("slow down", 429, {"Retry-After": "12"}))
        assert error.kind == ErrorKind.RATE_LIMIT
        assert error.backoff_hint_seconds == 12

    @pytest.mark.parametrize("status, kind", [(401, ErrorKind.AUTH_ERROR), (403, ErrorKind.AUTH_ERROR), (404, ErrorKind.INVALID_MODEL)])
    def test_http_status(self, status, kind):
        error = classify(HTTPError("request failed", status))
        assert error.kind == kind
        assert error.payload["status_code"] == status

    def test_json_error_is_invalid_response_even_if_message_mentions_fetch(self):
        exc = json.JSONDecodeError("Expecting value near fetch(", "fetch(", 0)
        assert classify(exc).kind == ErrorKind.INVALID_RESPONSE

    @pytest.mark.parametrize("exc", [TimeoutError(), FutureTimeoutError(), socket.timeout()])
    def test_timeout_types(self, exc):
        assert classify(exc).kind == ErrorKind.TIMEOUT

    def test_connection_error(self):
        assert classify(ConnectionResetError("peer reset")).kind == ErrorKind.NETWORK

    def test_classified_passes_through(self):
        original = rate_limited("limited", retry_after=5)
        assert classify(original) is original

    def test_cause_is_kept(self):
        exc = RuntimeError("Network down")
        assert classify(exc).__cause__ is exc


class TestBackoffExtraction:
    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Rate limited, retry after 30 seconds", 30),
            ("Please wait 7s before trying again", 7),
            ("RETRY in 2", 2),
            ("rate limited", None),
        ],
    )
    def test_extract_retry_after(self, message, expected):
        assert extract_retry_after(message) == expected

    def test_rate_limit_message_sets_hint(self):
        error = classify(RuntimeError("Rate limit hit, retry after 4 seconds"))
        assert error.kind == ErrorKind.RATE_LIMIT
        assert error.backoff_hint_seconds == 4


class TestClassifiedError:
    @pytest.mark.parametrize(
        "kind, retryable",
        [
            (ErrorKind.RATE_LIMIT, True),
            (ErrorKind.NETWORK, True),
            (ErrorKind.TIMEOUT, True),
            (ErrorKind.INVALID_RESPONSE, True),
            (ErrorKind.SAFETY_BLOCKED, True),
            (ErrorKind.AUTH_ERROR, False),
            (ErrorKind.INVALID_MODEL, False),
            (ErrorKind.DISABLED, False),
        ],
    )
    def test_default_retryability(self, kind, retryable):
        assert ClassifiedError(kind, "x").retryable is retryable

    def test_validation_failed_payload(self):
        error = validation_failed(["too short", "unbalanced"], raw_response="{}")
        assert error.kind == ErrorKind.INVALID_RESPONSE
        assert error.payload["validation_details"] == ["too short", "unbalanced"]
        assert error.to_dict()["kind"] == "invalid_response"
