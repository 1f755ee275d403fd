"""Tests for extracting challenge JSON from model output."""

import json

import pytest

from daily_challenge.errors import ClassifiedError, ErrorKind
from daily_challenge.parser import ResponseParser, clean_payload, extract_payload, parse_response

from conftest import VALID_PAYLOAD


@pytest.fixture
def payload_json():
    return json.dumps(VALID_PAYLOAD, indent=2)


class TestWrappedForms:
    def test_fenced_bare_and_prose_give_same_result(self, payload_json):
        fenced = f"```json\n{payload_json}\n```"
        bare = payload_json
        prose = f"Sure! Here is today's puzzle: {payload_json} Enjoy."

        results = [parse_response(text) for text in (fenced, bare, prose)]
        assert results[0] == results[1] == results[2]
        assert results[0].starting_content == VALID_PAYLOAD["startingContent"]

    def test_generic_fence(self, payload_json):
        assert parse_response(f"```\n{payload_json}\n```").title == VALID_PAYLOAD["title"]

    def test_tight_json_fence(self):
        text = "```json" + json.dumps(VALID_PAYLOAD) + "```"
        assert parse_response(text).content == VALID_PAYLOAD["content"]

    def test_json_fence_preferred_over_braces(self, payload_json):
        text = "Note {not json}\n```json\n" + payload_json + "\n```"
        assert extract_payload(text) == payload_json


class TestCleaning:
    def test_trailing_commas_removed(self):
        assert clean_payload('{"a": [1, 2,], "b": 3,}') == '{"a": [1, 2], "b": 3}'

    def test_valid_json_code_keeps_its_trailing_commas(self):
        target = "const list = [1, 2, ];\nconst point = { x: 1, };\nconsole.log(list, point);"
        text = json.dumps({**VALID_PAYLOAD, "content": target})
        assert parse_response(text).content == target

    def test_trailing_comma_payload_parses(self):
        body = json.dumps(VALID_PAYLOAD)[:-1] + ",\n}"
        assert parse_response(body).title == VALID_PAYLOAD["title"]


class TestFailures:
    def _expect_invalid(self, text) -> ClassifiedError:
        with pytest.raises(ClassifiedError) as info:
            parse_response(text)
        assert info.value.kind == ErrorKind.INVALID_RESPONSE
        assert info.value.retryable is True
        return info.value

    def test_empty(self):
        error = self._expect_invalid("   ")
        assert "No JSON content" in error.raw_message

    def test_not_json(self):
        self._expect_invalid("I cannot help with that.")

    def test_non_object(self):
        error = self._expect_invalid("[1, 2, 3]")
        assert "list" in error.raw_message

    def test_missing_field_names_wire_field(self):
        data = dict(VALID_PAYLOAD)
        del data["startingContent"]
        error = self._expect_invalid(json.dumps(data))
        assert "startingContent" in error.raw_message

    def test_title_too_short(self):
        error = self._expect_invalid(json.dumps({**VALID_PAYLOAD, "title": "Hi"}))
        assert "title" in error.raw_message

    def test_content_too_long(self):
        error = self._expect_invalid(json.dumps({**VALID_PAYLOAD, "content": "x" * 1001}))
        assert "content" in error.raw_message

    def test_already_solved(self):
        data = {**VALID_PAYLOAD, "startingContent": VALID_PAYLOAD["content"] + "\n"}
        self._expect_invalid(json.dumps(data))

    def test_raw_response_kept(self):
        error = self._expect_invalid("not json at all")
        assert error.payload["raw_response"] == "not json at all"


def test_parser_object_delegates():
    assert ResponseParser().parse(json.dumps(VALID_PAYLOAD)).title == VALID_PAYLOAD["title"]
