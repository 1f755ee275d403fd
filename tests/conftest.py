import json
from typing import List, Optional, Union

import pytest

from daily_challenge.config import GenerationSettings
from daily_challenge.errors import ClassifiedError
from daily_challenge.generator import ChallengeGenerator

VALID_PAYLOAD = {
    "startingContent": "function greet(name) {\n  const message = \"Hi \" + name;\n  return message;\n}",
    "content": "function greet(name) {\n  const message = \"Hello \" + name;\n  return message;\n}",
    "title": "Function - Greeting",
    "explanation": "Change the greeting text.",
}


def fenced(payload: dict) -> str:
    return "Here is your challenge:\n```json\n" + json.dumps(payload) + "\n```"


class FakeClient:
    """Scripted stand-in for ExternalGenerationClient: pops one outcome per call."""

    model = "fake/model"

    def __init__(self, outcomes: Optional[List[Union[str, BaseException]]] = None, probe_outcome=None):
        self.outcomes = list(outcomes or [])
        self.probe_outcome = probe_outcome
        self.calls = 0
        self.probes = 0
        self.prompts: List[str] = []

    def request(self, prompt: str, timeout_ms: Optional[int] = None) -> str:
        self.calls += 1
        self.prompts.append(prompt)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def probe(self, timeout_ms: int = 10000) -> str:
        self.probes += 1
        if isinstance(self.probe_outcome, BaseException):
            raise self.probe_outcome
        return "OK"


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def valid_response() -> str:
    return fenced(VALID_PAYLOAD)


@pytest.fixture
def settings() -> GenerationSettings:
    return GenerationSettings(api_token="hf_test", max_retries=3, retry_delay_ms=1000)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_generator(settings, sleeper):
    def _make(outcomes=None, probe_outcome=None, **overrides):
        s = settings.model_copy(update=overrides) if overrides else settings
        client = FakeClient(outcomes, probe_outcome=probe_outcome)
        return ChallengeGenerator(s, client=client, sleep=sleeper), client

    return _make


@pytest.fixture
def error_of():
    def _make(kind, message="boom", **kwargs) -> ClassifiedError:
        return ClassifiedError(kind, message, **kwargs)

    return _make
