# daily_challenge/llm.py

"""
Hugging Face chat client with a hard per-call deadline.

- One chat_completion call per request(); retrying is the orchestrator's job
- Each call runs on its own daemon thread, so the deadline starts when the
  call does; past the deadline it is abandoned and a Timeout error is raised.
  An abandoned call holds its thread until the InferenceClient timeout
  (request_timeout_ms) expires
- Every failure leaves as a ClassifiedError
- Robustly extracts content (handles list-of-chunks responses)
- Keeps request statistics for /health
"""

import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, List, Optional, Union

from huggingface_hub import InferenceClient

from .config import DEFAULT_MODEL, GenerationSettings
from .errors import ClassifiedError, classify, invalid_response, timed_out
from .prompts import build_messages
from .schemas import ServiceStats

logger = logging.getLogger(__name__)

PROBE_PROMPT = "Reply with the single word OK."
PROBE_MAX_TOKENS = 5
DEFAULT_PROBE_TIMEOUT_MS = 10000


def _flatten_content(content: Union[str, List[Any], None]) -> str:
    """HF may return a string or a list of chunks; concatenate text fields safely."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    out_parts: List[str] = []
    for chunk in content:
        if isinstance(chunk, str):
            out_parts.append(chunk)
        elif isinstance(chunk, dict):
            # common shapes: {"type":"text","text":"..."} or {"text":"..."}
            txt = chunk.get("text") or ""
            out_parts.append(str(txt))
        else:
            out_parts.append(str(chunk))
    return "".join(out_parts)


def _extract_content(resp: Any) -> str:
    """Support both object and dict response shapes, and list-of-chunks content."""
    # object style
    try:
        msg = resp.choices[0].message
        if isinstance(msg, dict):
            return _flatten_content(msg.get("content", ""))
        return _flatten_content(getattr(msg, "content", ""))
    except (AttributeError, IndexError, KeyError, TypeError):
        pass

    # dict style
    try:
        msg = resp["choices"][0]["message"]
        return _flatten_content(msg.get("content", ""))
    except (AttributeError, IndexError, KeyError, TypeError):
        return str(resp)


class ExternalGenerationClient:
    def __init__(
        self,
        token: Optional[str],
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        top_p: float = 0.95,
        max_tokens: int = 1024,
        request_timeout_ms: int = 30000,
        inference_client: Optional[Any] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens
        self.request_timeout_ms = request_timeout_ms
        self._client = inference_client or InferenceClient(
            model=model, token=token, timeout=request_timeout_ms / 1000.0
        )
        self._lock = threading.Lock()
        self._stats = ServiceStats()
        self._total_response_ms = 0

    # ---------- calls ----------
    def request(self, prompt: str, timeout_ms: Optional[int] = None) -> str:
        """Raw completion text for `prompt`, or a ClassifiedError."""
        return self._call(build_messages(prompt), self.max_tokens, timeout_ms or self.request_timeout_ms)

    def probe(self, timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS) -> str:
        return self._call(build_messages(PROBE_PROMPT), PROBE_MAX_TOKENS, timeout_ms)

    def _chat(self, messages: List[Dict[str, str]], max_tokens: int) -> str:
        resp = self._client.chat_completion(
            messages=messages,
            model=self.model,
            temperature=self.temperature,
            top_p=self.top_p,
            max_tokens=max_tokens,
        )
        return _extract_content(resp)

    def _start(self, messages: List[Dict[str, str]], max_tokens: int) -> Future:
        future: Future = Future()

        def run() -> None:
            future.set_running_or_notify_cancel()
            try:
                future.set_result(self._chat(messages, max_tokens))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=run, name="hf-request", daemon=True).start()
        return future

    def _call(self, messages: List[Dict[str, str]], max_tokens: int, timeout_ms: int) -> str:
        started = time.monotonic()
        future = self._start(messages, max_tokens)
        try:
            text = future.result(timeout=timeout_ms / 1000.0)
        except FutureTimeoutError:
            # the thread keeps running until the HTTP timeout; its result is discarded
            error = timed_out(timeout_ms)
            self._record(started, error)
            logger.warning("Request to %s timed out after %dms", self.model, timeout_ms)
            raise error
        except Exception as e:
            error = classify(e)
            self._record(started, error)
            logger.warning("Request to %s failed (%s): %s", self.model, error.kind.value, error.raw_message)
            raise error

        if not text or not text.strip():
            error = invalid_response("Empty response from generation service", raw_response=text)
            self._record(started, error)
            raise error

        self._record(started, None)
        logger.debug("Received %d chars from %s", len(text), self.model)
        return text

    # ---------- stats ----------
    def _record(self, started: float, error: Optional[ClassifiedError]) -> None:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        with self._lock:
            self._stats.total_requests += 1
            self._total_response_ms += elapsed_ms
            if error is None:
                self._stats.successful_requests += 1
            else:
                self._stats.failures += 1
                self._stats.last_error = f"{error.kind.value}: {error.raw_message}"
            self._stats.average_response_time_ms = self._total_response_ms // self._stats.total_requests

    def get_stats(self) -> ServiceStats:
        with self._lock:
            return self._stats.model_copy()

    def reset_stats(self) -> None:
        with self._lock:
            self._stats = ServiceStats()
            self._total_response_ms = 0


def build_client(settings: GenerationSettings) -> Optional[ExternalGenerationClient]:
    """Client for the configured model, or None when generation is disabled."""
    if not settings.is_generation_enabled:
        return None
    return ExternalGenerationClient(
        token=settings.api_token,
        model=settings.model,
        temperature=settings.temperature,
        top_p=settings.top_p,
        max_tokens=settings.max_tokens,
        request_timeout_ms=settings.request_timeout_ms,
    )
