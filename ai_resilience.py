"""AI Resilience Layer — Retry and Circuit Breaker around Gemini calls.

Provides a single resilient_llm_call() entry point that sends a prompt with a
JSON output schema to Gemini, retrying transient failures with exponential
backoff and short-circuiting when the provider keeps failing.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

PROVIDER = "gemini"
DEFAULT_MODEL = "gemini-2.0-flash"


# ── Circuit Breaker ─────────────────────────────────────────

@dataclass
class _ProviderState:
    failures: int = 0
    state: str = "closed"  # closed | open | half_open
    last_failure_time: float = 0.0


class CircuitBreaker:
    """Per-provider state machine: closed -> open -> half_open -> closed."""

    FAILURE_THRESHOLD = 3
    RECOVERY_TIMEOUT = 60  # seconds

    def __init__(self) -> None:
        self._providers: dict[str, _ProviderState] = {}
        self._lock = threading.Lock()

    def _get_state(self, provider: str) -> _ProviderState:
        if provider not in self._providers:
            self._providers[provider] = _ProviderState()
        return self._providers[provider]

    def record_success(self, provider: str) -> None:
        with self._lock:
            state = self._get_state(provider)
            state.failures = 0
            state.state = "closed"

    def record_failure(self, provider: str) -> None:
        with self._lock:
            state = self._get_state(provider)
            state.failures += 1
            state.last_failure_time = time.time()
            if state.failures >= self.FAILURE_THRESHOLD:
                if state.state != "open":
                    logger.warning("Circuit breaker opened for %s after %d failures",
                                   provider, state.failures)
                state.state = "open"

    def is_open(self, provider: str) -> bool:
        with self._lock:
            state = self._get_state(provider)
            if state.state == "closed":
                return False
            if state.state == "open":
                elapsed = time.time() - state.last_failure_time
                if elapsed >= self.RECOVERY_TIMEOUT:
                    state.state = "half_open"
                    return False  # allow one attempt
                return True
            return False

    def get_state(self, provider: str) -> str:
        with self._lock:
            return self._get_state(provider).state

    def reset(self) -> None:
        with self._lock:
            self._providers.clear()


_circuit_breaker = CircuitBreaker()


# ── Transient error detection ───────────────────────────────

_TRANSIENT_ERRORS = (
    ConnectionError,
    TimeoutError,
)

_TRANSIENT_PATTERNS = (
    "rate limit",
    "resource exhausted",
    "429",
    "503",
    "502",
    "500",
    "overloaded",
    "unavailable",
    "timeout",
    "deadline exceeded",
)


def _is_transient(exc: BaseException) -> bool:
    """Check if an exception is worth retrying."""
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    msg = str(exc).lower()
    return any(p in msg for p in _TRANSIENT_PATTERNS)


class TransientLLMError(Exception):
    """Wrapper for transient LLM errors that should be retried."""


class CircuitOpenError(RuntimeError):
    """Raised without calling the provider while its circuit is open."""


# ── Main entry point ────────────────────────────────────────

def _do_call(model: str, prompt: str, response_schema: dict | None) -> str:
    """Execute one Gemini request (no retry)."""
    import google.generativeai as genai

    genai.configure(api_key=os.getenv("GOOGLE_API_KEY", ""))
    generation_config: dict = {"response_mime_type": "application/json"}
    if response_schema is not None:
        generation_config["response_schema"] = response_schema
    m = genai.GenerativeModel(model)
    response = m.generate_content(prompt, generation_config=generation_config)
    return response.text or ""


@retry(
    retry=retry_if_exception_type(TransientLLMError),
    wait=wait_exponential(multiplier=1, min=1, max=30),
    stop=stop_after_attempt(3),
    reraise=True,
)
def _call_with_retry(model: str, prompt: str, response_schema: dict | None) -> str:
    try:
        return _do_call(model, prompt, response_schema)
    except Exception as exc:
        if _is_transient(exc):
            logger.info("Transient Gemini error, retrying: %s", exc)
            raise TransientLLMError(str(exc)) from exc
        raise


def resilient_llm_call(
    prompt: str,
    response_schema: dict | None = None,
    model: str = DEFAULT_MODEL,
) -> tuple[str, dict]:
    """Send a prompt to Gemini and return (response_text, metadata).

    Raises CircuitOpenError while the breaker is open, otherwise re-raises
    whatever the provider raised once retries are exhausted.
    """
    if _circuit_breaker.is_open(PROVIDER):
        raise CircuitOpenError(f"Circuit breaker open for provider: {PROVIDER}")

    start = time.time()
    try:
        response_text = _call_with_retry(model, prompt, response_schema)
    except Exception:
        _circuit_breaker.record_failure(PROVIDER)
        raise

    latency_ms = int((time.time() - start) * 1000)
    _circuit_breaker.record_success(PROVIDER)
    logger.debug("Gemini %s answered in %dms (%d chars)", model, latency_ms, len(response_text))

    return response_text, {
        "provider": PROVIDER,
        "model": model,
        "latency_ms": latency_ms,
    }


def get_circuit_breaker() -> CircuitBreaker:
    """Access the module-level circuit breaker singleton."""
    return _circuit_breaker
