"""Tests for the AI resilience layer."""

from __future__ import annotations

import sys
import time
from unittest.mock import MagicMock, patch

import pytest

from ai_resilience import (
    CircuitBreaker,
    CircuitOpenError,
    TransientLLMError,
    _call_with_retry,
    _do_call,
    _is_transient,
    get_circuit_breaker,
    resilient_llm_call,
)


# ── CircuitBreaker Tests ────────────────────────────────────


class TestCircuitBreaker:
    def test_starts_closed(self):
        cb = CircuitBreaker()
        assert not cb.is_open("gemini")
        assert cb.get_state("gemini") == "closed"

    def test_opens_after_threshold_failures(self):
        cb = CircuitBreaker()
        for _ in range(cb.FAILURE_THRESHOLD):
            cb.record_failure("gemini")
        assert cb.is_open("gemini")
        assert cb.get_state("gemini") == "open"

    def test_success_resets(self):
        cb = CircuitBreaker()
        cb.record_failure("gemini")
        cb.record_failure("gemini")
        cb.record_success("gemini")
        assert not cb.is_open("gemini")

    def test_recovery_timeout(self):
        cb = CircuitBreaker()
        cb.RECOVERY_TIMEOUT = 0.01
        for _ in range(cb.FAILURE_THRESHOLD):
            cb.record_failure("gemini")
        assert cb.is_open("gemini")
        time.sleep(0.02)
        assert not cb.is_open("gemini")
        assert cb.get_state("gemini") == "half_open"

    def test_reset(self):
        cb = CircuitBreaker()
        for _ in range(cb.FAILURE_THRESHOLD):
            cb.record_failure("gemini")
        cb.reset()
        assert cb.get_state("gemini") == "closed"


# ── Transient detection ─────────────────────────────────────


class TestTransientDetection:
    @pytest.mark.parametrize("exc", [
        ConnectionError("reset"),
        TimeoutError(),
        RuntimeError("429 Resource exhausted"),
        RuntimeError("503 Service Unavailable"),
        RuntimeError("model is overloaded"),
    ])
    def test_transient(self, exc):
        assert _is_transient(exc)

    @pytest.mark.parametrize("exc", [
        ValueError("API key not valid"),
        RuntimeError("400 invalid argument"),
    ])
    def test_permanent(self, exc):
        assert not _is_transient(exc)

    def test_permanent_errors_are_not_retried(self):
        with patch("ai_resilience._do_call", side_effect=ValueError("bad key")) as mock_call:
            with pytest.raises(ValueError):
                _call_with_retry("gemini-test", "prompt", None)
        assert mock_call.call_count == 1


# ── Gemini request ──────────────────────────────────────────


class TestDoCall:
    def test_sends_json_mime_type_and_schema(self):
        genai = sys.modules["google.generativeai"]
        model = MagicMock()
        model.generate_content.return_value = MagicMock(text="[]")
        genai.GenerativeModel.return_value = model

        schema = {"type": "ARRAY"}
        assert _do_call("gemini-test", "hello", schema) == "[]"

        genai.GenerativeModel.assert_called_with("gemini-test")
        _, kwargs = model.generate_content.call_args
        assert kwargs["generation_config"] == {
            "response_mime_type": "application/json",
            "response_schema": schema,
        }


# ── resilient_llm_call Tests ────────────────────────────────


class TestResilientLLMCall:
    @patch("ai_resilience._call_with_retry")
    def test_basic_call(self, mock_retry):
        mock_retry.return_value = "[]"
        text, meta = resilient_llm_call("prompt", {"type": "ARRAY"}, model="gemini-test")
        assert text == "[]"
        assert meta["provider"] == "gemini"
        assert meta["model"] == "gemini-test"
        assert "latency_ms" in meta
        mock_retry.assert_called_once_with("gemini-test", "prompt", {"type": "ARRAY"})

    @patch("ai_resilience._call_with_retry")
    def test_failure_recorded_and_reraised(self, mock_retry):
        mock_retry.side_effect = TransientLLMError("503")
        with pytest.raises(TransientLLMError):
            resilient_llm_call("prompt")
        assert get_circuit_breaker()._providers["gemini"].failures == 1

    @patch("ai_resilience._call_with_retry")
    def test_open_circuit_short_circuits(self, mock_retry):
        cb = get_circuit_breaker()
        for _ in range(cb.FAILURE_THRESHOLD):
            cb.record_failure("gemini")
        with pytest.raises(CircuitOpenError):
            resilient_llm_call("prompt")
        mock_retry.assert_not_called()
