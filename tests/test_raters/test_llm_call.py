"""Tests for the guarded completion call (provider mocked)."""

from __future__ import annotations

from collections.abc import Iterator
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from circuitbreaker import CircuitBreakerError
from litellm.exceptions import RateLimitError

from ergorate.constants import CB_LLM_FAILURE_THRESHOLD
from ergorate.raters._llm_call import (
    _counts_as_outage,
    breaker_for,
    guarded_llm_call,
)

MESSAGES = [
    {"role": "system", "content": "rate it"},
    {"role": "user", "content": "def f(): ..."},
]


def _response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=7),
    )


@pytest.fixture(autouse=True)
def _fresh_breakers() -> Iterator[None]:
    breaker_for.cache_clear()
    yield
    breaker_for.cache_clear()


def test_one_breaker_per_model() -> None:
    assert breaker_for("a/model") is breaker_for("a/model")
    assert breaker_for("a/model") is not breaker_for("b/model")
    assert breaker_for("a/model").name == "rater_a/model"


def test_rate_limits_do_not_trip_the_breaker() -> None:
    assert not _counts_as_outage(RateLimitError, RuntimeError())
    assert _counts_as_outage(RuntimeError, RuntimeError())


@pytest.mark.asyncio
async def test_reply_and_usage_returned() -> None:
    mock_completion = AsyncMock(return_value=_response('{"notation": "<F D G>"}'))
    with patch("ergorate.raters._llm_call._acompletion", mock_completion):
        result = await guarded_llm_call("m1", MESSAGES, 30)

    assert result.content == '{"notation": "<F D G>"}'
    assert result.model == "m1"
    assert (result.input_tokens, result.output_tokens) == (12, 7)
    assert result.latency_ms >= 0

    kwargs = mock_completion.call_args.kwargs
    assert kwargs["model"] == "m1"
    assert kwargs["messages"] == MESSAGES
    assert kwargs["timeout"] == 30
    assert kwargs["temperature"] == 0
    assert kwargs["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_empty_content_becomes_empty_string() -> None:
    mock_completion = AsyncMock(return_value=_response(None))
    with patch("ergorate.raters._llm_call._acompletion", mock_completion):
        result = await guarded_llm_call("m1", MESSAGES, 30)
    assert result.content == ""


@pytest.mark.asyncio
async def test_open_breaker_short_circuits() -> None:
    mock_completion = AsyncMock(side_effect=RuntimeError("502 bad gateway"))
    with patch("ergorate.raters._llm_call._acompletion", mock_completion):
        for _ in range(CB_LLM_FAILURE_THRESHOLD):
            with pytest.raises(RuntimeError):
                await guarded_llm_call("flaky/model", MESSAGES, 30)

        with pytest.raises(CircuitBreakerError):
            await guarded_llm_call("flaky/model", MESSAGES, 30)

    assert mock_completion.await_count == CB_LLM_FAILURE_THRESHOLD


@pytest.mark.asyncio
async def test_outage_on_one_model_leaves_others_closed() -> None:
    failing = AsyncMock(side_effect=RuntimeError("503 unavailable"))
    with patch("ergorate.raters._llm_call._acompletion", failing):
        for _ in range(CB_LLM_FAILURE_THRESHOLD):
            with pytest.raises(RuntimeError):
                await guarded_llm_call("down/model", MESSAGES, 30)

    healthy = AsyncMock(return_value=_response('{"notation": "<C L E>"}'))
    with patch("ergorate.raters._llm_call._acompletion", healthy):
        result = await guarded_llm_call("up/model", MESSAGES, 30)
    assert result.model == "up/model"
