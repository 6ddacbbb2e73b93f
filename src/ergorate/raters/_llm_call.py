"""Guarded completion call shared by model-backed raters.

One circuit breaker per model, so a provider outage trips only that
model and the rater moves on to the next one in its chain. Rate limits
are retried here and never count toward tripping a breaker.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import litellm
from circuitbreaker import (  # pyright: ignore[reportUnknownVariableType]
    CircuitBreaker,
    CircuitBreakerError,
)
from litellm.exceptions import RateLimitError as LitellmRateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ergorate.constants import (
    CB_LLM_FAILURE_THRESHOLD,
    CB_LLM_RECOVERY_TIMEOUT,
    LLM_MAX_OUTPUT_TOKENS,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_WAIT,
)

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    _acompletion: Callable[..., Coroutine[Any, Any, Any]]
else:
    _acompletion = litellm.acompletion


@dataclass(frozen=True)
class LLMCallResult:
    """Reply text plus the usage and timing of one completion."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int
    latency_ms: int = 0


def _counts_as_outage(thrown_type: type, thrown_value: BaseException) -> bool:
    """Breaker predicate: a 429 is backpressure, anything else trips."""
    return not issubclass(thrown_type, LitellmRateLimitError)


@functools.cache
def breaker_for(model: str) -> CircuitBreaker:  # pyright: ignore[reportUnknownParameterType]
    """Return the breaker for ``model``, creating it on first use."""
    return CircuitBreaker(  # pyright: ignore[reportUnknownVariableType]
        failure_threshold=CB_LLM_FAILURE_THRESHOLD,
        recovery_timeout=CB_LLM_RECOVERY_TIMEOUT,
        expected_exception=_counts_as_outage,
        name=f"rater_{model}",
    )


@retry(
    stop=stop_after_attempt(RETRY_MAX_ATTEMPTS),
    wait=wait_exponential_jitter(
        initial=RETRY_INITIAL_WAIT, max=RETRY_MAX_WAIT
    ),
    retry=retry_if_exception_type(LitellmRateLimitError),
    reraise=True,
)
async def guarded_llm_call(
    model: str,
    messages: list[dict[str, str]],
    timeout: int,
) -> LLMCallResult:
    """Ask ``model`` for a JSON rating reply.

    Raises ``CircuitBreakerError`` without calling out when the model's
    breaker is open. ``temperature=0`` keeps repeated ratings of one
    artifact as close as the provider allows.
    """
    breaker = breaker_for(model)
    if breaker.opened:  # pyright: ignore[reportUnknownMemberType]
        raise CircuitBreakerError(breaker)  # pyright: ignore[reportUnknownArgumentType]

    started = time.perf_counter()
    with breaker:  # pyright: ignore[reportUnknownMemberType]
        response: Any = await _acompletion(
            model=model,
            messages=messages,
            timeout=timeout,
            max_tokens=LLM_MAX_OUTPUT_TOKENS,
            temperature=0,
            response_format={"type": "json_object"},
        )
    latency_ms = int((time.perf_counter() - started) * 1000)

    usage: Any = response.usage
    result = LLMCallResult(
        content=str(response.choices[0].message.content or ""),
        model=model,
        input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
        output_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
        latency_ms=latency_ms,
    )
    logger.debug(
        "event=rater_llm_call model=%s latency_ms=%d "
        "input_tokens=%d output_tokens=%d",
        model,
        result.latency_ms,
        result.input_tokens,
        result.output_tokens,
    )
    return result
