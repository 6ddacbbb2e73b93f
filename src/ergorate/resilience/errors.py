"""Error classification for rater failures.

Classifies exceptions raised while invoking a rater so that:
- Structured logs show which failures are transient vs permanent
- Retry logic only retries transient/server/timeout failures
- Bad input (a classification or notation error) is never retried
"""

from __future__ import annotations

import asyncio
from enum import Enum

from ergorate.errors import (
    InsufficientInputError,
    NotationError,
    RaterTimeoutError,
)


class ErrorClass(Enum):
    TRANSIENT = "transient"  # 429, network errors, retryable
    SERVER = "server"  # 500, 502, 503, retryable
    TIMEOUT = "timeout"  # deadline exceeded, retryable with backoff
    CLIENT = "client"  # 400, 401, 403, do NOT retry
    INVALID_INPUT = "invalid_input"  # artifact or reply unusable, do NOT retry
    UNKNOWN = "unknown"  # unclassified, do NOT retry


def classify_error(error: BaseException) -> ErrorClass:
    """Classify an error to determine handling strategy.

    Checks domain types first, then structured attributes
    (status_code), then falls back to string matching.
    """
    # 1. Domain errors
    if isinstance(error, (InsufficientInputError, NotationError)):
        return ErrorClass.INVALID_INPUT
    if isinstance(error, (RaterTimeoutError, TimeoutError, asyncio.TimeoutError)):
        return ErrorClass.TIMEOUT

    # 2. Structured status_code attribute (httpx, openai, litellm)
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        if status_code == 429:
            return ErrorClass.TRANSIENT
        if 400 <= status_code < 500:
            return ErrorClass.CLIENT
        if 500 <= status_code < 600:
            return ErrorClass.SERVER

    # 3. String matching for untyped exceptions
    msg = str(error).lower()

    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if "429" in msg or "rate limit" in msg or "rate_limit" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("500", "502", "503", "504")):
        return ErrorClass.SERVER
    if "econnrefused" in msg or "connection" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("400", "401", "403", "404")):
        return ErrorClass.CLIENT

    return ErrorClass.UNKNOWN


_RETRYABLE = frozenset({
    ErrorClass.TRANSIENT,
    ErrorClass.SERVER,
    ErrorClass.TIMEOUT,
})


def is_retryable(error: BaseException) -> bool:
    """Return True if the error category supports retry."""
    return classify_error(error) in _RETRYABLE
