"""Tests for rater failure classification."""

from __future__ import annotations

from ergorate.constants import Axis
from ergorate.errors import (
    InsufficientInputError,
    NotationError,
    RaterTimeoutError,
    RatingError,
)
from ergorate.resilience.errors import (
    ErrorClass,
    classify_error,
    is_retryable,
)


class _StatusCodeError(Exception):
    """Exception with a status_code attribute."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


# ── classify_error ───────────────────────────────────────────


def test_insufficient_input_is_invalid_input() -> None:
    err = InsufficientInputError("content snapshot is empty", artifact_id="a")
    assert classify_error(err) == ErrorClass.INVALID_INPUT


def test_notation_error_is_invalid_input() -> None:
    """A garbled rater reply mentioning a timeout is still bad input."""
    assert classify_error(NotationError("timeout in reply")) == (
        ErrorClass.INVALID_INPUT
    )


def test_rater_timeout_is_timeout() -> None:
    err = RaterTimeoutError("no response", rater_id="llm", artifact_id="a")
    assert classify_error(err) == ErrorClass.TIMEOUT


def test_builtin_timeout_error() -> None:
    assert classify_error(TimeoutError()) == ErrorClass.TIMEOUT


def test_status_code_429_is_transient() -> None:
    assert classify_error(_StatusCodeError("rate limited", 429)) == (
        ErrorClass.TRANSIENT
    )


def test_status_code_401_is_client() -> None:
    assert classify_error(_StatusCodeError("unauthorized", 401)) == (
        ErrorClass.CLIENT
    )


def test_status_code_503_is_server() -> None:
    assert classify_error(_StatusCodeError("unavailable", 503)) == (
        ErrorClass.SERVER
    )


def test_string_fallback_connection() -> None:
    assert classify_error(Exception("connection refused to host")) == (
        ErrorClass.TRANSIENT
    )


def test_string_fallback_server_code() -> None:
    assert classify_error(RatingError("upstream returned 502")) == (
        ErrorClass.SERVER
    )


def test_unknown() -> None:
    assert classify_error(Exception("something unexpected")) == (
        ErrorClass.UNKNOWN
    )


# ── is_retryable ─────────────────────────────────────────────


def test_retryable_classes() -> None:
    assert is_retryable(TimeoutError())
    assert is_retryable(_StatusCodeError("busy", 429))
    assert is_retryable(_StatusCodeError("down", 500))


def test_non_retryable_classes() -> None:
    assert not is_retryable(NotationError("<X Y Z>"))
    assert not is_retryable(_StatusCodeError("forbidden", 403))
    assert not is_retryable(Exception("something unexpected"))


# ── RatingError rendering ────────────────────────────────────


def test_rating_error_names_artifact_and_axis() -> None:
    err = InsufficientInputError(
        "no error constructs", artifact_id="svc.py", axis=Axis.ERROR_SURFACE
    )
    assert str(err) == "[artifact=svc.py axis=error_surface] no error constructs"
    assert err.cause == "no error constructs"


def test_rating_error_without_context() -> None:
    assert str(RatingError("boom")) == "boom"
