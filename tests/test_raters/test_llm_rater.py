"""Tests for the model-backed rater (LLM boundary mocked)."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, patch

import pytest
from circuitbreaker import CircuitBreaker, CircuitBreakerError

from ergorate.constants import Axis
from ergorate.domain.value_objects import Artifact
from ergorate.errors import NotationError, RatingError
from ergorate.prompts import RATING_SYSTEM_PROMPT, build_rating_prompt
from ergorate.raters._llm_call import LLMCallResult
from ergorate.raters.llm import LLMRater, parse_rating_reply

ARTIFACT = Artifact(id="svc.py", content_snapshot="def run():\n    return 1\n")


def _reply(notation: str, **rationales: str) -> LLMCallResult:
    return LLMCallResult(
        content=json.dumps({"notation": notation, "rationales": rationales}),
        model="test/model",
        input_tokens=10,
        output_tokens=5,
    )


# ── parse_rating_reply ───────────────────────────────────────


class TestParseRatingReply:
    def test_valid_reply(self) -> None:
        vector = parse_rating_reply(
            json.dumps({
                "notation": "<C L E>",
                "rationales": {"error_surface": "raises ValueError"},
            }),
            "svc.py",
        )
        assert vector.states == (2, 2, 2)
        assert vector.rating(Axis.ERROR_SURFACE).rationale == (
            "raises ValueError"
        )
        assert vector.rating(Axis.EXPRESSIVENESS).rationale == ""

    def test_not_json(self) -> None:
        with pytest.raises(NotationError, match="unparseable") as exc:
            parse_rating_reply("Expressiveness is fluent.", "svc.py")
        assert exc.value.artifact_id == "svc.py"

    def test_missing_notation(self) -> None:
        with pytest.raises(NotationError):
            parse_rating_reply(json.dumps({"rationales": {}}), "svc.py")

    def test_foreign_symbol_keeps_axis(self) -> None:
        with pytest.raises(NotationError) as exc:
            parse_rating_reply(json.dumps({"notation": "<F F G>"}), "svc.py")
        assert exc.value.axis == Axis.DEPENDENCY_FLOW
        assert exc.value.artifact_id == "svc.py"


# ── LLMRater ─────────────────────────────────────────────────


class TestLLMRater:
    def test_empty_chain_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one model"):
            LLMRater("llm", [])

    @pytest.mark.asyncio
    async def test_primary_model_answers(self) -> None:
        mock_call = AsyncMock(return_value=_reply("<F D G>"))
        with patch("ergorate.raters.llm.guarded_llm_call", mock_call):
            assessment = await LLMRater("llm", ["m1", "m2"]).assess(ARTIFACT)

        assert assessment.rater_id == "llm"
        assert assessment.artifact_id == "svc.py"
        assert assessment.rating_vector.states == (3, 3, 3)
        mock_call.assert_awaited_once()
        model, messages, timeout = mock_call.call_args.args
        assert model == "m1"
        assert messages[0]["content"] == RATING_SYSTEM_PROMPT
        assert "svc.py" in messages[1]["content"]
        assert timeout == 60

    @pytest.mark.asyncio
    async def test_falls_back_on_bad_reply(self) -> None:
        mock_call = AsyncMock(
            side_effect=[
                LLMCallResult("not json", "m1", 1, 1),
                _reply("<V H A>"),
            ]
        )
        with patch("ergorate.raters.llm.guarded_llm_call", mock_call):
            assessment = await LLMRater("llm", ["m1", "m2"]).assess(ARTIFACT)
        assert assessment.rating_vector.states == (1, 1, 1)
        assert mock_call.await_count == 2

    @pytest.mark.asyncio
    async def test_falls_back_on_open_circuit(self) -> None:
        breaker = CircuitBreaker(name="test-breaker")
        mock_call = AsyncMock(
            side_effect=[CircuitBreakerError(breaker), _reply("<C L E>")]
        )
        with patch("ergorate.raters.llm.guarded_llm_call", mock_call):
            assessment = await LLMRater("llm", ["m1", "m2"]).assess(ARTIFACT)
        assert assessment.rating_vector.states == (2, 2, 2)

    @pytest.mark.asyncio
    async def test_last_notation_error_propagates(self) -> None:
        mock_call = AsyncMock(return_value=_reply("<X Y Z>"))
        with patch("ergorate.raters.llm.guarded_llm_call", mock_call):
            with pytest.raises(NotationError):
                await LLMRater("llm", ["m1"]).assess(ARTIFACT)

    @pytest.mark.asyncio
    async def test_provider_failure_wrapped(self) -> None:
        mock_call = AsyncMock(side_effect=RuntimeError("503 upstream"))
        with patch("ergorate.raters.llm.guarded_llm_call", mock_call):
            with pytest.raises(RatingError, match="every model") as exc:
                await LLMRater("llm", ["m1", "m2"]).assess(ARTIFACT)
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert exc.value.artifact_id == "svc.py"

    @pytest.mark.asyncio
    async def test_model_failure_logs_retryability(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_call = AsyncMock(
            side_effect=[RuntimeError("503 upstream"), _reply("<F D G>")]
        )
        with (
            caplog.at_level(logging.WARNING, logger="ergorate.raters.llm"),
            patch("ergorate.raters.llm.guarded_llm_call", mock_call),
        ):
            await LLMRater("llm", ["m1", "m2"]).assess(ARTIFACT)
        assert "event=rater_model_failed model=m1" in caplog.text
        assert "retryable=True" in caplog.text


def test_rating_prompt_lists_every_symbol() -> None:
    for symbol in "OVCFTHLDSAEG":
        assert f"   {symbol} = " in RATING_SYSTEM_PROMPT


def test_rating_prompt_carries_artifact() -> None:
    prompt = build_rating_prompt(
        Artifact(id="lib.py", content_snapshot="x = 1", context_tag="library")  # type: ignore[arg-type]
    )
    assert "Artifact: lib.py" in prompt
    assert "Context: library" in prompt
    assert "x = 1" in prompt
