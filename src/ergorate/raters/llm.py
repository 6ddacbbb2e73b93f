"""Model-backed rater over litellm with primary→fallback models."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from circuitbreaker import CircuitBreakerError
from pydantic import BaseModel, Field, ValidationError

from ergorate.constants import AXIS_ORDER, Axis
from ergorate.domain.notation import parse_notation
from ergorate.domain.value_objects import (
    Artifact,
    AxisRating,
    RaterAssessment,
    RatingVector,
)
from ergorate.errors import NotationError, RatingError
from ergorate.prompts import RATING_SYSTEM_PROMPT, build_rating_prompt
from ergorate.raters._llm_call import guarded_llm_call
from ergorate.resilience.errors import is_retryable

logger = logging.getLogger(__name__)


class RatingReply(BaseModel):
    """JSON shape a model rater must answer with."""

    notation: str
    rationales: dict[str, str] = Field(
        default_factory=lambda: dict[str, str]()
    )


def parse_rating_reply(content: str, artifact_id: str) -> RatingVector:
    """Turn a raw model reply into a RatingVector.

    Strict: a malformed payload or notation raises rather than
    yielding a best-effort rating.
    """
    try:
        reply = RatingReply.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise NotationError(
            f"unparseable rater reply: {exc}", artifact_id=artifact_id
        ) from exc

    try:
        parsed = parse_notation(reply.notation)
    except NotationError as exc:
        raise NotationError(
            exc.cause, artifact_id=artifact_id, axis=exc.axis
        ) from exc

    ratings: dict[Axis, AxisRating] = {
        axis: AxisRating(
            axis=axis,
            state=parsed.state(axis),
            rationale=reply.rationales.get(axis.value, ""),
        )
        for axis in AXIS_ORDER
    }
    return RatingVector.from_ratings(ratings)


class LLMRater:
    """External rater that asks a model for a notation string."""

    def __init__(
        self,
        rater_id: str,
        model_chain: Sequence[str],
        *,
        timeout_seconds: int = 60,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        if not model_chain:
            msg = "model_chain must contain at least one model"
            raise ValueError(msg)
        self.rater_id = rater_id
        self._models = list(model_chain)
        self._timeout = timeout_seconds
        self._clock = clock

    async def assess(self, artifact: Artifact) -> RaterAssessment:
        messages = [
            {"role": "system", "content": RATING_SYSTEM_PROMPT},
            {"role": "user", "content": build_rating_prompt(artifact)},
        ]

        last_error: Exception | None = None
        for model in self._models:
            try:
                result = await guarded_llm_call(
                    model, messages, self._timeout
                )
                vector = parse_rating_reply(result.content, artifact.id)
            except CircuitBreakerError as exc:
                logger.warning(
                    "event=circuit_open model=%s rater=%s artifact=%s",
                    model,
                    self.rater_id,
                    artifact.id,
                )
                last_error = exc
                continue
            except Exception as exc:
                logger.warning(
                    "event=rater_model_failed model=%s rater=%s "
                    "artifact=%s retryable=%s error=%s",
                    model,
                    self.rater_id,
                    artifact.id,
                    is_retryable(exc),
                    exc,
                )
                last_error = exc
                continue
            return RaterAssessment(
                rater_id=self.rater_id,
                artifact_id=artifact.id,
                rating_vector=vector,
                timestamp=self._clock(),
            )

        if isinstance(last_error, RatingError):
            raise last_error
        raise RatingError(
            f"every model in the chain failed: {last_error}",
            artifact_id=artifact.id,
        ) from last_error
