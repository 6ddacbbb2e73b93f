"""In-memory fake raters for testing.

Protocol-compatible stand-ins for external raters: fixed answers,
optional latency, optional failure. No network, no model calls.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from ergorate.domain.value_objects import Artifact, RaterAssessment, RatingVector


class FixedRater:
    """Always returns the same RatingVector after an optional delay."""

    def __init__(
        self,
        rater_id: str,
        vector: RatingVector,
        *,
        delay: float = 0.0,
    ) -> None:
        self.rater_id = rater_id
        self._vector = vector
        self._delay = delay
        self.calls = 0

    async def assess(self, artifact: Artifact) -> RaterAssessment:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        return RaterAssessment(
            rater_id=self.rater_id,
            artifact_id=artifact.id,
            rating_vector=self._vector,
            timestamp=datetime.now(UTC),
        )


class FailingRater:
    """Raises the given error after an optional delay."""

    def __init__(
        self,
        rater_id: str,
        error: Exception,
        *,
        delay: float = 0.0,
    ) -> None:
        self.rater_id = rater_id
        self._error = error
        self._delay = delay

    async def assess(self, artifact: Artifact) -> RaterAssessment:
        if self._delay:
            await asyncio.sleep(self._delay)
        raise self._error
