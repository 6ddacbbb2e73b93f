"""Local rater backed by the heuristic AxisClassifier."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

from ergorate.analysis.classifier import AxisClassifier
from ergorate.analysis.schemas import ClassificationContext
from ergorate.domain.value_objects import Artifact, RaterAssessment


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ClassifierRater:
    """Runs all three decision trees in a worker thread.

    A classification failure on any axis propagates, which invalidates
    this rater's assessment only.
    """

    def __init__(
        self,
        rater_id: str = "heuristic-classifier",
        *,
        classifier: AxisClassifier | None = None,
        context: ClassificationContext | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.rater_id = rater_id
        self._classifier = classifier or AxisClassifier()
        self._context = context
        self._clock = clock

    async def assess(self, artifact: Artifact) -> RaterAssessment:
        vector = await asyncio.to_thread(
            self._classifier.classify_all, artifact, self._context
        )
        return RaterAssessment(
            rater_id=self.rater_id,
            artifact_id=artifact.id,
            rating_vector=vector,
            timestamp=self._clock(),
        )
