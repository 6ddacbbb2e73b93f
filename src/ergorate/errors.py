"""Domain error taxonomy.

Every error names the artifact it concerns and, where one is involved,
the axis. A failed classification is always an error, never a guessed
rating.
"""

from __future__ import annotations

from ergorate.constants import Axis


class RatingError(Exception):
    """Base class for rating engine failures."""

    def __init__(
        self,
        cause: str,
        *,
        artifact_id: str | None = None,
        axis: Axis | None = None,
    ) -> None:
        self.cause = cause
        self.artifact_id = artifact_id
        self.axis = axis
        super().__init__(self._render())

    def _render(self) -> str:
        parts: list[str] = []
        if self.artifact_id is not None:
            parts.append(f"artifact={self.artifact_id}")
        if self.axis is not None:
            parts.append(f"axis={self.axis.value}")
        prefix = f"[{' '.join(parts)}] " if parts else ""
        return f"{prefix}{self.cause}"


class InsufficientInputError(RatingError):
    """Artifact is too sparse to classify on some axis."""


class RaterTimeoutError(RatingError):
    """An external rater did not respond in time."""

    def __init__(
        self,
        cause: str,
        *,
        rater_id: str,
        artifact_id: str | None = None,
    ) -> None:
        self.rater_id = rater_id
        super().__init__(cause, artifact_id=artifact_id)


class InsufficientRatersError(RatingError):
    """Fewer than ``min_raters`` valid assessments are available."""

    def __init__(
        self,
        cause: str,
        *,
        available: int,
        required: int,
        artifact_id: str | None = None,
    ) -> None:
        self.available = available
        self.required = required
        super().__init__(cause, artifact_id=artifact_id)


class UnreachableTargetError(RatingError):
    """Planner target lies outside an axis's state domain."""


class NotationError(RatingError):
    """Notation string is malformed or uses a foreign symbol."""


class DuplicateAssessmentError(RatingError):
    """One rater submitted more than one assessment for an artifact."""
