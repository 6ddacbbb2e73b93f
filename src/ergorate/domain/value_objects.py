"""Frozen, identity-less domain types shared across all layers.

These are the vocabulary of the system. A RatingVector is always fully
populated: constructing one with a missing axis or an out-of-domain state
fails instead of producing a sparse vector.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from ergorate.constants import (
    AXIS_ORDER,
    MAX_STATE,
    MIN_STATE,
    Axis,
    ConfidenceLevel,
    ContextTag,
)


@dataclass(frozen=True)
class Artifact:
    """The thing being rated. Never carries a rating itself."""

    id: str
    content_snapshot: str
    context_tag: ContextTag = ContextTag.APPLICATION

    def __post_init__(self) -> None:
        if not self.id:
            msg = "Artifact id must be non-empty"
            raise ValueError(msg)
        # Accept plain strings from YAML/JSON callers
        object.__setattr__(self, "context_tag", ContextTag(self.context_tag))


@dataclass(frozen=True)
class AxisRating:
    """One state on one axis, with optional confidence and rationale.

    Equality compares axis and state only; confidence and rationale are
    annotations.
    """

    axis: Axis
    state: int
    confidence: ConfidenceLevel | None = field(default=None, compare=False)
    rationale: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.state, bool) or not isinstance(self.state, int):
            msg = f"{self.axis.value}: state must be an int, got {self.state!r}"
            raise TypeError(msg)
        if not MIN_STATE <= self.state <= MAX_STATE:
            msg = (
                f"{self.axis.value}: state {self.state} outside "
                f"{MIN_STATE}..{MAX_STATE}"
            )
            raise ValueError(msg)


@dataclass(frozen=True)
class RatingVector:
    """Exactly one AxisRating per axis."""

    expressiveness: AxisRating
    dependency_flow: AxisRating
    error_surface: AxisRating

    def __post_init__(self) -> None:
        for axis in AXIS_ORDER:
            rating = getattr(self, axis.value)
            if not isinstance(rating, AxisRating) or rating.axis != axis:
                msg = f"Slot '{axis.value}' must hold an AxisRating for that axis"
                raise ValueError(msg)

    @classmethod
    def from_ratings(
        cls, ratings: Mapping[Axis, AxisRating]
    ) -> RatingVector:
        missing = [a.value for a in AXIS_ORDER if a not in ratings]
        if missing:
            msg = f"RatingVector missing axes: {', '.join(missing)}"
            raise ValueError(msg)
        return cls(**{a.value: ratings[a] for a in AXIS_ORDER})

    @classmethod
    def from_states(
        cls,
        states: Mapping[Axis, int],
        *,
        confidence: ConfidenceLevel | None = None,
    ) -> RatingVector:
        missing = [a.value for a in AXIS_ORDER if a not in states]
        if missing:
            msg = f"RatingVector missing axes: {', '.join(missing)}"
            raise ValueError(msg)
        return cls.from_ratings({
            a: AxisRating(a, states[a], confidence) for a in AXIS_ORDER
        })

    @classmethod
    def of(
        cls, expressiveness: int, dependency_flow: int, error_surface: int
    ) -> RatingVector:
        """Build from bare states in notation order."""
        return cls.from_states({
            Axis.EXPRESSIVENESS: expressiveness,
            Axis.DEPENDENCY_FLOW: dependency_flow,
            Axis.ERROR_SURFACE: error_surface,
        })

    def rating(self, axis: Axis) -> AxisRating:
        return getattr(self, axis.value)

    def state(self, axis: Axis) -> int:
        return self.rating(axis).state

    @property
    def states(self) -> tuple[int, int, int]:
        return (
            self.expressiveness.state,
            self.dependency_flow.state,
            self.error_surface.state,
        )

    def __iter__(self) -> Iterator[AxisRating]:
        return iter(self.rating(a) for a in AXIS_ORDER)


@dataclass(frozen=True)
class RaterAssessment:
    """One rater's RatingVector for one artifact."""

    rater_id: str
    artifact_id: str
    rating_vector: RatingVector
    timestamp: datetime
