"""Ordered single-step improvement plans between two RatingVectors.

A plan is a monotone, axis-grouped walk through the 4x4x4 rating lattice:
every step moves exactly one axis by exactly one state, all steps of a
higher-priority axis come before any step of a lower-priority one, and
within an axis the steps run from ``current`` toward ``target``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass

from ergorate.constants import (
    AXIS_ORDER,
    DEFAULT_AXIS_PRIORITY,
    MAX_STATE,
    MIN_STATE,
    Axis,
)
from ergorate.domain.value_objects import RatingVector
from ergorate.errors import UnreachableTargetError
from ergorate.planning.transitions import transition_rationale

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformationStep:
    """A one-state move on exactly one axis."""

    axis: Axis
    from_state: int
    to_state: int
    rationale: str

    def __post_init__(self) -> None:
        if abs(self.to_state - self.from_state) != 1:
            msg = (
                f"{self.axis.value}: step {self.from_state} -> "
                f"{self.to_state} is not a single-state move"
            )
            raise ValueError(msg)


@dataclass(frozen=True)
class TransformationPlan:
    current: RatingVector
    target: RatingVector
    axis_priority: tuple[Axis, ...]
    steps: tuple[TransformationStep, ...]

    @property
    def is_empty(self) -> bool:
        return not self.steps

    def steps_for(self, axis: Axis) -> tuple[TransformationStep, ...]:
        return tuple(s for s in self.steps if s.axis == axis)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[TransformationStep]:
        return iter(self.steps)


def validate_priority(axis_priority: Sequence[Axis]) -> tuple[Axis, ...]:
    """Require a permutation of all three axes."""
    priority = tuple(axis_priority)
    if len(priority) != len(AXIS_ORDER) or set(priority) != set(AXIS_ORDER):
        msg = (
            "axis_priority must list each axis exactly once, got "
            f"{[getattr(a, 'value', a) for a in priority]}"
        )
        raise ValueError(msg)
    return priority


def _coerce_target(
    target: RatingVector | Mapping[Axis, int],
    artifact_id: str | None,
) -> RatingVector:
    if isinstance(target, RatingVector):
        return target
    states: dict[Axis, int] = {}
    for axis in AXIS_ORDER:
        if axis not in target:
            raise UnreachableTargetError(
                "target has no state for this axis",
                artifact_id=artifact_id,
                axis=axis,
            )
        value = target[axis]
        if isinstance(value, bool) or not isinstance(value, int) or not (
            MIN_STATE <= value <= MAX_STATE
        ):
            raise UnreachableTargetError(
                f"target state {value!r} outside {MIN_STATE}..{MAX_STATE}",
                artifact_id=artifact_id,
                axis=axis,
            )
        states[axis] = value
    return RatingVector.from_states(states)


class TransformationPlanner:
    """Builds plans; holds only the default axis priority."""

    def __init__(
        self, axis_priority: Sequence[Axis] = DEFAULT_AXIS_PRIORITY
    ) -> None:
        self.axis_priority = validate_priority(axis_priority)

    def plan(
        self,
        current: RatingVector,
        target: RatingVector | Mapping[Axis, int],
        axis_priority: Sequence[Axis] | None = None,
        *,
        artifact_id: str | None = None,
    ) -> TransformationPlan:
        """Emit every adjacent move from ``current`` to ``target``.

        Raises ``UnreachableTargetError`` if ``target`` names a state
        outside an axis domain. Equal vectors give an empty plan.
        """
        goal = _coerce_target(target, artifact_id)
        priority = (
            validate_priority(axis_priority)
            if axis_priority is not None
            else self.axis_priority
        )

        steps: list[TransformationStep] = []
        for axis in priority:
            start, end = current.state(axis), goal.state(axis)
            direction = 1 if end > start else -1
            for state in range(start, end, direction):
                steps.append(
                    TransformationStep(
                        axis=axis,
                        from_state=state,
                        to_state=state + direction,
                        rationale=transition_rationale(
                            axis, state, state + direction
                        ),
                    )
                )

        logger.debug(
            "event=plan_built artifact=%s steps=%d priority=%s",
            artifact_id,
            len(steps),
            ",".join(a.value for a in priority),
        )
        return TransformationPlan(
            current=current,
            target=goal,
            axis_priority=priority,
            steps=tuple(steps),
        )


def plan(
    current: RatingVector,
    target: RatingVector | Mapping[Axis, int],
    axis_priority: Sequence[Axis] = DEFAULT_AXIS_PRIORITY,
    *,
    artifact_id: str | None = None,
) -> TransformationPlan:
    """Functional wrapper around ``TransformationPlanner``."""
    return TransformationPlanner(axis_priority).plan(
        current, target, artifact_id=artifact_id
    )
