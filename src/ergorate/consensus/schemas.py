"""Frozen consensus output types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ergorate.constants import Axis, ConsensusCategory
from ergorate.domain.value_objects import RatingVector


@dataclass(frozen=True)
class MinorityState:
    """A state some raters chose that did not become the consensus."""

    state: int
    count: int
    rater_ids: tuple[str, ...]
    rationales: tuple[str, ...]


@dataclass(frozen=True)
class Divergence:
    """Disagreement on one axis, one entry per minority state."""

    axis: Axis
    minority: tuple[MinorityState, ...]

    @property
    def minority_states(self) -> tuple[int, ...]:
        return tuple(m.state for m in self.minority)


@dataclass(frozen=True)
class ConsensusResult:
    """Aggregated view of N raters on one artifact.

    Built all at once from a fixed list of assessments and never
    mutated; recompute rather than patch.
    """

    artifact_id: str
    consensus_vector: RatingVector
    per_axis_agreement: Mapping[Axis, float]
    per_axis_category: Mapping[Axis, ConsensusCategory]
    category: ConsensusCategory
    divergences: tuple[Divergence, ...]
    tie_broken: Mapping[Axis, bool]
    rater_ids: tuple[str, ...]

    def __post_init__(self) -> None:
        for name in ("per_axis_agreement", "per_axis_category", "tie_broken"):
            frozen = MappingProxyType(dict(getattr(self, name)))
            object.__setattr__(self, name, frozen)

    @property
    def rater_count(self) -> int:
        return len(self.rater_ids)

    def agreement(self, axis: Axis) -> float:
        return self.per_axis_agreement[axis]

    def divergence(self, axis: Axis) -> Divergence | None:
        for d in self.divergences:
            if d.axis == axis:
                return d
        return None
