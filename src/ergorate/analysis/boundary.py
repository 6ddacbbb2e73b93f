"""Forced yes/no questions for the ambiguous middle boundary of each axis.

Each axis has exactly one named boundary, between states 1 and 2. A
resolver always returns one of its two candidates; there is no defer.
Its answer text becomes the rationale of the resulting rating.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias
from dataclasses import dataclass

from ergorate.analysis.features import extract_features
from ergorate.analysis.schemas import ArtifactFeatures, ClassificationContext
from ergorate.constants import MAX_FUNCTION_LINES, Axis
from ergorate.domain.value_objects import Artifact

Evidence: TypeAlias = tuple[bool, str]

BOUNDARY_PAIR: tuple[int, int] = (1, 2)


@dataclass(frozen=True)
class BoundaryDecision:
    """The state a resolver chose and the answer that chose it."""

    state: int
    answer: str


@dataclass(frozen=True)
class BoundaryResolver:
    """A single forced question whose answers map onto two states."""

    axis: Axis
    question: str
    yes_state: int
    no_state: int
    test: Callable[[ArtifactFeatures], Evidence]

    @property
    def candidate_pair(self) -> tuple[int, int]:
        return (
            min(self.yes_state, self.no_state),
            max(self.yes_state, self.no_state),
        )

    def decide_features(self, features: ArtifactFeatures) -> BoundaryDecision:
        answer, evidence = self.test(features)
        verdict = "Yes" if answer else "No"
        return BoundaryDecision(
            state=self.yes_state if answer else self.no_state,
            answer=f"{self.question} {verdict} ({evidence}).",
        )

    def decide(
        self,
        artifact: Artifact,
        context: ClassificationContext | None = None,
    ) -> BoundaryDecision:
        language = context.language if context else None
        features = extract_features(artifact.content_snapshot, language)
        return self.decide_features(features)

    def resolve(
        self,
        artifact: Artifact,
        candidate_pair: tuple[int, int],
        context: ClassificationContext | None = None,
    ) -> int:
        """Return whichever of ``candidate_pair`` the question selects."""
        if tuple(sorted(candidate_pair)) != self.candidate_pair:
            msg = (
                f"{self.axis.value} has no boundary between "
                f"{candidate_pair[0]} and {candidate_pair[1]}; "
                f"its boundary is {self.candidate_pair}"
            )
            raise ValueError(msg)
        return self.decide(artifact, context).state


def _fits_on_screen(f: ArtifactFeatures) -> Evidence:
    return (
        f.longest_function <= MAX_FUNCTION_LINES,
        f"longest function spans {f.longest_function} lines",
    )


def _shared_state_is_fixed(f: ArtifactFeatures) -> Evidence:
    if f.rebound_shared:
        return False, "rebound or mutated: " + ", ".join(f.rebound_shared)
    return True, "bound once: " + ", ".join(f.shared_reads or ("none",))


def _raises_dominate(f: ArtifactFeatures) -> Evidence:
    return (
        f.raises > f.sentinel_returns,
        f"{f.raises} raise(s) vs {f.sentinel_returns} sentinel return(s)",
    )


BOUNDARY_RESOLVERS: dict[Axis, BoundaryResolver] = {
    Axis.EXPRESSIVENESS: BoundaryResolver(
        axis=Axis.EXPRESSIVENESS,
        question="Does every function fit on one screen?",
        yes_state=BOUNDARY_PAIR[1],
        no_state=BOUNDARY_PAIR[0],
        test=_fits_on_screen,
    ),
    Axis.DEPENDENCY_FLOW: BoundaryResolver(
        axis=Axis.DEPENDENCY_FLOW,
        question=(
            "Is every module-level name that functions read "
            "bound once and never mutated?"
        ),
        yes_state=BOUNDARY_PAIR[1],
        no_state=BOUNDARY_PAIR[0],
        test=_shared_state_is_fixed,
    ),
    Axis.ERROR_SURFACE: BoundaryResolver(
        axis=Axis.ERROR_SURFACE,
        question="Do raise statements outnumber sentinel returns?",
        yes_state=BOUNDARY_PAIR[1],
        no_state=BOUNDARY_PAIR[0],
        test=_raises_dominate,
    ),
}


def resolver_for(axis: Axis) -> BoundaryResolver:
    return BOUNDARY_RESOLVERS[axis]
