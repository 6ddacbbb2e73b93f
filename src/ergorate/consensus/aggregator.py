"""Combine independent rater assessments into a consensus.

Per axis the consensus state is the mode of the submitted states and
``agreement = count(mode) / raters``. When several states tie for the
mode, the default policy picks the one closest to state 0 and flags the
axis as tie-broken. The result never depends on the order assessments
are supplied in.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import TypeAlias

from ergorate.consensus.schemas import (
    ConsensusResult,
    Divergence,
    MinorityState,
)
from ergorate.constants import (
    AXIS_ORDER,
    CATEGORY_RANK,
    DEFAULT_MIN_RATERS,
    Agreement,
    Axis,
    ConfidenceLevel,
    ConsensusCategory,
)
from ergorate.domain.value_objects import (
    AxisRating,
    RaterAssessment,
    RatingVector,
)
from ergorate.errors import DuplicateAssessmentError, InsufficientRatersError

logger = logging.getLogger(__name__)

TieBreakPolicy: TypeAlias = Callable[[Axis, Sequence[int]], int]


def break_tie_toward_worst(_axis: Axis, tied: Sequence[int]) -> int:
    """Default policy: the tied state closest to state 0."""
    return min(tied)


def categorize(agreement: float) -> ConsensusCategory:
    """Map an agreement fraction onto its category band."""
    if agreement >= Agreement.STABLE:
        return ConsensusCategory.STABLE
    if agreement >= Agreement.MOSTLY_STABLE:
        return ConsensusCategory.MOSTLY_STABLE
    if agreement >= Agreement.DISPUTED:
        return ConsensusCategory.DISPUTED
    return ConsensusCategory.UNSTABLE


def worst_category(
    categories: Iterable[ConsensusCategory],
) -> ConsensusCategory:
    return max(categories, key=lambda c: CATEGORY_RANK[c])


_CATEGORY_CONFIDENCE: dict[ConsensusCategory, ConfidenceLevel] = {
    ConsensusCategory.STABLE: ConfidenceLevel.HIGH,
    ConsensusCategory.MOSTLY_STABLE: ConfidenceLevel.MEDIUM,
    ConsensusCategory.DISPUTED: ConfidenceLevel.LOW,
    ConsensusCategory.UNSTABLE: ConfidenceLevel.LOW,
}


class ConsensusAggregator:
    """Aggregates assessments for one artifact at a time."""

    def __init__(
        self,
        min_raters: int = DEFAULT_MIN_RATERS,
        tie_break: TieBreakPolicy | None = None,
    ) -> None:
        if min_raters < 1:
            msg = f"min_raters must be at least 1, got {min_raters}"
            raise ValueError(msg)
        self.min_raters = min_raters
        self.tie_break = tie_break or break_tie_toward_worst

    def aggregate(
        self,
        assessments: Sequence[RaterAssessment],
        *,
        artifact_id: str | None = None,
    ) -> ConsensusResult:
        """Build the consensus for ``artifact_id``.

        When ``artifact_id`` is omitted every assessment must concern
        the same artifact. Raises ``InsufficientRatersError`` before and
        after filtering out other artifacts.
        """
        if len(assessments) < self.min_raters:
            raise InsufficientRatersError(
                f"{len(assessments)} assessment(s) submitted, "
                f"{self.min_raters} required",
                available=len(assessments),
                required=self.min_raters,
                artifact_id=artifact_id or _sole_artifact_id(assessments),
            )

        target = artifact_id or _single_artifact(assessments)
        relevant = [a for a in assessments if a.artifact_id == target]
        if len(relevant) < self.min_raters:
            raise InsufficientRatersError(
                f"{len(relevant)} assessment(s) for this artifact, "
                f"{self.min_raters} required",
                available=len(relevant),
                required=self.min_raters,
                artifact_id=target,
            )

        # Canonical order makes every derived tuple order-independent
        relevant = sorted(relevant, key=lambda a: a.rater_id)
        _reject_duplicates(relevant, target)
        total = len(relevant)

        ratings: dict[Axis, AxisRating] = {}
        agreement: dict[Axis, float] = {}
        categories: dict[Axis, ConsensusCategory] = {}
        tie_broken: dict[Axis, bool] = {}
        divergences: list[Divergence] = []

        for axis in AXIS_ORDER:
            counts = Counter(a.rating_vector.state(axis) for a in relevant)
            top = max(counts.values())
            tied = sorted(s for s, c in counts.items() if c == top)
            state = tied[0] if len(tied) == 1 else self._break_tie(axis, tied)

            agreement[axis] = top / total
            categories[axis] = categorize(agreement[axis])
            tie_broken[axis] = len(tied) > 1
            ratings[axis] = AxisRating(
                axis=axis,
                state=state,
                confidence=_CATEGORY_CONFIDENCE[categories[axis]],
                rationale=_consensus_rationale(top, total, tie_broken[axis]),
            )
            if top < total:
                divergences.append(_divergence(axis, state, relevant))

        result = ConsensusResult(
            artifact_id=target,
            consensus_vector=RatingVector.from_ratings(ratings),
            per_axis_agreement=agreement,
            per_axis_category=categories,
            category=worst_category(categories.values()),
            divergences=tuple(divergences),
            tie_broken=tie_broken,
            rater_ids=tuple(a.rater_id for a in relevant),
        )
        logger.info(
            "event=consensus_built artifact=%s raters=%d category=%s "
            "divergent_axes=%d",
            target,
            total,
            result.category.value,
            len(divergences),
        )
        return result

    def _break_tie(self, axis: Axis, tied: list[int]) -> int:
        chosen = self.tie_break(axis, tuple(tied))
        if chosen not in tied:
            msg = (
                f"Tie-break policy returned {chosen} for {axis.value}, "
                f"not one of the tied states {tied}"
            )
            raise ValueError(msg)
        return chosen


def aggregate(
    assessments: Sequence[RaterAssessment],
    min_raters: int = DEFAULT_MIN_RATERS,
    *,
    artifact_id: str | None = None,
    tie_break: TieBreakPolicy | None = None,
) -> ConsensusResult:
    """Functional wrapper around ``ConsensusAggregator``."""
    return ConsensusAggregator(min_raters, tie_break).aggregate(
        assessments, artifact_id=artifact_id
    )


def _sole_artifact_id(assessments: Sequence[RaterAssessment]) -> str | None:
    ids = {a.artifact_id for a in assessments}
    return next(iter(ids)) if len(ids) == 1 else None


def _single_artifact(assessments: Sequence[RaterAssessment]) -> str:
    ids = sorted({a.artifact_id for a in assessments})
    if len(ids) != 1:
        msg = (
            "Assessments cover several artifacts "
            f"({', '.join(ids)}); pass artifact_id explicitly"
        )
        raise ValueError(msg)
    return ids[0]


def _reject_duplicates(
    assessments: Sequence[RaterAssessment], artifact_id: str
) -> None:
    seen = Counter(a.rater_id for a in assessments)
    dupes = sorted(r for r, n in seen.items() if n > 1)
    if dupes:
        raise DuplicateAssessmentError(
            f"rater(s) {', '.join(dupes)} submitted more than once",
            artifact_id=artifact_id,
        )


def _consensus_rationale(top: int, total: int, tie_broken: bool) -> str:
    text = f"{top}/{total} raters agree"
    if tie_broken:
        text += "; tie broken toward the less desirable state"
    return text


def _divergence(
    axis: Axis, consensus_state: int, assessments: Sequence[RaterAssessment]
) -> Divergence:
    by_state: dict[int, list[RaterAssessment]] = defaultdict(list)
    for a in assessments:
        by_state[a.rating_vector.state(axis)].append(a)

    minority = tuple(
        MinorityState(
            state=state,
            count=len(by_state[state]),
            rater_ids=tuple(a.rater_id for a in by_state[state]),
            rationales=tuple(
                a.rating_vector.rating(axis).rationale
                for a in by_state[state]
                if a.rating_vector.rating(axis).rationale
            ),
        )
        for state in sorted(by_state)
        if state != consensus_state
    )
    return Divergence(axis=axis, minority=minority)
