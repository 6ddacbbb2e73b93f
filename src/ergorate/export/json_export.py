"""JSON export — structured records for vectors, consensus and plans."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from ergorate.consensus.schemas import ConsensusResult
from ergorate.constants import AXIS_ORDER, Axis
from ergorate.domain.axes import axis_definition
from ergorate.domain.notation import format_notation, parse_notation, symbol
from ergorate.domain.value_objects import (
    AxisRating,
    RaterAssessment,
    RatingVector,
)
from ergorate.planning.planner import TransformationPlan


class MinorityRecord(BaseModel):
    state: int
    symbol: str
    count: int
    rater_ids: list[str]
    rationales: list[str]


class DivergenceRecord(BaseModel):
    axis: str
    minority_states: list[int]
    minority: list[MinorityRecord]


class ConsensusRecord(BaseModel):
    artifact_id: str
    notation: str
    per_axis_agreement: dict[str, float]
    per_axis_category: dict[str, str]
    category: str
    tie_broken: dict[str, bool]
    rater_ids: list[str]
    divergences: list[DivergenceRecord]


class PlanStepRecord(BaseModel):
    axis: str
    from_symbol: str
    to_symbol: str
    rationale: str


class AssessmentRecord(BaseModel):
    """Wire form of one rater's assessment."""

    rater_id: str
    artifact_id: str
    notation: str
    rationales: dict[str, str] = Field(
        default_factory=lambda: dict[str, str]()
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


def vector_to_dict(vector: RatingVector) -> dict[str, Any]:
    """Notation plus per-axis state detail."""
    axes: dict[str, Any] = {}
    for rating in vector:
        state = axis_definition(rating.axis).state(rating.state)
        axes[rating.axis.value] = {
            "state": rating.state,
            "symbol": state.symbol,
            "label": state.label,
            "confidence": rating.confidence.value if rating.confidence else None,
            "rationale": rating.rationale,
        }
    return {"notation": format_notation(vector), "axes": axes}


def consensus_record(result: ConsensusResult) -> ConsensusRecord:
    return ConsensusRecord(
        artifact_id=result.artifact_id,
        notation=format_notation(result.consensus_vector),
        per_axis_agreement={
            a.value: result.per_axis_agreement[a] for a in AXIS_ORDER
        },
        per_axis_category={
            a.value: result.per_axis_category[a].value for a in AXIS_ORDER
        },
        category=result.category.value,
        tie_broken={a.value: result.tie_broken[a] for a in AXIS_ORDER},
        rater_ids=list(result.rater_ids),
        divergences=[
            DivergenceRecord(
                axis=d.axis.value,
                minority_states=list(d.minority_states),
                minority=[
                    MinorityRecord(
                        state=m.state,
                        symbol=symbol(d.axis, m.state),
                        count=m.count,
                        rater_ids=list(m.rater_ids),
                        rationales=list(m.rationales),
                    )
                    for m in d.minority
                ],
            )
            for d in result.divergences
        ],
    )


def consensus_to_dict(result: ConsensusResult) -> dict[str, Any]:
    return consensus_record(result).model_dump()


def plan_to_dicts(plan: TransformationPlan) -> list[dict[str, Any]]:
    return [
        PlanStepRecord(
            axis=step.axis.value,
            from_symbol=symbol(step.axis, step.from_state),
            to_symbol=symbol(step.axis, step.to_state),
            rationale=step.rationale,
        ).model_dump()
        for step in plan.steps
    ]


def export_consensus_json(result: ConsensusResult) -> str:
    """Consensus wrapped in a ``generated_at`` envelope."""
    payload: dict[str, Any] = {
        "generated_at": datetime.now(UTC).isoformat(),
        "consensus": consensus_to_dict(result),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def export_plan_json(plan: TransformationPlan) -> str:
    payload: dict[str, Any] = {
        "generated_at": datetime.now(UTC).isoformat(),
        "current": format_notation(plan.current),
        "target": format_notation(plan.target),
        "axis_priority": [a.value for a in plan.axis_priority],
        "step_count": len(plan.steps),
        "steps": plan_to_dicts(plan),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def assessment_from_record(record: AssessmentRecord) -> RaterAssessment:
    parsed = parse_notation(record.notation)
    ratings: dict[Axis, AxisRating] = {
        axis: AxisRating(
            axis=axis,
            state=parsed.state(axis),
            rationale=record.rationales.get(axis.value, ""),
        )
        for axis in AXIS_ORDER
    }
    return RaterAssessment(
        rater_id=record.rater_id,
        artifact_id=record.artifact_id,
        rating_vector=RatingVector.from_ratings(ratings),
        timestamp=record.timestamp,
    )


def assessments_from_json(text: str) -> list[RaterAssessment]:
    """Read a JSON array of assessment records.

    Raises ``pydantic.ValidationError`` on shape errors and
    ``NotationError`` on bad notation.
    """
    raw: Any = json.loads(text)
    if not isinstance(raw, list):
        msg = "Expected a JSON array of assessments"
        raise ValueError(msg)
    return [
        assessment_from_record(AssessmentRecord.model_validate(item))
        for item in raw  # pyright: ignore[reportUnknownVariableType]
    ]
