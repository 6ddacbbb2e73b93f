"""Export module — JSON records for vectors, consensus and plans."""

from ergorate.export.json_export import (
    AssessmentRecord,
    ConsensusRecord,
    DivergenceRecord,
    PlanStepRecord,
    assessments_from_json,
    consensus_record,
    consensus_to_dict,
    export_consensus_json,
    export_plan_json,
    plan_to_dicts,
    vector_to_dict,
)

__all__ = [
    "AssessmentRecord",
    "ConsensusRecord",
    "DivergenceRecord",
    "PlanStepRecord",
    "assessments_from_json",
    "consensus_record",
    "consensus_to_dict",
    "export_consensus_json",
    "export_plan_json",
    "plan_to_dicts",
    "vector_to_dict",
]
