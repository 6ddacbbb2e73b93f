"""Planning — ordered single-step moves between ratings."""

from ergorate.planning.planner import (
    TransformationPlan,
    TransformationPlanner,
    TransformationStep,
    plan,
)

__all__ = [
    "TransformationPlan",
    "TransformationPlanner",
    "TransformationStep",
    "plan",
]
