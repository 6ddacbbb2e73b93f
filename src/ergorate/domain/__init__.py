"""Domain vocabulary — axes, value objects and notation."""

from ergorate.domain.axes import AXIS_DOMAIN, axis_definition, parse_axis
from ergorate.domain.notation import format_notation, parse_notation
from ergorate.domain.value_objects import (
    Artifact,
    AxisRating,
    RaterAssessment,
    RatingVector,
)

__all__ = [
    "AXIS_DOMAIN",
    "Artifact",
    "AxisRating",
    "RaterAssessment",
    "RatingVector",
    "axis_definition",
    "format_notation",
    "parse_axis",
    "parse_notation",
]
