"""Heuristic classification — feature extraction, decision trees, boundaries."""

from ergorate.analysis.boundary import BoundaryResolver, resolver_for
from ergorate.analysis.classifier import AxisClassifier, classify
from ergorate.analysis.schemas import (
    ArtifactFeatures,
    AxisRatingResult,
    ClassificationContext,
)

__all__ = [
    "ArtifactFeatures",
    "AxisClassifier",
    "AxisRatingResult",
    "BoundaryResolver",
    "ClassificationContext",
    "classify",
    "resolver_for",
]
