"""Shared test fixtures — artifacts, vectors, assessment factories."""

import os

# Force demo API keys for all tests — no real LLM calls.
os.environ["ANTHROPIC_API_KEY"] = "for-demo-purposes-only"
os.environ["OPENAI_API_KEY"] = "for-demo-purposes-only"

from collections.abc import Callable, Mapping
from typing import TypeAlias
from datetime import UTC, datetime
from pathlib import Path

import pytest

from ergorate.constants import AXIS_ORDER, Axis
from ergorate.domain.value_objects import (
    Artifact,
    AxisRating,
    RaterAssessment,
    RatingVector,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
CALIBRATION_DIR = FIXTURES_DIR / "calibration"

GUARDED_SOURCE = '''\
class PricingError(ValueError):
    """Raised when an order cannot be priced."""


def line_total(item):
    if item.quantity < 0:
        raise PricingError(item.sku)
    return item.quantity * item.unit_price


def order_total(items):
    return sum(line_total(item) for item in items)


def describe(items):
    return f"{len(items)} items"
'''

AssessmentFactory: TypeAlias = Callable[..., RaterAssessment]


@pytest.fixture
def calibration_dir() -> Path:
    return CALIBRATION_DIR


@pytest.fixture
def guarded_artifact() -> Artifact:
    """Python module that classifies as <F D G>."""
    return Artifact(id="orders.py", content_snapshot=GUARDED_SOURCE)


@pytest.fixture
def make_assessment() -> AssessmentFactory:
    """Build a RaterAssessment from bare states.

    ``rationales`` maps an axis to the rater's reason for that axis.
    """

    def _make(
        rater_id: str,
        states: tuple[int, int, int],
        *,
        artifact_id: str = "artifact-1",
        rationales: Mapping[Axis, str] | None = None,
    ) -> RaterAssessment:
        notes = rationales or {}
        vector = RatingVector.from_ratings({
            axis: AxisRating(axis, state, rationale=notes.get(axis, ""))
            for axis, state in zip(AXIS_ORDER, states, strict=True)
        })
        return RaterAssessment(
            rater_id=rater_id,
            artifact_id=artifact_id,
            rating_vector=vector,
            timestamp=datetime(2026, 1, 1, tzinfo=UTC),
        )

    return _make
