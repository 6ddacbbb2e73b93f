"""Shared constants — single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON payloads,
CLI output, log lines) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class Axis(StrEnum):
    """The three rating axes, in canonical notation order."""

    EXPRESSIVENESS = "expressiveness"
    DEPENDENCY_FLOW = "dependency_flow"
    ERROR_SURFACE = "error_surface"


# Fixed axis order used by notation and RatingVector iteration.
AXIS_ORDER: tuple[Axis, ...] = (
    Axis.EXPRESSIVENESS,
    Axis.DEPENDENCY_FLOW,
    Axis.ERROR_SURFACE,
)

DEFAULT_AXIS_PRIORITY: tuple[Axis, ...] = (
    Axis.ERROR_SURFACE,
    Axis.DEPENDENCY_FLOW,
    Axis.EXPRESSIVENESS,
)


class ContextTag(StrEnum):
    """What kind of code an artifact is."""

    LIBRARY = "library"
    APPLICATION = "application"
    SCRIPT = "script"
    FRAMEWORK = "framework"


class ConfidenceLevel(StrEnum):
    """Qualitative confidence attached to one axis rating."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConsensusCategory(StrEnum):
    """Agreement band for a consensus, best to worst."""

    STABLE = "stable"
    MOSTLY_STABLE = "mostly_stable"
    DISPUTED = "disputed"
    UNSTABLE = "unstable"


# Worst-first ordering used to pick the overall category.
CATEGORY_RANK: dict[ConsensusCategory, int] = {
    ConsensusCategory.STABLE: 0,
    ConsensusCategory.MOSTLY_STABLE: 1,
    ConsensusCategory.DISPUTED: 2,
    ConsensusCategory.UNSTABLE: 3,
}


class RaterOutcome(StrEnum):
    """Outcome of one rater invocation inside a session."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


# ── Agreement Thresholds ─────────────────────────────────


class Agreement:
    """Inclusive lower bounds for consensus categories."""

    STABLE = 0.90
    MOSTLY_STABLE = 0.70
    DISPUTED = 0.50


# ── State Domain ─────────────────────────────────────────

MIN_STATE = 0
MAX_STATE = 3
STATES_PER_AXIS = 4

INSUFFICIENT_CONTEXT = "insufficient context"

# ── Classifier Heuristics ────────────────────────────────

# Expressiveness
CRYPTIC_NAME_RATIO = 0.5
CRYPTIC_NAME_MAX_LEN = 2
MAGIC_NUMBER_LIMIT = 5
CEREMONY_RATIO_HIGH = 0.30  # clearly buried in ceremony
CEREMONY_RATIO_LOW = 0.15  # clearly lean
MAX_FUNCTION_LINES = 40
MAX_NESTING_DEPTH = 3

# DependencyFlow
LINEAR_CHAIN_MIN_LENGTH = 3

# ErrorSurface
GENERIC_ERROR_TYPES = frozenset({
    "Exception",
    "BaseException",
    "RuntimeError",
    "Error",
    "error",
    "StandardError",
})

# ── Sessions ─────────────────────────────────────────────

DEFAULT_MIN_RATERS = 3
DEFAULT_RATER_TIMEOUT = 30.0
DEFAULT_RATER_CONCURRENCY = 4

# ── Circuit Breaker / Retry (LLM rater) ──────────────────

CB_LLM_FAILURE_THRESHOLD = 5
CB_LLM_RECOVERY_TIMEOUT = 30

RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_WAIT = 2
RETRY_MAX_WAIT = 30

LLM_MAX_OUTPUT_TOKENS = 1024
LLM_CONTENT_SNIPPET_CHARS = 12_000

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200
ID_HEX_LENGTH = 12
