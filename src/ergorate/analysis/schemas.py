"""Frozen value types for classifier inputs and outputs."""

from __future__ import annotations

from dataclasses import dataclass, field

from ergorate.constants import Axis, ConfidenceLevel
from ergorate.domain.value_objects import AxisRating


@dataclass(frozen=True)
class ClassificationContext:
    """Caller-supplied facts the artifact content cannot reveal.

    ``dependency_edges`` are (source, target) module references from
    outside the snapshot, merged into the call graph before cycle
    detection. ``language`` forces a parser; None means auto-detect.
    """

    language: str | None = None
    dependency_edges: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class ArtifactFeatures:
    """Structural signals extracted from one content snapshot."""

    parser: str  # "tree_sitter" or "lexical"
    code_lines: int
    defined_names: tuple[str, ...] = ()
    function_names: tuple[str, ...] = ()
    magic_numbers: int = 0
    ceremony_lines: int = 0
    max_nesting: int = 0
    longest_function: int = 0
    call_edges: tuple[tuple[str, str], ...] = ()
    # DependencyFlow
    hidden_coupling: tuple[str, ...] = ()  # strong signals
    shared_reads: tuple[str, ...] = ()  # module-level names read in functions
    rebound_shared: tuple[str, ...] = ()  # shared names bound/mutated at module level
    # ErrorSurface
    try_blocks: int = 0
    swallowed_handlers: int = 0
    sentinel_returns: int = 0
    raises: int = 0
    generic_raises: int = 0
    specific_raises: int = 0
    raised_types: tuple[str, ...] = ()  # one entry per typed raise, sorted
    custom_error_types: tuple[str, ...] = field(default_factory=tuple)

    @property
    def error_constructs(self) -> int:
        return (
            self.try_blocks
            + self.swallowed_handlers
            + self.sentinel_returns
            + self.raises
        )


@dataclass(frozen=True)
class AxisRatingResult:
    """Outcome of classifying one artifact on one axis."""

    axis: Axis
    state: int
    confidence: ConfidenceLevel
    rationale: str
    resolved_boundary: bool = False

    def to_axis_rating(self) -> AxisRating:
        return AxisRating(
            axis=self.axis,
            state=self.state,
            confidence=self.confidence,
            rationale=self.rationale,
        )
