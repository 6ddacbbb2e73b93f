"""Static rationale for every adjacent-state move on every axis."""

from __future__ import annotations

from ergorate.constants import Axis

TRANSITION_RATIONALES: dict[tuple[Axis, int, int], str] = {
    # Expressiveness: improving
    (Axis.EXPRESSIVENESS, 0, 1): (
        "Rename cryptic identifiers and lift magic literals into "
        "named constants."
    ),
    (Axis.EXPRESSIVENESS, 1, 2): (
        "Strip boilerplate: drop trivial accessors and pass-through "
        "wrappers so the intent is visible."
    ),
    (Axis.EXPRESSIVENESS, 2, 3): (
        "Flatten nesting with early returns and split long bodies "
        "into intention-revealing functions."
    ),
    # Expressiveness: regressing
    (Axis.EXPRESSIVENESS, 3, 2): (
        "Inline helpers into longer bodies where locality matters "
        "more than fluency."
    ),
    (Axis.EXPRESSIVENESS, 2, 1): (
        "Introduce explicit accessors and wrappers required by the "
        "surrounding framework."
    ),
    (Axis.EXPRESSIVENESS, 1, 0): (
        "Compress names and inline literals for size-constrained output."
    ),
    # DependencyFlow: improving
    (Axis.DEPENDENCY_FLOW, 0, 1): (
        "Break circular references by extracting the shared piece "
        "into its own module."
    ),
    (Axis.DEPENDENCY_FLOW, 1, 2): (
        "Replace module-level mutable state with values passed "
        "through parameters."
    ),
    (Axis.DEPENDENCY_FLOW, 2, 3): (
        "Split the single traversal chain into independent functions "
        "that compose at one call site."
    ),
    # DependencyFlow: regressing
    (Axis.DEPENDENCY_FLOW, 3, 2): (
        "Route calls through one pipeline to enforce a fixed order."
    ),
    (Axis.DEPENDENCY_FLOW, 2, 1): (
        "Share state through a module-level registry instead of "
        "parameters."
    ),
    (Axis.DEPENDENCY_FLOW, 1, 0): (
        "Let modules reference each other directly, accepting a cycle."
    ),
    # ErrorSurface: improving
    (Axis.ERROR_SURFACE, 0, 1): (
        "Stop swallowing failures: every handler reports or returns "
        "an explicit failure value."
    ),
    (Axis.ERROR_SURFACE, 1, 2): (
        "Replace sentinel return values with raised exceptions."
    ),
    (Axis.ERROR_SURFACE, 2, 3): (
        "Introduce named error types so callers can handle each "
        "failure precisely."
    ),
    # ErrorSurface: regressing
    (Axis.ERROR_SURFACE, 3, 2): (
        "Collapse named error types into a generic exception."
    ),
    (Axis.ERROR_SURFACE, 2, 1): (
        "Return sentinel values instead of raising on hot paths."
    ),
    (Axis.ERROR_SURFACE, 1, 0): (
        "Ignore failures that the caller cannot act on."
    ),
}


def transition_rationale(axis: Axis, from_state: int, to_state: int) -> str:
    return TRANSITION_RATIONALES[(axis, from_state, to_state)]
