"""Per-axis decision trees over extracted artifact features.

Each axis asks a fixed, ordered sequence of yes/no questions; the first
"yes" decides the state. A question may answer "unclear" only at the
documented middle boundary, in which case the axis's BoundaryResolver
makes the call. Classification is a pure function of
``(artifact, axis, context)``.
"""

from __future__ import annotations

import builtins
import logging
from collections.abc import Callable, Iterable
from typing import TypeAlias
from dataclasses import dataclass
from enum import Enum

from ergorate.analysis.boundary import resolver_for
from ergorate.analysis.features import extract_features
from ergorate.analysis.schemas import (
    ArtifactFeatures,
    AxisRatingResult,
    ClassificationContext,
)
from ergorate.constants import (
    AXIS_ORDER,
    CEREMONY_RATIO_HIGH,
    CEREMONY_RATIO_LOW,
    CRYPTIC_NAME_MAX_LEN,
    CRYPTIC_NAME_RATIO,
    GENERIC_ERROR_TYPES,
    INSUFFICIENT_CONTEXT,
    LINEAR_CHAIN_MIN_LENGTH,
    MAGIC_NUMBER_LIMIT,
    MAX_FUNCTION_LINES,
    MAX_NESTING_DEPTH,
    MAX_STATE,
    Axis,
    ConfidenceLevel,
)
from ergorate.domain.value_objects import Artifact, RatingVector
from ergorate.errors import InsufficientInputError

logger = logging.getLogger(__name__)

_CONVENTIONAL_SHORT_NAMES = frozenset({
    "i", "j", "k", "n", "x", "y", "id", "ok", "db", "io", "fp", "tz",
})

_BUILTIN_ERROR_TYPES = frozenset(
    name
    for name, obj in vars(builtins).items()
    if isinstance(obj, type) and issubclass(obj, BaseException)
)


class Answer(Enum):
    YES = "yes"
    NO = "no"
    UNCLEAR = "unclear"


@dataclass(frozen=True)
class Probe:
    """One question's answer plus the evidence behind it."""

    answer: Answer
    evidence: str


Test: TypeAlias = Callable[[ArtifactFeatures, ClassificationContext], Probe]


@dataclass(frozen=True)
class DecisionNode:
    question: str
    state: int  # assigned when the answer is YES
    test: Test


@dataclass(frozen=True)
class DecisionTree:
    axis: Axis
    nodes: tuple[DecisionNode, ...]
    has_evidence: Callable[[ArtifactFeatures, ClassificationContext], bool]
    fallthrough_state: int = MAX_STATE


# ---------------------------------------------------------------------------
# Graph helpers
# ---------------------------------------------------------------------------


def _adjacency(
    edges: Iterable[tuple[str, str]],
) -> dict[str, list[str]]:
    graph: dict[str, list[str]] = {}
    for source, target in sorted(set(edges)):
        if source == target:
            continue
        graph.setdefault(source, []).append(target)
        graph.setdefault(target, [])
    return graph


def find_cycle(edges: Iterable[tuple[str, str]]) -> list[str] | None:
    """Return one cycle as ``[a, b, ..., a]``, or None.

    Self-references are ignored. Visits nodes in sorted order so the
    reported cycle is deterministic.
    """
    graph = _adjacency(edges)
    visiting: set[str] = set()
    done: set[str] = set()
    stack: list[str] = []

    def _visit(node: str) -> list[str] | None:
        visiting.add(node)
        stack.append(node)
        for nxt in graph[node]:
            if nxt in visiting:
                return [*stack[stack.index(nxt):], nxt]
            if nxt not in done:
                found = _visit(nxt)
                if found:
                    return found
        visiting.discard(node)
        done.add(node)
        stack.pop()
        return None

    for start in sorted(graph):
        if start not in done:
            found = _visit(start)
            if found:
                return found
    return None


def linear_chain(
    edges: Iterable[tuple[str, str]], members: Iterable[str]
) -> list[str] | None:
    """Return the single path covering every node and member, or None."""
    graph = _adjacency(edges)
    nodes = set(graph) | set(members)
    if len(nodes) < LINEAR_CHAIN_MIN_LENGTH:
        return None
    indegree = {n: 0 for n in nodes}
    for targets in graph.values():
        for target in targets:
            indegree[target] += 1
    if any(len(graph.get(n, [])) > 1 or indegree[n] > 1 for n in nodes):
        return None
    sources = [n for n in nodes if indegree[n] == 0]
    if len(sources) != 1:
        return None
    path = [sources[0]]
    while graph.get(path[-1]):
        path.append(graph[path[-1]][0])
    return path if len(path) == len(nodes) else None


def _graph_edges(
    f: ArtifactFeatures, ctx: ClassificationContext
) -> list[tuple[str, str]]:
    return [*f.call_edges, *ctx.dependency_edges]


# ---------------------------------------------------------------------------
# Expressiveness
# ---------------------------------------------------------------------------


def _cryptic_names(f: ArtifactFeatures) -> list[str]:
    return [
        name for name in f.defined_names
        if len(name.strip("_")) <= CRYPTIC_NAME_MAX_LEN
        and name.strip("_")
        and name.strip("_").lower() not in _CONVENTIONAL_SHORT_NAMES
    ]


def _needs_decoding(f: ArtifactFeatures, _: ClassificationContext) -> Probe:
    cryptic = _cryptic_names(f)
    total = len(f.defined_names)
    ratio = len(cryptic) / total if total else 0.0
    evidence = (
        f"{len(cryptic)}/{total} names cryptic, "
        f"{f.magic_numbers} magic number(s)"
    )
    if (total >= 2 and ratio >= CRYPTIC_NAME_RATIO) or (
        f.magic_numbers >= MAGIC_NUMBER_LIMIT
    ):
        return Probe(Answer.YES, evidence)
    return Probe(Answer.NO, evidence)


def _buried_in_ceremony(
    f: ArtifactFeatures, _: ClassificationContext
) -> Probe:
    ratio = f.ceremony_lines / f.code_lines if f.code_lines else 0.0
    evidence = (
        f"{f.ceremony_lines}/{f.code_lines} lines are ceremony "
        f"({ratio:.0%})"
    )
    if ratio >= CEREMONY_RATIO_HIGH:
        return Probe(Answer.YES, evidence)
    if ratio < CEREMONY_RATIO_LOW:
        return Probe(Answer.NO, evidence)
    return Probe(Answer.UNCLEAR, evidence)


def _structure_hides_path(
    f: ArtifactFeatures, _: ClassificationContext
) -> Probe:
    evidence = (
        f"nesting depth {f.max_nesting}, "
        f"longest function {f.longest_function} lines"
    )
    if f.max_nesting > MAX_NESTING_DEPTH or (
        f.longest_function > MAX_FUNCTION_LINES
    ):
        return Probe(Answer.YES, evidence)
    return Probe(Answer.NO, evidence)


# ---------------------------------------------------------------------------
# DependencyFlow
# ---------------------------------------------------------------------------


def _has_cycle(f: ArtifactFeatures, ctx: ClassificationContext) -> Probe:
    cycle = find_cycle(_graph_edges(f, ctx))
    if cycle:
        return Probe(Answer.YES, "cycle " + " -> ".join(cycle))
    return Probe(Answer.NO, "no cycles")


def _untraceable_change(
    f: ArtifactFeatures, _: ClassificationContext
) -> Probe:
    if f.hidden_coupling:
        return Probe(Answer.YES, "; ".join(f.hidden_coupling))
    if f.shared_reads:
        return Probe(
            Answer.UNCLEAR,
            "functions read module-level " + ", ".join(f.shared_reads),
        )
    return Probe(Answer.NO, "no shared mutable state")


def _single_linear_path(
    f: ArtifactFeatures, ctx: ClassificationContext
) -> Probe:
    chain = linear_chain(_graph_edges(f, ctx), f.function_names)
    if chain:
        return Probe(Answer.YES, "chain " + " -> ".join(chain))
    return Probe(Answer.NO, f"{len(f.call_edges)} call edge(s), branching")


# ---------------------------------------------------------------------------
# ErrorSurface
# ---------------------------------------------------------------------------


def _swallowed(f: ArtifactFeatures, _: ClassificationContext) -> Probe:
    evidence = f"{f.swallowed_handlers} handler(s) discard the failure"
    if f.swallowed_handlers:
        return Probe(Answer.YES, evidence)
    return Probe(Answer.NO, evidence)


def _sentinels(f: ArtifactFeatures, _: ClassificationContext) -> Probe:
    evidence = (
        f"{f.sentinel_returns} sentinel return(s), {f.raises} raise(s)"
    )
    if not f.sentinel_returns:
        return Probe(Answer.NO, evidence)
    if not f.raises:
        return Probe(Answer.YES, evidence)
    return Probe(Answer.UNCLEAR, evidence)


def _is_named_error(type_name: str, f: ArtifactFeatures) -> bool:
    """A type the artifact defines, or imports from outside the builtins."""
    if type_name in f.custom_error_types:
        return True
    return (
        type_name not in GENERIC_ERROR_TYPES
        and type_name not in _BUILTIN_ERROR_TYPES
    )


def _generic_errors(f: ArtifactFeatures, _: ClassificationContext) -> Probe:
    named = [t for t in f.raised_types if _is_named_error(t, f)]
    unnamed = len(f.raised_types) - len(named)
    evidence = f"{len(named)} named vs {unnamed} generic or built-in raise(s)"
    owned = sorted(set(named) & set(f.custom_error_types))
    if owned:
        evidence += f"; defines {', '.join(owned)}"
    if unnamed > len(named):
        return Probe(Answer.YES, evidence)
    return Probe(Answer.NO, evidence)


DECISION_TREES: dict[Axis, DecisionTree] = {
    Axis.EXPRESSIVENESS: DecisionTree(
        axis=Axis.EXPRESSIVENESS,
        nodes=(
            DecisionNode(
                "Must names or literals be decoded to learn intent?",
                0,
                _needs_decoding,
            ),
            DecisionNode(
                "Is intent buried under ceremony?", 1, _buried_in_ceremony
            ),
            DecisionNode(
                "Do deep nesting or long bodies hide the main path?",
                2,
                _structure_hides_path,
            ),
        ),
        has_evidence=lambda f, _: bool(f.defined_names),
    ),
    Axis.DEPENDENCY_FLOW: DecisionTree(
        axis=Axis.DEPENDENCY_FLOW,
        nodes=(
            DecisionNode("Do circular references exist?", 0, _has_cycle),
            DecisionNode(
                "Can a change in one part affect another without an "
                "explicit, traceable data path?",
                1,
                _untraceable_change,
            ),
            DecisionNode(
                "Is there a single linear traversal path?",
                2,
                _single_linear_path,
            ),
        ),
        has_evidence=lambda f, ctx: bool(
            len(f.function_names) >= 2
            or ctx.dependency_edges
            or f.hidden_coupling
            or f.shared_reads
        ),
    ),
    Axis.ERROR_SURFACE: DecisionTree(
        axis=Axis.ERROR_SURFACE,
        nodes=(
            DecisionNode("Are failures swallowed?", 0, _swallowed),
            DecisionNode(
                "Are failures signalled with sentinel values?",
                1,
                _sentinels,
            ),
            DecisionNode(
                "Do failures collapse into generic error types?",
                2,
                _generic_errors,
            ),
        ),
        has_evidence=lambda f, _: f.error_constructs > 0,
    ),
}


class AxisClassifier:
    """Applies the fixed decision tree for an axis to one artifact.

    Stateless: instances may be shared freely across threads.
    """

    def __init__(
        self, trees: dict[Axis, DecisionTree] | None = None
    ) -> None:
        self._trees = trees or DECISION_TREES

    def classify(
        self,
        artifact: Artifact,
        axis: Axis,
        context: ClassificationContext | None = None,
    ) -> AxisRatingResult:
        """Classify ``artifact`` on ``axis``.

        Raises ``InsufficientInputError`` when the snapshot has no code
        to evaluate. When the code exists but carries no evidence for
        this axis, the tree's default state is returned with low
        confidence and an ``insufficient context`` rationale.
        """
        ctx = context or ClassificationContext()
        if not artifact.content_snapshot.strip():
            raise InsufficientInputError(
                "content snapshot is empty",
                artifact_id=artifact.id,
                axis=axis,
            )

        features = extract_features(artifact.content_snapshot, ctx.language)
        if features.code_lines == 0:
            raise InsufficientInputError(
                "content snapshot has no code lines",
                artifact_id=artifact.id,
                axis=axis,
            )

        tree = self._trees[axis]
        if not tree.has_evidence(features, ctx):
            result = AxisRatingResult(
                axis=axis,
                state=tree.fallthrough_state,
                confidence=ConfidenceLevel.LOW,
                rationale=INSUFFICIENT_CONTEXT,
            )
        else:
            result = self._walk(tree, features, ctx)

        logger.debug(
            "event=axis_classified artifact=%s axis=%s state=%d "
            "confidence=%s parser=%s",
            artifact.id,
            axis.value,
            result.state,
            result.confidence.value,
            features.parser,
        )
        return result

    def classify_all(
        self,
        artifact: Artifact,
        context: ClassificationContext | None = None,
    ) -> RatingVector:
        """Classify every axis; any axis failure fails the whole vector."""
        ratings = {
            axis: self.classify(artifact, axis, context).to_axis_rating()
            for axis in AXIS_ORDER
        }
        return RatingVector.from_ratings(ratings)

    @staticmethod
    def _walk(
        tree: DecisionTree,
        features: ArtifactFeatures,
        ctx: ClassificationContext,
    ) -> AxisRatingResult:
        probe = Probe(Answer.NO, "")
        node: DecisionNode | None = None
        for node in tree.nodes:
            probe = node.test(features, ctx)
            if probe.answer is Answer.YES:
                return AxisRatingResult(
                    axis=tree.axis,
                    state=node.state,
                    confidence=ConfidenceLevel.HIGH,
                    rationale=f"{node.question} Yes ({probe.evidence}).",
                )
            if probe.answer is Answer.UNCLEAR:
                resolver = resolver_for(tree.axis)
                if node.state not in resolver.candidate_pair:
                    msg = (
                        f"'{node.question}' is not at the "
                        f"{tree.axis.value} boundary {resolver.candidate_pair}"
                    )
                    raise ValueError(msg)
                decision = resolver.decide_features(features)
                return AxisRatingResult(
                    axis=tree.axis,
                    state=decision.state,
                    confidence=ConfidenceLevel.MEDIUM,
                    rationale=decision.answer,
                    resolved_boundary=True,
                )

        question = node.question if node else ""
        return AxisRatingResult(
            axis=tree.axis,
            state=tree.fallthrough_state,
            confidence=ConfidenceLevel.HIGH,
            rationale=f"{question} No ({probe.evidence}).",
        )


_DEFAULT_CLASSIFIER = AxisClassifier()


def classify(
    artifact: Artifact,
    axis: Axis,
    context: ClassificationContext | None = None,
) -> AxisRatingResult:
    """Module-level convenience over a shared stateless classifier."""
    return _DEFAULT_CLASSIFIER.classify(artifact, axis, context)
