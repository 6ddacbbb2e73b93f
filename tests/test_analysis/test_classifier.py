"""Tests for the per-axis decision trees."""

from __future__ import annotations

import pytest

from ergorate.analysis.classifier import (
    AxisClassifier,
    classify,
    find_cycle,
    linear_chain,
)
from ergorate.analysis.schemas import ClassificationContext
from ergorate.constants import (
    INSUFFICIENT_CONTEXT,
    Axis,
    ConfidenceLevel,
)
from ergorate.domain.notation import format_notation
from ergorate.domain.value_objects import Artifact
from ergorate.errors import InsufficientInputError, RatingError

TANGLED = """\
cache = {}
log = []


def a(x):
    global cache
    try:
        r = b(x) * 86400 + 3600 - 42 * 17
    except:
        pass
    return r


def b(q):
    log.append(q)
    return a(q - 7) if q > 99 else q
"""

SENTINELS_AND_RAISES = """\
def find(items, key):
    for item in items:
        if item.key == key:
            return item
    return None


def fetch(store, key):
    if key not in store:
        raise KeyError(key)
    return store[key]


def load(path):
    if not path:
        raise FileNotFoundError(path)
    return path.read_text()
"""


def _artifact(content: str, artifact_id: str = "sample.py") -> Artifact:
    return Artifact(id=artifact_id, content_snapshot=content)


# ── Graph helpers ────────────────────────────────────────────


class TestFindCycle:
    def test_two_node_cycle(self) -> None:
        assert find_cycle([("a", "b"), ("b", "a")]) == ["a", "b", "a"]

    def test_acyclic(self) -> None:
        assert find_cycle([("a", "b"), ("b", "c"), ("a", "c")]) is None

    def test_self_reference_ignored(self) -> None:
        assert find_cycle([("walk", "walk")]) is None

    def test_deterministic_regardless_of_edge_order(self) -> None:
        edges = [("c", "a"), ("a", "b"), ("b", "c")]
        assert find_cycle(edges) == find_cycle(list(reversed(edges)))


class TestLinearChain:
    def test_single_path(self) -> None:
        chain = linear_chain([("b", "c"), ("a", "b")], ["a", "b", "c"])
        assert chain == ["a", "b", "c"]

    def test_branching_is_not_linear(self) -> None:
        assert linear_chain([("a", "b"), ("a", "c")], ["a", "b", "c"]) is None

    def test_unconnected_member_breaks_chain(self) -> None:
        edges = [("a", "b"), ("b", "c")]
        assert linear_chain(edges, ["a", "b", "c", "d"]) is None

    def test_too_short(self) -> None:
        assert linear_chain([("a", "b")], ["a", "b"]) is None


# ── Classification ───────────────────────────────────────────


class TestClassify:
    def test_empty_snapshot_raises(self) -> None:
        """An empty artifact is an error, never a guessed rating."""
        with pytest.raises(InsufficientInputError) as exc:
            classify(_artifact(""), Axis.EXPRESSIVENESS)
        assert exc.value.artifact_id == "sample.py"
        assert exc.value.axis == Axis.EXPRESSIVENESS

    def test_comment_only_snapshot_raises(self) -> None:
        with pytest.raises(InsufficientInputError, match="no code lines"):
            classify(_artifact("# nothing here\n"), Axis.ERROR_SURFACE)

    def test_insufficient_input_is_a_rating_error(self) -> None:
        with pytest.raises(RatingError):
            classify(_artifact("   \n"), Axis.DEPENDENCY_FLOW)

    def test_worst_case_on_every_axis(self) -> None:
        vector = AxisClassifier().classify_all(_artifact(TANGLED))
        assert format_notation(vector) == "<O T S>"

    def test_yes_answer_is_high_confidence(self) -> None:
        result = classify(_artifact(TANGLED), Axis.DEPENDENCY_FLOW)
        assert result.state == 0
        assert result.confidence == ConfidenceLevel.HIGH
        assert result.rationale == (
            "Do circular references exist? Yes (cycle a -> b -> a)."
        )
        assert result.resolved_boundary is False

    def test_no_evidence_is_low_confidence(self) -> None:
        """No error constructs at all: default state, flagged."""
        result = classify(
            _artifact("def add(left, right):\n    return left + right\n"),
            Axis.ERROR_SURFACE,
        )
        assert result.state == 3
        assert result.confidence == ConfidenceLevel.LOW
        assert result.rationale == INSUFFICIENT_CONTEXT

    def test_clean_fallthrough_is_high_confidence(
        self, guarded_artifact: Artifact
    ) -> None:
        result = classify(guarded_artifact, Axis.ERROR_SURFACE)
        assert result.state == 3
        assert result.confidence == ConfidenceLevel.HIGH
        assert result.rationale.startswith(
            "Do failures collapse into generic error types? No"
        )

    def test_builtin_raises_are_not_named_errors(self) -> None:
        result = classify(
            _artifact(
                "def lookup(table, key):\n"
                "    if key not in table:\n"
                "        raise KeyError(key)\n"
                "    return table[key]\n"
            ),
            Axis.ERROR_SURFACE,
        )
        assert result.state == 2
        assert result.rationale == (
            "Do failures collapse into generic error types? "
            "Yes (0 named vs 1 generic or built-in raise(s))."
        )

    def test_own_error_type_is_named(self) -> None:
        result = classify(
            _artifact(
                "class MissingKey(KeyError):\n"
                "    pass\n\n\n"
                "def lookup(table, key):\n"
                "    if key not in table:\n"
                "        raise MissingKey(key)\n"
                "    return table[key]\n"
            ),
            Axis.ERROR_SURFACE,
        )
        assert result.state == 3
        assert result.rationale == (
            "Do failures collapse into generic error types? "
            "No (1 named vs 0 generic or built-in raise(s); "
            "defines MissingKey)."
        )

    def test_lone_surrogate_is_classified(self) -> None:
        result = classify(
            _artifact("def f():\n    return '\udc80'\n"), Axis.ERROR_SURFACE
        )
        assert result.state == 3

    def test_ambiguous_boundary_goes_to_resolver(self) -> None:
        """Sentinels alongside raises: the resolver picks 2."""
        result = classify(
            _artifact(SENTINELS_AND_RAISES), Axis.ERROR_SURFACE
        )
        assert result.state == 2
        assert result.confidence == ConfidenceLevel.MEDIUM
        assert result.resolved_boundary is True
        assert result.rationale == (
            "Do raise statements outnumber sentinel returns? "
            "Yes (2 raise(s) vs 1 sentinel return(s))."
        )

    def test_context_edges_join_the_graph(self) -> None:
        artifact = _artifact("def render(report):\n    return report.title\n")
        alone = classify(artifact, Axis.DEPENDENCY_FLOW)
        assert alone.confidence == ConfidenceLevel.LOW

        ctx = ClassificationContext(
            dependency_edges=(("views", "models"), ("models", "views"))
        )
        result = classify(artifact, Axis.DEPENDENCY_FLOW, ctx)
        assert result.state == 0
        assert "models -> views -> models" in result.rationale

    def test_hidden_coupling(self) -> None:
        artifact = _artifact(
            "settings = {}\n\n\n"
            "def configure(key, value):\n    settings[key] = value\n\n\n"
            "def read(key):\n    return settings[key]\n"
        )
        result = classify(artifact, Axis.DEPENDENCY_FLOW)
        assert result.state == 1
        assert "configure() writes into module-level 'settings'" in (
            result.rationale
        )

    def test_deterministic(self) -> None:
        artifact = _artifact(SENTINELS_AND_RAISES)
        first = [classify(artifact, axis) for axis in Axis]
        second = [classify(artifact, axis) for axis in Axis]
        assert first == second

    def test_classify_all_carries_rationales(
        self, guarded_artifact: Artifact
    ) -> None:
        vector = AxisClassifier().classify_all(guarded_artifact)
        assert format_notation(vector) == "<F D G>"
        for rating in vector:
            assert rating.confidence is not None
            assert rating.rationale
