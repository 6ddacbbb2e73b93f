"""Tests for the forced-choice boundary resolvers."""

from __future__ import annotations

import pytest

from ergorate.analysis.boundary import (
    BOUNDARY_PAIR,
    BOUNDARY_RESOLVERS,
    resolver_for,
)
from ergorate.analysis.schemas import ArtifactFeatures
from ergorate.constants import AXIS_ORDER, Axis
from ergorate.domain.value_objects import Artifact


def _features(**overrides: object) -> ArtifactFeatures:
    return ArtifactFeatures(parser="tree_sitter", code_lines=10, **overrides)  # type: ignore[arg-type]


def test_every_axis_has_one_resolver_at_the_middle_boundary() -> None:
    assert set(BOUNDARY_RESOLVERS) == set(AXIS_ORDER)
    for axis in AXIS_ORDER:
        assert resolver_for(axis).candidate_pair == BOUNDARY_PAIR


def test_expressiveness_short_functions_resolve_up() -> None:
    decision = resolver_for(Axis.EXPRESSIVENESS).decide_features(
        _features(longest_function=12)
    )
    assert decision.state == 2
    assert decision.answer == (
        "Does every function fit on one screen? "
        "Yes (longest function spans 12 lines)."
    )


def test_expressiveness_long_function_resolves_down() -> None:
    decision = resolver_for(Axis.EXPRESSIVENESS).decide_features(
        _features(longest_function=80)
    )
    assert decision.state == 1


def test_dependency_flow_rebound_state_resolves_down() -> None:
    decision = resolver_for(Axis.DEPENDENCY_FLOW).decide_features(
        _features(shared_reads=("registry",), rebound_shared=("registry",))
    )
    assert decision.state == 1
    assert "rebound or mutated: registry" in decision.answer


def test_error_surface_tie_resolves_down() -> None:
    """Equal raises and sentinels do not count as raises dominating."""
    decision = resolver_for(Axis.ERROR_SURFACE).decide_features(
        _features(raises=1, sentinel_returns=1)
    )
    assert decision.state == 1


def test_resolve_reads_the_artifact() -> None:
    artifact = Artifact(
        id="lookup.py",
        content_snapshot=(
            "registry = {}\n\n\ndef lookup(name):\n"
            "    return registry.get(name)\n"
        ),
    )
    resolver = resolver_for(Axis.DEPENDENCY_FLOW)
    assert resolver.resolve(artifact, (1, 2)) == 2
    assert resolver.resolve(artifact, (2, 1)) == 2


def test_resolve_rejects_other_pairs() -> None:
    artifact = Artifact(id="x.py", content_snapshot="value = 1\n")
    with pytest.raises(ValueError, match="no boundary between 0 and 1"):
        resolver_for(Axis.ERROR_SURFACE).resolve(artifact, (0, 1))
