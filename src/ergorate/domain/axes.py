"""Static axis domain: states, labels and notation symbols.

Built once at import time and never mutated. Every other module reads
axis vocabulary from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from ergorate.constants import (
    AXIS_ORDER,
    MAX_STATE,
    MIN_STATE,
    STATES_PER_AXIS,
    Axis,
)


@dataclass(frozen=True)
class StateDefinition:
    """One ordered level on an axis."""

    value: int  # 0 = least desirable
    label: str
    symbol: str
    description: str


@dataclass(frozen=True)
class AxisDefinition:
    """An axis with exactly four totally ordered states."""

    axis: Axis
    title: str
    states: tuple[StateDefinition, ...]

    def __post_init__(self) -> None:
        if len(self.states) != STATES_PER_AXIS:
            msg = (
                f"{self.axis.value} defines {len(self.states)} states, "
                f"expected {STATES_PER_AXIS}"
            )
            raise ValueError(msg)
        if [s.value for s in self.states] != list(range(STATES_PER_AXIS)):
            msg = f"{self.axis.value} states must be numbered 0..{MAX_STATE}"
            raise ValueError(msg)

    @property
    def alphabet(self) -> str:
        return "".join(s.symbol for s in self.states)

    def state(self, value: int) -> StateDefinition:
        if not MIN_STATE <= value <= MAX_STATE:
            msg = f"state {value} outside {MIN_STATE}..{MAX_STATE}"
            raise ValueError(msg)
        return self.states[value]

    def symbol_for(self, value: int) -> str:
        return self.state(value).symbol

    def value_for(self, symbol: str) -> int | None:
        """Return the state for ``symbol``, or None if foreign."""
        for s in self.states:
            if s.symbol == symbol:
                return s.value
        return None


_DEFINITIONS: tuple[AxisDefinition, ...] = (
    AxisDefinition(
        axis=Axis.EXPRESSIVENESS,
        title="Expressiveness",
        states=(
            StateDefinition(
                0, "Opaque", "O",
                "Intent must be decoded from names and literals.",
            ),
            StateDefinition(
                1, "Ceremonial", "V",
                "Intent is present but buried under boilerplate.",
            ),
            StateDefinition(
                2, "Clear", "C",
                "Intent is readable with some structural effort.",
            ),
            StateDefinition(
                3, "Fluent", "F",
                "Code reads as a direct statement of intent.",
            ),
        ),
    ),
    AxisDefinition(
        axis=Axis.DEPENDENCY_FLOW,
        title="Dependency Flow",
        states=(
            StateDefinition(
                0, "Tangled", "T",
                "Parts reference each other in cycles.",
            ),
            StateDefinition(
                1, "Hidden", "H",
                "Changes travel through implicit shared state.",
            ),
            StateDefinition(
                2, "Linear", "L",
                "Every path runs through one long traversal chain.",
            ),
            StateDefinition(
                3, "Direct", "D",
                "Data flows through explicit, shallow paths.",
            ),
        ),
    ),
    AxisDefinition(
        axis=Axis.ERROR_SURFACE,
        title="Error Surface",
        states=(
            StateDefinition(
                0, "Silent", "S",
                "Failures are swallowed.",
            ),
            StateDefinition(
                1, "Ad hoc", "A",
                "Failures are signalled with sentinel values.",
            ),
            StateDefinition(
                2, "Explicit", "E",
                "Failures raise, but with generic error types.",
            ),
            StateDefinition(
                3, "Guarded", "G",
                "Failures raise named, specific error types.",
            ),
        ),
    ),
)

AXIS_DOMAIN: MappingProxyType[Axis, AxisDefinition] = MappingProxyType(
    {d.axis: d for d in _DEFINITIONS}
)


def axis_definition(axis: Axis) -> AxisDefinition:
    return AXIS_DOMAIN[axis]


def parse_axis(name: str) -> Axis:
    """Resolve an axis from its value, member name or title.

    Accepts ``error_surface``, ``ERROR_SURFACE``, ``ErrorSurface`` and
    ``Error Surface``.
    """
    key = name.strip().replace(" ", "").replace("_", "").lower()
    for axis in AXIS_ORDER:
        if axis.value.replace("_", "") == key:
            return axis
    msg = (
        f"Unknown axis '{name}'. "
        f"Valid: {', '.join(a.value for a in AXIS_ORDER)}"
    )
    raise ValueError(msg)
