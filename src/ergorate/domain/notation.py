"""Compact ``<S1 S2 S3>`` notation for RatingVectors.

Symbols are written in the fixed order Expressiveness, DependencyFlow,
ErrorSurface, each drawn from its own axis alphabet. Parsing is strict:
a symbol from the wrong position's alphabet is an error, not a guess.
"""

from __future__ import annotations

import re

from ergorate.constants import AXIS_ORDER, Axis
from ergorate.domain.axes import axis_definition
from ergorate.domain.value_objects import RatingVector
from ergorate.errors import NotationError

_NOTATION_PATTERN = re.compile(r"^<(\S) (\S) (\S)>$")


def format_notation(vector: RatingVector) -> str:
    """Render ``vector`` as ``<S1 S2 S3>``."""
    symbols = [
        axis_definition(axis).symbol_for(vector.state(axis))
        for axis in AXIS_ORDER
    ]
    return f"<{' '.join(symbols)}>"


def parse_notation(text: str) -> RatingVector:
    """Parse ``<S1 S2 S3>`` back into the RatingVector it came from.

    Raises ``NotationError`` on any malformed input.
    """
    match = _NOTATION_PATTERN.match(text.strip())
    if match is None:
        raise NotationError(
            f"Malformed notation {text!r}; expected '<S1 S2 S3>'"
        )

    states: dict[Axis, int] = {}
    for axis, symbol in zip(AXIS_ORDER, match.groups(), strict=True):
        definition = axis_definition(axis)
        value = definition.value_for(symbol)
        if value is None:
            raise NotationError(
                f"Symbol {symbol!r} is not in the "
                f"{definition.title} alphabet '{definition.alphabet}'",
                axis=axis,
            )
        states[axis] = value
    return RatingVector.from_states(states)


def symbol(axis: Axis, state: int) -> str:
    return axis_definition(axis).symbol_for(state)
