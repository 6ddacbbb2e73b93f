"""Consensus — aggregate independent rater assessments."""

from ergorate.consensus.aggregator import (
    ConsensusAggregator,
    aggregate,
    break_tie_toward_worst,
    categorize,
)
from ergorate.consensus.schemas import (
    ConsensusResult,
    Divergence,
    MinorityState,
)

__all__ = [
    "ConsensusAggregator",
    "ConsensusResult",
    "Divergence",
    "MinorityState",
    "aggregate",
    "break_tie_toward_worst",
    "categorize",
]
