"""Rater boundary: anything that turns an Artifact into an assessment.

Raters satisfy this protocol structurally (no inheritance). Human
panels, model-backed raters and the local classifier all plug in here.
"""

from typing import Protocol

from ergorate.domain.value_objects import Artifact, RaterAssessment


class Rater(Protocol):
    rater_id: str

    async def assess(self, artifact: Artifact) -> RaterAssessment: ...
