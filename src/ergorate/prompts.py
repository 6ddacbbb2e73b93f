"""Prompt text for model-backed raters, built from the axis domain."""

from __future__ import annotations

from ergorate.constants import AXIS_ORDER, LLM_CONTENT_SNIPPET_CHARS
from ergorate.domain.axes import axis_definition
from ergorate.domain.value_objects import Artifact


def _axis_table() -> str:
    blocks: list[str] = []
    for position, axis in enumerate(AXIS_ORDER, start=1):
        definition = axis_definition(axis)
        lines = [f"{position}. {definition.title} (key: {axis.value})"]
        lines.extend(
            f"   {s.symbol} = {s.value} {s.label}: {s.description}"
            for s in definition.states
        )
        blocks.append("\n".join(lines))
    return "\n".join(blocks)


RATING_SYSTEM_PROMPT = f"""\
You rate how ergonomic a piece of code is on three independent axes.
Each axis has four states, 0 (least desirable) to 3 (most desirable),
written as one symbol:

{_axis_table()}

Reply with a JSON object only:
{{"notation": "<S1 S2 S3>", "rationales": {{"<axis key>": "<one sentence>"}}}}

The notation lists one symbol per axis in the order above, separated by
single spaces and wrapped in angle brackets. Use only the symbols listed
for each position.
"""


def build_rating_prompt(artifact: Artifact) -> str:
    """User message carrying the artifact under review."""
    snippet = artifact.content_snapshot[:LLM_CONTENT_SNIPPET_CHARS]
    return (
        f"Artifact: {artifact.id}\n"
        f"Context: {artifact.context_tag.value}\n\n"
        f"```\n{snippet}\n```"
    )
