"""Feature extraction entry point — picks the parser for a snapshot."""

from __future__ import annotations

import functools
import logging

from ergorate.analysis.lexical_features import (
    count_code_lines,
    extract_lexical_features,
)
from ergorate.analysis.python_features import (
    extract_python_features,
    parse_python,
)
from ergorate.analysis.schemas import ArtifactFeatures

logger = logging.getLogger(__name__)

_PYTHON_NAMES = frozenset({"python", "py"})


@functools.lru_cache(maxsize=256)
def extract_features(
    content: str, language: str | None = None
) -> ArtifactFeatures:
    """Extract classifier signals from ``content``.

    Python (explicit, or auto-detected by a clean parse) goes through
    tree-sitter; everything else falls back to the lexical scanner.
    Cached: the result is a frozen value and a pure function of its
    arguments.
    """
    lang = language.lower() if language else None

    if lang is None or lang in _PYTHON_NAMES:
        tree = parse_python(content)
        if tree is not None:
            return extract_python_features(tree)
        if lang is not None:
            logger.warning(
                "event=python_parse_failed fallback=lexical lines=%d",
                count_code_lines(content),
            )

    return extract_lexical_features(content)
