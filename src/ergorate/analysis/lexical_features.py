"""Language-agnostic signal extraction for content without a grammar.

Regex and brace matching only. Coarser than the tree-sitter path, so
module-level shared reads are not detected here.
"""

from __future__ import annotations

import re

from ergorate.analysis.schemas import ArtifactFeatures
from ergorate.constants import GENERIC_ERROR_TYPES

_FUNCTION_DEF = re.compile(
    r"\b(?:function|func|fn|def|sub|proc)\s+(?:\([^)]*\)\s*)?([A-Za-z_]\w*)\s*\("
)
_METHOD_DEF = re.compile(
    r"^\s*(?:(?:public|private|protected|static|async|override|final|virtual)\s+)*"
    r"[\w<>\[\],\s]*?\b([A-Za-z_]\w*)\s*\([^;{}]*\)\s*(?:throws\s+[\w,\s]+)?\{",
    re.MULTILINE,
)
_VARIABLE_DEF = re.compile(
    r"\b(?:let|const|var|val|my|local|auto)\s+(?:mut\s+)?([A-Za-z_]\w*)"
)
_CLASS_DEF = re.compile(r"\b(?:class|struct|interface|enum|type)\s+([A-Za-z_]\w*)")
_CUSTOM_ERROR = re.compile(
    r"\b(?:class|struct|type)\s+([A-Za-z_]\w*(?:Error|Exception))\b"
)
_NUMBER = re.compile(r"(?<![\w.])-?\d+(?:\.\d+)?(?![\w.])")
_CONSTANT_LINE = re.compile(
    r"^\s*(?:(?:export|public|private|static|final|const|readonly|pub)\s+)*"
    r"(?:const\s+|static\s+|final\s+|let\s+|var\s+)?[A-Z][A-Z0-9_]*\s*(?::[^=]+)?="
)
_CEREMONY_LINE = re.compile(
    r"^\s*(?:pass|return\s+this\.\w+;?|this\.(\w+)\s*=\s*\1;?"
    r"|(?:public\s+)?(?:get|set)[A-Z]\w*\s*\([^)]*\)\s*\{\s*)$"
)
_SWALLOWED = re.compile(
    r"\bcatch\s*(?:\([^)]*\))?\s*\{\s*\}|\bexcept\b[^:\n]*:\s*(?:pass|\.\.\.)\s*$"
    r"|\brescue\b[^\n]*\n\s*end\b",
    re.MULTILINE,
)
_TRY = re.compile(r"\b(?:try|begin)\b\s*(?:\{|:|$)", re.MULTILINE)
_SENTINEL = re.compile(r"\breturn\s+(?:null|nil|None|undefined|-1)\b")
_RAISE = re.compile(
    r"\b(?:throw|raise|panic!?)\b\s*(?:new\s+)?(?:\(?\s*)([A-Za-z_][\w.]*)?"
)
_HIDDEN = re.compile(
    r"\b(global|static\s+mut|window\.\w+\s*=|globalThis\.\w+\s*=|\$GLOBALS)"
)
_CALL = re.compile(r"\b([A-Za-z_]\w*)\s*\(")
_COMMENT_LINE = re.compile(r"^\s*(?:#|//|/\*|\*|--|;)")
_KEYWORDS = frozenset({
    "if", "for", "while", "switch", "catch", "return", "function",
    "func", "fn", "def", "sizeof", "new", "throw", "raise", "else",
})
_ALLOWED_NUMBERS = frozenset({"0", "1", "2", "-1", "0.0", "1.0"})


def count_code_lines(content: str) -> int:
    """Non-blank lines that are not pure comments."""
    return sum(
        1
        for line in content.splitlines()
        if line.strip() and not _COMMENT_LINE.match(line)
    )


def extract_lexical_features(content: str) -> ArtifactFeatures:
    """Collect axis signals with regexes and brace matching."""
    code_lines = count_code_lines(content)
    lines = content.splitlines()

    bodies = _function_bodies(content)
    function_names = set(bodies)

    defined: set[str] = set(function_names)
    defined.update(_VARIABLE_DEF.findall(content))
    defined.update(_CLASS_DEF.findall(content))

    magic = 0
    for line in lines:
        if _COMMENT_LINE.match(line) or _CONSTANT_LINE.match(line):
            continue
        magic += sum(
            1 for n in _NUMBER.findall(line) if n not in _ALLOWED_NUMBERS
        )

    ceremony = sum(1 for line in lines if _CEREMONY_LINE.match(line))

    edges: set[tuple[str, str]] = set()
    longest = 0
    for name, body in bodies.items():
        longest = max(longest, body.count("\n") + 1)
        for callee in _CALL.findall(body):
            if callee in function_names and callee != name and (
                callee not in _KEYWORDS
            ):
                edges.add((name, callee))

    hidden = {
        f"uses {m.group(1).split()[0].rstrip('.')}"
        for m in _HIDDEN.finditer(content)
    }

    generic = specific = 0
    raised_types: list[str] = []
    for match in _RAISE.finditer(content):
        raised = (match.group(1) or "").rsplit(".", 1)[-1]
        if raised:
            raised_types.append(raised)
        if raised in GENERIC_ERROR_TYPES:
            generic += 1
        else:
            specific += 1

    return ArtifactFeatures(
        parser="lexical",
        code_lines=code_lines,
        defined_names=tuple(sorted(defined)),
        function_names=tuple(sorted(function_names)),
        magic_numbers=magic,
        ceremony_lines=ceremony,
        max_nesting=_max_brace_depth(content),
        longest_function=longest,
        call_edges=tuple(sorted(edges)),
        hidden_coupling=tuple(sorted(hidden)),
        try_blocks=len(_TRY.findall(content)),
        swallowed_handlers=len(_SWALLOWED.findall(content)),
        sentinel_returns=len(_SENTINEL.findall(content)),
        raises=generic + specific,
        generic_raises=generic,
        specific_raises=specific,
        raised_types=tuple(sorted(raised_types)),
        custom_error_types=tuple(sorted(set(_CUSTOM_ERROR.findall(content)))),
    )


def _function_bodies(content: str) -> dict[str, str]:
    """Map function name → body text, for brace-delimited bodies."""
    bodies: dict[str, str] = {}
    starts: list[tuple[str, int]] = []
    for pattern in (_FUNCTION_DEF, _METHOD_DEF):
        for match in pattern.finditer(content):
            name = match.group(1)
            if name in _KEYWORDS or name in bodies:
                continue
            starts.append((name, match.end()))
    for name, offset in sorted(starts, key=lambda s: s[1]):
        if name in bodies:
            continue
        open_at = content.find("{", offset - 1)
        if open_at == -1:
            bodies[name] = ""
            continue
        close_at = _matching_brace(content, open_at)
        bodies[name] = content[open_at:close_at + 1]
    return bodies


def _matching_brace(content: str, open_at: int) -> int:
    depth = 0
    for index in range(open_at, len(content)):
        char = content[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return len(content) - 1


def _max_brace_depth(content: str) -> int:
    """Deepest brace nesting below the enclosing function."""
    depth = deepest = 0
    for char in content:
        if char == "{":
            depth += 1
            deepest = max(deepest, depth)
        elif char == "}":
            depth = max(0, depth - 1)
    # Outer braces belong to the function (and usually a class)
    return max(0, deepest - 1)
