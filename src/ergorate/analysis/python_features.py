"""Extract structural signals from Python source with tree-sitter."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field

import tree_sitter
import tree_sitter_python

from ergorate.analysis.schemas import ArtifactFeatures
from ergorate.constants import GENERIC_ERROR_TYPES

_PY_LANGUAGE = tree_sitter.Language(tree_sitter_python.language())

_CONTROL_NODES = frozenset({
    "if_statement",
    "for_statement",
    "while_statement",
    "with_statement",
    "try_statement",
    "match_statement",
})

_MUTATORS = frozenset({
    "append",
    "extend",
    "insert",
    "pop",
    "popitem",
    "remove",
    "clear",
    "update",
    "setdefault",
    "add",
    "discard",
    "sort",
    "reverse",
})

_ALLOWED_NUMBERS = frozenset({"0", "1", "2", "-1", "0.0", "1.0"})
_SENTINEL_VALUES = frozenset({"None", "-1"})
_RECEIVER_NAMES = frozenset({"self", "cls"})
_REPORT_CALLS = ("log", "print", "warn")
_CONSTANT_NAME = re.compile(r"^_?[A-Z][A-Z0-9_]*$")


def parse_python(content: str) -> tree_sitter.Tree | None:
    """Parse ``content`` as Python; None when the parse has errors."""
    # Parsers are not thread-safe; one per call keeps extraction pure.
    parser = tree_sitter.Parser(_PY_LANGUAGE)
    # Lone surrogates (surrogateescape reads) become "?" so offsets hold
    tree = parser.parse(content.encode("utf-8", errors="replace"))
    if tree.root_node.has_error:
        return None
    return tree


def count_python_code_lines(tree: tree_sitter.Tree) -> int:
    """Lines holding at least one token that is not a comment."""
    rows: set[int] = set()
    for node in _walk(tree.root_node):
        if node.end_byte == node.start_byte or node.type == "comment":
            continue
        if node.child_count == 0 or node.type == "string":
            rows.update(range(node.start_point[0], node.end_point[0] + 1))
    return len(rows)


def extract_python_features(tree: tree_sitter.Tree) -> ArtifactFeatures:
    """Walk a clean Python parse tree and collect axis signals."""
    scan = _PythonScan()
    scan.run(tree.root_node)
    return ArtifactFeatures(
        parser="tree_sitter",
        code_lines=count_python_code_lines(tree),
        defined_names=tuple(sorted(scan.defined_names)),
        function_names=tuple(sorted(scan.function_names)),
        magic_numbers=scan.magic_numbers,
        ceremony_lines=scan.ceremony_lines,
        max_nesting=scan.max_nesting,
        longest_function=scan.longest_function,
        call_edges=tuple(sorted(scan.call_edges)),
        hidden_coupling=tuple(sorted(scan.hidden_coupling)),
        shared_reads=tuple(sorted(scan.shared_reads)),
        rebound_shared=tuple(sorted(scan.rebound_shared)),
        try_blocks=scan.try_blocks,
        swallowed_handlers=scan.swallowed_handlers,
        sentinel_returns=scan.sentinel_returns,
        raises=scan.generic_raises + scan.specific_raises,
        generic_raises=scan.generic_raises,
        specific_raises=scan.specific_raises,
        raised_types=tuple(sorted(scan.raised_types)),
        custom_error_types=tuple(sorted(scan.custom_error_types)),
    )


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


def _text(node: tree_sitter.Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def _walk(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    yield node
    for child in node.children:
        yield from _walk(child)


def _walk_local(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Walk without entering nested function or class bodies."""
    yield node
    for child in node.children:
        if child.type in ("function_definition", "class_definition"):
            continue
        yield from _walk_local(child)


def _same(a: tree_sitter.Node | None, b: tree_sitter.Node) -> bool:
    return (
        a is not None
        and a.start_byte == b.start_byte
        and a.end_byte == b.end_byte
    )


def _line_span(node: tree_sitter.Node) -> int:
    return node.end_point[0] - node.start_point[0] + 1


def _target_identifiers(node: tree_sitter.Node | None) -> list[str]:
    """Identifiers bound by an assignment or loop target."""
    if node is None:
        return []
    if node.type == "identifier":
        return [_text(node)]
    if node.type in (
        "pattern_list",
        "tuple_pattern",
        "list_pattern",
        "expression_list",
        "tuple",
        "list",
    ):
        names: list[str] = []
        for child in node.named_children:
            names.extend(_target_identifiers(child))
        return names
    return []


def _parameter_names(params: tree_sitter.Node | None) -> list[str]:
    if params is None:
        return []
    names: list[str] = []
    for child in params.named_children:
        if child.type == "identifier":
            names.append(_text(child))
        elif child.type in ("default_parameter", "typed_default_parameter"):
            names.append(_text(child.child_by_field_name("name")))
        elif child.type in (
            "typed_parameter",
            "list_splat_pattern",
            "dictionary_splat_pattern",
        ):
            for sub in child.named_children:
                if sub.type == "identifier":
                    names.append(_text(sub))
                    break
    return [n for n in names if n]


def _enclosing(
    node: tree_sitter.Node, kinds: frozenset[str], stop: frozenset[str]
) -> tree_sitter.Node | None:
    current = node.parent
    while current is not None:
        if current.type in kinds:
            return current
        if current.type in stop:
            return None
        current = current.parent
    return None


_FUNCTION_SCOPE = frozenset({"function_definition", "lambda"})
_EXCEPT = frozenset({"except_clause", "except_group_clause"})


def _raised_type(node: tree_sitter.Node) -> str | None:
    """Name of the exception type a raise statement raises.

    None for a bare re-raise.
    """
    named = [c for c in node.named_children if c.type != "comment"]
    if not named:
        return None
    expr = named[0]
    if expr.type == "call":
        expr = expr.child_by_field_name("function") or expr
    return _text(expr).rsplit(".", 1)[-1]


def _is_noop_statement(node: tree_sitter.Node) -> bool:
    """Statements that let a caught failure vanish."""
    if node.type in ("pass_statement", "continue_statement"):
        return True
    if node.type != "expression_statement":
        return False
    named = node.named_children
    if len(named) != 1:
        return False
    if named[0].type == "ellipsis":
        return True
    # Logging the failure and carrying on still discards it
    if named[0].type == "call":
        callee = _text(named[0].child_by_field_name("function")).lower()
        return any(word in callee for word in _REPORT_CALLS)
    return False


def _block_statements(node: tree_sitter.Node) -> list[tree_sitter.Node]:
    for child in node.children:
        if child.type == "block":
            return [c for c in child.named_children if c.type != "comment"]
    return []


def _is_self_attribute(node: tree_sitter.Node | None) -> bool:
    return (
        node is not None
        and node.type == "attribute"
        and _text(node.child_by_field_name("object")) in _RECEIVER_NAMES
    )


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


@dataclass
class _PythonScan:
    defined_names: set[str] = field(default_factory=lambda: set[str]())
    function_names: set[str] = field(default_factory=lambda: set[str]())
    magic_numbers: int = 0
    ceremony_lines: int = 0
    max_nesting: int = 0
    longest_function: int = 0
    call_edges: set[tuple[str, str]] = field(
        default_factory=lambda: set[tuple[str, str]]()
    )
    hidden_coupling: set[str] = field(default_factory=lambda: set[str]())
    shared_reads: set[str] = field(default_factory=lambda: set[str]())
    rebound_shared: set[str] = field(default_factory=lambda: set[str]())
    try_blocks: int = 0
    swallowed_handlers: int = 0
    sentinel_returns: int = 0
    generic_raises: int = 0
    specific_raises: int = 0
    raised_types: list[str] = field(default_factory=lambda: list[str]())
    custom_error_types: set[str] = field(default_factory=lambda: set[str]())
    _shared: set[str] = field(default_factory=lambda: set[str]())

    def run(self, root: tree_sitter.Node) -> None:
        functions = [
            n for n in _walk(root) if n.type == "function_definition"
        ]
        for fn in functions:
            name = _text(fn.child_by_field_name("name"))
            self.function_names.add(name)
            self.defined_names.add(name)

        self._scan_module_bindings(root)

        for node in _walk(root):
            self._scan_node(node)

        for fn in functions:
            self._scan_function(fn)

    # -- module level -----------------------------------------------------

    def _scan_module_bindings(self, root: tree_sitter.Node) -> None:
        bindings: Counter[str] = Counter()
        mutated: set[str] = set()
        for stmt in root.named_children:
            if stmt.type != "expression_statement" or not stmt.named_children:
                continue
            expr = stmt.named_children[0]
            if expr.type in ("assignment", "augmented_assignment"):
                for name in _target_identifiers(
                    expr.child_by_field_name("left")
                ):
                    bindings[name] += 1
            elif expr.type == "call":
                func = expr.child_by_field_name("function")
                if func is not None and func.type == "attribute":
                    obj = func.child_by_field_name("object")
                    attr = _text(func.child_by_field_name("attribute"))
                    if obj is not None and obj.type == "identifier" and (
                        attr in _MUTATORS
                    ):
                        mutated.add(_text(obj))

        self._shared = {
            n for n in bindings
            if not _CONSTANT_NAME.match(n) and n != "__all__"
        }
        self.rebound_shared = {
            n for n in self._shared if bindings[n] > 1 or n in mutated
        }

    # -- whole-tree signals -----------------------------------------------

    def _scan_node(self, node: tree_sitter.Node) -> None:
        kind = node.type
        if kind == "class_definition":
            name = _text(node.child_by_field_name("name"))
            self.defined_names.add(name)
            bases = _text(node.child_by_field_name("superclasses"))
            if "Error" in bases or "Exception" in bases:
                self.custom_error_types.add(name)
        elif kind in ("assignment", "augmented_assignment"):
            for name in _target_identifiers(node.child_by_field_name("left")):
                self.defined_names.add(name)
        elif kind in ("integer", "float"):
            self._scan_number(node)
        elif kind == "pass_statement":
            if _enclosing(node, _EXCEPT, _FUNCTION_SCOPE) is None:
                self.ceremony_lines += 1
        elif kind == "try_statement":
            self.try_blocks += 1
        elif kind in _EXCEPT:
            statements = _block_statements(node)
            if statements and all(_is_noop_statement(s) for s in statements):
                self.swallowed_handlers += 1
        elif kind == "return_statement":
            self._scan_return(node)
        elif kind == "raise_statement":
            raised = _raised_type(node)
            if raised is not None:
                self.raised_types.append(raised)
            if raised is not None and raised in GENERIC_ERROR_TYPES:
                self.generic_raises += 1
            else:
                self.specific_raises += 1

    def _scan_number(self, node: tree_sitter.Node) -> None:
        literal = _text(node)
        parent = node.parent
        if parent is not None and parent.type == "unary_operator" and (
            _text(parent).startswith("-")
        ):
            literal = f"-{literal}"
        if literal in _ALLOWED_NUMBERS:
            return
        # Literals bound to UPPER_CASE names are named constants
        current = node.parent
        while current is not None:
            if current.type == "assignment":
                left = current.child_by_field_name("left")
                if left is not None and left.type == "identifier" and (
                    _CONSTANT_NAME.match(_text(left))
                ):
                    return
            if current.type in ("function_definition", "module"):
                break
            current = current.parent
        self.magic_numbers += 1

    def _scan_return(self, node: tree_sitter.Node) -> None:
        if _enclosing(node, _EXCEPT, _FUNCTION_SCOPE) is not None:
            self.sentinel_returns += 1
            return
        named = [c for c in node.named_children if c.type != "comment"]
        if named and _text(named[0]) in _SENTINEL_VALUES:
            self.sentinel_returns += 1

    # -- per-function signals ---------------------------------------------

    def _scan_function(self, fn: tree_sitter.Node) -> None:
        name = _text(fn.child_by_field_name("name"))
        body = fn.child_by_field_name("body")
        params = _parameter_names(fn.child_by_field_name("parameters"))
        self.defined_names.update(p for p in params if p not in _RECEIVER_NAMES)

        span = _line_span(fn)
        self.longest_function = max(self.longest_function, span)
        if body is None:
            return

        self.max_nesting = max(self.max_nesting, _nesting_depth(body, 0))
        self._scan_ceremony(name, body, span)

        local_names = set(params)
        for node in _walk_local(body):
            if node.type in ("assignment", "augmented_assignment"):
                local_names.update(
                    _target_identifiers(node.child_by_field_name("left"))
                )
            elif node.type in ("for_statement", "for_in_clause"):
                local_names.update(
                    _target_identifiers(node.child_by_field_name("left"))
                )

        for node in _walk_local(body):
            self._scan_coupling(name, node, local_names)

    def _scan_ceremony(
        self, name: str, body: tree_sitter.Node, span: int
    ) -> None:
        statements = [
            c for c in body.named_children if c.type != "comment"
        ]
        if len(statements) == 1 and _is_trivial_accessor(statements[0]):
            self.ceremony_lines += span
            return
        if name == "__init__":
            for stmt in statements:
                if _is_field_copy(stmt):
                    self.ceremony_lines += 1

    def _scan_coupling(
        self, fn_name: str, node: tree_sitter.Node, local_names: set[str]
    ) -> None:
        kind = node.type
        if kind in ("global_statement", "nonlocal_statement"):
            keyword = kind.split("_", 1)[0]
            names = ", ".join(
                _text(c) for c in node.named_children
                if c.type == "identifier"
            )
            self.hidden_coupling.add(f"{fn_name}() declares {keyword} {names}")
        elif kind == "call":
            self._scan_call(fn_name, node, local_names)
        elif kind in ("assignment", "augmented_assignment"):
            left = node.child_by_field_name("left")
            if left is None:
                return
            target: tree_sitter.Node | None = None
            if left.type == "attribute":
                target = left.child_by_field_name("object")
            elif left.type == "subscript":
                target = left.child_by_field_name("value")
            if target is not None and target.type == "identifier":
                shared = _text(target)
                if shared in self._shared and shared not in local_names:
                    self.hidden_coupling.add(
                        f"{fn_name}() writes into module-level '{shared}'"
                    )
        elif kind == "identifier":
            ident = _text(node)
            if ident not in self._shared or ident in local_names:
                return
            parent = node.parent
            if parent is not None and parent.type == "attribute" and _same(
                parent.child_by_field_name("attribute"), node
            ):
                return
            if parent is not None and parent.type == "keyword_argument" and (
                _same(parent.child_by_field_name("name"), node)
            ):
                return
            self.shared_reads.add(ident)

    def _scan_call(
        self, fn_name: str, node: tree_sitter.Node, local_names: set[str]
    ) -> None:
        func = node.child_by_field_name("function")
        if func is None:
            return
        if func.type == "identifier":
            callee = _text(func)
            if callee == "setattr":
                args = node.child_by_field_name("arguments")
                first = args.named_children[0] if args and args.named_children else None
                if first is not None and _text(first) not in _RECEIVER_NAMES:
                    self.hidden_coupling.add(
                        f"{fn_name}() patches '{_text(first)}' with setattr"
                    )
            elif callee in self.function_names and callee != fn_name:
                self.call_edges.add((fn_name, callee))
        elif func.type == "attribute":
            obj = func.child_by_field_name("object")
            attr = _text(func.child_by_field_name("attribute"))
            if obj is None:
                return
            receiver = _text(obj)
            if receiver in _RECEIVER_NAMES:
                if attr in self.function_names and attr != fn_name:
                    self.call_edges.add((fn_name, attr))
            elif (
                obj.type == "identifier"
                and receiver in self._shared
                and receiver not in local_names
                and attr in _MUTATORS
            ):
                self.hidden_coupling.add(
                    f"{fn_name}() mutates module-level '{receiver}'"
                )


def _nesting_depth(node: tree_sitter.Node, depth: int) -> int:
    if node.type in _CONTROL_NODES:
        depth += 1
    deepest = depth
    for child in node.children:
        if child.type == "function_definition":
            continue
        deepest = max(deepest, _nesting_depth(child, depth))
    return deepest


def _is_trivial_accessor(stmt: tree_sitter.Node) -> bool:
    """``return self.x`` or ``self.x = value`` as a whole body."""
    if stmt.type == "return_statement":
        named = stmt.named_children
        return len(named) == 1 and _is_self_attribute(named[0])
    return _is_field_copy(stmt)


def _is_field_copy(stmt: tree_sitter.Node) -> bool:
    """``self.name = name``."""
    if stmt.type != "expression_statement" or not stmt.named_children:
        return False
    expr = stmt.named_children[0]
    if expr.type != "assignment":
        return False
    left = expr.child_by_field_name("left")
    right = expr.child_by_field_name("right")
    return (
        _is_self_attribute(left)
        and right is not None
        and right.type == "identifier"
        and left is not None
        and _text(left.child_by_field_name("attribute")) == _text(right)
    )
