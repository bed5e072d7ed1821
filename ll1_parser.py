"""
Table-driven LL(1) parser that builds the parse tree while it runs.

The stack holds parse tree nodes. It starts as [$, S] with the end marker at
the bottom. A terminal on top must match the current input symbol; a
nonterminal on top is expanded with the table entry for the current
lookahead: its children are created in right-hand side order, attached to
the node, and pushed in reverse so the leftmost child is processed next.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from grammar_model import END_MARKER, END_MARKER_NAME, EPSILON, Grammar, Symbol, terminal
from parse_table import ParseTable


@dataclass
class ParseTreeNode:
    """Represents a node in the parse tree."""
    symbol: Symbol
    children: List["ParseTreeNode"] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.symbol.name

    @property
    def is_terminal(self) -> bool:
        return not self.symbol.is_nonterminal

    def add_child(self, child: "ParseTreeNode"):
        self.children.append(child)

    def walk(self) -> Iterator[Tuple["ParseTreeNode", int]]:
        """
        Pre-order traversal, left to right.

        Iterative: right-recursive rules make trees as deep as the input.

        Yields:
            (node, depth) pairs, the root at depth 0
        """
        stack = [(self, 0)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            for child in reversed(node.children):
                stack.append((child, depth + 1))

    def leaves(self) -> List["ParseTreeNode"]:
        """Leaf nodes from left to right."""
        return [node for node, _ in self.walk() if not node.children]

    def terminal_yield(self) -> List[str]:
        """Names of the leaf terminals, left to right, without epsilon leaves."""
        return [leaf.label for leaf in self.leaves() if leaf.symbol.is_terminal]

    def pretty(self, indent: str = "  ") -> str:
        return "\n".join(indent * depth + node.label for node, depth in self.walk())

    def to_dict(self) -> Dict[str, Any]:
        """Nested {symbol, kind, children} dictionaries."""
        root = {"symbol": self.label, "kind": self.symbol.kind.value, "children": []}
        pending = [(self, root)]
        while pending:
            node, out = pending.pop()
            for child in node.children:
                child_out = {"symbol": child.label, "kind": child.symbol.kind.value, "children": []}
                out["children"].append(child_out)
                pending.append((child, child_out))
        return root

    def to_node_list(self) -> List[Dict[str, Any]]:
        """
        Flat pre-order node table; children are referenced by index.

        Deep trees serialize to JSON without hitting the encoder's nesting
        limit. Index 0 is the root.
        """
        ordered = [node for node, _ in self.walk()]
        index = {id(node): i for i, node in enumerate(ordered)}
        return [
            {"id": i, "symbol": node.label, "kind": node.symbol.kind.value,
             "children": [index[id(child)] for child in node.children]}
            for i, node in enumerate(ordered)
        ]

    def __str__(self) -> str:
        if self.is_terminal:
            return f"'{self.label}'"
        return self.label


@dataclass
class ParseStep:
    """Represents a single step in the parsing trace."""
    step_number: int
    stack: List[str]  # Bottom to top
    lookahead: Optional[str]
    action: str

    def __str__(self) -> str:
        lookahead = self.lookahead if self.lookahead is not None else "<none>"
        return f"Step {self.step_number}: Stack=[{' '.join(self.stack)}] Lookahead={lookahead} Action={self.action}"


class ParseError(Exception):
    """Base class for syntax errors found by the LL(1) parser."""

    def __init__(self, message: str, position: int):
        super().__init__(message)
        self.position = position


class TerminalMismatch(ParseError):
    """The terminal on top of the stack differs from the current input symbol."""

    def __init__(self, expected: Symbol, found: Symbol, position: int):
        super().__init__(f"Expected '{expected}', found '{found}' at position {position}", position)
        self.expected = expected
        self.found = found


class NoApplicableProduction(ParseError):
    """The table has no entry for (non-terminal, lookahead)."""

    def __init__(self, non_terminal: Symbol, lookahead: Symbol, position: int):
        super().__init__(
            f"No production for ({non_terminal}, {lookahead}) at position {position}", position)
        self.non_terminal = non_terminal
        self.lookahead = lookahead


class UnconsumedInput(ParseError):
    """The stack emptied while input symbols were still left."""

    def __init__(self, remaining: List[Symbol], position: int):
        super().__init__(
            f"Input not fully consumed: {len(remaining)} symbol(s) left at position {position}", position)
        self.remaining = remaining


class PrematureEnd(ParseError):
    """The input ran out while the stack still expected a symbol."""

    def __init__(self, expected: Symbol, position: int):
        super().__init__(f"Unexpected end of input at position {position}, expected '{expected}'", position)
        self.expected = expected


InputItem = Union[str, Symbol, Any]


class LL1Parser:
    """
    Parses terminal streams with a prebuilt LL(1) table.

    The parser holds no state between calls; each parse returns a fresh tree.
    """

    def __init__(self, grammar: Grammar, table: ParseTable):
        self.grammar = grammar
        self.table = table

    def _to_symbol(self, item: InputItem) -> Symbol:
        if isinstance(item, Symbol):
            return item
        # Tokens from the lexical analyzer carry their terminal name
        name = getattr(item, "terminal", item)
        name = str(name)
        if name == END_MARKER_NAME:
            return END_MARKER
        resolved = self.grammar.symbol(name)
        if resolved is not None and resolved.is_terminal:
            return resolved
        return terminal(name)

    def parse(self, tokens: Sequence[InputItem], trace: Optional[List[ParseStep]] = None) -> ParseTreeNode:
        """
        Parse a terminal stream ending with the end marker.

        Args:
            tokens: Terminal names, Symbols or Tokens; the last one must be "$"
            trace: Optional list that receives one ParseStep per iteration

        Returns:
            Root node of the parse tree

        Raises:
            TerminalMismatch, NoApplicableProduction, UnconsumedInput, PrematureEnd
        """
        stream = [self._to_symbol(t) for t in tokens]
        root = ParseTreeNode(self.grammar.start_symbol)
        stack = [ParseTreeNode(END_MARKER), root]
        pos = 0

        while stack:
            top = stack[-1]
            current = stream[pos] if pos < len(stream) else None

            if top.symbol.is_terminal:
                if current is None:
                    self._record(trace, stack, current, f"error: expected '{top.label}'")
                    raise PrematureEnd(top.symbol, pos)
                if top.symbol != current:
                    self._record(trace, stack, current, f"error: expected '{top.label}'")
                    raise TerminalMismatch(top.symbol, current, pos)
                self._record(trace, stack, current, f"match '{current}'")
                stack.pop()
                pos += 1
                continue

            production = self.table.get(top.symbol, current)
            if production is None:
                self._record(trace, stack, current, f"error: no rule for {top.label}")
                if current is None:
                    raise PrematureEnd(top.symbol, pos)
                raise NoApplicableProduction(top.symbol, current, pos)

            self._record(trace, stack, current, f"expand {production}")
            stack.pop()
            if production.is_epsilon:
                top.add_child(ParseTreeNode(EPSILON))
                continue

            children = [ParseTreeNode(symbol) for symbol in production.rhs]
            for child in children:
                top.add_child(child)
            for child in reversed(children):
                stack.append(child)

        if pos != len(stream):
            raise UnconsumedInput(stream[pos:], pos)

        return root

    @staticmethod
    def _record(trace: Optional[List[ParseStep]], stack: List[ParseTreeNode],
                current: Optional[Symbol], action: str):
        if trace is None:
            return
        trace.append(ParseStep(
            step_number=len(trace) + 1,
            stack=[node.label for node in stack],
            lookahead=current.name if current is not None else None,
            action=action,
        ))
