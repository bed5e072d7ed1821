"""
Grammar Model - Core Data Structures for Context-Free Grammars

This module defines the symbol and grammar types shared by the FIRST/FOLLOW
computer, the LL(1) table builder, the table-driven parser and the grammar
normalizer. A Grammar is validated once at construction and is read-only
afterwards; every transformation produces a new instance.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

EPSILON_NAME = "ε"
END_MARKER_NAME = "$"


class SymbolKind(Enum):
    """Classification of a grammar symbol."""
    TERMINAL = "terminal"
    NONTERMINAL = "nonterminal"
    EPSILON = "epsilon"
    END_MARKER = "end_marker"


@dataclass(frozen=True)
class Symbol:
    """A grammar symbol, compared by name and kind."""
    name: str
    kind: SymbolKind

    @property
    def is_terminal(self) -> bool:
        # The end marker matches input like any other terminal
        return self.kind in (SymbolKind.TERMINAL, SymbolKind.END_MARKER)

    @property
    def is_nonterminal(self) -> bool:
        return self.kind == SymbolKind.NONTERMINAL

    @property
    def is_epsilon(self) -> bool:
        return self.kind == SymbolKind.EPSILON

    @property
    def is_end_marker(self) -> bool:
        return self.kind == SymbolKind.END_MARKER

    def __str__(self) -> str:
        return self.name


EPSILON = Symbol(EPSILON_NAME, SymbolKind.EPSILON)
END_MARKER = Symbol(END_MARKER_NAME, SymbolKind.END_MARKER)

SymbolLike = Union[str, Symbol]
RightHandSide = Tuple[Symbol, ...]


def terminal(name: str) -> Symbol:
    return Symbol(name, SymbolKind.TERMINAL)


def nonterminal(name: str) -> Symbol:
    return Symbol(name, SymbolKind.NONTERMINAL)


@dataclass(frozen=True)
class Production:
    """Represents a single production rule A -> alpha."""
    lhs: Symbol
    rhs: RightHandSide

    @property
    def is_epsilon(self) -> bool:
        return len(self.rhs) == 1 and self.rhs[0].is_epsilon

    def __str__(self) -> str:
        return f"{self.lhs} -> {' '.join(s.name for s in self.rhs)}"


class GrammarDefinitionError(ValueError):
    """Raised when a grammar violates its construction invariants."""

    def __init__(self, message: str, kind: str, symbol: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.symbol = symbol


def _name_of(symbol: SymbolLike) -> str:
    return symbol.name if isinstance(symbol, Symbol) else str(symbol)


class Grammar:
    """
    Immutable context-free grammar.

    Args:
        non_terminals: Nonterminal names (or Symbols)
        terminals: Terminal names (or Symbols); "$" is accepted and folded
            into the implicit end marker
        start_symbol: Name of the start nonterminal
        productions: Mapping from nonterminal name to its ordered right-hand
            sides, each a sequence of names. "ε" denotes the empty string and
            must stand alone; an empty sequence is read as ["ε"].

    Raises:
        GrammarDefinitionError: if the start symbol is not declared, a
            production references an undeclared symbol, or the symbol sets
            are otherwise inconsistent.
    """

    def __init__(self,
                 non_terminals: Iterable[SymbolLike],
                 terminals: Iterable[SymbolLike],
                 start_symbol: SymbolLike,
                 productions: Mapping[SymbolLike, Sequence[Sequence[SymbolLike]]]):
        nt_names = [_name_of(s) for s in non_terminals]
        t_names = [_name_of(s) for s in terminals if _name_of(s) != END_MARKER_NAME]

        overlap = set(nt_names) & set(t_names)
        if overlap:
            name = sorted(overlap)[0]
            raise GrammarDefinitionError(
                f"Symbol '{name}' is declared both as terminal and non-terminal",
                kind="overlapping_symbol", symbol=name)
        for name in nt_names + t_names:
            if name in (EPSILON_NAME, END_MARKER_NAME):
                raise GrammarDefinitionError(
                    f"Reserved symbol '{name}' cannot be declared",
                    kind="overlapping_symbol", symbol=name)

        self._non_terminals: FrozenSet[Symbol] = frozenset(nonterminal(n) for n in nt_names)
        self._terminals: FrozenSet[Symbol] = frozenset(terminal(n) for n in t_names)
        self._by_name: Dict[str, Symbol] = {s.name: s for s in self._non_terminals | self._terminals}
        self._by_name[EPSILON_NAME] = EPSILON
        self._by_name[END_MARKER_NAME] = END_MARKER

        start_name = _name_of(start_symbol)
        if start_name not in nt_names:
            raise GrammarDefinitionError(
                f"Start symbol '{start_name}' is not a declared non-terminal",
                kind="undeclared_start", symbol=start_name)
        self._start_symbol = nonterminal(start_name)

        rules: Dict[Symbol, Tuple[RightHandSide, ...]] = {}
        for lhs, alternatives in productions.items():
            lhs_name = _name_of(lhs)
            if lhs_name not in nt_names:
                raise GrammarDefinitionError(
                    f"Production defined for undeclared non-terminal '{lhs_name}'",
                    kind="undeclared_lhs", symbol=lhs_name)
            lhs_symbol = nonterminal(lhs_name)
            converted = [self._convert_rhs(lhs_name, rhs) for rhs in alternatives]
            rules[lhs_symbol] = rules.get(lhs_symbol, ()) + tuple(converted)
        self._rules = rules
        self._productions: List[Production] = [
            Production(lhs, rhs) for lhs, alternatives in rules.items() for rhs in alternatives
        ]

    def _convert_rhs(self, lhs_name: str, rhs: Sequence[SymbolLike]) -> RightHandSide:
        names = [_name_of(s) for s in rhs]
        if not names:
            return (EPSILON,)
        if EPSILON_NAME in names and len(names) > 1:
            raise GrammarDefinitionError(
                f"Epsilon must be the only symbol of a right-hand side "
                f"(in {lhs_name} -> {' '.join(names)})",
                kind="misplaced_epsilon", symbol=EPSILON_NAME)
        symbols = []
        for name in names:
            symbol = self._by_name.get(name)
            if symbol is None:
                raise GrammarDefinitionError(
                    f"Undefined symbol '{name}' in production "
                    f"{lhs_name} -> {' '.join(names)}",
                    kind="undefined_symbol", symbol=name)
            symbols.append(symbol)
        return tuple(symbols)

    @classmethod
    def empty_language(cls, start_symbol: SymbolLike) -> "Grammar":
        """Grammar with no symbols and no productions, keeping the start symbol."""
        grammar = cls.__new__(cls)
        grammar._non_terminals = frozenset()
        grammar._terminals = frozenset()
        grammar._start_symbol = nonterminal(_name_of(start_symbol))
        grammar._by_name = {EPSILON_NAME: EPSILON, END_MARKER_NAME: END_MARKER}
        grammar._rules = {}
        grammar._productions = []
        return grammar

    @property
    def non_terminals(self) -> FrozenSet[Symbol]:
        return self._non_terminals

    @property
    def terminals(self) -> FrozenSet[Symbol]:
        return self._terminals

    @property
    def start_symbol(self) -> Symbol:
        return self._start_symbol

    @property
    def productions(self) -> List[Production]:
        """All productions in declaration order."""
        return list(self._productions)

    @property
    def rules(self) -> Dict[Symbol, Tuple[RightHandSide, ...]]:
        return dict(self._rules)

    @property
    def is_empty_language(self) -> bool:
        return not self._non_terminals and not self._productions

    def productions_for(self, non_terminal: SymbolLike) -> List[RightHandSide]:
        """Ordered right-hand sides of a nonterminal (empty if none declared)."""
        return list(self._rules.get(nonterminal(_name_of(non_terminal)), ()))

    def symbol(self, name: SymbolLike) -> Optional[Symbol]:
        """Resolve a name to the grammar's Symbol, or None if unknown."""
        return self._by_name.get(_name_of(name))

    def is_terminal(self, symbol: SymbolLike) -> bool:
        resolved = self.symbol(symbol)
        return resolved is not None and resolved.is_terminal

    def is_nonterminal(self, symbol: SymbolLike) -> bool:
        resolved = self.symbol(symbol)
        return resolved is not None and resolved.is_nonterminal

    def symbol_names(self) -> FrozenSet[str]:
        return frozenset(s.name for s in self._non_terminals | self._terminals)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grammar):
            return NotImplemented
        return (self._non_terminals == other._non_terminals
                and self._terminals == other._terminals
                and self._start_symbol == other._start_symbol
                and {k: set(v) for k, v in self._rules.items() if v}
                == {k: set(v) for k, v in other._rules.items() if v})

    def __hash__(self):
        return hash((self._non_terminals, self._terminals, self._start_symbol))

    def __str__(self) -> str:
        lines = [f"Start Symbol: {self._start_symbol}"]
        lines.append(f"Terminals: {sorted(s.name for s in self._terminals)}")
        lines.append(f"Non-terminals: {sorted(s.name for s in self._non_terminals)}")
        lines.append("Productions:")
        for prod in self._productions:
            lines.append(f"  {prod}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (f"Grammar(start={self._start_symbol.name!r}, "
                f"non_terminals={len(self._non_terminals)}, "
                f"terminals={len(self._terminals)}, "
                f"productions={len(self._productions)})")


def example_grammar() -> Grammar:
    """
    Demo grammar for a small Pascal-like statement language.

    S -> begin STATEMENTS end
    STATEMENTS -> STATEMENT STATEMENTS | ε
    STATEMENT -> IDENTIFIER := EXPR ;
               | if ( COND ) writeln ( WRITE_ARG ) else writeln ( WRITE_ARG ) ;
    EXPR -> IDENTIFIER | INTEGER_LITERAL | FLOAT_LITERAL
    COND -> REL_EXPR COND_TAIL
    COND_TAIL -> or REL_EXPR COND_TAIL | ε
    REL_EXPR -> IDENTIFIER REL_OP IDENTIFIER
    REL_OP -> < | > | = | <= | >= | <>
    WRITE_ARG -> STRING_LITERAL
    """
    non_terminals = ["S", "STATEMENTS", "STATEMENT", "EXPR", "COND",
                     "COND_TAIL", "REL_EXPR", "REL_OP", "WRITE_ARG"]
    terminals = ["begin", "end", "if", "else", "writeln",
                 ":=", ";", "(", ")",
                 "<", ">", "=", "<=", ">=", "<>",
                 "or",
                 "IDENTIFIER", "INTEGER_LITERAL", "FLOAT_LITERAL", "STRING_LITERAL",
                 "$"]
    productions = {
        "S": [["begin", "STATEMENTS", "end"]],
        "STATEMENTS": [["STATEMENT", "STATEMENTS"], ["ε"]],
        "STATEMENT": [
            ["IDENTIFIER", ":=", "EXPR", ";"],
            ["if", "(", "COND", ")", "writeln", "(", "WRITE_ARG", ")",
             "else", "writeln", "(", "WRITE_ARG", ")", ";"],
        ],
        "EXPR": [["IDENTIFIER"], ["INTEGER_LITERAL"], ["FLOAT_LITERAL"]],
        "COND": [["REL_EXPR", "COND_TAIL"]],
        "COND_TAIL": [["or", "REL_EXPR", "COND_TAIL"], ["ε"]],
        "REL_EXPR": [["IDENTIFIER", "REL_OP", "IDENTIFIER"]],
        "REL_OP": [["<"], [">"], ["="], ["<="], [">="], ["<>"]],
        "WRITE_ARG": [["STRING_LITERAL"]],
    }
    return Grammar(non_terminals, terminals, "S", productions)
