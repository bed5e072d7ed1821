"""
LL(1) parse table construction.

For every production A -> alpha, the cells (A, t) for t in FIRST(alpha) are
filled with the production; when alpha is nullable, the cells (A, f) for f
in FOLLOW(A) are filled too. Two different productions claiming the same
cell make the grammar non-LL(1); the builder reports this unless the caller
asks for the permissive last-write-wins behavior.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from first_follow import FirstFollowComputer
from grammar_model import EPSILON, Grammar, Production, Symbol, SymbolLike, nonterminal

TableKey = Tuple[Symbol, Symbol]


@dataclass(frozen=True)
class Conflict:
    """Two or more productions competing for the same table cell."""
    non_terminal: Symbol
    lookahead: Symbol
    productions: Tuple[Production, ...]

    @property
    def chosen(self) -> Production:
        # Last write wins
        return self.productions[-1]

    def __str__(self) -> str:
        alternatives = " | ".join(str(p) for p in self.productions)
        return f"LL(1) conflict at M[{self.non_terminal}, {self.lookahead}]: {alternatives}"


class GrammarNotLL1Error(ValueError):
    """Raised when table construction finds conflicting cells."""

    def __init__(self, conflicts: List[Conflict]):
        self.conflicts = list(conflicts)
        summary = "; ".join(str(c) for c in self.conflicts[:3])
        if len(self.conflicts) > 3:
            summary += f"; ... ({len(self.conflicts) - 3} more)"
        super().__init__(f"Grammar is not LL(1): {summary}")


@dataclass(frozen=True, eq=False)
class ParseTable:
    """
    Immutable LL(1) decision table (non-terminal, lookahead) -> production.

    Tables compare and hash by identity; the cells mapping is not hashable.
    """
    grammar: Grammar
    cells: Dict[TableKey, Production] = field(repr=False)
    conflicts: Tuple[Conflict, ...] = ()

    def _key(self, non_terminal: SymbolLike, lookahead: SymbolLike) -> Optional[TableKey]:
        nt = non_terminal if isinstance(non_terminal, Symbol) else nonterminal(str(non_terminal))
        la = lookahead if isinstance(lookahead, Symbol) else self.grammar.symbol(lookahead)
        if la is None:
            return None
        return nt, la

    def get(self, non_terminal: SymbolLike, lookahead: Optional[SymbolLike]) -> Optional[Production]:
        """Production for the cell, or None when the cell is empty."""
        if lookahead is None:
            return None
        key = self._key(non_terminal, lookahead)
        if key is None:
            return None
        return self.cells.get(key)

    def __contains__(self, key) -> bool:
        non_terminal, lookahead = key
        return self.get(non_terminal, lookahead) is not None

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def is_ll1(self) -> bool:
        return not self.conflicts

    def entries(self) -> List[Tuple[Symbol, Symbol, Production]]:
        """All filled cells sorted by non-terminal and lookahead name."""
        return [(nt, la, prod) for (nt, la), prod in
                sorted(self.cells.items(), key=lambda item: (item[0][0].name, item[0][1].name))]

    def non_terminals(self) -> List[Symbol]:
        return sorted({nt for nt, _ in self.cells}, key=lambda s: s.name)

    def lookaheads(self) -> List[Symbol]:
        return sorted({la for _, la in self.cells}, key=lambda s: s.name)

    def __iter__(self) -> Iterator[Tuple[Symbol, Symbol, Production]]:
        return iter(self.entries())

    def __str__(self) -> str:
        lines = ["LL(1) Parse Table:"]
        for nt, la, prod in self.entries():
            lines.append(f"  M[{nt}, {la}] = {' '.join(s.name for s in prod.rhs)}")
        return "\n".join(lines)


class ParseTableBuilder:
    """
    Builds the LL(1) table of a grammar.

    Args:
        grammar: The grammar to build for
        first_follow: Precomputed FIRST/FOLLOW sets; computed if omitted
        allow_conflicts: Keep the later production on a cell collision instead
            of raising GrammarNotLL1Error
    """

    def __init__(self, grammar: Grammar, first_follow: Optional[FirstFollowComputer] = None,
                 allow_conflicts: bool = False):
        self.grammar = grammar
        self.first_follow = first_follow or FirstFollowComputer(grammar)
        self.allow_conflicts = allow_conflicts

    def build(self) -> ParseTable:
        """
        Fill the table in production declaration order.

        Raises:
            GrammarNotLL1Error: if cells collide and conflicts are not allowed
        """
        cells: Dict[TableKey, Production] = {}
        claims: Dict[TableKey, List[Production]] = {}

        for production in self.grammar.productions:
            first_alpha = self.first_follow.first_of(production.rhs)
            lookaheads = [t for t in first_alpha if t != EPSILON]
            if EPSILON in first_alpha:
                lookaheads.extend(self.first_follow.follow(production.lhs))
            # Sorted so conflict reports do not depend on set ordering
            for lookahead in sorted(set(lookaheads), key=lambda s: s.name):
                self._add_entry(cells, claims, production.lhs, lookahead, production)

        conflicts = tuple(
            Conflict(nt, la, tuple(prods))
            for (nt, la), prods in sorted(claims.items(), key=lambda item: (item[0][0].name, item[0][1].name))
            if len(prods) > 1
        )
        if conflicts and not self.allow_conflicts:
            raise GrammarNotLL1Error(list(conflicts))
        return ParseTable(grammar=self.grammar, cells=cells, conflicts=conflicts)

    def _add_entry(self, cells: Dict[TableKey, Production], claims: Dict[TableKey, List[Production]],
                   non_terminal: Symbol, lookahead: Symbol, production: Production):
        key = (non_terminal, lookahead)
        previous = claims.setdefault(key, [])
        if production not in previous:
            previous.append(production)
        cells[key] = production


def build_parse_table(grammar: Grammar, allow_conflicts: bool = False) -> ParseTable:
    """Compute FIRST/FOLLOW sets and build the LL(1) table in one call."""
    return ParseTableBuilder(grammar, allow_conflicts=allow_conflicts).build()
