"""
FIRST and FOLLOW set computation.

Both tables are computed by monotone fixpoint iteration over the grammar's
productions. The functions here are pure: they take a Grammar and return
fresh dictionaries, so several grammars can be processed side by side.
"""

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Set

from grammar_model import END_MARKER, EPSILON, Grammar, Symbol, SymbolLike

FirstSets = Dict[Symbol, FrozenSet[Symbol]]
FollowSets = Dict[Symbol, FrozenSet[Symbol]]


def first_of_sequence(symbols: Iterable[Symbol], first_sets: Mapping[Symbol, Iterable[Symbol]]) -> Set[Symbol]:
    """
    Compute FIRST of a string of symbols.

    FIRST(X1 X2 ... Xn):
    - Add FIRST(X1) - {epsilon}
    - If epsilon in FIRST(X1), add FIRST(X2) - {epsilon}
    - Continue until Xi where epsilon not in FIRST(Xi)
    - If epsilon in FIRST(Xi) for all i (or the string is empty), add epsilon
    """
    result: Set[Symbol] = set()
    for symbol in symbols:
        symbol_first = first_sets.get(symbol, ())
        result.update(s for s in symbol_first if s != EPSILON)
        if EPSILON not in symbol_first:
            return result
    result.add(EPSILON)
    return result


def compute_first_sets(grammar: Grammar) -> FirstSets:
    """
    Compute FIRST sets for every grammar symbol.

    Terminals (and the end marker) have FIRST equal to themselves. Nonterminal
    sets grow until a full pass over the productions adds nothing.
    """
    working: Dict[Symbol, Set[Symbol]] = {t: {t} for t in grammar.terminals}
    working[END_MARKER] = {END_MARKER}
    working[EPSILON] = {EPSILON}
    for nt in grammar.non_terminals:
        working[nt] = set()

    changed = True
    while changed:
        changed = False
        for production in grammar.productions:
            target = working[production.lhs]
            before_size = len(target)
            target.update(first_of_sequence(production.rhs, working))
            if len(target) > before_size:
                changed = True

    return {symbol: frozenset(values) for symbol, values in working.items()}


def compute_follow_sets(grammar: Grammar, first_sets: Optional[Mapping[Symbol, FrozenSet[Symbol]]] = None) -> FollowSets:
    """
    Compute FOLLOW sets for every nonterminal.

    FOLLOW(start) is seeded with the end marker. For every occurrence of a
    nonterminal B in A -> alpha B beta, FIRST(beta) - {epsilon} flows into
    FOLLOW(B), and FOLLOW(A) too when beta is empty or nullable.
    """
    if first_sets is None:
        first_sets = compute_first_sets(grammar)

    working: Dict[Symbol, Set[Symbol]] = {nt: set() for nt in grammar.non_terminals}
    working.setdefault(grammar.start_symbol, set()).add(END_MARKER)

    changed = True
    while changed:
        changed = False
        for production in grammar.productions:
            rhs = production.rhs
            for i, symbol in enumerate(rhs):
                if not symbol.is_nonterminal:
                    continue
                first_beta = first_of_sequence(rhs[i + 1:], first_sets)
                target = working[symbol]
                before_size = len(target)
                target.update(first_beta - {EPSILON})
                if EPSILON in first_beta:
                    target.update(working[production.lhs])
                if len(target) > before_size:
                    changed = True

    return {symbol: frozenset(values) for symbol, values in working.items()}


class FirstFollowComputer:
    """
    FIRST and FOLLOW sets of one grammar, computed once at construction.

    Queries for symbols the grammar does not know return an empty set.
    """

    def __init__(self, grammar: Grammar):
        self.grammar = grammar
        self._first = compute_first_sets(grammar)
        self._follow = compute_follow_sets(grammar, self._first)

    def _resolve(self, symbol: SymbolLike) -> Optional[Symbol]:
        if isinstance(symbol, Symbol):
            return symbol
        return self.grammar.symbol(symbol)

    def first(self, symbol: SymbolLike) -> FrozenSet[Symbol]:
        """Get FIRST set for a symbol."""
        resolved = self._resolve(symbol)
        if resolved is None:
            return frozenset()
        return self._first.get(resolved, frozenset())

    def follow(self, non_terminal: SymbolLike) -> FrozenSet[Symbol]:
        """Get FOLLOW set for a non-terminal."""
        resolved = self._resolve(non_terminal)
        if resolved is None:
            return frozenset()
        return self._follow.get(resolved, frozenset())

    def first_of(self, symbols: Iterable[SymbolLike]) -> FrozenSet[Symbol]:
        # Unknown symbols have an empty FIRST set and end the scan
        resolved = [self._resolve(s) for s in symbols]
        return frozenset(first_of_sequence(resolved, self._first))

    @property
    def first_sets(self) -> Mapping[Symbol, FrozenSet[Symbol]]:
        return MappingProxyType(self._first)

    @property
    def follow_sets(self) -> Mapping[Symbol, FrozenSet[Symbol]]:
        return MappingProxyType(self._follow)

    def __str__(self) -> str:
        lines = ["FIRST sets:"]
        for nt in sorted(self.grammar.non_terminals, key=lambda s: s.name):
            lines.append(f"  FIRST({nt}) = {sorted(s.name for s in self._first[nt])}")
        lines.append("FOLLOW sets:")
        for nt in sorted(self.grammar.non_terminals, key=lambda s: s.name):
            lines.append(f"  FOLLOW({nt}) = {sorted(s.name for s in self._follow[nt])}")
        return "\n".join(lines)
