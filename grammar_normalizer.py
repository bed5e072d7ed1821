"""
Grammar normalization pipeline.

Steps, in order:
1. find generating non-terminals; an empty language short-circuits
2. drop non-generating symbols and the productions that mention them
3. drop symbols unreachable from the start symbol
4. eliminate epsilon productions
5. optionally binarize right-hand sides

Each step is a pure function from Grammar to Grammar (or to a symbol set).
The input grammar is never modified.
"""

from collections import deque
from itertools import combinations
from typing import Dict, List, Set

from grammar_model import EPSILON, Grammar, RightHandSide, Symbol, nonterminal

Rules = Dict[Symbol, List[RightHandSide]]


def _rebuild(grammar: Grammar, non_terminals: Set[Symbol], terminals: Set[Symbol], rules: Rules) -> Grammar:
    return Grammar(
        non_terminals=sorted(s.name for s in non_terminals),
        terminals=sorted(s.name for s in terminals),
        start_symbol=grammar.start_symbol.name,
        productions={lhs.name: [[s.name for s in rhs] for rhs in alternatives]
                     for lhs, alternatives in rules.items()},
    )


def generating_symbols(grammar: Grammar) -> Set[Symbol]:
    """
    Non-terminals that derive at least one terminal string.

    A is generating if some A -> alpha has every symbol of alpha a terminal
    or an already generating non-terminal, or alpha is epsilon.
    """
    generating: Set[Symbol] = set()
    changed = True
    while changed:
        changed = False
        for production in grammar.productions:
            if production.lhs in generating:
                continue
            if production.is_epsilon or all(
                    s.is_terminal or s in generating for s in production.rhs):
                generating.add(production.lhs)
                changed = True
    return generating


def remove_non_generating(grammar: Grammar, generating: Set[Symbol]) -> Grammar:
    rules: Rules = {}
    for lhs, alternatives in grammar.rules.items():
        if lhs not in generating:
            continue
        kept = [rhs for rhs in alternatives
                if not any(s.is_nonterminal and s not in generating for s in rhs)]
        rules[lhs] = kept
    return _rebuild(grammar, grammar.non_terminals & generating, set(grammar.terminals), rules)


def reachable_symbols(grammar: Grammar) -> Set[Symbol]:
    """Symbols found by a breadth-first walk of productions from the start symbol."""
    start = grammar.start_symbol
    reachable: Set[Symbol] = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for rhs in grammar.productions_for(current):
            for symbol in rhs:
                if symbol.is_epsilon or symbol in reachable:
                    continue
                reachable.add(symbol)
                if symbol.is_nonterminal:
                    queue.append(symbol)
    return reachable


def remove_unreachable(grammar: Grammar, reachable: Set[Symbol]) -> Grammar:
    rules: Rules = {}
    for lhs, alternatives in grammar.rules.items():
        if lhs not in reachable:
            continue
        rules[lhs] = [rhs for rhs in alternatives
                      if all(s.is_epsilon or s.is_end_marker or s in reachable for s in rhs)]
    return _rebuild(grammar, grammar.non_terminals & reachable, grammar.terminals & reachable, rules)


def nullable_symbols(grammar: Grammar) -> Set[Symbol]:
    """Non-terminals with a direct epsilon production."""
    return {p.lhs for p in grammar.productions if p.is_epsilon}


def _deletion_variants(rhs: RightHandSide, nullable: Set[Symbol]) -> List[RightHandSide]:
    positions = [i for i, s in enumerate(rhs) if s in nullable]
    variants = []
    for size in range(1, len(positions) + 1):
        for removed in combinations(positions, size):
            variant = tuple(s for i, s in enumerate(rhs) if i not in removed)
            if variant:
                variants.append(variant)
    return variants


def eliminate_epsilon(grammar: Grammar) -> Grammar:
    """
    Remove epsilon productions.

    Every remaining right-hand side is kept together with each non-empty
    variant obtained by deleting a non-empty subset of its nullable
    occurrences. Duplicates are dropped, first occurrence wins.
    """
    nullable = nullable_symbols(grammar)
    rules: Rules = {}
    for lhs, alternatives in grammar.rules.items():
        seen: List[RightHandSide] = []
        for rhs in alternatives:
            if len(rhs) == 1 and rhs[0] == EPSILON:
                continue
            for candidate in [rhs] + _deletion_variants(rhs, nullable):
                if candidate not in seen:
                    seen.append(candidate)
        rules[lhs] = seen
    return _rebuild(grammar, set(grammar.non_terminals), set(grammar.terminals), rules)


def _fresh_name(base: str, taken: Set[str]) -> str:
    name = base
    suffix = 1
    while name in taken:
        name = f"{base}_{suffix}"
        suffix += 1
    taken.add(name)
    return name


def binarize_grammar(grammar: Grammar, drop_long_rules: bool = False) -> Grammar:
    """
    Bring every right-hand side to at most two symbols.

    In right-hand sides of length two or more, each terminal b is replaced by
    a shared fresh non-terminal N_b with N_b -> b. Sides still longer than two
    are split into a chain of fresh non-terminals, or dropped when
    drop_long_rules is set.
    """
    taken = set(grammar.symbol_names())
    non_terminals = set(grammar.non_terminals)
    terminal_wrappers: Dict[Symbol, Symbol] = {}
    rules: Rules = {}
    extra: Rules = {}

    def wrap(symbol: Symbol) -> Symbol:
        if symbol not in terminal_wrappers:
            wrapper = nonterminal(_fresh_name(f"N_{symbol.name}", taken))
            terminal_wrappers[symbol] = wrapper
            non_terminals.add(wrapper)
            extra[wrapper] = [(symbol,)]
        return terminal_wrappers[symbol]

    for lhs, alternatives in grammar.rules.items():
        output: List[RightHandSide] = []
        chain_count = 0
        for rhs in alternatives:
            if drop_long_rules and len(rhs) > 2:
                continue
            if len(rhs) >= 2 and any(s.is_terminal for s in rhs):
                rhs = tuple(wrap(s) if s.is_terminal else s for s in rhs)
            if len(rhs) <= 2:
                if rhs not in output:
                    output.append(rhs)
                continue
            # A -> X1 X2 ... Xn  becomes  A -> X1 A_1, A_1 -> X2 A_2, ..., A_k -> Xn-1 Xn
            head = lhs
            remaining = rhs
            while len(remaining) > 2:
                chain_count += 1
                link = nonterminal(_fresh_name(f"{lhs.name}_{chain_count}", taken))
                non_terminals.add(link)
                pair = (remaining[0], link)
                if head == lhs:
                    output.append(pair)
                else:
                    extra[head] = [pair]
                head = link
                remaining = remaining[1:]
            extra[head] = [remaining]
        rules[lhs] = output

    rules.update(extra)
    return _rebuild(grammar, non_terminals, set(grammar.terminals), rules)


class GrammarNormalizer:
    """
    Runs the normalization pipeline.

    Args:
        binarize: Apply the binarization step after epsilon elimination
        drop_long_rules: During binarization, discard right-hand sides longer
            than two symbols instead of splitting them
    """

    def __init__(self, binarize: bool = False, drop_long_rules: bool = False):
        self.binarize = binarize
        self.drop_long_rules = drop_long_rules

    def normalize(self, grammar: Grammar) -> Grammar:
        generating = generating_symbols(grammar)
        if grammar.start_symbol not in generating:
            return Grammar.empty_language(grammar.start_symbol)

        result = remove_non_generating(grammar, generating)
        result = remove_unreachable(result, reachable_symbols(result))
        result = eliminate_epsilon(result)
        if self.binarize:
            result = binarize_grammar(result, drop_long_rules=self.drop_long_rules)
        return result


def normalize_grammar(grammar: Grammar, binarize: bool = False) -> Grammar:
    return GrammarNormalizer(binarize=binarize).normalize(grammar)
