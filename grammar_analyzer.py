"""
High-level interface over the LL(1) toolkit.

LL1GrammarAnalyzer wires the grammar model, FIRST/FOLLOW computation, table
construction, the parser and the normalizer together and reports outcomes as
plain dictionaries suitable for JSON responses.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from first_follow import FirstFollowComputer
from grammar_model import Grammar, GrammarDefinitionError, example_grammar
from grammar_normalizer import GrammarNormalizer
from lexical_analyzer import LexicalAnalyzer, to_terminal_stream
from ll1_parser import (LL1Parser, NoApplicableProduction, ParseError, ParseStep,
                        PrematureEnd, TerminalMismatch, UnconsumedInput)
from parse_table import GrammarNotLL1Error, ParseTable, ParseTableBuilder
from visualization import VisualizationGenerator

_ERROR_TYPES = {
    TerminalMismatch: "terminal_mismatch",
    NoApplicableProduction: "no_applicable_production",
    UnconsumedInput: "unconsumed_input",
    PrematureEnd: "premature_end",
}


def grammar_from_dict(data: Mapping[str, Any]) -> Grammar:
    """
    Build a Grammar from a JSON-style dictionary.

    Expected keys: non_terminals, terminals, start_symbol, productions
    (non-terminal -> list of right-hand sides, each a list of names).
    The value "example" for the key "grammar" selects the built-in grammar.
    """
    if data.get('grammar') == 'example':
        return example_grammar()
    missing = [key for key in ('non_terminals', 'terminals', 'start_symbol', 'productions')
               if key not in data]
    if missing:
        raise GrammarDefinitionError(f"Missing grammar field(s): {', '.join(missing)}",
                                     kind="missing_field")
    return Grammar(
        non_terminals=data['non_terminals'],
        terminals=data['terminals'],
        start_symbol=data['start_symbol'],
        productions=data['productions'],
    )


def grammar_to_dict(grammar: Grammar) -> Dict[str, Any]:
    return {
        'non_terminals': sorted(s.name for s in grammar.non_terminals),
        'terminals': sorted(s.name for s in grammar.terminals),
        'start_symbol': grammar.start_symbol.name,
        'productions': {
            lhs.name: [[s.name for s in rhs] for rhs in alternatives]
            for lhs, alternatives in grammar.rules.items()
        },
    }


def _symbols_to_names(symbols) -> List[str]:
    return sorted(s.name for s in symbols)


class LL1GrammarAnalyzer:
    """
    Analyzes one grammar: FIRST/FOLLOW sets, LL(1) table and parsing.

    Args:
        grammar: The grammar to analyze
        allow_conflicts: Build the table with last-write-wins on conflicts
    """

    def __init__(self, grammar: Grammar, allow_conflicts: bool = False):
        self.grammar = grammar
        self.allow_conflicts = allow_conflicts
        self.first_follow = FirstFollowComputer(grammar)
        self.table: Optional[ParseTable] = None
        self.visualizer = VisualizationGenerator()
        self.lexer = LexicalAnalyzer()

    def build_table(self) -> ParseTable:
        if self.table is None:
            builder = ParseTableBuilder(self.grammar, self.first_follow, allow_conflicts=self.allow_conflicts)
            self.table = builder.build()
        return self.table

    def analyze(self) -> Dict[str, Any]:
        """
        Compute every display artifact of the grammar.

        Returns:
            Dictionary with success status, FIRST/FOLLOW sets, table entries,
            conflicts and HTML renderings
        """
        first = {nt.name: _symbols_to_names(self.first_follow.first(nt))
                 for nt in self.grammar.non_terminals}
        follow = {nt.name: _symbols_to_names(self.first_follow.follow(nt))
                  for nt in self.grammar.non_terminals}
        try:
            table = self.build_table()
        except GrammarNotLL1Error as e:
            return {
                'success': False,
                'error': str(e),
                'error_type': 'not_ll1',
                'first': first,
                'follow': follow,
                'conflicts': [self._conflict_to_dict(c) for c in e.conflicts],
                'conflicts_html': self.visualizer.error_formatter.format_conflict_report(e.conflicts),
            }

        result = {
            'success': True,
            'grammar_info': str(self.grammar),
            'first': first,
            'follow': follow,
            'table': [
                {'non_terminal': nt.name, 'lookahead': la.name, 'production': [s.name for s in prod.rhs]}
                for nt, la, prod in table.entries()
            ],
            'conflicts': [self._conflict_to_dict(c) for c in table.conflicts],
        }
        result.update(self.visualizer.generate_grammar_analysis(self.first_follow, table))
        return result

    def parse_tokens(self, tokens: Sequence[Any]) -> Dict[str, Any]:
        """
        Parse a terminal stream and report the outcome.

        Returns:
            Dictionary with the parse tree (flat node table and DOT) and trace on
            success, or the error description on failure
        """
        table = self.build_table()
        parser = LL1Parser(self.grammar, table)
        trace: List[ParseStep] = []
        names = [getattr(t, 'terminal', t) for t in tokens]
        names = [n.name if hasattr(n, 'name') else str(n) for n in names]
        try:
            tree = parser.parse(tokens, trace=trace)
        except ParseError as e:
            return {
                'success': False,
                'error': str(e),
                'error_type': _ERROR_TYPES.get(type(e), 'parsing_error'),
                'error_position': e.position,
                'error_html': self.visualizer.format_error_message(str(e), e.position, names),
                'trace_html': self.visualizer.generate_trace_html(trace),
                'trace_steps': len(trace),
            }

        return {
            'success': True,
            'parse_tree': tree.to_node_list(),
            'parse_tree_text': tree.pretty(),
            'tree_dot': self.visualizer.generate_parse_tree_dot(tree),
            'trace_html': self.visualizer.generate_trace_html(trace),
            'trace_steps': len(trace),
            'yield': tree.terminal_yield(),
        }

    def parse_source(self, source: str) -> Dict[str, Any]:
        """Tokenize source text, then parse the resulting terminal stream."""
        tokens, errors = self.lexer.tokenize(source)
        tables = {
            'keyword_table': dict(self.lexer.keyword_table),
            'identifier_table': dict(self.lexer.identifier_table),
        }
        if errors:
            return {
                'success': False,
                'error': f"Lexical error: {errors[0].message}",
                'error_type': 'lexical_error',
                'error_position': errors[0].position,
                'error_html': self.visualizer.error_formatter.format_lexical_errors(errors),
                **tables,
            }
        result = self.parse_tokens(tokens)
        result['tokens'] = to_terminal_stream(tokens)
        result.update(tables)
        return result

    @staticmethod
    def _conflict_to_dict(conflict) -> Dict[str, Any]:
        return {
            'non_terminal': conflict.non_terminal.name,
            'lookahead': conflict.lookahead.name,
            'productions': [[s.name for s in p.rhs] for p in conflict.productions],
        }


def normalize_to_dict(grammar: Grammar, binarize: bool = False) -> Dict[str, Any]:
    """Normalize a grammar and describe the result."""
    normalized = GrammarNormalizer(binarize=binarize).normalize(grammar)
    return {
        'success': True,
        'empty_language': normalized.is_empty_language,
        'grammar': grammar_to_dict(normalized),
        'grammar_info': str(normalized),
    }
