"""
Visualization and Output Formatting Module

This module provides display helpers for the LL(1) toolkit: HTML tables for
FIRST/FOLLOW sets and the LL(1) parse table, DOT output for parse trees,
step-by-step parsing traces and formatted error reports.
"""

from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass
import html

from first_follow import FirstFollowComputer
from grammar_model import Symbol
from parse_table import ParseTable

_DOT_ESCAPES = str.maketrans({'\\': '\\\\', '"': '\\"', '\n': '\\n', '\t': '\\t', '\r': '\\r'})


@dataclass
class VisualizationConfig:
    """Configuration options for visualization output."""
    table_css_classes: str = "parse-table"
    trace_css_classes: str = "parsing-trace"
    error_css_classes: str = "error-message"
    include_inline_styles: bool = True
    epsilon_display: str = "ε"
    end_marker_display: str = "$"


class HTMLTableGenerator:
    """Generates HTML tables for FIRST/FOLLOW sets and the LL(1) table."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_ll1_table_html(self, table: ParseTable) -> str:
        """
        Generate the LL(1) table with one row per non-terminal and one column
        per lookahead terminal.

        Args:
            table: ParseTable built for the grammar

        Returns:
            HTML string containing the parse table
        """
        if not len(table):
            return self._generate_empty_table_html("The parse table is empty")

        non_terminals = table.non_terminals()
        # End marker column last
        lookaheads = sorted(table.lookaheads(), key=lambda s: (s.is_end_marker, s.name))
        conflict_cells = {(c.non_terminal, c.lookahead) for c in table.conflicts}

        html_lines = []
        if self.config.include_inline_styles:
            html_lines.append(self._generate_table_styles())

        html_lines.append(f'<table class="grammar-table {self.config.table_css_classes}" role="table" aria-label="LL(1) Parsing Table">')
        html_lines.append('<thead>')
        html_lines.append('<tr>')
        html_lines.append('<th class="grammar-table-header grammar-table-header-primary" scope="col">Non-terminal</th>')
        for lookahead in lookaheads:
            html_lines.append(f'<th class="grammar-table-header" scope="col">{html.escape(self._display(lookahead))}</th>')
        html_lines.append('</tr>')
        html_lines.append('</thead>')

        html_lines.append('<tbody>')
        for nt in non_terminals:
            html_lines.append('<tr>')
            html_lines.append(f'<th class="grammar-table-cell grammar-table-cell-primary" scope="row">{html.escape(nt.name)}</th>')
            for lookahead in lookaheads:
                production = table.get(nt, lookahead)
                if production is None:
                    html_lines.append('<td class="grammar-table-cell"></td>')
                    continue
                rhs = ' '.join(self._display(s) for s in production.rhs)
                cell = f'{html.escape(nt.name)} → {html.escape(rhs)}'
                if (nt, lookahead) in conflict_cells:
                    cell = f'<span class="grammar-action-conflict">{cell}</span>'
                html_lines.append(f'<td class="grammar-table-cell">{cell}</td>')
            html_lines.append('</tr>')
        html_lines.append('</tbody>')
        html_lines.append('</table>')

        return '\n'.join(html_lines)

    def generate_first_follow_html(self, first_follow: FirstFollowComputer) -> str:
        """
        Generate a table listing FIRST and FOLLOW for every non-terminal.

        Args:
            first_follow: Computed FIRST/FOLLOW sets

        Returns:
            HTML string containing the sets
        """
        non_terminals = sorted(first_follow.grammar.non_terminals, key=lambda s: s.name)
        if not non_terminals:
            return self._generate_empty_table_html("The grammar has no non-terminals")

        html_lines = []
        html_lines.append(f'<table class="grammar-table {self.config.table_css_classes}" role="table" aria-label="FIRST and FOLLOW sets">')
        html_lines.append('<thead>')
        html_lines.append('<tr>')
        html_lines.append('<th class="grammar-table-header grammar-table-header-primary" scope="col">Non-terminal</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">FIRST</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">FOLLOW</th>')
        html_lines.append('</tr>')
        html_lines.append('</thead>')
        html_lines.append('<tbody>')
        for nt in non_terminals:
            first = self._format_set(first_follow.first(nt))
            follow = self._format_set(first_follow.follow(nt))
            html_lines.append('<tr>')
            html_lines.append(f'<th class="grammar-table-cell grammar-table-cell-primary" scope="row">{html.escape(nt.name)}</th>')
            html_lines.append(f'<td class="grammar-table-cell">{html.escape(first)}</td>')
            html_lines.append(f'<td class="grammar-table-cell">{html.escape(follow)}</td>')
            html_lines.append('</tr>')
        html_lines.append('</tbody>')
        html_lines.append('</table>')
        return '\n'.join(html_lines)

    def _format_set(self, symbols) -> str:
        names = sorted(self._display(s) for s in symbols)
        return '{ ' + ', '.join(names) + ' }'

    def _display(self, symbol: Symbol) -> str:
        if symbol.is_epsilon:
            return self.config.epsilon_display
        if symbol.is_end_marker:
            return self.config.end_marker_display
        return symbol.name

    def _generate_empty_table_html(self, message: str) -> str:
        """Generate HTML for an empty table with a message."""
        html_lines = []
        html_lines.append(f'<div class="{self.config.error_css_classes}">')
        html_lines.append(f'<p>{html.escape(message)}</p>')
        html_lines.append('</div>')
        return '\n'.join(html_lines)

    def _generate_table_styles(self) -> str:
        """Generate inline CSS styles for the table."""
        return """
<style>
.parse-table {
    border-collapse: collapse;
    font-family: 'Courier New', monospace;
    font-size: 12px;
}

.parse-table th, .parse-table td {
    border: 1px solid #374151;
    padding: 6px 10px;
    text-align: center;
}

.grammar-action-conflict {
    color: #dc2626;
    font-weight: bold;
}
</style>
"""


class DOTGenerator:
    """Generates DOT format output for parse trees."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_parse_tree_dot(self, parse_tree, title: str = "Parse Tree") -> str:
        """
        Generate DOT format representation of a parse tree.

        Nodes are numbered in pre-order, so node0 is the root. Each edge line
        follows the line of its child node.

        Args:
            parse_tree: ParseTreeNode object representing the root of the tree
            title: Title for the graph

        Returns:
            DOT format string
        """
        lines = [
            f'digraph "{self._escape_dot_string(title)}" {{',
            '  rankdir=TB;',
            '  node [fontname="Arial", fontsize=12];',
            '  edge [color="#333333"];',
        ]

        next_id = 0
        pending = [(parse_tree, None)]
        while pending:
            node, parent_id = pending.pop()
            node_id = next_id
            next_id += 1
            lines.append(self._node_line(node, node_id))
            if parent_id is not None:
                lines.append(f'  node{parent_id} -> node{node_id};')
            for child in reversed(node.children):
                pending.append((child, node_id))

        lines.append('}')
        return '\n'.join(lines)

    def _node_line(self, node, node_id: int) -> str:
        label = self.config.epsilon_display if node.symbol.is_epsilon else node.label
        escaped_label = self._escape_dot_string(label)
        if node.is_terminal:
            return f'  node{node_id} [label="{escaped_label}", shape=box, style=filled, fillcolor="#e3f2fd", fontname="Courier New"];'
        return f'  node{node_id} [label="{escaped_label}", shape=ellipse, style=filled, fillcolor="#e8f5e8"];'

    def _escape_dot_string(self, text: str) -> str:
        return str(text).translate(_DOT_ESCAPES)


class ParseTraceFormatter:
    """Formats parsing traces as an HTML table, one row per parser step."""

    _COLUMNS = ('Step', 'Stack (bottom to top)', 'Lookahead', 'Action')

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_trace_html(self, trace_steps: List, title: str = "Parsing Trace") -> str:
        """
        Generate HTML representation of parsing trace.

        Args:
            trace_steps: List of ParseStep objects
            title: Title for the trace

        Returns:
            HTML string showing step-by-step parsing
        """
        if not trace_steps:
            return f'<div class="{self.config.error_css_classes}"><p>No parsing steps recorded</p></div>'

        header = ''.join(f'<th class="grammar-table-header" scope="col">{name}</th>' for name in self._COLUMNS)
        html_lines = [
            f'<div class="{self.config.trace_css_classes}">',
            f'<h3>{html.escape(title)}</h3>',
            '<table class="grammar-table trace-table" role="table" aria-label="Step-by-step parsing trace">',
            f'<thead><tr>{header}</tr></thead>',
            '<tbody>',
        ]
        html_lines.extend(self._format_trace_step(step) for step in trace_steps)
        html_lines.extend(['</tbody>', '</table>', '</div>'])
        return '\n'.join(html_lines)

    def _format_trace_step(self, step) -> str:
        cells = (
            str(step.step_number),
            ' '.join(step.stack),
            step.lookahead if step.lookahead is not None else '',
            step.action,
        )
        row = ''.join(f'<td class="grammar-table-cell">{html.escape(cell)}</td>' for cell in cells)
        return f'<tr class="{self._step_css_class(step.action)}">{row}</tr>'

    @staticmethod
    def _step_css_class(action: str) -> str:
        kind = action.split(' ', 1)[0].rstrip(':')
        return f'{kind}-step' if kind in ('match', 'expand') else 'error-step'


class ErrorMessageFormatter:
    """Formats error messages with proper styling and context."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def format_parse_error(self, error_message: str, error_position: int = -1,
                          tokens: Sequence[str] = (), context_length: int = 4) -> str:
        """
        Format a parsing error message with the surrounding input symbols.

        Args:
            error_message: The error message
            error_position: Index of the offending symbol in the terminal stream
            tokens: The terminal stream being parsed
            context_length: Number of symbols to show on each side

        Returns:
            Formatted HTML error message
        """
        html_lines = []
        html_lines.append(f'<div class="{self.config.error_css_classes}">')
        html_lines.append('<h4>Parse Error</h4>')
        html_lines.append(f'<p class="error-text">{html.escape(error_message)}</p>')

        if error_position >= 0 and tokens:
            html_lines.append(self._generate_error_context(list(tokens), error_position, context_length))

        html_lines.append('</div>')
        return '\n'.join(html_lines)

    def format_conflict_report(self, conflicts: List) -> str:
        """
        Format a conflict report as HTML.

        Args:
            conflicts: List of Conflict objects

        Returns:
            Formatted HTML conflict report
        """
        if not conflicts:
            return '<div class="no-conflicts">No conflicts detected in the grammar.</div>'

        html_lines = []
        html_lines.append('<div class="conflict-report">')
        html_lines.append(f'<h4>LL(1) Conflicts ({len(conflicts)} found)</h4>')

        for i, conflict in enumerate(conflicts, 1):
            html_lines.append('<div class="conflict-item">')
            html_lines.append(f'<h5>Conflict {i}: M[{html.escape(conflict.non_terminal.name)}, {html.escape(conflict.lookahead.name)}]</h5>')
            html_lines.append('<ul>')
            for production in conflict.productions:
                html_lines.append(f'<li>{html.escape(str(production))}</li>')
            html_lines.append('</ul>')
            html_lines.append(f'<p><strong>Kept:</strong> {html.escape(str(conflict.chosen))}</p>')
            html_lines.append('</div>')

        html_lines.append('</div>')
        return '\n'.join(html_lines)

    def format_lexical_errors(self, errors: List) -> str:
        """
        Format lexical analysis errors as HTML.

        Args:
            errors: List of LexicalError objects

        Returns:
            Formatted HTML error report
        """
        if not errors:
            return '<div class="no-errors">No lexical errors found.</div>'

        html_lines = []
        html_lines.append('<div class="lexical-errors">')
        html_lines.append(f'<h4>Lexical Errors ({len(errors)} found)</h4>')

        for i, error in enumerate(errors, 1):
            html_lines.append('<div class="error-item">')
            html_lines.append(f'<h5>Error {i}</h5>')
            html_lines.append(f'<p><strong>Message:</strong> {html.escape(error.message)}</p>')
            html_lines.append(f'<p><strong>Position:</strong> Line {error.line}, Column {error.column}</p>')
            if error.context:
                html_lines.append(f'<p><strong>Context:</strong> <code>{html.escape(error.context)}</code></p>')
            html_lines.append('</div>')

        html_lines.append('</div>')
        return '\n'.join(html_lines)

    def _generate_error_context(self, tokens: List[str], error_position: int,
                              context_length: int) -> str:
        """Generate HTML showing the offending symbol among its neighbours."""
        start_pos = max(0, error_position - context_length)
        end_pos = min(len(tokens), error_position + context_length + 1)

        before_error = ' '.join(tokens[start_pos:error_position])
        error_symbol = tokens[error_position] if error_position < len(tokens) else ''
        after_error = ' '.join(tokens[error_position + 1:end_pos])

        html_lines = []
        html_lines.append('<div class="error-context">')
        html_lines.append('<pre class="context-display">')
        if start_pos > 0:
            html_lines.append('...')
        html_lines.append(html.escape(before_error))
        html_lines.append(f'<span class="error-position">{html.escape(error_symbol)}</span>')
        html_lines.append(html.escape(after_error))
        if end_pos < len(tokens):
            html_lines.append('...')
        html_lines.append('</pre>')
        html_lines.append(f'<p class="position-info">Error at symbol {error_position}</p>')
        html_lines.append('</div>')

        return '\n'.join(html_lines)


class VisualizationGenerator:
    """Main visualization generator that combines all formatting capabilities."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()
        self.table_generator = HTMLTableGenerator(self.config)
        self.dot_generator = DOTGenerator(self.config)
        self.trace_formatter = ParseTraceFormatter(self.config)
        self.error_formatter = ErrorMessageFormatter(self.config)

    def generate_grammar_analysis(self, first_follow: FirstFollowComputer,
                                  table: ParseTable) -> Dict[str, str]:
        """FIRST/FOLLOW, parse table and conflict report in one dictionary."""
        return {
            'first_follow_html': self.table_generator.generate_first_follow_html(first_follow),
            'table_html': self.table_generator.generate_ll1_table_html(table),
            'conflicts_html': self.error_formatter.format_conflict_report(list(table.conflicts)),
        }

    def generate_parse_tree_dot(self, parse_tree, title: str = "Parse Tree") -> str:
        """Generate DOT format for parse tree."""
        return self.dot_generator.generate_parse_tree_dot(parse_tree, title)

    def generate_trace_html(self, trace_steps: List, title: str = "Parsing Trace") -> str:
        """Generate HTML for parsing trace."""
        return self.trace_formatter.generate_trace_html(trace_steps, title)

    def format_error_message(self, error_message: str, error_position: int = -1,
                           tokens: Sequence[str] = ()) -> str:
        """Format an error message."""
        return self.error_formatter.format_parse_error(error_message, error_position, tokens)
