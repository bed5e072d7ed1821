import pytest

from first_follow import FirstFollowComputer
from grammar_model import Grammar
from lexical_analyzer import LexicalAnalyzer
from ll1_parser import LL1Parser, TerminalMismatch
from parse_table import build_parse_table
from visualization import VisualizationConfig, VisualizationGenerator


def test_table_html_lists_cells(statements_grammar):
    table = build_parse_table(statements_grammar)
    output = VisualizationGenerator().table_generator.generate_ll1_table_html(table)
    assert 'aria-label="LL(1) Parsing Table"' in output
    assert 'S → begin STATEMENTS end' in output
    assert 'STATEMENTS → ε' in output
    assert output.index('>end<') < output.index('>$<')


def test_table_html_marks_conflicts():
    grammar = Grammar(["S"], ["a", "b"], "S", {"S": [["a"], ["a", "b"]]})
    table = build_parse_table(grammar, allow_conflicts=True)
    generator = VisualizationGenerator()
    assert 'grammar-action-conflict' in generator.table_generator.generate_ll1_table_html(table)
    report = generator.error_formatter.format_conflict_report(list(table.conflicts))
    assert 'M[S, a]' in report
    assert 'Kept:</strong> S -&gt; a b' in report


def test_first_follow_html(expression_grammar):
    output = VisualizationGenerator().table_generator.generate_first_follow_html(
        FirstFollowComputer(expression_grammar))
    assert '{ $, ) }' in output
    assert '{ *, ε }' in output


def test_custom_epsilon_display(statements_grammar):
    config = VisualizationConfig(epsilon_display="eps", include_inline_styles=False)
    table = build_parse_table(statements_grammar)
    output = VisualizationGenerator(config).table_generator.generate_ll1_table_html(table)
    assert 'STATEMENTS → eps' in output
    assert '<style>' not in output


def test_parse_tree_dot(statements_grammar, scenario_a_tokens):
    tree = LL1Parser(statements_grammar, build_parse_table(statements_grammar)).parse(scenario_a_tokens)
    dot = VisualizationGenerator().generate_parse_tree_dot(tree)
    assert dot.startswith('digraph "Parse Tree" {')
    assert 'node0 [label="S"' in dot
    assert 'node0 -> node1;' in dot
    assert 'label="ε"' in dot
    assert dot.rstrip().endswith('}')


def test_trace_html_classes(statements_grammar):
    parser = LL1Parser(statements_grammar, build_parse_table(statements_grammar))
    trace = []
    with pytest.raises(TerminalMismatch):
        parser.parse(["begin", "IDENTIFIER", "INTEGER_LITERAL", "$"], trace=trace)
    output = VisualizationGenerator().generate_trace_html(trace)
    assert 'class="expand-step"' in output
    assert 'class="match-step"' in output
    assert 'class="error-step"' in output


def test_empty_trace():
    assert 'No parsing steps recorded' in VisualizationGenerator().generate_trace_html([])


def test_parse_error_context():
    tokens = ["begin", "IDENTIFIER", "INTEGER_LITERAL", ";", "end", "$"]
    output = VisualizationGenerator().format_error_message("Expected ':='", 2, tokens)
    assert '<span class="error-position">INTEGER_LITERAL</span>' in output
    assert 'Error at symbol 2' in output
    assert 'Expected &#x27;:=&#x27;' in output


def test_lexical_error_report():
    _, errors = LexicalAnalyzer().tokenize("x # y")
    output = VisualizationGenerator().error_formatter.format_lexical_errors(errors)
    assert 'Lexical Errors (1 found)' in output
    assert 'Line 1, Column 3' in output


def test_parse_tree_dot_for_deep_tree(statements_grammar):
    count = 2000
    tokens = ["begin"] + ["IDENTIFIER", ":=", "INTEGER_LITERAL", ";"] * count + ["end", "$"]
    tree = LL1Parser(statements_grammar, build_parse_table(statements_grammar)).parse(tokens)
    dot = VisualizationGenerator().generate_parse_tree_dot(tree)
    edges = [line for line in dot.splitlines() if ' -> ' in line]
    assert len(edges) == 8 * count + 4
    assert edges[0] == '  node0 -> node1;'
    assert dot.endswith('}')


def test_dot_labels_are_escaped():
    grammar = Grammar(["S"], ['"'], "S", {"S": [['"']]})
    tree = LL1Parser(grammar, build_parse_table(grammar)).parse(['"', "$"])
    assert 'label="\\""' in VisualizationGenerator().generate_parse_tree_dot(tree)
