import pytest

from grammar_model import EPSILON, Grammar, example_grammar
from lexical_analyzer import LexicalAnalyzer
from ll1_parser import (LL1Parser, NoApplicableProduction, ParseError, PrematureEnd,
                        TerminalMismatch, UnconsumedInput)
from parse_table import build_parse_table


@pytest.fixture
def parser(statements_grammar):
    return LL1Parser(statements_grammar, build_parse_table(statements_grammar))


def test_scenario_a_parses(parser, scenario_a_tokens):
    root = parser.parse(scenario_a_tokens)
    assert root.label == "S"
    assert [c.label for c in root.children] == ["begin", "STATEMENTS", "end"]

    statements = root.children[1]
    assert [c.label for c in statements.children] == ["STATEMENT", "STATEMENTS"]
    inner = statements.children[1]
    assert len(inner.children) == 1
    assert inner.children[0].symbol == EPSILON


def test_tree_yield_matches_input(parser, scenario_a_tokens):
    root = parser.parse(scenario_a_tokens)
    assert root.terminal_yield() == scenario_a_tokens[:-1]


def test_scenario_b_missing_assignment(parser):
    with pytest.raises(TerminalMismatch) as info:
        parser.parse(["begin", "IDENTIFIER", "INTEGER_LITERAL", ";", "end", "$"])
    assert info.value.expected.name == ":="
    assert info.value.found.name == "INTEGER_LITERAL"
    assert info.value.position == 2


@pytest.mark.parametrize("index,replacement", [
    (0, "end"),
    (1, ";"),
    (2, "IDENTIFIER"),
    (3, ":="),
    (4, "begin"),
    (5, "INTEGER_LITERAL"),
])
def test_single_token_replacement_fails(parser, scenario_a_tokens, index, replacement):
    tokens = list(scenario_a_tokens)
    tokens[index] = replacement
    with pytest.raises((TerminalMismatch, NoApplicableProduction)):
        parser.parse(tokens)


def test_no_applicable_production(parser):
    with pytest.raises(NoApplicableProduction) as info:
        parser.parse(["end", "$"])
    assert info.value.non_terminal.name == "S"
    assert info.value.lookahead.name == "end"
    assert info.value.position == 0


def test_unconsumed_input(parser):
    with pytest.raises(UnconsumedInput) as info:
        parser.parse(["begin", "end", "$", "end"])
    assert info.value.position == 3
    assert [s.name for s in info.value.remaining] == ["end"]


def test_missing_end_marker_is_premature_end(parser):
    with pytest.raises(PrematureEnd) as info:
        parser.parse(["begin", "end"])
    assert info.value.expected.name == "$"
    assert info.value.position == 2


def test_input_ending_inside_non_terminal(parser):
    with pytest.raises(PrematureEnd) as info:
        parser.parse(["begin"])
    assert info.value.expected.name == "STATEMENTS"
    assert isinstance(info.value, ParseError)


def test_trace_records_every_step(parser):
    trace = []
    parser.parse(["begin", "end", "$"], trace=trace)
    assert [step.action for step in trace] == [
        "expand S -> begin STATEMENTS end",
        "match 'begin'",
        "expand STATEMENTS -> ε",
        "match 'end'",
        "match '$'",
    ]
    assert trace[0].stack == ["$", "S"]
    assert trace[1].stack == ["$", "end", "STATEMENTS", "begin"]


def test_each_parse_builds_a_fresh_tree(parser, scenario_a_tokens):
    first = parser.parse(scenario_a_tokens)
    second = parser.parse(scenario_a_tokens)
    assert first is not second
    assert first.to_dict() == second.to_dict()


def test_expression_round_trip(expression_grammar):
    parser = LL1Parser(expression_grammar, build_parse_table(expression_grammar))
    tokens = ["id", "+", "id", "*", "(", "id", "+", "id", ")"]
    root = parser.parse(tokens + ["$"])
    assert root.terminal_yield() == tokens


def test_parses_lexer_tokens():
    grammar = example_grammar()
    parser = LL1Parser(grammar, build_parse_table(grammar))
    source = 'begin x := 1.5; if (a < b or c >= d) writeln("yes") else writeln("no"); end'
    tokens, errors = LexicalAnalyzer().tokenize(source)
    assert errors == []
    root = parser.parse(tokens)
    assert root.terminal_yield()[:4] == ["begin", "IDENTIFIER", ":=", "FLOAT_LITERAL"]
    assert "REL_OP" in root.pretty()


def test_non_ll1_table_still_drives_parse():
    grammar = Grammar(["S"], ["a", "b"], "S", {"S": [["a"], ["a", "b"]]})
    parser = LL1Parser(grammar, build_parse_table(grammar, allow_conflicts=True))
    assert parser.parse(["a", "b", "$"]).terminal_yield() == ["a", "b"]
    with pytest.raises(TerminalMismatch):
        parser.parse(["a", "$"])


def long_program(count):
    statement = ["IDENTIFIER", ":=", "INTEGER_LITERAL", ";"]
    return ["begin"] + statement * count + ["end", "$"]


def test_deep_tree_walks_do_not_recurse(parser):
    count = 2000
    tokens = long_program(count)
    root = parser.parse(tokens)

    assert root.terminal_yield() == tokens[:-1]

    node_count = 8 * count + 5
    nodes = root.to_node_list()
    assert len(nodes) == node_count
    assert nodes[0]['children'] == [1, 2, node_count - 1]
    assert nodes[-1]['symbol'] == "end"

    leaves = []
    pending = [root.to_dict()]
    while pending:
        entry = pending.pop()
        if not entry['children']:
            leaves.append(entry['symbol'])
        pending.extend(reversed(entry['children']))
    assert [s for s in leaves if s != "ε"] == tokens[:-1]

    lines = root.pretty().splitlines()
    assert len(lines) == node_count
    assert lines[0] == "S"


def test_walk_is_pre_order_with_depth(parser):
    root = parser.parse(["begin", "end", "$"])
    assert [(node.label, depth) for node, depth in root.walk()] == [
        ("S", 0), ("begin", 1), ("STATEMENTS", 1), ("ε", 2), ("end", 1),
    ]
