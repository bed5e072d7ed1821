import pytest

from grammar_model import Grammar


STATEMENTS_GRAMMAR = {
    "non_terminals": ["S", "STATEMENTS", "STATEMENT", "EXPR"],
    "terminals": ["begin", "end", ":=", ";", "IDENTIFIER", "INTEGER_LITERAL", "FLOAT_LITERAL", "$"],
    "start_symbol": "S",
    "productions": {
        "S": [["begin", "STATEMENTS", "end"]],
        "STATEMENTS": [["STATEMENT", "STATEMENTS"], ["ε"]],
        "STATEMENT": [["IDENTIFIER", ":=", "EXPR", ";"]],
        "EXPR": [["IDENTIFIER"], ["INTEGER_LITERAL"], ["FLOAT_LITERAL"]],
    },
}

EXPRESSION_GRAMMAR = {
    "non_terminals": ["E", "EP", "T", "TP", "F"],
    "terminals": ["+", "*", "(", ")", "id"],
    "start_symbol": "E",
    "productions": {
        "E": [["T", "EP"]],
        "EP": [["+", "T", "EP"], ["ε"]],
        "T": [["F", "TP"]],
        "TP": [["*", "F", "TP"], ["ε"]],
        "F": [["(", "E", ")"], ["id"]],
    },
}


@pytest.fixture
def statements_grammar():
    return Grammar(**STATEMENTS_GRAMMAR)


@pytest.fixture
def expression_grammar():
    return Grammar(**EXPRESSION_GRAMMAR)


@pytest.fixture
def scenario_a_tokens():
    return ["begin", "IDENTIFIER", ":=", "INTEGER_LITERAL", ";", "end", "$"]


@pytest.fixture
def statements_grammar_data():
    return dict(STATEMENTS_GRAMMAR)
