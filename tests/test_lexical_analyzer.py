import pytest

from lexical_analyzer import LexicalAnalyzer, TokenCategory, to_terminal_stream


@pytest.fixture
def lexer():
    return LexicalAnalyzer()


def test_terminal_stream(lexer):
    tokens, errors = lexer.tokenize("begin x := 42; end")
    assert errors == []
    assert to_terminal_stream(tokens) == ["begin", "IDENTIFIER", ":=", "INTEGER_LITERAL", ";", "end", "$"]
    assert tokens[1].value == "x"
    assert tokens[1].category == TokenCategory.IDENTIFIER
    assert tokens[2].category == TokenCategory.OPERATOR
    assert tokens[4].category == TokenCategory.DELIMITER
    assert tokens[-1].category == TokenCategory.END_MARKER


def test_empty_input_yields_end_marker(lexer):
    tokens, errors = lexer.tokenize("")
    assert errors == []
    assert to_terminal_stream(tokens) == ["$"]


def test_keywords_are_case_insensitive(lexer):
    tokens, _ = lexer.tokenize("BEGIN WriteLn End")
    assert [t.category for t in tokens[:3]] == [TokenCategory.KEYWORD] * 3
    assert [t.value for t in tokens[:3]] == ["begin", "writeln", "end"]


def test_longest_match(lexer):
    tokens, _ = lexer.tokenize("a := b : c <= 3.25 <> 7")
    assert to_terminal_stream(tokens) == [
        "IDENTIFIER", ":=", "IDENTIFIER", ":", "IDENTIFIER", "<=", "FLOAT_LITERAL", "<>",
        "INTEGER_LITERAL", "$",
    ]


def test_comments_are_skipped(lexer):
    tokens, errors = lexer.tokenize("(* header\n comment *) begin (x) end")
    assert errors == []
    assert to_terminal_stream(tokens) == ["begin", "(", "IDENTIFIER", ")", "end", "$"]
    assert tokens[0].line == 2


def test_string_escapes(lexer):
    tokens, errors = lexer.tokenize(r'writeln("say \"hi\"\n")')
    assert errors == []
    assert tokens[2].kind == "STRING_LITERAL"
    assert tokens[2].value == 'say "hi"\n'


def test_line_and_column_tracking(lexer):
    tokens, _ = lexer.tokenize("begin\n  x")
    assert (tokens[1].line, tokens[1].column) == (2, 3)


def test_unrecognized_character(lexer):
    tokens, errors = lexer.tokenize("x @ y")
    assert len(errors) == 1
    assert errors[0].message == "Unrecognized character '@'"
    assert errors[0].position == 2
    assert to_terminal_stream(tokens) == ["IDENTIFIER", "IDENTIFIER", "$"]


def test_unterminated_string(lexer):
    _, errors = lexer.tokenize('writeln("abc')
    assert errors[0].message == "Unterminated string literal"
    assert errors[0].column == 8


def test_unterminated_comment(lexer):
    tokens, errors = lexer.tokenize("begin (* never closed")
    assert errors[0].message == "Unterminated comment"
    assert to_terminal_stream(tokens) == ["begin", "$"]


def test_custom_keywords():
    tokens, _ = LexicalAnalyzer(keywords=["loop"]).tokenize("LOOP begin")
    assert tokens[0].category == TokenCategory.KEYWORD
    assert tokens[1].category == TokenCategory.IDENTIFIER


def test_comparison_keywords(lexer):
    tokens, _ = lexer.tokenize("x is less than y or x is greater than z or x is Equal y")
    keywords = [t.value for t in tokens if t.category == TokenCategory.KEYWORD]
    assert keywords == ["is", "less", "than", "or", "is", "greater", "than", "or", "is", "equal"]
    assert to_terminal_stream(tokens)[:4] == ["IDENTIFIER", "is", "less", "than"]


def test_keyword_and_identifier_tables(lexer):
    lexer.tokenize("begin total := count; count := total; END")
    assert lexer.keyword_table == {"begin": 1, "end": 2}
    assert lexer.identifier_table == {"total": 1, "count": 2}

    lexer.tokenize("x")
    assert lexer.keyword_table == {}
    assert lexer.identifier_table == {"x": 1}
