"""
Lexical analyzer producing terminal streams for the LL(1) parser.

Identifier and literal tokens are mapped to their class name (IDENTIFIER,
INTEGER_LITERAL, ...) so the grammar's terminal alphabet stays finite;
keywords, operators and delimiters are mapped to their exact spelling.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Tuple
import re

from grammar_model import END_MARKER_NAME


class TokenCategory(Enum):
    """Closed set of token categories."""
    KEYWORD = "Keyword"
    IDENTIFIER = "Identifier"
    LITERAL = "Literal"
    OPERATOR = "Operator"
    DELIMITER = "Delimiter"
    END_MARKER = "EndMarker"


DEFAULT_KEYWORDS: FrozenSet[str] = frozenset({
    "begin", "end", "if", "else", "for", "to", "step", "next", "while",
    "readln", "writeln", "or", "is", "less", "than", "greater", "equal",
})


@dataclass
class Token:
    """Represents a token produced by the lexical analyzer."""
    category: TokenCategory
    kind: str  # IDENTIFIER, INTEGER_LITERAL, ... or the spelling itself
    value: str  # Actual text value
    position: int  # Position in input string
    line: int = 1
    column: int = 1

    @property
    def terminal(self) -> str:
        """Grammar terminal name for this token."""
        if self.category == TokenCategory.END_MARKER:
            return END_MARKER_NAME
        if self.category in (TokenCategory.IDENTIFIER, TokenCategory.LITERAL):
            return self.kind
        return self.value

    def __str__(self) -> str:
        return f"Token({self.kind}, '{self.value}', line={self.line})"

    def __repr__(self) -> str:
        return self.__str__()


@dataclass
class LexicalError:
    """Represents a lexical analysis error."""
    message: str
    position: int
    line: int
    column: int
    context: str  # Surrounding text for context

    def __str__(self) -> str:
        return f"Lexical error at line {self.line}, column {self.column}: {self.message}"


# Order matters only between patterns that can match the same length
_TOKEN_RULES: List[Tuple[str, TokenCategory, str]] = [
    (r'[A-Za-z_]\w*', TokenCategory.IDENTIFIER, "IDENTIFIER"),
    (r'\d+\.\d*', TokenCategory.LITERAL, "FLOAT_LITERAL"),
    (r'\d+', TokenCategory.LITERAL, "INTEGER_LITERAL"),
    (r'"(?:\\.|[^"\\])*"', TokenCategory.LITERAL, "STRING_LITERAL"),
    (r':=|<=|>=|<>|==|!=|[<>=+\-*/!]', TokenCategory.OPERATOR, "OPERATOR"),
    (r'[;:,()]', TokenCategory.DELIMITER, "DELIMITER"),
]

_SKIP_RULES: List[re.Pattern] = [
    re.compile(r'[ \t\r\n]+'),
    re.compile(r'\(\*.*?\*\)', re.DOTALL),
]

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '"': '"', '\\': '\\'}


class LexicalAnalyzer:
    """
    Regex-based tokenizer using the longest-match strategy.

    Keywords are recognized case-insensitively among identifiers and are
    reported in lower case.

    Each tokenize call also fills keyword_table and identifier_table: every
    distinct keyword or identifier spelling mapped to a 1-based index in
    order of first appearance.
    """

    def __init__(self, keywords: Iterable[str] = DEFAULT_KEYWORDS):
        self.keywords = frozenset(k.lower() for k in keywords)
        self.token_patterns = [(re.compile(p), category, kind) for p, category, kind in _TOKEN_RULES]
        self.keyword_table: Dict[str, int] = {}
        self.identifier_table: Dict[str, int] = {}

    def tokenize(self, input_string: str) -> Tuple[List[Token], List[LexicalError]]:
        """
        Tokenize an input string.

        Args:
            input_string: Source text

        Returns:
            Tuple of (tokens, errors); tokens always ends with the end marker
        """
        tokens = []
        errors = []
        self.keyword_table = {}
        self.identifier_table = {}
        position = 0
        line = 1
        line_start = 0

        while position < len(input_string):
            skipped = self._skip(input_string, position)
            if skipped > position:
                line += input_string.count('\n', position, skipped)
                last_newline = input_string.rfind('\n', position, skipped)
                if last_newline >= 0:
                    line_start = last_newline + 1
                position = skipped
                continue

            if input_string.startswith('(*', position):
                errors.append(self._error("Unterminated comment", input_string, position, line, line_start))
                break

            best_match = None
            best_category = None
            best_kind = None
            for pattern, category, kind in self.token_patterns:
                match = pattern.match(input_string, position)
                if match and (best_match is None or match.end() > best_match.end()):
                    best_match = match
                    best_category = category
                    best_kind = kind

            column = position - line_start + 1
            if best_match is None:
                message = (
                    "Unterminated string literal" if input_string[position] == '"'
                    else f"Unrecognized character '{input_string[position]}'"
                )
                errors.append(self._error(message, input_string, position, line, line_start))
                position += 1
                continue

            text = best_match.group()
            token = self._make_token(best_category, best_kind, text, position, line, column)
            self._register(token)
            tokens.append(token)
            position = best_match.end()

        tokens.append(Token(
            category=TokenCategory.END_MARKER,
            kind=END_MARKER_NAME,
            value='',
            position=len(input_string),
            line=line,
            column=len(input_string) - line_start + 1,
        ))
        return tokens, errors

    def _register(self, token: Token):
        if token.category == TokenCategory.KEYWORD:
            table = self.keyword_table
        elif token.category == TokenCategory.IDENTIFIER:
            table = self.identifier_table
        else:
            return
        table.setdefault(token.value, len(table) + 1)

    def _skip(self, text: str, position: int) -> int:
        for pattern in _SKIP_RULES:
            match = pattern.match(text, position)
            if match:
                return match.end()
        return position

    def _make_token(self, category: TokenCategory, kind: str, text: str,
                    position: int, line: int, column: int) -> Token:
        if category == TokenCategory.IDENTIFIER and text.lower() in self.keywords:
            keyword = text.lower()
            return Token(TokenCategory.KEYWORD, keyword, keyword, position, line, column)
        if kind == "STRING_LITERAL":
            return Token(category, kind, self._unescape(text[1:-1]), position, line, column)
        if category in (TokenCategory.OPERATOR, TokenCategory.DELIMITER):
            return Token(category, text, text, position, line, column)
        return Token(category, kind, text, position, line, column)

    @staticmethod
    def _unescape(inner: str) -> str:
        return re.sub(r'\\(.)', lambda m: _ESCAPES.get(m.group(1), '\\' + m.group(1)), inner)

    @staticmethod
    def _error(message: str, text: str, position: int, line: int, line_start: int) -> LexicalError:
        context = text[max(0, position - 10):min(len(text), position + 10)]
        return LexicalError(
            message=message,
            position=position,
            line=line,
            column=position - line_start + 1,
            context=context,
        )


def to_terminal_stream(tokens: Iterable[Token]) -> List[str]:
    """Terminal names for the parser, in input order."""
    return [token.terminal for token in tokens]
