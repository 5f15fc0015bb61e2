"""Lexer/tokenizer for mathexpr.

Converts expression strings into a stream of tokens for the parser.

The lexer is driven by an ordered list of rules. At each position the rules
are tried in list order and the first one that matches wins, so rule order is
part of the grammar: ``**`` must come before ``*``.

Token types:
- Literals: NUMBER
- Identifiers: IDENTIFIER (variable names, function names)
- Operators: POWER, MULTIPLY, DIVIDE, MODULO, PLUS, MINUS, ASSIGN
- Punctuation: SEMICOLON, COMMA, LPAREN, RPAREN
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Hashable, Iterator, NamedTuple, Pattern, Sequence

from mathexpr.errors import LexerError


class TokenType(Enum):
    """Types of tokens in the expression language."""

    # Literals
    NUMBER = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Arithmetic operators
    POWER = auto()       # ^ or **
    MULTIPLY = auto()    # *
    DIVIDE = auto()      # /
    MODULO = auto()      # %
    PLUS = auto()        # +
    MINUS = auto()       # -

    # Assignment
    ASSIGN = auto()      # =

    # Punctuation
    SEMICOLON = auto()   # ;
    COMMA = auto()       # ,
    LPAREN = auto()      # (
    RPAREN = auto()      # )

    # Skipped, never emitted by the default rules
    WHITESPACE = auto()

    # End of input
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token from the lexer.

    Attributes:
        type: The token kind (a TokenType for the default rules)
        value: The matched text, after the rule's transform
        position: Character position in the source string
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """

    type: Any
    value: str | None
    position: int
    line: int = 1
    column: int = 1

    @property
    def end(self) -> int:
        """Position just past the token's source text."""
        return self.position + len(self.value or "")

    def __repr__(self) -> str:
        kind = self.type.name if isinstance(self.type, Enum) else self.type
        return f"Token({kind}, {self.value!r}, pos={self.position})"


class TokenRule(NamedTuple):
    """One lexer rule.

    ``transform`` receives the matched text and returns the token value.
    Returning None or an empty string discards the match.
    """

    kind: Hashable
    pattern: str | Pattern[str]
    transform: Callable[[str], str | None] | None = None


def _discard(text: str) -> None:
    return None


NUMBER_PATTERN = r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
IDENTIFIER_PATTERN = r"[a-zA-Z_][a-zA-Z0-9_]*"

# Order matters - first match wins
TOKEN_RULES: list[TokenRule] = [
    TokenRule(TokenType.WHITESPACE, r"\s+", _discard),
    TokenRule(TokenType.NUMBER, NUMBER_PATTERN),
    TokenRule(TokenType.POWER, r"\*\*|\^"),
    TokenRule(TokenType.MULTIPLY, r"\*"),
    TokenRule(TokenType.DIVIDE, r"/"),
    TokenRule(TokenType.MODULO, r"%"),
    TokenRule(TokenType.PLUS, r"\+"),
    TokenRule(TokenType.MINUS, r"-"),
    TokenRule(TokenType.ASSIGN, r"="),
    TokenRule(TokenType.SEMICOLON, r";"),
    TokenRule(TokenType.COMMA, r","),
    TokenRule(TokenType.LPAREN, r"\("),
    TokenRule(TokenType.RPAREN, r"\)"),
    TokenRule(TokenType.IDENTIFIER, IDENTIFIER_PATTERN),
]


def _compile_rules(
    rules: Sequence[TokenRule],
) -> list[tuple[Hashable, Pattern[str], Callable[[str], str | None] | None]]:
    return [
        (rule.kind, re.compile(rule.pattern), rule.transform)
        for rule in rules
    ]


def _line_and_column(text: str, position: int) -> tuple[int, int]:
    line = text.count("\n", 0, position) + 1
    column = position - (text.rfind("\n", 0, position) + 1) + 1
    return line, column


def _rule_name(kind: Hashable) -> str:
    return kind.name if isinstance(kind, Enum) else str(kind)


def lex(text: str | None, rules: Sequence[TokenRule] = TOKEN_RULES) -> list[Token]:
    """Split text into tokens using an ordered rule list.

    Args:
        text: The source text
        rules: Ordered (kind, pattern, transform) rules

    Returns:
        The tokens in source order, without an EOF marker

    Raises:
        LexerError: If text is None, a rule matches zero characters, or no
            rule matches at some position
    """
    if text is None:
        raise LexerError("Cannot lex an undefined value")
    return _lex(text, _compile_rules(rules))


def _lex(text: str, compiled: list) -> list[Token]:
    tokens: list[Token] = []
    position = 0

    while position < len(text):
        for kind, pattern, transform in compiled:
            match = pattern.match(text, position)
            if match is None:
                continue

            value = match.group()
            if not value:
                line, column = _line_and_column(text, position)
                raise LexerError(
                    f"Rule {_rule_name(kind)} matched zero characters; "
                    "each rule must consume at least one character",
                    position,
                    line,
                    column,
                    source=text,
                )

            start = position
            position = match.end()

            if transform is not None:
                value = transform(value)
            if value:
                line, column = _line_and_column(text, start)
                tokens.append(Token(kind, value, start, line, column))
            break
        else:
            line, column = _line_and_column(text, position)
            raise LexerError(
                f"Unexpected character '{text[position]}' in {text!r}",
                position,
                line,
                column,
                source=text,
            )

    return tokens


class Lexer:
    """Tokenizer for the expression language.

    Usage:
        lexer = Lexer("a = 3; a * 4")
        for token in lexer:
            print(token)
    """

    def __init__(self, source: str | None, rules: Sequence[TokenRule] = TOKEN_RULES):
        if source is None:
            raise LexerError("Cannot lex an undefined value")
        self.source = source
        self._compiled_rules = _compile_rules(rules)

    def __iter__(self) -> Iterator[Token]:
        """Iterate over all tokens in the source, ending with EOF."""
        yield from _lex(self.source, self._compiled_rules)
        line, column = _line_and_column(self.source, len(self.source))
        yield Token(TokenType.EOF, None, len(self.source), line, column)

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source and return list of tokens."""
        return list(self)
