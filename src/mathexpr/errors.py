"""Exception hierarchy for mathexpr.

All errors raised by the lexer, parser, evaluator and compiler derive from
ExpressionError so hosts can catch them with a single clause.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mathexpr.lexer import Token


class ExpressionError(Exception):
    """Base class for every mathexpr error."""


class LexerError(ExpressionError):
    """Error during lexical analysis."""

    def __init__(
        self,
        message: str,
        position: int = 0,
        line: int = 1,
        column: int = 1,
        source: str | None = None,
    ):
        self.position = position
        self.line = line
        self.column = column
        self.source = source
        super().__init__(f"{message} at line {line}, column {column}")


class ParseError(ExpressionError):
    """Error during parsing."""

    def __init__(self, message: str, token: Token, source: str | None = None):
        self.token = token
        self.source = source
        super().__init__(f"{message} at position {token.position}")

    @property
    def position(self) -> int:
        return self.token.position


class EvaluationError(ExpressionError):
    """Error during expression evaluation.

    Attributes:
        name: The variable or function name the error is about, if any
    """

    def __init__(self, message: str, name: str | None = None):
        self.name = name
        super().__init__(message)
