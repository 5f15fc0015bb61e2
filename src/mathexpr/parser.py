"""Parser for mathexpr.

Converts a stream of tokens into an Abstract Syntax Tree (AST).
Uses recursive descent parsing with operator precedence.

Operator Precedence (lowest to highest):
1. ; and whitespace (statement separators)
2. = (assignment, left side must be a variable)
3. + - (binary)
4. * / %
5. - + (unary)
6. ^ ** (power, right associative)
7. () (grouping, function call)

Chains of + and * are flattened into a single n-ary node. Subtraction and
division are stored as addition of a negation and multiplication by a
reciprocal, so ``a - b / c`` becomes ``+(a, -(*(b, /(c))))``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from mathexpr.errors import ParseError
from mathexpr.lexer import Lexer, Token, TokenType

if TYPE_CHECKING:
    from mathexpr.config import ExpressionConfig


# -----------------------------------------------------------------------------
# AST Node Types
# -----------------------------------------------------------------------------


@dataclass
class ASTNode:
    """Base class for AST nodes."""
    pass


@dataclass
class Number(ASTNode):
    """A numeric literal."""
    value: float


@dataclass
class Variable(ASTNode):
    """A variable reference."""
    name: str


@dataclass
class BinaryOp(ASTNode):
    """An arithmetic operation.

    ``+`` and ``*`` take any number of operands, ``-`` (negation) and ``/``
    (reciprocal) exactly one, ``%`` and ``^`` exactly two.
    """
    operator: str
    operands: list[ASTNode]


@dataclass
class Assignment(ASTNode):
    """Assignment to a variable (e.g., a = 2 * b)."""
    target: Variable
    value: ASTNode


@dataclass
class FunctionCall(ASTNode):
    """Function call (e.g., sqrt(x), pi())."""
    name: str
    arguments: list[ASTNode]


@dataclass
class Block(ASTNode):
    """A sequence of statements; its value is the last statement's value."""
    statements: list[ASTNode]


def child_nodes(node: ASTNode) -> list[ASTNode]:
    """Return the direct children of a node, in evaluation order."""
    if isinstance(node, BinaryOp):
        return list(node.operands)
    if isinstance(node, Assignment):
        return [node.target, node.value]
    if isinstance(node, FunctionCall):
        return list(node.arguments)
    if isinstance(node, Block):
        return list(node.statements)
    return []


def iter_nodes(node: ASTNode) -> Iterator[ASTNode]:
    """Yield a node and all of its descendants, depth first."""
    yield node
    for child in child_nodes(node):
        yield from iter_nodes(child)


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------

BINARY_OPERATORS = frozenset(
    {
        TokenType.POWER,
        TokenType.MULTIPLY,
        TokenType.DIVIDE,
        TokenType.MODULO,
        TokenType.PLUS,
        TokenType.MINUS,
    }
)

# Tokens that end an operand list: an operator directly before them dangles
CLOSING_TOKENS = frozenset(
    {TokenType.EOF, TokenType.RPAREN, TokenType.SEMICOLON, TokenType.COMMA}
)

STATEMENT_START = frozenset(
    {
        TokenType.NUMBER,
        TokenType.IDENTIFIER,
        TokenType.LPAREN,
        TokenType.MINUS,
        TokenType.PLUS,
    }
)


class Parser:
    """Recursive descent parser for the expression language.

    Usage:
        parser = Parser("a = 3; a * 4")
        ast = parser.parse()
    """

    def __init__(self, source: str | None, force_semicolon: bool = False):
        self.source = source
        self.force_semicolon = force_semicolon
        self.lexer = Lexer(source)
        self.tokens = self.lexer.tokenize()
        self.position = 0

    def parse(self) -> ASTNode:
        """Parse the source and return the AST root.

        A single statement is returned as-is; several statements are
        wrapped in a Block.
        """
        try:
            statements = self._parse_statements()
        except RecursionError:
            raise self._error("Expression nested too deeply", self._current()) from None

        if not statements:
            raise self._error("Empty expression", self._current())

        if len(statements) == 1:
            return statements[0]
        return Block(statements)

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _current(self) -> Token:
        """Get current token."""
        if self.position >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[self.position]

    def _previous(self) -> Token | None:
        """Get the most recently consumed token."""
        if self.position == 0:
            return None
        return self.tokens[self.position - 1]

    def _is_at_end(self) -> bool:
        """Check if we've consumed all tokens."""
        return self._current().type == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        self.position += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self._current().type in types

    def _error(self, message: str, token: Token) -> ParseError:
        return ParseError(message, token, self.source)

    def _unexpected(self, token: Token) -> ParseError:
        """Build the most specific error for a token that cannot start an operand."""
        previous = self._previous()

        if previous is not None and previous.type in BINARY_OPERATORS:
            if token.type in CLOSING_TOKENS:
                return self._error(f"Dangling operator '{previous.value}'", previous)
            if token.type in BINARY_OPERATORS or token.type == TokenType.ASSIGN:
                return self._error(
                    f"Successive operators '{previous.value}' and '{token.value}'",
                    token,
                )

        if token.type == TokenType.EOF:
            return self._error("Unexpected end of input", token)
        if token.type == TokenType.RPAREN:
            return self._error("Unbalanced ')'", token)

        return self._error(f"Unexpected token '{token.value}'", token)

    def _close_paren(self, opening: Token, message: str) -> None:
        """Consume a ')' matching ``opening``, or raise."""
        if self._match(TokenType.RPAREN):
            self._advance()
            return
        if self._is_at_end():
            raise self._error("Unbalanced '(': missing ')'", opening)
        raise self._error(message, self._current())

    # -------------------------------------------------------------------------
    # Parsing methods (in order of precedence, lowest to highest)
    # -------------------------------------------------------------------------

    def _parse_statements(self) -> list[ASTNode]:
        """Parse a sequence of statements separated by ';' or whitespace."""
        statements: list[ASTNode] = []
        separated = True

        while True:
            while self._match(TokenType.SEMICOLON):
                self._advance()
                separated = True

            if self._is_at_end():
                return statements

            token = self._current()
            if token.type == TokenType.RPAREN:
                raise self._error("Unbalanced ')'", token)
            if not separated:
                raise self._error("Expected ';' between statements", token)

            statements.append(self._parse_statement())
            separated = self._at_statement_boundary()

    def _at_statement_boundary(self) -> bool:
        """Check whether the next statement may start at the current token."""
        token = self._current()
        if token.type in (TokenType.SEMICOLON, TokenType.EOF, TokenType.RPAREN):
            return True
        if token.type not in STATEMENT_START:
            raise self._unexpected(token)
        if self.force_semicolon:
            return False

        previous = self._previous()
        if previous is not None and previous.end == token.position:
            raise self._error(
                f"Missing operator between '{previous.value}' and '{token.value}'",
                token,
            )
        return True

    def _parse_statement(self) -> ASTNode:
        """Parse a statement: an assignment or a plain expression."""
        expr = self._parse_additive()

        if self._match(TokenType.ASSIGN):
            if not isinstance(expr, Variable):
                raise self._error("Assignment to non-lvalue", self._current())
            self._advance()
            value = self._parse_additive()
            return Assignment(expr, value)

        return expr

    def _parse_additive(self) -> ASTNode:
        """Parse additive expression (+, -) into one flattened sum."""
        operands = [self._parse_multiplicative()]

        while self._match(TokenType.PLUS, TokenType.MINUS):
            op_token = self._advance()
            operand = self._parse_multiplicative()
            if op_token.type == TokenType.MINUS:
                operand = BinaryOp("-", [operand])
            operands.append(operand)

        if len(operands) == 1:
            return operands[0]
        return BinaryOp("+", operands)

    def _parse_multiplicative(self) -> ASTNode:
        """Parse multiplicative expression (*, /, %), left to right."""
        factors = [self._parse_unary()]

        while self._match(TokenType.MULTIPLY, TokenType.DIVIDE, TokenType.MODULO):
            op_token = self._advance()
            operand = self._parse_unary()

            if op_token.type == TokenType.MULTIPLY:
                factors.append(operand)
            elif op_token.type == TokenType.DIVIDE:
                factors.append(BinaryOp("/", [operand]))
            else:
                # % closes the product built so far
                factors = [BinaryOp("%", [self._product(factors), operand])]

        return self._product(factors)

    @staticmethod
    def _product(factors: list[ASTNode]) -> ASTNode:
        if len(factors) == 1:
            return factors[0]
        return BinaryOp("*", factors)

    def _parse_unary(self) -> ASTNode:
        """Parse unary expression (-, +)."""
        if self._match(TokenType.MINUS, TokenType.PLUS):
            sign = self._current()
            previous = self._previous()

            # After a binary operator a sign must be glued to its operand
            if previous is not None and previous.type in BINARY_OPERATORS:
                following = self.tokens[self.position + 1]
                if following.position != sign.end:
                    raise self._error(
                        f"Successive operators '{previous.value}' and '{sign.value}'",
                        sign,
                    )

            self._advance()
            operand = self._parse_unary()
            if sign.type == TokenType.MINUS:
                return BinaryOp("-", [operand])
            return operand

        return self._parse_power()

    def _parse_power(self) -> ASTNode:
        """Parse power expression (^, **), right associative."""
        base = self._parse_primary()

        if self._match(TokenType.POWER):
            self._advance()
            exponent = self._parse_unary()
            return BinaryOp("^", [base, exponent])

        return base

    def _parse_primary(self) -> ASTNode:
        """Parse primary expression (numbers, identifiers, grouped expressions)."""
        token = self._current()

        if token.type == TokenType.NUMBER:
            self._advance()
            following = self._current()
            if (
                following.type in (TokenType.IDENTIFIER, TokenType.NUMBER)
                and following.position == token.end
            ):
                raise self._error(
                    f"Missing operator between '{token.value}' and '{following.value}'",
                    following,
                )
            return Number(float(token.value))

        # Identifier (variable reference or function name)
        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._match(TokenType.LPAREN):
                return self._parse_function_call(str(token.value))
            return Variable(str(token.value))

        # Grouped expression
        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_additive()
            self._close_paren(token, "Expected ')' after expression")
            return expr

        raise self._unexpected(token)

    def _parse_function_call(self, name: str) -> FunctionCall:
        """Parse a function call (arguments in parentheses)."""
        opening = self._advance()

        arguments: list[ASTNode] = []

        if not self._match(TokenType.RPAREN):
            arguments.append(self._parse_additive())

            while self._match(TokenType.COMMA):
                self._advance()
                arguments.append(self._parse_additive())

        self._close_paren(opening, "Expected ')' after arguments")

        return FunctionCall(name, arguments)


def parse(source: str | None, config: ExpressionConfig | None = None) -> ASTNode:
    """Convenience function to parse an expression string.

    Args:
        source: The expression string
        config: Parser options; defaults to ExpressionConfig()

    Returns:
        The AST root node
    """
    force_semicolon = config.force_semicolon if config is not None else False
    return Parser(source, force_semicolon=force_semicolon).parse()


def node_count(node: ASTNode) -> int:
    """Count the nodes of a tree."""
    return sum(1 for _ in iter_nodes(node))


def variable_names(node: ASTNode) -> set[str]:
    """Collect the variable names referenced anywhere in a tree."""
    return {n.name for n in iter_nodes(node) if isinstance(n, Variable)}


def format_number(value: float) -> str:
    """Render a number, dropping the ".0" of integral values."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def format_ast(node: ASTNode) -> str:
    """Render a tree in a compact prefix notation, e.g. ``+(a, *(2, b))``."""
    if isinstance(node, Number):
        return format_number(node.value)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, BinaryOp):
        inner = ", ".join(format_ast(o) for o in node.operands)
        return f"{node.operator}({inner})"
    if isinstance(node, Assignment):
        return f"{node.target.name} = {format_ast(node.value)}"
    if isinstance(node, FunctionCall):
        inner = ", ".join(format_ast(a) for a in node.arguments)
        return f"{node.name}({inner})"
    if isinstance(node, Block):
        return "; ".join(format_ast(s) for s in node.statements)
    raise TypeError(f"Unknown node type: {type(node).__name__}")
