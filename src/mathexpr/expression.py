"""The host-facing Expression object.

An Expression owns one current AST, one persistent variable store and one
table of user functions. Calling ``parse`` again replaces the AST but keeps
the variables and functions, so earlier assignments stay visible:

    m = Expression()
    m.parse("a = 3; a").evaluate()
    m.parse("a + 5").evaluate()   # 8, because a = 3 is remembered

Create a new Expression when that sharing is not wanted; construction is
cheap. An Expression is not thread safe; compiled expressions are
independent of it once created.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from mathexpr.compiler import CompiledExpression, Compiler
from mathexpr.config import ExpressionConfig
from mathexpr.errors import EvaluationError
from mathexpr.evaluator import (
    EvaluationContext,
    Evaluator,
    MissHandler,
    raise_missing_variable,
)
from mathexpr.functions import FunctionTable
from mathexpr.optimizer import Optimizer
from mathexpr.parser import ASTNode, node_count, parse, variable_names

logger = logging.getLogger(__name__)


class Expression:
    """Parses, optimizes, evaluates and compiles mathematical expressions.

    Usage:
        m = Expression()
        m.parse("a = 12; a * 3").evaluate()     # 36
        m.parse("a / b").evaluate({"b": 6})     # 2.0

        compiled = m.parse("2 + 4 * b").compile()
        for b in range(100):
            print(compiled({"b": b}))

    Args:
        source: Optional expression to parse right away
        config: ExpressionConfig, a mapping of its options, or None
    """

    def __init__(
        self,
        source: str | None = None,
        config: ExpressionConfig | Mapping[str, Any] | None = None,
    ):
        self.config = ExpressionConfig.coerce(config)
        self.variables: dict[str, Any] = {}
        self.functions = FunctionTable()
        self.ast: ASTNode | None = None
        self._on_missing: MissHandler = raise_missing_variable

        if source is not None:
            self.parse(source)

    def __repr__(self) -> str:
        return f"Expression(ast={self.ast!r})"

    def parse(self, source: str) -> Expression:
        """Parse source into the current AST.

        On failure the previous AST is kept.

        Raises:
            LexerError: If the source contains an unknown character
            ParseError: If the source is not a valid expression
        """
        self.ast = parse(source, self.config)
        return self

    def evaluate(self, variables: Mapping[str, Any] | None = None) -> Any:
        """Evaluate the current AST.

        Args:
            variables: Values that shadow stored variables for this call.
                The mapping is never modified.

        Raises:
            EvaluationError: For unknown variables or functions
        """
        ast = self._require_ast()
        context = EvaluationContext(
            overrides=variables if variables is not None else {},
            variables=self.variables,
            functions=self.functions.resolve(),
            on_missing=self._on_missing,
        )
        return Evaluator(context).evaluate(ast)

    def optimize(self) -> Expression:
        """Replace the current AST by a constant-folded equivalent."""
        ast = self._require_ast()
        before = node_count(ast)
        self.ast = Optimizer(self.functions.foldable()).optimize(ast)
        logger.debug("Optimized AST from %d to %d nodes", before, node_count(self.ast))
        return self

    def compile(self) -> CompiledExpression:
        """Compile the current AST.

        The result captures a copy of the current variables, functions and
        miss handler; later changes to this Expression do not affect it.
        """
        compiler = Compiler(
            variables=self.variables,
            functions=self.functions.snapshot(),
            on_missing=self._on_missing,
        )
        return compiler.compile(self._require_ast())

    def register_function(self, name: str, func: Callable[..., Any]) -> Expression:
        """Add a user function, or override a built-in, for this instance."""
        self.functions.register(name, func)
        logger.debug("Registered function '%s'", name)
        return self

    def set_variable_miss_handler(self, handler: MissHandler) -> Expression:
        """Install the callback used for variables found nowhere else.

        The handler receives the variable name and returns its value, or
        raises if it cannot supply one.
        """
        self._on_missing = handler
        return self

    def list_variables(self) -> set[str]:
        """Names of all variables referenced by the current AST."""
        return variable_names(self._require_ast())

    def ast_node_count(self) -> int:
        """Rough size of the current AST. Mainly for tests."""
        return node_count(self._require_ast())

    def _require_ast(self) -> ASTNode:
        if self.ast is None:
            raise EvaluationError("No expression has been parsed")
        return self.ast


def evaluate(
    source: str,
    variables: Mapping[str, Any] | None = None,
    config: ExpressionConfig | Mapping[str, Any] | None = None,
) -> Any:
    """Evaluate an expression string in a fresh Expression.

    Example:
        result = evaluate("sqrt(a^2 + b^2)", {"a": 3, "b": 4})
        # result = 5.0
    """
    return Expression(source, config).evaluate(variables)
