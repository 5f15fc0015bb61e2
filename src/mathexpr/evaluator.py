"""Evaluator for mathexpr.

Walks the AST and computes the result against an evaluation context
containing per-call variables, the persistent variable store and the
function table.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from mathexpr.errors import EvaluationError
from mathexpr.operators import apply_operator, call_function
from mathexpr.parser import (
    ASTNode,
    Assignment,
    BinaryOp,
    Block,
    FunctionCall,
    Number,
    Variable,
)

logger = logging.getLogger(__name__)

MissHandler = Callable[[str], Any]


def raise_missing_variable(name: str) -> Any:
    """Default miss handler: every unknown variable is an error."""
    raise EvaluationError(f"Variable '{name}' not defined", name=name)


@dataclass
class EvaluationContext:
    """Context for expression evaluation.

    Attributes:
        overrides: Per-call variables; read only, they shadow ``variables``
        variables: Persistent variable store, written by assignments
        functions: Name -> callable lookup
        on_missing: Called with the name of a variable found nowhere else
    """

    overrides: Mapping[str, Any] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)
    functions: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    on_missing: MissHandler = raise_missing_variable


class Evaluator:
    """Evaluates expression AST against a context.

    Usage:
        ctx = EvaluationContext(overrides={"a": 2})
        evaluator = Evaluator(ctx)
        result = evaluator.evaluate(ast)
    """

    def __init__(self, context: EvaluationContext):
        self.context = context

    def evaluate(self, node: ASTNode) -> Any:
        """Evaluate an AST node and return the result."""
        try:
            return self._eval(node)
        except RecursionError:
            raise EvaluationError("Expression nested too deeply") from None

    def _eval(self, node: ASTNode) -> Any:
        method_name = f"_eval_{type(node).__name__.lower()}"
        method = getattr(self, method_name, None)

        if method is None:
            raise EvaluationError(f"Unknown node type: {type(node).__name__}")

        return method(node)

    # -------------------------------------------------------------------------
    # Node type evaluators
    # -------------------------------------------------------------------------

    def _eval_number(self, node: Number) -> Any:
        return node.value

    def _eval_variable(self, node: Variable) -> Any:
        """Evaluate a variable reference: overrides, then store, then handler."""
        name = node.name

        if name in self.context.overrides:
            return self.context.overrides[name]

        if name in self.context.variables:
            return self.context.variables[name]

        logger.debug("Variable '%s' not found, calling miss handler", name)
        return self.context.on_missing(name)

    def _eval_binaryop(self, node: BinaryOp) -> Any:
        """Evaluate an arithmetic operation, operands left to right."""
        values = [self._eval(operand) for operand in node.operands]
        return apply_operator(node.operator, values)

    def _eval_assignment(self, node: Assignment) -> Any:
        """Evaluate an assignment into the persistent store."""
        if not isinstance(node.target, Variable):
            raise EvaluationError(
                f"Invalid assignment target: {type(node.target).__name__}"
            )

        value = self._eval(node.value)
        self.context.variables[node.target.name] = value
        return value

    def _eval_functioncall(self, node: FunctionCall) -> Any:
        """Evaluate a function call."""
        func_name = node.name

        func = self.context.functions.get(func_name)
        if func is None:
            raise EvaluationError(f"Unknown function: {func_name}", name=func_name)

        args = [self._eval(arg) for arg in node.arguments]

        return call_function(func_name, func, args)

    def _eval_block(self, node: Block) -> Any:
        """Evaluate every statement; the last one gives the value."""
        result = None
        for statement in node.statements:
            result = self._eval(statement)
        return result
