"""Constant folding for mathexpr ASTs.

The following optimizations are implemented:

- Constant sub expressions: ``a + 3 * 4`` becomes ``a + 12``.
- Joining of constants in mixed sums and products: ``2 + a + 3`` becomes
  ``a + 5``. Since the parser stores ``2 - 3 + a`` as ``2 + (-3) + a``, this
  also covers differences and quotients.

A subtree that still contains a variable, an assignment or a call to a
function that may have side effects is *tainted* and is never evaluated
ahead of time. Assignments and variable references are returned untouched.
"""

import logging
from typing import Any, Callable, Mapping

from mathexpr.errors import EvaluationError
from mathexpr.evaluator import EvaluationContext, Evaluator
from mathexpr.functions import FunctionRegistry
from mathexpr.operators import COMMUTATIVE_OPERATORS
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


class Optimizer:
    """Rewrites an AST into an equivalent one with constants pre-evaluated.

    Args:
        functions: Functions that are safe to call at optimization time.
            Defaults to all registered built-ins.
    """

    def __init__(self, functions: Mapping[str, Callable[..., Any]] | None = None):
        if functions is None:
            functions = dict(FunctionRegistry.implementations())
        self.functions = functions
        self._evaluator = Evaluator(EvaluationContext(functions=functions))

    def optimize(self, node: ASTNode) -> ASTNode:
        """Return an optimized copy of ``node``; the input is not modified."""
        try:
            return self._optimize(node)
        except RecursionError:
            raise EvaluationError("Expression nested too deeply") from None

    def _optimize(self, node: ASTNode) -> ASTNode:
        if isinstance(node, (Number, Variable, Assignment)):
            return node

        if isinstance(node, BinaryOp):
            operands = [self._optimize(o) for o in node.operands]
            return self._fold(BinaryOp(node.operator, operands))

        if isinstance(node, FunctionCall):
            arguments = [self._optimize(a) for a in node.arguments]
            rebuilt = FunctionCall(node.name, arguments)
            if node.name not in self.functions:
                return rebuilt
            return self._fold(rebuilt)

        if isinstance(node, Block):
            statements = [self._optimize(s) for s in node.statements]
            return self._fold(Block(statements))

        raise EvaluationError(f"Unknown node type: {type(node).__name__}")

    def _fold(self, node: ASTNode) -> ASTNode:
        children = _children(node)
        tainted = [c for c in children if not isinstance(c, Number)]

        if not tainted:
            return self._evaluate_constant(node)

        if isinstance(node, BinaryOp) and node.operator in COMMUTATIVE_OPERATORS:
            constants = [c for c in children if isinstance(c, Number)]
            if len(constants) > 1:
                folded = self._evaluate_constant(BinaryOp(node.operator, constants))
                if not isinstance(folded, Number):
                    return node
                logger.debug(
                    "Joined %d constants of '%s' into %r",
                    len(constants),
                    node.operator,
                    folded,
                )
                return BinaryOp(node.operator, tainted + [folded])

        return node

    def _evaluate_constant(self, node: ASTNode) -> ASTNode:
        """Evaluate a constant subtree, or keep it if evaluation fails."""
        try:
            value = self._evaluator.evaluate(node)
        except EvaluationError as e:
            logger.debug("Not folding %r: %s", node, e)
            return node
        return Number(value)


def _children(node: ASTNode) -> list[ASTNode]:
    if isinstance(node, BinaryOp):
        return node.operands
    if isinstance(node, FunctionCall):
        return node.arguments
    if isinstance(node, Block):
        return node.statements
    return []


def optimize(
    node: ASTNode,
    functions: Mapping[str, Callable[..., Any]] | None = None,
) -> ASTNode:
    """Convenience function to optimize a tree.

    Args:
        node: The AST root
        functions: Functions safe to fold; defaults to the built-ins

    Returns:
        The optimized AST
    """
    return Optimizer(functions).optimize(node)
