"""Compiler for mathexpr.

Translates an AST into a tree of nested Python closures. Each node is turned
into a function of a per-call frame; function implementations are resolved
and operand lists flattened once, at compile time, so a call only pays for
the arithmetic itself.

A compiled expression behaves like ``Expression.evaluate``:

- variables are looked up in the caller's mapping, then in the variables
  captured at compile time (plus any assignments made by the current call),
  then via the miss handler captured at compile time;
- the caller's mapping is never written;
- assignments only live for the duration of one call.
"""

import logging
from typing import Any, Callable, Mapping

from mathexpr.errors import EvaluationError
from mathexpr.evaluator import MissHandler, raise_missing_variable
from mathexpr.operators import (
    add,
    call_function,
    modulo,
    multiply,
    negate,
    power,
    reciprocal,
)
from mathexpr.parser import (
    ASTNode,
    Assignment,
    BinaryOp,
    Block,
    FunctionCall,
    Number,
    Variable,
    node_count,
    variable_names,
)

logger = logging.getLogger(__name__)


class Frame:
    """Variables visible to one invocation of a compiled expression."""

    __slots__ = ("overrides", "locals")

    def __init__(self, overrides: Mapping[str, Any], defaults: Mapping[str, Any]):
        self.overrides = overrides
        self.locals = dict(defaults)


Code = Callable[[Frame], Any]


class CompiledExpression:
    """A compiled, reusable expression.

    Usage:
        compiled = Expression("2 + 4 * b").compile()
        for b in range(100):
            print(compiled({"b": b}))
    """

    def __init__(self, code: Code, defaults: Mapping[str, Any], variables: set[str]):
        self._code = code
        self._defaults = defaults
        self.variables = variables

    def __call__(self, variables: Mapping[str, Any] | None = None) -> Any:
        frame = Frame(variables if variables is not None else {}, self._defaults)
        try:
            return self._code(frame)
        except RecursionError:
            raise EvaluationError("Expression nested too deeply") from None

    def __repr__(self) -> str:
        return f"CompiledExpression(variables={sorted(self.variables)})"


class Compiler:
    """Compiles ASTs against a snapshot of variables and functions.

    Args:
        variables: Default variable values; copied at construction
        functions: Name -> callable table; copied at construction
        on_missing: Miss handler for variables found nowhere else
    """

    def __init__(
        self,
        variables: Mapping[str, Any] | None = None,
        functions: Mapping[str, Callable[..., Any]] | None = None,
        on_missing: MissHandler = raise_missing_variable,
    ):
        self.variables = dict(variables or {})
        self.functions = dict(functions or {})
        self.on_missing = on_missing

    def compile(self, node: ASTNode) -> CompiledExpression:
        """Compile an AST into a callable."""
        try:
            code = self._compile(node)
        except RecursionError:
            raise EvaluationError("Expression nested too deeply") from None
        logger.debug(
            "Compiled expression with %d nodes and %d default variables",
            node_count(node),
            len(self.variables),
        )
        return CompiledExpression(code, self.variables, variable_names(node))

    def _compile(self, node: ASTNode) -> Code:
        method_name = f"_compile_{type(node).__name__.lower()}"
        method = getattr(self, method_name, None)

        if method is None:
            raise EvaluationError(f"Unknown node type: {type(node).__name__}")

        return method(node)

    # -------------------------------------------------------------------------
    # Node type compilers
    # -------------------------------------------------------------------------

    def _compile_number(self, node: Number) -> Code:
        value = node.value
        return lambda frame: value

    def _compile_variable(self, node: Variable) -> Code:
        name = node.name
        on_missing = self.on_missing

        def lookup(frame: Frame) -> Any:
            if name in frame.overrides:
                return frame.overrides[name]
            if name in frame.locals:
                return frame.locals[name]
            return on_missing(name)

        return lookup

    def _compile_binaryop(self, node: BinaryOp) -> Code:
        parts = [self._compile(operand) for operand in node.operands]
        op = node.operator

        if op == "+":
            if len(parts) == 2:
                left, right = parts
                return lambda frame: left(frame) + right(frame)
            return lambda frame: add([part(frame) for part in parts])

        if op == "*":
            return lambda frame: multiply([part(frame) for part in parts])

        if op == "-":
            (operand,) = parts
            return lambda frame: negate(operand(frame))

        if op == "/":
            (operand,) = parts
            return lambda frame: reciprocal(operand(frame))

        if op == "%":
            left, right = parts
            return lambda frame: modulo(left(frame), right(frame))

        if op == "^":
            base, exponent = parts
            return lambda frame: power(base(frame), exponent(frame))

        raise EvaluationError(f"Unknown operator: {op}")

    def _compile_assignment(self, node: Assignment) -> Code:
        if not isinstance(node.target, Variable):
            raise EvaluationError(
                f"Invalid assignment target: {type(node.target).__name__}"
            )

        name = node.target.name
        value_code = self._compile(node.value)

        def assign(frame: Frame) -> Any:
            value = value_code(frame)
            frame.locals[name] = value
            return value

        return assign

    def _compile_functioncall(self, node: FunctionCall) -> Code:
        name = node.name
        func = self.functions.get(name)
        if func is None:
            raise EvaluationError(f"Unknown function: {name}", name=name)

        args = [self._compile(arg) for arg in node.arguments]

        return lambda frame: call_function(name, func, [arg(frame) for arg in args])

    def _compile_block(self, node: Block) -> Code:
        statements = [self._compile(s) for s in node.statements]
        *init, last = statements

        def run(frame: Frame) -> Any:
            for statement in init:
                statement(frame)
            return last(frame)

        return run
