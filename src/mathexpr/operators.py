"""Arithmetic shared by the evaluator, optimizer and compiler.

Keeping the operations in one place guarantees that interpreted and compiled
expressions produce identical results, down to the order in which sums and
products are accumulated.
"""

from typing import Any, Callable, Sequence

from mathexpr.errors import EvaluationError

Numeric = int | float

COMMUTATIVE_OPERATORS = frozenset({"+", "*"})


def add(values: Sequence[Numeric]) -> Numeric:
    """Sum values left to right."""
    total = values[0]
    for value in values[1:]:
        total = total + value
    return total


def multiply(values: Sequence[Numeric]) -> Numeric:
    """Multiply values left to right."""
    product = 1
    for value in values:
        product = product * value
    return product


def negate(value: Numeric) -> Numeric:
    return -value


def reciprocal(value: Numeric) -> Numeric:
    """Return 1 / value."""
    if value == 0:
        raise EvaluationError("Division by zero")
    return 1 / value


def modulo(left: Numeric, right: Numeric) -> float:
    """Integer remainder.

    Both operands are truncated toward zero first; the result takes the sign
    of the divisor.
    """
    try:
        dividend = int(left)
        divisor = int(right)
    except (OverflowError, ValueError) as e:
        raise EvaluationError(f"Modulo needs finite operands: {e}") from e

    if divisor == 0:
        raise EvaluationError("Modulo by zero")
    return float(dividend % divisor)


def power(base: Numeric, exponent: Numeric) -> float:
    """Raise base to exponent in floating point."""
    try:
        result = float(base) ** float(exponent)
    except ZeroDivisionError:
        raise EvaluationError("Zero cannot be raised to a negative power") from None
    except OverflowError as e:
        raise EvaluationError(f"Numeric overflow in power: {e}") from e

    if isinstance(result, complex):
        raise EvaluationError(
            f"Power {base} ^ {exponent} has no real result"
        )
    return result


def apply_operator(operator: str, values: Sequence[Numeric]) -> Numeric:
    """Apply an operator to already evaluated operands."""
    if operator == "+":
        return add(values)
    if operator == "*":
        return multiply(values)
    if operator == "-":
        return negate(values[0])
    if operator == "/":
        return reciprocal(values[0])
    if operator == "%":
        return modulo(values[0], values[1])
    if operator == "^":
        return power(values[0], values[1])

    raise EvaluationError(f"Unknown operator: {operator}")


def call_function(name: str, func: Callable[..., Any], args: Sequence[Numeric]) -> Any:
    """Call an expression function, wrapping failures in EvaluationError."""
    try:
        return func(*args)
    except EvaluationError:
        raise
    except Exception as e:
        raise EvaluationError(f"Error calling {name}: {e}", name=name) from e
