"""Built-in functions for mathexpr.

This module registers all built-in functions with the FunctionRegistry.
The package imports it on first import, so the table is always populated;
tests call ``register_all_builtins()`` again after clearing the registry.

Categories:
- Trigonometric: sin, cos, tan, asin, acos, atan
- Hyperbolic: sinh, cosh
- Exponential: sqrt, exp, log, log10, log2
- Rounding: ceil, floor
- Constant: pi
- Other: theta
"""

import math

from mathexpr.functions import (
    FunctionCategory,
    FunctionDefinition,
    FunctionRegistry,
)

PI = 3.141592653589793


def register_all_builtins() -> None:
    """Register all built-in functions with the FunctionRegistry."""
    _register_trigonometric_functions()
    _register_hyperbolic_functions()
    _register_exponential_functions()
    _register_rounding_functions()
    _register_other_functions()


def _unary(
    name: str,
    description: str,
    category: FunctionCategory,
    implementation,
    examples: list[str] | None = None,
) -> None:
    FunctionRegistry.register(
        FunctionDefinition(
            name=name,
            description=description,
            category=category,
            parameters=["x"],
            implementation=implementation,
            examples=examples or [f"{name}(x)"],
        )
    )


# -----------------------------------------------------------------------------
# Trigonometric Functions
# -----------------------------------------------------------------------------


def _register_trigonometric_functions() -> None:
    category = FunctionCategory.TRIGONOMETRIC
    _unary("sin", "Sine of x (radians)", category, math.sin, ["sin(pi() / 2)"])
    _unary("cos", "Cosine of x (radians)", category, math.cos, ["cos(0)"])
    _unary("tan", "Tangent of x (radians)", category, math.tan)
    _unary("asin", "Inverse sine, in radians", category, math.asin)
    _unary("acos", "Inverse cosine, in radians", category, math.acos)
    _unary("atan", "Inverse tangent, in radians", category, math.atan)


# -----------------------------------------------------------------------------
# Hyperbolic Functions
# -----------------------------------------------------------------------------


def _register_hyperbolic_functions() -> None:
    category = FunctionCategory.HYPERBOLIC
    _unary("sinh", "Hyperbolic sine", category, math.sinh)
    _unary("cosh", "Hyperbolic cosine", category, math.cosh)


# -----------------------------------------------------------------------------
# Exponential and Logarithmic Functions
# -----------------------------------------------------------------------------


def _register_exponential_functions() -> None:
    category = FunctionCategory.EXPONENTIAL
    _unary("sqrt", "Square root", category, math.sqrt, ["sqrt(a^2 + b^2)"])
    _unary("exp", "e raised to the power x", category, math.exp)
    _unary("log", "Natural logarithm", category, math.log)
    _unary("log10", "Base 10 logarithm", category, math.log10, ["log10(1000)"])
    _unary("log2", "Base 2 logarithm", category, math.log2, ["log2(16)"])


# -----------------------------------------------------------------------------
# Rounding Functions
# -----------------------------------------------------------------------------


def _ceil(x: float) -> float:
    return float(math.ceil(x))


def _floor(x: float) -> float:
    return float(math.floor(x))


def _register_rounding_functions() -> None:
    category = FunctionCategory.ROUNDING
    _unary("ceil", "Smallest integer not less than x", category, _ceil)
    _unary("floor", "Largest integer not greater than x", category, _floor)


# -----------------------------------------------------------------------------
# Other Functions
# -----------------------------------------------------------------------------


def _theta(x: float) -> float:
    """Heaviside step: 1 for positive x, otherwise 0."""
    return 1.0 if x > 0 else 0.0


def _pi() -> float:
    return PI


def _register_other_functions() -> None:
    _unary(
        "theta",
        "Step function: 1 if x > 0, else 0",
        FunctionCategory.OTHER,
        _theta,
        ["theta(x - 3)"],
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="pi",
            description="The constant pi; parentheses distinguish it from a variable",
            category=FunctionCategory.CONSTANT,
            parameters=[],
            implementation=_pi,
            examples=["2 * pi() * r"],
        )
    )
