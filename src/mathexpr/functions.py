"""Function tables for mathexpr.

Functions are callable from expressions (e.g., ``sqrt(x) + 1``, ``pi()``).

Two layers are involved:
- FunctionRegistry holds the built-in functions. It is process wide and is
  populated once by ``register_all_builtins()``.
- FunctionTable is owned by one Expression instance. It layers the
  instance's user functions over the registry, so a user function shadows a
  built-in of the same name without touching other instances.
"""

import logging
from collections import ChainMap
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)


class FunctionCategory(Enum):
    """Categories for organizing functions in documentation."""

    TRIGONOMETRIC = "trigonometric"
    HYPERBOLIC = "hyperbolic"
    EXPONENTIAL = "exponential"
    ROUNDING = "rounding"
    CONSTANT = "constant"
    OTHER = "other"


@dataclass
class FunctionDefinition:
    """Complete definition of a built-in expression function.

    Attributes:
        name: Function name as used in expressions
        description: Human-readable description
        category: Category for documentation organization
        parameters: Parameter names, in call order
        implementation: The Python callable
        examples: Example expressions using this function
    """

    name: str
    description: str
    category: FunctionCategory
    parameters: list[str]
    implementation: Callable[..., Any]
    examples: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Export for documentation listings."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "parameters": list(self.parameters),
            "examples": self.examples,
        }


class FunctionRegistry:
    """Registry for built-in expression functions.

    Example:
        FunctionRegistry.register(FunctionDefinition(
            name="sqrt",
            description="Square root",
            ...
        ))

        sqrt = FunctionRegistry.implementations()["sqrt"]
        result = sqrt(16)  # Returns 4.0
    """

    _functions: dict[str, FunctionDefinition] = {}
    _implementations: dict[str, Callable[..., Any]] = {}

    @classmethod
    def register(cls, func_def: FunctionDefinition) -> None:
        """Register a function definition.

        Args:
            func_def: Complete function definition with implementation
        """
        cls._functions[func_def.name] = func_def
        cls._implementations[func_def.name] = func_def.implementation

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if a function is registered."""
        return name in cls._functions

    @classmethod
    def implementations(cls) -> Mapping[str, Callable[..., Any]]:
        """Live name -> callable view of the registry."""
        return cls._implementations

    @classmethod
    def list_by_category(cls, category: FunctionCategory) -> list[FunctionDefinition]:
        """List functions in a specific category."""
        return [f for f in cls._functions.values() if f.category == category]

    @classmethod
    def export_documentation(cls) -> dict[str, Any]:
        """Export full registry for documentation.

        Returns:
            Dict with all function definitions organized by category
        """
        by_category: dict[str, list[dict[str, Any]]] = {}
        for func_def in cls._functions.values():
            category = func_def.category.value
            if category not in by_category:
                by_category[category] = []
            by_category[category].append(func_def.to_dict())

        return {
            "functions": {name: f.to_dict() for name, f in cls._functions.items()},
            "byCategory": by_category,
        }

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._functions.clear()
        cls._implementations.clear()


class FunctionTable:
    """Per-instance function lookup: user functions over the built-ins.

    ``resolve()`` is a live view, so a registration made after an expression
    was parsed is seen by the next evaluation. ``snapshot()`` copies the
    current state for compiled expressions.
    """

    def __init__(self):
        self._user: dict[str, Callable[..., Any]] = {}
        self._view = ChainMap(self._user, FunctionRegistry.implementations())

    def register(self, name: str, func: Callable[..., Any]) -> None:
        """Install or override a function for this table only."""
        if not callable(func):
            raise TypeError(f"Function '{name}' must be callable")
        if FunctionRegistry.is_registered(name):
            logger.debug("User function '%s' shadows the built-in", name)
        self._user[name] = func

    def resolve(self) -> Mapping[str, Callable[..., Any]]:
        """Return the layered name -> callable view."""
        return self._view

    def snapshot(self) -> dict[str, Callable[..., Any]]:
        """Copy the current merged table."""
        return dict(self._view)

    def foldable(self) -> dict[str, Callable[..., Any]]:
        """Built-ins not shadowed by a user function.

        Only these are safe to call at optimization time.
        """
        return {
            name: func
            for name, func in FunctionRegistry.implementations().items()
            if name not in self._user
        }
