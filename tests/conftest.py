"""Shared fixtures for the mathexpr test suite."""

import pytest

from mathexpr import FunctionRegistry, register_all_builtins


@pytest.fixture(autouse=True)
def setup_functions():
    """Register built-in functions before each test."""
    FunctionRegistry.clear()
    register_all_builtins()
    yield
    FunctionRegistry.clear()
    register_all_builtins()
