"""Tests for the tree-walking evaluator.

Tests cover:
- Arithmetic, precedence and associativity
- Built-in functions
- Variable lookup order and the persistent store
- Evaluation errors
"""

import logging
import math

import pytest

from mathexpr import (
    Assignment,
    ASTNode,
    BinaryOp,
    EvaluationContext,
    EvaluationError,
    Evaluator,
    Expression,
    Number,
    Variable,
    evaluate,
    parse,
)


# =============================================================================
# Arithmetic
# =============================================================================


class TestArithmetic:
    @pytest.mark.parametrize(
        "source, expected",
        [
            ("1+2*3", 7),
            ("1-4/2", -1),
            ("3*2^4", 48),
            ("16/2^3", 2),
            ("2^3^2", 512),
            ("2^(3^2)", 512),
            ("(2^3)^2", 64),
            ("1-2-3", -4),
            ("(1-2)-3", -4),
            ("1-(2-3)", 2),
            ("-2^2", -4),
            ("(-2)^2", 4),
            ("2^-1", 0.5),
            ("2**3", 8),
            ("1 ** 2", 1),
            ("8/4/2", 1),
            ("2*3%4", 2),
            ("10 - -3", 13),
            ("--3", 3),
        ],
    )
    def test_values(self, source, expected):
        assert evaluate(source) == expected

    @pytest.mark.parametrize("source", ["2 + 3 * 4", "2 ^ 10", "7 % 3", "floor(2.5)", "theta(1)"])
    def test_results_are_floats(self, source):
        assert isinstance(evaluate(source), float)

    def test_division_yields_float(self):
        assert evaluate("7 / 2") == 3.5

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("7 % 3", 1),
            ("-7 % 3", 2),
            ("7 % -3", -2),
            ("7.9 % 3", 1),
            ("7 % 3.9", 1),
        ],
    )
    def test_modulo_truncates_operands(self, source, expected):
        assert evaluate(source) == expected

    def test_division_by_zero(self):
        with pytest.raises(EvaluationError, match="Division by zero"):
            evaluate("1 / 0")

    def test_modulo_by_zero(self):
        with pytest.raises(EvaluationError, match="Modulo by zero"):
            evaluate("5 % 0.5")

    def test_power_without_real_result(self):
        with pytest.raises(EvaluationError):
            evaluate("(-8) ^ 0.5")

    def test_zero_to_negative_power(self):
        with pytest.raises(EvaluationError):
            evaluate("0 ^ -1")

    def test_float_overflow(self):
        with pytest.raises(EvaluationError, match="overflow"):
            evaluate("10.0 ^ 400")

    @pytest.mark.parametrize("source", ["10 ^ 400", "10.0 ^ 400", "9 ^ 9 ^ 9", "2^2^2^2^2"])
    def test_huge_powers_overflow(self, source):
        with pytest.raises(EvaluationError, match="overflow"):
            evaluate(source)

    def test_integer_variables_use_float_power(self):
        assert evaluate("a ^ b", {"a": 2, "b": 10}) == 1024.0
        with pytest.raises(EvaluationError, match="overflow"):
            evaluate("a ^ b", {"a": 10, "b": 400})

    @pytest.mark.parametrize(
        "source, variables",
        [
            ("1e400 % 3", {}),
            ("3 % 1e400", {}),
            ("a % 3", {"a": float("nan")}),
            ("3 % a", {"a": float("-inf")}),
        ],
    )
    def test_modulo_of_non_finite_operand(self, source, variables):
        with pytest.raises(EvaluationError, match="finite"):
            evaluate(source, variables)


# =============================================================================
# Built-in functions
# =============================================================================


class TestBuiltins:
    @pytest.mark.parametrize(
        "source, expected",
        [
            ("sqrt(16)", 4.0),
            ("sin(0)", 0.0),
            ("cos(0)", 1.0),
            ("tan(0)", 0.0),
            ("asin(1)", math.pi / 2),
            ("acos(1)", 0.0),
            ("atan(1)", math.pi / 4),
            ("exp(0)", 1.0),
            ("log(exp(2))", 2.0),
            ("sinh(0)", 0.0),
            ("cosh(0)", 1.0),
            ("ceil(1.2)", 2),
            ("floor(-1.5)", -2),
            ("pi()", 3.141592653589793),
        ],
    )
    def test_values(self, source, expected):
        assert evaluate(source) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("log10(1000)", 3.0),
            ("floor(log10(1000))", 3.0),
            ("log2(8)", 3.0),
            ("floor(log2(8))", 3.0),
            ("sinh(1e-20)", 1e-20),
            ("cosh(0)", 1.0),
        ],
    )
    def test_exact_values(self, source, expected):
        assert evaluate(source) == expected

    @pytest.mark.parametrize("x, expected", [(2, 1), (0.1, 1), (0, 0), (-1, 0)])
    def test_theta(self, x, expected):
        assert evaluate("theta(x)", {"x": x}) == expected

    def test_pi_needs_parentheses(self):
        with pytest.raises(EvaluationError, match="Variable 'pi' not defined"):
            evaluate("pi")

    def test_unknown_function(self):
        with pytest.raises(EvaluationError) as exc_info:
            evaluate("nope(1)")
        assert exc_info.value.name == "nope"
        assert "Unknown function" in str(exc_info.value)

    def test_function_error_is_wrapped(self):
        with pytest.raises(EvaluationError, match="Error calling sqrt") as exc_info:
            evaluate("sqrt(-1)")
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_wrong_argument_count_is_wrapped(self):
        with pytest.raises(EvaluationError, match="Error calling sin"):
            evaluate("sin(1, 2)")


# =============================================================================
# Variables
# =============================================================================


class TestVariables:
    def test_override_values(self):
        assert evaluate("a + 4*b", {"a": 1, "b": 2}) == 9

    def test_override_shadows_assignment_for_reads(self):
        m = Expression("a = 3; a")
        variables = {"a": 1}

        assert m.evaluate(variables) == 1
        assert m.variables["a"] == 3

    def test_caller_mapping_is_never_mutated(self):
        m = Expression("a = 3; b = a + 1; b")
        variables = {"c": 5}

        m.evaluate(variables)

        assert variables == {"c": 5}
        assert m.variables == {"a": 3, "b": 4}

    def test_missing_variable(self):
        with pytest.raises(EvaluationError) as exc_info:
            evaluate("a + 1")
        assert exc_info.value.name == "a"
        assert "Variable 'a' not defined" in str(exc_info.value)

    def test_miss_handler_supplies_value(self):
        m = Expression("1 + a")
        m.set_variable_miss_handler(lambda name: ord(name))
        assert m.evaluate() == 98

    def test_miss_handler_called_after_store(self):
        seen = []

        def handler(name):
            seen.append(name)
            return 0

        m = Expression("x = 1; x + y")
        m.set_variable_miss_handler(handler)

        assert m.evaluate() == 1
        assert seen == ["y"]

    def test_miss_handler_logged(self, caplog):
        m = Expression("q").set_variable_miss_handler(lambda name: 1)
        with caplog.at_level(logging.DEBUG, logger="mathexpr.evaluator"):
            m.evaluate()
        assert "Variable 'q' not found" in caplog.text

    def test_failed_statement_keeps_earlier_assignments(self):
        m = Expression("a = 1; b = nope + 1; c = 3")

        with pytest.raises(EvaluationError):
            m.evaluate()

        assert m.variables == {"a": 1}

    def test_block_value_is_last_statement(self):
        assert evaluate("1; 2; 3") == 3


# =============================================================================
# Evaluator class
# =============================================================================


class TestEvaluatorClass:
    def test_context_defaults(self):
        result = Evaluator(EvaluationContext()).evaluate(parse("1 + 2"))
        assert result == 3

    def test_assignment_writes_context_store(self):
        context = EvaluationContext()
        Evaluator(context).evaluate(parse("a = 2 * 3"))
        assert context.variables == {"a": 6}

    def test_functions_come_from_context(self):
        context = EvaluationContext(functions={"double": lambda x: 2 * x})
        assert Evaluator(context).evaluate(parse("double(21)")) == 42

    def test_invalid_assignment_target(self):
        bad = Assignment(Number(1), Number(2))
        with pytest.raises(EvaluationError, match="Invalid assignment target"):
            Evaluator(EvaluationContext()).evaluate(bad)

    def test_unknown_node_type(self):
        with pytest.raises(EvaluationError, match="Unknown node type"):
            Evaluator(EvaluationContext()).evaluate(ASTNode())

    def test_deep_tree(self):
        node = Number(1)
        for _ in range(5000):
            node = BinaryOp("-", [node])

        with pytest.raises(EvaluationError, match="nested too deeply"):
            Evaluator(EvaluationContext()).evaluate(node)

    def test_variable_lookup_order(self):
        context = EvaluationContext(
            overrides={"a": 1},
            variables={"a": 2, "b": 3},
            on_missing=lambda name: 4,
        )
        evaluator = Evaluator(context)

        assert evaluator.evaluate(Variable("a")) == 1
        assert evaluator.evaluate(Variable("b")) == 3
        assert evaluator.evaluate(Variable("c")) == 4
