"""Tests for compiled expressions."""

import pytest

from mathexpr import (
    BinaryOp,
    CompiledExpression,
    Compiler,
    EvaluationError,
    Expression,
    Number,
    parse,
)

EXPRESSIONS = [
    "a + 4*b",
    "(a - 1) / (a + 1)",
    "a % 3 + b",
    "-a^2",
    "2^a^2",
    "sqrt(a*a + b*b)",
    "x = a * 2; x + b",
    "a = 10; a + b",
    "theta(b) * a",
    "a / 2 * 4 - b",
    "floor(a / b) + ceil(b)",
    "1 2 a",
    "pi() * b ^ 2",
]

VARIABLE_SETS = [
    {"a": 1, "b": 2},
    {"a": 3.5, "b": -1},
    {"a": -2, "b": 0.5},
]


class TestEquivalence:
    """Compiled and interpreted evaluation agree."""

    @pytest.mark.parametrize("source", EXPRESSIONS)
    @pytest.mark.parametrize("variables", VARIABLE_SETS)
    def test_same_value(self, source, variables):
        interpreted = Expression(source).evaluate(variables)
        compiled = Expression(source).compile()(variables)
        assert compiled == interpreted

    @pytest.mark.parametrize("source", EXPRESSIONS)
    @pytest.mark.parametrize("variables", VARIABLE_SETS)
    def test_same_value_after_optimize(self, source, variables):
        interpreted = Expression(source).evaluate(variables)
        compiled = Expression(source).optimize().compile()(variables)
        assert compiled == pytest.approx(interpreted)

    @pytest.mark.parametrize(
        "source",
        ["1 / 0", "nope_var + 1", "5 % 0", "sqrt(-1)", "1e400 % 3", "9 ^ 9 ^ 9", "10 ^ 400"],
    )
    def test_same_errors(self, source):
        with pytest.raises(EvaluationError):
            Expression(source).evaluate()
        with pytest.raises(EvaluationError):
            Expression(source).compile()()


class TestVariables:
    """Lookup order and isolation of compiled expressions."""

    def test_stored_variables_are_defaults(self):
        m = Expression()
        m.parse("a = 5").evaluate()
        compiled = m.parse("a * 2").compile()

        assert compiled() == 10
        assert compiled({"a": 1}) == 2

    def test_override_shadows_assignment_for_reads(self):
        compiled = Expression("a = 3; a + 1").compile()
        assert compiled({"a": 1}) == 2
        assert compiled() == 4

    def test_caller_mapping_is_never_mutated(self):
        variables = {"a": 1}
        compiled = Expression("a = 3; b = 4; a + b").compile()

        compiled(variables)

        assert variables == {"a": 1}

    def test_assignments_are_private_to_one_call(self):
        m = Expression()
        m.parse("b = 1").evaluate()
        compiled = m.parse("b = b + 1; b").compile()

        assert compiled() == 2
        assert compiled() == 2
        assert m.variables["b"] == 1

    def test_variables_snapshot_taken_at_compile_time(self):
        m = Expression()
        m.parse("b = 1").evaluate()
        compiled = m.parse("b + 1").compile()

        m.variables["b"] = 100

        assert compiled() == 2

    def test_compile_does_not_touch_instance(self):
        m = Expression("a = 3; a")
        ast = m.ast
        m.compile()()

        assert m.ast is ast
        assert m.variables == {}

    def test_missing_variable(self):
        compiled = Expression("z + 1").compile()
        with pytest.raises(EvaluationError) as exc_info:
            compiled()
        assert exc_info.value.name == "z"

    def test_miss_handler_is_captured(self):
        m = Expression("z + 1")
        m.set_variable_miss_handler(lambda name: 7)
        compiled = m.compile()
        m.set_variable_miss_handler(lambda name: 0)

        assert compiled() == 8

    def test_referenced_variables(self):
        compiled = Expression("x = a + b; x").compile()
        assert compiled.variables == {"x", "a", "b"}


class TestFunctions:
    """Function resolution in compiled expressions."""

    def test_user_function_overrides_builtin(self):
        m = Expression()
        m.register_function("sin", lambda x: 42)
        assert m.parse("sin(4)").compile()() == 42

    def test_functions_captured_by_value(self):
        m = Expression()
        m.register_function("f", lambda: 42)
        compiled = m.parse("f()").compile()
        m.register_function("f", lambda: -23)

        assert compiled() == 42
        assert m.evaluate() == -23

    def test_unknown_function_fails_at_compile_time(self):
        with pytest.raises(EvaluationError) as exc_info:
            Expression("nope(1)").compile()
        assert exc_info.value.name == "nope"


class TestCompilerClass:
    def test_deep_tree(self):
        node = Number(1)
        for _ in range(5000):
            node = BinaryOp("-", [node])

        with pytest.raises(EvaluationError, match="nested too deeply"):
            Compiler().compile(node)

    def test_non_finite_modulo_operand(self):
        compiled = Compiler().compile(parse("a % 3"))
        with pytest.raises(EvaluationError, match="finite"):
            compiled({"a": float("nan")})

    def test_direct_use(self):
        compiler = Compiler(functions={"double": lambda x: 2 * x})
        compiled = compiler.compile(parse("double(a) + 1"))

        assert isinstance(compiled, CompiledExpression)
        assert compiled({"a": 20}) == 41

    def test_defaults_are_copied(self):
        defaults = {"a": 1}
        compiled = Compiler(variables=defaults).compile(parse("a"))
        defaults["a"] = 2

        assert compiled() == 1
