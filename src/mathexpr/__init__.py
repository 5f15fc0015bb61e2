"""mathexpr: parse, optimize, evaluate and compile mathematical expressions.

This package provides:
- Expression: The host-facing object (parse/evaluate/optimize/compile)
- Lexer: Tokenizes expression strings
- Parser: Produces AST from tokens
- Optimizer: Folds constant subexpressions
- Evaluator: Walks an AST against a context
- Compiler: Turns an AST into a reusable closure
"""

from mathexpr.builtins import register_all_builtins
from mathexpr.compiler import CompiledExpression, Compiler
from mathexpr.config import ExpressionConfig
from mathexpr.errors import EvaluationError, ExpressionError, LexerError, ParseError
from mathexpr.evaluator import EvaluationContext, Evaluator
from mathexpr.expression import Expression, evaluate
from mathexpr.functions import (
    FunctionCategory,
    FunctionDefinition,
    FunctionRegistry,
    FunctionTable,
)
from mathexpr.lexer import TOKEN_RULES, Lexer, Token, TokenRule, TokenType, lex
from mathexpr.optimizer import Optimizer, optimize
from mathexpr.parser import (
    ASTNode,
    Assignment,
    BinaryOp,
    Block,
    FunctionCall,
    Number,
    Parser,
    Variable,
    parse,
)

register_all_builtins()

__version__ = "0.4.0"

__all__ = [
    # Expression
    "Expression",
    "ExpressionConfig",
    "evaluate",
    # Errors
    "EvaluationError",
    "ExpressionError",
    "LexerError",
    "ParseError",
    # Evaluator / compiler / optimizer
    "CompiledExpression",
    "Compiler",
    "EvaluationContext",
    "Evaluator",
    "Optimizer",
    "optimize",
    # Functions
    "FunctionCategory",
    "FunctionDefinition",
    "FunctionRegistry",
    "FunctionTable",
    "register_all_builtins",
    # Lexer
    "Lexer",
    "TOKEN_RULES",
    "Token",
    "TokenRule",
    "TokenType",
    "lex",
    # Parser
    "ASTNode",
    "Assignment",
    "BinaryOp",
    "Block",
    "FunctionCall",
    "Number",
    "Parser",
    "Variable",
    "parse",
]
