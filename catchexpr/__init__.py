"""
catchexpr: evaluate-with-fallback expressions.

`evaluate(primary, clauses)` is the core rule; the parser, checker and
interpreter embed it as an `expr except Class: fallback` expression.
"""

from __future__ import annotations

import logging

from .checker import CheckedProgram, check_program
from .config import EvalConfig
from .errors import CatchExprError, CheckError, ConfigError, ParseError
from .fallback import ANY_FAILURE, Clause, FailureClass, FallbackExpression, evaluate
from .driver import compile_source, run_file, run_source
from .parser import parse_expression, parse_program

logging.getLogger("catchexpr").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "ANY_FAILURE",
    "CatchExprError",
    "CheckError",
    "CheckedProgram",
    "Clause",
    "ConfigError",
    "EvalConfig",
    "FailureClass",
    "FallbackExpression",
    "ParseError",
    "check_program",
    "compile_source",
    "evaluate",
    "parse_expression",
    "parse_program",
    "run_file",
    "run_source",
]
