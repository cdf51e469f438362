from __future__ import annotations

import sys
from typing import Dict, List, Mapping, Sequence

from . import ast
from .checker import CheckedProgram
from .fallback import ANY_FAILURE, Clause, FailureClass, evaluate
from .runtime import BuiltinFunction, RuntimeContext, builtin_names


class Environment:
    def __init__(self, parent: Environment | None = None) -> None:
        self.parent = parent
        self.values: Dict[str, object] = {}

    def define(self, name: str, value: object) -> None:
        if name in self.values:
            raise RuntimeError(f"'{name}' already defined in this scope")
        self.values[name] = value

    def assign(self, name: str, value: object) -> None:
        self.values[name] = value

    def get(self, name: str) -> object:
        if name in self.values:
            return self.values[name]
        if self.parent:
            return self.parent.get(name)
        raise NameError(f"name '{name}' is not defined")


class Interpreter:
    def __init__(
        self,
        checked: CheckedProgram,
        builtins: Mapping[str, object] | None = None,
        stdout=None,
    ) -> None:
        self.program = checked.program
        self.stdout = stdout or sys.stdout
        self.runtime_ctx = RuntimeContext(self.stdout)
        self.builtin_env = Environment()
        for name, value in (builtins if builtins is not None else builtin_names()).items():
            self.builtin_env.define(name, value)
        self.global_env = Environment(parent=self.builtin_env)
        self.last_value: object = None

    def run(self) -> object:
        """Execute the program; returns the value of the last expression statement."""
        self._execute_block(self.program.statements, self.global_env)
        return self.last_value

    def _execute_block(self, statements: List[ast.Stmt], env: Environment) -> None:
        for stmt in statements:
            self._exec_stmt(stmt, env)

    def _exec_stmt(self, stmt: ast.Stmt, env: Environment) -> None:
        if isinstance(stmt, ast.AssignStmt):
            env.assign(stmt.name, self._eval_expr(stmt.value, env))
            return
        if isinstance(stmt, ast.ExprStmt):
            self.last_value = self._eval_expr(stmt.value, env)
            return
        if isinstance(stmt, ast.RaiseStmt):
            value = self._eval_expr(stmt.value, env)
            if isinstance(value, type) and issubclass(value, BaseException):
                raise value()
            if isinstance(value, BaseException):
                raise value
            raise TypeError("exceptions must derive from BaseException")
        if isinstance(stmt, ast.ExceptionDef):
            env.assign(stmt.name, self._declare_exception(stmt, env))
            return
        raise RuntimeError(f"Unsupported statement {stmt}")

    def _declare_exception(self, stmt: ast.ExceptionDef, env: Environment) -> type:
        base = env.get(stmt.base) if stmt.base else Exception
        if not (isinstance(base, type) and issubclass(base, BaseException)):
            raise TypeError(f"exception '{stmt.name}' must derive from a failure class, not {stmt.base!r}")
        return type(stmt.name, (base,), {"__module__": "catchexpr.program"})

    def _eval_expr(self, expr: ast.Expr, env: Environment) -> object:
        if isinstance(expr, ast.Literal):
            return expr.value
        if isinstance(expr, ast.Name):
            return env.get(expr.ident)
        if isinstance(expr, ast.ExceptExpr):
            return self._eval_except(expr, env)
        if isinstance(expr, ast.Call):
            func = self._eval_expr(expr.func, env)
            args = [self._eval_expr(arg, env) for arg in expr.args]
            return self._invoke(func, args)
        if isinstance(expr, ast.Attr):
            base = self._eval_expr(expr.value, env)
            return self._resolve_attr(base, expr.attr)
        if isinstance(expr, ast.Index):
            base = self._eval_expr(expr.value, env)
            index = self._eval_expr(expr.index, env)
            return base[index]
        if isinstance(expr, ast.ListLiteral):
            return [self._eval_expr(elem, env) for elem in expr.elements]
        if isinstance(expr, ast.TupleLiteral):
            return tuple(self._eval_expr(elem, env) for elem in expr.elements)
        if isinstance(expr, ast.DictLiteral):
            return {self._eval_expr(item.key, env): self._eval_expr(item.value, env) for item in expr.items}
        if isinstance(expr, ast.Ternary):
            if self._eval_expr(expr.condition, env):
                return self._eval_expr(expr.then_value, env)
            return self._eval_expr(expr.else_value, env)
        if isinstance(expr, ast.Unary):
            value = self._eval_expr(expr.operand, env)
            if expr.op == "-":
                return -value
            if expr.op == "+":
                return +value
            if expr.op == "not":
                return not value
            raise RuntimeError(f"Unknown unary operator {expr.op}")
        if isinstance(expr, ast.BoolOp):
            left = self._eval_expr(expr.left, env)
            if expr.op == "and":
                return self._eval_expr(expr.right, env) if left else left
            if expr.op == "or":
                return left if left else self._eval_expr(expr.right, env)
            raise RuntimeError(f"Unknown boolean operator {expr.op}")
        if isinstance(expr, ast.Binary):
            return self._eval_binary(expr, env)
        raise RuntimeError(f"Unsupported expression {expr}")

    def _eval_except(self, expr: ast.ExceptExpr, env: Environment) -> object:
        clauses = [self._make_clause(clause, env) for clause in expr.clauses]
        return evaluate(lambda: self._eval_expr(expr.primary, env), clauses)

    def _make_clause(self, clause: ast.ExceptClause, env: Environment) -> Clause:
        if clause.failure is None:
            failure = ANY_FAILURE
        else:
            failure_expr = clause.failure
            failure = FailureClass(lambda: self._eval_expr(failure_expr, env))
        if clause.binder is None:
            return Clause(failure=failure, fallback=lambda: self._eval_expr(clause.fallback, env))

        def bound_fallback(caught: BaseException) -> object:
            # Child scope: the binder never overwrites a name in `env`.
            scope = Environment(parent=env)
            scope.define(clause.binder, caught)
            return self._eval_expr(clause.fallback, scope)

        return Clause(failure=failure, fallback=bound_fallback, binds=True)

    def _eval_binary(self, expr: ast.Binary, env: Environment) -> object:
        op = expr.op
        left = self._eval_expr(expr.left, env)
        right = self._eval_expr(expr.right, env)
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            return left / right
        if op == "//":
            return left // right
        if op == "%":
            return left % right
        if op == "==":
            return left == right
        if op == "!=":
            return left != right
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        if op == ">=":
            return left >= right
        raise RuntimeError(f"Unsupported operator {op}")

    def _resolve_attr(self, base: object, attr: str) -> object:
        if isinstance(base, BaseException) and not attr.startswith("_"):
            return getattr(base, attr)
        raise AttributeError(f"'{type(base).__name__}' object has no attribute '{attr}'")

    def _invoke(self, func: object, args: Sequence[object]) -> object:
        if isinstance(func, BuiltinFunction):
            if func.arity is not None and len(args) != func.arity:
                raise TypeError(f"{func.name}() takes {func.arity} argument(s), got {len(args)}")
            return func.impl(self.runtime_ctx, args)
        if isinstance(func, type) and issubclass(func, BaseException):
            return func(*args)
        raise TypeError(f"'{type(func).__name__}' object is not callable")
