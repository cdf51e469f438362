"""
Static validation of a parsed program.

The checker is structural: it never resolves failure classes (they are
evaluated lazily at run time) and never rejects a name it cannot see. It
enforces the clause-shape rules of except-expressions:

- at least one clause
- at most one catch-all clause, and it must come last
- bare `except:` handled per the configured policy (allow / warn / error)
- a clause naming the same class as an earlier clause is unreachable (warning)

plus duplicate `exception` declarations and declarations that shadow a
builtin failure class or a name assigned earlier in the program.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from . import ast
from .config import EvalConfig
from .diagnostics import Diagnostic, Span
from .runtime import FAILURE_CLASSES


@dataclass
class CheckedProgram:
    program: ast.Program
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]


class Checker:
    def __init__(self, config: Optional[EvalConfig] = None) -> None:
        self.config = config or EvalConfig()
        self.diagnostics: List[Diagnostic] = []
        self._filename: Optional[str] = None
        self._declared: Dict[str, ast.ExceptionDef] = {}
        self._assigned: Dict[str, ast.AssignStmt] = {}

    def check(self, program: ast.Program) -> CheckedProgram:
        self.diagnostics = []
        self._filename = program.filename
        self._declared = {}
        self._assigned = {}
        for stmt in program.statements:
            self._check_stmt(stmt)
        return CheckedProgram(program=program, diagnostics=list(self.diagnostics))

    def _report(
        self,
        message: str,
        code: str,
        loc: ast.Located | None,
        severity: str = "error",
        notes: Optional[List[str]] = None,
    ) -> None:
        self.diagnostics.append(
            Diagnostic(
                message=message,
                code=code,
                severity=severity,
                span=Span.from_loc(loc, file=self._filename),
                notes=notes or [],
            )
        )

    def _check_exception_def(self, decl: ast.ExceptionDef) -> None:
        if decl.name in FAILURE_CLASSES:
            self._report(f"exception '{decl.name}' shadows a builtin failure class", "E106", decl.loc)
        elif decl.name in self._assigned:
            assign = self._assigned[decl.name]
            self._report(
                f"exception '{decl.name}' redeclares a name already assigned",
                "E106",
                decl.loc,
                notes=[f"assigned here: {Span.from_loc(assign.loc, file=self._filename)}"],
            )
        prev = self._declared.get(decl.name)
        if prev is not None:
            self._report(
                f"duplicate exception '{decl.name}'",
                "E105",
                decl.loc,
                notes=[f"first declared here: {Span.from_loc(prev.loc, file=self._filename)}"],
            )
            return
        self._declared[decl.name] = decl

    def _check_stmt(self, stmt: ast.Stmt) -> None:
        if isinstance(stmt, ast.AssignStmt):
            self._check_expr(stmt.value)
            self._assigned.setdefault(stmt.name, stmt)
            return
        if isinstance(stmt, (ast.RaiseStmt, ast.ExprStmt)):
            self._check_expr(stmt.value)
            return
        if isinstance(stmt, ast.ExceptionDef):
            self._check_exception_def(stmt)
            return
        raise TypeError(f"Unsupported statement {stmt!r}")

    def _check_expr(self, expr: ast.Expr) -> None:
        if isinstance(expr, ast.ExceptExpr):
            self._check_except_expr(expr)
        for child in ast.iter_child_exprs(expr):
            self._check_expr(child)

    def _check_except_expr(self, expr: ast.ExceptExpr) -> None:
        if not expr.clauses:
            self._report("except expression needs at least one clause", "E100", expr.loc)
            return
        catch_all: Optional[ast.ExceptClause] = None
        seen_names: Dict[str, ast.ExceptClause] = {}
        for idx, clause in enumerate(expr.clauses):
            if clause.failure is None:
                if catch_all is not None:
                    self._report(
                        "multiple catch-all clauses are not allowed",
                        "E101",
                        clause.loc,
                        notes=[f"first catch-all is here: {Span.from_loc(catch_all.loc, file=self._filename)}"],
                    )
                else:
                    catch_all = clause
                    self._check_bare_clause(clause)
                if idx != len(expr.clauses) - 1:
                    self._report("catch-all must be the last clause", "E102", clause.loc)
                continue
            if isinstance(clause.failure, ast.Name):
                name = clause.failure.ident
                prev = seen_names.get(name)
                if prev is not None:
                    self._report(
                        f"clause for '{name}' is unreachable; an earlier clause already catches it",
                        "W104",
                        clause.loc,
                        severity="warning",
                        notes=[f"earlier clause is here: {Span.from_loc(prev.loc, file=self._filename)}"],
                    )
                else:
                    seen_names[name] = clause

    def _check_bare_clause(self, clause: ast.ExceptClause) -> None:
        policy = self.config.bare_except
        if policy == "allow":
            return
        message = "bare 'except:' catches every failure; name the failure class instead"
        if policy == "error":
            self._report(message, "E103", clause.loc)
        else:
            self._report(message, "W103", clause.loc, severity="warning")


def check_program(program: ast.Program, config: Optional[EvalConfig] = None) -> CheckedProgram:
    return Checker(config).check(program)
