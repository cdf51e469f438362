from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Located:
    line: int
    column: int


class Stmt:
    loc: Located


class Expr:
    loc: Located


@dataclass
class AssignStmt(Stmt):
    loc: Located
    name: str
    value: Expr


@dataclass
class RaiseStmt(Stmt):
    loc: Located
    value: Expr


@dataclass
class ExprStmt(Stmt):
    loc: Located
    value: Expr


@dataclass
class ExceptionDef(Stmt):
    loc: Located
    name: str
    base: Optional[str] = None


@dataclass
class Literal(Expr):
    loc: Located
    value: object


@dataclass
class Name(Expr):
    loc: Located
    ident: str


@dataclass
class Attr(Expr):
    loc: Located
    value: Expr
    attr: str


@dataclass
class Call(Expr):
    loc: Located
    func: Expr
    args: List[Expr]


@dataclass
class Index(Expr):
    loc: Located
    value: Expr
    index: Expr


@dataclass
class Binary(Expr):
    loc: Located
    op: str
    left: Expr
    right: Expr


@dataclass
class BoolOp(Expr):
    loc: Located
    op: str
    left: Expr
    right: Expr


@dataclass
class Unary(Expr):
    loc: Located
    op: str
    operand: Expr


@dataclass
class Ternary(Expr):
    loc: Located
    condition: Expr
    then_value: Expr
    else_value: Expr


@dataclass
class ListLiteral(Expr):
    loc: Located
    elements: List[Expr]


@dataclass
class TupleLiteral(Expr):
    loc: Located
    elements: List[Expr]


@dataclass
class DictItem:
    key: Expr
    value: Expr


@dataclass
class DictLiteral(Expr):
    loc: Located
    items: List[DictItem]


@dataclass
class ExceptClause:
    loc: Located
    # None = bare `except:` (catch-all)
    failure: Optional[Expr]
    binder: Optional[str]
    fallback: Expr


@dataclass
class ExceptExpr(Expr):
    loc: Located
    primary: Expr
    clauses: List[ExceptClause] = field(default_factory=list)


@dataclass
class Program:
    statements: List[Stmt]
    exceptions: List[ExceptionDef] = field(default_factory=list)
    filename: Optional[str] = None


def iter_child_exprs(expr: Expr) -> List[Expr]:
    """Direct sub-expressions of `expr`, in evaluation order."""
    if isinstance(expr, (Literal, Name)):
        return []
    if isinstance(expr, Attr):
        return [expr.value]
    if isinstance(expr, Call):
        return [expr.func, *expr.args]
    if isinstance(expr, Index):
        return [expr.value, expr.index]
    if isinstance(expr, (Binary, BoolOp)):
        return [expr.left, expr.right]
    if isinstance(expr, Unary):
        return [expr.operand]
    if isinstance(expr, Ternary):
        return [expr.condition, expr.then_value, expr.else_value]
    if isinstance(expr, (ListLiteral, TupleLiteral)):
        return list(expr.elements)
    if isinstance(expr, DictLiteral):
        children: List[Expr] = []
        for item in expr.items:
            children.extend((item.key, item.value))
        return children
    if isinstance(expr, ExceptExpr):
        children = [expr.primary]
        for clause in expr.clauses:
            if clause.failure is not None:
                children.append(clause.failure)
            children.append(clause.fallback)
        return children
    raise TypeError(f"Unsupported expression {expr!r}")
