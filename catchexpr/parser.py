from __future__ import annotations

import ast as pyast
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree, UnexpectedInput

from .ast import (
    AssignStmt,
    Attr,
    Binary,
    BoolOp,
    Call,
    DictItem,
    DictLiteral,
    ExceptClause,
    ExceptExpr,
    ExceptionDef,
    Expr,
    ExprStmt,
    Index,
    ListLiteral,
    Literal,
    Located,
    Name,
    Program,
    RaiseStmt,
    Stmt,
    Ternary,
    TupleLiteral,
    Unary,
)
from .errors import ParseError

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()


class TerminatorInserter:
    always_accept = ("NEWLINE", "SEMI")

    TERMINABLE = {
        "NAME",
        "INT",
        "FLOAT",
        "STRING",
        "TRUE",
        "FALSE",
        "NONE",
        "RPAR",
        "RSQB",
        "RBRACE",
    }

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.depth = 0
        self.can_terminate = False

    def process(self, stream):
        self._reset()
        last: Optional[Token] = None
        for token in stream:
            ttype = token.type
            if ttype == "NEWLINE":
                if self.depth == 0 and self.can_terminate:
                    yield Token.new_borrow_pos("TERMINATOR", token.value, token)
                    self.can_terminate = False
                continue
            if ttype == "SEMI":
                yield Token.new_borrow_pos("TERMINATOR", token.value, token)
                self.can_terminate = False
                continue
            yield token
            last = token
            self._update_depth(ttype)
            self.can_terminate = ttype in self.TERMINABLE
        # Last statement of the source needs no trailing newline.
        if last is not None and self.can_terminate:
            yield Token.new_borrow_pos("TERMINATOR", "", last)

    def _update_depth(self, ttype: str) -> None:
        if ttype in ("LPAR", "LSQB", "LBRACE"):
            self.depth += 1
        elif ttype in ("RPAR", "RSQB", "RBRACE") and self.depth:
            self.depth -= 1


_PARSER = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    start="program",
    propagate_positions=True,
    maybe_placeholders=False,
    postlex=TerminatorInserter(),
)


def parse_program(source: str, filename: str | None = None) -> Program:
    try:
        tree = _PARSER.parse(source)
    except UnexpectedInput as exc:
        line = exc.line if exc.line and exc.line > 0 else None
        column = exc.column if exc.column and exc.column > 0 else None
        raise ParseError(_describe(exc), line=line, column=column, file=filename) from exc
    program = _build_program(tree)
    program.filename = filename
    return program


def parse_expression(source: str) -> Expr:
    """Parse a single expression (the source must hold exactly one expression statement)."""
    program = parse_program(source)
    if len(program.statements) != 1 or not isinstance(program.statements[0], ExprStmt):
        raise ParseError("expected a single expression")
    return program.statements[0].value


def _describe(exc: UnexpectedInput) -> str:
    token = getattr(exc, "token", None)
    if token is not None:
        if token.type == "$END":
            return "unexpected end of input"
        if token.type == "TERMINATOR":
            return "unexpected end of statement"
        return f"unexpected token {token.value!r}"
    char = getattr(exc, "char", None)
    if char is not None:
        return f"unexpected character {char!r}"
    return "invalid syntax"


def _build_program(tree: Tree) -> Program:
    statements: List[Stmt] = []
    exceptions: List[ExceptionDef] = []
    for child in tree.children:
        if not isinstance(child, Tree):
            continue
        stmt = _build_stmt(child)
        if isinstance(stmt, ExceptionDef):
            exceptions.append(stmt)
        statements.append(stmt)
    return Program(statements=statements, exceptions=exceptions)


def _build_stmt(tree: Tree) -> Stmt:
    kind = _name(tree)
    if kind == "exception_def":
        return _build_exception_def(tree)
    if kind == "assign_stmt":
        name_token = _tokens(tree, "NAME")[0]
        return AssignStmt(loc=_loc(tree), name=name_token.value, value=_build_expr(_trees(tree)[0]))
    if kind == "raise_stmt":
        return RaiseStmt(loc=_loc(tree), value=_build_expr(_trees(tree)[0]))
    if kind == "expr_stmt":
        return ExprStmt(loc=_loc(tree), value=_build_expr(_trees(tree)[0]))
    raise ParseError(f"unsupported statement node {kind}", *_line_col(tree))


def _build_exception_def(tree: Tree) -> ExceptionDef:
    names = _tokens(tree, "NAME")
    base = names[1].value if len(names) > 1 else None
    return ExceptionDef(loc=_loc(tree), name=names[0].value, base=base)


def _build_expr(node) -> Expr:
    if not isinstance(node, Tree):
        raise TypeError(f"Unexpected node type: {type(node)}")
    name = _name(node)

    if name == "except_expr":
        return _build_except_expr(node)
    if name == "cond_expr":
        # `value if condition else other`
        then_node, cond_node, else_node = _trees(node)
        return Ternary(
            loc=_loc(node),
            condition=_build_expr(cond_node),
            then_value=_build_expr(then_node),
            else_value=_build_expr(else_node),
        )
    if name == "bool_op":
        return _build_operator(node, BoolOp)
    if name == "binary":
        return _build_operator(node, Binary)
    if name == "unary":
        op_token = node.children[0]
        return Unary(loc=_loc(node), op=op_token.value, operand=_build_expr(_trees(node)[0]))
    if name == "call":
        func_node, *rest = _trees(node)
        args: List[Expr] = []
        if rest:
            args = [_build_expr(arg) for arg in _trees(rest[0])]
        return Call(loc=_loc(node), func=_build_expr(func_node), args=args)
    if name == "index":
        base, index = _trees(node)
        return Index(loc=_loc(node), value=_build_expr(base), index=_build_expr(index))
    if name == "attr":
        base = _trees(node)[0]
        attr_token = _tokens(node, "NAME")[0]
        return Attr(loc=_loc(node), value=_build_expr(base), attr=attr_token.value)
    if name == "group":
        return _build_expr(_trees(node)[0])
    if name == "var":
        return Name(loc=_loc(node), ident=node.children[0].value)
    if name == "int_lit":
        return Literal(loc=_loc(node), value=int(node.children[0].value))
    if name == "float_lit":
        return Literal(loc=_loc(node), value=float(node.children[0].value))
    if name == "str_lit":
        return Literal(loc=_loc(node), value=pyast.literal_eval(node.children[0].value))
    if name == "true_lit":
        return Literal(loc=_loc(node), value=True)
    if name == "false_lit":
        return Literal(loc=_loc(node), value=False)
    if name == "none_lit":
        return Literal(loc=_loc(node), value=None)
    if name == "tuple_lit":
        return TupleLiteral(loc=_loc(node), elements=[_build_expr(child) for child in _trees(node)])
    if name == "list_lit":
        return ListLiteral(loc=_loc(node), elements=[_build_expr(child) for child in _trees(node)])
    if name == "dict_lit":
        items = []
        for item in _trees(node):
            key, value = _trees(item)
            items.append(DictItem(key=_build_expr(key), value=_build_expr(value)))
        return DictLiteral(loc=_loc(node), items=items)
    raise ParseError(f"unsupported expression node {name}", *_line_col(node))


def _build_operator(node: Tree, cls):
    left, op_token, right = node.children
    return cls(
        loc=_loc_from_token(op_token),
        op=op_token.value,
        left=_build_expr(left),
        right=_build_expr(right),
    )


def _build_except_expr(tree: Tree) -> ExceptExpr:
    primary_node, *clause_nodes = _trees(tree)
    clauses = [_build_except_clause(node) for node in clause_nodes]
    if not clauses:
        raise ParseError("except expression requires at least one clause", *_line_col(tree))
    return ExceptExpr(loc=_loc(tree), primary=_build_expr(primary_node), clauses=clauses)


def _build_except_clause(tree: Tree) -> ExceptClause:
    failure: Expr | None = None
    binder: str | None = None
    subtrees = _trees(tree)
    fallback_node = subtrees[-1]
    if _name(subtrees[0]) == "failure_spec":
        spec = subtrees[0]
        failure = _build_expr(_trees(spec)[0])
        binder_tokens = _tokens(spec, "NAME")
        if binder_tokens:
            binder = binder_tokens[0].value
    return ExceptClause(
        loc=_loc(tree),
        failure=failure,
        binder=binder,
        fallback=_build_expr(fallback_node),
    )


def _trees(tree: Tree) -> List[Tree]:
    return [child for child in tree.children if isinstance(child, Tree)]


def _tokens(tree: Tree, ttype: str) -> List[Token]:
    return [child for child in tree.children if isinstance(child, Token) and child.type == ttype]


def _loc(tree: Tree) -> Located:
    meta = tree.meta
    return Located(line=getattr(meta, "line", 0), column=getattr(meta, "column", 0))


def _line_col(tree: Tree) -> tuple[int | None, int | None]:
    loc = _loc(tree)
    return loc.line or None, loc.column or None


def _loc_from_token(token: Token) -> Located:
    return Located(line=token.line, column=token.column)


def _name(node: Tree | Token) -> str:
    if isinstance(node, Tree):
        data = node.data
        if isinstance(data, Token):
            return data.value
        return data
    if isinstance(node, Token):
        return node.type
    return str(node)
