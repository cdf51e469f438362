"""
Evaluate-with-fallback rule behind the `except` expression.

`evaluate(primary, clauses)` calls `primary`; if it raises, the clauses are
scanned in declaration order and the fallback of the first clause whose
failure class matches is evaluated instead. A failure nobody matches is
re-raised as the very same object.

Only failures raised by the primary are examined. Whatever a fallback raises
goes straight to the caller, so a clause can never catch the failure of a
sibling clause's fallback; protecting a fallback takes an explicitly nested
expression.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Tuple, Union

Computation = Callable[[], Any]
ClassSpec = Union[type, Tuple[Any, ...]]


class _AnyFailure:
    """Catch-all failure class; matches every BaseException."""

    def resolve(self) -> ClassSpec:
        return BaseException

    def matches(self, failure: BaseException) -> bool:
        return True

    def __repr__(self) -> str:
        return "ANY_FAILURE"


ANY_FAILURE = _AnyFailure()


def _validate_spec(spec: object) -> ClassSpec:
    if isinstance(spec, tuple):
        for item in spec:
            _validate_spec(item)
        return spec
    if isinstance(spec, type) and issubclass(spec, BaseException):
        return spec
    raise TypeError(
        "catching classes that do not inherit from BaseException is not allowed"
        f" (got {spec!r})"
    )


class FailureClass:
    """
    The set of failures a clause intercepts.

    `spec` is an exception class, a (possibly nested) tuple of them, or a
    zero-argument callable returning one. The callable form is only invoked
    by `resolve()`, i.e. once a failure has actually happened and every
    earlier clause has declined it.
    """

    def __init__(self, spec: object) -> None:
        if spec is None:
            raise TypeError("a failure class is required; use ANY_FAILURE for a catch-all clause")
        self._spec = spec

    @property
    def deferred(self) -> bool:
        return not isinstance(self._spec, (type, tuple)) and callable(self._spec)

    def resolve(self) -> ClassSpec:
        spec = self._spec() if self.deferred else self._spec
        return _validate_spec(spec)

    def matches(self, failure: BaseException) -> bool:
        return isinstance(failure, self.resolve())

    def __repr__(self) -> str:
        return f"FailureClass({self._spec!r})"


def as_failure_class(spec: object) -> FailureClass | _AnyFailure:
    if isinstance(spec, (FailureClass, _AnyFailure)):
        return spec
    return FailureClass(spec)


@dataclass(frozen=True)
class Clause:
    """One `except Class[ as name]: fallback` branch."""

    failure: FailureClass | _AnyFailure
    fallback: Callable[..., Any]
    # Fallback takes the failure object as its single argument.
    binds: bool = False

    def invoke(self, failure: BaseException) -> Any:
        if self.binds:
            return self.fallback(failure)
        return self.fallback()


def as_clause(item: Clause | Tuple[object, Callable[..., Any]]) -> Clause:
    if isinstance(item, Clause):
        return item
    try:
        spec, fallback = item
    except (TypeError, ValueError):
        raise TypeError(f"expected a Clause or a (class, fallback) pair, got {item!r}") from None
    return Clause(failure=as_failure_class(spec), fallback=fallback)


def first_match(clauses: Iterable[Clause], failure: BaseException) -> Clause | None:
    for clause in clauses:
        if clause.failure.matches(failure):
            return clause
    return None


def evaluate(primary: Computation, clauses: Iterable[Clause | Tuple[object, Callable[..., Any]]]) -> Any:
    clause_list = [as_clause(item) for item in clauses]
    try:
        return primary()
    except BaseException as failure:
        clause = first_match(clause_list, failure)
        if clause is None:
            raise
        caught = failure
    # Outside the handler, so a failing fallback keeps its own __context__.
    try:
        return clause.invoke(caught)
    finally:
        del caught


@dataclass(frozen=True)
class FallbackExpression:
    """
    A primary computation plus its ordered clauses.

    Instances are computations themselves, so they nest: a FallbackExpression
    can serve as the primary or as a fallback of another one.
    """

    primary: Computation
    clauses: Tuple[Clause, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "clauses", tuple(as_clause(c) for c in self.clauses))

    def on(self, spec: object, fallback: Callable[..., Any], binds: bool = False) -> "FallbackExpression":
        clause = Clause(failure=as_failure_class(spec), fallback=fallback, binds=binds)
        return FallbackExpression(self.primary, self.clauses + (clause,))

    def on_any(self, fallback: Callable[..., Any], binds: bool = False) -> "FallbackExpression":
        return self.on(ANY_FAILURE, fallback, binds=binds)

    def evaluate(self) -> Any:
        if not self.clauses:
            raise ValueError("fallback expression needs at least one clause")
        return evaluate(self.primary, self.clauses)

    def __call__(self) -> Any:
        return self.evaluate()


__all__ = [
    "ANY_FAILURE",
    "Clause",
    "Computation",
    "FailureClass",
    "FallbackExpression",
    "as_clause",
    "as_failure_class",
    "evaluate",
    "first_match",
]
