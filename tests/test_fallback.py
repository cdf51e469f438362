from __future__ import annotations

import pytest

from catchexpr.fallback import ANY_FAILURE, Clause, FailureClass, FallbackExpression, evaluate


class K1(Exception):
    pass


class K2(Exception):
    pass


def _raise(exc: BaseException):
    raise exc


def _explode():
    raise AssertionError("must not be called")


def test_success_returns_primary_value_and_skips_clauses() -> None:
    resolved = []

    def deferred_class():
        resolved.append(True)
        return KeyError

    clauses = [
        (FailureClass(deferred_class), _explode),
        Clause(failure=ANY_FAILURE, fallback=_explode),
    ]
    assert evaluate(lambda: 42, clauses) == 42
    assert resolved == []


def test_matching_clause_fallback_is_result() -> None:
    result = evaluate(lambda: _raise(K1()), [(K2, lambda: "k2"), (K1, lambda: "k1")])
    assert result == "k1"


def test_unmatched_failure_is_reraised_unchanged() -> None:
    original = K1("boom")
    cause = ValueError("root")
    original.__cause__ = cause
    with pytest.raises(K1) as excinfo:
        evaluate(lambda: _raise(original), [(K2, lambda: "nope")])
    assert excinfo.value is original
    assert excinfo.value.__cause__ is cause


def test_first_matching_clause_wins() -> None:
    calls = []
    result = evaluate(
        lambda: _raise(KeyError("k")),
        [
            (LookupError, lambda: calls.append("lookup") or "first"),
            (KeyError, lambda: calls.append("key") or "second"),
        ],
    )
    assert result == "first"
    assert calls == ["lookup"]


def test_fallback_failure_is_not_rematched() -> None:
    seen = []

    def fallback():
        seen.append("fallback")
        raise K2("from fallback")

    with pytest.raises(K2, match="from fallback"):
        evaluate(lambda: _raise(K1()), [(K1, fallback), (K2, lambda: "swallowed")])
    assert seen == ["fallback"]


def test_outer_construct_catches_inner_fallback_failure() -> None:
    def inner():
        return evaluate(lambda: _raise(K1()), [(K1, lambda: _raise(K2()))])

    assert evaluate(inner, [(K2, lambda: "caught")]) == "caught"


def test_index_out_of_range_falls_back() -> None:
    values = [1, 2]
    assert evaluate(lambda: values[2], [(IndexError, lambda: "No value")]) == "No value"


def test_division_by_zero_propagates_when_unmatched() -> None:
    with pytest.raises(ZeroDivisionError):
        evaluate(lambda: 1 / 0, [(IndexError, lambda: "No value")])


def test_class_tuple_matches_any_member() -> None:
    clauses = [((IndexError, (KeyError, K1)), lambda: "hit")]
    assert evaluate(lambda: _raise(K1()), clauses) == "hit"
    assert evaluate(lambda: {}["x"], clauses) == "hit"


def test_deferred_classes_resolve_in_order_until_match() -> None:
    resolved = []

    def make(cls):
        def resolve():
            resolved.append(cls.__name__)
            return cls

        return resolve

    result = evaluate(
        lambda: _raise(K2()),
        [
            (FailureClass(make(K1)), lambda: "k1"),
            (FailureClass(make(K2)), lambda: "k2"),
            (FailureClass(make(Exception)), lambda: "any"),
        ],
    )
    assert result == "k2"
    assert resolved == ["K1", "K2"]


def test_non_exception_class_raises_type_error_with_context() -> None:
    original = K1()
    with pytest.raises(TypeError, match="BaseException") as excinfo:
        evaluate(lambda: _raise(original), [(int, lambda: 0)])
    assert excinfo.value.__context__ is original


def test_binding_clause_receives_failure() -> None:
    clause = Clause(failure=FailureClass(KeyError), fallback=lambda err: f"missing {err.args[0]}", binds=True)
    assert evaluate(lambda: {}["name"], [clause]) == "missing name"


def test_none_class_is_rejected() -> None:
    with pytest.raises(TypeError, match="ANY_FAILURE"):
        FailureClass(None)


def test_any_failure_matches_base_exceptions() -> None:
    assert evaluate(lambda: _raise(KeyboardInterrupt()), [(ANY_FAILURE, lambda: "stopped")]) == "stopped"


def test_empty_clause_list_propagates() -> None:
    with pytest.raises(K1):
        evaluate(lambda: _raise(K1()), [])


def test_fallback_expression_requires_a_clause() -> None:
    with pytest.raises(ValueError, match="at least one clause"):
        FallbackExpression(lambda: 1).evaluate()


def test_fallback_expression_nests_as_computation() -> None:
    inner = FallbackExpression(lambda: _raise(K1())).on(K1, lambda: _raise(K2()))
    outer = FallbackExpression(inner).on(K2, lambda: "caught")
    assert outer() == "caught"
    assert outer.clauses[0].binds is False


def test_fallback_expression_on_any_binds_failure() -> None:
    expr = FallbackExpression(lambda: 1 / 0).on(KeyError, _explode).on_any(lambda err: type(err).__name__, binds=True)
    assert expr.evaluate() == "ZeroDivisionError"


def test_bad_clause_shape_is_rejected() -> None:
    with pytest.raises(TypeError, match="Clause"):
        evaluate(lambda: 1, [KeyError])


def test_fallback_failure_keeps_its_own_context() -> None:
    root = ValueError("root")
    preset = RuntimeError("pre")
    preset.__context__ = root

    with pytest.raises(RuntimeError) as excinfo:
        evaluate(lambda: 1 / 0, [(ZeroDivisionError, lambda: _raise(preset))])
    assert excinfo.value is preset
    assert excinfo.value.__context__ is root


def test_fresh_fallback_failure_is_not_chained_to_primary() -> None:
    with pytest.raises(K2) as excinfo:
        evaluate(lambda: _raise(K1()), [(K1, lambda: _raise(K2()))])
    assert excinfo.value.__context__ is None
