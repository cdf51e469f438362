from __future__ import annotations

import builtins
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Sequence

BuiltinImpl = Callable[["RuntimeContext", Sequence[object]], object]


@dataclass
class BuiltinFunction:
    name: str
    impl: BuiltinImpl
    arity: int | None = None

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


class RuntimeContext:
    def __init__(self, stdout) -> None:
        self.stdout = stdout


def _builtin_print(ctx: RuntimeContext, args: Sequence[object]) -> object:
    ctx.stdout.write(" ".join(str(arg) for arg in args) + "\n")
    ctx.stdout.flush()
    return None


def _builtin_throw(ctx: RuntimeContext, args: Sequence[object]) -> object:
    failure = args[0]
    if isinstance(failure, type) and issubclass(failure, BaseException):
        raise failure()
    if isinstance(failure, BaseException):
        raise failure
    raise TypeError("throw() expects a failure class or instance")


def _wrap(name: str, func: Callable[..., object], arity: int | None = None) -> BuiltinFunction:
    return BuiltinFunction(name=name, impl=lambda ctx, args: func(*args), arity=arity)


BUILTINS: Mapping[str, BuiltinFunction] = {
    "print": BuiltinFunction(name="print", impl=_builtin_print),
    "throw": BuiltinFunction(name="throw", impl=_builtin_throw, arity=1),
    "len": _wrap("len", len, 1),
    "str": _wrap("str", str),
    "repr": _wrap("repr", repr, 1),
    "int": _wrap("int", int),
    "float": _wrap("float", float),
    "isinstance": _wrap("isinstance", isinstance, 2),
}

FAILURE_CLASS_NAMES = (
    "BaseException",
    "Exception",
    "ArithmeticError",
    "ZeroDivisionError",
    "OverflowError",
    "LookupError",
    "IndexError",
    "KeyError",
    "ValueError",
    "TypeError",
    "NameError",
    "AttributeError",
    "RuntimeError",
    "NotImplementedError",
    "AssertionError",
    "KeyboardInterrupt",
)

FAILURE_CLASSES: Mapping[str, type] = {name: getattr(builtins, name) for name in FAILURE_CLASS_NAMES}


def builtin_names() -> Dict[str, object]:
    names: Dict[str, object] = dict(BUILTINS)
    names.update(FAILURE_CLASSES)
    return names
