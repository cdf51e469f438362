from __future__ import annotations

from typing import List

from .diagnostics import Diagnostic


class CatchExprError(Exception):
    """Base class for failures of the toolchain itself (not of user programs)."""


class ParseError(CatchExprError):
    def __init__(self, message: str, line: int | None = None, column: int | None = None, file: str | None = None) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.file = file
        super().__init__(self.format())

    def format(self) -> str:
        where = self.file or "<source>"
        if self.line is not None:
            where += f":{self.line}:{self.column or 0}"
        return f"{where}: parse error: {self.message}"


class CheckError(CatchExprError):
    def __init__(self, diagnostics: List[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        errors = [d for d in diagnostics if d.is_error]
        first = errors[0].format() if errors else "check failed"
        extra = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
        super().__init__(first + extra)


class ConfigError(CatchExprError):
    pass
