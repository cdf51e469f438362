"""
Diagnostic records shared by the parser, checker and driver.

A Diagnostic is a message plus an optional code and source span. Passes append
them to a list; the driver decides whether errors stop the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass(frozen=True)
class Span:
    """Best-effort file/line/column of a diagnostic."""

    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    @classmethod
    def from_loc(cls, loc: Any, file: Optional[str] = None) -> "Span":
        if loc is None:
            return cls(file=file)
        if isinstance(loc, cls):
            return loc
        return cls(
            file=file or getattr(loc, "file", None),
            line=getattr(loc, "line", None),
            column=getattr(loc, "column", None),
        )

    def __str__(self) -> str:
        parts = []
        if self.file:
            parts.append(self.file)
        if self.line is not None:
            parts.append(f"{self.line}:{self.column if self.column is not None else 0}")
        return ":".join(parts) if parts else "<unknown location>"


@dataclass
class Diagnostic:
    message: str
    code: Optional[str] = None
    severity: str = "error"
    span: Span = field(default_factory=Span)
    notes: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.span is None:
            self.span = Span()

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def format(self) -> str:
        label = f"{self.severity}[{self.code}]" if self.code else self.severity
        text = f"{self.span}: {label}: {self.message}"
        for note in self.notes:
            text += f"\n  note: {note}"
        return text


__all__ = ["Diagnostic", "Span"]
