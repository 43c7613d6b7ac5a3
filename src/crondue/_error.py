from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class Span:
    start: int
    end: int


CronErrorKind = Literal["syntax", "unsatisfiable", "argument"]


class CronError(Exception):
    kind: CronErrorKind
    field: int | None
    value: str | None
    span: Span | None
    input_text: str | None

    def __init__(
        self,
        kind: CronErrorKind,
        message: str,
        field: int | None = None,
        value: str | None = None,
        span: Span | None = None,
        input_text: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.value = value
        self.span = span
        self.input_text = input_text

    @classmethod
    def syntax(
        cls,
        message: str,
        field: int | None = None,
        value: str | None = None,
        span: Span | None = None,
        input_text: str | None = None,
    ) -> CronError:
        return cls("syntax", message, field, value, span, input_text)

    @classmethod
    def unsatisfiable(cls, message: str) -> CronError:
        return cls("unsatisfiable", message)

    @classmethod
    def argument(cls, message: str) -> CronError:
        return cls("argument", message)

    def display_rich(self) -> str:
        if self.kind == "syntax" and self.span and self.input_text:
            out = f"error: {self}\n"
            out += f"  {self.input_text}\n"
            padding = " " * (self.span.start + 2)
            underline = "^" * max(self.span.end - self.span.start, 1)
            out += padding + underline
            return out
        return f"error: {self}"
