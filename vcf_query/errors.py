"""Exception hierarchy for vcf_query.

Schema and predicate problems (``UnknownFieldError``,
``InvalidPredicateError``) are raised before any record is read.
``MalformedRecordError`` is raised per data line and carries the offending
line so callers can report it.
"""
from typing import Optional

__all__ = [
    "VCFQueryError",
    "MalformedRecordError",
    "UnknownFieldError",
    "InvalidPredicateError",
]


class VCFQueryError(Exception):
    """Base class for every error raised by this package."""


class MalformedRecordError(VCFQueryError):
    """A data (or header) line does not follow the expected layout."""

    def __init__(self, reason: str, line: Optional[str] = None, line_number: Optional[int] = None):
        self.reason = reason
        self.line = line
        self.line_number = line_number
        super().__init__(self._render())

    def _render(self) -> str:
        where = f"line {self.line_number}: " if self.line_number is not None else ""
        msg = f"{where}{self.reason}"
        if self.line is not None:
            shown = self.line if len(self.line) <= 200 else self.line[:200] + "..."
            msg += f" [{shown}]"
        return msg


class UnknownFieldError(VCFQueryError):
    """A predicate, projection or label mapping names a field that does not exist."""

    def __init__(self, field: str, detail: str = ""):
        self.field = field
        self.detail = detail
        msg = f"unknown field '{field}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class InvalidPredicateError(VCFQueryError):
    """A predicate expression is syntactically or type-wise invalid."""

    def __init__(self, message: str, expression: Optional[str] = None):
        self.expression = expression
        if expression is not None:
            message = f"{message} (in '{expression}')"
        super().__init__(message)
