"""Record predicates and the filter expression language.

Predicates are built unbound (they only hold field *names*) and compiled
against a :class:`Header` into plain ``record -> bool`` callables. Compiling
resolves every field, so unknown fields and type mismatches surface before
any record is read.

Expression syntax accepted by :func:`parse_predicate`::

	QUAL > 50
	FILTER == PASS && CHROM = chr1
	POS in 1000..3000
	len(REF) == 1 and len(ALT) == 1
	!(INFO/DB) || INFO/AF >= 0.05
	SAMPLE[NA12878]/GT == "0/1"

A bare field (``INFO/DB``) tests that the value is present.
"""
from __future__ import annotations

import operator
import re
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from ..errors import InvalidPredicateError
from ..io.record import Header, Record
from .fields import MISSING, FieldRef, resolve_field

__all__ = [
    "Predicate",
    "Comparison",
    "Range",
    "Exists",
    "AllOf",
    "AnyOf",
    "Not",
    "AlwaysTrue",
    "equals",
    "not_equals",
    "greater_than",
    "less_than",
    "at_least",
    "at_most",
    "range_inclusive",
    "length_equals",
    "exists",
    "all_of",
    "any_of",
    "negate",
    "always_true",
    "parse_predicate",
    "combine_expressions",
]

Test = Callable[[Record], bool]
Literal = Union[str, int, float]

_NUMERIC_OPS = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}
_EQUALITY_OPS = {"==": operator.eq, "!=": operator.ne}


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


class Predicate:
    """Unbound predicate. Combine with ``&``, ``|`` and ``~``."""

    def compile(self, header: Header) -> Test:
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "Predicate":
        return AllOf([self, other])

    def __or__(self, other: "Predicate") -> "Predicate":
        return AnyOf([self, other])

    def __invert__(self) -> "Predicate":
        return Not(self)


class Comparison(Predicate):
    """``field OP value`` with OP in ``== != > < >= <=``."""

    def __init__(self, field: str, op: str, value: Literal):
        if op == "=":
            op = "=="
        if op not in _NUMERIC_OPS and op not in _EQUALITY_OPS:
            raise InvalidPredicateError(f"unsupported operator '{op}'")
        self.field = field
        self.op = op
        self.value = value

    def __repr__(self) -> str:
        return f"{self.field} {self.op} {self.value}"

    def compile(self, header: Header) -> Test:
        ref = resolve_field(self.field, header)
        if self.op in _NUMERIC_OPS:
            return self._compile_numeric(ref, _NUMERIC_OPS[self.op])
        return self._compile_equality(ref, _EQUALITY_OPS[self.op])

    def _compile_numeric(self, ref: FieldRef, cmp: Callable[[Any, Any], bool]) -> Test:
        if not ref.numeric:
            raise InvalidPredicateError(f"numeric comparison '{self.op}' on text field {ref.name}", repr(self))
        threshold = _to_number(self.value)
        if threshold is None:
            raise InvalidPredicateError(f"'{self.op}' needs a numeric value, got {self.value!r}", repr(self))

        def test(rec: Record) -> bool:
            num = _to_number(ref.value(rec))
            return num is not None and cmp(num, threshold)

        return test

    def _compile_equality(self, ref: FieldRef, cmp: Callable[[Any, Any], bool]) -> Test:
        if ref.kind in ("int", "float"):
            target = _to_number(self.value)
            if target is None:
                raise InvalidPredicateError(f"{ref.name} is numeric, cannot compare with {self.value!r}", repr(self))

            def test_num(rec: Record) -> bool:
                val = ref.value(rec)
                return val is not MISSING and cmp(float(val), target)

            return test_num

        target_text = str(self.value)
        target_num = _to_number(self.value) if ref.kind == "dynamic" else None

        def test_text(rec: Record) -> bool:
            val = ref.value(rec)
            if val is MISSING:
                return False
            if val is True:
                val = "1"
            if target_num is not None:
                num = _to_number(val)
                if num is not None:
                    return cmp(num, target_num)
            return cmp(val, target_text)

        return test_text


class Range(Predicate):
    """``low <= field <= high`` on a numeric field."""

    def __init__(self, field: str, low: Literal, high: Literal):
        self.field = field
        self.low = low
        self.high = high

    def __repr__(self) -> str:
        return f"{self.field} in {self.low}..{self.high}"

    def compile(self, header: Header) -> Test:
        ref = resolve_field(self.field, header)
        if not ref.numeric:
            raise InvalidPredicateError(f"range test on text field {ref.name}", repr(self))
        low, high = _to_number(self.low), _to_number(self.high)
        if low is None or high is None:
            raise InvalidPredicateError("range bounds must be numeric", repr(self))
        if low > high:
            raise InvalidPredicateError("range lower bound exceeds upper bound", repr(self))

        def test(rec: Record) -> bool:
            num = _to_number(ref.value(rec))
            return num is not None and low <= num <= high

        return test


class Exists(Predicate):
    """True when the field has a value on the record (INFO flags included)."""

    def __init__(self, field: str):
        self.field = field

    def __repr__(self) -> str:
        return self.field

    def compile(self, header: Header) -> Test:
        ref = resolve_field(self.field, header)
        return lambda rec: ref.value(rec) is not MISSING


class AllOf(Predicate):
    def __init__(self, parts: Iterable[Predicate]):
        self.parts: List[Predicate] = list(parts)

    def __repr__(self) -> str:
        return "(" + " && ".join(map(repr, self.parts)) + ")"

    def compile(self, header: Header) -> Test:
        tests = [p.compile(header) for p in self.parts]
        return lambda rec: all(t(rec) for t in tests)


class AnyOf(Predicate):
    def __init__(self, parts: Iterable[Predicate]):
        self.parts: List[Predicate] = list(parts)

    def __repr__(self) -> str:
        return "(" + " || ".join(map(repr, self.parts)) + ")"

    def compile(self, header: Header) -> Test:
        tests = [p.compile(header) for p in self.parts]
        return lambda rec: any(t(rec) for t in tests)


class Not(Predicate):
    def __init__(self, inner: Predicate):
        self.inner = inner

    def __repr__(self) -> str:
        return f"!{self.inner!r}"

    def compile(self, header: Header) -> Test:
        test = self.inner.compile(header)
        return lambda rec: not test(rec)


class AlwaysTrue(Predicate):
    def __repr__(self) -> str:
        return "true"

    def compile(self, header: Header) -> Test:
        return lambda rec: True


# -- constructors ----------------------------------------------------------

def equals(field: str, value: Literal) -> Predicate:
    return Comparison(field, "==", value)


def not_equals(field: str, value: Literal) -> Predicate:
    return Comparison(field, "!=", value)


def greater_than(field: str, value: Literal) -> Predicate:
    return Comparison(field, ">", value)


def less_than(field: str, value: Literal) -> Predicate:
    return Comparison(field, "<", value)


def at_least(field: str, value: Literal) -> Predicate:
    return Comparison(field, ">=", value)


def at_most(field: str, value: Literal) -> Predicate:
    return Comparison(field, "<=", value)


def range_inclusive(field: str, low: Literal, high: Literal) -> Predicate:
    return Range(field, low, high)


def length_equals(field: str, length: int) -> Predicate:
    """Allele-length check, e.g. ``length_equals('REF', 1)`` for SNVs."""
    return Comparison(f"len({field})", "==", length)


def exists(field: str) -> Predicate:
    return Exists(field)


def all_of(*parts: Predicate) -> Predicate:
    return AllOf(parts)


def any_of(*parts: Predicate) -> Predicate:
    return AnyOf(parts)


def negate(inner: Predicate) -> Predicate:
    return Not(inner)


def always_true() -> Predicate:
    return AlwaysTrue()


# -- expression parser -----------------------------------------------------

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<and>&&)
      | (?P<or>\|\|)
      | (?P<op>==|!=|>=|<=|=|>|<)
      | (?P<not>!)
      | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
      | (?P<word>[^\s()!=<>&|"']+)
    )""",
    re.VERBOSE,
)
_KEYWORDS = {"and": "and", "or": "or", "not": "not", "in": "in"}

Token = Tuple[str, str]


def _tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    while pos < len(text):
        if text[pos:].strip() == "":
            break
        m = _TOKEN_RE.match(text, pos)
        if not m or m.end() == pos:
            raise InvalidPredicateError(f"unexpected character {text[pos:].strip()[0]!r}", text)
        kind = m.lastgroup
        value = m.group(kind)
        if kind == "word" and value.lower() in _KEYWORDS:
            kind = _KEYWORDS[value.lower()]
        elif kind == "string":
            value = re.sub(r"\\(.)", r"\1", value[1:-1])
        tokens.append((kind, value))
        pos = m.end()
    return tokens


class _Parser:
    """Recursive descent: or > and > not > comparison."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def _peek(self) -> Optional[str]:
        return self.tokens[self.pos][0] if self.pos < len(self.tokens) else None

    def _next(self, *expected: str) -> Token:
        if self.pos >= len(self.tokens):
            raise InvalidPredicateError("unexpected end of expression", self.text)
        tok = self.tokens[self.pos]
        if expected and tok[0] not in expected:
            raise InvalidPredicateError(f"unexpected '{tok[1]}'", self.text)
        self.pos += 1
        return tok

    def parse(self) -> Predicate:
        if not self.tokens:
            raise InvalidPredicateError("empty expression", self.text)
        pred = self._or()
        if self.pos != len(self.tokens):
            raise InvalidPredicateError(f"unexpected '{self.tokens[self.pos][1]}'", self.text)
        return pred

    def _or(self) -> Predicate:
        parts = [self._and()]
        while self._peek() == "or":
            self._next()
            parts.append(self._and())
        return parts[0] if len(parts) == 1 else AnyOf(parts)

    def _and(self) -> Predicate:
        parts = [self._unary()]
        while self._peek() == "and":
            self._next()
            parts.append(self._unary())
        return parts[0] if len(parts) == 1 else AllOf(parts)

    def _unary(self) -> Predicate:
        if self._peek() == "not":
            self._next()
            return Not(self._unary())
        if self._peek() == "lparen":
            self._next()
            inner = self._or()
            self._next("rparen")
            return inner
        return self._comparison()

    def _operand(self) -> str:
        _, word = self._next("word")
        if word.lower() == "len" and self._peek() == "lparen":
            self._next()
            _, inner = self._next("word")
            self._next("rparen")
            return f"len({inner})"
        return word

    def _comparison(self) -> Predicate:
        field = self._operand()
        kind = self._peek()
        if kind == "op":
            _, op = self._next()
            _, value = self._next("word", "string")
            return Comparison(field, op, value)
        if kind == "in":
            self._next()
            _, bounds = self._next("word")
            low, sep, high = bounds.partition("..")
            if not sep or not low or not high:
                raise InvalidPredicateError(f"range must look like LOW..HIGH, got {bounds!r}", self.text)
            return Range(field, low, high)
        return Exists(field)


def parse_predicate(text: str) -> Predicate:
    """Parse a filter expression into an unbound :class:`Predicate`."""
    return _Parser(text).parse()


def combine_expressions(expressions: Sequence[str], mode: str = "all") -> Predicate:
    """Parse several expressions and join them with AND (``all``) or OR (``any``).

    No expressions means every record matches.
    """
    if mode not in ("all", "any"):
        raise ValueError(f"mode must be 'all' or 'any', got {mode!r}")
    preds = [parse_predicate(e) for e in expressions]
    if not preds:
        return AlwaysTrue()
    if len(preds) == 1:
        return preds[0]
    return AllOf(preds) if mode == "all" else AnyOf(preds)
