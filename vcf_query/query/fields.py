"""Field references used by predicates, projections and grouping keys.

A field name is resolved once against the :class:`Header`, so unknown
names fail before any record is read. Supported names:

	CHROM POS ID REF ALT QUAL FILTER INFO FORMAT   core columns (any case,
	                                               long aliases accepted)
	INFO/<KEY>                                     one INFO entry
	SAMPLE[<index|name>]                           raw sample column
	SAMPLE[<index|name>]/<KEY>                     one FORMAT value of a sample
	len(<field>)                                   length of a text value

Every reference exposes ``value(rec)`` (typed, or ``MISSING``; never
raises) for predicates and ``text(rec)`` (raw text) for projections.
"""
from __future__ import annotations

import re
from typing import Any, List, Optional

from ..errors import InvalidPredicateError, UnknownFieldError
from ..io.record import CORE_COLUMNS, FORMAT_COLUMN, Header, Record

__all__ = [
    "MISSING",
    "FieldRef",
    "CoreField",
    "InfoField",
    "SampleField",
    "LengthOf",
    "resolve_field",
    "default_fields",
    "FIELD_HELP",
]


class _Missing:
    """Sentinel for absent values. Every comparison against it is false."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

_ALIASES = {
    "CHROM": "CHROM",
    "CHROMOSOME": "CHROM",
    "POS": "POS",
    "POSITION": "POS",
    "ID": "ID",
    "IDENTIFIER": "ID",
    "REF": "REF",
    "REFERENCE": "REF",
    "ALT": "ALT",
    "ALTERNATIVE": "ALT",
    "QUAL": "QUAL",
    "QUALITY": "QUAL",
    "FILTER": "FILTER",
    "FILTERSTATUS": "FILTER",
    "FILTER_STATUS": "FILTER",
    "INFO": "INFO",
    "FORMAT": "FORMAT",
    "FORMATSPEC": "FORMAT",
    "FORMAT_SPEC": "FORMAT",
}

_KINDS = {"POS": "int", "QUAL": "float"}

_LEN_RE = re.compile(r"len\((.+)\)\Z", re.IGNORECASE)
_INFO_RE = re.compile(r"INFO/(.+)\Z", re.IGNORECASE)
_SAMPLE_RE = re.compile(r"SAMPLE\[([^\]]+)\](?:/(.+))?\Z", re.IGNORECASE)

FIELD_HELP = "CHROM, POS, ID, REF, ALT, QUAL, FILTER, INFO, FORMAT, INFO/<key>, SAMPLE[<i|name>][/<key>], len(<field>)"


class FieldRef:
    """Base class for resolved field references.

    ``kind`` is ``int``, ``float``, ``str`` or ``dynamic`` (INFO and sample
    values, coerced to numbers only when compared numerically).
    """

    kind = "str"

    def __init__(self, name: str):
        self.name = name

    @property
    def numeric(self) -> bool:
        return self.kind in ("int", "float", "dynamic")

    def value(self, rec: Record) -> Any:
        raise NotImplementedError

    def text(self, rec: Record) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class CoreField(FieldRef):
    """One of the fixed columns, read from the record's raw tokens."""

    def __init__(self, name: str, column: str):
        super().__init__(name)
        self.column = column
        self.index = (CORE_COLUMNS + (FORMAT_COLUMN,)).index(column)
        self.kind = _KINDS.get(column, "str")

    def value(self, rec: Record) -> Any:
        if self.column == "POS":
            return rec.position
        if self.column == "QUAL":
            return MISSING if rec.quality is None else rec.quality
        return rec.fields[self.index]

    def text(self, rec: Record) -> str:
        return rec.fields[self.index]


class InfoField(FieldRef):
    """An INFO entry. Flags evaluate to ``True``; absent keys are missing.

    Projected text is the value, ``1`` for a present flag and ``.`` when
    the key is absent on the record.
    """

    kind = "dynamic"

    def __init__(self, name: str, key: str):
        super().__init__(name)
        self.key = key

    def value(self, rec: Record) -> Any:
        if self.key not in rec.info:
            return MISSING
        val = rec.info[self.key]
        if val is None:
            return True
        return MISSING if val == "." else val

    def text(self, rec: Record) -> str:
        if self.key not in rec.info:
            return "."
        val = rec.info[self.key]
        return "1" if val is None else val


class SampleField(FieldRef):
    """A whole sample column, or one FORMAT value of it."""

    kind = "dynamic"

    def __init__(self, name: str, index: int, key: Optional[str] = None):
        super().__init__(name)
        self.index = index
        self.key = key

    def value(self, rec: Record) -> Any:
        if self.key is None:
            return rec.fields[len(CORE_COLUMNS) + 1 + self.index]
        val = rec.samples[self.index].get(self.key)
        # ".", "./." and ".|." are all missing calls
        if val is None or not val.strip("./|"):
            return MISSING
        return val

    def text(self, rec: Record) -> str:
        if self.key is None:
            return rec.fields[len(CORE_COLUMNS) + 1 + self.index]
        sample = rec.samples[self.index]
        if self.key not in sample:
            where = f"line {rec.line_number}" if rec.line_number is not None else f"{rec.chromosome}:{rec.position}"
            raise UnknownFieldError(self.name, f"FORMAT on {where} has no '{self.key}' key")
        return sample[self.key]


class LengthOf(FieldRef):
    """Character length of a text field, e.g. ``len(REF)``."""

    kind = "int"

    def __init__(self, name: str, inner: FieldRef):
        super().__init__(name)
        self.inner = inner

    def value(self, rec: Record) -> Any:
        val = self.inner.value(rec)
        if val is MISSING or not isinstance(val, str):
            return MISSING
        return len(val)

    def text(self, rec: Record) -> str:
        return str(len(self.inner.text(rec)))


def resolve_field(name: str, header: Header) -> FieldRef:
    """Resolve ``name`` against ``header``.

    Raises
    ------
    UnknownFieldError
        The name is not recognised, refers to a sample that is not
        declared, or to an INFO/FORMAT key the header does not declare
        (checked only when the header declares any).
    InvalidPredicateError
        ``len()`` applied to a numeric column.
    """
    raw = name.strip()
    m = _LEN_RE.match(raw)
    if m:
        inner = resolve_field(m.group(1), header)
        if inner.kind in ("int", "float"):
            raise InvalidPredicateError(f"len() applies to text fields, not {inner.name}")
        return LengthOf(raw, inner)

    column = _ALIASES.get(raw.upper())
    if column is not None:
        if column == FORMAT_COLUMN and not header.has_format:
            raise UnknownFieldError(raw, "file has no FORMAT column")
        return CoreField(raw, column)

    m = _INFO_RE.match(raw)
    if m:
        key = m.group(1)
        declared = header.info_ids
        if declared and key not in declared:
            raise UnknownFieldError(raw, "INFO key not declared in header")
        return InfoField(raw, key)

    m = _SAMPLE_RE.match(raw)
    if m:
        index = header.sample_index(m.group(1).strip())
        key = m.group(2)
        if key is not None:
            declared = header.format_ids
            if declared and key not in declared:
                raise UnknownFieldError(raw, "FORMAT key not declared in header")
        return SampleField(raw, index, key)

    raise UnknownFieldError(raw, f"expected one of {FIELD_HELP}")


def default_fields(header: Header) -> List[str]:
    """Field names covering every column of ``header``, in file order."""
    names = list(header.columns[: len(CORE_COLUMNS)])
    if header.has_format:
        names.append(FORMAT_COLUMN)
    names.extend(f"SAMPLE[{i}]" for i in range(len(header.sample_names)))
    return names
