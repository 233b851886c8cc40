"""Output formatting for record and tuple streams.

Two renderings are supported: native VCF (header lines followed by the
records' original text) and delimiter-separated rows of projected values
with an optional header row. Tab-separated rows are written verbatim (VCF
tokens never contain tabs); any other delimiter goes through ``csv`` so a
value containing it, such as an ``AD`` of ``10,5``, is quoted.
"""

from __future__ import annotations

import csv
from typing import Iterable, List, Mapping, Optional, Sequence, TextIO

from ..errors import UnknownFieldError
from .record import Header, Record

__all__ = ["format_row", "write_delimited", "write_vcf", "relabel_columns"]


def _cells(values: Sequence[object]) -> List[str]:
	return ["." if v is None else str(v) for v in values]


def format_row(values: Sequence[object], delimiter: str = "\t") -> str:
	"""Join values with ``delimiter``; ``None`` renders as ``.``."""
	return delimiter.join(_cells(values))


def write_delimited(
	rows: Iterable[Sequence[object]],
	out: TextIO,
	delimiter: str = "\t",
	columns: Optional[Sequence[str]] = None,
) -> int:
	"""Write ``rows`` as delimited text and return the number of data rows.

	When ``columns`` is given the header row is written first, exactly
	once, even if ``rows`` turns out to be empty.
	"""
	if delimiter == "\t":
		def write(values: Sequence[object]) -> None:
			out.write(format_row(values, delimiter) + "\n")
	else:
		writer = csv.writer(out, delimiter=delimiter, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)

		def write(values: Sequence[object]) -> None:
			writer.writerow(_cells(values))

	if columns is not None:
		write(columns)
	n = 0
	for row in rows:
		write(row)
		n += 1
	return n


def write_vcf(header: Header, records: Iterable[Record], out: TextIO) -> int:
	"""Write header lines and records in native VCF form."""
	for line in header.to_lines():
		out.write(line + "\n")
	n = 0
	for rec in records:
		out.write(rec.to_line() + "\n")
		n += 1
	return n


def relabel_columns(columns: Sequence[str], mapping: Mapping[str, str]) -> List[str]:
	"""Return ``columns`` with labels renamed according to ``mapping``.

	Every key of ``mapping`` must name one of ``columns``.
	"""
	unknown = [k for k in mapping if k not in columns]
	if unknown:
		raise UnknownFieldError(unknown[0], "relabel target is not an output column (" + ", ".join(columns) + ")")
	return [mapping.get(c, c) for c in columns]
