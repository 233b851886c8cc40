"""Streaming query operations over parsed records.

``filter_records``, ``project`` and ``select_columns`` are lazy: they
validate their arguments immediately and return an iterator that pulls
records on demand. ``count_by`` and ``count_where`` are terminal
aggregations; their state lives only for the duration of the call and is
proportional to the number of distinct keys / labels.
"""

from __future__ import annotations

from typing import Callable, Dict, Hashable, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import UnknownFieldError
from ..io.record import Header, Record
from .fields import resolve_field
from .predicates import Predicate

__all__ = ["filter_records", "project", "select_columns", "count_by", "count_where"]

KeyFn = Callable[[Record], Hashable]


def filter_records(records: Iterable[Record], predicate: Predicate, header: Header) -> Iterator[Record]:
	"""Yield the records matching ``predicate``, in input order."""
	test = predicate.compile(header)
	return (rec for rec in records if test(rec))


def project(records: Iterable[Record], field_names: Sequence[str], header: Header) -> Iterator[Tuple[str, ...]]:
	"""Yield one tuple of raw field text per record, ordered as ``field_names``.

	Raises ``UnknownFieldError`` up front for names the header cannot
	resolve, and while iterating when a record lacks a requested FORMAT key.
	"""
	if not field_names:
		raise UnknownFieldError("", "at least one field is required")
	refs = [resolve_field(name, header) for name in field_names]

	def _rows() -> Iterator[Tuple[str, ...]]:
		for rec in records:
			yield tuple(ref.text(rec) for ref in refs)

	return _rows()


def select_columns(
	rows: Iterable[Sequence[str]],
	columns: Sequence[str],
	field_names: Sequence[str],
) -> Iterator[Tuple[str, ...]]:
	"""Re-project an already projected tuple stream by column name."""
	columns = list(columns)
	indexes: List[int] = []
	for name in field_names:
		if name not in columns:
			raise UnknownFieldError(name, "not one of the projected columns (" + ", ".join(columns) + ")")
		indexes.append(columns.index(name))
	return (tuple(row[i] for i in indexes) for row in rows)


def count_by(
	records: Iterable[Record],
	key: Union[str, KeyFn],
	header: Optional[Header] = None,
) -> Dict[Hashable, int]:
	"""Count records per grouping key.

	``key`` is either a field name (resolved against ``header``, counted on
	its raw text) or a callable. Key order in the result is unspecified;
	sort it when a stable order matters.
	"""
	if callable(key):
		key_fn = key
	else:
		if header is None:
			raise ValueError("a header is required to count by field name")
		ref = resolve_field(key, header)
		key_fn = ref.text
	counts: Dict[Hashable, int] = {}
	for rec in records:
		k = key_fn(rec)
		if k not in counts:
			counts[k] = 0
		counts[k] += 1
	return counts


def count_where(
	records: Iterable[Record],
	predicates: Mapping[str, Predicate],
	header: Header,
) -> Dict[str, int]:
	"""Tally, for each label, the records its predicate accepts.

	Each predicate is evaluated against every record independently, so a
	record can count toward several labels and the tallies need not sum to
	the number of records.
	"""
	tests = {label: pred.compile(header) for label, pred in predicates.items()}
	counts: Dict[str, int] = {label: 0 for label in tests}
	for rec in records:
		for label, test in tests.items():
			if test(rec):
				counts[label] += 1
	return counts
