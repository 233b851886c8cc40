"""Streaming VCF reader.

Lines are first classified (metadata, column header, data) and the leading
ones are folded into a :class:`~vcf_query.io.record.Header`; data lines are
then parsed lazily into :class:`~vcf_query.io.record.Record` objects, one at
a time, so arbitrarily large files are read in bounded memory.

Typical use::

	with VCFReader("calls.vcf.gz") as reader:
		for rec in reader:
			...
"""

from __future__ import annotations

import gzip
import os
import sys
from enum import Enum
from typing import Iterable, Iterator, List, NamedTuple, Optional, Union, IO

from ..config import ON_ERROR_MODES
from ..errors import MalformedRecordError
from ..utils import log_info, log_warn, progress_interval
from .record import Header, Record, parse_record

__all__ = [
	"LineKind",
	"ClassifiedLine",
	"classify_line",
	"classify_lines",
	"VCFReader",
	"open_vcf",
]

Source = Union[str, "os.PathLike[str]", IO[str], Iterable[str]]


class LineKind(Enum):
	METADATA = "metadata"
	COLUMN_HEADER = "column header"
	DATA = "data"


class ClassifiedLine(NamedTuple):
	kind: LineKind
	text: str
	line_number: int


def classify_line(text: str) -> Optional[LineKind]:
	"""Classify one input line; ``None`` for blank lines.

	Rules, in order: ``##`` is metadata, ``#CHROM`` alone or followed by a
	tab is the column header, any other non-blank line is data.
	"""
	if not text.strip():
		return None
	if text.startswith("##"):
		return LineKind.METADATA
	if text == "#CHROM" or text.startswith("#CHROM\t"):
		return LineKind.COLUMN_HEADER
	return LineKind.DATA


def classify_lines(lines: Iterable[str]) -> Iterator[ClassifiedLine]:
	"""Lazily classify ``lines``, skipping blank ones.

	Line numbers are 1-based positions in the input, blanks included.
	"""
	for number, line in enumerate(lines, 1):
		text = line.rstrip("\r\n")
		kind = classify_line(text)
		if kind is None:
			continue
		yield ClassifiedLine(kind, text, number)


class VCFReader:
	"""Minimal streaming VCF reader.

	Parameters
	----------
	source : str | PathLike | text stream | iterable of str
		Path to an (optionally gzipped) VCF file, ``-`` for stdin, an open
		text stream or any iterable of lines. Handles opened here are closed
		on every exit path; handles passed in stay owned by the caller.
	max_records : int | None
		Optional limit for testing / faster prototyping.
	on_error : str
		``abort`` (default) re-raises the first ``MalformedRecordError``;
		``skip`` logs it, keeps it in ``errors`` and moves on.
	progress : bool
		Log a progress line every few thousand records.

	The header is read when the reader is opened (entering the ``with``
	block or calling :meth:`open`). Iteration is single-pass; re-open the
	source to read it again.
	"""

	def __init__(
		self,
		source: Source,
		max_records: Optional[int] = None,
		on_error: str = "abort",
		progress: bool = False,
	):
		if on_error not in ON_ERROR_MODES:
			raise ValueError(f"on_error must be one of {ON_ERROR_MODES}, got {on_error!r}")
		if max_records is not None and max_records < 0:
			raise ValueError(f"max_records must not be negative, got {max_records}")
		self.source = source
		self.max_records = max_records
		self.on_error = on_error
		self.progress = progress
		self.header: Optional[Header] = None
		self.data_lines = 0
		self.records_emitted = 0
		self.errors: List[MalformedRecordError] = []
		self._handle = None
		self._owns_handle = False
		self._lines: Optional[Iterator[ClassifiedLine]] = None

	# -- internal helpers -------------------------------------------------
	def _open(self):  # type: ignore[return-type]
		src = self.source
		if isinstance(src, (str, os.PathLike)):
			path = os.fspath(src)
			if path == "-":
				return sys.stdin, False
			if path.endswith(".gz"):
				return gzip.open(path, "rt"), True
			return open(path, "rt"), True
		return src, False

	def _read_header(self) -> Header:
		metadata: List[str] = []
		assert self._lines is not None
		for item in self._lines:
			if item.kind is LineKind.METADATA:
				metadata.append(item.text)
				continue
			if item.kind is LineKind.COLUMN_HEADER:
				return Header.from_lines(metadata, item.text, item.line_number)
			raise MalformedRecordError("data line found before the #CHROM column header", item.text, item.line_number)
		raise MalformedRecordError("missing #CHROM column header")

	# -- lifecycle --------------------------------------------------------
	def open(self) -> "VCFReader":
		if self._lines is not None:
			return self
		handle, owns = self._open()
		self._handle, self._owns_handle = handle, owns
		try:
			self._lines = classify_lines(handle)
			self.header = self._read_header()
		except BaseException:
			self.close()
			raise
		return self

	def close(self) -> None:
		if self._handle is not None and self._owns_handle:
			self._handle.close()
		self._handle = None
		self._owns_handle = False
		if self.header is not None:
			# single pass: nothing more to read once closed
			self._lines = iter(())

	def __enter__(self) -> "VCFReader":
		return self.open()

	def __exit__(self, exc_type, exc, tb) -> None:
		self.close()

	def __iter__(self) -> Iterator[Record]:
		return self.records()

	# -- streaming --------------------------------------------------------
	def records(self) -> Iterator[Record]:
		"""Yield parsed records in input order."""
		self.open()
		assert self._lines is not None and self.header is not None
		header = self.header
		try:
			for item in self._lines:
				if self.max_records is not None and self.records_emitted >= self.max_records:
					break
				if item.kind is not LineKind.DATA:
					raise MalformedRecordError(
						f"unexpected {item.kind.value} line after the column header", item.text, item.line_number
					)
				self.data_lines += 1
				try:
					rec = parse_record(item.text, header, item.line_number)
				except MalformedRecordError as exc:
					if self.on_error != "skip":
						raise
					self.errors.append(exc)
					log_warn(f"Skipping malformed record: {exc}")
					continue
				self.records_emitted += 1
				yield rec
				if self.progress and self.records_emitted % progress_interval(self.records_emitted) == 0:
					log_info(f"Processed {self.records_emitted:,} records...")
		finally:
			self.close()


def open_vcf(source: Source, **kwargs) -> VCFReader:
	"""Create a reader and read its header straight away."""
	return VCFReader(source, **kwargs).open()
