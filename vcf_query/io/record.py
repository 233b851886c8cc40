"""Header and record model for VCF text.

``Header`` is built once from the leading ``##`` metadata lines and the
``#CHROM`` column header; ``parse_record`` turns one data line into a
``Record`` using the header to know how many sample columns follow the
fixed ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Iterable, FrozenSet

from ..errors import MalformedRecordError, UnknownFieldError

__all__ = [
	"CORE_COLUMNS",
	"FORMAT_COLUMN",
	"MISSING",
	"MetadataLine",
	"Header",
	"Record",
	"parse_metadata_line",
	"parse_info_field",
	"parse_record",
]

CORE_COLUMNS: Tuple[str, ...] = ("CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO")
FORMAT_COLUMN = "FORMAT"
MISSING = "."

_DIGITS = re.compile(r"[0-9]+")
_ALLELE = re.compile(r"[A-Za-z]+")
# key=value pairs inside <...>; values may be double-quoted and contain commas
_ATTRIBUTE = re.compile(r'\s*([^=,\s]+)=("(?:[^"\\]|\\.)*"|[^,]*)\s*(?:,|$)')


@dataclass(frozen=True)
class MetadataLine:
	"""One ``##key=value`` declaration.

	Attributes
	----------
	key : str
		Text between ``##`` and the first ``=``.
	value : str
		Raw attribute blob after the first ``=`` (empty when absent).
	attributes : tuple of (name, value)
		Parsed ``<ID=..,Number=..,Type=..,Description=..>`` pairs for
		structured lines, in declaration order; empty otherwise.
	raw : str
		The original line without its terminator.
	"""

	key: str
	value: str
	attributes: Tuple[Tuple[str, str], ...] = ()
	raw: str = ""

	def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
		for k, v in self.attributes:
			if k == name:
				return v
		return default

	@property
	def id(self) -> Optional[str]:
		return self.get("ID")

	def to_line(self) -> str:
		if self.raw:
			return self.raw
		return f"##{self.key}={self.value}" if self.value else f"##{self.key}"


def parse_metadata_line(text: str) -> MetadataLine:
	"""Parse a ``##`` line. Unstructured values are kept verbatim."""
	raw = text.rstrip("\r\n")
	body = raw[2:]
	key, sep, value = body.partition("=")
	attributes: List[Tuple[str, str]] = []
	if sep and value.startswith("<") and value.endswith(">"):
		inner = value[1:-1]
		pos = 0
		while pos < len(inner):
			m = _ATTRIBUTE.match(inner, pos)
			if not m or m.end() == pos:
				break
			name, val = m.group(1), m.group(2).strip()
			if len(val) >= 2 and val[0] == '"' and val[-1] == '"':
				val = val[1:-1].replace('\\"', '"')
			attributes.append((name, val))
			pos = m.end()
	return MetadataLine(key=key, value=value, attributes=tuple(attributes), raw=raw)


@dataclass(frozen=True)
class Header:
	"""Process-wide metadata: declarations plus the column layout.

	Immutable once built; every ``Record`` of a file is parsed against it.
	"""

	metadata: Tuple[MetadataLine, ...] = ()
	columns: Tuple[str, ...] = CORE_COLUMNS + (FORMAT_COLUMN,)

	@classmethod
	def from_lines(
		cls,
		metadata_lines: Iterable[str],
		column_line: str,
		line_number: Optional[int] = None,
	) -> "Header":
		"""Build a header from raw ``##`` lines and the ``#CHROM`` line."""
		text = column_line.rstrip("\r\n")
		columns = tuple(text[1:].split("\t"))
		if columns[: len(CORE_COLUMNS)] != CORE_COLUMNS:
			raise MalformedRecordError(
				"column header must start with " + " ".join(CORE_COLUMNS), text, line_number
			)
		if len(columns) > len(CORE_COLUMNS):
			if columns[len(CORE_COLUMNS)] != FORMAT_COLUMN:
				raise MalformedRecordError("ninth column must be FORMAT when sample columns are present", text, line_number)
			samples = columns[len(CORE_COLUMNS) + 1:]
			if any(not s for s in samples):
				raise MalformedRecordError("empty sample name in column header", text, line_number)
			if len(set(samples)) != len(samples):
				raise MalformedRecordError("duplicate sample name in column header", text, line_number)
		return cls(metadata=tuple(parse_metadata_line(m) for m in metadata_lines), columns=columns)

	@property
	def has_format(self) -> bool:
		return len(self.columns) > len(CORE_COLUMNS)

	@property
	def sample_names(self) -> Tuple[str, ...]:
		return self.columns[len(CORE_COLUMNS) + 1:]

	@property
	def field_count(self) -> int:
		"""Number of tab-delimited fields every data row must have."""
		return len(self.columns)

	def declared_ids(self, key: str) -> FrozenSet[str]:
		"""IDs declared by structured lines such as ``##INFO=<ID=DP,...>``."""
		return frozenset(m.id for m in self.metadata if m.key == key and m.id)

	@property
	def info_ids(self) -> FrozenSet[str]:
		return self.declared_ids("INFO")

	@property
	def format_ids(self) -> FrozenSet[str]:
		return self.declared_ids("FORMAT")

	def sample_index(self, ref: str) -> int:
		"""Resolve a sample reference (0-based index or declared name)."""
		names = self.sample_names
		if ref in names:
			return names.index(ref)
		if _DIGITS.fullmatch(ref):
			idx = int(ref)
			if idx < len(names):
				return idx
			raise UnknownFieldError(
				f"SAMPLE[{ref}]", f"sample index out of range, {len(names)} sample(s) declared"
			)
		raise UnknownFieldError(f"SAMPLE[{ref}]", "no such sample name in column header")

	def column_line(self) -> str:
		return "#" + "\t".join(self.columns)

	def to_lines(self) -> List[str]:
		return [m.to_line() for m in self.metadata] + [self.column_line()]


@dataclass
class Record:
	"""One parsed data row.

	``fields`` keeps the raw tab-delimited tokens so ``to_line`` reproduces
	the input exactly; the typed attributes are derived from them.
	"""

	chromosome: str
	position: int
	identifier: str
	reference: str
	alternative: str
	quality: Optional[float]
	filter_status: str
	info: Dict[str, Optional[str]]
	format_keys: List[str]
	samples: List[Dict[str, str]]
	fields: List[str] = field(default_factory=list, repr=False)
	line_number: Optional[int] = None

	@property
	def filters(self) -> List[str]:
		if self.filter_status in ("", MISSING):
			return []
		return self.filter_status.split(";")

	@property
	def passed(self) -> bool:
		return self.filter_status == "PASS"

	@property
	def is_snv(self) -> bool:
		return len(self.reference) == 1 and len(self.alternative) == 1

	@property
	def quality_missing(self) -> bool:
		return self.quality is None

	def to_line(self) -> str:
		return "\t".join(self.fields)


def parse_info_field(info: str) -> Dict[str, Optional[str]]:
	"""Parse a VCF INFO column (key[=value];...) into an ordered dict.

	Keys without ``=`` are flags and map to ``None``. An INFO field of '.'
	returns an empty dict.
	"""
	out: Dict[str, Optional[str]] = {}
	if not info or info == MISSING:
		return out
	for token in info.split(";"):
		if not token:
			continue
		if "=" in token:
			k, v = token.split("=", 1)
			out[k] = v
		else:
			out[token] = None
	return out


def parse_record(line: str, header: Header, line_number: Optional[int] = None) -> Record:
	"""Parse a data line against ``header``.

	Raises
	------
	MalformedRecordError
		Wrong number of fields, non-numeric POS or QUAL, empty or
		non-alphabetic alleles, or a sample whose field count differs from
		FORMAT.
	"""
	text = line.rstrip("\r\n")
	parts = text.split("\t")
	expected = header.field_count
	if len(parts) != expected:
		raise MalformedRecordError(
			f"expected {expected} tab-delimited fields ({len(header.sample_names)} sample(s)), found {len(parts)}",
			text,
			line_number,
		)
	chrom, pos, ident, ref, alt, qual, flt, info = parts[: len(CORE_COLUMNS)]
	if not chrom:
		raise MalformedRecordError("empty CHROM", text, line_number)
	if not _DIGITS.fullmatch(pos):
		raise MalformedRecordError(f"non-numeric POS {pos!r}", text, line_number)
	if not _ALLELE.fullmatch(ref):
		raise MalformedRecordError(f"REF must be a non-empty alphabetic allele, got {ref!r}", text, line_number)
	if not _ALLELE.fullmatch(alt):
		raise MalformedRecordError(f"ALT must be a non-empty alphabetic allele, got {alt!r}", text, line_number)
	if qual == MISSING:
		quality = None
	else:
		try:
			quality = float(qual)
		except ValueError:
			raise MalformedRecordError(f"non-numeric QUAL {qual!r}", text, line_number) from None
	if not flt:
		raise MalformedRecordError("empty FILTER", text, line_number)

	format_keys: List[str] = []
	samples: List[Dict[str, str]] = []
	if header.has_format:
		fmt = parts[len(CORE_COLUMNS)]
		if fmt and fmt != MISSING:
			format_keys = fmt.split(":")
		names = header.sample_names
		for name, column in zip(names, parts[len(CORE_COLUMNS) + 1:]):
			if not format_keys and column in ("", MISSING):
				samples.append({})
				continue
			values = column.split(":")
			if len(values) != len(format_keys):
				raise MalformedRecordError(
					f"sample '{name}' has {len(values)} field(s) but FORMAT declares {len(format_keys)}",
					text,
					line_number,
				)
			samples.append(dict(zip(format_keys, values)))

	return Record(
		chromosome=chrom,
		position=int(pos),
		identifier=ident,
		reference=ref,
		alternative=alt,
		quality=quality,
		filter_status=flt,
		info=parse_info_field(info),
		format_keys=format_keys,
		samples=samples,
		fields=parts,
		line_number=line_number,
	)
