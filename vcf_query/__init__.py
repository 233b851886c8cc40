"""vcf_query – streaming filters, projections and counts over VCF text.

Subpackages:
	io        – line classification, header/record model, writers
	query     – field references, predicates and the streaming engine
	metrics   – pandas summary tables of counts and QUAL
	plot      – bar / histogram plots of the summary tables

Library use mirrors the command line::

	from vcf_query.io import VCFReader
	from vcf_query.query import parse_predicate, filter_records

	with VCFReader("calls.vcf") as reader:
		for rec in filter_records(reader, parse_predicate("QUAL > 50"), reader.header):
			print(rec.to_line())
"""

from .errors import VCFQueryError, MalformedRecordError, UnknownFieldError, InvalidPredicateError  # noqa: F401

__version__ = "0.1.0"
__all__ = [
	"VCFQueryError",
	"MalformedRecordError",
	"UnknownFieldError",
	"InvalidPredicateError",
	"__version__",
]
