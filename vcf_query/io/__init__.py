"""I/O subpackage.

Exposes the streaming VCF reader, the header/record model and the output
writers.
"""

from .record import Header, MetadataLine, Record, parse_record, parse_info_field  # noqa: F401
from .vcf_reader import VCFReader, LineKind, ClassifiedLine, classify_line, classify_lines, open_vcf  # noqa: F401
from .writer import write_delimited, write_vcf, relabel_columns, format_row  # noqa: F401

__all__ = [
	"Header",
	"MetadataLine",
	"Record",
	"parse_record",
	"parse_info_field",
	"VCFReader",
	"LineKind",
	"ClassifiedLine",
	"classify_line",
	"classify_lines",
	"open_vcf",
	"write_delimited",
	"write_vcf",
	"relabel_columns",
	"format_row",
]
